"""Audio capture, analysis and encoding."""

from .analyzer import analyze
from .buffer import SampleBuffer
from .device import CaptureDevice, PyAudioCaptureDevice
from .recorder import AudioRecorder
from .waveform import WaveformSampler, normalize_snapshot, waveform_bars
from .waveform_pub import WaveformPublisher
from .wav import encode_wav, decode_wav, write_wav

__all__ = [
    'analyze',
    'SampleBuffer',
    'CaptureDevice',
    'PyAudioCaptureDevice',
    'AudioRecorder',
    'WaveformSampler',
    'normalize_snapshot',
    'waveform_bars',
    'WaveformPublisher',
    'encode_wav',
    'decode_wav',
    'write_wav',
]
