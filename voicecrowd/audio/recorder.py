"""Recorder controller: device lifecycle, accumulation and the finished take."""

import logging
from datetime import datetime
from typing import Callable, Optional

import numpy as np

from ..errors import DeviceUnavailable
from ..models.analysis import RecordingPolicy, DEFAULT_POLICY
from ..models.audio import (
    AudioStats,
    CaptureConstraints,
    MergedRecording,
    RecorderState,
    RecordingResult,
)
from ..models.events import WaveformFrame
from .analyzer import analyze
from .buffer import SampleBuffer
from .device import CaptureDevice
from .waveform import WaveformSampler
from .wav import encode_wav

logger = logging.getLogger(__name__)


class AudioRecorder:
    """Records one take at a time from a capture device.

    idle -> acquiring -> recording -> stopped; a stopped recorder can start
    a new take. Auto-stop is cooperative: callers poll should_auto_stop()
    and call stop() themselves.
    """

    def __init__(
        self,
        device: CaptureDevice,
        constraints: Optional[CaptureConstraints] = None,
        policy: RecordingPolicy = DEFAULT_POLICY,
        on_waveform: Optional[Callable[[WaveformFrame], None]] = None,
        waveform_frame_rate: float = 60.0,
    ):
        """Initialize audio recorder.

        Args:
            device: Capture device to record from
            constraints: Requested capture settings (16kHz mono by default)
            policy: Thresholds used to analyse the finished take
            on_waveform: Optional callback for live waveform frames
            waveform_frame_rate: Live waveform ticks per second
        """
        self.device = device
        self.constraints = constraints or CaptureConstraints()
        self.policy = policy
        self.on_waveform = on_waveform
        self.waveform_frame_rate = waveform_frame_rate

        self.state = RecorderState.IDLE
        self.sample_rate = self.constraints.sample_rate
        self.buffer = SampleBuffer(self.sample_rate)
        self.waveform_sampler: Optional[WaveformSampler] = None
        self.started_at: Optional[datetime] = None

    @property
    def is_recording(self) -> bool:
        return self.state is RecorderState.RECORDING

    def start(self) -> None:
        """Acquire the device and begin recording a new take.

        Raises:
            DeviceUnavailable: If the microphone cannot be opened; the
                recorder stays idle and start() may be retried
        """
        if self.state in (RecorderState.ACQUIRING, RecorderState.RECORDING):
            logger.warning("Recording already in progress")
            return

        logger.info("Starting audio recording")
        self.state = RecorderState.ACQUIRING
        try:
            negotiated_rate = self.device.open(self.constraints, self._on_block)
        except DeviceUnavailable as e:
            self.state = RecorderState.IDLE
            logger.error(f"Microphone unavailable: {e}")
            raise
        except Exception:
            self.state = RecorderState.IDLE
            raise

        if negotiated_rate != self.constraints.sample_rate:
            logger.warning(f"Requested {self.constraints.sample_rate}Hz, "
                           f"device granted {negotiated_rate}Hz; keeping native rate")
        self.sample_rate = negotiated_rate
        self.buffer = SampleBuffer(negotiated_rate)
        self.started_at = datetime.now()
        self.state = RecorderState.RECORDING

        if self.on_waveform is not None:
            self.waveform_sampler = WaveformSampler(
                self.device, self.on_waveform, frame_rate=self.waveform_frame_rate
            )
            self.waveform_sampler.start()

    def _on_block(self, block: np.ndarray) -> None:
        """Block-arrival callback: copy and append, nothing else."""
        if self.state is not RecorderState.RECORDING:
            return
        self.buffer.append(block)

    def stop(self) -> Optional[RecordingResult]:
        """Stop recording, release the device and build the finished take.

        Returns:
            RecordingResult, or None when no recording was in progress
        """
        if self.state is not RecorderState.RECORDING:
            logger.warning("No recording in progress")
            return None

        logger.info("Stopping audio recording")
        self.state = RecorderState.STOPPED

        if self.waveform_sampler is not None:
            self.waveform_sampler.stop()
            self.waveform_sampler = None
        try:
            self.device.close()
        except Exception as e:
            # The take is already captured; a failed release must not lose it
            logger.error(f"Error releasing capture device: {e}", exc_info=True)

        block_count = self.buffer.block_count
        merged = MergedRecording(samples=self.buffer.drain(), sample_rate=self.sample_rate)
        if len(merged.samples) == 0:
            logger.warning("Recording stopped with no audio captured")

        analysis = analyze(merged.samples, merged.sample_rate, self.policy)
        blob = encode_wav(merged.samples, merged.sample_rate)

        logger.info(f"Recording stopped. {block_count} blocks, "
                    f"{merged.duration_seconds:.2f}s at {merged.sample_rate}Hz, "
                    f"valid={analysis.is_valid}")
        return RecordingResult(
            blob=blob,
            duration=merged.duration_seconds,
            sample_rate=merged.sample_rate,
            samples=merged.samples,
            analysis=analysis,
        )

    def elapsed_seconds(self) -> float:
        """Wall-clock time since recording started (0 when not recording)."""
        if not self.is_recording or self.started_at is None:
            return 0.0
        return (datetime.now() - self.started_at).total_seconds()

    def should_auto_stop(self) -> bool:
        """True once the take has reached the policy's maximum duration."""
        return self.is_recording and self.elapsed_seconds() >= self.policy.max_duration

    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        return AudioStats(
            state=self.state,
            duration_seconds=self.elapsed_seconds(),
            sample_rate=self.sample_rate,
            block_count=self.buffer.block_count,
            total_samples=self.buffer.total_samples,
        )

    def __del__(self):
        """Ensure the device is released on deletion."""
        if getattr(self, "state", None) is RecorderState.RECORDING:
            self.stop()
