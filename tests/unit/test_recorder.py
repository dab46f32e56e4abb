"""Unit tests for AudioRecorder."""

from datetime import datetime, timedelta
from unittest.mock import patch

import numpy as np
import pytest

from voicecrowd.audio.device import PyAudioCaptureDevice
from voicecrowd.audio.recorder import AudioRecorder
from voicecrowd.audio.wav import decode_wav
from voicecrowd.errors import DeviceUnavailable
from voicecrowd.models.analysis import IssueKind, RecordingPolicy
from voicecrowd.models.audio import CaptureConstraints, RecorderState, RecordingResult


@pytest.mark.unit
class TestAudioRecorder:
    """Test cases for AudioRecorder."""

    def test_initialization(self, fake_device):
        recorder = AudioRecorder(fake_device)

        assert recorder.state is RecorderState.IDLE
        assert recorder.is_recording is False
        assert recorder.sample_rate == 16000
        assert recorder.constraints == CaptureConstraints()
        assert recorder.started_at is None

    def test_start_requests_mono_16k_with_processing(self, fake_device):
        recorder = AudioRecorder(fake_device)

        recorder.start()

        assert recorder.state is RecorderState.RECORDING
        assert recorder.started_at is not None
        assert fake_device.constraints.sample_rate == 16000
        assert fake_device.constraints.channels == 1
        assert fake_device.constraints.echo_cancellation is True
        assert fake_device.constraints.noise_suppression is True
        recorder.stop()

    def test_start_device_unavailable(self, device_factory):
        """Test that a denied microphone leaves the recorder idle and retryable."""
        device = device_factory(fail=True)
        recorder = AudioRecorder(device)

        with pytest.raises(DeviceUnavailable):
            recorder.start()
        assert recorder.state is RecorderState.IDLE

        device.fail = False
        recorder.start()
        assert recorder.state is RecorderState.RECORDING
        recorder.stop()

    def test_start_unexpected_error_resets_state(self, fake_device):
        recorder = AudioRecorder(fake_device)

        with patch.object(fake_device, "open", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                recorder.start()

        assert recorder.state is RecorderState.IDLE

    def test_start_while_recording_is_ignored(self, fake_device):
        recorder = AudioRecorder(fake_device)
        recorder.start()

        recorder.start()

        assert fake_device.open_count == 1
        assert recorder.state is RecorderState.RECORDING
        recorder.stop()

    def test_start_while_acquiring_is_ignored(self, fake_device):
        recorder = AudioRecorder(fake_device)
        states = []
        real_open = fake_device.open

        def open_and_retry(constraints, on_block):
            states.append(recorder.state)
            recorder.start()
            return real_open(constraints, on_block)

        with patch.object(fake_device, "open", side_effect=open_and_retry):
            recorder.start()

        assert states == [RecorderState.ACQUIRING]
        assert fake_device.open_count == 1
        assert recorder.state is RecorderState.RECORDING
        recorder.stop()

    def test_stop_returns_take(self, fake_device):
        recorder = AudioRecorder(fake_device)
        recorder.start()
        fake_device.emit_all()

        result = recorder.stop()

        assert isinstance(result, RecordingResult)
        assert recorder.state is RecorderState.STOPPED
        assert result.sample_rate == 16000
        assert len(result.samples) == 3 * 4096
        assert result.duration == len(result.samples) / 16000
        assert result.mime_type == "audio/wav"
        assert len(result.blob) == 44 + 2 * len(result.samples)
        assert result.analysis.duration_seconds == result.duration
        assert result.is_empty is False

    def test_blocks_merged_in_order_and_cloned(self, device_factory):
        """Test that overwritten device buffers do not corrupt stored chunks."""
        a, b, c = np.full(100, 0.1), np.full(250, -0.2), np.full(50, 0.3)
        device = device_factory(blocks=[a, b, c])
        recorder = AudioRecorder(device)
        recorder.start()
        device.emit_all()

        samples = recorder.stop().samples

        assert len(samples) == 400
        np.testing.assert_allclose(samples[0:100], 0.1, rtol=1e-6)
        np.testing.assert_allclose(samples[100:350], -0.2, rtol=1e-6)
        np.testing.assert_allclose(samples[350:400], 0.3, rtol=1e-6)

    def test_blob_decodes_to_samples(self, device_factory, audio_test_data):
        device = device_factory(blocks=[audio_test_data("sine", duration_seconds=1.0)])
        recorder = AudioRecorder(device)
        recorder.start()
        device.emit_all()

        result = recorder.stop()
        decoded, sample_rate = decode_wav(result.blob)

        assert sample_rate == 16000
        assert np.max(np.abs(decoded - result.samples)) < 1e-4
        assert result.analysis.is_valid is True

    def test_stop_releases_device(self, fake_device):
        recorder = AudioRecorder(fake_device)
        recorder.start()

        recorder.stop()

        assert fake_device.close_count == 1
        assert fake_device.is_open is False

    def test_stop_keeps_take_when_device_release_fails(self, fake_device):
        recorder = AudioRecorder(fake_device)
        recorder.start()
        fake_device.emit_all()

        with patch.object(fake_device, "close", side_effect=OSError("Stream not open")):
            result = recorder.stop()

        assert isinstance(result, RecordingResult)
        assert len(result.samples) == 3 * 4096
        assert recorder.buffer.block_count == 0
        assert recorder.stop() is None

    def test_stop_with_failing_pyaudio_stream(self, mock_pyaudio):
        mock_pyaudio['stream'].stop_stream.side_effect = OSError("Stream not open")
        recorder = AudioRecorder(PyAudioCaptureDevice())
        recorder.start()
        callback = mock_pyaudio['instance'].open.call_args.kwargs['stream_callback']
        callback(np.full(4096, 0.2, dtype=np.float32).tobytes(), 4096, {}, 0)

        result = recorder.stop()

        assert len(result.samples) == 4096
        assert result.sample_rate == 16000
        mock_pyaudio['stream'].close.assert_called_once()
        mock_pyaudio['instance'].terminate.assert_called_once()
        assert recorder.state is RecorderState.STOPPED

    def test_stop_twice_is_noop(self, fake_device):
        """Test that a second stop neither raises nor re-merges."""
        recorder = AudioRecorder(fake_device)
        recorder.start()
        fake_device.emit_all()
        first = recorder.stop()

        with patch.object(recorder.buffer, "drain") as mock_drain:
            second = recorder.stop()

        assert first is not None
        assert second is None
        mock_drain.assert_not_called()
        assert fake_device.close_count == 1
        assert recorder.state is RecorderState.STOPPED

    def test_stop_when_idle_is_noop(self, fake_device):
        recorder = AudioRecorder(fake_device)

        assert recorder.stop() is None
        assert recorder.state is RecorderState.IDLE
        assert fake_device.close_count == 0

    def test_blocks_after_stop_are_ignored(self, fake_device):
        recorder = AudioRecorder(fake_device)
        recorder.start()
        on_block = fake_device.on_block
        recorder.stop()

        on_block(np.ones(10, dtype=np.float32))

        assert recorder.buffer.total_samples == 0

    def test_empty_recording(self, fake_device):
        """Test that a take with no blocks is analysed, not an error."""
        recorder = AudioRecorder(fake_device)
        recorder.start()

        result = recorder.stop()

        assert result.is_empty is True
        assert result.duration == 0.0
        assert len(result.blob) == 44
        assert result.analysis.has_issue(IssueKind.TOO_SHORT)
        assert result.analysis.has_issue(IssueKind.TOO_SILENT)
        assert result.analysis.is_valid is False

    def test_negotiated_rate_is_kept(self, device_factory):
        """Test that a 48kHz grant is recorded and stamped, never resampled."""
        device = device_factory(blocks=[np.full(4800, 0.5)], sample_rate=48000)
        recorder = AudioRecorder(device)
        recorder.start()
        device.emit_all()

        result = recorder.stop()

        assert recorder.sample_rate == 48000
        assert result.sample_rate == 48000
        assert len(result.samples) == 4800
        assert result.duration == pytest.approx(0.1)
        assert int.from_bytes(result.blob[24:28], "little") == 48000

    def test_restart_after_stop(self, fake_device):
        """Test that a new take starts with an empty buffer."""
        recorder = AudioRecorder(fake_device)
        recorder.start()
        fake_device.emit_all()
        recorder.stop()

        recorder.start()
        fake_device.emit(np.zeros(10))
        result = recorder.stop()

        assert fake_device.open_count == 2
        assert len(result.samples) == 10

    def test_policy_applied(self, device_factory):
        device = device_factory(blocks=[np.full(16000, 0.5)])
        recorder = AudioRecorder(device, policy=RecordingPolicy(min_duration=2.0))
        recorder.start()
        device.emit_all()

        result = recorder.stop()

        assert result.analysis.has_issue(IssueKind.TOO_SHORT)

    def test_elapsed_and_auto_stop(self, fake_device):
        recorder = AudioRecorder(fake_device, policy=RecordingPolicy(max_duration=30.0))
        assert recorder.elapsed_seconds() == 0.0
        assert recorder.should_auto_stop() is False

        recorder.start()
        assert recorder.should_auto_stop() is False

        recorder.started_at = datetime.now() - timedelta(seconds=30)
        assert recorder.elapsed_seconds() >= 30
        assert recorder.should_auto_stop() is True

        recorder.stop()
        assert recorder.should_auto_stop() is False

    def test_get_recording_stats(self, fake_device):
        recorder = AudioRecorder(fake_device)
        recorder.start()
        fake_device.emit_all()

        stats = recorder.get_recording_stats()

        assert stats.state is RecorderState.RECORDING
        assert stats.is_recording is True
        assert stats.sample_rate == 16000
        assert stats.block_count == 3
        assert stats.total_samples == 3 * 4096
        assert stats.duration_seconds >= 0
        recorder.stop()

    def test_waveform_frames_delivered_while_recording(self, device_factory, wait_until):
        """Test that the live waveform tap runs alongside accumulation."""
        snapshot = np.full(2048, 192, dtype=np.uint8)
        device = device_factory(snapshot=snapshot)
        frames = []
        recorder = AudioRecorder(device, on_waveform=frames.append, waveform_frame_rate=200)

        recorder.start()
        assert wait_until(lambda: len(frames) >= 2)
        result = recorder.stop()
        count_at_stop = len(frames)

        assert recorder.waveform_sampler is None
        assert frames[0].samples.dtype == np.float32
        np.testing.assert_allclose(frames[0].samples, 0.5)
        assert result.is_empty is True
        assert len(frames) == count_at_stop

    def test_destructor_stops_recording(self, fake_device):
        recorder = AudioRecorder(fake_device)
        recorder.start()

        recorder.__del__()

        assert recorder.state is RecorderState.STOPPED
        assert fake_device.close_count == 1
