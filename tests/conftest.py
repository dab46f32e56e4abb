"""Pytest configuration and fixtures for voicecrowd tests."""

import pytest
import tempfile
import threading
import time
import logging
from typing import List, Optional
from unittest.mock import Mock, patch
import numpy as np

from voicecrowd.audio.device import CaptureDevice
from voicecrowd.errors import DeviceUnavailable


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_addoption(parser):
    parser.addoption("--hardware", action="store_true", default=False,
                     help="run tests that need a real microphone")


def pytest_configure(config):
    for marker in ("unit", "integration", "hardware", "slow"):
        config.addinivalue_line("markers", f"{marker}: {marker} tests")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--hardware"):
        return
    skip_hardware = pytest.mark.skip(reason="needs --hardware")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)


class FakeCaptureDevice(CaptureDevice):
    """Replays canned blocks through one reused buffer, like a real device does."""

    def __init__(self, blocks: Optional[List[np.ndarray]] = None, sample_rate: int = 16000,
                 fail: bool = False, stream_interval: Optional[float] = None,
                 snapshot: Optional[np.ndarray] = None):
        self.blocks = [np.asarray(b, dtype=np.float32) for b in (blocks or [])]
        self.sample_rate = sample_rate
        self.fail = fail
        self.stream_interval = stream_interval
        self.snapshot = snapshot

        self.on_block = None
        self.constraints = None
        self.open_count = 0
        self.close_count = 0
        self.is_open = False
        self._stream_thread: Optional[threading.Thread] = None
        self._stop = threading.Event()

    def open(self, constraints, on_block):
        if self.fail:
            raise DeviceUnavailable("Permission denied")
        self.constraints = constraints
        self.on_block = on_block
        self.open_count += 1
        self.is_open = True
        self._stop.clear()
        if self.stream_interval is not None:
            self._stream_thread = threading.Thread(target=self._stream, daemon=True)
            self._stream_thread.start()
        return self.sample_rate

    def emit(self, block) -> None:
        """Deliver one block through a shared scratch buffer that is then overwritten."""
        block = np.asarray(block, dtype=np.float32)
        scratch = np.empty_like(block)
        scratch[:] = block
        self.on_block(scratch)
        scratch[:] = 12345.0

    def emit_all(self) -> None:
        for block in self.blocks:
            self.emit(block)

    def _stream(self) -> None:
        for block in self.blocks:
            if self._stop.wait(self.stream_interval):
                return
            if self.on_block is not None:
                self.emit(block)

    def read_snapshot(self):
        return self.snapshot

    def close(self):
        self._stop.set()
        if self._stream_thread is not None and self._stream_thread.is_alive():
            self._stream_thread.join(timeout=1.0)
        self._stream_thread = None
        if self.is_open:
            self.close_count += 1
        self.is_open = False


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def fake_device():
    """A fake device with three short blocks of a quiet tone."""
    blocks = [np.full(4096, value, dtype=np.float32) for value in (0.1, 0.2, 0.3)]
    return FakeCaptureDevice(blocks=blocks)


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    pyaudio = pytest.importorskip("pyaudio")
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.is_format_supported.return_value = True
        mock_pyaudio_instance.get_default_input_device_info.return_value = {
            "index": 0,
            "name": "Mock Microphone",
            "maxInputChannels": 1,
            "defaultSampleRate": 48000.0,
        }
        mock_pyaudio_instance.get_device_count.return_value = 2
        mock_pyaudio_instance.get_device_info_by_index.side_effect = lambda i: [
            {"index": 0, "name": "Mock Microphone", "maxInputChannels": 1,
             "defaultSampleRate": 48000.0},
            {"index": 1, "name": "Mock Speakers", "maxInputChannels": 0,
             "defaultSampleRate": 44100.0},
        ][i]

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'module': pyaudio,
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def audio_test_data():
    """Generate float audio signals for testing."""
    def generate_audio(pattern="sine", duration_seconds=1.0, sample_rate=16000, amplitude=0.5):
        """Generate audio samples.

        Args:
            pattern: Type of audio pattern ('sine', 'noise', 'silence')
            duration_seconds: Duration of audio
            sample_rate: Sample rate in Hz
            amplitude: Peak amplitude of the signal

        Returns:
            np.ndarray: float32 samples
        """
        samples = int(round(duration_seconds * sample_rate))

        if pattern == "sine":
            t = np.arange(samples) / sample_rate
            wave_data = amplitude * np.sin(2 * np.pi * 440 * t)
        elif pattern == "noise":
            rng = np.random.default_rng(1234)
            wave_data = rng.uniform(-amplitude, amplitude, samples)
        elif pattern == "silence":
            wave_data = np.zeros(samples)
        else:
            raise ValueError(f"Unknown pattern: {pattern}")

        return wave_data.astype(np.float32)

    return generate_audio


def wait_for(predicate, timeout=2.0, interval=0.01) -> bool:
    """Poll predicate until it is true or the timeout expires."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def device_factory():
    """Build FakeCaptureDevice instances with custom blocks."""
    return FakeCaptureDevice


@pytest.fixture
def wait_until():
    return wait_for
