"""Live waveform sampling for display while a take is being recorded."""

import time
import logging
from threading import Thread, Event, current_thread
from typing import Callable, Optional

import numpy as np

from ..models.events import WaveformFrame
from .device import CaptureDevice
from .samples import SampleInput, sanitize_samples

logger = logging.getLogger(__name__)


def normalize_snapshot(snapshot: np.ndarray) -> np.ndarray:
    """Convert a native-format snapshot to float32 samples in [-1, 1].

    Unsigned bytes are centred on 128, signed integers are divided by the
    magnitude of their minimum value, floats are sanitized and clipped.
    """
    data = np.asarray(snapshot)
    if data.dtype == np.uint8:
        normalized = (data.astype(np.float32) - 128.0) / 128.0
    elif np.issubdtype(data.dtype, np.signedinteger):
        normalized = data.astype(np.float32) / float(-np.iinfo(data.dtype).min)
    else:
        normalized = sanitize_samples(data.reshape(-1))
    return normalized.reshape(-1).astype(np.float32)


def waveform_bars(samples: SampleInput, bar_count: int) -> np.ndarray:
    """Mean absolute amplitude of consecutive slices, for drawing a finished take."""
    if bar_count <= 0:
        raise ValueError(f"bar_count must be positive, got {bar_count}")
    data = np.abs(sanitize_samples(samples))
    samples_per_bar = len(data) // bar_count
    if samples_per_bar == 0:
        return np.zeros(bar_count, dtype=np.float64)
    return data[:samples_per_bar * bar_count].reshape(bar_count, samples_per_bar).mean(axis=1)


class WaveformSampler:
    """Polls a device snapshot at display cadence and hands frames to a callback.

    Independent of block accumulation: it only reads snapshots and never
    touches the recorder's buffer.
    """

    def __init__(
        self,
        device: CaptureDevice,
        callback: Callable[[WaveformFrame], None],
        frame_rate: float = 60.0,
    ):
        """Initialize waveform sampler.

        Args:
            device: Open capture device to read snapshots from
            callback: Receives one WaveformFrame per cadence tick
            frame_rate: Ticks per second for the background thread
        """
        self.device = device
        self.callback = callback
        self.frame_interval = 1.0 / frame_rate

        self.sampler_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_sampling = False
        self.frames_emitted = 0

    def tick(self) -> Optional[WaveformFrame]:
        """Take one snapshot and deliver it; no-op when not sampling or no audio yet."""
        if not self.is_sampling:
            return None

        snapshot = self.device.read_snapshot()
        if snapshot is None:
            return None

        frame = WaveformFrame(
            samples=normalize_snapshot(snapshot),
            timestamp=time.time(),
            sequence_number=self.frames_emitted,
        )
        # Recording may have stopped while normalizing
        if not self.is_sampling:
            return None
        self.frames_emitted += 1
        self.callback(frame)
        return frame

    def start(self, background: bool = True) -> None:
        """Start sampling, optionally on a background ticker thread."""
        if self.is_sampling:
            logger.warning("Waveform sampling already in progress")
            return

        self.stop_event.clear()
        self.frames_emitted = 0
        self.is_sampling = True

        if background:
            self.sampler_thread = Thread(target=self._sample_continuously, daemon=True)
            self.sampler_thread.name = "WaveformSamplerThread"
            self.sampler_thread.start()

    def stop(self) -> None:
        """Stop sampling immediately."""
        if not self.is_sampling:
            return

        self.is_sampling = False
        self.stop_event.set()

        thread = self.sampler_thread
        if thread and thread.is_alive() and thread is not current_thread():
            thread.join(timeout=1.0)
            if thread.is_alive():
                logger.warning("Waveform sampler thread did not stop cleanly")
        self.sampler_thread = None
        logger.debug(f"Waveform sampling stopped after {self.frames_emitted} frames")

    def _sample_continuously(self) -> None:
        """Internal method: ticker loop in background thread."""
        while not self.stop_event.wait(self.frame_interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Waveform callback failed, stopping live waveform")
                self.is_sampling = False
                return
