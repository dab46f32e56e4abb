"""Append-only sample buffer that collects device blocks for one take."""

import time
import logging
import threading
from typing import List, Optional

import numpy as np

logger = logging.getLogger(__name__)


class SampleBuffer:
    """Collects fixed-size float blocks and merges them once when the take ends."""

    def __init__(self, sample_rate: int = 16000):
        """Initialize sample buffer.

        Args:
            sample_rate: Sample rate of the blocks that will be appended
        """
        self.sample_rate = sample_rate

        self.chunks: List[np.ndarray] = []
        self.lock = threading.Lock()
        self.total_samples = 0
        self.start_time: Optional[float] = None

    def append(self, block: np.ndarray) -> None:
        """Store a copy of a device block.

        Devices reuse their block buffers, so the block is cloned before it
        is kept. No analysis happens here.
        """
        chunk = np.array(block, dtype=np.float32, copy=True).reshape(-1)
        if chunk.size == 0:
            return

        with self.lock:
            if self.start_time is None:
                self.start_time = time.time()
            self.chunks.append(chunk)
            self.total_samples += chunk.size

    @property
    def block_count(self) -> int:
        return len(self.chunks)

    @property
    def duration_seconds(self) -> float:
        return self.total_samples / self.sample_rate

    def merge(self) -> np.ndarray:
        """Concatenate all chunks in arrival order into one float32 array."""
        with self.lock:
            merged = np.empty(self.total_samples, dtype=np.float32)
            offset = 0
            for chunk in self.chunks:
                merged[offset:offset + chunk.size] = chunk
                offset += chunk.size
        return merged

    def drain(self) -> np.ndarray:
        """Merge all chunks and empty the buffer."""
        merged = self.merge()
        self.clear()
        logger.debug(f"Drained sample buffer: {merged.size} samples "
                     f"({merged.size / self.sample_rate:.2f}s)")
        return merged

    def get_buffer_stats(self) -> dict:
        """Get buffer statistics."""
        with self.lock:
            return {
                "block_count": len(self.chunks),
                "total_samples": self.total_samples,
                "duration_seconds": self.total_samples / self.sample_rate,
                "sample_rate": self.sample_rate,
                "start_time": self.start_time,
            }

    def clear(self) -> None:
        """Clear the buffer."""
        with self.lock:
            self.chunks = []
            self.total_samples = 0
            self.start_time = None
