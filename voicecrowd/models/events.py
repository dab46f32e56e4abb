"""Event models for live waveform publishing."""

from dataclasses import dataclass

import numpy as np


@dataclass
class WaveformFrame:
    """One normalized time-domain snapshot for display, discarded after rendering."""
    samples: np.ndarray  # float32 in [-1, 1]
    timestamp: float  # Unix timestamp when the snapshot was taken
    sequence_number: int

    @property
    def peak_level(self) -> float:
        if len(self.samples) == 0:
            return 0.0
        return float(abs(self.samples).max())
