"""Helpers for float sample arrays."""

from typing import Sequence, Union

import numpy as np

SampleInput = Union[np.ndarray, Sequence[float]]


def as_float_samples(samples: SampleInput) -> np.ndarray:
    """Return samples as a one-dimensional float64 array."""
    data = np.asarray(samples, dtype=np.float64)
    if data.ndim != 1:
        raise ValueError(f"Expected mono samples, got array with shape {data.shape}")
    return data


def sanitize_samples(samples: SampleInput) -> np.ndarray:
    """Map samples into [-1, 1]: NaN becomes silence, infinities and overs are clamped."""
    data = as_float_samples(samples)
    data = np.nan_to_num(data, nan=0.0, posinf=1.0, neginf=-1.0)
    return np.clip(data, -1.0, 1.0)
