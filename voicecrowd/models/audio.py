"""Audio-related data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np

from .analysis import AnalysisReport

TARGET_SAMPLE_RATE = 16000
WAV_MIME_TYPE = "audio/wav"


class RecorderState(Enum):
    """Lifecycle of a recorder session."""
    IDLE = "idle"
    ACQUIRING = "acquiring"
    RECORDING = "recording"
    STOPPED = "stopped"


@dataclass(frozen=True)
class CaptureConstraints:
    """What the recorder asks of the input device."""
    sample_rate: int = TARGET_SAMPLE_RATE
    channels: int = 1
    block_size: int = 4096  # samples per block callback
    snapshot_size: int = 2048  # samples kept for live waveform snapshots
    echo_cancellation: bool = True
    noise_suppression: bool = True
    device_name: Optional[str] = None


@dataclass
class AudioStats:
    """Recorder statistics."""
    state: RecorderState
    duration_seconds: float
    sample_rate: int
    block_count: int
    total_samples: int

    @property
    def is_recording(self) -> bool:
        return self.state is RecorderState.RECORDING


@dataclass(frozen=True)
class MergedRecording:
    """All blocks of one session concatenated in arrival order."""
    samples: np.ndarray
    sample_rate: int

    @property
    def duration_seconds(self) -> float:
        return len(self.samples) / self.sample_rate


@dataclass
class RecordingResult:
    """Everything the recorder hands back when a take is stopped."""
    blob: bytes
    duration: float
    sample_rate: int
    samples: np.ndarray
    analysis: AnalysisReport
    mime_type: str = field(default=WAV_MIME_TYPE)

    @property
    def is_empty(self) -> bool:
        return len(self.samples) == 0
