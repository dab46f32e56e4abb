"""UI-related data models."""

from dataclasses import dataclass


@dataclass
class RecordStatus:
    """What the terminal screen shows while a take is being recorded."""
    is_recording: bool = False
    duration_seconds: float = 0.0
    max_duration: float = 30.0
    sample_rate: int = 0
    peak_level: float = 0.0
    frames_rendered: int = 0
    waveform: str = ""
