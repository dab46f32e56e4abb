"""Data models for voicecrowd."""

from .analysis import (
    AnalysisReport,
    AudioIssue,
    IssueKind,
    RecordingPolicy,
    DEFAULT_POLICY,
    BLOCKING_ISSUES,
)
from .audio import (
    AudioStats,
    CaptureConstraints,
    MergedRecording,
    RecorderState,
    RecordingResult,
    TARGET_SAMPLE_RATE,
    WAV_MIME_TYPE,
)
from .events import WaveformFrame
from .ui import RecordStatus

__all__ = [
    "AnalysisReport",
    "AudioIssue",
    "IssueKind",
    "RecordingPolicy",
    "DEFAULT_POLICY",
    "BLOCKING_ISSUES",
    "AudioStats",
    "CaptureConstraints",
    "MergedRecording",
    "RecorderState",
    "RecordingResult",
    "TARGET_SAMPLE_RATE",
    "WAV_MIME_TYPE",
    "WaveformFrame",
    "RecordStatus",
]
