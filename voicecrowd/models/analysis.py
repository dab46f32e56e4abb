"""Data models for recording quality analysis."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class IssueKind(Enum):
    """Kinds of quality issues a take can have."""
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    TOO_SILENT = "too_silent"
    TOO_QUIET = "too_quiet"
    CLIPPING = "clipping"

    @property
    def is_blocking(self) -> bool:
        """Hard issues invalidate a take, the rest are advisory."""
        return self in BLOCKING_ISSUES


BLOCKING_ISSUES = frozenset({IssueKind.TOO_SHORT, IssueKind.TOO_LONG, IssueKind.TOO_SILENT})


@dataclass(frozen=True)
class RecordingPolicy:
    """Thresholds a take is judged against."""
    min_duration: float = 0.5  # seconds
    max_duration: float = 30.0  # seconds
    silence_threshold: float = 0.01  # window RMS below this is silent
    max_silence_ratio: float = 0.7
    quiet_peak: float = 0.05
    clipping_peak: float = 0.95
    window_seconds: float = 0.1


DEFAULT_POLICY = RecordingPolicy()


@dataclass(frozen=True)
class AudioIssue:
    """A single quality issue with its user-facing message."""
    kind: IssueKind
    message: str

    @property
    def is_blocking(self) -> bool:
        return self.kind.is_blocking


@dataclass(frozen=True)
class AnalysisReport:
    """Result of analysing a finished take."""
    duration_seconds: float
    silence_ratio: float
    peak_amplitude: float
    avg_rms: float
    issues: List[AudioIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.blocking_issues

    @property
    def blocking_issues(self) -> List[AudioIssue]:
        return [issue for issue in self.issues if issue.is_blocking]

    @property
    def advisory_issues(self) -> List[AudioIssue]:
        return [issue for issue in self.issues if not issue.is_blocking]

    def has_issue(self, kind: IssueKind) -> bool:
        return any(issue.kind is kind for issue in self.issues)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration": self.duration_seconds,
            "silence_ratio": self.silence_ratio,
            "peak_amplitude": self.peak_amplitude,
            "avg_rms": self.avg_rms,
            "issues": [{"type": issue.kind.value, "message": issue.message} for issue in self.issues],
            "is_valid": self.is_valid,
        }
