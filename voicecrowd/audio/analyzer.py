"""Post-recording quality analysis: silence, loudness and duration checks."""

import logging
from typing import List

import numpy as np

from ..models.analysis import (
    AnalysisReport,
    AudioIssue,
    IssueKind,
    RecordingPolicy,
    DEFAULT_POLICY,
)
from .samples import SampleInput, sanitize_samples

logger = logging.getLogger(__name__)


def window_size_for(sample_rate: int, policy: RecordingPolicy = DEFAULT_POLICY) -> int:
    """Number of samples in one analysis window."""
    return max(1, int(round(sample_rate * policy.window_seconds)))


def window_rms(samples: np.ndarray, window_size: int) -> np.ndarray:
    """RMS of each full window; a trailing partial window is dropped."""
    window_count = len(samples) // window_size
    if window_count == 0:
        return np.zeros(0, dtype=np.float64)
    windows = samples[:window_count * window_size].reshape(window_count, window_size)
    return np.sqrt(np.mean(np.square(windows), axis=1))


def analyze(samples: SampleInput, sample_rate: int,
            policy: RecordingPolicy = DEFAULT_POLICY) -> AnalysisReport:
    """Analyse a finished take.

    Args:
        samples: Merged mono float samples
        sample_rate: Sample rate the samples were captured at
        policy: Thresholds to classify issues against

    Returns:
        AnalysisReport with silence ratio, peak, average RMS and issues
    """
    assert sample_rate > 0, f"sample_rate must be positive, got {sample_rate}"
    data = sanitize_samples(samples)
    duration = len(data) / sample_rate

    peak_amplitude = float(np.max(np.abs(data))) if data.size else 0.0

    rms = window_rms(data, window_size_for(sample_rate, policy))
    if rms.size:
        silent_windows = int(np.count_nonzero(rms < policy.silence_threshold))
        silence_ratio = silent_windows / rms.size
        avg_rms = float(rms.mean())
    else:
        # No complete window: nothing audible to judge, treat as fully silent
        silence_ratio = 1.0
        avg_rms = 0.0

    issues = classify_issues(duration, silence_ratio, peak_amplitude, policy)
    report = AnalysisReport(
        duration_seconds=duration,
        silence_ratio=silence_ratio,
        peak_amplitude=peak_amplitude,
        avg_rms=avg_rms,
        issues=issues,
    )
    logger.debug(f"Analysed {len(data)} samples at {sample_rate}Hz: "
                 f"{rms.size} windows, silence {silence_ratio:.2f}, "
                 f"peak {peak_amplitude:.3f}, issues {[i.kind.value for i in issues]}")
    return report


def classify_issues(duration: float, silence_ratio: float, peak_amplitude: float,
                    policy: RecordingPolicy = DEFAULT_POLICY) -> List[AudioIssue]:
    """Turn take statistics into an ordered list of issues."""
    issues = []

    if duration < policy.min_duration:
        issues.append(AudioIssue(
            IssueKind.TOO_SHORT,
            f"Recording too short ({duration:.1f}s). Minimum is {policy.min_duration:g}s."
        ))

    if duration > policy.max_duration:
        issues.append(AudioIssue(
            IssueKind.TOO_LONG,
            f"Recording too long ({duration:.1f}s). Maximum is {policy.max_duration:g}s."
        ))

    if silence_ratio > policy.max_silence_ratio:
        issues.append(AudioIssue(
            IssueKind.TOO_SILENT,
            f"Recording contains too much silence ({round(silence_ratio * 100)}%). "
            f"Please speak louder or check your microphone."
        ))

    if peak_amplitude < policy.quiet_peak:
        issues.append(AudioIssue(
            IssueKind.TOO_QUIET,
            "Recording is very quiet. Please speak louder or move closer to the microphone."
        ))

    if peak_amplitude > policy.clipping_peak:
        issues.append(AudioIssue(
            IssueKind.CLIPPING,
            "Audio may be clipping. Please speak softer or move away from the microphone."
        ))

    return issues
