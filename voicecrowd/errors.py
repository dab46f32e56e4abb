"""Exception types raised by voicecrowd."""

from typing import Any, List, Optional


class VoiceCrowdError(Exception):
    """Base class for all voicecrowd errors."""


class DeviceUnavailable(VoiceCrowdError):
    """Microphone access was denied or no input device exists."""


class EmptyRecording(VoiceCrowdError):
    """A take contains no samples (the device delivered nothing)."""


class SubmissionBlocked(VoiceCrowdError):
    """A take has hard quality issues and may not be submitted."""

    def __init__(self, issues: List[Any]):
        self.issues = list(issues)
        messages = "; ".join(issue.message for issue in self.issues)
        super().__init__(f"Recording cannot be submitted: {messages}")


class UploadError(VoiceCrowdError):
    """Submitting a take to the server failed."""

    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status = status
        self.payload = payload
