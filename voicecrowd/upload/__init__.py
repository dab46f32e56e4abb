"""Submission of finished takes."""

from .client import RecordingUploader

__all__ = ["RecordingUploader"]
