"""Terminal user interface."""

from .record_screen import RecordScreen, sparkline

__all__ = ["RecordScreen", "sparkline"]
