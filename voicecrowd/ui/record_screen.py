"""Terminal rendering of the live waveform and of finished takes."""

import logging
from typing import Optional, Sequence

import numpy as np
from pubsub import pub
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..audio.waveform import waveform_bars
from ..models.audio import RecordingResult
from ..models.events import WaveformFrame
from ..models.ui import RecordStatus

logger = logging.getLogger(__name__)

BAR_CHARS = " ▁▂▃▄▅▆▇█"


def sparkline(levels: Sequence[float]) -> str:
    """Render levels in [0, 1] as a row of block characters."""
    top = len(BAR_CHARS) - 1
    return "".join(BAR_CHARS[int(round(min(max(level, 0.0), 1.0) * top))] for level in levels)


def frame_levels(samples: np.ndarray, width: int) -> np.ndarray:
    """Largest magnitude in each of width equal slices of a frame."""
    if len(samples) == 0:
        return np.zeros(width)
    edges = np.linspace(0, len(samples), width + 1).astype(int)
    magnitudes = np.abs(samples)
    return np.array([
        magnitudes[start:end].max() if end > start else 0.0
        for start, end in zip(edges[:-1], edges[1:])
    ])


class RecordScreen:
    """Live level meter fed by waveform frames from the pub/sub topic."""

    def __init__(self, topic: str = "waveform.frame", width: int = 60,
                 console: Optional[Console] = None):
        """Initialize record screen.

        Args:
            topic: Pub/sub topic that WaveformPublisher sends frames on
            width: Number of characters used for waveform drawings
            console: Rich console to render to
        """
        self.topic = topic
        self.width = width
        self.console = console or Console()
        self.status = RecordStatus()
        self.subscribed = False

    def subscribe(self) -> None:
        if not self.subscribed:
            pub.subscribe(self.on_frame, self.topic)
            self.subscribed = True

    def unsubscribe(self) -> None:
        if self.subscribed:
            pub.unsubscribe(self.on_frame, self.topic)
            self.subscribed = False

    def on_frame(self, frame: WaveformFrame) -> None:
        """Listener for waveform frames."""
        self.status.peak_level = frame.peak_level
        self.status.waveform = sparkline(frame_levels(frame.samples, self.width))
        self.status.frames_rendered += 1

    def render(self) -> Panel:
        """Panel for the recording in progress."""
        table = Table(show_header=False, box=None)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="white")

        state = "🔴 RECORDING" if self.status.is_recording else "⏹️  STOPPED"
        table.add_row("State", state)
        table.add_row("Duration",
                      f"{self.status.duration_seconds:.1f}s / {self.status.max_duration:g}s")
        if self.status.sample_rate:
            table.add_row("Sample rate", f"{self.status.sample_rate}Hz")

        peak_bar = "█" * int(self.status.peak_level * 20)
        table.add_row("Peak level", f"{peak_bar:<20} {self.status.peak_level:.3f}")
        table.add_row("Waveform", Text(self.status.waveform or "", style="blue"))

        return Panel(table, title="🎙️  voicecrowd", subtitle="Ctrl+C to stop",
                     border_style="red" if self.status.is_recording else "bright_black")

    def render_report(self, result: RecordingResult) -> Panel:
        """Panel summarising a finished take and its quality issues."""
        analysis = result.analysis

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="white")
        table.add_row("Duration", f"{result.duration:.2f}s")
        table.add_row("Sample rate", f"{result.sample_rate}Hz")
        table.add_row("Silence", f"{analysis.silence_ratio:.0%}")
        table.add_row("Peak amplitude", f"{analysis.peak_amplitude:.3f}")
        table.add_row("Average RMS", f"{analysis.avg_rms:.4f}")
        table.add_row("Waveform", Text(sparkline(self._normalized_bars(result)), style="blue"))

        for issue in analysis.issues:
            if issue.is_blocking:
                table.add_row(Text("❌ " + issue.kind.value, style="bold red"), issue.message)
            else:
                table.add_row(Text("⚠️  " + issue.kind.value, style="yellow"), issue.message)

        if analysis.is_valid:
            title, style = "✅ Ready to submit", "green"
        else:
            title, style = "❌ Please record again", "red"
        return Panel(table, title=title, border_style=style)

    def _normalized_bars(self, result: RecordingResult) -> np.ndarray:
        bars = waveform_bars(result.samples, self.width)
        top = bars.max() if bars.size else 0.0
        return bars / top if top > 0 else bars
