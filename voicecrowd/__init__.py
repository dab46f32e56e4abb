"""voicecrowd - microphone capture, quality analysis and WAV packaging for prompt recordings."""

__version__ = "0.1.0"
