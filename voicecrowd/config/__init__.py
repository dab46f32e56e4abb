"""Simple YAML configuration loader for voicecrowd."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from ..models.analysis import RecordingPolicy
from ..models.audio import CaptureConstraints

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "audio": {
        "target_sample_rate": 16000,
        "block_size": 4096,
        "snapshot_size": 2048,
        "echo_cancellation": True,
        "noise_suppression": True,
        "device_name": None,
    },
    "recording": {
        "min_duration": 0.5,
        "max_duration": 30.0,
        "silence_threshold": 0.01,
        "max_silence_ratio": 0.7,
        "quiet_peak": 0.05,
        "clipping_peak": 0.95,
        "window_seconds": 0.1,
    },
    "waveform": {
        "frame_rate": 30,
    },
    "upload": {
        "base_url": "http://localhost:3001/api",
        "token": None,
        "timeout_seconds": 60,
    },
    "storage": {
        "output_directory": "data/recordings",
    },
    "logging": {
        "level": "INFO",
        "file_path": "data/logs/voicecrowd.log",
        "console_output": True,
    },
}


class VoiceCrowdConfig:
    """voicecrowd configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults
                        are used.
        """
        self.config_file = Path(config_path) if config_path else None

        if self.config_file is None:
            logger.info("No configuration file given, using defaults")
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            return

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file, layered over the defaults."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e

        if not loaded:
            raise ValueError("Configuration file is empty")
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping")

        config = _merge(copy.deepcopy(DEFAULT_CONFIG), loaded)
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        output_dir = config.get('storage', {}).get('output_directory')
        if output_dir and not os.path.isabs(output_dir):
            config['storage']['output_directory'] = str(config_dir / output_dir)

        log_path = config.get('logging', {}).get('file_path')
        if log_path and not os.path.isabs(log_path):
            config['logging']['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Look up a dotted key such as 'recording.max_duration'.

        Returns default when any segment is missing or the walk reaches a
        scalar before the last segment.
        """
        node: Any = self.config
        for segment in key_path.split('.'):
            if not isinstance(node, dict) or segment not in node:
                return default
            node = node[segment]
        return node

    def set(self, key_path: str, value: Any) -> None:
        """Assign a dotted key, creating intermediate sections as needed.

        Raises:
            ValueError: If a segment on the way already holds a scalar
        """
        *parents, leaf = key_path.split('.')
        section = self.config
        for depth, segment in enumerate(parents):
            section = section.setdefault(segment, {})
            if not isinstance(section, dict):
                blocked = '.'.join(parents[:depth + 1])
                raise ValueError(f"Cannot set '{key_path}': '{blocked}' is not a section")
        section[leaf] = value
        logger.debug(f"Config {key_path} = {value!r}")

    def get_recording_policy(self) -> RecordingPolicy:
        """Thresholds used to judge a take."""
        return RecordingPolicy(
            min_duration=float(self.get('recording.min_duration')),
            max_duration=float(self.get('recording.max_duration')),
            silence_threshold=float(self.get('recording.silence_threshold')),
            max_silence_ratio=float(self.get('recording.max_silence_ratio')),
            quiet_peak=float(self.get('recording.quiet_peak')),
            clipping_peak=float(self.get('recording.clipping_peak')),
            window_seconds=float(self.get('recording.window_seconds')),
        )

    def get_capture_constraints(self) -> CaptureConstraints:
        """What to request from the microphone."""
        return CaptureConstraints(
            sample_rate=int(self.get('audio.target_sample_rate')),
            block_size=self.get_block_size(),
            snapshot_size=self.get_snapshot_size(),
            echo_cancellation=bool(self.get('audio.echo_cancellation')),
            noise_suppression=bool(self.get('audio.noise_suppression')),
            device_name=self.get('audio.device_name'),
        )

    def get_block_size(self) -> int:
        block_size = int(self.get('audio.block_size'))
        if block_size <= 0:
            raise ValueError(f"audio.block_size must be positive, got {block_size}")
        return block_size

    def get_snapshot_size(self) -> int:
        snapshot_size = int(self.get('audio.snapshot_size'))
        if snapshot_size <= 0:
            raise ValueError(f"audio.snapshot_size must be positive, got {snapshot_size}")
        return snapshot_size

    def get_waveform_frame_rate(self) -> float:
        frame_rate = float(self.get('waveform.frame_rate'))
        if frame_rate <= 0:
            raise ValueError(f"waveform.frame_rate must be positive, got {frame_rate}")
        return frame_rate

    def get_upload_settings(self) -> Dict[str, Any]:
        """Keyword arguments for RecordingUploader."""
        return {
            "base_url": self.get('upload.base_url'),
            "token": self.get('upload.token'),
            "timeout_seconds": float(self.get('upload.timeout_seconds')),
        }

    def get_output_directory(self) -> str:
        """Get directory that finished takes are written to."""
        output_dir = self.get('storage.output_directory', 'data/recordings')
        return str(Path(output_dir).absolute())


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base
