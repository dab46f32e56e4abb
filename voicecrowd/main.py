"""Main application entry point for voicecrowd."""

import sys
import argparse
import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .audio.device import PyAudioCaptureDevice
from .config import VoiceCrowdConfig
from .errors import DeviceUnavailable, EmptyRecording, SubmissionBlocked, UploadError
from .record_mode import run_record_session
from . import __version__

logger = logging.getLogger(__name__)


def setup_logging(config: VoiceCrowdConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/voicecrowd.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info(f"voicecrowd {__version__} starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def print_input_devices(console: Console) -> None:
    table = Table(title="🎤 Input devices", header_style="bold magenta")
    table.add_column("Index", style="cyan")
    table.add_column("Name")
    table.add_column("Channels")
    table.add_column("Default rate")
    for device in PyAudioCaptureDevice.list_input_devices():
        table.add_row(
            str(device.get("index")),
            device.get("name", ""),
            str(device.get("maxInputChannels")),
            f"{int(device.get('defaultSampleRate', 0))}Hz",
        )
    console.print(table)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="voicecrowd - record a prompt take, check its quality and submit it",
        epilog="Press Ctrl+C to stop recording early"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in settings)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, INFO)"
    )

    parser.add_argument(
        "--duration",
        type=float,
        help="Stop recording after this many seconds (capped by recording.max_duration)"
    )

    parser.add_argument(
        "--output",
        type=str,
        help="Where to save the WAV file (default: timestamped file in storage.output_directory)"
    )

    parser.add_argument(
        "--no-save",
        action="store_true",
        help="Do not write the take to disk"
    )

    parser.add_argument(
        "--device",
        type=str,
        help="Input device name (substring match, overrides audio.device_name)"
    )

    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="List input devices and exit"
    )

    parser.add_argument(
        "--upload",
        action="store_true",
        help="Submit the take to the server after recording"
    )

    parser.add_argument(
        "--prompt-id",
        type=str,
        help="Prompt the take was recorded for (required with --upload)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"voicecrowd v{__version__}"
    )

    return parser


def main(argv=None) -> None:
    """Main entry point for voicecrowd."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.upload and not args.prompt_id:
        parser.error("--prompt-id is required with --upload")
    if args.duration is not None and args.duration <= 0:
        parser.error("--duration must be a positive number of seconds")

    console = Console()
    try:
        config = VoiceCrowdConfig(args.config)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"❌ {e}", style="red")
        sys.exit(2)

    setup_logging(config, args.log_level or config.get('logging.level', 'INFO'))
    if args.device:
        config.set('audio.device_name', args.device)

    try:
        if args.list_devices:
            print_input_devices(console)
            return

        result = run_record_session(
            config,
            duration_seconds=args.duration,
            output_path=args.output,
            save=not args.no_save,
            upload=args.upload,
            prompt_id=args.prompt_id,
        )
        if result is not None and not result.analysis.is_valid:
            sys.exit(1)
    except DeviceUnavailable as e:
        logger.error(f"Microphone unavailable: {e}")
        console.print("❌ Could not access microphone. Please check permissions.", style="red")
        sys.exit(1)
    except (SubmissionBlocked, EmptyRecording) as e:
        console.print(f"❌ {e}", style="red")
        sys.exit(1)
    except UploadError as e:
        logger.error(f"Upload failed: {e} (status={e.status})")
        console.print(f"❌ {e}", style="red")
        sys.exit(1)
    except Exception as e:
        console.print(f"❌ Error: {e}", style="red")
        logger.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
