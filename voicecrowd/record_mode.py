"""Scripted single-take recording: capture, review, save and optionally submit."""

import time
import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from rich.live import Live

from .audio.device import CaptureDevice, PyAudioCaptureDevice
from .audio.recorder import AudioRecorder
from .audio.waveform_pub import WaveformPublisher
from .audio.wav import write_wav
from .config import VoiceCrowdConfig
from .models.audio import RecordingResult
from .ui.record_screen import RecordScreen
from .upload.client import RecordingUploader

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.05


def run_record_session(
    config: VoiceCrowdConfig,
    duration_seconds: Optional[float] = None,
    output_path: Optional[str] = None,
    save: bool = True,
    upload: bool = False,
    prompt_id: Optional[Union[int, str]] = None,
    device: Optional[CaptureDevice] = None,
    screen: Optional[RecordScreen] = None,
) -> Optional[RecordingResult]:
    """Record one take and report on it.

    This mode:
    1. Opens the microphone and shows a live level meter
    2. Records until Ctrl+C, the requested duration or the policy maximum
    3. Prints the quality report
    4. Saves the WAV and, if asked, submits it

    Args:
        config: Loaded configuration
        duration_seconds: Stop after this long (capped by the policy maximum)
        output_path: Where to write the WAV (default: timestamped file in the output directory)
        save: Write the WAV to disk
        upload: Submit the take after recording
        prompt_id: Prompt the take belongs to, required for upload
        device: Capture device (default: the system microphone)
        screen: Screen to render to

    Returns:
        The finished take, or None if nothing was recorded

    Raises:
        DeviceUnavailable: If the microphone cannot be opened
        SubmissionBlocked, EmptyRecording, UploadError: If submission fails
    """
    if upload and prompt_id is None:
        raise ValueError("prompt_id is required to upload a recording")
    if duration_seconds is not None and duration_seconds <= 0:
        raise ValueError(f"Recording duration must be positive, got {duration_seconds}")

    policy = config.get_recording_policy()
    topic = "waveform.frame"
    publisher = WaveformPublisher(topic)
    screen = screen or RecordScreen(topic)
    recorder = AudioRecorder(
        device or PyAudioCaptureDevice(),
        constraints=config.get_capture_constraints(),
        policy=policy,
        on_waveform=publisher.publish_frame,
        waveform_frame_rate=config.get_waveform_frame_rate(),
    )

    limit = policy.max_duration
    if duration_seconds is not None:
        limit = min(duration_seconds, policy.max_duration)
    screen.status.max_duration = limit

    screen.subscribe()
    try:
        result = _record_take(recorder, screen, limit)
    finally:
        if recorder.is_recording:
            recorder.stop()
        screen.unsubscribe()

    if result is None:
        return None

    screen.console.print(screen.render_report(result))

    if save:
        path = Path(output_path) if output_path else _default_output_path(config)
        write_wav(path, result.samples, result.sample_rate)
        screen.console.print(f"💾 Saved {path}")

    if upload:
        uploader = RecordingUploader(**config.get_upload_settings())
        response = asyncio.run(uploader.upload(result, prompt_id))
        screen.console.print("✅ Recording submitted successfully!", style="green")
        logger.info(f"Server response: {response}")

    return result


def _record_take(recorder: AudioRecorder, screen: RecordScreen,
                 limit: float) -> Optional[RecordingResult]:
    recorder.start()
    screen.status.is_recording = True
    screen.status.sample_rate = recorder.sample_rate
    logger.info(f"Recording up to {limit:g}s at {recorder.sample_rate}Hz")

    with Live(screen.render(), console=screen.console, refresh_per_second=10) as live:
        try:
            while recorder.is_recording and not recorder.should_auto_stop():
                if recorder.elapsed_seconds() >= limit:
                    break
                screen.status.duration_seconds = recorder.elapsed_seconds()
                live.update(screen.render())
                time.sleep(POLL_INTERVAL_SECONDS)
        except KeyboardInterrupt:
            logger.info("Recording stopped by user")

        result = recorder.stop()
        screen.status.is_recording = False
        if result is not None:
            screen.status.duration_seconds = result.duration
        live.update(screen.render())

    return result


def _default_output_path(config: VoiceCrowdConfig) -> Path:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return Path(config.get_output_directory()) / f"take_{timestamp}.wav"
