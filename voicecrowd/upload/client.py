"""Client for submitting finished takes to the recording server."""

import logging
from typing import Any, Dict, Optional, Union

import aiohttp

from ..errors import EmptyRecording, SubmissionBlocked, UploadError
from ..models.audio import RecordingResult

logger = logging.getLogger(__name__)


class RecordingUploader:
    """Packages a take as multipart form data and posts it to the server."""

    def __init__(self, base_url: str, token: Optional[str] = None, timeout_seconds: float = 60.0):
        """Initialize recording uploader.

        Args:
            base_url: API root, e.g. "https://example.org/api"
            token: Bearer token for the Authorization header
            timeout_seconds: Total timeout for one upload
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout_seconds = timeout_seconds

        logger.info(f"RecordingUploader initialized for {self.base_url}")

    @property
    def upload_url(self) -> str:
        return f"{self.base_url}/recording"

    def build_form(self, result: RecordingResult, prompt_id: Union[int, str],
                   filename: str = "recording.wav") -> aiohttp.FormData:
        """Multipart body: the WAV blob, the prompt id and the duration."""
        form = aiohttp.FormData()
        form.add_field("audio", result.blob, filename=filename, content_type=result.mime_type)
        form.add_field("prompt_id", str(prompt_id))
        form.add_field("duration", f"{result.duration:.2f}")
        return form

    async def upload(
        self,
        result: RecordingResult,
        prompt_id: Union[int, str],
        filename: str = "recording.wav",
        require_valid: bool = True,
    ) -> Dict[str, Any]:
        """Submit a take.

        Args:
            result: Finished take from AudioRecorder.stop()
            prompt_id: Prompt the take was recorded against
            filename: File name sent with the audio part
            require_valid: Refuse takes with hard quality issues

        Returns:
            Parsed JSON response from the server

        Raises:
            EmptyRecording: If the take has no samples
            SubmissionBlocked: If require_valid and the take has hard issues
            UploadError: If the request fails or the server rejects it
        """
        if result.is_empty:
            raise EmptyRecording("Cannot upload an empty recording")
        if require_valid and not result.analysis.is_valid:
            raise SubmissionBlocked(result.analysis.blocking_issues)

        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        logger.info(f"Uploading {len(result.blob)} bytes for prompt {prompt_id}")
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.upload_url, headers=headers,
                                        data=self.build_form(result, prompt_id, filename)) as response:
                    status = response.status
                    try:
                        payload = await response.json(content_type=None)
                    except ValueError as e:
                        raise UploadError("Invalid response from server", status=status) from e
        except aiohttp.ClientError as e:
            logger.error(f"Upload transport failure: {e}")
            raise UploadError("Network error during upload") from e

        if not 200 <= status < 300:
            message = "Upload failed"
            if isinstance(payload, dict):
                message = payload.get("error") or payload.get("message") or message
            logger.error(f"Upload rejected ({status}): {message}")
            raise UploadError(message, status=status, payload=payload)

        logger.info(f"Upload accepted ({status})")
        # An empty 2xx body parses to None
        return payload if isinstance(payload, dict) else {}
