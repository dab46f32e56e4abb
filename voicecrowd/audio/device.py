"""Capture device interface and the PyAudio microphone implementation."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from ..errors import DeviceUnavailable
from ..models.audio import CaptureConstraints

logger = logging.getLogger(__name__)

BlockCallback = Callable[[np.ndarray], None]


class CaptureDevice(ABC):
    """A mono audio input that pushes blocks and serves live snapshots."""

    @abstractmethod
    def open(self, constraints: CaptureConstraints, on_block: BlockCallback) -> int:
        """Acquire the device and start delivering blocks to on_block.

        Returns:
            The sample rate actually negotiated with the device

        Raises:
            DeviceUnavailable: If access is denied or no device exists
        """
        pass

    @abstractmethod
    def read_snapshot(self) -> Optional[np.ndarray]:
        """Latest time-domain snapshot in the device's native representation."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Stop the hardware stream and release the device. Safe to call twice."""
        pass


def _load_pyaudio():
    try:
        import pyaudio
    except ImportError as exc:  # pragma: no cover - environment-dependent
        raise DeviceUnavailable("PyAudio is required for microphone capture.") from exc
    return pyaudio


class PyAudioCaptureDevice(CaptureDevice):
    """Microphone input backed by a PyAudio callback stream."""

    def __init__(self):
        self.pyaudio_instance = None
        self.stream = None
        self.sample_rate: Optional[int] = None
        self.device_info: Optional[Dict[str, Any]] = None
        self._on_block: Optional[BlockCallback] = None
        self._snapshot: Optional[np.ndarray] = None
        self._snapshot_size = 0
        self._continue_flag = None

    @staticmethod
    def list_input_devices() -> List[Dict[str, Any]]:
        """Enumerate devices that have input channels."""
        pyaudio = _load_pyaudio()
        instance = pyaudio.PyAudio()
        try:
            devices = [instance.get_device_info_by_index(i)
                       for i in range(instance.get_device_count())]
        finally:
            instance.terminate()
        return [d for d in devices if d.get("maxInputChannels", 0) > 0]

    def open(self, constraints: CaptureConstraints, on_block: BlockCallback) -> int:
        if self.stream is not None:
            raise RuntimeError("Capture device is already open")

        pyaudio = _load_pyaudio()
        self._on_block = on_block
        self._snapshot = None
        self._snapshot_size = constraints.snapshot_size
        self._continue_flag = pyaudio.paContinue

        try:
            self.pyaudio_instance = pyaudio.PyAudio()
            self.device_info = self._select_device(constraints.device_name)
            self.sample_rate = self._negotiate_sample_rate(pyaudio, constraints)

            if constraints.echo_cancellation or constraints.noise_suppression:
                logger.info("Echo cancellation / noise suppression requested; "
                            "not available through PortAudio, capturing raw input")

            self.stream = self.pyaudio_instance.open(
                format=pyaudio.paFloat32,
                channels=constraints.channels,
                rate=self.sample_rate,
                input=True,
                input_device_index=self.device_info.get("index"),
                frames_per_buffer=constraints.block_size,
                stream_callback=self._stream_callback,
            )
        except (OSError, ValueError) as e:
            self.close()
            raise DeviceUnavailable(f"Could not access microphone: {e}") from e

        logger.info(f"Audio stream opened on '{self.device_info.get('name')}': "
                    f"{self.sample_rate}Hz, {constraints.block_size} samples/block")
        return self.sample_rate

    def _select_device(self, device_name: Optional[str]) -> Dict[str, Any]:
        if device_name:
            name_lower = device_name.lower()
            for index in range(self.pyaudio_instance.get_device_count()):
                info = self.pyaudio_instance.get_device_info_by_index(index)
                if (info.get("maxInputChannels", 0) > 0
                        and name_lower in info.get("name", "").lower()):
                    return info
            logger.warning(f"Input device '{device_name}' not found, using default")
        # Raises IOError when the platform has no input device
        return self.pyaudio_instance.get_default_input_device_info()

    def _negotiate_sample_rate(self, pyaudio, constraints: CaptureConstraints) -> int:
        """Use the target rate when supported, otherwise the device default. Never resample."""
        try:
            self.pyaudio_instance.is_format_supported(
                constraints.sample_rate,
                input_device=self.device_info.get("index"),
                input_channels=constraints.channels,
                input_format=pyaudio.paFloat32,
            )
            return constraints.sample_rate
        except ValueError:
            native_rate = int(self.device_info.get("defaultSampleRate", constraints.sample_rate))
            logger.warning(f"Device does not support {constraints.sample_rate}Hz, "
                           f"recording at native {native_rate}Hz")
            return native_rate

    def _stream_callback(self, in_data, frame_count, time_info, status_flags):
        on_block = self._on_block
        if on_block is None:
            return None, self._continue_flag
        block = np.frombuffer(in_data, dtype=np.float32)
        self._update_snapshot(block)
        on_block(block)
        return None, self._continue_flag

    def _update_snapshot(self, block: np.ndarray) -> None:
        size = self._snapshot_size
        if size <= 0:
            return
        if block.size >= size:
            snapshot = block[-size:].copy()
        elif self._snapshot is None:
            snapshot = np.concatenate([np.zeros(size - block.size, dtype=np.float32), block])
        else:
            snapshot = np.concatenate([self._snapshot[block.size:], block])
        self._snapshot = snapshot

    def read_snapshot(self) -> Optional[np.ndarray]:
        return self._snapshot

    def close(self) -> None:
        self._on_block = None
        # Every step runs even if an earlier one fails
        stream, self.stream = self.stream, None
        if stream is not None:
            try:
                stream.stop_stream()
            except Exception as e:
                logger.error(f"Error stopping audio stream: {e}", exc_info=True)
            try:
                stream.close()
            except Exception as e:
                logger.error(f"Error closing audio stream: {e}", exc_info=True)
        instance, self.pyaudio_instance = self.pyaudio_instance, None
        if instance is not None:
            try:
                instance.terminate()
            except Exception as e:
                logger.error(f"Error terminating PyAudio: {e}", exc_info=True)
        self._snapshot = None
