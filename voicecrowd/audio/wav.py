"""WAV encoding and decoding for mono 16-bit PCM takes."""

import io
import logging
import wave
from pathlib import Path
from typing import Tuple, Union

import numpy as np

from .samples import SampleInput, sanitize_samples

logger = logging.getLogger(__name__)

WAV_HEADER_BYTES = 44
SAMPLE_WIDTH_BYTES = 2
CHANNELS = 1


def float_to_pcm16(samples: SampleInput) -> np.ndarray:
    """Convert float samples to little-endian signed 16-bit PCM.

    Samples are clamped to [-1, 1]; negative values scale by 32768 and
    non-negative values by 32767, truncating toward zero.
    """
    clamped = sanitize_samples(samples)
    scaled = np.where(clamped < 0, clamped * 32768.0, clamped * 32767.0)
    return scaled.astype("<i2")


def encode_wav(samples: SampleInput, sample_rate: int) -> bytes:
    """Encode float samples as a canonical 44-byte-header PCM WAV file.

    Args:
        samples: Mono float samples, nominally in [-1, 1]
        sample_rate: Rate stamped into the header, unchanged (no resampling)

    Returns:
        WAV file bytes
    """
    assert sample_rate > 0, f"sample_rate must be positive, got {sample_rate}"
    pcm = float_to_pcm16(samples)

    buffer = io.BytesIO()
    with wave.open(buffer, 'wb') as wf:
        wf.setnchannels(CHANNELS)
        wf.setsampwidth(SAMPLE_WIDTH_BYTES)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm.tobytes())

    data = buffer.getvalue()
    assert len(data) == WAV_HEADER_BYTES + len(pcm) * SAMPLE_WIDTH_BYTES
    return data


def decode_wav(data: bytes) -> Tuple[np.ndarray, int]:
    """Decode mono 16-bit PCM WAV bytes into float32 samples.

    Returns:
        Tuple of (samples, sample_rate)

    Raises:
        ValueError: If the file is not mono 16-bit PCM
    """
    try:
        with wave.open(io.BytesIO(data), 'rb') as wf:
            if wf.getnchannels() != CHANNELS or wf.getsampwidth() != SAMPLE_WIDTH_BYTES:
                raise ValueError(
                    f"Only mono 16-bit PCM is supported "
                    f"(got {wf.getnchannels()} channels, {wf.getsampwidth() * 8}-bit)"
                )
            sample_rate = wf.getframerate()
            raw = wf.readframes(wf.getnframes())
    except (wave.Error, EOFError) as e:
        raise ValueError(f"Invalid WAV data: {e}") from e

    pcm = np.frombuffer(raw, dtype="<i2").astype(np.float32)
    samples = np.where(pcm < 0, pcm / 32768.0, pcm / 32767.0).astype(np.float32)
    return samples, sample_rate


def write_wav(filepath: Union[str, Path], samples: SampleInput, sample_rate: int) -> Path:
    """Save a take to disk as a WAV file.

    Args:
        filepath: Path to save the WAV file
        samples: Mono float samples
        sample_rate: Sample rate in Hz

    Returns:
        Path of the written file
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = encode_wav(samples, sample_rate)
    path.write_bytes(data)
    logger.info(f"Audio saved to {path} ({len(data)} bytes)")
    return path
