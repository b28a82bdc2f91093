"""16-bit PCM sample conversion."""

import numpy as np
from numpy.typing import ArrayLike, NDArray

BYTES_PER_SAMPLE = 2

_PCM_DTYPE = np.dtype("<i2")


def encode_pcm16(samples: ArrayLike) -> bytes:
    """Convert float samples to little-endian signed 16-bit PCM.

    Samples are clamped to [-1.0, 1.0] first, so out-of-range input
    saturates instead of wrapping. Negative values scale by 32768 and
    non-negative values by 32767. Scaled values are rounded to the nearest
    integer with ties going to the even one (``np.rint``), so a scaled
    value of -2.5 encodes as -2.

    Args:
        samples: Mono float samples, nominally in [-1.0, 1.0].

    Returns:
        Two bytes per sample.
    """
    data = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    scaled = np.where(data < 0, data * 32768.0, data * 32767.0)
    return np.rint(scaled).astype(_PCM_DTYPE).tobytes()


def decode_pcm16(data: bytes) -> NDArray[np.float32]:
    """Convert little-endian 16-bit PCM back to float samples.

    Raises:
        ValueError: If the byte count is odd.
    """
    if len(data) % BYTES_PER_SAMPLE:
        raise ValueError(f"PCM16 data must have an even length, got {len(data)} bytes")
    ints = np.frombuffer(data, dtype=_PCM_DTYPE).astype(np.float32)
    return np.where(ints < 0, ints / 32768.0, ints / 32767.0).astype(np.float32)
