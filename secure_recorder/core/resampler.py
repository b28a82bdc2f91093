"""Linear-interpolation sample rate conversion."""

import numpy as np
from numpy.typing import ArrayLike, NDArray


def resample(samples: ArrayLike, from_rate: int, to_rate: int) -> NDArray[np.float32]:
    """Convert a mono sample sequence from one rate to another.

    Each output sample is interpolated linearly between the two nearest
    input samples. Positions past the last input sample are clamped to it
    rather than extrapolated.

    Args:
        samples: Mono samples at ``from_rate``.
        from_rate: Source sample rate in Hz.
        to_rate: Target sample rate in Hz.

    Returns:
        Samples at ``to_rate``. When the rates are equal the input is
        returned as is.

    Raises:
        ValueError: If either rate is not positive.
    """
    if from_rate <= 0 or to_rate <= 0:
        raise ValueError(f"Sample rates must be positive, got {from_rate} -> {to_rate}")

    data = np.asarray(samples, dtype=np.float32)
    if from_rate == to_rate:
        return data

    ratio = from_rate / to_rate
    input_length = data.shape[0]
    output_length = round(input_length / ratio)
    if input_length == 0 or output_length == 0:
        return np.zeros(0, dtype=np.float32)

    positions = np.arange(output_length, dtype=np.float64) * ratio
    floor_idx = np.minimum(np.floor(positions).astype(np.int64), input_length - 1)
    ceil_idx = np.minimum(floor_idx + 1, input_length - 1)
    t = positions - floor_idx

    out = data[floor_idx] * (1.0 - t) + data[ceil_idx] * t
    return out.astype(np.float32)


class StreamResampler:
    """Linear-interpolation resampler for a stream delivered in blocks.

    Unlike resample(), which treats every call as an independent signal,
    this keeps the read position and the last input sample between calls.
    Output samples therefore land on the same grid no matter how the input
    is split, and a stream of ``N`` input samples yields
    ``floor((N - 1) * to_rate / from_rate) + 1`` output samples in total.

    Positions are tracked as integers in units of ``1 / to_rate`` input
    samples, so long recordings do not accumulate rounding error.

    Args:
        to_rate: Target sample rate in Hz.

    Example:
        resampler = StreamResampler(16000)
        for block in blocks:
            out = resampler.process(block, 48000)
    """

    def __init__(self, to_rate: int) -> None:
        if to_rate <= 0:
            raise ValueError(f"Target sample rate must be positive, got {to_rate}")
        self._to_rate = to_rate
        self._from_rate: int | None = None
        self._held: NDArray[np.float32] | None = None
        self._position = 0

    @property
    def to_rate(self) -> int:
        return self._to_rate

    def reset(self) -> None:
        """Forget the stream so the next block starts a new one."""
        self._from_rate = None
        self._held = None
        self._position = 0

    def process(self, samples: ArrayLike, from_rate: int) -> NDArray[np.float32]:
        """Resample the next block of the stream.

        A change of ``from_rate`` starts a new stream.

        Raises:
            ValueError: If ``from_rate`` is not positive.
        """
        if from_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {from_rate}")
        if from_rate != self._from_rate:
            self.reset()
            self._from_rate = from_rate

        block = np.asarray(samples, dtype=np.float32)
        if from_rate == self._to_rate:
            return block
        if block.shape[0] == 0:
            return np.zeros(0, dtype=np.float32)

        data = block if self._held is None else np.concatenate((self._held, block))
        last = data.shape[0] - 1
        end = last * self._to_rate

        if self._position > end:
            count = 0
        else:
            count = (end - self._position) // from_rate + 1

        positions = self._position + np.arange(count, dtype=np.int64) * from_rate
        floor_idx = positions // self._to_rate
        ceil_idx = np.minimum(floor_idx + 1, last)
        t = (positions - floor_idx * self._to_rate) / self._to_rate

        out = data[floor_idx] * (1.0 - t) + data[ceil_idx] * t

        # The last sample becomes index 0 of the next block
        self._position += count * from_rate - end
        self._held = data[-1:].copy()
        return out.astype(np.float32)
