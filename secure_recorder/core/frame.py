"""Audio frame value type delivered by capture sources."""

from dataclasses import dataclass
from enum import Enum

import numpy as np
from numpy.typing import NDArray


class SourceRole(Enum):
    """Which capture source a frame came from."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass(frozen=True, eq=False)
class AudioFrame:
    """A block of samples from one capture callback.

    Attributes:
        samples: Float samples with shape (frames, channels).
        sample_rate: Native sample rate of the source in Hz.
        source: Role of the source that produced the frame.
    """

    samples: NDArray[np.float32]
    sample_rate: int
    source: SourceRole = SourceRole.PRIMARY

    def __post_init__(self) -> None:
        samples = np.asarray(self.samples, dtype=np.float32)
        if samples.ndim == 1:
            samples = samples.reshape(-1, 1)
        if samples.ndim != 2:
            raise ValueError(f"samples must be 1-D or 2-D, got shape {samples.shape}")
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        samples.flags.writeable = False
        object.__setattr__(self, "samples", samples)

    @property
    def frame_count(self) -> int:
        return self.samples.shape[0]

    @property
    def channels(self) -> int:
        return self.samples.shape[1]

    @property
    def duration(self) -> float:
        """Duration of the frame in seconds."""
        return self.frame_count / self.sample_rate
