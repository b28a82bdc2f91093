"""Audio mixing functionality.

This module downmixes each capture source to mono and combines the
primary and secondary sources into a single stream.
"""

import logging
from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from secure_recorder.core.frame import AudioFrame
from secure_recorder.exceptions import MixerError

logger = logging.getLogger(__name__)


class SourceMixer:
    """Mixes one or two capture frames into a mono stream.

    Stereo frames are downmixed by averaging their channels. When two
    sources are present their mono streams are summed, not averaged, so
    the result may leave [-1, 1]; the PCM encoder saturates it.

    Example:
        mixer = SourceMixer()
        mono = mixer.mix([monitor_frame, mic_frame])
    """

    max_sources = 2

    def mix(self, frames: Sequence[AudioFrame]) -> NDArray[np.float32]:
        """Mix frames from one or two sources.

        Args:
            frames: One frame per source, time-aligned by index.

        Returns:
            Mono float32 samples at the frames' shared native rate.

        Raises:
            MixerError: If no frames, too many frames, or frames with
                different sample rates are given.
        """
        if not frames:
            raise MixerError("No frames to mix")
        if len(frames) > self.max_sources:
            raise MixerError(f"Cannot mix {len(frames)} sources (max {self.max_sources})")

        rates = {frame.sample_rate for frame in frames}
        if len(rates) > 1:
            raise MixerError(f"Sources have different sample rates: {sorted(rates)}")

        downmixed = [self.downmix(frame) for frame in frames]
        if len(downmixed) == 1:
            return downmixed[0]

        # Align to the shortest frame for this callback
        min_frames = min(chunk.shape[0] for chunk in downmixed)
        if any(chunk.shape[0] != min_frames for chunk in downmixed):
            logger.debug("Truncating mixed frames to %d samples", min_frames)

        mixed = downmixed[0][:min_frames] + downmixed[1][:min_frames]
        return mixed.astype(np.float32)

    @staticmethod
    def downmix(frame: AudioFrame) -> NDArray[np.float32]:
        """Average a frame's channels into one."""
        if frame.channels == 1:
            return frame.samples[:, 0]
        return frame.samples.mean(axis=1, dtype=np.float32)
