"""Pairing of a primary and an optional secondary capture stream."""

import logging
from collections import deque

from secure_recorder.core.frame import AudioFrame
from secure_recorder.core.protocols import CaptureSource, EndedCallback, FramesCallback
from secure_recorder.exceptions import RecorderError

logger = logging.getLogger(__name__)


class CaptureGroup:
    """Delivers primary frames paired with the latest secondary frame.

    The primary stream drives the cadence. Secondary frames are held in a
    bounded deque; each primary frame takes the oldest held secondary
    frame if there is one, otherwise it is delivered alone.

    Args:
        primary: Source whose callbacks drive delivery.
        secondary: Optional source mixed into the primary.
        buffer_size: Maximum secondary frames held before the oldest is dropped.
    """

    def __init__(
        self,
        primary: CaptureSource,
        secondary: CaptureSource | None = None,
        buffer_size: int = 8,
    ) -> None:
        self._primary = primary
        self._secondary = secondary
        self._pending: deque[AudioFrame] = deque(maxlen=buffer_size)
        self._on_frames: FramesCallback | None = None
        self._dropped = 0

    @property
    def name(self) -> str:
        if self._secondary is None:
            return self._primary.name
        return f"{self._primary.name} + {self._secondary.name}"

    @property
    def dropped_frames(self) -> int:
        """Secondary frames discarded because the buffer was full."""
        return self._dropped

    def _hold_secondary(self, frame: AudioFrame) -> None:
        if len(self._pending) == self._pending.maxlen:
            self._dropped += 1
            if self._dropped % 50 == 1:
                logger.warning("Secondary buffer full, dropped %d frames", self._dropped)
        self._pending.append(frame)

    def _deliver_primary(self, frame: AudioFrame) -> None:
        if self._on_frames is None:
            return
        try:
            secondary = self._pending.popleft()
        except IndexError:
            self._on_frames(frame)
            return
        self._on_frames(frame, secondary)

    def start(self, on_frames: FramesCallback, on_ended: EndedCallback) -> None:
        """Start both streams, secondary first so its frames are waiting.

        Raises:
            CaptureError: If either stream fails to start.
        """
        self._pending.clear()
        self._dropped = 0
        self._on_frames = on_frames

        if self._secondary is not None:
            self._secondary.start(self._hold_secondary, on_ended)
        try:
            self._primary.start(self._deliver_primary, on_ended)
        except RecorderError:
            if self._secondary is not None:
                self._secondary.stop()
            raise

    def stop(self) -> None:
        """Stop both streams and discard held secondary frames."""
        self._on_frames = None
        self._primary.stop()
        if self._secondary is not None:
            self._secondary.stop()
        self._pending.clear()
