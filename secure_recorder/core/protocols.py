"""Protocol definitions for recorder collaborators.

These protocols define the contracts that capture sources, sinks and
upload transports must implement, following the Dependency Inversion
Principle.
"""

from collections.abc import Callable
from typing import Protocol

FramesCallback = Callable[..., None]
"""Called with one or two AudioFrames per capture callback."""

EndedCallback = Callable[[str], None]
"""Called with a reason when a capture stream ends unexpectedly."""


class CaptureSource(Protocol):
    """Protocol for push-style capture sources.

    Implementations call ``on_frames`` from their real-time thread at a
    fixed cadence and ``on_ended`` if the stream stops without stop()
    being called (device unplugged, permission revoked).
    """

    @property
    def name(self) -> str:
        """Human-readable name of the capture source."""
        ...

    def start(self, on_frames: FramesCallback, on_ended: EndedCallback) -> None:
        """Start delivering frames.

        Raises:
            CaptureError: If capture cannot be started.
        """
        ...

    def stop(self) -> None:
        """Stop delivering frames and release the device."""
        ...


class PcmSink(Protocol):
    """Protocol for the container stream writer owned by a session."""

    @property
    def samples_written(self) -> int:
        """Total number of samples appended."""
        ...

    def open(self) -> None:
        """Create the sink and write a placeholder header.

        Raises:
            WriteError: If the sink cannot be created.
        """
        ...

    def append(self, data: bytes) -> None:
        """Append encoded PCM bytes.

        Raises:
            WriteError: If writing fails.
        """
        ...

    def finalize(self) -> None:
        """Patch the header and close the sink.

        Raises:
            FinalizeError: If the header cannot be patched.
        """
        ...

    def abandon(self) -> None:
        """Close the sink leaving the placeholder header."""
        ...


class EnvelopeUploader(Protocol):
    """Protocol for the transport that receives sealed recordings.

    Retries and backoff belong to the implementation, not the caller.
    """

    def upload(self, data: bytes, key: str) -> str:
        """Store ``data`` under ``key`` and return the stored location."""
        ...
