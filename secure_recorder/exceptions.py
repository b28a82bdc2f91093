"""Custom exceptions for the secure recorder."""


class RecorderError(Exception):
    """Base exception for all secure recorder errors."""


class DeviceNotFoundError(RecorderError):
    """Raised when a requested audio device cannot be found."""

    def __init__(self, device_name: str, device_type: str = "device") -> None:
        self.device_name = device_name
        self.device_type = device_type
        super().__init__(f"{device_type.capitalize()} not found: '{device_name}'")


class NoDevicesAvailableError(RecorderError):
    """Raised when no audio devices of the required type are available."""

    def __init__(self, device_type: str) -> None:
        self.device_type = device_type
        super().__init__(f"No {device_type} devices available")


class SessionError(RecorderError):
    """Raised when the recording session is used incorrectly."""


class AlreadyRecordingError(SessionError):
    """Raised when start() is called while a recording is in progress."""


class CaptureError(RecorderError):
    """Raised when a capture stream fails, ends or is revoked mid-session."""


class MixerError(RecorderError):
    """Raised when frames handed to the mixer cannot be combined."""


class WriteError(RecorderError):
    """Raised when appending audio data to the sink fails."""


class BackpressureError(RecorderError):
    """Raised when the writer queue exceeds its configured depth."""

    def __init__(self, depth: int) -> None:
        self.depth = depth
        super().__init__(f"Writer queue full ({depth} chunks pending), aborting recording")


class FinalizeError(RecorderError):
    """Raised when the container header cannot be patched."""


class InvalidContainerError(RecorderError):
    """Raised when a WAV file is malformed or was never finalized."""


class DecryptError(RecorderError):
    """Base class for failures that a caller can recover from, e.g. by re-prompting."""


class FormatError(DecryptError):
    """Raised when an envelope does not start with the salted marker."""


class CryptoError(DecryptError):
    """Raised when key derivation or the cipher operation fails."""
