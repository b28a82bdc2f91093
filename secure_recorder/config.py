"""Configuration dataclasses for recording and encryption."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

# Output format is fixed: 16 kHz, mono, 16-bit PCM.
TARGET_SAMPLE_RATE = 16000

PASSWORD_ENV = "SECURE_RECORDER_PASSWORD"
OWNER_ID_ENV = "SECURE_RECORDER_OWNER_ID"


@dataclass(frozen=True)
class AudioConfig:
    """Configuration for audio capture parameters.

    Attributes:
        sample_rate: Native capture rate in Hz (default: 48000 for PipeWire compatibility).
        channels: Number of captured channels per source (default: 2 for stereo).
        block_size: Number of frames per capture callback (default: 1024).
        dtype: NumPy dtype string for captured samples.
    """

    sample_rate: int = 48000
    channels: int = 2
    block_size: int = 1024
    dtype: str = "float32"

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        if self.channels not in (1, 2):
            raise ValueError(f"channels must be 1 or 2, got {self.channels}")
        if self.block_size <= 0:
            raise ValueError(f"block_size must be positive, got {self.block_size}")


@dataclass(frozen=True)
class SourceConfig:
    """Configuration for an individual capture source.

    Attributes:
        device_name: Name or identifier of the audio device (None for the default).
        enabled: Whether this source is captured.
    """

    device_name: str | None = None
    enabled: bool = True


@dataclass(frozen=True)
class EncryptionConfig:
    """Credentials and naming inputs for sealing a finished recording.

    Attributes:
        password: Password the envelope key is derived from.
        owner_id: Identifier prefixed to exported object keys.
        key_prefix: Folder-like prefix for exported object keys.
    """

    password: str
    owner_id: str = "recorder"
    key_prefix: str = "audio-recordings"

    def __post_init__(self) -> None:
        if not self.password:
            raise ValueError("Encryption password must not be empty")
        if not self.owner_id:
            raise ValueError("owner_id must not be empty")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "EncryptionConfig":
        """Build the configuration from environment variables.

        Raises:
            ValueError: If the password variable is missing or empty.
        """
        env = os.environ if environ is None else environ
        password = env.get(PASSWORD_ENV, "")
        if not password:
            raise ValueError(f"{PASSWORD_ENV} is not set")
        return cls(password=password, owner_id=env.get(OWNER_ID_ENV) or "recorder")


@dataclass
class RecordingConfig:
    """Configuration for a recording session.

    Attributes:
        output_path: Path to the output WAV file.
        audio: Capture parameters shared by both sources.
        primary: Primary source configuration (system audio monitor).
        secondary: Optional secondary source configuration (microphone).
        duration: Recording duration in seconds (None for indefinite).
        queue_depth: Maximum number of encoded chunks waiting for the writer.
        secondary_buffer: Maximum number of secondary frames held for pairing.
        verbose: Enable verbose logging.
    """

    output_path: Path
    audio: AudioConfig = field(default_factory=AudioConfig)
    primary: SourceConfig = field(default_factory=SourceConfig)
    secondary: SourceConfig = field(default_factory=SourceConfig)
    duration: float | None = None
    queue_depth: int = 64
    secondary_buffer: int = 8
    verbose: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.output_path, str):
            object.__setattr__(self, "output_path", Path(self.output_path))
        if self.queue_depth <= 0:
            raise ValueError(f"queue_depth must be positive, got {self.queue_depth}")
        if self.secondary_buffer <= 0:
            raise ValueError(f"secondary_buffer must be positive, got {self.secondary_buffer}")
        if self.duration is not None and self.duration <= 0:
            raise ValueError(f"duration must be positive, got {self.duration}")
