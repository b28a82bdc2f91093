"""Sealing finished recordings and handing them to a transport."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

from secure_recorder.config import EncryptionConfig
from secure_recorder.core.protocols import EnvelopeUploader
from secure_recorder.crypto.envelope import encrypt
from secure_recorder.exceptions import WriteError
from secure_recorder.writers.wav_header import require_finalized

logger = logging.getLogger(__name__)

ENVELOPE_SUFFIX = ".wav.enc"


@dataclass(frozen=True)
class SealedRecording:
    """Result of sealing one recording.

    Attributes:
        key: Object key the envelope was stored under.
        location: Where the uploader reports the envelope ended up.
        size: Envelope size in bytes.
        duration: Recording duration in seconds.
    """

    key: str
    location: str
    size: int
    duration: float


def build_object_key(owner_id: str, prefix: str, when: datetime | None = None) -> str:
    """Name an envelope as ``<prefix>/<owner>_<timestamp>.wav.enc``.

    The timestamp is UTC ISO-8601 with ``:`` and ``.`` replaced by ``-``
    so the key is safe as a file name.
    """
    when = when or datetime.now(timezone.utc)
    stamp = when.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    stamp = stamp.replace("+00:00", "Z").replace(":", "-").replace(".", "-")
    return str(PurePosixPath(prefix) / f"{owner_id}_{stamp}{ENVELOPE_SUFFIX}")


def seal_container(
    path: Path,
    config: EncryptionConfig,
    uploader: EnvelopeUploader,
    when: datetime | None = None,
) -> SealedRecording:
    """Encrypt a finalized WAV file and pass the envelope to ``uploader``.

    Raises:
        InvalidContainerError: If the file was never finalized.
    """
    header = require_finalized(path)
    envelope = encrypt(path.read_bytes(), config.password)
    key = build_object_key(config.owner_id, config.key_prefix, when)

    logger.info("Handing %d-byte envelope to uploader as %s", len(envelope), key)
    location = uploader.upload(envelope, key)
    return SealedRecording(key=key, location=location, size=len(envelope), duration=header.duration)


class DirectoryUploader:
    """Stores envelopes under a local directory, using the key as a relative path.

    Args:
        root: Directory that receives the envelopes.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def upload(self, data: bytes, key: str) -> str:
        """Write ``data`` to ``root/key``.

        Raises:
            WriteError: If the key escapes the root or the write fails.
        """
        relative = PurePosixPath(key)
        if relative.is_absolute() or ".." in relative.parts:
            raise WriteError(f"Refusing to store outside {self._root}: {key}")

        target = self._root.joinpath(*relative.parts)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise WriteError(f"Failed to store {target}: {e}") from e

        logger.info("Stored %s (%d bytes)", target, len(data))
        return str(target)
