"""Streaming WAV file writer.

This module appends 16-bit PCM to a file as it is produced and patches
the header lengths once recording ends, so memory use stays bounded
regardless of recording length.
"""

import logging
from pathlib import Path
from typing import BinaryIO, Self

from secure_recorder.config import TARGET_SAMPLE_RATE
from secure_recorder.exceptions import FinalizeError, WriteError
from secure_recorder.writers.pcm import BYTES_PER_SAMPLE
from secure_recorder.writers.wav_header import (
    CHUNK_SIZE_OFFSET,
    DATA_LENGTH_OFFSET,
    HEADER_SIZE,
    length_field,
    placeholder_header,
)

logger = logging.getLogger(__name__)


class WavStreamWriter:
    """Writes mono 16-bit PCM to a WAV file incrementally.

    The header is written with zeroed length fields on open and patched in
    place by finalize(). A file that is never finalized keeps its
    placeholder header and must be treated as incomplete.

    Args:
        path: Output file path.
        sample_rate: Sample rate declared in the header.

    Example:
        with WavStreamWriter(Path("output.wav")) as writer:
            writer.append(encode_pcm16(chunk))
            writer.append(encode_pcm16(another_chunk))
        # Header is patched and the file closed
    """

    def __init__(self, path: Path, sample_rate: int = TARGET_SAMPLE_RATE) -> None:
        self._path = Path(path)
        self._sample_rate = sample_rate
        self._file: BinaryIO | None = None
        self._samples_written = 0

    @property
    def path(self) -> Path:
        """Path to the output file."""
        return self._path

    @property
    def samples_written(self) -> int:
        """Total number of samples appended."""
        return self._samples_written

    @property
    def data_length(self) -> int:
        """Number of PCM bytes appended."""
        return self._samples_written * BYTES_PER_SAMPLE

    @property
    def duration(self) -> float:
        """Duration of audio written in seconds."""
        return self._samples_written / self._sample_rate

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def open(self) -> None:
        """Create or truncate the file and write the placeholder header.

        Raises:
            WriteError: If the file cannot be created.
        """
        if self._file is not None:
            raise WriteError(f"{self._path} is already open")

        try:
            self._file = open(self._path, "wb")
            self._file.write(placeholder_header(self._sample_rate))
            self._file.flush()
        except OSError as e:
            self._close_quietly()
            raise WriteError(f"Failed to open {self._path}: {e}") from e

        self._samples_written = 0
        logger.info("Opened %s for writing", self._path)

    def append(self, data: bytes) -> None:
        """Append encoded PCM bytes.

        Raises:
            WriteError: If the writer is not open or the write fails.
        """
        if self._file is None:
            raise WriteError("Writer not opened")

        if not data:
            return

        try:
            self._file.write(data)
        except (OSError, ValueError) as e:
            raise WriteError(f"Failed to write audio data: {e}") from e
        self._samples_written += len(data) // BYTES_PER_SAMPLE

    def finalize(self) -> None:
        """Patch the header length fields and close the file.

        Raises:
            FinalizeError: If the writer is not open or the header cannot
                be patched.
        """
        if self._file is None:
            raise FinalizeError("Writer not opened")

        data_length = self.data_length
        try:
            self._file.flush()
            self._file.seek(CHUNK_SIZE_OFFSET)
            self._file.write(length_field(HEADER_SIZE - 8 + data_length))
            self._file.seek(DATA_LENGTH_OFFSET)
            self._file.write(length_field(data_length))
            self._file.close()
        except (OSError, ValueError) as e:
            self._close_quietly()
            raise FinalizeError(f"Failed to finalize {self._path}: {e}") from e
        self._file = None

        logger.info(
            "Finalized %s (%.2f seconds, %d samples)",
            self._path,
            self.duration,
            self._samples_written,
        )

    def abandon(self) -> None:
        """Close the file without patching the header."""
        if self._file is None:
            return
        self._close_quietly()
        logger.warning(
            "Abandoned %s after %d samples; header left unfinalized",
            self._path,
            self._samples_written,
        )

    def _close_quietly(self) -> None:
        if self._file is None:
            return
        try:
            self._file.close()
        except OSError as e:
            logger.error("Error closing %s: %s", self._path, e)
        finally:
            self._file = None

    def __enter__(self) -> Self:
        """Open the file for writing."""
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: object,
    ) -> None:
        """Finalize on success, leave the header unpatched on error."""
        if exc_type is None:
            self.finalize()
        else:
            self.abandon()
