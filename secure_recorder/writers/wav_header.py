"""RIFF/WAVE header layout for 16-bit mono PCM files."""

import struct
from dataclasses import dataclass
from pathlib import Path

from secure_recorder.exceptions import InvalidContainerError
from secure_recorder.writers.pcm import BYTES_PER_SAMPLE

HEADER_SIZE = 44
CHUNK_SIZE_OFFSET = 4
DATA_LENGTH_OFFSET = 40

# Bytes between the end of the chunk size field and the start of the PCM data
_RIFF_OVERHEAD = HEADER_SIZE - 8

_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")
_LENGTH = struct.Struct("<I")

_PCM_FORMAT = 1
_FMT_CHUNK_SIZE = 16
_CHANNELS = 1
_BITS_PER_SAMPLE = 16


@dataclass(frozen=True)
class ContainerHeader:
    """Parsed view of a 44-byte WAV header.

    Attributes:
        chunk_size: RIFF chunk size (offset 4).
        sample_rate: Samples per second.
        channels: Channel count.
        bits_per_sample: Sample width in bits.
        data_length: Declared PCM byte count (offset 40).
    """

    chunk_size: int
    sample_rate: int
    channels: int
    bits_per_sample: int
    data_length: int

    @property
    def is_finalized(self) -> bool:
        """Whether the length fields were patched after recording.

        A placeholder header has both length fields zero; a finalized empty
        recording still declares a chunk size of 36.
        """
        return self.chunk_size != 0 and self.chunk_size == _RIFF_OVERHEAD + self.data_length

    @property
    def sample_count(self) -> int:
        return self.data_length // BYTES_PER_SAMPLE

    @property
    def duration(self) -> float:
        return self.sample_count / self.sample_rate


def length_field(value: int) -> bytes:
    """Encode one header length field."""
    return _LENGTH.pack(value)


def build_header(data_length: int, sample_rate: int) -> bytes:
    """Build a mono 16-bit PCM header declaring ``data_length`` bytes.

    Passing ``data_length=0`` still yields a chunk size of 36; the writer
    zeroes both fields itself for its placeholder header.
    """
    block_align = _CHANNELS * BYTES_PER_SAMPLE
    return _HEADER.pack(
        b"RIFF",
        _RIFF_OVERHEAD + data_length,
        b"WAVE",
        b"fmt ",
        _FMT_CHUNK_SIZE,
        _PCM_FORMAT,
        _CHANNELS,
        sample_rate,
        sample_rate * block_align,
        block_align,
        _BITS_PER_SAMPLE,
        b"data",
        data_length,
    )


def placeholder_header(sample_rate: int) -> bytes:
    """Header written at open time, with both length fields zeroed."""
    header = bytearray(build_header(0, sample_rate))
    header[CHUNK_SIZE_OFFSET : CHUNK_SIZE_OFFSET + 4] = length_field(0)
    return bytes(header)


def parse_header(data: bytes) -> ContainerHeader:
    """Parse and validate the first 44 bytes of a WAV file.

    Raises:
        InvalidContainerError: If the bytes are not a mono 16-bit PCM header.
    """
    if len(data) < HEADER_SIZE:
        raise InvalidContainerError(f"Header too short: {len(data)} bytes")

    (
        riff,
        chunk_size,
        wave,
        fmt,
        fmt_size,
        audio_format,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits,
        data_tag,
        data_length,
    ) = _HEADER.unpack_from(data)

    if riff != b"RIFF" or wave != b"WAVE":
        raise InvalidContainerError("Not a RIFF/WAVE file")
    if fmt != b"fmt " or fmt_size != _FMT_CHUNK_SIZE or data_tag != b"data":
        raise InvalidContainerError("Unexpected chunk layout")
    if audio_format != _PCM_FORMAT or channels != _CHANNELS or bits != _BITS_PER_SAMPLE:
        raise InvalidContainerError(
            f"Unsupported format {audio_format} ({channels} ch, {bits} bit)"
        )
    if sample_rate <= 0 or byte_rate != sample_rate * block_align:
        raise InvalidContainerError(f"Inconsistent rate fields ({sample_rate}, {byte_rate})")

    return ContainerHeader(
        chunk_size=chunk_size,
        sample_rate=sample_rate,
        channels=channels,
        bits_per_sample=bits,
        data_length=data_length,
    )


def read_header(path: Path) -> ContainerHeader:
    """Read the header of a WAV file on disk.

    Raises:
        InvalidContainerError: If the file cannot be read or is malformed.
    """
    try:
        with open(path, "rb") as f:
            data = f.read(HEADER_SIZE)
    except OSError as e:
        raise InvalidContainerError(f"Cannot read {path}: {e}") from e
    return parse_header(data)


def require_finalized(path: Path) -> ContainerHeader:
    """Read a header and reject files that were never finalized.

    Raises:
        InvalidContainerError: If the header is malformed, still a
            placeholder, or declares more data than the file holds.
    """
    header = read_header(path)
    if not header.is_finalized:
        raise InvalidContainerError(f"{path} was not finalized (placeholder header)")
    actual = path.stat().st_size - HEADER_SIZE
    if actual < header.data_length:
        raise InvalidContainerError(
            f"{path} declares {header.data_length} data bytes but holds {actual}"
        )
    return header
