"""WAV container writing and PCM conversion."""

from secure_recorder.writers.pcm import decode_pcm16, encode_pcm16
from secure_recorder.writers.wav_header import ContainerHeader, read_header, require_finalized
from secure_recorder.writers.wav_writer import WavStreamWriter

__all__ = [
    "ContainerHeader",
    "WavStreamWriter",
    "decode_pcm16",
    "encode_pcm16",
    "read_header",
    "require_finalized",
]
