"""Record system and microphone audio to 16 kHz WAV and seal it with OpenSSL-compatible encryption."""

__version__ = "0.1.0"
