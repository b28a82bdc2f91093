"""Command-line interface for the secure recorder.

This module provides the main entry point and argument parsing
for the secure-recorder CLI tool.
"""

import argparse
import getpass
import logging
import sys
from pathlib import Path

from secure_recorder import __version__
from secure_recorder.config import (
    PASSWORD_ENV,
    AudioConfig,
    EncryptionConfig,
    RecordingConfig,
    SourceConfig,
)
from secure_recorder.core.recorder import Recorder
from secure_recorder.crypto.envelope import decrypt_file, encrypt_file
from secure_recorder.exceptions import DecryptError, RecorderError
from secure_recorder.export import DirectoryUploader
from secure_recorder.writers.wav_header import read_header

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity setting."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def list_devices() -> None:
    """List all available capture devices."""
    from secure_recorder.sources.enumerator import DeviceEnumerator

    print("Available Capture Devices")
    print("=" * 50)

    with DeviceEnumerator() as enumerator:
        print("\nMonitor Sources (System Audio, primary):")
        print("-" * 30)
        try:
            for monitor in enumerator.list_monitors():
                print(f"  {monitor}")
                print(f"    Index: {monitor.index}, Name: {monitor.name}")
        except RecorderError as e:
            print(f"  Error: {e}")

        print("\nMicrophones (secondary):")
        print("-" * 30)
        try:
            for mic in enumerator.list_microphones():
                print(f"  {mic}")
                print(f"    Index: {mic.index}, Name: {mic.name}")
        except RecorderError as e:
            print(f"  Error: {e}")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="secure-recorder",
        description="Record system and microphone audio to 16 kHz WAV and encrypt it.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Record system audio plus the default microphone
  secure-recorder record -o call.wav

  # Record for 60 seconds without the microphone
  secure-recorder record -o call.wav --duration 60 --no-mic

  # Record and store an encrypted copy (password from $SECURE_RECORDER_PASSWORD)
  secure-recorder record -o call.wav --seal --export-dir exports/

  # Encrypt or decrypt an existing file
  secure-recorder encrypt call.wav call.wav.enc
  secure-recorder decrypt call.wav.enc call.wav

  # Same as: openssl enc -d -aes-256-cbc -pbkdf2 -iter 10000 -md sha256 -in call.wav.enc
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list-devices", help="List available capture devices and exit")

    record = commands.add_parser("record", help="Record to a 16 kHz mono WAV file")
    record.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("recording.wav"),
        help="Output WAV file path (default: recording.wav)",
    )

    # Device selection
    device_group = record.add_argument_group("Device Selection")
    device_group.add_argument(
        "--monitor",
        type=str,
        default=None,
        metavar="DEVICE",
        help="Monitor source name or description (default: system default)",
    )
    device_group.add_argument(
        "--mic",
        type=str,
        default=None,
        metavar="DEVICE",
        help="Microphone device name or description (default: system default)",
    )
    device_group.add_argument(
        "--no-monitor",
        action="store_true",
        help="Disable system audio recording",
    )
    device_group.add_argument(
        "--no-mic",
        action="store_true",
        help="Disable microphone recording",
    )

    # Recording options
    recording_group = record.add_argument_group("Recording Options")
    recording_group.add_argument(
        "--duration",
        type=float,
        default=None,
        metavar="SECS",
        help="Recording duration in seconds (default: until Ctrl+C)",
    )
    recording_group.add_argument(
        "--sample-rate",
        type=int,
        default=48000,
        metavar="HZ",
        help="Native capture rate in Hz (default: 48000)",
    )
    recording_group.add_argument(
        "--queue-depth",
        type=int,
        default=64,
        metavar="N",
        help="Encoded chunks allowed to wait for the disk before aborting (default: 64)",
    )

    # Sealing options
    seal_group = record.add_argument_group("Encryption Options")
    seal_group.add_argument(
        "--seal",
        action="store_true",
        help="Encrypt the finished recording",
    )
    seal_group.add_argument(
        "--export-dir",
        type=Path,
        default=Path("exports"),
        metavar="DIR",
        help="Directory that receives sealed recordings (default: exports)",
    )
    seal_group.add_argument(
        "--owner-id",
        type=str,
        default=None,
        metavar="ID",
        help="Identifier used in the sealed file name",
    )
    seal_group.add_argument("-k", "--password", default=None, help=f"Password (default: ${PASSWORD_ENV})")

    for name, help_text in (
        ("encrypt", "Encrypt a file into an OpenSSL-compatible envelope"),
        ("decrypt", "Decrypt an OpenSSL-compatible envelope"),
    ):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("input", type=Path, help="Input file")
        sub.add_argument("output", type=Path, help="Output file")
        sub.add_argument("-k", "--password", default=None, help=f"Password (default: ${PASSWORD_ENV})")

    inspect = commands.add_parser("inspect", help="Show and validate a WAV header")
    inspect.add_argument("input", type=Path, help="WAV file")

    return parser


def validate_args(args: argparse.Namespace) -> None:
    """Validate command-line arguments.

    Raises:
        ValueError: If arguments are invalid.
    """
    if args.command != "record":
        return

    if args.no_mic and args.no_monitor:
        raise ValueError("Cannot disable both monitor and microphone")

    if args.duration is not None and args.duration <= 0:
        raise ValueError(f"Duration must be positive, got {args.duration}")

    if args.sample_rate <= 0:
        raise ValueError(f"Sample rate must be positive, got {args.sample_rate}")

    if args.queue_depth <= 0:
        raise ValueError(f"Queue depth must be positive, got {args.queue_depth}")


def build_config(args: argparse.Namespace) -> RecordingConfig:
    """Build recording configuration from arguments."""
    audio_config = AudioConfig(
        sample_rate=args.sample_rate,
        channels=2,
        block_size=1024,
        dtype="float32",
    )

    return RecordingConfig(
        output_path=args.output,
        audio=audio_config,
        primary=SourceConfig(device_name=args.monitor, enabled=not args.no_monitor),
        secondary=SourceConfig(device_name=args.mic, enabled=not args.no_mic),
        duration=args.duration,
        queue_depth=args.queue_depth,
        verbose=args.verbose,
    )


def resolve_encryption(args: argparse.Namespace, prompt: bool = False) -> EncryptionConfig:
    """Get the password from the command line, the environment or a prompt.

    Raises:
        ValueError: If no password is available.
    """
    owner_id = getattr(args, "owner_id", None)
    if args.password:
        return EncryptionConfig(password=args.password, owner_id=owner_id or "recorder")

    try:
        config = EncryptionConfig.from_env()
    except ValueError:
        if not prompt or not sys.stdin.isatty():
            raise
        return EncryptionConfig(password=getpass.getpass("Password: "), owner_id=owner_id or "recorder")

    if owner_id:
        return EncryptionConfig(password=config.password, owner_id=owner_id, key_prefix=config.key_prefix)
    return config


def run_record(args: argparse.Namespace) -> int:
    config = build_config(args)

    encryption = None
    uploader = None
    if args.seal:
        encryption = resolve_encryption(args)
        uploader = DirectoryUploader(args.export_dir)

    result = Recorder(config).run(encryption=encryption, uploader=uploader)
    print(f"Recorded {result.duration:.2f} seconds to {config.output_path}")
    if result.sealed is not None:
        print(f"Sealed copy: {result.sealed.location} ({result.sealed.size} bytes)")
    return 0


def run_encrypt(args: argparse.Namespace) -> int:
    encryption = resolve_encryption(args, prompt=True)
    size = encrypt_file(args.input, args.output, encryption.password)
    print(f"Wrote {size} bytes to {args.output}")
    return 0


def run_decrypt(args: argparse.Namespace) -> int:
    encryption = resolve_encryption(args, prompt=True)
    try:
        size = decrypt_file(args.input, args.output, encryption.password)
    except DecryptError as e:
        print(f"Could not decrypt {args.input}: {e}", file=sys.stderr)
        return 2
    print(f"Wrote {size} bytes to {args.output}")
    return 0


def run_inspect(args: argparse.Namespace) -> int:
    header = read_header(args.input)
    print(f"{args.input}:")
    print(f"  Sample rate: {header.sample_rate} Hz")
    print(f"  Channels: {header.channels}, bits: {header.bits_per_sample}")
    print(f"  Declared data: {header.data_length} bytes ({header.duration:.2f} seconds)")
    if not header.is_finalized:
        print("  Header was never finalized; the recording is incomplete")
        return 1
    return 0


_COMMANDS = {
    "record": run_record,
    "encrypt": run_encrypt,
    "decrypt": run_decrypt,
    "inspect": run_inspect,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # List devices and exit
    if args.command == "list-devices":
        try:
            list_devices()
            return 0
        except (RecorderError, OSError) as e:
            print(f"Error listing devices: {e}", file=sys.stderr)
            return 1

    setup_logging(args.verbose)

    try:
        validate_args(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        return _COMMANDS[args.command](args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        logger.error("File error: %s", e)
        return 1
    except RecorderError as e:
        logger.error("%s failed: %s", args.command.capitalize(), e)
        return 1
    except KeyboardInterrupt:
        # SIGINT is handled during recording, but just in case
        logger.info("Interrupted")
        return 0


if __name__ == "__main__":
    sys.exit(main())
