"""Device discovery using sounddevice and PulseAudio/PipeWire.

Capture devices are listed through sounddevice (PortAudio); pulsectl is
used to tell monitor sources (system audio, the primary source) apart
from microphones (the secondary source).
"""

import logging
from dataclasses import dataclass

import pulsectl
import sounddevice as sd

from secure_recorder.exceptions import DeviceNotFoundError, NoDevicesAvailableError

logger = logging.getLogger(__name__)

# PortAudio aliases that do not correspond to a physical device
_VIRTUAL_DEVICES = frozenset({"sysdefault", "pipewire", "default", "spdif"})


@dataclass(frozen=True)
class AudioDevice:
    """Represents a capture device.

    Attributes:
        index: Sounddevice device index.
        name: Device name as seen by sounddevice.
        description: Human-readable description.
        is_monitor: Whether this is a monitor source (system audio).
        is_default: Whether this is the default device of its kind.
        input_channels: Number of input channels.
    """

    index: int
    name: str
    description: str
    is_monitor: bool = False
    is_default: bool = False
    input_channels: int = 2

    def __str__(self) -> str:
        markers = []
        if self.is_default:
            markers.append("default")
        if self.is_monitor:
            markers.append("monitor")
        suffix = f" [{', '.join(markers)}]" if markers else ""
        return f"{self.description}{suffix}"

    def matches(self, search: str) -> bool:
        """Case-insensitive substring match on name or description."""
        search = search.lower()
        return search in self.name.lower() or search in self.description.lower()


class DeviceEnumerator:
    """Lists and selects capture devices.

    Example:
        with DeviceEnumerator() as enumerator:
            monitor = enumerator.resolve_monitor(None)
            mic = enumerator.resolve_microphone("USB")
    """

    def __init__(self) -> None:
        self._pulse: pulsectl.Pulse | None = None
        self._sink_descriptions: set[str] = set()
        self._default_sink_description: str | None = None

    def __enter__(self) -> "DeviceEnumerator":
        self._pulse = pulsectl.Pulse("secure-recorder-enumerator")
        self._load_sinks()
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        if self._pulse is not None:
            self._pulse.close()
            self._pulse = None

    def _load_sinks(self) -> None:
        """Remember sink descriptions; their monitors show up under the same name."""
        if self._pulse is None:
            return

        try:
            default_sink = self._pulse.server_info().default_sink_name
            for sink in self._pulse.sink_list():
                desc = sink.description or sink.name
                self._sink_descriptions.add(desc)
                if sink.name == default_sink:
                    self._default_sink_description = desc
        except pulsectl.PulseError as e:
            logger.warning("Could not query PulseAudio sinks: %s", e)

    def _is_monitor(self, device: dict) -> bool:
        # Monitors have output channels too and carry a sink's description
        if device.get("max_output_channels", 0) <= 0:
            return False
        return any(desc in device["name"] for desc in self._sink_descriptions)

    @staticmethod
    def _default_input_index() -> int | None:
        try:
            default = sd.query_devices(kind="input")
        except sd.PortAudioError:
            return None
        if isinstance(default, dict):
            return default.get("index")
        return None

    def _input_devices(self) -> list[AudioDevice]:
        devices = sd.query_devices()
        if isinstance(devices, dict):
            devices = [devices]

        default_idx = self._default_input_index()
        found = []
        for idx, d in enumerate(devices):
            name = d["name"]
            if d.get("max_input_channels", 0) <= 0 or name in _VIRTUAL_DEVICES:
                continue

            if self._is_monitor(d):
                is_default = (
                    self._default_sink_description is not None
                    and self._default_sink_description in name
                )
                found.append(
                    AudioDevice(
                        index=idx,
                        name=name,
                        description=f"{name} (Monitor)",
                        is_monitor=True,
                        is_default=is_default,
                        input_channels=d["max_input_channels"],
                    )
                )
            else:
                found.append(
                    AudioDevice(
                        index=idx,
                        name=name,
                        description=name,
                        is_default=(idx == default_idx),
                        input_channels=d["max_input_channels"],
                    )
                )
        return found

    def list_monitors(self) -> list[AudioDevice]:
        """List monitor sources (system audio).

        Raises:
            NoDevicesAvailableError: If no monitors are available.
        """
        monitors = [d for d in self._input_devices() if d.is_monitor]
        if not monitors:
            raise NoDevicesAvailableError("monitor")
        return monitors

    def list_microphones(self) -> list[AudioDevice]:
        """List microphone inputs (everything that is not a monitor).

        Raises:
            NoDevicesAvailableError: If no microphones are available.
        """
        mics = [d for d in self._input_devices() if not d.is_monitor]
        if not mics:
            raise NoDevicesAvailableError("microphone")
        return mics

    def resolve_monitor(self, name: str | None) -> AudioDevice:
        """Find a monitor by name, or the default one when ``name`` is None."""
        return self._select(self.list_monitors(), name, "monitor")

    def resolve_microphone(self, name: str | None) -> AudioDevice:
        """Find a microphone by name, or the default one when ``name`` is None."""
        return self._select(self.list_microphones(), name, "microphone")

    @staticmethod
    def _select(devices: list[AudioDevice], name: str | None, kind: str) -> AudioDevice:
        if name is None:
            return next((d for d in devices if d.is_default), devices[0])
        for device in devices:
            if device.matches(name):
                return device
        raise DeviceNotFoundError(name, kind)
