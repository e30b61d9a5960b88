"""Discovery of hwmon and IIO sensor files and matching them with configuration."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Iterable, Mapping

from .hwmon_config import (
    POLL_RATE_DEFAULT,
    SensorConfig,
    build_sensor_config_map,
    sensor_parameters,
    sensor_type_from_interface,
)
from .hwmon_sensor import HwmonTempSensor

log = logging.getLogger(__name__)

IIO_ROOT = "/sys/bus/iio/devices"
HWMON_ROOT = "/sys/class/hwmon"

_IIO_PATTERNS = (
    r"in_temp\d*_(input|raw)",
    r"in_pressure\d*_(input|raw)",
    r"in_humidityrelative\d*_(input|raw)",
)
_HWMON_PATTERN = r"temp\d+_input"
_DEVICE_NAME = re.compile(r"(\d+)-([0-9a-fA-F]+)")

_POWER_STATES = {
    "On": "on",
    "BiosPost": "biosPost",
    "Always": "always",
    "ChassisOn": "chassisOn",
}

ConfigTree = Mapping[str, Mapping[str, Mapping[str, Any]]]


def _find_files(root: Path, pattern: str, max_depth: int = 1) -> list[Path]:
    regex = re.compile(pattern)
    found: list[Path] = []
    pending = [(Path(root), 0)]
    while pending:
        directory, depth = pending.pop()
        try:
            entries = sorted(os.scandir(directory), key=lambda e: e.name)
        except OSError:
            continue
        for entry in entries:
            try:
                if entry.is_dir():
                    if depth < max_depth:
                        pending.append((Path(entry.path), depth + 1))
                elif entry.is_file() and regex.fullmatch(entry.name):
                    found.append(Path(entry.path))
            except OSError:
                continue
    return sorted(found)


def find_sensor_files(iio_root: str | Path, hwmon_root: str | Path) -> list[Path]:
    """List IIO temperature, pressure and humidity files, then hwmon temperature files."""
    paths: list[Path] = []
    for pattern in _IIO_PATTERNS:
        paths.extend(_find_files(Path(iio_root), pattern))
    paths.extend(_find_files(Path(hwmon_root), _HWMON_PATTERN))
    return paths


def device_bus_addr(device_name: str) -> tuple[int, int] | None:
    """Split an I2C device name such as '1-004c' into (bus, address)."""
    match = _DEVICE_NAME.fullmatch(device_name)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2), 16)


def _poll_rate(cfg: Mapping[str, Any]) -> float:
    value = cfg.get("PollRate")
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
        return float(value)
    return POLL_RATE_DEFAULT


def _power_state(cfg: Mapping[str, Any]) -> str:
    return _POWER_STATES.get(str(cfg.get("PowerState", "Always")), "always")


def _hwmon_file(directory: Path, item: str) -> str | None:
    candidate = directory / f"{item}_input"
    return str(candidate) if candidate.is_file() else None


class HwmonManager:
    """Keeps the set of hwmon/IIO sensors in step with configuration and sysfs."""

    def __init__(
        self, iio_root: str | Path = IIO_ROOT, hwmon_root: str | Path = HWMON_ROOT
    ) -> None:
        self.iio_root = Path(iio_root)
        self.hwmon_root = Path(hwmon_root)
        self.sensors: dict[str, HwmonTempSensor] = {}

    def _is_iio(self, path: Path) -> bool:
        return str(path).startswith(str(self.iio_root))

    def _device_name(self, path: Path) -> str | None:
        directory = path.parent
        try:
            if self._is_iio(path):
                return directory.resolve(strict=True).parent.stem
            return (directory / "device").resolve(strict=True).stem
        except OSError:
            return None

    def _place_sensor(
        self,
        sensor_name: str,
        hwmon_file: str,
        entry: SensorConfig,
        params: Any,
        poll_rate: float,
        read_state: str,
        activate_only: bool,
    ) -> None:
        sensor = self.sensors.get(sensor_name)
        if not activate_only and sensor is not None:
            sensor.deactivate()
            del self.sensors[sensor_name]
            sensor = None
        try:
            if sensor is not None:
                sensor.activate(hwmon_file)
            else:
                sensor = HwmonTempSensor(
                    hwmon_file,
                    sensor_name,
                    params,
                    poll_rate,
                    entry.sensor_path,
                    entry.interface,
                )
                sensor.read_state = read_state
                self.sensors[sensor_name] = sensor
        except OSError as exc:
            log.error("unable to open %s for %s: %s", hwmon_file, sensor_name, exc)
            return
        sensor.read()

    def _drop_unless_kept(self, sensor_name: str, activate_only: bool) -> None:
        if not activate_only:
            old = self.sensors.pop(sensor_name, None)
            if old is not None:
                old.deactivate()

    def create_sensors(
        self,
        sensor_configs: ConfigTree,
        changed: set[str] | None = None,
        activate_only: bool = False,
    ) -> None:
        """Match sysfs files with configuration and create or reactivate sensors.

        ``changed`` is None on the first scan; on rescans it holds the object
        paths that were signalled and only those sensors are rebuilt.
        """
        first_scan = changed is None
        config_map = build_sensor_config_map(sensor_configs)

        for path in find_sensor_files(self.iio_root, self.hwmon_root):
            is_iio = self._is_iio(path)
            directory = path.parent
            device_name = self._device_name(path)
            if device_name is None:
                continue
            bus_addr = device_bus_addr(device_name)
            if bus_addr is None:
                continue

            params = sensor_parameters(path)
            entry = config_map.get(bus_addr)
            if entry is None:
                continue

            sensor_type_from_interface(entry.interface)
            base = entry.config
            names = entry.names

            # Temperature uses "Name", pressure and humidity use "Name1".
            name_key = "Name"
            if params.type_name in ("pressure", "humidity"):
                name_key = "Name1"
            if name_key not in base:
                log.error("could not determine configuration name for %s", device_name)
                continue
            sensor_name = str(base[name_key])

            existing = self.sensors.get(sensor_name)
            if not first_scan and existing is not None:
                match = next(
                    (c for c in sorted(changed) if c.endswith(existing.name)), None
                )
                if match is None:
                    continue
                changed.discard(match)
                existing.deactivate()
                del self.sensors[sensor_name]

            poll_rate = _poll_rate(base)
            read_state = _power_state(base)

            hwmon_file = str(path) if is_iio else _hwmon_file(directory, "temp1")
            if hwmon_file is not None:
                self._place_sensor(
                    sensor_name, hwmon_file, entry, params, poll_rate,
                    read_state, activate_only,
                )
            else:
                self._drop_unless_kept(sensor_name, activate_only)
            names[:] = [n for n in names if n != sensor_name]

            # "Name1" belongs to temp2_input, "Name2" to temp3_input, and so on.
            index = 1
            while f"Name{index}" in base:
                extra_name = str(base[f"Name{index}"])
                extra_file = _hwmon_file(directory, f"temp{index + 1}")
                index += 1
                if is_iio:
                    continue
                if extra_file is not None:
                    self._place_sensor(
                        extra_name, extra_file, entry, params, poll_rate,
                        read_state, activate_only,
                    )
                names[:] = [n for n in names if n != extra_name]

            if not names:
                del config_map[bus_addr]

    def interface_removed(self, path: str, interfaces: Iterable[str]) -> None:
        """Drop sensors whose configuration interface was removed from ``path``."""
        removed = set(interfaces)
        for name, sensor in list(self.sensors.items()):
            if sensor.configuration_path == path and sensor.config_interface in removed:
                sensor.deactivate()
                del self.sensors[name]

    def power_state_changed(
        self, state_type: str, new_state: bool, sensor_configs: ConfigTree
    ) -> None:
        """Reactivate sensors on power-up; deactivate those tied to ``state_type`` otherwise."""
        if new_state:
            self.create_sensors(sensor_configs, None, True)
            return
        for sensor in self.sensors.values():
            if sensor.read_state == state_type:
                sensor.deactivate()