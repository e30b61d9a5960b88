"""Creation of CPU sensors from PECI hwmon files matched against configuration."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Iterable, Mapping

from .cpu_detect import PECI_DEV_PATH
from .cpu_naming import (
    CONFIG_INTERFACE_PREFIX,
    SENSOR_TYPES,
    CpuConfig,
    CpuState,
    create_sensor_name,
    is_hidden_label,
)
from .cpu_sensor import CpuSensor, split_file_name
from .hwmon_scan import device_bus_addr

log = logging.getLogger(__name__)

CPU_INVENTORY_PATH = "/xyz/openbmc_project/inventory/system/chassis/motherboard"

_HWMON_NAME_PATTERN = r"peci-\d+/\d+-.+/peci[-_].+/hwmon/hwmon\d+/name$"
_INPUT_PATTERN = r"(temp|power)\d+_(input|average|cap)$"

ConfigTree = Mapping[str, Mapping[str, Mapping[str, Any]]]


def _find_files(root: Path, pattern: str, max_depth: int) -> list[Path]:
    regex = re.compile(pattern)
    found: list[Path] = []
    if not root.is_dir():
        return found
    for dirpath, dirnames, filenames in os.walk(root, followlinks=True):
        relative_dir = Path(dirpath).relative_to(root)
        if len(relative_dir.parts) >= max_depth:
            dirnames.clear()
        for filename in filenames:
            if regex.search((relative_dir / filename).as_posix()):
                found.append(Path(dirpath) / filename)
    return sorted(found)


def _first_line(path: Path) -> str | None:
    try:
        lines = path.read_text().splitlines()
    except (OSError, UnicodeDecodeError):
        return None
    return lines[0] if lines else ""


def find_cpu_config(
    sensor_configs: ConfigTree, bus: int, addr: int
) -> tuple[str, Mapping[str, Mapping[str, Any]], Mapping[str, Any]] | None:
    """Find the CPU configuration at ``bus``/``addr``.

    Returns (object path, all interfaces of the object, the CPU interface's
    properties), or None if no configuration matches.
    """
    wanted = [CONFIG_INTERFACE_PREFIX + t for t in SENSOR_TYPES]
    for path, cfg_data in sensor_configs.items():
        base = next((cfg_data[w] for w in wanted if w in cfg_data), None)
        if base is None:
            log.error("error finding base configuration for %s", path)
            continue
        if "Bus" not in base or "Address" not in base:
            log.error("error finding bus or address in configuration")
            continue
        if base["Bus"] != bus or base["Address"] != addr:
            continue
        return path, cfg_data, base
    return None


class CpuSensorRegistry:
    """Holds the CPU sensors and inventory items created so far."""

    def __init__(self, peci_dev_path: str | Path = PECI_DEV_PATH) -> None:
        self.peci_dev_path = Path(peci_dev_path)
        self.sensors: dict[str, CpuSensor] = {}
        self.inventory: dict[str, bool] = {}

    def _publish_inventory(self, cpu_configs: Iterable[CpuConfig]) -> bool:
        available = False
        for cpu in cpu_configs:
            if cpu.state == CpuState.OFF:
                continue
            available = True
            self.inventory.setdefault(cpu.name, True)
        return available

    def create_sensors(
        self, cpu_configs: Iterable[CpuConfig], sensor_configs: ConfigTree
    ) -> bool:
        """Create sensors for every powered CPU; False if nothing could be scanned."""
        if not self._publish_inventory(cpu_configs):
            return False
        if not sensor_configs:
            return False

        root = self.peci_dev_path
        name_paths = _find_files(root, _HWMON_NAME_PATTERN, 6)
        if not name_paths:
            log.error("No CPU sensors in system")
            return False

        scanned: set[Path] = set()
        created: set[str] = set()
        for name_path in name_paths:
            directory = name_path.parent
            if directory in scanned:
                continue
            scanned.add(directory)

            parts = name_path.relative_to(root).parts
            if len(parts) < 2:
                continue
            bus_addr = device_bus_addr(parts[1])
            if bus_addr is None:
                continue

            hwmon_name = _first_line(name_path)
            if hwmon_name is None:
                log.error("Failure reading %s", name_path)
                continue
            if not hwmon_name:
                continue

            found = find_cpu_config(sensor_configs, *bus_addr)
            if found is None:
                log.error("failed to find match for %s", hwmon_name)
                continue
            _path, _cfg_data, base = found

            if "CpuID" not in base:
                log.error("could not determine CPU ID for %s", hwmon_name)
                continue
            cpu_id = int(base["CpuID"])

            input_paths = _find_files(directory, _INPUT_PATTERN, 0)
            if not input_paths:
                log.error("No temperature sensors in system")
                continue

            for input_path in input_paths:
                file_parts = split_file_name(input_path)
                if file_parts is None:
                    continue
                item = file_parts[2]
                input_str = str(input_path)
                label_path = Path(input_str.replace(item, "label"))
                label = _first_line(label_path)
                if label is None:
                    log.error("Failure reading %s", label_path)
                    continue

                sensor_name = create_sensor_name(label, item, cpu_id)
                if sensor_name in self.sensors:
                    log.debug("Skipped: %s: %s is already created", input_path, sensor_name)
                    continue

                dts_offset = 0.0
                if label == "DTS" and "DtsCritOffset" in base:
                    dts_offset = float(base["DtsCritOffset"])

                sensor = CpuSensor(
                    input_str, sensor_name, cpu_id, not is_hidden_label(label), dts_offset
                )
                self.sensors[sensor_name] = sensor
                sensor.read()
                created.add(sensor_name)
                log.debug("Mapped: %s to %s", input_path, sensor_name)

        if created:
            log.info("Sensor%s created", " is" if len(created) == 1 else "s are")
        return True