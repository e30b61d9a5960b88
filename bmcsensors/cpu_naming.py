"""CPU sensor naming and parsing of CPU configuration records."""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping

log = logging.getLogger(__name__)

CONFIG_INTERFACE_PREFIX = "xyz.openbmc_project.Configuration."
SENSOR_TYPES = ("XeonCPU",)
LABEL_TCONTROL = "Tcontrol"
HIDDEN_LABELS = (LABEL_TCONTROL, "Tthrottle", "Tjmax")

_ILLEGAL_DBUS = re.compile(r"[^A-Za-z0-9_]")


class CpuState(enum.IntEnum):
    """Power and readiness of a host CPU."""

    OFF = 0  # host powered down
    ON = 1  # host powered on
    READY = 2  # host powered on and memory test passed


@dataclass
class CpuConfig:
    """A CPU's PECI bus, client address, name and detected state; ordered by name."""

    bus: int
    addr: int
    name: str
    state: CpuState = CpuState.OFF

    def __lt__(self, other: CpuConfig) -> bool:
        return self.name < other.name


def create_sensor_name(label: str, item: str, cpu_id: int) -> str:
    """Build a sensor name from a hwmon label, file item and CPU index, capitalising each word."""
    name = label
    if item != "input":
        name += " " + item
    name += f" CPU{cpu_id}"
    chars = []
    word_end = True
    for ch in name:
        if ch.isspace():
            word_end = True
        elif word_end:
            word_end = False
            ch = ch.upper()
        chars.append(ch)
    return "".join(chars)


def is_hidden_label(label: str) -> bool:
    """True for labels whose sensors are read but not published."""
    return label in HIDDEN_LABELS


def escape_dbus_name(name: str) -> str:
    """Replace characters that are not allowed in bus object paths with '_'."""
    return _ILLEGAL_DBUS.sub("_", name)


def _as_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _as_unsigned(value: Any) -> int:
    if isinstance(value, str):
        raise TypeError(f"expected a number, not {value!r}")
    return int(value)


def parse_cpu_configs(
    sensor_configs: Mapping[str, Mapping[str, Mapping[str, Any]]],
) -> list[CpuConfig]:
    """Collect CPU configurations, one per name, sorted by name, all in state OFF."""
    configs: dict[str, CpuConfig] = {}
    for sensor_type in SENSOR_TYPES:
        wanted = CONFIG_INTERFACE_PREFIX + sensor_type
        for _path, cfg_data in sensor_configs.items():
            for interface, cfg in cfg_data.items():
                if interface != wanted or "Name" not in cfg:
                    continue
                name = escape_dbus_name(_as_string(cfg["Name"]))
                if "Bus" not in cfg:
                    log.error("Can't find 'Bus' setting in %s", name)
                    continue
                bus = _as_unsigned(cfg["Bus"])
                if "Address" not in cfg:
                    log.error("Can't find 'Address' setting in %s", name)
                    continue
                addr = _as_unsigned(cfg["Address"])
                configs.setdefault(name, CpuConfig(bus, addr, name, CpuState.OFF))
    result = sorted(configs.values())
    if result:
        log.info("CPU config%s parsed", " is" if len(result) == 1 else "s are")
    return result