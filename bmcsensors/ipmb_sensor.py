"""Sensors read over IPMB through the management engine bridge."""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Mapping, MutableMapping

from .cpu_naming import CONFIG_INTERFACE_PREFIX
from .ipmb_commands import load_defaults
from .ipmb_reading import (
    IpmbSubType,
    process_reading,
    sensor_class_type,
    sensor_sub_type,
    sub_type_units,
)

log = logging.getLogger(__name__)

SENSOR_TYPE = "IpmbSensor"
SDR_INTERFACE = "IpmbDevice"
SENSOR_PATH_PREFIX = "/xyz/openbmc_project/sensors/"

IPMB_MAX_READING = 255.0
IPMB_MIN_READING = 0.0
HOST_SMBUS_INDEX_DEFAULT = 0x03
IPMB_BUS_INDEX_DEFAULT = 0
POLL_RATE_DEFAULT = 1.0  # seconds

_POWER_STATES = {
    "On": "on",
    "BiosPost": "biosPost",
    "Always": "always",
    "ChassisOn": "chassisOn",
}


class IpmbSensor:
    """One IPMB sensor: its request command, limits and latest reading."""

    def __init__(
        self,
        name: str,
        device_address: int,
        host_smbus_index: int = HOST_SMBUS_INDEX_DEFAULT,
        poll_rate: float = POLL_RATE_DEFAULT,
        sensor_type_name: str = "temperature",
        sensor_class: str = "METemp",
        scale: float = 1.0,
        offset: float = 0.0,
    ) -> None:
        self.name = name.replace(" ", "_")
        self.device_address = device_address
        self.host_smbus_index = host_smbus_index
        self.poll_ms = int(poll_rate * 1000)
        self.sensor_type_name = sensor_type_name
        self.object_path = f"{SENSOR_PATH_PREFIX}{sensor_type_name}/{self.name}"
        self.scale = scale
        self.offset = offset
        self.type = sensor_class_type(sensor_class)
        self.sub_type = sensor_sub_type(sensor_type_name)
        self.command = load_defaults(
            self.type, self.sub_type, device_address, host_smbus_index
        )
        self.max_value = (
            self.command.max_value
            if self.command.max_value is not None
            else IPMB_MAX_READING
        )
        self.min_value = (
            self.command.min_value
            if self.command.min_value is not None
            else IPMB_MIN_READING
        )
        self.configuration_path = ""
        self.read_state = "on"
        self.bus_index = IPMB_BUS_INDEX_DEFAULT
        self.value = math.nan
        self.raw_value = math.nan
        self.error_count = 0

    def __repr__(self) -> str:
        return f"IpmbSensor(name={self.name!r}, type={self.type.value!r})"

    def units(self) -> str:
        """Units the sensor reports in."""
        return sub_type_units(self.sub_type)

    def handle_response(self, status: int, data: list[int] | bytes) -> float | None:
        """Absorb one IPMB response; return the new value, or None on error."""
        if status != 0 or not data:
            self.error_count += 1
            return None
        try:
            reading = process_reading(
                self.command.reading_format, self.command.command, data
            )
        except ValueError as exc:
            if self.error_count == 0:
                log.error("%s for %s", exc, self.name)
            self.error_count += 1
            return None

        self.raw_value = float(int.from_bytes(bytes(data[:8]), "little"))
        self.value = reading * self.scale + self.offset
        return self.value


def _as_byte(value: Any, key: str) -> int:
    if isinstance(value, (str, bytes)) or isinstance(value, bool):
        raise TypeError(f"{key} must be a number, not {value!r}")
    return int(value) & 0xFF


def _as_float(value: Any, key: str) -> float:
    if isinstance(value, (str, bytes)):
        raise TypeError(f"{key} must be a number, not {value!r}")
    return float(value)


def _poll_rate(cfg: Mapping[str, Any]) -> float:
    value = cfg.get("PollRate")
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
        return float(value)
    return POLL_RATE_DEFAULT


def sensor_from_config(name: str, cfg: Mapping[str, Any]) -> IpmbSensor:
    """Build a sensor from an IpmbSensor configuration interface.

    Raises KeyError if 'Address' or 'Class' is missing and ValueError for an
    unknown class.
    """
    device_address = _as_byte(cfg["Address"], "Address")
    sensor_class = str(cfg["Class"])
    host_smbus_index = HOST_SMBUS_INDEX_DEFAULT
    if "HostSMbusIndex" in cfg:
        host_smbus_index = _as_byte(cfg["HostSMbusIndex"], "HostSMbusIndex")
    bus_index = IPMB_BUS_INDEX_DEFAULT
    if "Bus" in cfg:
        bus_index = _as_byte(cfg["Bus"], "Bus")
        log.info("Ipmb Bus Index for %s is %d", name, bus_index)
    sensor_type_name = str(cfg.get("SensorType", "temperature"))
    scale = _as_float(cfg["ScaleValue"], "ScaleValue") if "ScaleValue" in cfg else 1.0
    offset = (
        _as_float(cfg["OffsetValue"], "OffsetValue") if "OffsetValue" in cfg else 0.0
    )

    sensor = IpmbSensor(
        name,
        device_address,
        host_smbus_index,
        _poll_rate(cfg),
        sensor_type_name,
        sensor_class,
        scale,
        offset,
    )
    sensor.bus_index = bus_index
    sensor.read_state = _POWER_STATES.get(str(cfg.get("PowerState", "Always")), "always")
    return sensor


def interface_removed(
    sensors: MutableMapping[str, IpmbSensor], path: str, interfaces: Iterable[str]
) -> list[str]:
    """Drop sensors configured at ``path`` when the IPMB device interface goes away.

    Returns the names of the sensors that were removed.
    """
    if CONFIG_INTERFACE_PREFIX + SDR_INTERFACE not in set(interfaces):
        return []
    removed = [
        name for name, sensor in sensors.items() if sensor.configuration_path == path
    ]
    for name in removed:
        del sensors[name]
    return removed