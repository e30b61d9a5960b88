"""IPMB sensor kinds, units and decoding of raw reading responses."""

from __future__ import annotations

import enum
from typing import Sequence

NETFN_SENSOR = 0x04
GET_SENSOR_READING = 0x2D
ME_BRIDGE_NETFN = 0x2E
SEND_RAW_PMBUS = 0xD9

_READING_UNAVAILABLE_BIT = 5


class IpmbType(enum.Enum):
    NONE = "none"
    ME_SENSOR = "meSensor"
    PXE1410CVR = "PXE1410CVR"
    IR38363VR = "IR38363VR"
    ADM1278HSC = "ADM1278HSC"
    MPS_VR = "mpsVR"


class IpmbSubType(enum.Enum):
    NONE = "none"
    TEMP = "temp"
    CURR = "curr"
    POWER = "power"
    VOLT = "volt"
    UTIL = "util"


class ReadingFormat(enum.Enum):
    BYTE0 = "byte0"
    BYTE3 = "byte3"
    ELEVEN_BIT = "elevenBit"
    ELEVEN_BIT_SHIFT = "elevenBitShift"
    LINEAR_ELEVEN_BIT = "linearElevenBit"


_CLASS_TYPES = {
    "PxeBridgeTemp": IpmbType.PXE1410CVR,
    "IRBridgeTemp": IpmbType.IR38363VR,
    "HSCBridge": IpmbType.ADM1278HSC,
    "MpsBridgeTemp": IpmbType.MPS_VR,
    "METemp": IpmbType.ME_SENSOR,
    "MESensor": IpmbType.ME_SENSOR,
}

_SUB_TYPES = {
    "voltage": IpmbSubType.VOLT,
    "power": IpmbSubType.POWER,
    "current": IpmbSubType.CURR,
    "utilization": IpmbSubType.UTIL,
}

_UNITS = {
    IpmbSubType.TEMP: "DegreesC",
    IpmbSubType.CURR: "Amperes",
    IpmbSubType.POWER: "Watts",
    IpmbSubType.VOLT: "Volts",
    IpmbSubType.UTIL: "Percent",
}


def is_valid_reading(data: Sequence[int]) -> bool:
    """Check a 'Get Sensor Reading' payload (completion code already stripped)."""
    if len(data) < 3:
        return False
    return not data[1] & (1 << _READING_UNAVAILABLE_BIT)


def sensor_class_type(sensor_class: str) -> IpmbType:
    """Map a configuration 'Class' value to a device type; ValueError if unknown."""
    try:
        return _CLASS_TYPES[sensor_class]
    except KeyError:
        raise ValueError(f"Invalid class {sensor_class}") from None


def sensor_sub_type(sensor_type_name: str) -> IpmbSubType:
    """Map a configuration 'SensorType' to a sub type; anything unknown is temperature."""
    return _SUB_TYPES.get(sensor_type_name, IpmbSubType.TEMP)


def sub_type_units(sub_type: IpmbSubType) -> str:
    """Units a sensor of this sub type reports in."""
    try:
        return _UNITS[sub_type]
    except KeyError:
        raise ValueError("Invalid sensor type") from None


def _to_int16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


def _need(data: Sequence[int], length: int) -> None:
    if len(data) < length:
        raise ValueError("Invalid data length returned")


def process_reading(
    reading_format: ReadingFormat, command: int, data: Sequence[int]
) -> float:
    """Decode a response payload into a reading; ValueError if it is not usable."""
    if not data:
        raise ValueError("empty response")
    if reading_format is ReadingFormat.BYTE0:
        if command == GET_SENSOR_READING and not is_valid_reading(data):
            raise ValueError("sensor reading unavailable")
        return float(data[0])
    if reading_format is ReadingFormat.BYTE3:
        _need(data, 4)
        return float(data[3])
    _need(data, 5)
    word = (data[4] << 8) | data[3]
    if reading_format is ReadingFormat.ELEVEN_BIT:
        return float(_to_int16(word))
    if reading_format is ReadingFormat.ELEVEN_BIT_SHIFT:
        return float(word >> 3)
    if reading_format is ReadingFormat.LINEAR_ELEVEN_BIT:
        value = word & 0x7FF
        if value & 0x400:
            value -= 0x800
        return float(value)
    raise ValueError("Invalid reading type")