"""Request commands for each kind of IPMB-bridged sensor."""

from __future__ import annotations

from dataclasses import dataclass, field

from .ipmb_reading import (
    GET_SENSOR_READING,
    ME_BRIDGE_NETFN,
    NETFN_SENSOR,
    SEND_RAW_PMBUS,
    IpmbSubType,
    IpmbType,
    ReadingFormat,
)

ME_ADDRESS = 1


@dataclass
class IpmbCommand:
    """How to read a sensor: target, command, payload and reply decoding."""

    command_address: int
    netfn: int
    command: int
    command_data: list[int]
    reading_format: ReadingFormat
    init_command: int | None = None
    init_data: list[int] = field(default_factory=list)
    min_value: float | None = None
    max_value: float | None = None


def _pmbus_read_temp(host_smbus_index: int, device_address: int) -> list[int]:
    return [0x57, 0x01, 0x00, 0x16, host_smbus_index, device_address,
            0x00, 0x00, 0x00, 0x00, 0x01, 0x02, 0x8D]


def _pmbus_page0(host_smbus_index: int, device_address: int) -> list[int]:
    return [0x57, 0x01, 0x00, 0x14, host_smbus_index, device_address,
            0x00, 0x00, 0x00, 0x00, 0x02, 0x00, 0x00, 0x00]


def _sensor_reading(device_address: int) -> IpmbCommand:
    return IpmbCommand(
        ME_ADDRESS, NETFN_SENSOR, GET_SENSOR_READING, [device_address],
        ReadingFormat.BYTE0,
    )


def load_defaults(
    ipmb_type: IpmbType,
    sub_type: IpmbSubType,
    device_address: int,
    host_smbus_index: int,
) -> IpmbCommand:
    """Build the read command for a sensor type; ValueError if unsupported."""
    if ipmb_type is IpmbType.ME_SENSOR:
        cmd = _sensor_reading(device_address)
    elif ipmb_type in (IpmbType.PXE1410CVR, IpmbType.MPS_VR):
        cmd = IpmbCommand(
            ME_ADDRESS,
            ME_BRIDGE_NETFN,
            SEND_RAW_PMBUS,
            _pmbus_read_temp(host_smbus_index, device_address),
            ReadingFormat.LINEAR_ELEVEN_BIT
            if ipmb_type is IpmbType.PXE1410CVR
            else ReadingFormat.BYTE3,
            init_command=SEND_RAW_PMBUS,
            init_data=_pmbus_page0(host_smbus_index, device_address),
        )
    elif ipmb_type is IpmbType.IR38363VR:
        cmd = IpmbCommand(
            ME_ADDRESS, ME_BRIDGE_NETFN, SEND_RAW_PMBUS,
            _pmbus_read_temp(host_smbus_index, device_address),
            ReadingFormat.ELEVEN_BIT_SHIFT,
        )
    elif ipmb_type is IpmbType.ADM1278HSC:
        if sub_type in (IpmbSubType.TEMP, IpmbSubType.CURR):
            sensor_number = 0x8D if sub_type is IpmbSubType.TEMP else 0x8C
            cmd = IpmbCommand(
                ME_ADDRESS, ME_BRIDGE_NETFN, SEND_RAW_PMBUS,
                [0x57, 0x01, 0x00, 0x86, device_address,
                 0x00, 0x00, 0x01, 0x02, sensor_number],
                ReadingFormat.ELEVEN_BIT,
            )
        elif sub_type in (IpmbSubType.POWER, IpmbSubType.VOLT):
            cmd = _sensor_reading(device_address)
        else:
            raise ValueError("Invalid sensor type")
    else:
        raise ValueError("Invalid sensor type")

    if sub_type is IpmbSubType.UTIL:
        # Utilisation is reported in percent.
        cmd.max_value = 100.0
        cmd.min_value = 0.0
    return cmd