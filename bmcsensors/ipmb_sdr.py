"""Reading and decoding of Sensor Data Repository records over IPMB."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Sequence

log = logging.getLogger(__name__)

# IPMB storage commands
NETFN_STORAGE_REQ = 0x0A
CMD_STORAGE_GET_SDR_INFO = 0x20
CMD_STORAGE_RESERVE_SDR = 0x22
CMD_STORAGE_GET_SDR = 0x23

# Get SDR response layout
SDR_NEXT_RECORD_LSB = 0
SDR_NEXT_RECORD_MSB = 1
PER_COUNT_BYTE = 16

# Sensor record bytes
SDR_TYPE_BYTE = 5
DATA_LENGTH_BYTE = 6
SDR_SENSOR_NUM_BYTE = 9

# SDR type 01 record bytes
MAX_POS_READING_MARGIN = 127
TWOS_COMP_VAL = 128
THERMAL_CONST = 256.0
SDR_SENS_NO_THRES = 0
SENSOR_CAPABILITY_BYTE = 13
SDR_NEG_HANDLE_BYTE = 24
SDR_UNIT_TYPE_BYTE = 25
SDR_LINEAR_BYTE = 27
M_DATA_BYTE = 28
M_TOL_DATA_BYTE = 29
B_DATA_BYTE = 30
B_ACU_DATA_BYTE = 31
RB_EXP_DATA_BYTE = 33
UPPER_CRITICAL_THRESHOLD_BYTE = 43
LOWER_CRITICAL_THRESHOLD_BYTE = 46
NAME_LENGTH_BYTE = 53

SDR_INFO_DATA_SIZE = 14
SDR_RESERVE_DATA_SIZE = 2
SDR_SENSOR_DATA_SIZE = 18

# Payload of the repository info and reserve commands
SDR_COMMAND_DATA: tuple[int, ...] = ()

_THRESHOLD_ACCESS = 0x0C
_NAME_LENGTH_MASK = 0x1F


class SdrType(enum.IntEnum):
    TYPE01 = 1
    TYPE02 = 2
    TYPE03 = 3


@dataclass
class SensorInfo:
    """Name, unit and critical thresholds of one SDR sensor."""

    sensor_read_name: str = ""
    sensor_unit: int = 0
    thres_upper_cri: float = 0.0
    thres_lower_cri: float = 0.0
    sensor_number: int = 0
    sens_cap: int = 0


@dataclass
class SensorValConversion:
    """Factors that turn a raw reading into a value: ((M * x) + B) * 10^R."""

    m_value: int = 0
    b_value: float = 0.0
    expo_val: float = 0.0
    neg_read: int = 0


def validate_status(status: int, host_index: int) -> bool:
    """True if an IPMB response status reports success."""
    if status != 0:
        log.error("Error reading from IPMB SDR for host %d", host_index)
        return False
    return True


def parse_repository_info(data: Sequence[int]) -> int:
    """Return the record count from a 'Get SDR Repository Info' response."""
    if len(data) < SDR_INFO_DATA_SIZE:
        raise ValueError("IPMB Get SDR Repository Info data is empty")
    return (data[2] << 8) | data[1]


def parse_reservation(data: Sequence[int]) -> tuple[int, int]:
    """Return the (LSB, MSB) reservation ID from a 'Reserve SDR Repository' response."""
    if len(data) < SDR_RESERVE_DATA_SIZE:
        raise ValueError("IPMB SDR Reserve Repository data is empty")
    return data[0], data[1]


def sensor_val_calculation(
    m_value: int, b_value: float, exp_value: float, value: float
) -> float:
    """Convert a raw value: ((M * value) + B) * exponent."""
    return ((m_value * value) + b_value) * exp_value


def _b_exponent(nibble: int) -> int:
    # Values above 7 are folded to their two's complement magnitude.
    return (-nibble) & 0xF if nibble > 7 else nibble


def _r_exponent(nibble: int) -> int:
    return -((-nibble) & 0xF) if nibble > 7 else nibble


def decode_type01_threshold(
    sdr_bytes: Sequence[int], name: str
) -> tuple[SensorInfo, SensorValConversion] | None:
    """Decode thresholds and conversion factors of a linear type 01 record.

    Returns None for non-linear sensors.
    """
    if sdr_bytes[SDR_LINEAR_BYTE] != 0:
        return None

    threshold = sdr_bytes[SENSOR_CAPABILITY_BYTE] & _THRESHOLD_ACCESS
    m_data = ((sdr_bytes[M_TOL_DATA_BYTE] & 0xC0) << 2) | sdr_bytes[M_DATA_BYTE]
    b_data = ((sdr_bytes[B_ACU_DATA_BYTE] & 0xC0) << 2) | sdr_bytes[B_DATA_BYTE]

    rb_exp = sdr_bytes[RB_EXP_DATA_BYTE]
    b_exp = _b_exponent(rb_exp & 0xF)
    r_exp = _r_exponent((rb_exp >> 4) & 0xF)

    b_data_val = b_data * 10.0**b_exp
    exp_val = 10.0**r_exp

    info = SensorInfo(
        sensor_read_name=name,
        sensor_unit=sdr_bytes[SDR_UNIT_TYPE_BYTE],
        thres_upper_cri=sensor_val_calculation(
            m_data, b_data_val, exp_val, sdr_bytes[UPPER_CRITICAL_THRESHOLD_BYTE]
        ),
        thres_lower_cri=sensor_val_calculation(
            m_data, b_data_val, exp_val, sdr_bytes[LOWER_CRITICAL_THRESHOLD_BYTE]
        ),
        sensor_number=sdr_bytes[SDR_SENSOR_NUM_BYTE],
        sens_cap=threshold,
    )
    conversion = SensorValConversion(
        m_value=m_data,
        b_value=b_data_val,
        expo_val=exp_val,
        neg_read=sdr_bytes[SDR_NEG_HANDLE_BYTE],
    )
    return info, conversion


class IpmbSdrDevice:
    """Walks the SDR repository of one IPMB bus and collects its sensors."""

    def __init__(self, command_address: int) -> None:
        self.bus_index = command_address
        self.command_address = (command_address << 2) & 0xFF
        self.host_index = command_address + 1
        self.sdr_data: list[int] = []
        self.valid_record_count = 1
        self.i_cnt = 0
        self.next_record_id_lsb = 0
        self.next_record_id_msb = 0
        self.sensor_records: list[SensorInfo] = []
        self.conversions: dict[int, SensorValConversion] = {}

    def __repr__(self) -> str:
        return f"IpmbSdrDevice(bus_index={self.bus_index})"

    def sdr_command_data(self, reserve_lsb: int, reserve_msb: int) -> list[int]:
        """Payload of the next 'Get SDR' request."""
        loop_count = (PER_COUNT_BYTE * self.i_cnt) & 0xFF
        return [
            reserve_lsb,
            reserve_msb,
            self.next_record_id_lsb,
            self.next_record_id_msb,
            loop_count,
            PER_COUNT_BYTE,
        ]

    def handle_sdr_data(self, data: Sequence[int], record_count: int) -> bool:
        """Absorb one 'Get SDR' response; True if another request must follow."""
        if len(data) < SDR_SENSOR_DATA_SIZE:
            raise ValueError(
                f"IPMB SDR sensor data is empty for host {self.host_index}"
            )
        self.sdr_data.extend(data)

        data_length = (self.sdr_data[DATA_LENGTH_BYTE] + DATA_LENGTH_BYTE + 1) & 0xFF
        if len(self.sdr_data) < data_length:
            self.i_cnt += 1
            return True

        self.check_sdr_data(self.sdr_data, data_length)
        self.i_cnt = 0
        self.next_record_id_lsb = self.sdr_data[SDR_NEXT_RECORD_LSB]
        self.next_record_id_msb = self.sdr_data[SDR_NEXT_RECORD_MSB]
        self.sdr_data = []

        if self.valid_record_count == record_count:
            self.next_record_id_lsb = 0
            self.next_record_id_msb = 0
            return False
        self.valid_record_count += 1
        return True

    def check_sdr_data(
        self, sdr_bytes: Sequence[int], data_length: int
    ) -> SensorInfo | None:
        """Decode a complete type 01 record and store it; None if it is skipped."""
        if len(sdr_bytes) < data_length or len(sdr_bytes) <= NAME_LENGTH_BYTE:
            return None
        if sdr_bytes[SDR_TYPE_BYTE] != SdrType.TYPE01:
            return None

        data_len = sdr_bytes[DATA_LENGTH_BYTE]
        str_len = sdr_bytes[NAME_LENGTH_BYTE] & _NAME_LENGTH_MASK
        str_addr = data_len + (data_len // PER_COUNT_BYTE) * 4 - (str_len - 1)
        if str_addr < 0 or str_addr + str_len > len(sdr_bytes):
            return None
        name = bytes(sdr_bytes[str_addr : str_addr + str_len]).decode("latin-1")

        decoded = decode_type01_threshold(sdr_bytes, name)
        if decoded is None:
            return None
        info, conversion = decoded
        self.sensor_records.append(info)
        self.conversions[sdr_bytes[SDR_SENSOR_NUM_BYTE]] = conversion
        return info