"""A polled temperature, pressure or humidity sensor backed by a sysfs file."""

from __future__ import annotations

import errno
import logging
import math
import re
from typing import Any, BinaryIO

from .hwmon_config import SensorParams

log = logging.getLogger(__name__)

SENSOR_PATH_PREFIX = "/xyz/openbmc_project/sensors/"
READ_BUFFER_SIZE = 128

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1
_LEADING_INT = re.compile(r"-?\d+")


def parse_reading(text: str | bytes, params: SensorParams) -> float:
    """Convert the leading integer of a sysfs reading into a scaled value.

    Raises ValueError if the text does not start with an integer that fits
    in 32 bits.
    """
    if isinstance(text, bytes):
        text = text.decode("ascii", errors="replace")
    match = _LEADING_INT.match(text)
    if match is None:
        raise ValueError(f"no integer at start of {text!r}")
    raw = int(match.group())
    if not _INT32_MIN <= raw <= _INT32_MAX:
        raise ValueError(f"reading {raw} out of range")
    return (raw + params.offset_value) * params.scale_value


class HwmonTempSensor:
    """Sensor that reads one hwmon or IIO file and keeps the latest value."""

    def __init__(
        self,
        path: str,
        name: str,
        params: SensorParams,
        poll_rate: float,
        configuration_path: str,
        config_interface: str,
    ) -> None:
        self.name = name.replace(" ", "_")
        self.params = params
        self.poll_ms = int(poll_rate * 1000)
        self.configuration_path = configuration_path
        self.config_interface = config_interface
        self.min_value = params.min_value
        self.max_value = params.max_value
        self.units = params.units
        self.read_state = "on"
        self.thresholds: list[Any] = []
        self.i2c_device: Any = None
        self.value = math.nan
        self.error_count = 0
        self.available = True
        self.path = path
        self._file: BinaryIO | None = open(path, "rb", buffering=0)

    def __repr__(self) -> str:
        return f"HwmonTempSensor(name={self.name!r}, path={self.path!r})"

    def object_path(self) -> str:
        """Bus object path the sensor is published at."""
        return f"{SENSOR_PATH_PREFIX}{self.params.type_name}/{self.name}"

    def read(self) -> float | None:
        """Read the file once; return the new value, or None if nothing was stored."""
        if self._file is None:
            log.info("Hwmon temp sensor %s removed %s", self.name, self.path)
            return None
        try:
            self._file.seek(0)
            data = self._file.read(READ_BUFFER_SIZE)
        except OSError as exc:
            if exc.errno in (errno.EBADF, errno.ENOENT):
                log.info("Hwmon temp sensor %s removed %s", self.name, self.path)
                return None
            self.error_count += 1
            return None
        try:
            value = parse_reading(data or b"", self.params)
        except ValueError:
            self.error_count += 1
            return None
        self.value = value
        return value

    def activate(self, path: str) -> None:
        """Reopen the sensor on a (possibly new) file and mark it available."""
        if self._file is not None:
            self._file.close()
        self.path = path
        self._file = open(path, "rb", buffering=0)
        self.available = True

    def deactivate(self) -> None:
        """Close the input file and mark the sensor unavailable."""
        self.available = False
        if self._file is not None:
            self._file.close()
            self._file = None
        self.i2c_device = None
        self.path = ""

    def is_active(self) -> bool:
        return self._file is not None