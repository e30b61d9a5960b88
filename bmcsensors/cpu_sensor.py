"""A CPU temperature or power sensor read from a PECI hwmon file."""

from __future__ import annotations

import logging
import math
import re
from pathlib import Path

log = logging.getLogger(__name__)

SENSOR_SCALE_FACTOR = 1000
SENSOR_POLL_MS = 1000
SENSOR_FAILED_POLL_TIME_MS = 5000
WARN_AFTER_ERROR_COUNT = 10
READ_BUFFER_SIZE = 128

_FILE_PARTS = re.compile(r"([A-Za-z]+)(\d+)_(.*)")
_LEADING_FLOAT = re.compile(r"\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")

# File item -> (attribute file suffix, sensor attribute it updates)
_MIN_MAX_ATTRS: dict[str, tuple[tuple[str, str], ...]] = {
    "cap": (("cap_max", "max_value"), ("cap_min", "min_value")),
}


def split_file_name(path: str | Path) -> tuple[str, str, str] | None:
    """Split a hwmon file name like 'temp1_input' into ('temp', '1', 'input')."""
    match = _FILE_PARTS.fullmatch(Path(path).name)
    if match is None:
        return None
    return match.group(1), match.group(2), match.group(3)


def _parse_float(text: str) -> float:
    match = _LEADING_FLOAT.match(text)
    if match is None:
        raise ValueError(f"no number at start of {text!r}")
    return float(match.group())


def read_scaled(path: str | Path, scale: float) -> float | None:
    """Read a number from a file and divide it by ``scale``; None if unreadable."""
    try:
        text = Path(path).read_text()
        return _parse_float(text) / scale
    except (OSError, ValueError, UnicodeDecodeError):
        return None


class CpuSensor:
    """Reads one PECI hwmon file and keeps its scaled value and limits."""

    def __init__(
        self, path: str, name: str, cpu_id: int, show: bool, dts_offset: float
    ) -> None:
        self.path = path
        self.name = name.replace(" ", "_")
        self.cpu_id = cpu_id
        self.show = show
        self.dts_offset = dts_offset
        self.name_tcontrol = f"Tcontrol CPU{cpu_id}"
        self.value = math.nan
        self.raw_value = math.nan
        self.min_value = 0.0
        self.max_value = 0.0
        self.units: str | None = None
        self.interface_path: str | None = None
        self.error_count = 0
        self.poll_time = SENSOR_POLL_MS
        self.power_on = True
        self._min_max_read_counter = 0

        if show:
            parts = split_file_name(path)
            if parts is not None:
                file_type = parts[0]
                if file_type == "power":
                    self.interface_path = f"/xyz/openbmc_project/sensors/power/{self.name}"
                    self.units = "Watts"
                    self.min_value = 0.0
                    self.max_value = 511.0
                else:
                    self.interface_path = (
                        f"/xyz/openbmc_project/sensors/temperature/{self.name}"
                    )
                    self.units = "DegreesC"
                    self.min_value = -128.0
                    self.max_value = 127.0

    def __repr__(self) -> str:
        return f"CpuSensor(name={self.name!r}, path={self.path!r})"

    def _fail(self) -> None:
        self.poll_time = SENSOR_FAILED_POLL_TIME_MS
        self.error_count += 1
        if self.error_count == WARN_AFTER_ERROR_COUNT:
            log.warning("Failure to read sensor %s at %s", self.name, self.path)

    def read(self) -> float | None:
        """Read the file once; return the new value, or None if nothing was stored."""
        try:
            with open(self.path, "rb") as handle:
                data = handle.read(READ_BUFFER_SIZE)
        except FileNotFoundError:
            log.error("%s unable to open fd!", self.name)
            return None
        except OSError:
            self._fail()
            return None
        if not data:
            self._fail()
            return None
        try:
            raw = _parse_float(data.decode("ascii", errors="replace"))
        except ValueError:
            self.error_count += 1
            return None

        self.raw_value = raw
        self.value = raw / SENSOR_SCALE_FACTOR
        self.poll_time = SENSOR_POLL_MS
        if self._min_max_read_counter % 8 == 0:
            self.update_min_max()
        self._min_max_read_counter = (self._min_max_read_counter + 1) % 256
        return self.value

    def update_min_max(self) -> None:
        """Refresh limits from sibling attribute files such as power1_cap_max."""
        parts = split_file_name(self.path)
        if parts is None:
            return
        item = parts[2]
        for suffix, attr in _MIN_MAX_ATTRS.get(item, ()):
            attr_path = self.path.replace(item, suffix)
            new_value = read_scaled(attr_path, SENSOR_SCALE_FACTOR)
            if new_value is None:
                new_value = 0.0 if self.power_on else math.nan
            setattr(self, attr, new_value)