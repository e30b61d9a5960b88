"""Static configuration for hwmon and IIO temperature, pressure and humidity sensors."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

log = logging.getLogger(__name__)

UNIT_DEGREES_C = "DegreesC"
UNIT_PASCALS = "Pascals"
UNIT_PERCENT_RH = "PercentRH"

POLL_RATE_DEFAULT = 0.5

MAX_VALUE_PRESSURE = 120000.0  # Pascals
MIN_VALUE_PRESSURE = 30000.0  # Pascals
MAX_VALUE_RELATIVE_HUMIDITY = 100.0  # PercentRH
MIN_VALUE_RELATIVE_HUMIDITY = 0.0  # PercentRH
MAX_VALUE_TEMPERATURE = 127.0  # DegreesC
MIN_VALUE_TEMPERATURE = -128.0  # DegreesC


@dataclass(frozen=True)
class I2CDeviceType:
    """Kernel driver name of an I2C device and whether it exposes hwmon files."""

    name: str
    create_hwmon: bool


SENSOR_TYPES: dict[str, I2CDeviceType] = {
    "ADM1021": I2CDeviceType("adm1021", True),
    "DPS310": I2CDeviceType("dps310", False),
    "EMC1412": I2CDeviceType("emc1412", True),
    "EMC1413": I2CDeviceType("emc1413", True),
    "EMC1414": I2CDeviceType("emc1414", True),
    "HDC1080": I2CDeviceType("hdc1080", False),
    "JC42": I2CDeviceType("jc42", True),
    "LM75A": I2CDeviceType("lm75a", True),
    "LM95234": I2CDeviceType("lm95234", True),
    "MAX31725": I2CDeviceType("max31725", True),
    "MAX31730": I2CDeviceType("max31730", True),
    "MAX6581": I2CDeviceType("max6581", True),
    "MAX6654": I2CDeviceType("max6654", True),
    "MAX6639": I2CDeviceType("max6639", True),
    "NCT6779": I2CDeviceType("nct6779", True),
    "NCT7802": I2CDeviceType("nct7802", True),
    "SBTSI": I2CDeviceType("sbtsi", True),
    "SI7020": I2CDeviceType("si7020", False),
    "TMP100": I2CDeviceType("tmp100", True),
    "TMP112": I2CDeviceType("tmp112", True),
    "TMP175": I2CDeviceType("tmp175", True),
    "TMP421": I2CDeviceType("tmp421", True),
    "TMP441": I2CDeviceType("tmp441", True),
    "TMP464": I2CDeviceType("tmp464", True),
    "TMP75": I2CDeviceType("tmp75", True),
    "W83773G": I2CDeviceType("w83773g", True),
}


@dataclass
class SensorParams:
    """Range, conversion and naming of one sensor file's readings."""

    min_value: float = MIN_VALUE_TEMPERATURE
    max_value: float = MAX_VALUE_TEMPERATURE
    offset_value: float = 0.0
    scale_value: float = 1.0
    units: str = UNIT_DEGREES_C
    type_name: str = "temperature"


@dataclass
class SensorConfig:
    """One configuration interface that describes a device at a bus address."""

    sensor_path: str
    sensor_data: Mapping[str, Mapping[str, Any]]
    interface: str
    config: Mapping[str, Any]
    names: list[str] = field(default_factory=list)


def _read_number(path: str) -> float | None:
    try:
        return float(Path(path).read_text().strip())
    except (OSError, ValueError):
        return None


def sensor_parameters(path: str | Path) -> SensorParams:
    """Work out limits, units and scaling for a hwmon or IIO reading file."""
    path = Path(path)
    params = SensorParams()

    # IIO raw readings come with sibling offset and scale files:
    # value = (raw + offset) * scale. Missing files are not an error.
    path_str = str(path)
    if path_str.endswith("_raw"):
        base = path_str[: -len("_raw")]
        offset = _read_number(base + "_offset")
        if offset is not None:
            params.offset_value = offset
        scale = _read_number(base + "_scale")
        if scale is not None:
            params.scale_value = scale

    filename = path.name
    if filename in ("in_pressure_input", "in_pressure_raw"):
        params.min_value = MIN_VALUE_PRESSURE
        params.max_value = MAX_VALUE_PRESSURE
        # kilopascal to pascal
        params.scale_value *= 1000.0
        params.type_name = "pressure"
        params.units = UNIT_PASCALS
    elif filename in ("in_humidityrelative_input", "in_humidityrelative_raw"):
        params.min_value = MIN_VALUE_RELATIVE_HUMIDITY
        params.max_value = MAX_VALUE_RELATIVE_HUMIDITY
        # milli-percent to percent
        params.scale_value *= 0.001
        params.type_name = "humidity"
        params.units = UNIT_PERCENT_RH
    else:
        # milli degrees Celsius to degrees Celsius
        params.scale_value *= 0.001
    return params


def _is_unsigned(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _config_names(cfg: Mapping[str, Any]) -> list[str]:
    if "Name" not in cfg:
        return []
    names = []
    key = "Name"
    index = 0
    while key in cfg:
        value = cfg[key]
        if not isinstance(value, str):
            raise TypeError(f"{key} must be a string, not {type(value).__name__}")
        names.append(value)
        index += 1
        key = f"Name{index}"
    return names


def build_sensor_config_map(
    sensor_configs: Mapping[str, Mapping[str, Mapping[str, Any]]],
) -> dict[tuple[int, int], SensorConfig]:
    """Index configuration interfaces by (bus, address), keeping the first of duplicates."""
    config_map: dict[tuple[int, int], SensorConfig] = {}
    for path, cfg_data in sensor_configs.items():
        for interface, cfg in cfg_data.items():
            if "Bus" not in cfg or "Address" not in cfg:
                continue
            bus, addr = cfg["Bus"], cfg["Address"]
            if not (_is_unsigned(bus) and _is_unsigned(addr)):
                log.error("%s Bus or Address invalid", path)
                continue
            key = (bus, addr)
            if key in config_map:
                log.warning(
                    "%s: ignoring duplicate entry for {%d, 0x%x}", path, bus, addr
                )
                continue
            config_map[key] = SensorConfig(
                sensor_path=path,
                sensor_data=cfg_data,
                interface=interface,
                config=cfg,
                names=_config_names(cfg),
            )
    return dict(sorted(config_map.items()))


def sensor_type_from_interface(interface: str) -> str:
    """Return the last dot-separated component of a configuration interface name."""
    return interface.rpartition(".")[2]