import pytest

from bmcsensors.hwmon_config import (
    MAX_VALUE_PRESSURE,
    MAX_VALUE_TEMPERATURE,
    MIN_VALUE_PRESSURE,
    MIN_VALUE_TEMPERATURE,
    SENSOR_TYPES,
    UNIT_DEGREES_C,
    UNIT_PASCALS,
    UNIT_PERCENT_RH,
    SensorConfig,
    build_sensor_config_map,
    sensor_parameters,
    sensor_type_from_interface,
)


def test_temperature_input_defaults(tmp_path):
    params = sensor_parameters(tmp_path / "temp1_input")
    assert params.type_name == "temperature"
    assert params.units == UNIT_DEGREES_C
    assert params.min_value == MIN_VALUE_TEMPERATURE
    assert params.max_value == MAX_VALUE_TEMPERATURE
    assert params.offset_value == 0.0
    assert params.scale_value == pytest.approx(0.001)


def test_pressure_input(tmp_path):
    params = sensor_parameters(tmp_path / "in_pressure_input")
    assert params.type_name == "pressure"
    assert params.units == UNIT_PASCALS
    assert params.min_value == MIN_VALUE_PRESSURE
    assert params.max_value == MAX_VALUE_PRESSURE
    assert params.scale_value == pytest.approx(1000.0)


def test_humidity_input(tmp_path):
    params = sensor_parameters(tmp_path / "in_humidityrelative_input")
    assert params.type_name == "humidity"
    assert params.units == UNIT_PERCENT_RH
    assert params.max_value == 100
    assert params.scale_value == pytest.approx(0.001)


def test_raw_reads_offset_and_scale(tmp_path):
    (tmp_path / "in_pressure_offset").write_text("7\n")
    (tmp_path / "in_pressure_scale").write_text("2.5\n")
    params = sensor_parameters(tmp_path / "in_pressure_raw")
    assert params.offset_value == pytest.approx(7.0)
    assert params.scale_value == pytest.approx(2.5 * 1000.0)
    assert params.type_name == "pressure"


def test_raw_without_offset_files_keeps_defaults(tmp_path):
    params = sensor_parameters(tmp_path / "in_temp_raw")
    assert params.offset_value == 0.0
    assert params.scale_value == pytest.approx(0.001)


def test_raw_with_unreadable_offset_keeps_default(tmp_path):
    (tmp_path / "in_temp_offset").write_text("garbage")
    (tmp_path / "in_temp_scale").write_text("4")
    params = sensor_parameters(tmp_path / "in_temp_raw")
    assert params.offset_value == 0.0
    assert params.scale_value == pytest.approx(4 * 0.001)


def test_indexed_pressure_file_is_treated_as_temperature(tmp_path):
    params = sensor_parameters(tmp_path / "in_pressure0_input")
    assert params.type_name == "temperature"


def test_build_map_collects_names():
    configs = {
        "/inv/board/t1": {
            "xyz.openbmc_project.Configuration.TMP75": {
                "Bus": 3,
                "Address": 0x48,
                "Name": "Inlet",
                "Name1": "Outlet",
                "Name2": "Exhaust",
            }
        }
    }
    result = build_sensor_config_map(configs)
    assert list(result) == [(3, 0x48)]
    entry = result[(3, 0x48)]
    assert isinstance(entry, SensorConfig)
    assert entry.names == ["Inlet", "Outlet", "Exhaust"]
    assert entry.sensor_path == "/inv/board/t1"
    assert entry.interface == "xyz.openbmc_project.Configuration.TMP75"


def test_build_map_skips_missing_and_invalid_bus():
    configs = {
        "/a": {"iface.A": {"Bus": 1}},
        "/b": {"iface.B": {"Bus": "one", "Address": 2}},
        "/c": {"iface.C": {"Bus": True, "Address": 2}},
        "/d": {"iface.D": {"Bus": 1, "Address": 2}},
    }
    result = build_sensor_config_map(configs)
    assert list(result) == [(1, 2)]
    assert result[(1, 2)].sensor_path == "/d"
    assert result[(1, 2)].names == []


def test_build_map_keeps_first_duplicate():
    configs = {
        "/first": {"iface.X": {"Bus": 5, "Address": 9, "Name": "A"}},
        "/second": {"iface.X": {"Bus": 5, "Address": 9, "Name": "B"}},
    }
    result = build_sensor_config_map(configs)
    assert len(result) == 1
    assert result[(5, 9)].sensor_path == "/first"


def test_build_map_sorted_by_bus_then_address():
    configs = {
        "/x": {"i": {"Bus": 2, "Address": 1}},
        "/y": {"i": {"Bus": 1, "Address": 9}},
        "/z": {"i": {"Bus": 1, "Address": 3}},
    }
    assert list(build_sensor_config_map(configs)) == [(1, 3), (1, 9), (2, 1)]


def test_build_map_rejects_non_string_name():
    configs = {"/x": {"i": {"Bus": 1, "Address": 1, "Name": 5}}}
    with pytest.raises(TypeError):
        build_sensor_config_map(configs)


def test_sensor_type_from_interface():
    assert sensor_type_from_interface("xyz.openbmc_project.Configuration.TMP75") == "TMP75"
    assert sensor_type_from_interface("NoDots") == "NoDots"


def test_sensor_types_table():
    assert SENSOR_TYPES["DPS310"].create_hwmon is False
    assert SENSOR_TYPES["TMP75"].name == "tmp75"
    assert all(t.name == key.lower() for key, t in SENSOR_TYPES.items())