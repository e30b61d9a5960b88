import pytest

from bmcsensors.cpu_naming import (
    CpuConfig,
    CpuState,
    create_sensor_name,
    escape_dbus_name,
    is_hidden_label,
    parse_cpu_configs,
)

XEON = "xyz.openbmc_project.Configuration.XeonCPU"


def test_input_item_is_omitted():
    assert create_sensor_name("DTS", "input", 0) == "DTS CPU0"


def test_other_item_is_appended_and_capitalised():
    assert create_sensor_name("Die", "crit", 1) == "Die Crit CPU1"


@pytest.mark.parametrize("label", ["Tcontrol", "Tthrottle", "Tjmax"])
def test_hidden_labels(label):
    assert is_hidden_label(label)


@pytest.mark.parametrize("label", ["DTS", "Die", "tcontrol"])
def test_visible_labels(label):
    assert not is_hidden_label(label)


def test_escape_dbus_name():
    assert escape_dbus_name("cpu 0-a") == "cpu_0_a"
    assert escape_dbus_name("CPU_1") == "CPU_1"


def test_parse_cpu_configs_sorted_and_off():
    cfgs = {
        "/b": {XEON: {"Name": "CPU 2", "Bus": 0, "Address": 49}},
        "/a": {XEON: {"Name": "CPU 1", "Bus": 0, "Address": 48}},
    }
    result = parse_cpu_configs(cfgs)
    assert [c.name for c in result] == ["CPU_1", "CPU_2"]
    assert [c.addr for c in result] == [48, 49]
    assert all(c.state is CpuState.OFF for c in result)


def test_parse_cpu_configs_skips_incomplete_and_other_interfaces():
    cfgs = {
        "/a": {XEON: {"Name": "CPU 1", "Address": 48}},
        "/b": {XEON: {"Name": "CPU 2", "Bus": 0}},
        "/c": {"xyz.openbmc_project.Configuration.Other": {"Name": "X", "Bus": 0, "Address": 1}},
        "/d": {XEON: {"Bus": 0, "Address": 50}},
    }
    assert parse_cpu_configs(cfgs) == []


def test_parse_cpu_configs_keeps_first_duplicate():
    cfgs = {
        "/a": {XEON: {"Name": "CPU 1", "Bus": 0, "Address": 48}},
        "/b": {XEON: {"Name": "CPU 1", "Bus": 1, "Address": 49}},
    }
    result = parse_cpu_configs(cfgs)
    assert result == [CpuConfig(0, 48, "CPU_1", CpuState.OFF)]


def test_cpu_config_orders_by_name():
    a = CpuConfig(5, 1, "b")
    b = CpuConfig(0, 0, "a")
    assert sorted([a, b]) == [b, a]