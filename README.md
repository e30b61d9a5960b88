# bmcsensors

Sensor logic for a board management controller. It covers three families of
sensors. Configuration is passed in as plain dictionaries that map object
paths to interfaces, and each interface to its properties.

## hwmon and IIO sensors

- `bmcsensors.hwmon_config`
  - `sensor_parameters(path)` works out the range, units and scaling of a
    temperature, pressure or humidity file. For IIO `*_raw` files it reads the
    sibling `_offset` and `_scale` files.
  - `build_sensor_config_map(configs)` indexes configuration interfaces by
    `(bus, address)`.
  - `SENSOR_TYPES` lists the supported I2C device types.
- `bmcsensors.hwmon_sensor`
  - `parse_reading(text, params)` turns a sysfs reading into a scaled value.
  - `HwmonTempSensor` holds one open file. It offers `read()`, `activate(path)`,
    `deactivate()`, `is_active()` and `object_path()`.
- `bmcsensors.hwmon_scan`
  - `find_sensor_files(iio_root, hwmon_root)` lists the matching sysfs files.
  - `device_bus_addr(name)` splits a device name such as `1-004c` into its bus
    and address.
  - `HwmonManager.create_sensors(configs, changed, activate_only)` matches the
    files found under the roots with configuration, and creates or reactivates
    sensors.
  - `HwmonManager.interface_removed(...)` and
    `HwmonManager.power_state_changed(...)` drop or deactivate sensors.

## CPU sensors over PECI

- `bmcsensors.cpu_naming`
  - `create_sensor_name(label, item, cpu_id)` builds a sensor name, for example
    `"Die"`, `"input"` and `0` give `"Die CPU0"`.
  - `is_hidden_label(label)` and `escape_dbus_name(name)` handle hidden labels
    and illegal characters in names.
  - `parse_cpu_configs(configs)` returns sorted `CpuConfig` records in state
    `CpuState.OFF`.
- `bmcsensors.cpu_detect`
  - `detect_state_sysfs(config, peci_dev_path)` sets a CPU's state from the
    hwmon devices it exposes. It returns the delay in seconds before creating
    sensors, or `None` if the rescan file cannot be opened.
  - `export_device(config, peci_dev_path)` writes a `peci-client` entry to the
    bus's `new_device` file.
  - `dimm_ready(pkg_config)` interprets a DIMM temperature package reading.
- `bmcsensors.cpu_sensor`
  - `CpuSensor` reads one hwmon file and scales it by 1000. It refreshes
    `cap_max`/`cap_min` limits every eighth read.
  - `split_file_name(path)` and `read_scaled(path, scale)` are the helpers it
    uses.
- `bmcsensors.cpu_create`
  - `CpuSensorRegistry.create_sensors(cpu_configs, configs)` creates a sensor
    for every input file of each powered CPU.
  - `find_cpu_config(configs, bus, addr)` finds the configuration at a bus and
    address.

## IPMB sensors

- `bmcsensors.ipmb_reading`
  - `process_reading(format, command, data)` decodes a response payload in one
    of the `ReadingFormat` layouts.
  - `sensor_class_type(...)`, `sensor_sub_type(...)` and `sub_type_units(...)`
    map configuration values to types and units.
- `bmcsensors.ipmb_commands`
  - `load_defaults(type, sub_type, address, smbus_index)` returns the
    `IpmbCommand` used to read a device.
- `bmcsensors.ipmb_sensor`
  - `sensor_from_config(name, cfg)` builds an `IpmbSensor`.
  - `IpmbSensor.handle_response(status, data)` applies scale and offset to a
    decoded reading.
  - `interface_removed(...)` drops sensors whose device interface went away.
- `bmcsensors.ipmb_sdr`
  - `IpmbSdrDevice` walks an SDR repository one response at a time. It offers
    `sdr_command_data(...)` and `handle_sdr_data(...)`.
  - `decode_type01_threshold(bytes, name)` decodes a type 01 record: its
    critical thresholds and conversion factors.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Examples

```python
from bmcsensors.hwmon_config import sensor_parameters
from bmcsensors.hwmon_sensor import parse_reading

params = sensor_parameters("/sys/class/hwmon/hwmon3/temp1_input")
print(params.units, params.min_value, params.max_value)   # DegreesC -128.0 127.0
print(parse_reading("42500\n", params))                  # 42.5
```

```python
from bmcsensors.ipmb_reading import ReadingFormat, process_reading
from bmcsensors.ipmb_sensor import sensor_from_config

print(process_reading(ReadingFormat.BYTE3, 0xD9, [0, 0, 0, 37]))   # 37.0

sensor = sensor_from_config("CPU Temp", {"Address": 0x10, "Class": "METemp"})
print(sensor.handle_response(0, [45, 0xC0, 0xC0]))                 # 45.0
```

## What it does not do

The package is a library of sensor logic, and it provides no command or daemon.

- It does not connect to a message bus. It neither publishes sensor objects nor
  listens for configuration or power signals; the caller passes configuration
  in and calls the methods when something changes.
- It runs no timers or event loop. Each `read()` or `handle_response()` call
  handles exactly one reading.
- It does not evaluate thresholds.
- It does not send IPMB requests itself. Callers send the requests and pass the
  replies in.
- It does not ping CPUs through the PECI device node or read GPIO presence
  lines. CPU state detection relies on sysfs alone.