import pytest

from bmcsensors.ipmb_commands import ME_ADDRESS, IpmbCommand, load_defaults
from bmcsensors.ipmb_reading import (
    GET_SENSOR_READING,
    ME_BRIDGE_NETFN,
    NETFN_SENSOR,
    SEND_RAW_PMBUS,
    IpmbSubType,
    IpmbType,
    ReadingFormat,
)

DEV = 0x42
SMBUS = 0x03


def test_me_sensor():
    cmd = load_defaults(IpmbType.ME_SENSOR, IpmbSubType.TEMP, DEV, SMBUS)
    assert cmd == IpmbCommand(
        ME_ADDRESS, NETFN_SENSOR, GET_SENSOR_READING, [DEV], ReadingFormat.BYTE0
    )
    assert cmd.init_command is None


def test_pxe_vr():
    cmd = load_defaults(IpmbType.PXE1410CVR, IpmbSubType.TEMP, DEV, SMBUS)
    assert cmd.netfn == ME_BRIDGE_NETFN
    assert cmd.command == SEND_RAW_PMBUS
    assert cmd.init_command == SEND_RAW_PMBUS
    assert cmd.command_data == [0x57, 0x01, 0x00, 0x16, SMBUS, DEV,
                                0x00, 0x00, 0x00, 0x00, 0x01, 0x02, 0x8D]
    assert cmd.init_data == [0x57, 0x01, 0x00, 0x14, SMBUS, DEV,
                             0x00, 0x00, 0x00, 0x00, 0x02, 0x00, 0x00, 0x00]
    assert cmd.reading_format is ReadingFormat.LINEAR_ELEVEN_BIT


def test_mps_vr_matches_pxe_but_byte3():
    pxe = load_defaults(IpmbType.PXE1410CVR, IpmbSubType.TEMP, DEV, SMBUS)
    mps = load_defaults(IpmbType.MPS_VR, IpmbSubType.TEMP, DEV, SMBUS)
    assert mps.command_data == pxe.command_data
    assert mps.init_data == pxe.init_data
    assert mps.reading_format is ReadingFormat.BYTE3


def test_ir_vr_has_no_init():
    cmd = load_defaults(IpmbType.IR38363VR, IpmbSubType.TEMP, DEV, SMBUS)
    assert cmd.init_command is None
    assert cmd.init_data == []
    assert cmd.reading_format is ReadingFormat.ELEVEN_BIT_SHIFT
    assert cmd.command_data[4:6] == [SMBUS, DEV]


@pytest.mark.parametrize(
    "sub_type, sensor_number",
    [(IpmbSubType.TEMP, 0x8D), (IpmbSubType.CURR, 0x8C)],
)
def test_hsc_bridged(sub_type, sensor_number):
    cmd = load_defaults(IpmbType.ADM1278HSC, sub_type, DEV, SMBUS)
    assert cmd.command_data == [0x57, 0x01, 0x00, 0x86, DEV,
                                0x00, 0x00, 0x01, 0x02, sensor_number]
    assert cmd.reading_format is ReadingFormat.ELEVEN_BIT
    assert cmd.netfn == ME_BRIDGE_NETFN


@pytest.mark.parametrize("sub_type", [IpmbSubType.POWER, IpmbSubType.VOLT])
def test_hsc_direct(sub_type):
    cmd = load_defaults(IpmbType.ADM1278HSC, sub_type, DEV, SMBUS)
    assert cmd.command == GET_SENSOR_READING
    assert cmd.command_data == [DEV]


@pytest.mark.parametrize("sub_type", [IpmbSubType.UTIL, IpmbSubType.NONE])
def test_hsc_invalid_sub_type(sub_type):
    with pytest.raises(ValueError):
        load_defaults(IpmbType.ADM1278HSC, sub_type, DEV, SMBUS)


def test_none_type_invalid():
    with pytest.raises(ValueError):
        load_defaults(IpmbType.NONE, IpmbSubType.TEMP, DEV, SMBUS)


def test_utilization_range():
    cmd = load_defaults(IpmbType.ME_SENSOR, IpmbSubType.UTIL, DEV, SMBUS)
    assert (cmd.min_value, cmd.max_value) == (0.0, 100.0)
    other = load_defaults(IpmbType.ME_SENSOR, IpmbSubType.TEMP, DEV, SMBUS)
    assert other.max_value is None and other.min_value is None