import pytest

from bmcsensors.ipmb_sdr import (
    PER_COUNT_BYTE,
    IpmbSdrDevice,
    SdrType,
    decode_type01_threshold,
    parse_repository_info,
    parse_reservation,
    sensor_val_calculation,
    validate_status,
)

NAME = b"CPU0"
DATA_LEN = 48  # name lands at 48 + 12 - 3 = 57


def make_record(rb_exp=0x00, b_lsb=0, linear=0, sdr_type=1, m_lsb=1):
    rec = [0] * 61
    rec[0] = 0x11  # next record LSB
    rec[1] = 0x22  # next record MSB
    rec[5] = sdr_type
    rec[6] = DATA_LEN
    rec[9] = 7
    rec[13] = 0x0C
    rec[24] = 3
    rec[25] = 1
    rec[27] = linear
    rec[28] = m_lsb
    rec[30] = b_lsb
    rec[33] = rb_exp
    rec[43] = 100
    rec[46] = 5
    rec[53] = len(NAME)
    rec[57:61] = list(NAME)
    return rec


def test_validate_status():
    assert validate_status(0, 1) is True
    assert validate_status(1, 1) is False


def test_parse_repository_info():
    data = [0x51, 0x34, 0x12] + [0] * 11
    assert parse_repository_info(data) == 0x1234


def test_parse_repository_info_short():
    with pytest.raises(ValueError):
        parse_repository_info([0] * 13)


def test_parse_reservation():
    assert parse_reservation([0xAB, 0xCD, 0x00]) == (0xAB, 0xCD)
    with pytest.raises(ValueError):
        parse_reservation([0xAB])


def test_sensor_val_calculation_identity():
    assert sensor_val_calculation(1, 0.0, 1.0, 42.0) == 42.0


def test_sensor_val_calculation_scales_with_exponent():
    one = sensor_val_calculation(3, 5.0, 1.0, 7.0)
    assert sensor_val_calculation(3, 5.0, 2.0, 7.0) == pytest.approx(2 * one)


def test_decode_plain_record():
    info, conv = decode_type01_threshold(make_record(), "CPU0")
    assert info.sensor_read_name == "CPU0"
    assert info.thres_upper_cri == 100.0
    assert info.thres_lower_cri == 5.0
    assert info.sensor_number == 7
    assert info.sensor_unit == 1
    assert info.sens_cap == 0x0C
    assert conv.m_value == 1
    assert conv.b_value == 0.0
    assert conv.expo_val == 1.0
    assert conv.neg_read == 3


def test_decode_negative_r_exponent():
    info, conv = decode_type01_threshold(make_record(rb_exp=0xF0), "X")
    assert conv.expo_val == pytest.approx(0.1)
    assert info.thres_upper_cri == pytest.approx(
        sensor_val_calculation(conv.m_value, conv.b_value, conv.expo_val, 100)
    )


def test_decode_large_b_exponent_is_folded_positive():
    _info, conv = decode_type01_threshold(make_record(rb_exp=0x0F, b_lsb=2), "X")
    assert conv.b_value == pytest.approx(20.0)


def test_decode_nonlinear_skipped():
    assert decode_type01_threshold(make_record(linear=1), "X") is None


def test_device_addresses():
    dev = IpmbSdrDevice(2)
    assert dev.host_index == 3
    assert dev.command_address == 2 << 2


def test_initial_command_data():
    dev = IpmbSdrDevice(0)
    assert dev.sdr_command_data(0xAA, 0xBB) == [0xAA, 0xBB, 0, 0, 0, PER_COUNT_BYTE]


def test_check_sdr_data_stores_record():
    dev = IpmbSdrDevice(0)
    info = dev.check_sdr_data(make_record(), DATA_LEN + 7)
    assert info.sensor_read_name == "CPU0"
    assert dev.sensor_records == [info]
    assert 7 in dev.conversions


def test_check_sdr_data_other_type_skipped():
    dev = IpmbSdrDevice(0)
    assert dev.check_sdr_data(make_record(sdr_type=SdrType.TYPE02), 55) is None
    assert dev.sensor_records == []


def test_check_sdr_data_too_short():
    dev = IpmbSdrDevice(0)
    assert dev.check_sdr_data(make_record()[:30], 55) is None


def test_handle_sdr_data_single_record():
    dev = IpmbSdrDevice(1)
    rec = make_record()
    assert dev.handle_sdr_data(rec[:18], 1) is True
    assert dev.i_cnt == 1
    assert dev.sdr_command_data(0, 0)[4] == PER_COUNT_BYTE
    assert dev.handle_sdr_data(rec[18:36], 1) is True
    assert dev.handle_sdr_data(rec[36:], 1) is False
    assert [r.sensor_read_name for r in dev.sensor_records] == ["CPU0"]
    assert dev.next_record_id_lsb == 0
    assert dev.next_record_id_msb == 0
    assert dev.sdr_data == []


def test_handle_sdr_data_continues_to_next_record():
    dev = IpmbSdrDevice(1)
    rec = make_record()
    dev.handle_sdr_data(rec[:18], 2)
    dev.handle_sdr_data(rec[18:36], 2)
    assert dev.handle_sdr_data(rec[36:], 2) is True
    assert dev.valid_record_count == 2
    assert dev.i_cnt == 0
    assert dev.sdr_command_data(9, 8)[:4] == [9, 8, 0x11, 0x22]


def test_handle_sdr_data_short_chunk():
    dev = IpmbSdrDevice(1)
    with pytest.raises(ValueError):
        dev.handle_sdr_data([0] * 17, 1)