from unittest import mock

import pytest

from procinfo import util
from procinfo.util import (
    ValueParser,
    parse_bool,
    parse_pint64s,
    parse_uint32s,
    parse_uint64s,
    read_file_no_stat,
    read_uint_from_file,
    sys_read_file,
)


@pytest.mark.parametrize(
    "value,method",
    [
        ("hello", "pint64"),
        ("0xhello", "pint64"),
        ("-42", "puint64"),
        ("0xhello", "puint64"),
    ],
)
def test_value_parser_bad(value, method):
    vp = ValueParser(value)
    assert getattr(vp, method)() is None
    assert isinstance(vp.error, ValueError)


@pytest.mark.parametrize(
    "value,method,expected",
    [
        ("1", "pint64", 1),
        ("0xff", "pint64", 255),
        ("1", "puint64", 1),
        ("0xff", "puint64", 255),
    ],
)
def test_value_parser_ok(value, method, expected):
    vp = ValueParser(value)
    assert getattr(vp, method)() == expected
    assert vp.error is None


def test_value_parser_octal_prefix():
    assert ValueParser("010").puint64() == 8


def test_value_parser_negative_signed():
    assert ValueParser("-42").pint64() == -42


def test_value_parser_error_is_sticky():
    vp = ValueParser("nope")
    assert vp.pint64() is None
    first = vp.error
    assert vp.puint64() is None
    assert vp.error is first


def test_value_parser_uint64_range():
    vp = ValueParser("18446744073709551616")
    assert vp.puint64() is None
    assert vp.error is not None and "range" in str(vp.error)


def test_parse_uint32s():
    assert parse_uint32s(["0", "42", "4294967295"]) == [0, 42, 4294967295]


def test_parse_uint32s_overflow():
    with pytest.raises(ValueError):
        parse_uint32s(["4294967296"])


def test_parse_uint64s_rejects_sign():
    with pytest.raises(ValueError):
        parse_uint64s(["-1"])
    with pytest.raises(ValueError):
        parse_uint64s(["+1"])


def test_parse_uint64s_values():
    assert parse_uint64s(["18446744073709551615", "7"]) == [18446744073709551615, 7]


def test_parse_pint64s():
    assert parse_pint64s(["-5", "7", "+3"]) == [-5, 7, 3]


def test_parse_pint64s_invalid():
    with pytest.raises(ValueError):
        parse_pint64s(["1.5"])


def test_parse_bool():
    assert parse_bool("enabled") is True
    assert parse_bool("disabled") is False
    assert parse_bool("maybe") is None


def test_read_uint_from_file(tmp_path):
    target = tmp_path / "value"
    target.write_text(" 42\n")
    assert read_uint_from_file(target) == 42


def test_read_uint_from_file_invalid(tmp_path):
    target = tmp_path / "value"
    target.write_text("abc\n")
    with pytest.raises(ValueError):
        read_uint_from_file(target)


def test_read_file_no_stat_limits_size(tmp_path):
    target = tmp_path / "big"
    target.write_bytes(b"x" * (1024 * 512 + 100))
    assert len(read_file_no_stat(target)) == 1024 * 512


def test_read_file_no_stat_small(tmp_path):
    target = tmp_path / "small"
    target.write_bytes(b"hello\n")
    assert read_file_no_stat(target) == b"hello\n"


def test_sys_read_file_trims_and_limits(tmp_path):
    target = tmp_path / "sysfile"
    target.write_bytes(b"  " + b"a" * 200)
    with mock.patch.object(util.sys, "platform", "linux"):
        assert sys_read_file(str(target)) == "a" * 126


def test_sys_read_file_strips_newline(tmp_path):
    target = tmp_path / "sysfile"
    target.write_bytes(b"12345\n")
    with mock.patch.object(util.sys, "platform", "linux"):
        assert sys_read_file(str(target)) == "12345"


def test_sys_read_file_unsupported_platform(tmp_path):
    target = tmp_path / "sysfile"
    target.write_bytes(b"1\n")
    with mock.patch.object(util.sys, "platform", "win32"):
        with pytest.raises(OSError, match="not supported"):
            sys_read_file(str(target))