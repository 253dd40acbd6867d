import pytest

from optchains.cells import (
    DEFAULT_DATE_FORMAT,
    DEFAULT_NULL,
    DEFAULT_TIME_FORMAT,
    DEFAULT_TIMESTAMP_FORMAT,
    Cell,
    DataType,
    DoubleFormat,
    Format,
    GenericFormat,
    Header,
    IntFormat,
    StringFormat,
    TimestampFormat,
    TimestampFormatSeconds,
    UInt,
    UIntFormat,
    data_type_of,
    make_cell,
)
from optchains.timestamps import NYC, Timestamp, make_timestamp

TS = Timestamp(1234567890)
CLOSE_TS = make_timestamp(2025, 4, 2, 17, 30, 0, "UTC")


@pytest.mark.parametrize(
    "value, expected",
    [
        (1, DataType.INT),
        (UInt(2), DataType.UINT),
        (3.0, DataType.DOUBLE),
        ("Hello", DataType.STRING),
        (TS, DataType.TIMESTAMP),
        (True, DataType.GENERIC),
        (object(), DataType.GENERIC),
    ],
)
def test_data_type_of(value, expected):
    assert data_type_of(value) is expected


def test_data_type_str_is_name():
    assert str(data_type_of(TS)) == "TIMESTAMP"
    assert str(make_cell(1).data_type) == "INT"


def test_uint_rejects_negative():
    with pytest.raises(ValueError):
        UInt(-1)
    assert UInt(5) == 5


@pytest.mark.parametrize(
    "value, text",
    [
        (1, "1"),
        (UInt(2), "2"),
        (3.0, "3.000000"),
        ("Hello", "Hello"),
        (TS, "1970-01-01 00:00:01.234567890Z"),
    ],
)
def test_cell_str(value, text):
    assert str(make_cell(value)) == text


def test_make_cell_types_and_errors():
    assert make_cell(UInt(2)).data_type is DataType.UINT
    assert make_cell(3.0).data_type is DataType.DOUBLE
    with pytest.raises(TypeError):
        make_cell([1, 2])
    with pytest.raises(TypeError):
        Cell(None)


def test_base_format_uses_cell_text_and_null():
    fmt = Format()
    assert fmt.format_cell(None) == DEFAULT_NULL
    assert fmt.format_cell(make_cell(3.0)) == "3.000000"
    fmt.null = "NULL"
    assert fmt.format_cell(None) == "NULL"
    assert fmt.data_type is DataType.GENERIC


@pytest.mark.parametrize(
    "spec, null, text",
    [
        (".3f", DEFAULT_NULL, "3.000"),
        (".0f", "Nope", "3"),
        ("+8.1f", "", "    +3.0"),
        ("08.1f", "", "000003.0"),
    ],
)
def test_double_format(spec, null, text):
    fmt = DoubleFormat(spec, null)
    assert fmt.format_cell(make_cell(3.0)) == text
    assert fmt.format_cell(None) == null


def test_typed_formats_default_specs_roundtrip():
    assert int(IntFormat().format_cell(make_cell(42))) == 42
    assert int(UIntFormat().format_cell(make_cell(UInt(7)))) == 7
    assert StringFormat().format_cell(make_cell("IV")) == "IV"
    assert float(DoubleFormat().format_cell(make_cell(2.5))) == 2.5


def test_format_type_mismatch_raises():
    with pytest.raises(RuntimeError, match="cell type mismatch"):
        DoubleFormat().format_cell(make_cell(1))
    with pytest.raises(RuntimeError):
        IntFormat().format_cell(make_cell(UInt(1)))


def test_format_data_types():
    assert DoubleFormat.data_type is DataType.DOUBLE
    assert TimestampFormatSeconds().data_type is DataType.TIMESTAMP
    assert GenericFormat().data_type is DataType.GENERIC


def test_timestamp_format_keeps_nanoseconds():
    fmt = TimestampFormat("%Y-%m-%d %H:%M:%S")
    assert fmt.format_cell(make_cell(TS)) == "1970-01-01 00:00:01.234567890"
    assert fmt.format_cell(None) == DEFAULT_NULL


def test_timestamp_format_seconds_default():
    fmt = TimestampFormatSeconds()
    assert fmt.format_cell(make_cell(TS)) == "1970-01-01 00:00:01"
    assert fmt.format_cell(make_cell(CLOSE_TS)) == "2025-04-02 17:30:00"


def test_timestamp_format_seconds_time_zone_and_parts():
    nyc = TimestampFormatSeconds(DEFAULT_TIMESTAMP_FORMAT, NYC)
    assert nyc.format_cell(make_cell(CLOSE_TS)) == "2025-04-02 13:30:00"
    assert TimestampFormatSeconds(DEFAULT_DATE_FORMAT).format_cell(make_cell(CLOSE_TS)) == "2025-04-02"
    assert TimestampFormatSeconds(DEFAULT_TIME_FORMAT).format_cell(make_cell(CLOSE_TS)) == "17:30:00"


def test_timestamp_format_seconds_rejects_bad_zone_and_type():
    with pytest.raises(ValueError):
        TimestampFormatSeconds(DEFAULT_TIMESTAMP_FORMAT, "Nowhere/Land")
    with pytest.raises(RuntimeError):
        TimestampFormatSeconds().format_cell(make_cell("x"))


def test_header_defaults_and_updates():
    header = Header()
    assert header.name == ""
    assert header.data_type is DataType.GENERIC
    assert header.fmt.format_cell(None) == DEFAULT_NULL
    header.name = "Strike"
    header.fmt = DoubleFormat(".2f")
    assert header.fmt.format_cell(make_cell(3.0)) == "3.00"
    assert Header("Date", DataType.TIMESTAMP).data_type is DataType.TIMESTAMP