import io
import json
import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from jsonwriter.stream import EncodingError, Stream, StreamConfig


class RecordingWriter:
    def __init__(self):
        self.max_size = 0
        self.total = 0

    def write(self, data):
        self.max_size = max(self.max_size, len(data))
        self.total += len(data)
        return len(data)


def test_write_raw_should_grow_buffer():
    stream = Stream(StreamConfig(), None, 1)
    stream.write_raw("1")
    assert stream.buffer() == b"1"
    assert stream.buffered() == 1
    stream.write_raw("2")
    assert stream.buffer() == b"12"
    stream.write_raw("345")
    assert stream.buffer() == b"12345"


def test_write_bytes_should_grow_buffer():
    stream = Stream(StreamConfig(), None, 1)
    assert stream.write(b"12") == 2
    assert stream.buffer() == b"12"
    assert stream.buffered() == 2
    stream.write(b"34567")
    assert stream.buffer() == b"1234567"
    assert stream.buffered() == 7


def test_write_indention_should_grow_buffer():
    stream = Stream(StreamConfig(indention_step=2), None, 1)
    stream.write_array_start()
    stream.write_int(1)
    stream.write_more()
    stream.write_int(2)
    stream.write_more()
    stream.write_int(3)
    stream.write_array_end()
    assert stream.buffer() == b"[\n  1,\n  2,\n  3\n]"


def test_write_string_should_grow_buffer():
    stream = Stream(StreamConfig(), None, 0)
    stream.write_string("123")
    assert stream.buffer() == b'"123"'


def test_flush_buffer_should_stop_grow_buffer():
    writer = RecordingWriter()
    stream = Stream(StreamConfig(), writer, 512)
    stream.write_array_start()
    for _ in range(10000):
        stream.write_int(0)
        stream.write_more()
        stream.flush()
    stream.write_int(0)
    stream.write_array_end()
    stream.flush()
    assert writer.max_size <= 8
    assert stream.available() + stream.buffered() == 512
    assert writer.total == 1 + 2 * 10000 + 2


def test_available_and_buffered():
    stream = Stream(StreamConfig(), None, 512)
    assert stream.available() == 512
    stream.write_raw("ab")
    assert stream.available() == 510
    assert stream.buffered() == 2


def test_reset_and_set_buffer():
    stream = Stream(StreamConfig(), None, 16)
    stream.write_raw("abc")
    stream.reset(None)
    assert stream.buffer() == b""
    stream.set_buffer(b"xy")
    stream.write_raw("z")
    assert stream.buffer() == b"xyz"


def test_write_with_writer_passes_through():
    out = io.BytesIO()
    stream = Stream(StreamConfig(), out, 16)
    stream.write(b"abc")
    assert out.getvalue() == b"abc"
    assert stream.buffered() == 0


def test_write_true_false():
    buf = io.BytesIO()
    stream = Stream(StreamConfig(), buf, 4096)
    stream.write_true()
    stream.write_false()
    stream.write_bool(False)
    stream.flush()
    assert buf.getvalue() == b"truefalsefalse"


def test_write_bool_buffered():
    buf = io.BytesIO()
    stream = Stream(StreamConfig(), buf, 4096)
    stream.write_bool(True)
    assert stream.buffered() == 4
    stream.flush()
    assert stream.buffered() == 0
    assert buf.getvalue() == b"true"


def test_write_null():
    buf = io.BytesIO()
    stream = Stream(StreamConfig(), buf, 4096)
    stream.write_nil()
    stream.flush()
    assert buf.getvalue() == b"null"


def test_write_object():
    buf = io.BytesIO()
    stream = Stream(StreamConfig(indention_step=2), buf, 4096)
    stream.write_object_start()
    stream.write_object_field("hello")
    stream.write_int(1)
    stream.write_more()
    stream.write_object_field("world")
    stream.write_int(2)
    stream.write_object_end()
    stream.flush()
    assert buf.getvalue() == b'{\n  "hello": 1,\n  "world": 2\n}'


def test_write_compact_object_and_empties():
    stream = Stream()
    stream.write_object_start()
    stream.write_object_field("a")
    stream.write_empty_array()
    stream.write_more()
    stream.write_object_field("b")
    stream.write_empty_object()
    stream.write_object_end()
    assert stream.buffer() == b'{"a":[],"b":{}}'


def test_write_array():
    buf = io.BytesIO()
    stream = Stream(StreamConfig(indention_step=2), buf, 4096)
    stream.write_array_start()
    stream.write_int(1)
    stream.write_more()
    stream.write_int(2)
    stream.write_array_end()
    stream.flush()
    assert buf.getvalue() == b"[\n  1,\n  2\n]"


@pytest.mark.parametrize(
    "method,value,expected",
    [
        ("write_int8", -128, b"-128"),
        ("write_uint8", 255, b"255"),
        ("write_int16", -32768, b"-32768"),
        ("write_uint16", 1000, b"1000"),
        ("write_int32", -2147483648, b"-2147483648"),
        ("write_uint32", 4294967295, b"4294967295"),
        ("write_int64", -(2**63), b"-9223372036854775808"),
        ("write_uint64", 2**64 - 1, b"18446744073709551615"),
        ("write_uint", 123, b"123"),
        ("write_int", 0, b"0"),
    ],
)
def test_write_integers(method, value, expected):
    stream = Stream()
    getattr(stream, method)(value)
    assert stream.buffer() == expected


@pytest.mark.parametrize(
    "method,value",
    [("write_int8", 128), ("write_uint8", -1), ("write_uint64", 2**64), ("write_int64", 2**63)],
)
def test_write_integers_out_of_range(method, value):
    with pytest.raises(EncodingError):
        getattr(Stream(), method)(value)


@pytest.mark.parametrize(
    "value,expected",
    [
        (12.3, b"12.3"),
        (1.0, b"1"),
        (-0.5, b"-0.5"),
        (1e20, b"100000000000000000000"),
        (1e21, b"1e+21"),
        (1e-7, b"1e-07"),
        (0.000001, b"0.000001"),
        (0.0, b"0"),
    ],
)
def test_write_float64(value, expected):
    stream = Stream()
    stream.write_float64(value)
    assert stream.buffer() == expected


@pytest.mark.parametrize(
    "value,expected",
    [(0.1, b"0.1"), (12.3, b"12.3"), (16777216.0, b"16777216"), (1e-7, b"1e-07")],
)
def test_write_float32(value, expected):
    stream = Stream()
    stream.write_float32(value)
    assert stream.buffer() == expected


def test_lossy_float_marshal():
    stream = Stream()
    stream.write_float64_lossy(0.1234567)
    assert stream.buffer() == b"0.123457"
    stream = Stream()
    stream.write_float32_lossy(0.1234567)
    assert stream.buffer() == b"0.123457"


@pytest.mark.parametrize(
    "value,expected",
    [(-1.5, b"-1.5"), (1.0, b"1"), (0.000001, b"0.000001"), (1e8, b"100000000")],
)
def test_lossy_float64_values(value, expected):
    stream = Stream()
    stream.write_float64_lossy(value)
    assert stream.buffer() == expected


@pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan])
@pytest.mark.parametrize(
    "method", ["write_float32", "write_float64", "write_float32_lossy", "write_float64_lossy"]
)
def test_encode_inf_and_nan(method, value):
    with pytest.raises(EncodingError, match="unsupported value"):
        getattr(Stream(), method)(value)


def test_write_string_escapes():
    stream = Stream()
    stream.write_string('a"b\\c\n\r\t\x01<&>')
    assert stream.buffer() == b'"a\\"b\\\\c\\n\\r\\t\\u0001<&>"'


def test_write_string_keeps_unicode():
    stream = Stream()
    stream.write_string("é\u2028")
    assert stream.buffer() == '"é\u2028"'.encode("utf-8")


def test_write_string_with_html_escaped():
    stream = Stream()
    stream.write_string_with_html_escaped("<a&b>\u2028\u2029\x1f\"é")
    assert stream.buffer() == '"\\u003ca\\u0026b\\u003e\\u2028\\u2029\\u001f\\"é"'.encode("utf-8")


def test_write_string_with_html_escaped_replaces_invalid():
    stream = Stream()
    stream.write_string_with_html_escaped("a\ud800b")
    assert stream.buffer() == b'"a\\ufffdb"'


@given(st.text())
def test_write_string_round_trip(text):
    stream = Stream()
    stream.write_string(text.encode("utf-8", "replace").decode("utf-8"))
    assert json.loads(stream.buffer().decode("utf-8")) == text.encode("utf-8", "replace").decode("utf-8")


@given(st.text(alphabet=st.characters(blacklist_categories=("Cs",))))
def test_write_html_string_round_trip(text):
    stream = Stream()
    stream.write_string_with_html_escaped(text)
    out = stream.buffer().decode("utf-8")
    assert json.loads(out) == text
    assert "<" not in out and ">" not in out and "&" not in out


@given(st.integers(min_value=-(2**63), max_value=2**63 - 1))
def test_write_int64_round_trip(value):
    stream = Stream()
    stream.write_int64(value)
    assert int(stream.buffer()) == value


@given(st.floats(allow_nan=False, allow_infinity=False))
def test_write_float64_round_trip(value):
    stream = Stream()
    stream.write_float64(value)
    assert float(stream.buffer()) == value