"""Buffered JSON output stream with typed write operations."""

from __future__ import annotations

import math
import re
import struct
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional


class EncodingError(ValueError):
    """Raised when a value cannot be written as JSON."""


@dataclass(frozen=True)
class StreamConfig:
    """Settings shared by streams: indention_step spaces per nesting level."""

    indention_step: int = 0


_INT_RANGES = {
    "int8": (-(2**7), 2**7 - 1),
    "uint8": (0, 2**8 - 1),
    "int16": (-(2**15), 2**15 - 1),
    "uint16": (0, 2**16 - 1),
    "int32": (-(2**31), 2**31 - 1),
    "uint32": (0, 2**32 - 1),
    "int64": (-(2**63), 2**63 - 1),
    "uint64": (0, 2**64 - 1),
}

_LOSSY_LIMIT = 0x4FFFFFF
_LOSSY_PRECISION = 6
_LOSSY_SCALE = 10**_LOSSY_PRECISION

_ESCAPES = {ord("\\"): "\\\\", ord('"'): '\\"', ord("\n"): "\\n", ord("\r"): "\\r", ord("\t"): "\\t"}
_PLAIN_TABLE = {code: f"\\u{code:04x}" for code in range(0x20)}
_PLAIN_TABLE.update(_ESCAPES)

_HTML_TABLE = dict(_PLAIN_TABLE)
_HTML_TABLE.update({ord(ch): f"\\u{ord(ch):04x}" for ch in "<>&"})
_HTML_TABLE.update({0x2028: "\\u2028", 0x2029: "\\u2029"})

_SURROGATES = re.compile("[\ud800-\udfff]")


def _to_float32(val: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", val))[0]
    except OverflowError:
        return math.copysign(math.inf, val)


_F32_LOW = _to_float32(1e-6)
_F32_HIGH = _to_float32(1e21)


def _unsupported(val: float) -> EncodingError:
    if math.isnan(val):
        text = "NaN"
    else:
        text = "+Inf" if val > 0 else "-Inf"
    return EncodingError(f"unsupported value: {text}")


def _shortest_float32(val: float) -> Decimal:
    for precision in range(9):
        text = f"{val:.{precision}e}"
        if _to_float32(float(text)) == val:
            return Decimal(text)
    return Decimal(repr(val))


def _format_decimal(value: Decimal, scientific: bool) -> str:
    value = value.normalize()
    if not scientific:
        return format(value, "f")
    sign, digits, _ = value.as_tuple()
    text = "".join(str(d) for d in digits)
    mantissa = text[0] + ("." + text[1:] if len(text) > 1 else "")
    exp = value.adjusted()
    exp_sign = "+" if exp >= 0 else "-"
    return f"{'-' if sign else ''}{mantissa}e{exp_sign}{abs(exp):02d}"


class Stream:
    """An output buffer with JSON-specific write methods.

    When ``out`` is None, the result is taken with :meth:`buffer`; otherwise
    :meth:`flush` hands the buffered bytes to ``out.write``.
    """

    def __init__(self, config: Optional[StreamConfig] = None, out: Any = None, buf_size: int = 512):
        self.config = config if config is not None else StreamConfig()
        self.out = out
        self._buf = bytearray()
        self._capacity = max(buf_size, 0)
        self.indention = 0
        self.attachment: Any = None

    # buffer management

    def _grow(self) -> None:
        if len(self._buf) > self._capacity:
            self._capacity = len(self._buf)

    def _append(self, data: bytes) -> None:
        self._buf += data
        self._grow()

    def _append_text(self, text: str) -> None:
        self._append(text.encode("ascii"))

    def reset(self, out: Any) -> None:
        """Reuse the stream with a new writer, discarding buffered output."""
        self.out = out
        self._buf.clear()

    def available(self) -> int:
        """Number of unused bytes in the buffer's current capacity."""
        return self._capacity - len(self._buf)

    def buffered(self) -> int:
        """Number of bytes written into the buffer and not yet flushed."""
        return len(self._buf)

    def buffer(self) -> bytes:
        """The bytes currently held in the buffer."""
        return bytes(self._buf)

    def set_buffer(self, buf: bytes) -> None:
        """Replace the internal buffer."""
        self._buf = bytearray(buf)
        self._grow()

    def write(self, data: bytes) -> int:
        """Append raw bytes; with a writer, pass the whole buffer on to it."""
        self._append(bytes(data))
        if self.out is None:
            return len(data)
        written = self.out.write(bytes(self._buf))
        if written is None:
            written = len(self._buf)
        del self._buf[:written]
        return written

    def flush(self) -> None:
        """Write buffered bytes to the underlying writer."""
        if self.out is None:
            return
        self.out.write(bytes(self._buf))
        self._buf.clear()

    def write_raw(self, s: str) -> None:
        """Write text as is, without quoting."""
        self._append(s.encode("utf-8", "surrogatepass"))

    # literals and structure

    def write_nil(self) -> None:
        self._append(b"null")

    def write_true(self) -> None:
        self._append(b"true")

    def write_false(self) -> None:
        self._append(b"false")

    def write_bool(self, val: bool) -> None:
        if val:
            self.write_true()
        else:
            self.write_false()

    def _write_indention(self, delta: int) -> None:
        if self.indention == 0:
            return
        self._append(b"\n" + b" " * max(self.indention - delta, 0))

    def write_object_start(self) -> None:
        self.indention += self.config.indention_step
        self._append(b"{")
        self._write_indention(0)

    def write_object_field(self, field: str) -> None:
        self.write_string(field)
        self._append(b": " if self.indention > 0 else b":")

    def write_object_end(self) -> None:
        self._write_indention(self.config.indention_step)
        self.indention -= self.config.indention_step
        self._append(b"}")

    def write_empty_object(self) -> None:
        self._append(b"{}")

    def write_more(self) -> None:
        self._append(b",")
        self._write_indention(0)

    def write_array_start(self) -> None:
        self.indention += self.config.indention_step
        self._append(b"[")
        self._write_indention(0)

    def write_empty_array(self) -> None:
        self._append(b"[]")

    def write_array_end(self) -> None:
        self._write_indention(self.config.indention_step)
        self.indention -= self.config.indention_step
        self._append(b"]")

    # integers

    def _write_integer(self, val: int, kind: str) -> None:
        low, high = _INT_RANGES[kind]
        val = int(val)
        if not low <= val <= high:
            raise EncodingError(f"value {val} out of range for {kind}")
        self._append_text(str(val))

    def write_int8(self, val: int) -> None:
        self._write_integer(val, "int8")

    def write_uint8(self, val: int) -> None:
        self._write_integer(val, "uint8")

    def write_int16(self, val: int) -> None:
        self._write_integer(val, "int16")

    def write_uint16(self, val: int) -> None:
        self._write_integer(val, "uint16")

    def write_int32(self, val: int) -> None:
        self._write_integer(val, "int32")

    def write_uint32(self, val: int) -> None:
        self._write_integer(val, "uint32")

    def write_int64(self, val: int) -> None:
        self._write_integer(val, "int64")

    def write_uint64(self, val: int) -> None:
        self._write_integer(val, "uint64")

    def write_int(self, val: int) -> None:
        self.write_int64(val)

    def write_uint(self, val: int) -> None:
        self.write_uint64(val)

    # floats

    def write_float32(self, val: float) -> None:
        """Write the shortest decimal that reads back as the same float32."""
        val = _to_float32(float(val))
        if math.isinf(val) or math.isnan(val):
            raise _unsupported(val)
        magnitude = abs(val)
        scientific = magnitude != 0 and (magnitude < _F32_LOW or magnitude >= _F32_HIGH)
        if val == 0:
            self._append_text("-0" if math.copysign(1.0, val) < 0 else "0")
            return
        self._append_text(_format_decimal(_shortest_float32(val), scientific))

    def write_float64(self, val: float) -> None:
        """Write the shortest decimal that reads back as the same float64."""
        val = float(val)
        if math.isinf(val) or math.isnan(val):
            raise _unsupported(val)
        magnitude = abs(val)
        scientific = magnitude != 0 and (magnitude < 1e-6 or magnitude >= 1e21)
        self._append_text(_format_decimal(Decimal(repr(val)), scientific))

    def _write_lossy(self, val: float, fallback) -> None:
        if val < 0:
            self._append(b"-")
            val = -val
        if val > _LOSSY_LIMIT:
            fallback(val)
            return
        scaled = int(val * float(_LOSSY_SCALE) + 0.5)
        whole, fraction = divmod(scaled, _LOSSY_SCALE)
        self._append_text(str(whole))
        if fraction == 0:
            return
        digits = str(fraction).rjust(_LOSSY_PRECISION, "0").rstrip("0")
        self._append_text("." + digits)

    def write_float32_lossy(self, val: float) -> None:
        """Write a float32 with at most six fractional digits."""
        val = _to_float32(float(val))
        if math.isinf(val) or math.isnan(val):
            raise _unsupported(val)
        self._write_lossy(val, self.write_float32)

    def write_float64_lossy(self, val: float) -> None:
        """Write a float64 with at most six fractional digits."""
        val = float(val)
        if math.isinf(val) or math.isnan(val):
            raise _unsupported(val)
        self._write_lossy(val, self.write_float64)

    # strings

    def write_string(self, s: str) -> None:
        """Write a quoted string, escaping only what JSON requires."""
        escaped = s.translate(_PLAIN_TABLE)
        self._append(b'"' + escaped.encode("utf-8", "surrogatepass") + b'"')

    def write_string_with_html_escaped(self, s: str) -> None:
        """Write a quoted string, also escaping <, >, &, U+2028 and U+2029."""
        escaped = _SURROGATES.sub(r"\\ufffd", s.translate(_HTML_TABLE))
        self._append(b'"' + escaped.encode("utf-8") + b'"')