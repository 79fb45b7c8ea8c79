"""Value encoders for native values, byte strings, slices, optionals and marshalers."""

from __future__ import annotations

import base64
from abc import ABC, abstractmethod
from typing import Any, Optional, Union

from jsonwriter.stream import EncodingError, Stream

_INT_BITS = (8, 16, 32, 64)
_FLOAT_BITS = (32, 64)


def _is_empty_value(value: Any) -> bool:
    """Emptiness as used by omitempty: None, zero, False and empty containers."""
    if value is None:
        return True
    if isinstance(value, (bool, int, float)):
        return value == 0
    if isinstance(value, (str, bytes, bytearray, memoryview, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


class Encoder(ABC):
    """Writes one kind of value to a stream."""

    @abstractmethod
    def encode(self, value: Any, stream: Stream) -> None:
        """Write ``value`` to ``stream`` as JSON."""

    @abstractmethod
    def is_empty(self, value: Any) -> bool:
        """Whether ``value`` counts as empty for omitempty fields."""


class StringCodec(Encoder):
    """Encodes text as a quoted JSON string."""

    def encode(self, value: str, stream: Stream) -> None:
        stream.write_string(value)

    def is_empty(self, value: str) -> bool:
        return value == ""


class IntCodec(Encoder):
    """Encodes an integer of a fixed width and signedness."""

    def __init__(self, bits: int = 64, signed: bool = True):
        if bits not in _INT_BITS:
            raise ValueError(f"unsupported integer width: {bits}")
        self.bits = bits
        self.signed = signed
        name = f"write_{'int' if signed else 'uint'}{bits}"
        self._writer_name = name

    def encode(self, value: int, stream: Stream) -> None:
        getattr(stream, self._writer_name)(value)

    def is_empty(self, value: int) -> bool:
        return value == 0

    def __repr__(self) -> str:
        return f"IntCodec(bits={self.bits}, signed={self.signed})"


class FloatCodec(Encoder):
    """Encodes a float32 or float64, optionally with only six fractional digits."""

    def __init__(self, bits: int = 64, lossy: bool = False):
        if bits not in _FLOAT_BITS:
            raise ValueError(f"unsupported float width: {bits}")
        self.bits = bits
        self.lossy = lossy
        self._writer_name = f"write_float{bits}{'_lossy' if lossy else ''}"

    def encode(self, value: float, stream: Stream) -> None:
        getattr(stream, self._writer_name)(value)

    def is_empty(self, value: float) -> bool:
        return value == 0

    def __repr__(self) -> str:
        return f"FloatCodec(bits={self.bits}, lossy={self.lossy})"


class BoolCodec(Encoder):
    """Encodes a boolean as true or false."""

    def encode(self, value: bool, stream: Stream) -> None:
        stream.write_bool(value)

    def is_empty(self, value: bool) -> bool:
        return not value


class Base64Codec(Encoder):
    """Encodes a byte string as a standard base64 JSON string; None becomes null."""

    def encode(self, value: Optional[Union[bytes, bytearray, memoryview]], stream: Stream) -> None:
        if value is None:
            stream.write_nil()
            return
        encoded = base64.b64encode(bytes(value)).decode("ascii")
        stream.write_raw(f'"{encoded}"')

    def is_empty(self, value: Optional[bytes]) -> bool:
        return value is None or len(value) == 0


class SliceEncoder(Encoder):
    """Encodes a sequence as a JSON array; None becomes null."""

    def __init__(self, elem_encoder: Encoder):
        self.elem_encoder = elem_encoder

    def encode(self, value: Any, stream: Stream) -> None:
        if value is None:
            stream.write_nil()
            return
        items = list(value)
        if not items:
            stream.write_empty_array()
            return
        try:
            stream.write_array_start()
            first, *rest = items
            self.elem_encoder.encode(first, stream)
            for item in rest:
                stream.write_more()
                self.elem_encoder.encode(item, stream)
            stream.write_array_end()
        except EncodingError as err:
            raise EncodingError(f"slice: {err}") from err

    def is_empty(self, value: Any) -> bool:
        return value is None or len(value) == 0


class OptionalEncoder(Encoder):
    """Encodes None as null and anything else with the wrapped encoder."""

    def __init__(self, value_encoder: Encoder):
        self.value_encoder = value_encoder

    def encode(self, value: Any, stream: Stream) -> None:
        if value is None:
            stream.write_nil()
        else:
            self.value_encoder.encode(value, stream)

    def is_empty(self, value: Any) -> bool:
        return value is None


class MarshalerEncoder(Encoder):
    """Writes what a value's ``marshal_json()`` returns, without a trailing newline."""

    def encode(self, value: Any, stream: Stream) -> None:
        if value is None:
            stream.write_nil()
            return
        data = value.marshal_json()
        if isinstance(data, str):
            data = data.encode("utf-8")
        data = bytes(data)
        if data.endswith(b"\n"):
            data = data[:-1]
        stream.write(data)

    def is_empty(self, value: Any) -> bool:
        return _is_empty_value(value)


class TextMarshalerEncoder(Encoder):
    """Writes what a value's ``marshal_text()`` returns as a JSON string."""

    def __init__(self, string_encoder: Optional[Encoder] = None):
        self.string_encoder = string_encoder if string_encoder is not None else StringCodec()

    def encode(self, value: Any, stream: Stream) -> None:
        if value is None:
            stream.write_nil()
            return
        text = value.marshal_text()
        if isinstance(text, (bytes, bytearray, memoryview)):
            text = bytes(text).decode("utf-8", "replace")
        self.string_encoder.encode(text, stream)

    def is_empty(self, value: Any) -> bool:
        return _is_empty_value(value)


_NATIVE_KINDS = {
    "string": StringCodec,
    "int": lambda: IntCodec(64, True),
    "int8": lambda: IntCodec(8, True),
    "int16": lambda: IntCodec(16, True),
    "int32": lambda: IntCodec(32, True),
    "rune": lambda: IntCodec(32, True),
    "int64": lambda: IntCodec(64, True),
    "uint": lambda: IntCodec(64, False),
    "uint8": lambda: IntCodec(8, False),
    "byte": lambda: IntCodec(8, False),
    "uint16": lambda: IntCodec(16, False),
    "uint32": lambda: IntCodec(32, False),
    "uint64": lambda: IntCodec(64, False),
    "uintptr": lambda: IntCodec(64, False),
    "float32": lambda: FloatCodec(32),
    "float64": lambda: FloatCodec(64),
    "bool": BoolCodec,
    "[]byte": Base64Codec,
    "[]uint8": Base64Codec,
    "bytes": Base64Codec,
}

_PYTHON_TYPES = {
    str: "string",
    int: "int",
    float: "float64",
    bool: "bool",
    bytes: "bytes",
    bytearray: "bytes",
}


def native_encoder(kind: Any) -> Optional[Encoder]:
    """The encoder for a native kind name or Python type, or None if it is not native."""
    if isinstance(kind, type):
        kind = _PYTHON_TYPES.get(kind)
        if kind is None:
            return None
    factory = _NATIVE_KINDS.get(kind)
    return factory() if factory is not None else None