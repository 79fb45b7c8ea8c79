# jsonwriter

`jsonwriter` writes JSON text through a buffered `Stream` with one call for
each token: object and array delimiters, field names, integers of fixed width,
floats, booleans, `null` and strings. On top of the stream sit small encoders
that turn Python values into JSON: native values, byte strings as base64,
sequences, optional values, objects that produce their own JSON or text, and
records described by field bindings.

The package has three modules:

- `jsonwriter.stream` – `Stream`, `StreamConfig` and `EncodingError`
- `jsonwriter.codecs` – the `Encoder` base class, value encoders and `native_encoder`
- `jsonwriter.structs` – `Binding`, `FieldEncoder`, `StructEncoder` and `encoder_of_struct`

## Installing

```
pip install .
```

To run the tests, install the `test` extra and run `pytest`:

```
pip install ".[test]"
pytest
```

## Writing with a stream

```python
from jsonwriter.stream import Stream, StreamConfig

stream = Stream(StreamConfig(indention_step=2), None, 64)
stream.write_object_start()
stream.write_object_field("hello")
stream.write_int(1)
stream.write_more()
stream.write_object_field("world")
stream.write_int(2)
stream.write_object_end()

print(stream.buffer().decode())
# {
#   "hello": 1,
#   "world": 2
# }
```

`Stream(config, out, buf_size)` takes a `StreamConfig` (default: no
indentation), an optional writer and an initial buffer size. With no `out`,
read the result from `stream.buffer()`. When `out` is an object with a
`write(bytes)` method, `stream.flush()` hands it the buffered bytes and empties
the buffer; `stream.write(data)` appends bytes and passes the whole buffer on
to `out` at once. `reset(out)` reuses a stream with a new writer,
`buffered()` and `available()` report how the buffer is used, and
`write_raw(text)` appends text without quoting.

Integers are written with `write_int8` … `write_int64`, `write_uint8` …
`write_uint64`, `write_int` and `write_uint`; a value outside the range of the
chosen width raises `EncodingError`.

`write_float64` and `write_float32` write the shortest text that reads back to
the same value of that width, and switch to exponent form (such as `1e+21`)
below `1e-6` and from `1e21` up. `write_float32_lossy` and
`write_float64_lossy` round to at most six decimal places. Infinity and NaN
cannot be written and raise `EncodingError`.

`write_string` escapes quotes, backslashes and control characters.
`write_string_with_html_escaped` also escapes `<`, `>`, `&`, U+2028 and
U+2029, and writes `\ufffd` in place of lone surrogate code points.

## Encoders

Every encoder has `encode(value, stream)` and `is_empty(value)`.

```python
from jsonwriter.codecs import Base64Codec, IntCodec, SliceEncoder
from jsonwriter.stream import Stream, StreamConfig

stream = Stream(StreamConfig(), None, 32)
SliceEncoder(IntCodec(64, True)).encode([1, 2, 3], stream)
stream.write_more()
Base64Codec().encode(b"\x01\x02\x03", stream)
print(stream.buffer().decode())   # [1,2,3],"AQID"
```

- `StringCodec`, `BoolCodec`, `IntCodec(bits, signed)` and
  `FloatCodec(bits, lossy)` write native values.
- `Base64Codec` writes bytes as a standard base64 string, and `None` as `null`.
- `SliceEncoder(elem_encoder)` writes a sequence as an array, and `None` as `null`.
- `OptionalEncoder(value_encoder)` writes `None` as `null` and anything else
  with the wrapped encoder.
- `MarshalerEncoder` writes what a value's `marshal_json()` returns, less one
  trailing newline.
- `TextMarshalerEncoder(string_encoder)` writes what a value's
  `marshal_text()` returns as a JSON string.

`native_encoder(kind)` picks the encoder for a kind name such as `"string"`,
`"int32"`, `"uint64"`, `"float64"`, `"bool"` or `"bytes"`, or for a Python
type such as `int`, `str` or `bytes`; it returns `None` for anything else.

## Records

A record is described by `Binding` objects, each holding a `FieldEncoder` and
the JSON names it is written under. A field is read by attribute, or by key
from a mapping; a dotted name reaches into an embedded record, and the field
is left out when an embedded record on the way is `None`.

```python
from jsonwriter.codecs import IntCodec, StringCodec
from jsonwriter.stream import Stream
from jsonwriter.structs import Binding, FieldEncoder, encoder_of_struct

encoder = encoder_of_struct("Person", [
    Binding(FieldEncoder("name", StringCodec()), ["name"]),
    Binding(FieldEncoder("age", IntCodec(32, True), omitempty=True), ["age"]),
])
stream = Stream()
encoder.encode({"name": "Ada", "age": 0}, stream)
print(stream.buffer().decode())   # {"name":"Ada"}
```

Fields marked `omitempty` are left out when empty. When two bindings share a
JSON name, `resolve_conflict_binding(old, new)` decides which to drop: a
tagged binding wins over an untagged one, then the one with fewer embedding
`levels`; if they still tie, both are dropped. A record with no bindings is
written as `{}`. Errors raised while writing a field are re-raised as
`EncodingError` with the record and field name in front.

`StringModeNumberEncoder` writes a number inside double quotes, and
`StringModeStringEncoder` writes the JSON form of a value once more as a JSON
string.

## What it does not do

`jsonwriter` only writes JSON. It does not read or parse JSON text, and it
does not inspect arbitrary Python objects to find an encoder for them: the
encoders for sequences, optional values and records are put together by the
caller. There is no command-line program.