"""Encoders for record-like values written as JSON objects."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

from jsonwriter.codecs import Encoder
from jsonwriter.stream import EncodingError, Stream, StreamConfig

_MISSING_EMBEDDED = object()


def _get_member(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name)


class FieldEncoder(Encoder):
    """Encodes one field of a record.

    ``name`` is the attribute (or mapping key) holding the field. A dotted
    name such as ``"inner.value"`` reaches into an embedded record; when an
    embedded record on the way is None, the field is skipped.
    """

    def __init__(self, name: str, encoder: Encoder, omitempty: bool = False):
        self.name = name
        self.encoder = encoder
        self.omitempty = omitempty
        self._path = tuple(name.split("."))

    def _resolve(self, value: Any) -> Any:
        current = value
        *outer, last = self._path
        for part in outer:
            current = _get_member(current, part)
            if current is None:
                return _MISSING_EMBEDDED
        return _get_member(current, last)

    def encode(self, value: Any, stream: Stream) -> None:
        member = self._resolve(value)
        if member is _MISSING_EMBEDDED:
            stream.write_nil()
            return
        try:
            self.encoder.encode(member, stream)
        except EncodingError as err:
            raise EncodingError(f"{self._path[-1]}: {err}") from err

    def is_empty(self, value: Any) -> bool:
        member = self._resolve(value)
        if member is _MISSING_EMBEDDED:
            return True
        return self.encoder.is_empty(member)

    def is_embedded_none(self, value: Any) -> bool:
        """Whether an embedded record on the way to this field is None."""
        return self._resolve(value) is _MISSING_EMBEDDED


@dataclass
class Binding:
    """A record field with the JSON names it is written under.

    ``tagged`` marks a name given explicitly; ``levels`` is the embedding path
    of the field, shorter meaning closer to the top-level record.
    """

    encoder: FieldEncoder
    to_names: Sequence[str]
    tagged: bool = False
    levels: Sequence[int] = field(default_factory=tuple)


def resolve_conflict_binding(old: Binding, new: Binding) -> tuple[bool, bool]:
    """Decide which of two bindings sharing a JSON name to drop.

    Returns ``(ignore_old, ignore_new)``.
    """
    if new.tagged and not old.tagged:
        return True, False
    if old.tagged and not new.tagged:
        return True, False
    if len(old.levels) > len(new.levels):
        return True, False
    if len(new.levels) > len(old.levels):
        return False, True
    return True, True


class StructEncoder(Encoder):
    """Writes a record as a JSON object with fields in a fixed order."""

    def __init__(self, type_name: str, fields: Iterable[tuple[str, FieldEncoder]]):
        self.type_name = type_name
        self.fields = list(fields)

    def encode(self, value: Any, stream: Stream) -> None:
        try:
            stream.write_object_start()
            first = True
            for to_name, encoder in self.fields:
                if encoder.omitempty and encoder.is_empty(value):
                    continue
                if encoder.is_embedded_none(value):
                    continue
                if not first:
                    stream.write_more()
                stream.write_object_field(to_name)
                encoder.encode(value, stream)
                first = False
            stream.write_object_end()
        except EncodingError as err:
            raise EncodingError(f"{self.type_name}.{err}") from err

    def is_empty(self, value: Any) -> bool:
        return False


class EmptyStructEncoder(Encoder):
    """Writes a record without fields as ``{}``."""

    def encode(self, value: Any, stream: Stream) -> None:
        stream.write_empty_object()

    def is_empty(self, value: Any) -> bool:
        return False


class StringModeNumberEncoder(Encoder):
    """Writes a number wrapped in double quotes."""

    def __init__(self, elem_encoder: Encoder):
        self.elem_encoder = elem_encoder

    def encode(self, value: Any, stream: Stream) -> None:
        stream.write_raw('"')
        self.elem_encoder.encode(value, stream)
        stream.write_raw('"')

    def is_empty(self, value: Any) -> bool:
        return self.elem_encoder.is_empty(value)


class StringModeStringEncoder(Encoder):
    """Writes the JSON form of a value again as a JSON string."""

    def __init__(self, elem_encoder: Encoder, config: Optional[StreamConfig] = None):
        self.elem_encoder = elem_encoder
        self.config = config if config is not None else StreamConfig()

    def encode(self, value: Any, stream: Stream) -> None:
        temp = Stream(self.config, None, 0)
        temp.attachment = stream.attachment
        self.elem_encoder.encode(value, temp)
        stream.write_string(temp.buffer().decode("utf-8", "surrogatepass"))

    def is_empty(self, value: Any) -> bool:
        return self.elem_encoder.is_empty(value)


@dataclass
class _BindingTo:
    binding: Binding
    to_name: str
    ignored: bool = False


def encoder_of_struct(type_name: str, bindings: Iterable[Binding]) -> Encoder:
    """Build the encoder for a record from its field bindings."""
    ordered: list[_BindingTo] = []
    for binding in bindings:
        for to_name in binding.to_names:
            new = _BindingTo(binding, to_name)
            for old in ordered:
                if old.to_name != to_name:
                    continue
                old.ignored, new.ignored = resolve_conflict_binding(old.binding, new.binding)
            ordered.append(new)
    if not ordered:
        return EmptyStructEncoder()
    fields = [(b.to_name, b.binding.encoder) for b in ordered if not b.ignored]
    return StructEncoder(type_name, fields)