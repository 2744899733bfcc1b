"""Conversion between native scalars and their textual wire form."""

import math
import re
from datetime import datetime
from enum import Enum
from typing import Any, NamedTuple, Union

from messaging_sdk.codecs.temporal import (
    format_datetime,
    parse_datetime,
    require_offset,
)
from messaging_sdk.exceptions import MalformedValue, ValidationError

Scalar = Union[str, int, float, bool, datetime]

_INTEGER = re.compile(r"[+-]?\d+", re.ASCII)
_FLOAT = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


class ValueKind(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATETIME = "datetime"


def kind_of(value: Any) -> ValueKind:
    """Return the kind of a native value. ``bool`` wins over ``int``."""
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, datetime):
        return ValueKind.DATETIME
    raise ValidationError(
        f"Unsupported value type {type(value).__name__}; "
        "expected str, int, float, bool or datetime"
    )


class TypedValue(NamedTuple):
    """A scalar together with the kind it was created as."""

    kind: ValueKind
    value: Scalar

    @classmethod
    def of(cls, value: Any) -> "TypedValue":
        kind = kind_of(value)
        if kind is ValueKind.FLOAT and not math.isfinite(value):
            raise ValidationError(f"Non-finite float {value!r} cannot be sent")
        if kind is ValueKind.DATETIME:
            require_offset(value)
        return cls(kind, value)


def encode(value: Any) -> str:
    """Encode a native scalar into its wire string."""
    typed = TypedValue.of(value)
    if typed.kind is ValueKind.BOOLEAN:
        return "true" if typed.value else "false"
    if typed.kind is ValueKind.FLOAT:
        return repr(typed.value)
    if typed.kind is ValueKind.DATETIME:
        return format_datetime(typed.value)  # type: ignore[arg-type]
    return str(typed.value)


def decode(raw: str, kind: ValueKind) -> Scalar:
    """Decode a wire string as ``kind``.

    Raises:
        MalformedValue: if ``raw`` is not a valid rendering of ``kind``.
            Nothing is coerced to a default.
        ValidationError: if ``kind`` is not a known value kind.
    """
    try:
        kind = ValueKind(kind)
    except ValueError as e:
        raise ValidationError(f"Unknown value kind {kind!r}") from e
    if not isinstance(raw, str):
        raise MalformedValue(raw, kind.value, "expected a string")

    if kind is ValueKind.STRING:
        return raw
    if kind is ValueKind.BOOLEAN:
        if raw == "true":
            return True
        if raw == "false":
            return False
        raise MalformedValue(raw, kind.value)
    if kind is ValueKind.INTEGER:
        if not _INTEGER.fullmatch(raw):
            raise MalformedValue(raw, kind.value)
        try:
            return int(raw)
        except ValueError as e:
            # Digit strings past the interpreter's conversion limit
            raise MalformedValue(raw, kind.value, str(e)) from e
    if kind is ValueKind.FLOAT:
        if not _FLOAT.fullmatch(raw):
            raise MalformedValue(raw, kind.value)
        number = float(raw)
        if not math.isfinite(number):
            raise MalformedValue(raw, kind.value, "out of range")
        return number
    return parse_datetime(raw)
