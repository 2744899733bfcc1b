# Wire codecs for scalar and temporal values
from .temporal import format_datetime, parse_datetime
from .typed_value import TypedValue, ValueKind, decode, encode, kind_of

__all__ = [
    "TypedValue",
    "ValueKind",
    "decode",
    "encode",
    "kind_of",
    "format_datetime",
    "parse_datetime",
]
