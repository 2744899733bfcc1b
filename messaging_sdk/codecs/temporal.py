"""ISO-8601 timestamps that keep the UTC offset they were written with.

A scheduled message's ``sendTime`` is echoed back by the service, so the
offset the caller chose has to survive the round trip instead of being
normalised to UTC or local time.
"""

import re
from datetime import datetime, timedelta, timezone

from messaging_sdk.exceptions import MalformedValue, ValidationError

DATETIME_KIND = "datetime"

_ISO_DATETIME = re.compile(
    r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"T(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<offset>Z|[+-]\d{2}:?\d{2})",
    re.ASCII,
)


def _format_offset(offset: timedelta) -> str:
    seconds = int(offset.total_seconds())
    sign = "-" if seconds < 0 else "+"
    hours, remainder = divmod(abs(seconds), 3600)
    minutes = remainder // 60
    return f"{sign}{hours:02d}:{minutes:02d}"


def _parse_offset(raw: str, text: str) -> timezone:
    if text == "Z":
        return timezone.utc
    sign = -1 if text[0] == "-" else 1
    digits = text[1:].replace(":", "")
    hours, minutes = int(digits[:2]), int(digits[2:])
    if minutes >= 60:
        raise MalformedValue(raw, DATETIME_KIND, "offset minutes out of range")
    try:
        return timezone(sign * timedelta(hours=hours, minutes=minutes))
    except ValueError as e:
        raise MalformedValue(raw, DATETIME_KIND, str(e)) from e


def require_offset(value: datetime) -> timedelta:
    """Return the UTC offset of ``value`` if it can be written as ``+HH:MM``.

    Raises:
        ValidationError: if ``value`` is naive or its offset has seconds.
    """
    offset = value.utcoffset()
    if offset is None:
        raise ValidationError(f"Datetime {value!r} has no UTC offset")
    if offset.total_seconds() % 60:
        raise ValidationError(f"UTC offset {offset} is not a whole number of minutes")
    return offset


def format_datetime(value: datetime) -> str:
    """Format an aware datetime as e.g. ``2018-04-12T13:27:50+02:00``."""
    offset = require_offset(value)

    timespec = "microseconds" if value.microsecond else "seconds"
    return value.replace(tzinfo=None).isoformat(timespec=timespec) + _format_offset(
        offset
    )


def parse_datetime(raw: str) -> datetime:
    """Parse an ISO-8601 timestamp, keeping its offset as a fixed timezone."""
    if not isinstance(raw, str):
        raise MalformedValue(raw, DATETIME_KIND, "expected a string")

    match = _ISO_DATETIME.fullmatch(raw)
    if not match:
        raise MalformedValue(raw, DATETIME_KIND)

    tzinfo = _parse_offset(raw, match.group("offset"))
    # .NET style servers send seven fractional digits
    fraction = (match.group("fraction") or "0")[:6].ljust(6, "0")
    try:
        return datetime(
            int(match.group("year")),
            int(match.group("month")),
            int(match.group("day")),
            int(match.group("hour")),
            int(match.group("minute")),
            int(match.group("second")),
            int(fraction),
            tzinfo=tzinfo,
        )
    except ValueError as e:
        raise MalformedValue(raw, DATETIME_KIND, str(e)) from e
