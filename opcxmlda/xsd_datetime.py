"""Lenient codec for xsd:dateTime wire values.

OPC XML-DA servers disagree on how they write timestamps: some omit the
zone designator, some send date-only or time-only values, and some send the
zero date (0001-01-01T00:00:00Z) to mean "not set". Values without a zone
are read as UTC; the zero date collapses to the zero value, which formats
to None so callers can omit the field.
"""

import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta, timezone

from opcxmlda.errors import XsdDateTimeError

ZERO_DATE_SENTINEL = "0001-01-01T00:00:00Z"

_ZERO_NAIVE = datetime(1, 1, 1)

_ZONE = r"(?P<zone>Z|[+-]\d{2}:\d{2})?"
_TIME = r"(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})(?:\.(?P<fraction>\d+))?"
_DATE = r"(?P<year>\d{4,})-(?P<month>\d{2})-(?P<day>\d{2})"

DATETIME_PATTERN = re.compile(rf"^{_DATE}T{_TIME}{_ZONE}$")
DATE_PATTERN = re.compile(rf"^{_DATE}{_ZONE}$")
TIME_PATTERN = re.compile(rf"^{_TIME}{_ZONE}$")


@dataclass(frozen=True)
class XsdDateTime:
    """An instant plus whether the wire value carried its own zone.

    instant is None for the zero value.
    """

    instant: datetime | None = None
    has_explicit_zone: bool = True

    def __post_init__(self) -> None:
        instant = self.instant
        if instant is None:
            return
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        if instant.utcoffset() == timedelta(0) and instant.replace(tzinfo=None) == _ZERO_NAIVE:
            instant = None
        object.__setattr__(self, "instant", instant)

    @property
    def is_zero(self) -> bool:
        return self.instant is None


def parse_xsd_datetime(value: str) -> XsdDateTime:
    """Parse an xsd:dateTime wire value.

    Args:
        value: Attribute text as sent by the server

    Returns:
        The parsed value; the zero value for "" and the zero-date sentinel

    Raises:
        XsdDateTimeError: If the text is not a recognised date/time form
    """
    if value == "":
        return XsdDateTime()

    has_zone = False
    text = value
    if "T" in text:
        _, time_part = text.split("T", 1)
        if "Z" in time_part or "+" in time_part or "-" in time_part:
            has_zone = True
        if not has_zone:
            text += "Z"
        if text == ZERO_DATE_SENTINEL:
            return XsdDateTime()
        match = DATETIME_PATTERN.match(text)
    else:
        # A bare colon counts as a zone marker; servers rely on it.
        if "Z" in text or ":" in text:
            has_zone = True
        if not has_zone:
            text += "Z"
        match = DATE_PATTERN.match(text) or TIME_PATTERN.match(text)

    if match is None:
        raise XsdDateTimeError(value)

    try:
        instant = _build_instant(match.groupdict())
    except (ValueError, OverflowError) as e:
        raise XsdDateTimeError(value, str(e)) from e
    return XsdDateTime(instant=instant, has_explicit_zone=has_zone)


def format_xsd_datetime(value: XsdDateTime) -> str | None:
    """Format a value for the wire, or None when it is the zero value."""
    instant = value.instant
    if instant is None:
        return None

    text = (
        f"{instant.year:04d}-{instant.month:02d}-{instant.day:02d}"
        f"T{instant.hour:02d}:{instant.minute:02d}:{instant.second:02d}"
    )
    if instant.microsecond:
        text += f".{instant.microsecond:06d}".rstrip("0")
    return text + _format_zone(instant.utcoffset())


def _build_instant(parts: dict[str, str | None]) -> datetime:
    if parts.get("year") is not None:
        day = date(int(parts["year"]), int(parts["month"]), int(parts["day"]))  # type: ignore[arg-type]
    else:
        day = date(1, 1, 1)

    fraction = parts.get("fraction") or ""
    microsecond = int(fraction[:6].ljust(6, "0")) if fraction else 0

    return datetime(
        day.year,
        day.month,
        day.day,
        int(parts.get("hour") or 0),
        int(parts.get("minute") or 0),
        int(parts.get("second") or 0),
        microsecond,
        tzinfo=_parse_zone(parts.get("zone")),
    )


def _parse_zone(zone: str | None) -> timezone:
    if not zone or zone == "Z":
        return UTC
    sign = -1 if zone[0] == "-" else 1
    hours, minutes = zone[1:].split(":")
    offset = timedelta(hours=int(hours), minutes=int(minutes))
    if offset == timedelta(0):
        return UTC
    return timezone(sign * offset)


def _format_zone(offset: timedelta | None) -> str:
    if not offset:
        return "Z"
    sign = "-" if offset < timedelta(0) else "+"
    total_minutes = abs(int(offset.total_seconds())) // 60
    return f"{sign}{total_minutes // 60:02d}:{total_minutes % 60:02d}"
