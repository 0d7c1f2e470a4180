"""Shared UTC timestamp helpers."""

from __future__ import annotations

from datetime import UTC, date, datetime, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utc_now() -> datetime:
    """Return current UTC time with second precision."""
    return datetime.now(UTC).replace(microsecond=0)


def iso_z(value: datetime) -> str:
    """Format a datetime as ISO-8601 with trailing Z in UTC."""
    normalized = value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)
    return normalized.isoformat().replace("+00:00", "Z")


def parse_iso_z(value: str | None) -> datetime | None:
    """Parse an ISO timestamp and normalize to UTC."""
    if not value:
        return None
    raw = value.strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _is_date_only(raw: str) -> bool:
    return len(raw) == 10 and raw[4] == "-" and raw[7] == "-"


def local_datetime(value: str | None, tz: tzinfo = UTC) -> datetime | None:
    """Parse an ISO timestamp and convert it into `tz`."""
    parsed = parse_iso_z(value)
    if parsed is None:
        return None
    return parsed.astimezone(tz)


def calendar_date(value: str | None, tz: tzinfo = UTC) -> date | None:
    """Return the calendar day of a timestamp in `tz`.

    Date-only strings (`YYYY-MM-DD`) carry no time of day, so they map to
    themselves regardless of timezone.
    """
    if not value:
        return None
    raw = value.strip()
    if _is_date_only(raw):
        try:
            return date.fromisoformat(raw)
        except ValueError:
            return None
    parsed = local_datetime(raw, tz)
    return parsed.date() if parsed is not None else None


def resolve_timezone(name: str | None) -> tzinfo:
    """Resolve an IANA timezone name; blank means UTC."""
    key = (name or "").strip()
    if not key or key.upper() == "UTC":
        return UTC
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"unknown timezone: {key}") from exc
