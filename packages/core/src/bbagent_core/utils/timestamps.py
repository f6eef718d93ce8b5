from __future__ import annotations

from datetime import datetime, timezone


def parse_iso(value: str) -> datetime:
    """Parse an API timestamp; naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def relative_time(iso_date: str, now: datetime | None = None) -> str:
    """Return a short age such as ``"2m ago"``, ``"3h ago"`` or ``"just now"``."""
    now = now or datetime.now(timezone.utc)
    seconds = int((now - parse_iso(iso_date)).total_seconds())

    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    for amount, unit in ((days // 365, "y"), (days // 30, "mo"), (days // 7, "w"), (days, "d"), (hours, "h"), (minutes, "m")):
        if amount > 0:
            return f"{amount}{unit} ago"
    return "just now"


def format_timestamp(iso_date: str, now: datetime | None = None) -> str:
    """``"2h ago (2024-01-12T14:22:00Z)"``: relative age plus the value as received."""
    return f"{relative_time(iso_date, now)} ({iso_date})"
