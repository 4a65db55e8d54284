from __future__ import annotations

from datetime import datetime, timezone


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_period(period: str) -> tuple[datetime, datetime]:
    if "/" not in period:
        raise ValueError("period must be start/end")
    start_text, end_text = period.split("/", 1)
    start = _as_utc(datetime.fromisoformat(start_text.replace("Z", "+00:00")))
    end = _as_utc(datetime.fromisoformat(end_text.replace("Z", "+00:00")))
    if not end > start:
        raise ValueError("period end must be greater than start")
    return start, end


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def isoformat_z(value: datetime | None) -> str | None:
    if value is None:
        return None
    return _as_utc(value).isoformat().replace("+00:00", "Z")
