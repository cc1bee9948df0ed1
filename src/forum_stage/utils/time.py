"""Time utilities shared by models and services."""

from datetime import UTC, datetime


def now_ms() -> int:
    """Return the current UTC time in epoch milliseconds."""
    return int(datetime.now(UTC).timestamp() * 1000)


def to_iso_string(timestamp_ms: int | float | str | None) -> str | None:
    """Format an epoch-millisecond timestamp as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    if timestamp_ms is None or timestamp_ms == "":
        return None
    moment = datetime.fromtimestamp(float(timestamp_ms) / 1000, tz=UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"
