from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo


@dataclass(frozen=True)
class Interval:
    start: datetime
    end: datetime

    @staticmethod
    def validated(start: datetime, end: datetime) -> "Interval":
        if start.tzinfo is None or end.tzinfo is None:
            raise ValueError("Interval instants must be timezone-aware.")
        if start >= end:
            raise ValueError("Interval start time must be earlier than end time.")
        return Interval(start, end)

    @property
    def is_empty(self) -> bool:
        return self.start >= self.end

    def overlaps(self, other: "Interval") -> bool:
        """Return True when the two half-open ranges share at least one instant.

        Touching boundaries (e.g. 09:00-10:00 and 10:00-11:00) do not overlap.
        """
        return has_time_overlap(self.start, self.end, other.start, other.end)

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


def has_time_overlap(new_start: datetime, new_end: datetime, exist_start: datetime, exist_end: datetime) -> bool:
    return new_start < exist_end and exist_start < new_end


def parse_instant(text: str, default_tz: tzinfo) -> datetime:
    """Parse an ISO-8601 timestamp, attaching ``default_tz`` to naive values."""
    raw = str(text).strip()
    if not raw:
        raise ValueError("Timestamp must not be empty.")
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        value = datetime.fromisoformat(raw)
    except ValueError as error:
        raise ValueError(f"Invalid timestamp: {text!r}") from error
    if value.tzinfo is None:
        value = value.replace(tzinfo=default_tz)
    return value
