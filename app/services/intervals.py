from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta


def as_utc(value: datetime) -> datetime:
    # SQLite returns naive datetimes; everything stored is UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def at_time(day: date, value: time) -> datetime:
    return datetime.combine(day, value, tzinfo=UTC)


def day_bounds(day: date) -> "TimeInterval":
    start = at_time(day, time.min)
    return TimeInterval(start, start + timedelta(days=1))


@dataclass(frozen=True)
class TimeInterval:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_utc(self.start))
        object.__setattr__(self, "end", as_utc(self.end))
        if self.end <= self.start:
            raise ValueError(f"Interval end {self.end.isoformat()} must be after start {self.start.isoformat()}")

    @classmethod
    def from_duration(cls, start: datetime, minutes: int) -> "TimeInterval":
        return cls(start, as_utc(start) + timedelta(minutes=minutes))

    @property
    def minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeInterval") -> bool:
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"[{self.start.isoformat()}, {self.end.isoformat()})"


def has_conflict(intervals: Iterable[TimeInterval], candidate: TimeInterval) -> bool:
    return any(interval.overlaps(candidate) for interval in intervals)
