"""
Common Value Objects

Value objects used across the scheduling and reservation domains:
- TimeSlot: half-open range of local times of day (free/busy slots)
"""

from dataclasses import dataclass
from datetime import time

from shared.domain.base import ValueObject


def seconds_of_day(value: time) -> int:
    """Whole seconds since midnight; sub-second residue is dropped."""
    return value.hour * 3600 + value.minute * 60 + value.second


@dataclass(frozen=True, order=True)
class TimeSlot(ValueObject):
    """
    Time-of-day slot value object

    A half-open ``[start, end)`` range inside a single calendar day,
    truncated to whole seconds. Zero-width slots cannot be built.
    """
    start: time
    end: time

    def __post_init__(self):
        object.__setattr__(self, 'start', self.start.replace(microsecond=0, tzinfo=None))
        object.__setattr__(self, 'end', self.end.replace(microsecond=0, tzinfo=None))
        if self.start >= self.end:
            raise ValueError(f"Slot start ({self.start}) must be before end ({self.end})")

    @classmethod
    def build(cls, start: time, end: time) -> 'TimeSlot | None':
        """Return a slot, or None when the range is empty after truncation."""
        if start.replace(microsecond=0) >= end.replace(microsecond=0):
            return None
        return cls(start, end)

    @property
    def seconds(self) -> int:
        return seconds_of_day(self.end) - seconds_of_day(self.start)

    @property
    def minutes(self) -> int:
        return self.seconds // 60

    def to_dict(self) -> dict[str, str]:
        return {
            'start_time': self.start.strftime('%H:%M:%S'),
            'end_time': self.end.strftime('%H:%M:%S'),
        }

    def __str__(self):
        return f"{self.start:%H:%M:%S}-{self.end:%H:%M:%S}"
