"""
Slot arithmetic for the weekly grid.

A week is seven days of 96 fifteen-minute slots. Everything here is a pure
function of a slot index (or an HHMM integer), so the masks below are built
once at import time and shared read-only.
"""

from enum import Enum, IntEnum
from typing import Dict, Iterable

import numpy as np

from ..exceptions import InvalidTimeError, UnknownDayError, UnknownTimeBucketError

MINUTES_PER_SLOT = 15
SLOTS_PER_HOUR = 60 // MINUTES_PER_SLOT  # 4
SLOTS_PER_DAY = 24 * SLOTS_PER_HOUR  # 96
NUM_DAYS = 7
TOTAL_SLOTS = NUM_DAYS * SLOTS_PER_DAY  # 672


class Day(IntEnum):
    """Weekday, ordered Monday first. Sunday's next day is Monday."""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def label(self) -> str:
        return self.name.lower()

    def next_day(self) -> "Day":
        return Day((self.value + 1) % NUM_DAYS)

    @classmethod
    def parse(cls, value) -> "Day":
        """Accept a Day, an index 0-6 or a (case-insensitive) day name."""
        if isinstance(value, Day):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            if 0 <= value < NUM_DAYS:
                return cls(value)
            raise UnknownDayError(f"Day index out of range: {value}")
        if isinstance(value, str):
            key = value.strip().upper()
            if key in cls.__members__:
                return cls[key]
        raise UnknownDayError(f"Unknown day: {value!r}")


DAYS = list(Day)


class TimeBucket(str, Enum):
    """Named time-of-day windows used for preferences."""
    MORNING = "morning"      # 06:00-12:00
    AFTERNOON = "afternoon"  # 12:00-17:00
    EVENING = "evening"      # 17:00-22:00
    NIGHT = "night"          # 22:00-06:00

    @classmethod
    def parse(cls, value) -> "TimeBucket":
        if isinstance(value, TimeBucket):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownTimeBucketError(f"Unknown time block: {value!r}")


ALL_BUCKETS = (TimeBucket.MORNING, TimeBucket.AFTERNOON, TimeBucket.EVENING, TimeBucket.NIGHT)


def validate_hhmm(value: int, allow_midnight_end: bool = False) -> int:
    """Check an HHMM integer is a real clock time. 2400 is only allowed as an end time."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidTimeError(f"HHMM time must be an integer, got {value!r}")
    if allow_midnight_end and value == 2400:
        return value
    hours, minutes = divmod(value, 100)
    if value < 0 or hours > 23 or minutes > 59:
        raise InvalidTimeError(f"HHMM time out of range: {value}")
    return value


def hhmm_to_slot(hhmm: int) -> int:
    """Convert HHMM to a slot index, truncating minutes to the enclosing quarter hour."""
    hours, minutes = divmod(hhmm, 100)
    return hours * SLOTS_PER_HOUR + minutes // MINUTES_PER_SLOT


def slot_hour(slot: int) -> int:
    return slot // SLOTS_PER_HOUR


def slot_minute(slot: int) -> int:
    return (slot % SLOTS_PER_HOUR) * MINUTES_PER_SLOT


def slot_to_hhmm(slot: int) -> int:
    return slot_hour(slot) * 100 + slot_minute(slot)


def slot_to_label(slot: int) -> str:
    """Human label for a slot start, e.g. 0 -> '12:00 AM', 54 -> '1:30 PM'."""
    hour = slot_hour(slot)
    minute = slot_minute(slot)
    hour_12 = (hour + 11) % 12 + 1
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour_12}:{minute:02d} {suffix}"


def is_morning(slot: int) -> bool:
    return 6 <= slot_hour(slot) < 12


def is_afternoon(slot: int) -> bool:
    return 12 <= slot_hour(slot) < 17


def is_evening(slot: int) -> bool:
    return 17 <= slot_hour(slot) < 22


def is_night(slot: int) -> bool:
    hour = slot_hour(slot)
    return hour >= 22 or hour < 6


def is_daytime(slot: int) -> bool:
    """06:00-20:00, the window every non-sleep obligation may use."""
    return 6 <= slot_hour(slot) < 20


def is_evening_border(slot: int) -> bool:
    """20:00-22:00, only open to evening-preferring obligations."""
    return 20 <= slot_hour(slot) < 22


BUCKET_PREDICATES = {
    TimeBucket.MORNING: is_morning,
    TimeBucket.AFTERNOON: is_afternoon,
    TimeBucket.EVENING: is_evening,
    TimeBucket.NIGHT: is_night,
}


def bucket_for_slot(slot: int) -> TimeBucket:
    for bucket in (TimeBucket.MORNING, TimeBucket.AFTERNOON, TimeBucket.EVENING):
        if BUCKET_PREDICATES[bucket](slot):
            return bucket
    return TimeBucket.NIGHT


def _mask(predicate) -> np.ndarray:
    mask = np.array([predicate(i) for i in range(SLOTS_PER_DAY)], dtype=bool)
    mask.setflags(write=False)
    return mask


BUCKET_MASKS: Dict[TimeBucket, np.ndarray] = {
    bucket: _mask(predicate) for bucket, predicate in BUCKET_PREDICATES.items()
}
NIGHT_MASK = BUCKET_MASKS[TimeBucket.NIGHT]
DAYTIME_MASK = _mask(is_daytime)
EVENING_BORDER_MASK = _mask(is_evening_border)


def buckets_mask(buckets: Iterable[TimeBucket]) -> np.ndarray:
    """Union of the bucket masks (length 96) for a set of buckets."""
    mask = np.zeros(SLOTS_PER_DAY, dtype=bool)
    for bucket in buckets:
        mask |= BUCKET_MASKS[bucket]
    return mask
