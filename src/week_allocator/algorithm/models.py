"""
Input model for the weekly allocator: categories, obligations and their
fixed weekly meeting times.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..exceptions import InvalidInputError
from ..grid.schedule import SlotKind
from ..grid.time_grid import (
    ALL_BUCKETS,
    SLOTS_PER_DAY,
    SLOTS_PER_HOUR,
    Day,
    TimeBucket,
    hhmm_to_slot,
    validate_hhmm,
)

MAX_CHUNK_SLOTS = 4  # greedy and mutation chunks never exceed one hour


def round_half_up(value: float) -> int:
    """Round halves upwards; the builtin round() rounds halves to even."""
    return int(math.floor(value + 0.5))


@dataclass
class MeetingTime:
    """A fixed weekly occurrence, e.g. a class on Monday 08:00-09:00."""
    day: Day
    start: int  # HHMM
    end: int    # HHMM, 2400 allowed for midnight

    def __post_init__(self):
        self.day = Day.parse(self.day)
        validate_hhmm(self.start)
        validate_hhmm(self.end, allow_midnight_end=True)

    @property
    def start_slot(self) -> int:
        return min(SLOTS_PER_DAY, hhmm_to_slot(self.start))

    @property
    def end_slot(self) -> int:
        return min(SLOTS_PER_DAY, hhmm_to_slot(self.end))

    @property
    def span(self) -> int:
        """Number of slots covered. A malformed interval (end <= start) covers none."""
        return max(0, self.end_slot - self.start_slot)


@dataclass
class Obligation:
    """Something that competes for time in the week."""
    id: str
    name: str
    relative_priority: float
    max_stretch: float  # maximum contiguous hours
    preferred_time_blocks: Tuple[TimeBucket, ...] = ()
    dependency_ids: List[str] = field(default_factory=list)  # advisory only
    meeting_times: List[MeetingTime] = field(default_factory=list)
    is_sleep: Optional[bool] = None  # None means inherit from the category

    # Computed during apportionment
    blocks_required: int = 0
    remainder: float = 0.0

    def __post_init__(self):
        if not self.id:
            raise InvalidInputError("Obligation id must be a non-empty string")
        if self.max_stretch < 0:
            raise InvalidInputError(f"Obligation {self.id}: max_stretch must be non-negative")
        buckets = []
        for bucket in self.preferred_time_blocks:
            parsed = TimeBucket.parse(bucket)
            if parsed not in buckets:
                buckets.append(parsed)
        self.preferred_time_blocks = tuple(buckets)
        self.meeting_times = [
            mt if isinstance(mt, MeetingTime) else MeetingTime(**mt) for mt in self.meeting_times
        ]

    @property
    def has_meetings(self) -> bool:
        return bool(self.meeting_times)

    @property
    def target(self) -> int:
        """Apportioned weekly quota, never negative."""
        return max(0, self.blocks_required)

    def prefers(self, bucket: TimeBucket) -> bool:
        return bucket in self.preferred_time_blocks

    @property
    def prefers_night(self) -> bool:
        return self.prefers(TimeBucket.NIGHT)

    @property
    def search_buckets(self) -> Tuple[TimeBucket, ...]:
        """Buckets tried by the greedy fill; no preference means all of them."""
        return self.preferred_time_blocks or ALL_BUCKETS

    @property
    def max_run(self) -> int:
        """Longest contiguous run allowed, in slots."""
        return max(1, round_half_up(self.max_stretch * SLOTS_PER_HOUR))

    @property
    def chunk_size(self) -> int:
        return min(self.max_run, MAX_CHUNK_SLOTS)

    @property
    def placement_kind(self) -> SlotKind:
        """Kind written when the engine (not a meeting) places this obligation."""
        if self.is_sleep:
            return SlotKind.SLEEP
        if self.has_meetings:
            return SlotKind.STUDY
        return SlotKind.GENERAL


@dataclass
class Category:
    """A weighted group of obligations. ``is_sleep`` marks its children as sleep."""
    id: str
    name: str
    priority: float
    children: List[Obligation] = field(default_factory=list)
    is_sleep: bool = False

    def __post_init__(self):
        for child in self.children:
            if child.is_sleep is None:
                child.is_sleep = bool(self.is_sleep)
