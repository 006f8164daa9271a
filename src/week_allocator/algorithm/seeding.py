"""
Constructive seeding: fixed meetings first, then nightly sleep, then a
greedy fill of whatever quota is left.

Every function here mutates the schedule in place and keeps the remaining
quota of each obligation in a ``remaining`` dict keyed by obligation id.
The apportioned quota on the obligation itself is left untouched.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

from ..grid.schedule import BlockedSet, Schedule, SlotContent, SlotKind
from ..grid.time_grid import BUCKET_PREDICATES, DAYS, SLOTS_PER_DAY, SLOTS_PER_HOUR, Day, is_night
from .availability import place_chunk
from .models import Obligation

logger = logging.getLogger(__name__)

SLEEP_ANCHOR_HOUR = 22
WAKE_HOUR = 6


@dataclass
class SleepSettings:
    """Nightly sleep placement."""
    hours_per_night: float = 8.0

    @property
    def slots_per_night(self) -> int:
        return int(round(self.hours_per_night * SLOTS_PER_HOUR))


def initial_remaining(obligations: List[Obligation]) -> Dict[str, int]:
    return {o.id: o.target for o in obligations}


def seed_meetings(schedule: Schedule, obligations: List[Obligation], remaining: Dict[str, int]) -> BlockedSet:
    """
    Write every fixed meeting into the grid and freeze its slots.

    A meeting's span is subtracted from the obligation's remaining quota,
    floored at zero. If two meetings overlap, the first one seeded keeps
    the slot.
    """
    blocked = BlockedSet()
    for obligation in obligations:
        for meeting in obligation.meeting_times:
            content = SlotContent(obligation.id, SlotKind.MEETING)
            for slot in range(meeting.start_slot, meeting.end_slot):
                if (meeting.day, slot) in blocked:
                    logger.warning("Meeting of '%s' on %s overlaps slot %d already frozen by '%s'",
                                   obligation.id, meeting.day.label, slot,
                                   schedule.get(meeting.day, slot).owner_id)
                    continue
                schedule.set(meeting.day, slot, content)
                blocked.add(meeting.day, slot)
            remaining[obligation.id] = max(0, remaining[obligation.id] - meeting.span)
    logger.debug("Seeded meetings, %d slots frozen", len(blocked))
    return blocked


def _night_windows(day: Day) -> List[Tuple[Day, range]]:
    """Placement order for the night starting on ``day``."""
    evening_start = SLEEP_ANCHOR_HOUR * SLOTS_PER_HOUR
    wake = WAKE_HOUR * SLOTS_PER_HOUR
    morning = day.next_day()
    return [
        (day, range(evening_start, SLOTS_PER_DAY)),                              # 22:00-24:00
        (morning, range(0, wake)),                                              # 00:00-06:00 next day
        (day, range(evening_start - 1, evening_start - SLOTS_PER_HOUR - 1, -1)),  # back to 21:00
        (morning, range(wake, wake + SLOTS_PER_HOUR)),                          # on to 07:00
    ]


def seed_sleep(schedule: Schedule, blocked: BlockedSet, obligations: List[Obligation],
               remaining: Dict[str, int], settings: SleepSettings = None) -> List[str]:
    """
    Place one night of sleep per day for every sleep obligation and freeze it.

    Sleep is anchored at 22:00 and runs into the next morning, Sunday night
    wrapping into Monday. Returns a message for every night that could not
    reach its target because of fixed meetings.
    """
    settings = settings or SleepSettings()
    nightly = settings.slots_per_night
    shortfalls = []

    for obligation in obligations:
        if not obligation.is_sleep:
            continue
        content = SlotContent(obligation.id, SlotKind.SLEEP)
        for day in DAYS:
            placed = 0
            for window_day, slots in _night_windows(day):
                for slot in slots:
                    if placed >= nightly:
                        break
                    if (window_day, slot) in blocked or not schedule.is_empty(window_day, slot):
                        continue
                    schedule.set(window_day, slot, content)
                    blocked.add(window_day, slot)
                    placed += 1
            if placed < nightly:
                message = (f"Sleep '{obligation.id}' got {placed} of {nightly} slots "
                           f"on the night of {day.label}")
                logger.warning(message)
                shortfalls.append(message)
        # sleep is never revisited after seeding
        remaining[obligation.id] = 0
    return shortfalls


def greedy_fill(schedule: Schedule, blocked: BlockedSet, obligations: List[Obligation],
                remaining: Dict[str, int]):
    """
    Fill leftover quota in chunks, preferred buckets first, then any
    daytime slot the availability policy allows.
    """
    for obligation in obligations:
        need = remaining[obligation.id]
        if need <= 0:
            continue
        chunk = obligation.chunk_size
        for bucket in obligation.search_buckets:
            if need <= 0:
                break
            in_bucket = BUCKET_PREDICATES[bucket]
            for day in DAYS:
                for slot in range(SLOTS_PER_DAY):
                    if need <= 0:
                        break
                    if not in_bucket(slot):
                        continue
                    length = min(chunk, need)
                    if place_chunk(schedule, obligation, day, slot, length, blocked):
                        need -= length
                if need <= 0:
                    break
        remaining[obligation.id] = need

    # fallback pass ignores preferences but still keeps non-night obligations out of the night
    for obligation in obligations:
        need = remaining[obligation.id]
        if need <= 0:
            continue
        chunk = obligation.chunk_size
        from_night = obligation.is_sleep or obligation.prefers_night
        for day in DAYS:
            for slot in range(SLOTS_PER_DAY):
                if need <= 0:
                    break
                if is_night(slot) and not from_night:
                    continue
                length = min(chunk, need)
                if place_chunk(schedule, obligation, day, slot, length, blocked):
                    need -= length
            if need <= 0:
                break
        remaining[obligation.id] = need

    unmet = {oid: need for oid, need in remaining.items() if need > 0}
    if unmet:
        logger.debug("Greedy fill left quota unmet: %s", unmet)
