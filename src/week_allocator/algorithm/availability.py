"""
Slot availability and chunk placement shared by the seeder, the mutation
operator and the repair passes.
"""

from typing import List, Tuple

import numpy as np

from ..grid.schedule import EMPTY_OWNER, BlockedSet, Schedule, SlotContent
from ..grid.time_grid import (
    DAYS,
    DAYTIME_MASK,
    EVENING_BORDER_MASK,
    NIGHT_MASK,
    SLOTS_PER_DAY,
    Day,
    TimeBucket,
)
from .models import Obligation


def policy_mask(obligation: Obligation) -> np.ndarray:
    """
    Time-of-day policy as a length-96 bool mask.

    Sleep may only use night slots. Everything else is limited to
    06:00-20:00, plus 20:00-22:00 for obligations that prefer the evening.
    """
    if obligation.is_sleep:
        return NIGHT_MASK
    if obligation.prefers(TimeBucket.EVENING):
        return DAYTIME_MASK | EVENING_BORDER_MASK
    return DAYTIME_MASK


def available_mask(obligation: Obligation, day: Day, blocked: BlockedSet, schedule: Schedule) -> np.ndarray:
    """Slots of ``day`` the obligation could take right now."""
    d = int(day)
    return (~blocked.mask[d]) & (schedule.owners[d] == EMPTY_OWNER) & policy_mask(obligation)


def can_use(obligation: Obligation, day: Day, slot: int, blocked: BlockedSet, schedule: Schedule) -> bool:
    if not 0 <= slot < SLOTS_PER_DAY:
        return False
    if (day, slot) in blocked:
        return False
    if not schedule.is_empty(day, slot):
        return False
    return bool(policy_mask(obligation)[slot])


def place_chunk(schedule: Schedule, obligation: Obligation, day: Day, start: int, length: int,
                blocked: BlockedSet) -> bool:
    """Write ``length`` slots from ``start`` only if every one of them is usable."""
    if length <= 0 or start < 0 or start + length > SLOTS_PER_DAY:
        return False
    if not available_mask(obligation, day, blocked, schedule)[start:start + length].all():
        return False
    content = SlotContent(obligation.id, obligation.placement_kind)
    for slot in range(start, start + length):
        schedule.set(day, slot, content)
    return True


def remove_chunk(schedule: Schedule, obligation: Obligation, day: Day, start: int, length: int,
                 blocked: BlockedSet) -> int:
    """Clear up to ``length`` of the obligation's slots from ``start``. Stops at frozen or foreign slots."""
    removed = 0
    for slot in range(start, min(start + length, SLOTS_PER_DAY)):
        if (day, slot) in blocked:
            break
        content = schedule.get(day, slot)
        if content is None or content.owner_id != obligation.id:
            break
        schedule.clear(day, slot)
        removed += 1
    return removed


def obligation_runs(schedule: Schedule, obligation: Obligation, blocked: BlockedSet) -> List[Tuple[Day, int, int]]:
    """Contiguous (day, start, length) runs of the obligation's movable slots."""
    movable = schedule.owner_mask(obligation.id) & ~blocked.mask
    runs = []
    for day in DAYS:
        row = movable[int(day)]
        if not row.any():
            continue
        padded = np.concatenate(([False], row, [False])).astype(np.int8)
        edges = np.diff(padded)
        starts = np.flatnonzero(edges == 1)
        ends = np.flatnonzero(edges == -1)
        runs.extend((day, int(s), int(e - s)) for s, e in zip(starts, ends))
    return runs
