"""
Deterministic clean-up passes run once, in order, on the annealed schedule:

1. enforce_breaks           - rest after long class/study stretches
2. fill_gaps_by_deficit     - top up obligations still below quota
3. proofread_runs           - split over-long runs, drop negligible study runs
4. enforce_min_run_length   - clear any run shorter than the minimum

Frozen slots (meetings and seeded sleep) are never modified by any pass.
"""

import logging
from dataclasses import dataclass
from typing import List

from ..grid.schedule import BlockedSet, Schedule, SlotContent, SlotKind
from ..grid.time_grid import DAYS, SLOTS_PER_DAY, Day, TimeBucket, is_night
from .availability import can_use
from .models import Obligation

logger = logging.getLogger(__name__)

WORK_KINDS = (SlotKind.MEETING, SlotKind.STUDY, SlotKind.GENERAL)
STUDY_KINDS = (SlotKind.STUDY, SlotKind.GENERAL)


@dataclass
class RepairSettings:
    """Lengths are in slots (15 minutes each)."""
    break_length: int = 4
    break_window: int = 32
    min_gap_length: int = 2
    min_study_run: int = 2
    min_run_length: int = 2


def _is_work(schedule: Schedule, day: Day, slot: int, obligation: Obligation) -> bool:
    content = schedule.get(day, slot)
    return content is not None and content.owner_id == obligation.id and content.kind in WORK_KINDS


# --- 1. breaks -------------------------------------------------------------

def _insert_break(schedule: Schedule, obligation: Obligation, day: Day, last: int, run_length: int,
                  blocked: BlockedSet, settings: RepairSettings) -> int:
    """Place a break after the run ending at ``last``. Returns the number of slots changed."""
    brk = SlotContent(obligation.id, SlotKind.BREAK)
    study = SlotContent(obligation.id, SlotKind.STUDY)
    placed = 0
    changed = 0
    interrupted = False

    for slot in range(last + 1, min(SLOTS_PER_DAY, last + 1 + settings.break_window)):
        if placed >= settings.break_length:
            break
        if (day, slot) in blocked or is_night(slot):
            continue
        content = schedule.get(day, slot)
        if content == brk:
            placed += 1
        elif content is None or content == study:
            schedule.set(day, slot, brk)
            placed += 1
            changed += 1
        else:
            # another obligation already separates the run from what follows
            interrupted = True
            break

    if placed < settings.break_length and not interrupted:
        slot = last
        while placed < settings.break_length and slot > last - run_length:
            if (day, slot) in blocked or schedule.get(day, slot) != study:
                break
            schedule.set(day, slot, brk)
            placed += 1
            changed += 1
            slot -= 1
    return changed


def enforce_breaks(schedule: Schedule, obligations: List[Obligation], blocked: BlockedSet,
                   settings: RepairSettings = None) -> int:
    """
    For obligations with fixed meetings, insert a break whenever a run of
    their class or study slots reaches the max-stretch threshold.

    Running this twice on its own output changes nothing.
    """
    settings = settings or RepairSettings()
    changed = 0
    for obligation in obligations:
        if not obligation.has_meetings:
            continue
        threshold = obligation.max_run
        for day in DAYS:
            run = 0
            for slot in range(SLOTS_PER_DAY):
                if not _is_work(schedule, day, slot, obligation):
                    run = 0
                    continue
                run += 1
                if run >= threshold:
                    changed += _insert_break(schedule, obligation, day, slot, run, blocked, settings)
                    run = 0
    if changed:
        logger.debug("Break enforcement changed %d slots", changed)
    return changed


# --- 2. gap filling --------------------------------------------------------

class _Need:
    __slots__ = ('obligation', 'deficit')

    def __init__(self, obligation: Obligation, deficit: int):
        self.obligation = obligation
        self.deficit = deficit


def _deficits(schedule: Schedule, obligations: List[Obligation]) -> List[_Need]:
    counts = schedule.counts()
    needs = []
    for obligation in obligations:
        if obligation.is_sleep:
            continue
        deficit = obligation.target - counts[obligation.id]
        if deficit > 0:
            needs.append(_Need(obligation, deficit))
    # larger deficit first, evening-preferring obligations first on ties
    needs.sort(key=lambda n: (-n.deficit, not n.obligation.prefers(TimeBucket.EVENING)))
    return needs


def fill_gaps_by_deficit(schedule: Schedule, blocked: BlockedSet, obligations: List[Obligation],
                         settings: RepairSettings = None) -> int:
    """
    Fill free daytime/evening gaps with obligations that are still below
    quota. Gaps shorter than ``min_gap_length`` are left empty.
    """
    settings = settings or RepairSettings()
    needs = _deficits(schedule, obligations)
    if not needs:
        return 0

    filled = 0
    for day in DAYS:
        slot = 0
        while slot < SLOTS_PER_DAY:
            if is_night(slot) or (day, slot) in blocked or not schedule.is_empty(day, slot):
                slot += 1
                continue
            start = slot
            while (slot < SLOTS_PER_DAY and not is_night(slot)
                   and (day, slot) not in blocked and schedule.is_empty(day, slot)):
                slot += 1
            if slot - start < settings.min_gap_length:
                continue
            for gap_slot in range(start, slot):
                for need in needs:
                    if need.deficit <= 0:
                        continue
                    if not can_use(need.obligation, day, gap_slot, blocked, schedule):
                        continue
                    schedule.set(day, gap_slot, SlotContent(need.obligation.id, need.obligation.placement_kind))
                    need.deficit -= 1
                    filled += 1
                    break
    logger.debug("Gap filling placed %d slots", filled)
    return filled


# --- 3. proofreading -------------------------------------------------------

def _truncate_run(schedule: Schedule, obligation: Obligation, day: Day, start: int, end: int,
                  blocked: BlockedSet, settings: RepairSettings) -> int:
    threshold = obligation.max_run
    if end - start <= threshold:
        return 0
    brk = SlotContent(obligation.id, SlotKind.BREAK)
    changed = 0
    streak = 0
    pending = 0
    for slot in range(start, end):
        frozen = (day, slot) in blocked
        if pending and not frozen:
            schedule.set(day, slot, brk)
            changed += 1
            pending -= 1
            continue
        pending = 0
        streak += 1
        if streak <= threshold:
            continue
        if not frozen:
            schedule.set(day, slot, brk)
            changed += 1
            pending = settings.break_length - 1
            streak = 0
            continue
        # a meeting is in the way: rest before it instead
        frozen_start = slot
        while frozen_start - 1 > slot - streak and (day, frozen_start - 1) in blocked:
            frozen_start -= 1
        before = frozen_start - 1
        placed = 0
        while placed < settings.break_length and before > slot - streak and (day, before) not in blocked:
            schedule.set(day, before, brk)
            changed += 1
            placed += 1
            before -= 1
        if placed:
            streak = slot - frozen_start + 1
    return changed


def proofread_runs(schedule: Schedule, obligations: List[Obligation], blocked: BlockedSet,
                   settings: RepairSettings = None) -> int:
    """
    Split work runs longer than the obligation's max stretch with a break,
    then delete study runs shorter than ``min_study_run``.
    """
    settings = settings or RepairSettings()
    changed = 0
    for obligation in obligations:
        if obligation.is_sleep:
            continue
        for day in DAYS:
            slot = 0
            while slot < SLOTS_PER_DAY:
                if not _is_work(schedule, day, slot, obligation):
                    slot += 1
                    continue
                start = slot
                while slot < SLOTS_PER_DAY and _is_work(schedule, day, slot, obligation):
                    slot += 1
                changed += _truncate_run(schedule, obligation, day, start, slot, blocked, settings)

    for run in schedule.runs():
        if run.content.kind not in STUDY_KINDS or run.length >= settings.min_study_run:
            continue
        if any((run.day, s) in blocked for s in range(run.start, run.end)):
            continue
        for s in range(run.start, run.end):
            schedule.clear(run.day, s)
        changed += run.length
    if changed:
        logger.debug("Proofreading changed %d slots", changed)
    return changed


# --- 4. minimum run length ---------------------------------------------------

def enforce_min_run_length(schedule: Schedule, blocked: BlockedSet, settings: RepairSettings = None) -> int:
    """Clear every non-frozen run shorter than ``min_run_length``."""
    settings = settings or RepairSettings()
    cleared = 0
    for run in schedule.runs():
        if run.length >= settings.min_run_length:
            continue
        if any((run.day, s) in blocked for s in range(run.start, run.end)):
            continue
        for s in range(run.start, run.end):
            schedule.clear(run.day, s)
        cleared += run.length
    if cleared:
        logger.debug("Cleared %d slots in runs shorter than %d", cleared, settings.min_run_length)
    return cleared


def check_run_limits(obligations: List[Obligation], settings: RepairSettings = None) -> List[str]:
    """Report obligations whose max stretch is shorter than the minimum run the clean-up keeps."""
    settings = settings or RepairSettings()
    shortest_kept = max(settings.min_run_length, settings.min_study_run)
    diagnostics = []
    for obligation in obligations:
        if obligation.is_sleep or obligation.target <= 0 or obligation.max_run >= shortest_kept:
            continue
        diagnostics.append(
            f"Obligation '{obligation.id}' allows runs of {obligation.max_run} slot(s) but runs shorter "
            f"than {shortest_kept} are cleared; only its meetings will remain")
    return diagnostics
