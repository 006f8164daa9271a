"""Builders and small search budgets shared by the allocator tests."""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from week_allocator.algorithm.allocator import AllocatorConfig
from week_allocator.algorithm.annealing import AnnealingParameters
from week_allocator.algorithm.models import Category, MeetingTime, Obligation
from week_allocator.grid.schedule import BlockedSet, Schedule


def make_obligation(
    oid: str,
    *,
    relative_priority: float = 1.0,
    max_stretch: float = 2.0,
    buckets: Sequence[str] = (),
    meetings: Iterable[tuple] = (),
    is_sleep: Optional[bool] = None,
    target: int = 0,
) -> Obligation:
    obligation = Obligation(
        id=oid,
        name=oid.title(),
        relative_priority=relative_priority,
        max_stretch=max_stretch,
        preferred_time_blocks=tuple(buckets),
        meeting_times=[MeetingTime(day, start, end) for day, start, end in meetings],
        is_sleep=is_sleep,
    )
    obligation.blocks_required = target
    return obligation


def make_category(cid: str, priority: float, children: List[Obligation], is_sleep: bool = False) -> Category:
    return Category(id=cid, name=cid.title(), priority=priority, children=children, is_sleep=is_sleep)


def empty_schedule(obligations: Sequence[Obligation]) -> Schedule:
    return Schedule([o.id for o in obligations], {o.id: o.name for o in obligations})


def no_blocks() -> BlockedSet:
    return BlockedSet()


def quick_annealing(**overrides) -> AnnealingParameters:
    """A few short stages instead of the full cooling schedule."""
    values = dict(initial_temperature=5.0, final_temperature=1.0, cooling_factor=0.5, trials_per_stage=40)
    values.update(overrides)
    return AnnealingParameters(**values)


def quick_config(**annealing_overrides) -> AllocatorConfig:
    return AllocatorConfig(annealing=quick_annealing(**annealing_overrides))


def sleep_category(priority: float = 1.0, max_stretch: float = 8.0) -> Category:
    sleep = make_obligation("sleep", max_stretch=max_stretch)
    return make_category("rest", priority, [sleep], is_sleep=True)


def study_category(priority: float, meetings: Iterable[tuple] = (), buckets: Sequence[str] = ()) -> Category:
    course = make_obligation("course", max_stretch=2.0, meetings=meetings, buckets=buckets)
    return make_category("school", priority, [course])
