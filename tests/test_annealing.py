import random

import pytest

from week_allocator.algorithm.annealing import AnnealingParameters, anneal, mutate
from week_allocator.algorithm.scoring import ScheduleScorer
from week_allocator.algorithm.seeding import greedy_fill, initial_remaining, seed_meetings, seed_sleep
from week_allocator.algorithm.availability import obligation_runs, policy_mask
from week_allocator.grid.schedule import SlotContent, SlotKind
from week_allocator.grid.time_grid import DAYS, Day
from tests.utils import empty_schedule, make_obligation, no_blocks, quick_annealing

ADD_ONLY = AnnealingParameters(add_probability=1.0, remove_probability=0.0)
REMOVE_ONLY = AnnealingParameters(add_probability=0.0, remove_probability=1.0)
MOVE_ONLY = AnnealingParameters(add_probability=0.0, remove_probability=0.0)


def _seeded_week():
    course = make_obligation("course", meetings=[("monday", 800, 900), ("wednesday", 800, 900)], target=40)
    sleep = make_obligation("sleep", is_sleep=True, target=224)
    chores = make_obligation("chores", max_stretch=1.0, buckets=["evening"], target=20)
    obligations = [course, sleep, chores]
    schedule = empty_schedule(obligations)
    remaining = initial_remaining(obligations)
    blocked = seed_meetings(schedule, obligations, remaining)
    seed_sleep(schedule, blocked, obligations, remaining)
    greedy_fill(schedule, blocked, obligations, remaining)
    return schedule, blocked, obligations


def test_mutate_returns_copy_and_respects_frozen_slots() -> None:
    schedule, blocked, obligations = _seeded_week()
    snapshot = schedule.copy()
    frozen = {(day, slot): schedule.get(day, slot) for day, slot in blocked}
    rng = random.Random(3)

    current = schedule
    for _ in range(300):
        current = mutate(current, obligations, blocked, rng)

    assert schedule == snapshot
    for (day, slot), content in frozen.items():
        assert current.get(day, slot) == content


def test_sleep_is_never_removed_or_moved() -> None:
    schedule, blocked, obligations = _seeded_week()
    sleep = [o for o in obligations if o.is_sleep]
    params = AnnealingParameters(add_probability=0.0, remove_probability=0.5)
    rng = random.Random(11)
    for _ in range(50):
        assert mutate(schedule, sleep, blocked, rng, params) == schedule


def test_best_score_trace_never_decreases() -> None:
    schedule, blocked, obligations = _seeded_week()
    scorer = ScheduleScorer(obligations)
    params = quick_annealing(record_trace=True)

    result = anneal(schedule, scorer, obligations, blocked, random.Random(5), params)

    assert result.best_score >= result.initial_score
    assert len(result.trace) == result.trials == params.stage_count() * params.trials_per_stage
    assert all(a <= b for a, b in zip(result.trace, result.trace[1:]))
    assert scorer.score(result.best) == pytest.approx(result.best_score)
    assert not result.truncated


def test_trial_budget_truncates_search() -> None:
    schedule, blocked, obligations = _seeded_week()
    scorer = ScheduleScorer(obligations)

    result = anneal(schedule, scorer, obligations, blocked, random.Random(5), quick_annealing(max_trials=10))
    assert result.trials == 10
    assert result.truncated
    assert result.stats()['truncated'] is True

    result = anneal(schedule, scorer, obligations, blocked, random.Random(5), quick_annealing(time_limit=0.0))
    assert result.trials == 0
    assert result.best is schedule
    assert result.best_score == result.initial_score


def test_same_seed_same_result() -> None:
    schedule, blocked, obligations = _seeded_week()
    scorer = ScheduleScorer(obligations)
    first = anneal(schedule, scorer, obligations, blocked, random.Random(42), quick_annealing())
    second = anneal(schedule, scorer, obligations, blocked, random.Random(42), quick_annealing())
    assert first.best == second.best
    assert first.best_score == second.best_score


def test_parameters_validation_and_overrides() -> None:
    assert quick_annealing().stage_count() == 3
    with pytest.raises(ValueError):
        AnnealingParameters(cooling_factor=1.0)
    with pytest.raises(ValueError):
        AnnealingParameters(add_probability=0.7, remove_probability=0.6)
    with pytest.raises(ValueError):
        AnnealingParameters.from_dict({'temperature': 3})

    params = AnnealingParameters.from_dict({'trials_per_stage': '25', 'cooling_factor': 0.5, 'max_trials': None})
    assert params.trials_per_stage == 25
    assert params.cooling_factor == 0.5
    assert params.max_trials is None
    assert AnnealingParameters.from_dict(None) == AnnealingParameters()


def _chores_week(*runs):
    """Chores (one-hour chunks) next to a gym obligation, with chores owning the given (day, start, length) runs."""
    chores = make_obligation("chores", max_stretch=1.0)
    gym = make_obligation("gym")
    schedule = empty_schedule([chores, gym])
    for day, start, length in runs:
        for slot in range(start, start + length):
            schedule.set(day, slot, SlotContent("chores", SlotKind.GENERAL))
    return chores, gym, schedule


def _fill_daytime_with_gym(schedule) -> None:
    for day in DAYS:
        for slot in range(24, 80):
            if schedule.is_empty(day, slot):
                schedule.set(day, slot, SlotContent("gym", SlotKind.GENERAL))


def test_add_places_one_chunk_on_free_slots() -> None:
    chores, _, schedule = _chores_week()
    for seed in range(5):
        candidate = mutate(schedule, [chores], no_blocks(), random.Random(seed), ADD_ONLY)
        runs = obligation_runs(candidate, chores, no_blocks())
        assert len(runs) == 1
        day, start, length = runs[0]
        assert length == chores.chunk_size == 4
        assert policy_mask(chores)[start:start + length].all()
    assert schedule.count("chores") == 0


def test_remove_clears_at_most_one_chunk_from_a_run() -> None:
    chores, _, schedule = _chores_week((Day.MONDAY, 40, 6))
    candidate = mutate(schedule, [chores], no_blocks(), random.Random(0), REMOVE_ONLY)
    assert candidate.count("chores") == 2
    assert all(candidate.is_empty(Day.MONDAY, s) for s in range(40, 44))
    assert candidate.get(Day.MONDAY, 44).owner_id == "chores"

    chores, _, schedule = _chores_week((Day.TUESDAY, 50, 2))
    candidate = mutate(schedule, [chores], no_blocks(), random.Random(0), REMOVE_ONLY)
    assert candidate.count("chores") == 0


def test_move_keeps_count_and_relocates_slots() -> None:
    chores, _, schedule = _chores_week((Day.MONDAY, 40, 4))
    moved = 0
    for seed in range(10):
        candidate = mutate(schedule, [chores], no_blocks(), random.Random(seed), MOVE_ONLY)
        assert candidate.count("chores") == 4
        if candidate != schedule:
            moved += 1
    assert moved > 0


def test_actions_are_no_ops_without_room() -> None:
    chores, gym, schedule = _chores_week()
    _fill_daytime_with_gym(schedule)
    rng = random.Random(1)
    assert mutate(schedule, [chores], no_blocks(), rng, ADD_ONLY) == schedule
    assert mutate(schedule, [chores], no_blocks(), rng, REMOVE_ONLY) == schedule
    assert mutate(schedule, [chores], no_blocks(), rng, MOVE_ONLY) == schedule

    # the only free hour is the one being moved out of
    chores, gym, schedule = _chores_week((Day.MONDAY, 40, 4))
    _fill_daytime_with_gym(schedule)
    for seed in range(10):
        assert mutate(schedule, [chores], no_blocks(), random.Random(seed), MOVE_ONLY) == schedule


def test_trial_budget_on_stage_boundary_counts_only_stages_run() -> None:
    schedule, blocked, obligations = _seeded_week()
    scorer = ScheduleScorer(obligations)
    result = anneal(schedule, scorer, obligations, blocked, random.Random(5),
                    quick_annealing(trials_per_stage=40, max_trials=80))
    assert result.trials == 80
    assert result.stages == 2
    assert result.truncated
