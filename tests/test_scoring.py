import numpy as np
import pytest

from week_allocator.algorithm.scoring import ScheduleScorer, ScoringWeights, run_lengths, transition_count
from week_allocator.grid.schedule import SlotContent, SlotKind
from week_allocator.grid.time_grid import Day
from tests.utils import empty_schedule, make_obligation


def _row(*slots: int) -> np.ndarray:
    mask = np.zeros((1, 96), dtype=bool)
    mask[0, list(slots)] = True
    return mask


def test_run_lengths_and_transitions() -> None:
    mask = _row(10, 11, 12, 20, 94, 95)
    assert sorted(run_lengths(mask).tolist()) == [1, 2, 3]
    # the run touching midnight has no exit
    assert transition_count(mask) == 5
    assert transition_count(_row(0, 1)) == 2


def test_score_terms_for_one_obligation() -> None:
    reading = make_obligation("reading", max_stretch=2.0, buckets=["morning"], target=4)
    schedule = empty_schedule([reading])
    for slot in range(40, 44):
        schedule.set(Day.MONDAY, slot, SlotContent("reading", SlotKind.GENERAL))
    scorer = ScheduleScorer([reading])

    terms = scorer.obligation_terms(schedule, reading)
    assert terms == {'count': 4, 'target': 4, 'preference_hits': 4, 'transitions': 2, 'run_bonus': 4}
    # 0.5 * 4 - 0.15 * 2 + 0.08 * 4, plus 0.05 utilization per filled slot
    assert scorer.score(schedule) == pytest.approx(2.02 + 0.2)


def test_quota_deviation_and_night_penalty() -> None:
    gym = make_obligation("gym", max_stretch=1.0, target=2)
    schedule = empty_schedule([gym])
    scorer = ScheduleScorer([gym], ScoringWeights(preference=0.0, transition=0.0, run=0.0, utilization=0.0))
    assert scorer.score(schedule) == pytest.approx(-6.0)

    schedule.set(Day.TUESDAY, 2, SlotContent("gym", SlotKind.GENERAL))
    schedule.set(Day.TUESDAY, 3, SlotContent("gym", SlotKind.GENERAL))
    assert scorer.score(schedule) == pytest.approx(-1.2)


def test_sleep_at_night_is_not_penalised() -> None:
    sleep = make_obligation("sleep", is_sleep=True, target=1)
    schedule = empty_schedule([sleep])
    schedule.set(Day.MONDAY, 0, SlotContent("sleep", SlotKind.SLEEP))
    scorer = ScheduleScorer([sleep], ScoringWeights(transition=0.0, run=0.0, utilization=0.0))
    assert scorer.global_score(schedule) == 0.0
    assert scorer.score(schedule) == 0.0


def test_breaks_are_excluded_from_counts() -> None:
    course = make_obligation("course", target=2)
    schedule = empty_schedule([course])
    schedule.set(Day.MONDAY, 40, SlotContent("course", SlotKind.BREAK))
    analysis = ScheduleScorer([course]).analyze_schedule(schedule)
    assert analysis['obligations']['course']['count'] == 0
    assert analysis['global_score'] == pytest.approx(0.05)
