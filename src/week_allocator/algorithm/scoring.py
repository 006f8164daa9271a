"""
Objective function for candidate schedules. Higher is better.

Per obligation:
    - quota       * |count - target|
    + preference  * slots inside a preferred bucket
    - transition  * boundary crossings into or out of its runs
    + run         * sum over runs of min(run length, max run)
Globally, per slot:
    + utilization for every filled slot
    - night       for every non-sleep slot between 22:00 and 06:00
"""

from dataclasses import dataclass
from typing import Dict, List

import numpy as np

from ..grid.schedule import EMPTY_OWNER, Schedule, SlotKind
from ..grid.time_grid import NIGHT_MASK, buckets_mask
from .models import Obligation


@dataclass
class ScoringWeights:
    """Weights of the objective terms."""
    quota: float = 3.0
    preference: float = 0.5
    transition: float = 0.15
    run: float = 0.08
    utilization: float = 0.05
    night: float = 0.6


def run_lengths(mask: np.ndarray) -> np.ndarray:
    """Lengths of the True runs in each row of a (days, slots) bool mask."""
    padded = np.pad(mask, ((0, 0), (1, 1))).astype(np.int8)
    edges = np.diff(padded, axis=1)
    starts = np.flatnonzero(edges == 1)
    ends = np.flatnonzero(edges == -1)
    return ends - starts


def transition_count(mask: np.ndarray) -> int:
    """Entries into and exits out of runs, not counting a run that reaches the end of the day."""
    padded = np.pad(mask, ((0, 0), (1, 0)))
    return int((padded[:, 1:] != padded[:, :-1]).sum())


class ScheduleScorer:
    """Scores schedules for a fixed set of obligations and targets."""

    def __init__(self, obligations: List[Obligation], weights: ScoringWeights = None):
        self.obligations = list(obligations)
        self.weights = weights or ScoringWeights()
        self._preference_masks = {o.id: buckets_mask(o.preferred_time_blocks) for o in self.obligations}

    def obligation_terms(self, schedule: Schedule, obligation: Obligation) -> Dict[str, float]:
        """Raw (unweighted) terms for one obligation."""
        mask = schedule.owner_mask(obligation.id)
        count = int(mask.sum())
        pref_hits = int((mask & self._preference_masks[obligation.id]).sum())
        if count:
            transitions = transition_count(mask)
            run_bonus = int(np.minimum(run_lengths(mask), obligation.max_run).sum())
        else:
            transitions = 0
            run_bonus = 0
        return {
            'count': count,
            'target': obligation.target,
            'preference_hits': pref_hits,
            'transitions': transitions,
            'run_bonus': run_bonus,
        }

    def obligation_score(self, schedule: Schedule, obligation: Obligation) -> float:
        terms = self.obligation_terms(schedule, obligation)
        w = self.weights
        return (
            - w.quota * abs(terms['count'] - terms['target'])
            + w.preference * terms['preference_hits']
            - w.transition * terms['transitions']
            + w.run * terms['run_bonus']
        )

    def global_score(self, schedule: Schedule) -> float:
        filled = schedule.owners != EMPTY_OWNER
        night_work = filled & NIGHT_MASK & (schedule.kinds != SlotKind.SLEEP)
        return self.weights.utilization * int(filled.sum()) - self.weights.night * int(night_work.sum())

    def score(self, schedule: Schedule) -> float:
        total = self.global_score(schedule)
        for obligation in self.obligations:
            total += self.obligation_score(schedule, obligation)
        return total

    def analyze_schedule(self, schedule: Schedule) -> Dict:
        """Per-obligation terms plus the global and total scores."""
        return {
            'obligations': {o.id: self.obligation_terms(schedule, o) for o in self.obligations},
            'global_score': self.global_score(schedule),
            'total_score': self.score(schedule),
        }
