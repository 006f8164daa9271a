"""
Simulated annealing over schedule mutations.

The driver is anytime: the best-seen score never decreases, so the search
can be cut short by a trial or wall-clock budget and still return a valid
schedule that is at least as good as the one it started from.
"""

import logging
import math
import random
import time
from dataclasses import dataclass, field, fields
from typing import List, Optional

import numpy as np

from ..grid.schedule import BlockedSet, Schedule
from ..grid.time_grid import DAYS
from .availability import available_mask, obligation_runs, place_chunk, remove_chunk
from .models import Obligation
from .scoring import ScheduleScorer

logger = logging.getLogger(__name__)


@dataclass
class AnnealingParameters:
    """Cooling schedule, mutation mix and optional search budget."""
    initial_temperature: float = 100.0
    final_temperature: float = 0.02
    cooling_factor: float = 0.92
    trials_per_stage: int = 450
    add_probability: float = 0.4
    remove_probability: float = 0.4  # MOVE takes the remaining probability
    placement_attempts: int = 8
    max_trials: Optional[int] = None
    time_limit: Optional[float] = None  # seconds
    record_trace: bool = False

    def __post_init__(self):
        if not 0 < self.cooling_factor < 1:
            raise ValueError(f"cooling_factor must be in (0, 1), got {self.cooling_factor}")
        if self.final_temperature <= 0:
            raise ValueError("final_temperature must be positive")
        if self.trials_per_stage < 1:
            raise ValueError("trials_per_stage must be at least 1")
        if self.add_probability + self.remove_probability > 1:
            raise ValueError("add_probability + remove_probability must not exceed 1")

    @classmethod
    def from_dict(cls, overrides: Optional[dict]) -> "AnnealingParameters":
        """Build parameters from a request dict, rejecting unknown keys."""
        if not overrides:
            return cls()
        known = {f.name: f for f in fields(cls)}
        unknown = set(overrides) - set(known)
        if unknown:
            raise ValueError(f"Unknown annealing parameters: {sorted(unknown)}")
        values = {}
        for key, value in overrides.items():
            if value is None:
                values[key] = None
            elif key in ('trials_per_stage', 'placement_attempts', 'max_trials'):
                values[key] = int(value)
            elif key == 'record_trace':
                values[key] = bool(value)
            else:
                values[key] = float(value)
        return cls(**values)

    def stage_count(self) -> int:
        """Number of temperature stages a full run goes through."""
        stages = 0
        temperature = self.initial_temperature
        while temperature > self.final_temperature:
            stages += 1
            temperature *= self.cooling_factor
        return stages


@dataclass
class AnnealingResult:
    best: Schedule
    best_score: float
    initial_score: float
    stages: int = 0
    trials: int = 0
    accepted: int = 0
    improvements: int = 0
    truncated: bool = False
    trace: List[float] = field(default_factory=list)

    def stats(self) -> dict:
        return {
            'initial_score': self.initial_score,
            'best_score': self.best_score,
            'stages': self.stages,
            'trials': self.trials,
            'accepted': self.accepted,
            'improvements': self.improvements,
            'truncated': self.truncated,
        }


def _add_random_chunk(schedule: Schedule, obligation: Obligation, blocked: BlockedSet,
                      rng: random.Random, length: int, attempts: int) -> bool:
    day = DAYS[rng.randrange(len(DAYS))]
    starts = np.flatnonzero(available_mask(obligation, day, blocked, schedule))
    if not len(starts):
        return False
    for _ in range(attempts):
        start = int(starts[rng.randrange(len(starts))])
        if place_chunk(schedule, obligation, day, start, length, blocked):
            return True
    return False


def mutate(base: Schedule, obligations: List[Obligation], blocked: BlockedSet, rng: random.Random,
           params: AnnealingParameters = None) -> Schedule:
    """
    Return a mutated copy of ``base``; ``base`` itself is never modified.

    One obligation is picked at random and one action is applied:
    ADD a chunk at a random available slot, REMOVE part of one of its runs,
    or MOVE part of a run elsewhere. Sleep is never removed or moved. An
    action that finds no valid placement leaves the copy unchanged.
    """
    params = params or AnnealingParameters()
    candidate = base.copy()
    if not obligations:
        return candidate

    obligation = obligations[rng.randrange(len(obligations))]
    chunk = obligation.chunk_size
    draw = rng.random()

    if draw < params.add_probability:
        _add_random_chunk(candidate, obligation, blocked, rng, chunk, params.placement_attempts)
    elif draw < params.add_probability + params.remove_probability:
        if not obligation.is_sleep:
            runs = obligation_runs(candidate, obligation, blocked)
            if runs:
                day, start, length = runs[rng.randrange(len(runs))]
                remove_chunk(candidate, obligation, day, start, min(length, chunk), blocked)
    else:
        if not obligation.is_sleep:
            runs = obligation_runs(candidate, obligation, blocked)
            if runs:
                day, start, length = runs[rng.randrange(len(runs))]
                removed = remove_chunk(candidate, obligation, day, start, min(length, chunk), blocked)
                if removed and not _add_random_chunk(candidate, obligation, blocked, rng, removed,
                                                     params.placement_attempts):
                    # nowhere to put it, keep the chunk where it was
                    return base.copy()
    return candidate


def _budget_spent(params: AnnealingParameters, trials: int, started: float) -> bool:
    if params.max_trials is not None and trials >= params.max_trials:
        return True
    return params.time_limit is not None and time.monotonic() - started >= params.time_limit


def anneal(initial: Schedule, scorer: ScheduleScorer, obligations: List[Obligation], blocked: BlockedSet,
           rng: random.Random, params: AnnealingParameters = None) -> AnnealingResult:
    """Run the cooling schedule from ``initial`` and return the best schedule seen."""
    params = params or AnnealingParameters()
    current = initial
    current_score = scorer.score(current)
    result = AnnealingResult(best=current, best_score=current_score, initial_score=current_score)
    started = time.monotonic()

    temperature = params.initial_temperature
    while temperature > params.final_temperature and not result.truncated:
        if _budget_spent(params, result.trials, started):
            result.truncated = True
            break
        result.stages += 1
        for _ in range(params.trials_per_stage):
            if _budget_spent(params, result.trials, started):
                result.truncated = True
                break

            candidate = mutate(current, obligations, blocked, rng, params)
            candidate_score = scorer.score(candidate)
            delta = candidate_score - current_score
            result.trials += 1

            # Metropolis criterion
            if delta > 0 or math.exp(delta / temperature) > rng.random():
                current = candidate
                current_score = candidate_score
                result.accepted += 1
                if current_score > result.best_score:
                    result.best = current
                    result.best_score = current_score
                    result.improvements += 1

            if params.record_trace:
                result.trace.append(result.best_score)

        logger.debug("Stage %d at T=%.4f: current=%.2f best=%.2f",
                     result.stages, temperature, current_score, result.best_score)
        temperature *= params.cooling_factor

    if result.truncated:
        logger.info("Annealing stopped early after %d trials (budget reached)", result.trials)
    logger.info("Annealing finished: %d stages, %d trials, score %.2f -> %.2f",
                result.stages, result.trials, result.initial_score, result.best_score)
    return result
