"""
Weekly allocator: runs the full pipeline on a list of categories.

    APPORTION -> SEED_FIXED -> SEED_SLEEP -> GREEDY_FILL -> ANNEAL
    -> BREAK_ENFORCE -> GAP_FILL -> PROOFREAD -> MIN_RUN_ENFORCE -> DONE

Each call is self-contained: the categories are copied, a fresh grid is
built and the only shared state is the injected random source.
"""

import copy
import logging
import random
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Union

import pandas as pd

from ..exceptions import DuplicateObligationError
from ..grid.schedule import Schedule
from ..grid.time_grid import NUM_DAYS, TOTAL_SLOTS
from .annealing import AnnealingParameters, AnnealingResult, anneal
from .apportionment import apportion_targets, check_priorities
from .models import Category, Obligation
from .repair import (
    RepairSettings,
    check_run_limits,
    enforce_breaks,
    enforce_min_run_length,
    fill_gaps_by_deficit,
    proofread_runs,
)
from .scoring import ScheduleScorer, ScoringWeights
from .seeding import SleepSettings, greedy_fill, initial_remaining, seed_meetings, seed_sleep

logger = logging.getLogger(__name__)


class PipelineStage(Enum):
    APPORTION = 0
    SEED_FIXED = 1
    SEED_SLEEP = 2
    GREEDY_FILL = 3
    ANNEAL = 4
    BREAK_ENFORCE = 5
    GAP_FILL = 6
    PROOFREAD = 7
    MIN_RUN_ENFORCE = 8
    DONE = 9


class AllocationStatus(Enum):
    INFEASIBLE = 0  # fixed meetings plus sleep alone need more than a week
    COMPLETE = 1    # every quota met
    PARTIAL = 2     # schedule produced, some quotas unmet


@dataclass
class AllocatorConfig:
    annealing: AnnealingParameters = field(default_factory=AnnealingParameters)
    scoring: ScoringWeights = field(default_factory=ScoringWeights)
    sleep: SleepSettings = field(default_factory=SleepSettings)
    repair: RepairSettings = field(default_factory=RepairSettings)


@dataclass
class QuotaShortfall:
    obligation_id: str
    name: str
    target: int
    realized: int

    @property
    def unmet(self) -> int:
        return max(0, self.target - self.realized)


@dataclass
class AllocationResult:
    schedule: Schedule
    score: float
    status: AllocationStatus
    quota_report: List[QuotaShortfall]
    diagnostics: List[str]
    annealing: dict

    @property
    def unmet_quotas(self) -> List[QuotaShortfall]:
        return [q for q in self.quota_report if q.unmet > 0]

    def quota_frame(self) -> pd.DataFrame:
        """Quota report as a DataFrame, one row per obligation."""
        rows = [dict(asdict(q), unmet=q.unmet) for q in self.quota_report]
        return pd.DataFrame(rows, columns=['obligation_id', 'name', 'target', 'realized', 'unmet'])

    def to_dict(self) -> dict:
        return {
            'schedule': self.schedule.to_dict(),
            'score': self.score,
            'status': self.status.name.lower(),
            'unmet_quotas': [dict(asdict(q), unmet=q.unmet) for q in self.unmet_quotas],
            'diagnostics': list(self.diagnostics),
            'annealing': dict(self.annealing),
        }


StageCallback = Callable[[PipelineStage, Schedule], None]


def _make_rng(rng: Union[None, int, random.Random]) -> random.Random:
    if isinstance(rng, random.Random):
        return rng
    return random.Random(rng)


def _check_unique_ids(obligations: List[Obligation]):
    seen = set()
    for obligation in obligations:
        if obligation.id in seen:
            raise DuplicateObligationError(f"Duplicate obligation id: {obligation.id}")
        seen.add(obligation.id)


class WeeklyAllocator:
    """Main allocator class that orchestrates the whole pipeline."""

    def __init__(self, config: AllocatorConfig = None, rng: Union[None, int, random.Random] = None,
                 stage_callback: Optional[StageCallback] = None):
        self.config = config or AllocatorConfig()
        self.rng = _make_rng(rng)
        self.stage_callback = stage_callback

    def _stage(self, stage: PipelineStage, schedule: Optional[Schedule]):
        logger.debug("Stage %s complete", stage.name)
        if self.stage_callback is not None and schedule is not None:
            self.stage_callback(stage, schedule)

    def _fixed_demand(self, obligations: List[Obligation]) -> int:
        meeting_slots = sum(mt.span for o in obligations for mt in o.meeting_times)
        sleep_slots = sum(NUM_DAYS * self.config.sleep.slots_per_night for o in obligations if o.is_sleep)
        return meeting_slots + sleep_slots

    def allocate(self, categories: List[Category]) -> AllocationResult:
        """Allocate the week. The caller's categories are not modified."""
        categories = copy.deepcopy(list(categories))
        diagnostics = check_priorities(categories)

        obligations = apportion_targets(categories)
        _check_unique_ids(obligations)
        diagnostics.extend(check_run_limits(obligations, self.config.repair))
        for message in diagnostics:
            logger.warning(message)
        logger.info("Allocating %d obligations across %d categories", len(obligations), len(categories))

        schedule = Schedule([o.id for o in obligations], {o.id: o.name for o in obligations})
        self._stage(PipelineStage.APPORTION, schedule)

        fixed_demand = self._fixed_demand(obligations)
        infeasible = fixed_demand > TOTAL_SLOTS
        if infeasible:
            message = (f"Fixed meetings and sleep need {fixed_demand} slots "
                       f"but the week only has {TOTAL_SLOTS}")
            logger.warning(message)
            diagnostics.append(message)

        remaining = initial_remaining(obligations)
        blocked = seed_meetings(schedule, obligations, remaining)
        self._stage(PipelineStage.SEED_FIXED, schedule)

        diagnostics.extend(seed_sleep(schedule, blocked, obligations, remaining, self.config.sleep))
        self._stage(PipelineStage.SEED_SLEEP, schedule)

        greedy_fill(schedule, blocked, obligations, remaining)
        self._stage(PipelineStage.GREEDY_FILL, schedule)

        scorer = ScheduleScorer(obligations, self.config.scoring)
        annealed: AnnealingResult = anneal(schedule, scorer, obligations, blocked, self.rng,
                                           self.config.annealing)
        best = annealed.best
        self._stage(PipelineStage.ANNEAL, best)

        repair = self.config.repair
        enforce_breaks(best, obligations, blocked, repair)
        self._stage(PipelineStage.BREAK_ENFORCE, best)
        fill_gaps_by_deficit(best, blocked, obligations, repair)
        self._stage(PipelineStage.GAP_FILL, best)
        proofread_runs(best, obligations, blocked, repair)
        self._stage(PipelineStage.PROOFREAD, best)
        enforce_min_run_length(best, blocked, repair)
        self._stage(PipelineStage.MIN_RUN_ENFORCE, best)

        counts = best.counts()
        quota_report = [QuotaShortfall(o.id, o.name, o.target, counts[o.id]) for o in obligations]
        if infeasible:
            status = AllocationStatus.INFEASIBLE
        elif any(q.unmet for q in quota_report):
            status = AllocationStatus.PARTIAL
        else:
            status = AllocationStatus.COMPLETE

        score = scorer.score(best)
        best.freeze()
        self._stage(PipelineStage.DONE, best)
        logger.info("Allocation %s with score %.2f", status.name.lower(), score)

        return AllocationResult(
            schedule=best,
            score=score,
            status=status,
            quota_report=quota_report,
            diagnostics=diagnostics,
            annealing=annealed.stats(),
        )


def generate_schedule(categories: List[Category], seed: Union[None, int, random.Random] = None,
                      config: AllocatorConfig = None) -> AllocationResult:
    """Convenience wrapper around WeeklyAllocator.allocate."""
    return WeeklyAllocator(config=config, rng=seed).allocate(categories)


def main():
    """Run the allocator on the demo week and print a summary."""
    from ..data_parsing.category_parser import parse_categories
    from ..data_parsing.demo_data import DEMO_CATEGORIES

    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    categories = parse_categories(DEMO_CATEGORIES)

    print("=== Weekly Allocation Demo ===\n")
    result = generate_schedule(categories, seed=7)

    print(f"Status: {result.status.name}")
    print(f"Score: {result.score:.2f}")
    print(f"Annealing: {result.annealing['stages']} stages, {result.annealing['trials']} trials")

    print("\n=== QUOTAS ===")
    print(result.quota_frame().to_string(index=False))

    if result.diagnostics:
        print("\n=== DIAGNOSTICS ===")
        for message in result.diagnostics:
            print(f"  - {message}")

    print("\n=== SCHEDULE (06:00-23:00) ===")
    frame = result.schedule.to_frame().fillna("")
    print(frame.iloc[24:92:2].to_string())


if __name__ == "__main__":
    main()
