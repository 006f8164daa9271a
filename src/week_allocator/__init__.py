"""
Week Allocator Package
Allocates a weekly calendar of 15-minute slots among weighted obligations.
"""

__version__ = "1.0.0"

from .algorithm.allocator import (
    AllocationResult,
    AllocationStatus,
    AllocatorConfig,
    PipelineStage,
    WeeklyAllocator,
    generate_schedule,
)
from .algorithm.annealing import AnnealingParameters
from .algorithm.models import Category, MeetingTime, Obligation
from .algorithm.repair import RepairSettings
from .algorithm.scoring import ScoringWeights
from .algorithm.seeding import SleepSettings
from .data_parsing.category_parser import load_categories, parse_categories
from .exceptions import InvalidInputError
from .grid.schedule import Schedule, SlotContent, SlotKind
from .grid.time_grid import Day, TimeBucket

__all__ = [
    "WeeklyAllocator",
    "AllocatorConfig",
    "AllocationResult",
    "AllocationStatus",
    "PipelineStage",
    "generate_schedule",
    "AnnealingParameters",
    "ScoringWeights",
    "SleepSettings",
    "RepairSettings",
    "Category",
    "Obligation",
    "MeetingTime",
    "Schedule",
    "SlotContent",
    "SlotKind",
    "Day",
    "TimeBucket",
    "InvalidInputError",
    "parse_categories",
    "load_categories",
]
