"""
Budget apportionment: turn category and obligation priority weights into
integer weekly slot quotas using the largest-remainder method.
"""

import logging
import math
from typing import List

from ..grid.time_grid import TOTAL_SLOTS
from .models import Category, Obligation, round_half_up

logger = logging.getLogger(__name__)

PRIORITY_SUM_TOLERANCE = 0.01


def apportion_category(category: Category, total_slots: int = TOTAL_SLOTS) -> List[Obligation]:
    """
    Set ``blocks_required`` on every child of the category.

    Each child gets floor(category quota x relative priority); the rounding
    leftover of the category is then handed out one slot at a time in
    descending order of the fractional parts, so the children sum to the
    rounded category quota.
    """
    category_exact = total_slots * category.priority

    for child in category.children:
        exact = category_exact * child.relative_priority
        floored = math.floor(exact)
        child.blocks_required = floored
        child.remainder = exact - floored

    assigned = sum(child.blocks_required for child in category.children)
    leftover = round_half_up(category_exact) - assigned
    if leftover > 0:
        # sorted() is stable, so equal remainders keep input order
        for child in sorted(category.children, key=lambda c: c.remainder, reverse=True):
            if leftover <= 0:
                break
            child.blocks_required += 1
            leftover -= 1

    return list(category.children)


def apportion_targets(categories: List[Category], total_slots: int = TOTAL_SLOTS) -> List[Obligation]:
    """Apportion every category and return the flattened obligation list in input order."""
    obligations = []
    for category in categories:
        obligations.extend(apportion_category(category, total_slots))
    logger.debug("Apportioned %d slots across %d obligations",
                 sum(o.target for o in obligations), len(obligations))
    return obligations


def check_priorities(categories: List[Category], total_slots: int = TOTAL_SLOTS) -> List[str]:
    """Non-fatal sanity checks on the priority weights. Returns diagnostic messages."""
    diagnostics = []
    for category in categories:
        if category.priority < 0:
            diagnostics.append(f"Category '{category.id}' has negative priority {category.priority}")
        if category.children:
            relative_total = sum(child.relative_priority for child in category.children)
            if abs(relative_total - 1.0) > PRIORITY_SUM_TOLERANCE:
                diagnostics.append(
                    f"Relative priorities in category '{category.id}' sum to {relative_total:.3f}, expected 1.0")
        for child in category.children:
            if child.relative_priority < 0:
                diagnostics.append(f"Obligation '{child.id}' has negative relative priority")

    total = sum(category.priority for category in categories)
    if categories and abs(total - 1.0) > PRIORITY_SUM_TOLERANCE:
        diagnostics.append(f"Category priorities sum to {total:.3f}, expected 1.0")

    requested = sum(max(0, round_half_up(total_slots * c.priority)) for c in categories)
    if requested > total_slots:
        diagnostics.append(f"Requested {requested} slots but the week only has {total_slots}")
    return diagnostics
