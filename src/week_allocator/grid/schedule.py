"""
Weekly schedule grid.

A Schedule is a 7 x 96 grid. Each cell is either empty or a SlotContent:
the id of the owning obligation plus a kind tag (meeting, study, sleep,
general or break). Internally the grid is two numpy arrays, an owner index
and a kind code, so copying a candidate schedule is two array copies and
scoring can work on whole days at once.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterator, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .time_grid import DAYS, NUM_DAYS, SLOTS_PER_DAY, Day, slot_to_label

EMPTY_OWNER = -1
EMPTY_KIND = 0


class SlotKind(IntEnum):
    """Qualifier attached to an occupied slot."""
    MEETING = 1
    STUDY = 2
    SLEEP = 3
    GENERAL = 4
    BREAK = 5

    @property
    def label(self) -> str:
        return _KIND_LABELS[self]


_KIND_LABELS = {
    SlotKind.MEETING: "meeting",
    SlotKind.STUDY: "studying",
    SlotKind.SLEEP: "sleep",
    SlotKind.GENERAL: "general",
    SlotKind.BREAK: "break",
}


@dataclass(frozen=True)
class SlotContent:
    """An occupied slot: which obligation owns it and in what capacity."""
    owner_id: str
    kind: SlotKind

    def belongs_to(self, obligation_id: str) -> bool:
        """True if the slot counts towards the obligation (breaks never do)."""
        return self.owner_id == obligation_id and self.kind != SlotKind.BREAK


class SlotRun(NamedTuple):
    """A maximal run of identical contents within one day."""
    day: Day
    start: int
    length: int
    content: SlotContent

    @property
    def end(self) -> int:
        return self.start + self.length


def _check_bounds(day, slot: int):
    if not 0 <= int(day) < NUM_DAYS:
        raise IndexError(f"Day index out of range: {day}")
    if not 0 <= slot < SLOTS_PER_DAY:
        raise IndexError(f"Slot index out of range: {slot}")


class BlockedSet:
    """Frozen (day, slot) pairs. Set by meeting and sleep seeding, never cleared."""

    def __init__(self):
        self.mask = np.zeros((NUM_DAYS, SLOTS_PER_DAY), dtype=bool)

    def add(self, day: Day, slot: int):
        _check_bounds(day, slot)
        self.mask[int(day), slot] = True

    def __contains__(self, key: Tuple[Day, int]) -> bool:
        day, slot = key
        if not 0 <= slot < SLOTS_PER_DAY:
            return False
        return bool(self.mask[int(day), slot])

    def __len__(self) -> int:
        return int(self.mask.sum())

    def __iter__(self) -> Iterator[Tuple[Day, int]]:
        for day_index, slot in zip(*np.nonzero(self.mask)):
            yield Day(int(day_index)), int(slot)

    def day_mask(self, day: Day) -> np.ndarray:
        return self.mask[int(day)]


class Schedule:
    """Mutable 7 x 96 grid bound to a fixed roster of obligation ids."""

    def __init__(self, obligation_ids: Sequence[str], names: Optional[Dict[str, str]] = None):
        self.obligation_ids: Tuple[str, ...] = tuple(obligation_ids)
        self._index = {owner_id: i for i, owner_id in enumerate(self.obligation_ids)}
        if len(self._index) != len(self.obligation_ids):
            raise ValueError("Schedule roster contains duplicate obligation ids")
        self.names: Dict[str, str] = dict(names or {})
        self.owners = np.full((NUM_DAYS, SLOTS_PER_DAY), EMPTY_OWNER, dtype=np.int32)
        self.kinds = np.full((NUM_DAYS, SLOTS_PER_DAY), EMPTY_KIND, dtype=np.int8)

    # --- cell access -------------------------------------------------------

    def index_of(self, owner_id: str) -> int:
        return self._index[owner_id]

    def get(self, day: Day, slot: int) -> Optional[SlotContent]:
        _check_bounds(day, slot)
        owner = self.owners[int(day), slot]
        if owner == EMPTY_OWNER:
            return None
        return SlotContent(self.obligation_ids[owner], SlotKind(int(self.kinds[int(day), slot])))

    def set(self, day: Day, slot: int, content: Optional[SlotContent]):
        _check_bounds(day, slot)
        if content is None:
            self.owners[int(day), slot] = EMPTY_OWNER
            self.kinds[int(day), slot] = EMPTY_KIND
        else:
            self.owners[int(day), slot] = self._index[content.owner_id]
            self.kinds[int(day), slot] = int(content.kind)

    def clear(self, day: Day, slot: int):
        self.set(day, slot, None)

    def is_empty(self, day: Day, slot: int) -> bool:
        _check_bounds(day, slot)
        return self.owners[int(day), slot] == EMPTY_OWNER

    def day_row(self, day: Day) -> List[Optional[SlotContent]]:
        return [self.get(day, slot) for slot in range(SLOTS_PER_DAY)]

    def __getitem__(self, day) -> List[Optional[SlotContent]]:
        return self.day_row(Day.parse(day))

    # --- value semantics ---------------------------------------------------

    def copy(self) -> "Schedule":
        """Independent value copy; the clone never aliases this grid."""
        clone = Schedule.__new__(Schedule)
        clone.obligation_ids = self.obligation_ids
        clone._index = self._index
        clone.names = self.names
        clone.owners = self.owners.copy()
        clone.kinds = self.kinds.copy()
        return clone

    def freeze(self) -> "Schedule":
        """Make the grid read-only. Further writes raise ValueError."""
        self.owners.setflags(write=False)
        self.kinds.setflags(write=False)
        return self

    @property
    def is_frozen(self) -> bool:
        return not self.owners.flags.writeable

    def __eq__(self, other) -> bool:
        if not isinstance(other, Schedule):
            return NotImplemented
        return (self.obligation_ids == other.obligation_ids
                and np.array_equal(self.owners, other.owners)
                and np.array_equal(self.kinds, other.kinds))

    __hash__ = None

    # --- aggregate views ---------------------------------------------------

    def owner_mask(self, owner_id: str, include_breaks: bool = False) -> np.ndarray:
        """Bool (7, 96) mask of slots owned by the obligation."""
        mask = self.owners == self._index[owner_id]
        if not include_breaks:
            mask &= self.kinds != SlotKind.BREAK
        return mask

    def count(self, owner_id: str) -> int:
        """Slots that count towards the obligation (breaks excluded)."""
        return int(self.owner_mask(owner_id).sum())

    def counts(self) -> Dict[str, int]:
        counted = self.owners[(self.owners != EMPTY_OWNER) & (self.kinds != SlotKind.BREAK)]
        totals = np.bincount(counted, minlength=len(self.obligation_ids))
        return {owner_id: int(totals[i]) for i, owner_id in enumerate(self.obligation_ids)}

    def filled_count(self) -> int:
        return int((self.owners != EMPTY_OWNER).sum())

    def runs(self, day: Optional[Day] = None) -> List[SlotRun]:
        """Maximal runs of identical (owner, kind) contents, in day/slot order."""
        days = DAYS if day is None else [day]
        found = []
        for d in days:
            owners = self.owners[int(d)]
            kinds = self.kinds[int(d)]
            slot = 0
            while slot < SLOTS_PER_DAY:
                if owners[slot] == EMPTY_OWNER:
                    slot += 1
                    continue
                start = slot
                while (slot < SLOTS_PER_DAY and owners[slot] == owners[start]
                       and kinds[slot] == kinds[start]):
                    slot += 1
                content = SlotContent(self.obligation_ids[owners[start]], SlotKind(int(kinds[start])))
                found.append(SlotRun(d, start, slot - start, content))
        return found

    # --- exports -----------------------------------------------------------

    def display_label(self, content: Optional[SlotContent]) -> Optional[str]:
        if content is None:
            return None
        name = self.names.get(content.owner_id, content.owner_id)
        if content.kind in (SlotKind.STUDY, SlotKind.BREAK):
            return f"{name} ({content.kind.label.capitalize()})"
        return name

    def to_dict(self) -> Dict[str, List[Optional[dict]]]:
        """JSON-safe mapping of day name to its 96 entries."""
        result = {}
        for day in DAYS:
            entries = []
            for content in self.day_row(day):
                if content is None:
                    entries.append(None)
                else:
                    entries.append({
                        'obligation': content.owner_id,
                        'name': self.names.get(content.owner_id, content.owner_id),
                        'kind': content.kind.label,
                        'label': self.display_label(content),
                    })
            result[day.label] = entries
        return result

    def to_frame(self) -> pd.DataFrame:
        """Slots as rows (indexed by time label), days as columns."""
        data = {
            day.label: [self.display_label(content) for content in self.day_row(day)]
            for day in DAYS
        }
        index = pd.Index([slot_to_label(slot) for slot in range(SLOTS_PER_DAY)], name="time")
        return pd.DataFrame(data, index=index)
