"""
Category Parser - turns request payloads (decoded JSON) into validated
Category / Obligation / MeetingTime objects.

Both the camelCase keys used by the web client (relativePriority,
maxStretch, preferredTimeBlocks, dependencyIds, meetingTimes, isSleep) and
their snake_case equivalents are accepted.
"""

import json
import numbers
from pathlib import Path
from typing import Any, Dict, List, Union

from ..exceptions import InvalidInputError
from ..algorithm.models import Category, MeetingTime, Obligation

_MISSING = object()


def _field(record: Dict[str, Any], *keys: str, default: Any = _MISSING, where: str = "") -> Any:
    """Return the first present key, or ``default``; raise if required and missing."""
    for key in keys:
        if key in record:
            return record[key]
    if default is _MISSING:
        raise InvalidInputError(f"{where}: missing required field '{keys[0]}'")
    return default


def _number(value: Any, name: str, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidInputError(f"{where}: '{name}' must be a number, got {value!r}")
    return float(value)


def _hhmm(value: Any, name: str, where: str) -> int:
    # JSON clients sometimes send 800.0 for 08:00
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{where}: '{name}' must be an HHMM integer, got {value!r}")
    return value


def parse_meeting_time(record: Dict[str, Any], where: str = "meeting") -> MeetingTime:
    if not isinstance(record, dict):
        raise InvalidInputError(f"{where}: expected an object, got {type(record).__name__}")
    day = _field(record, 'day', where=where)
    start = _hhmm(_field(record, 'start', where=where), 'start', where)
    end = _hhmm(_field(record, 'end', where=where), 'end', where)
    try:
        return MeetingTime(day=day, start=start, end=end)
    except InvalidInputError as e:
        raise InvalidInputError(f"{where}: {e}")


def parse_obligation(record: Dict[str, Any], where: str = "obligation") -> Obligation:
    if not isinstance(record, dict):
        raise InvalidInputError(f"{where}: expected an object, got {type(record).__name__}")
    obligation_id = str(_field(record, 'id', where=where))
    where = f"{where} '{obligation_id}'"

    meetings_data = _field(record, 'meetingTimes', 'meeting_times', default=None, where=where) or []
    meeting_times = [
        parse_meeting_time(mt, where=f"{where} meeting #{i + 1}") for i, mt in enumerate(meetings_data)
    ]

    is_sleep = _field(record, 'isSleep', 'is_sleep', default=None, where=where)
    name = str(_field(record, 'name', default=obligation_id, where=where))
    relative_priority = _number(
        _field(record, 'relativePriority', 'relative_priority', where=where), 'relativePriority', where)
    max_stretch = _number(_field(record, 'maxStretch', 'max_stretch', where=where), 'maxStretch', where)
    buckets = _field(record, 'preferredTimeBlocks', 'preferred_time_blocks', default=None, where=where) or ()
    dependency_ids = _field(record, 'dependencyIds', 'dependency_ids', default=None, where=where) or []
    try:
        return Obligation(
            id=obligation_id,
            name=name,
            relative_priority=relative_priority,
            max_stretch=max_stretch,
            preferred_time_blocks=tuple(buckets),
            dependency_ids=list(dependency_ids),
            meeting_times=meeting_times,
            is_sleep=None if is_sleep is None else bool(is_sleep),
        )
    except InvalidInputError as e:
        raise InvalidInputError(f"{where}: {e}")


def parse_category(record: Dict[str, Any], where: str = "category") -> Category:
    if not isinstance(record, dict):
        raise InvalidInputError(f"{where}: expected an object, got {type(record).__name__}")
    category_id = str(_field(record, 'id', where=where))
    where = f"category '{category_id}'"
    children = _field(record, 'children', default=None, where=where) or []
    return Category(
        id=category_id,
        name=str(_field(record, 'name', default=category_id, where=where)),
        priority=_number(_field(record, 'priority', where=where), 'priority', where),
        children=[parse_obligation(child, where=f"{where} obligation #{i + 1}")
                  for i, child in enumerate(children)],
        is_sleep=bool(_field(record, 'isSleep', 'is_sleep', default=False, where=where)),
    )


def parse_categories(payload: Union[List[Dict[str, Any]], Dict[str, Any]]) -> List[Category]:
    """
    Parse a list of category records (or ``{"categories": [...]}``).

    Raises:
        InvalidInputError: If any record is malformed
    """
    if isinstance(payload, dict):
        payload = _field(payload, 'categories', where="request")
    if not isinstance(payload, list):
        raise InvalidInputError("Categories must be a list")
    return [parse_category(record, where=f"category #{i + 1}") for i, record in enumerate(payload)]


def load_categories(path: Union[str, Path]) -> List[Category]:
    """Read categories from a JSON file."""
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"Invalid JSON in {path}: {e}")
    return parse_categories(payload)
