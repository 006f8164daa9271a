import json
from pathlib import Path

import pytest

from week_allocator.data_parsing.category_parser import load_categories, parse_categories, parse_obligation
from week_allocator.data_parsing.demo_data import DEMO_CATEGORIES
from week_allocator.exceptions import InvalidInputError
from week_allocator.grid.time_grid import Day, TimeBucket


def test_demo_categories_parse() -> None:
    categories = parse_categories(DEMO_CATEGORIES)
    obligations = {child.id: child for category in categories for child in category.children}
    assert set(obligations) == {"bio101", "eng204", "chem301", "night-sleep", "friends", "family"}
    assert obligations["night-sleep"].is_sleep is True
    assert obligations["bio101"].is_sleep is False
    assert obligations["bio101"].meeting_times[0].day is Day.MONDAY
    assert obligations["bio101"].preferred_time_blocks == (TimeBucket.MORNING, TimeBucket.AFTERNOON)


def test_snake_case_keys_and_wrapped_payload() -> None:
    payload = {"categories": [{
        "id": "c",
        "priority": 1,
        "children": [{
            "id": "o",
            "relative_priority": 1,
            "max_stretch": 1.5,
            "meeting_times": [{"day": 2, "start": 1000.0, "end": 1100}],
        }],
    }]}
    (category,) = parse_categories(payload)
    (obligation,) = category.children
    assert category.name == "c"
    assert obligation.name == "o"
    assert obligation.max_stretch == 1.5
    assert obligation.meeting_times[0].day is Day.WEDNESDAY
    assert obligation.meeting_times[0].start == 1000


def test_missing_field_names_the_record() -> None:
    with pytest.raises(InvalidInputError, match="obligation 'o': missing required field 'maxStretch'"):
        parse_obligation({"id": "o", "relativePriority": 1})


def test_bad_values_are_rejected() -> None:
    base = {"id": "o", "relativePriority": 1, "maxStretch": 1}
    with pytest.raises(InvalidInputError, match="must be a number"):
        parse_obligation(dict(base, maxStretch="two"))
    with pytest.raises(InvalidInputError, match="HHMM"):
        parse_obligation(dict(base, meetingTimes=[{"day": "monday", "start": "0800", "end": 900}]))
    with pytest.raises(InvalidInputError, match="Unknown day"):
        parse_obligation(dict(base, meetingTimes=[{"day": "someday", "start": 800, "end": 900}]))
    with pytest.raises(InvalidInputError, match="out of range"):
        parse_obligation(dict(base, meetingTimes=[{"day": "monday", "start": 800, "end": 2500}]))
    with pytest.raises(InvalidInputError):
        parse_categories("not a list")


def test_load_categories_from_file(tmp_path: Path) -> None:
    path = tmp_path / "week.json"
    path.write_text(json.dumps(DEMO_CATEGORIES), encoding="utf-8")
    assert len(load_categories(path)) == len(DEMO_CATEGORIES)

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(InvalidInputError, match="Invalid JSON"):
        load_categories(broken)
