import pytest
from pydantic import ValidationError as PydanticValidationError

from learning_journal.schemas.learning_log import (
    LearningLogCreate,
    LearningLogUpdate,
    to_field_errors,
)

VALID = {
    "title": "  Read the asyncio docs ",
    "reflection": "TaskGroup cancels siblings on failure.",
    "tags": [" python ", "async"],
    "time_spent": 45,
    "source_url": "https://docs.python.org/3/library/asyncio.html",
}


def _errors(model, **fields):
    with pytest.raises(PydanticValidationError) as exc_info:
        model(**fields)
    return to_field_errors(exc_info.value)


def test_create_trims_values():
    obj = LearningLogCreate(**VALID)
    assert obj.title == "Read the asyncio docs"
    assert obj.tags == ["python", "async"]
    assert obj.source_url == VALID["source_url"]


def test_create_blank_source_url_is_none():
    assert LearningLogCreate(**{**VALID, "source_url": "   "}).source_url is None


@pytest.mark.parametrize(
    "overrides, field, message",
    [
        ({"title": "   "}, "title", "Title is required"),
        ({"title": "x" * 121}, "title", "Keep it concise"),
        ({"reflection": ""}, "reflection", "Reflection is required"),
        ({"reflection": "x" * 4001}, "reflection", "Reflection is too long"),
        ({"tags": []}, "tags", "Add at least one tag"),
        ({"tags": ["ok", " "]}, "tags", "Tag cannot be empty"),
        ({"tags": [f"t{i}" for i in range(13)]}, "tags", "Limit to 12 tags"),
        ({"tags": ["x" * 51]}, "tags", "Keep tags under 50 characters"),
        ({"time_spent": 0}, "timeSpent", "Time spent must be at least one minute"),
        ({"time_spent": 1500}, "timeSpent", "Keep it under 24 hours"),
        ({"time_spent": 1.5}, "timeSpent", "Time spent must be an integer"),
        ({"source_url": "not a url"}, "sourceUrl", "Provide a valid URL"),
    ],
)
def test_create_field_errors(overrides, field, message):
    errors = _errors(LearningLogCreate, **{**VALID, **overrides})
    assert errors == {field: message}


def test_create_reports_one_message_per_field():
    errors = _errors(LearningLogCreate, title="", reflection="", tags=[], time_spent=1500)
    assert set(errors) == {"title", "reflection", "tags", "timeSpent"}


def test_time_spent_bounds_are_inclusive():
    assert LearningLogCreate(**{**VALID, "time_spent": 1}).time_spent == 1
    assert LearningLogCreate(**{**VALID, "time_spent": 1440}).time_spent == 1440


def test_update_validates_only_present_fields():
    obj = LearningLogUpdate(time_spent=20)
    assert obj.model_dump(exclude_unset=True) == {"time_spent": 20}


def test_update_explicit_null_on_required_field_fails():
    assert _errors(LearningLogUpdate, title=None) == {"title": "Title is required"}


def test_update_null_source_url_clears_it():
    obj = LearningLogUpdate(source_url=None)
    assert obj.model_dump(exclude_unset=True) == {"source_url": None}
