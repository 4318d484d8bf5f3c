"""Pydantic schemas validating learning log input at the mutation boundary."""

from typing import Any

from pydantic import AnyUrl, BaseModel, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from learning_journal.core.config import settings

MUTABLE_FIELDS = ("title", "reflection", "tags", "time_spent", "source_url")

# Wire (camelCase) names for field error keys
WIRE_FIELD_NAMES = {
    "title": "title",
    "reflection": "reflection",
    "tags": "tags",
    "time_spent": "timeSpent",
    "source_url": "sourceUrl",
}

_url_adapter = TypeAdapter(AnyUrl)


def _fail(field: str, message: str) -> PydanticCustomError:
    return PydanticCustomError(field, message)


def _clean_title(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise _fail("title", "Title is required")
    value = value.strip()
    if len(value) > settings.TITLE_MAX_LENGTH:
        raise _fail("title", "Keep it concise")
    return value


def _clean_reflection(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise _fail("reflection", "Reflection is required")
    value = value.strip()
    if len(value) > settings.REFLECTION_MAX_LENGTH:
        raise _fail("reflection", "Reflection is too long")
    return value


def _clean_tags(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        raise _fail("tags", "Add at least one tag")
    cleaned = []
    for tag in value:
        if not isinstance(tag, str) or not tag.strip():
            raise _fail("tags", "Tag cannot be empty")
        tag = tag.strip()
        if len(tag) > settings.TAG_MAX_LENGTH:
            raise _fail("tags", f"Keep tags under {settings.TAG_MAX_LENGTH} characters")
        cleaned.append(tag)
    if not cleaned:
        raise _fail("tags", "Add at least one tag")
    if len(cleaned) > settings.TAGS_MAX_COUNT:
        raise _fail("tags", f"Limit to {settings.TAGS_MAX_COUNT} tags")
    return cleaned


def _clean_time_spent(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _fail("time_spent", "Time spent must be a number")
    if isinstance(value, float):
        if not value.is_integer():
            raise _fail("time_spent", "Time spent must be an integer")
        value = int(value)
    if value < 1:
        raise _fail("time_spent", "Time spent must be at least one minute")
    if value > settings.TIME_SPENT_MAX_MINUTES:
        raise _fail("time_spent", "Keep it under 24 hours")
    return value


def _clean_source_url(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise _fail("source_url", "Provide a valid URL")
    value = value.strip()
    if not value:
        return None
    if len(value) > settings.SOURCE_URL_MAX_LENGTH:
        raise _fail("source_url", "URL is too long")
    try:
        _url_adapter.validate_python(value)
    except PydanticValidationError:
        raise _fail("source_url", "Provide a valid URL") from None
    # Store the URL as typed; AnyUrl would normalise it
    return value


class LearningLogFields(BaseModel):
    """Shared field validators for create and update input."""

    @field_validator("title", mode="before", check_fields=False)
    @classmethod
    def validate_title(cls, value: Any) -> str:
        return _clean_title(value)

    @field_validator("reflection", mode="before", check_fields=False)
    @classmethod
    def validate_reflection(cls, value: Any) -> str:
        return _clean_reflection(value)

    @field_validator("tags", mode="before", check_fields=False)
    @classmethod
    def validate_tags(cls, value: Any) -> list[str]:
        return _clean_tags(value)

    @field_validator("time_spent", mode="before", check_fields=False)
    @classmethod
    def validate_time_spent(cls, value: Any) -> int:
        return _clean_time_spent(value)

    @field_validator("source_url", mode="before", check_fields=False)
    @classmethod
    def validate_source_url(cls, value: Any) -> str | None:
        return _clean_source_url(value)


class LearningLogCreate(LearningLogFields):
    title: str
    reflection: str
    tags: list[str]
    time_spent: int
    source_url: str | None = None


class LearningLogUpdate(LearningLogFields):
    """Partial update. Only fields present in the input are validated and applied."""

    title: str | None = None
    reflection: str | None = None
    tags: list[str] | None = None
    time_spent: int | None = None
    source_url: str | None = None


def to_field_errors(exc: PydanticValidationError) -> dict[str, str]:
    """Collapses pydantic errors to the first message per wire field."""
    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = error.get("loc") or ("input",)
        field = WIRE_FIELD_NAMES.get(str(loc[0]), str(loc[0]))
        errors.setdefault(field, error["msg"])
    return errors
