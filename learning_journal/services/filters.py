"""Learning log filter: parsing, SQL compilation and in-memory matching.

``compile_filter`` feeds the storage query; ``matches_filter`` evaluates the
same clauses against an already loaded entry (used by the client cache to
decide which connections an optimistic record belongs to). Any object with
``title``, ``reflection``, ``tags`` and ``created_at`` attributes can be
matched.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import String, or_
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement

from learning_journal.core.exceptions import InvalidDateError
from learning_journal.database import UNICODE_LOWER_FUNCTION
from learning_journal.models.learning_log import LearningLog, LearningLogTag


class unicode_lower(FunctionElement):
    """Lower-cases text the way Python's str.lower() does, on every backend."""

    type = String()
    inherit_cache = True


@compiles(unicode_lower)
def _compile_unicode_lower(element, compiler, **kw):
    return f"lower({compiler.process(element.clauses, **kw)})"


@compiles(unicode_lower, "sqlite")
def _compile_unicode_lower_sqlite(element, compiler, **kw):
    return f"{UNICODE_LOWER_FUNCTION}({compiler.process(element.clauses, **kw)})"


@dataclass(frozen=True)
class LearningLogFilter:
    tags_any: tuple[str, ...] = field(default_factory=tuple)
    tags_all: tuple[str, ...] = field(default_factory=tuple)
    q: str | None = None
    from_: str | None = None
    to: str | None = None

    @classmethod
    def from_wire(cls, value: Mapping[str, Any] | None) -> "LearningLogFilter":
        """Builds a filter from its GraphQL variables shape (camelCase keys)."""
        if not value:
            return cls()
        return cls(
            tags_any=tuple(value.get("tagsAny") or ()),
            tags_all=tuple(value.get("tagsAll") or ()),
            q=value.get("q"),
            from_=value.get("from"),
            to=value.get("to"),
        )


@dataclass(frozen=True)
class CompiledFilter:
    """Parsed, normalised filter clauses. Inactive clauses are empty/None."""

    tags_any: tuple[str, ...] = ()
    tags_all: tuple[str, ...] = ()
    q: str | None = None
    start: datetime | None = None
    end: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.tags_any or self.tags_all or self.q or self.start or self.end)


def as_utc(value: datetime) -> datetime:
    """Attaches UTC to naive datetimes and converts aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_date_bound(value: str | None, field_name: str) -> datetime | None:
    """Parses an ISO-8601 date or datetime. Blank means no bound."""
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise InvalidDateError(field_name) from None
    return as_utc(parsed)


def _unique(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


def normalize_filter(filter: LearningLogFilter | None) -> CompiledFilter:
    """Validates date bounds and drops inactive clauses."""
    if filter is None:
        return CompiledFilter()
    q = filter.q.strip() if filter.q else None
    return CompiledFilter(
        tags_any=_unique(filter.tags_any or ()),
        tags_all=_unique(filter.tags_all or ()),
        q=q or None,
        start=parse_date_bound(filter.from_, "from"),
        end=parse_date_bound(filter.to, "to"),
    )


def compile_filter(filter: LearningLogFilter | CompiledFilter | None) -> list:
    """Compiles a filter into SQLAlchemy conditions, combined with AND by the caller."""
    compiled = filter if isinstance(filter, CompiledFilter) else normalize_filter(filter)
    conditions = []
    if compiled.tags_any:
        conditions.append(LearningLog.tag_rows.any(LearningLogTag.tag.in_(compiled.tags_any)))
    for tag in compiled.tags_all:
        conditions.append(LearningLog.tag_rows.any(LearningLogTag.tag == tag))
    if compiled.q:
        needle = compiled.q.lower()
        conditions.append(
            or_(
                unicode_lower(LearningLog.title).contains(needle, autoescape=True),
                unicode_lower(LearningLog.reflection).contains(needle, autoescape=True),
            )
        )
    if compiled.start is not None:
        conditions.append(LearningLog.created_at >= compiled.start)
    if compiled.end is not None:
        conditions.append(LearningLog.created_at <= compiled.end)
    return conditions


def matches_filter(filter: LearningLogFilter | CompiledFilter | None, entry: Any) -> bool:
    """Evaluates a filter against a single entry in memory."""
    compiled = filter if isinstance(filter, CompiledFilter) else normalize_filter(filter)
    if compiled.is_empty:
        return True

    tags = set(entry.tags or ())
    if compiled.tags_any and not tags.intersection(compiled.tags_any):
        return False
    if compiled.tags_all and not tags.issuperset(compiled.tags_all):
        return False
    if compiled.q:
        needle = compiled.q.lower()
        if needle not in (entry.title or "").lower() and needle not in (entry.reflection or "").lower():
            return False
    if compiled.start is not None or compiled.end is not None:
        created_at = as_utc(entry.created_at)
        if compiled.start is not None and created_at < compiled.start:
            return False
        if compiled.end is not None and created_at > compiled.end:
            return False
    return True
