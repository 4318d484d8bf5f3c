import strawberry

from learning_journal.graphql.common import Node, NodeType, to_global_id
from learning_journal.graphql.utils import format_timestamp
from learning_journal.models.learning_log import LearningLog as LearningLogModel
from learning_journal.services import filters


@strawberry.type
class LearningLog(Node):
    """A single learning journal entry."""

    id: strawberry.ID
    title: str
    reflection: str
    tags: list[str]
    time_spent: int = strawberry.field(description="Minutes spent")
    source_url: str | None
    created_at: str = strawberry.field(description="ISO-8601 UTC timestamp")

    @classmethod
    def from_orm(cls, obj: LearningLogModel) -> "LearningLog":
        return cls(
            id=to_global_id(NodeType.LEARNING_LOG, obj.id),
            title=obj.title,
            reflection=obj.reflection,
            tags=list(obj.tags),
            time_spent=obj.time_spent,
            source_url=obj.source_url,
            created_at=format_timestamp(obj.created_at),
        )


# --- Pagination Types ---


@strawberry.type
class LearningLogEdge:
    node: LearningLog
    cursor: str


@strawberry.type
class PageInfo:
    has_next_page: bool
    has_previous_page: bool
    start_cursor: str | None = None
    end_cursor: str | None = None


@strawberry.type
class LearningLogConnection:
    """Relay-style connection over learning logs, newest first."""

    edges: list[LearningLogEdge]
    page_info: PageInfo


@strawberry.input
class LearningLogFilter:
    tags_any: list[str] | None = strawberry.field(
        default=None, description="Entry has at least one of these tags"
    )
    tags_all: list[str] | None = strawberry.field(
        default=None, description="Entry has every one of these tags"
    )
    q: str | None = strawberry.field(
        default=None, description="Case-insensitive text in title or reflection"
    )
    from_: str | None = strawberry.field(
        default=None, name="from", description="Inclusive lower bound on createdAt"
    )
    to: str | None = strawberry.field(
        default=None, description="Inclusive upper bound on createdAt"
    )

    def to_filter(self) -> filters.LearningLogFilter:
        return filters.LearningLogFilter(
            tags_any=tuple(self.tags_any or ()),
            tags_all=tuple(self.tags_all or ()),
            q=self.q,
            from_=self.from_,
            to=self.to,
        )


# --- Mutation Inputs ---


@strawberry.input
class CreateLearningLogInput:
    title: str
    reflection: str
    tags: list[str]
    time_spent: int
    source_url: str | None = None

    def to_fields(self) -> dict:
        return {
            "title": self.title,
            "reflection": self.reflection,
            "tags": self.tags,
            "time_spent": self.time_spent,
            "source_url": self.source_url,
        }


@strawberry.input
class UpdateLearningLogInput:
    """Only the fields present in the input are changed. `sourceUrl: null` clears the URL."""

    id: strawberry.ID
    title: str | None = strawberry.UNSET
    reflection: str | None = strawberry.UNSET
    tags: list[str] | None = strawberry.UNSET
    time_spent: int | None = strawberry.UNSET
    source_url: str | None = strawberry.UNSET

    def to_fields(self) -> dict:
        values = {
            "title": self.title,
            "reflection": self.reflection,
            "tags": self.tags,
            "time_spent": self.time_spent,
            "source_url": self.source_url,
        }
        return {key: value for key, value in values.items() if value is not strawberry.UNSET}


@strawberry.input
class DeleteLearningLogInput:
    id: strawberry.ID


# --- Payloads ---


@strawberry.type
class CreateLearningLogPayload:
    log: LearningLog


@strawberry.type
class UpdateLearningLogPayload:
    log: LearningLog


@strawberry.type
class DeleteLearningLogPayload:
    deleted_id: strawberry.ID
