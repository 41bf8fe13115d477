"""Threaded comment tree persisted as one JSON array per record."""

import json
from typing import Any, Self

import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic import ValidationError as PydanticValidationError

from recordcomments.core.modules.comment.migrations import normalize_comment
from recordcomments.core.modules.mention.models import CommentSegment

logger = structlog.get_logger(__name__)


class Person(BaseModel):
    """Comment author or upvoter; upvoters are unique by e-mail."""

    name: str
    email: str


class Comment(BaseModel):
    """Comment with at most one level of replies.

    `id` is the lookup identifier; `date_iso` is for display and sorting only.
    Legacy data may have `id == date_iso`, and `parent_comment_id` references are
    only guaranteed stable for comments created with generated ids.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    date_iso: str = Field(..., alias="dateISO")
    content: list[CommentSegment] = Field(default_factory=list)
    author: Person
    users_who_upvoted: list[Person] = Field(default_factory=list, alias="usersWhoUpvoted")
    replies: list["Comment"] | None = None
    parent_comment_id: str | None = Field(None, alias="parentCommentId")

    @model_validator(mode="after")
    def check_two_levels(self) -> Self:
        for reply in self.replies or []:
            if reply.replies:
                raise ValueError(f"Reply {reply.id} cannot carry replies")
        return self

    def find_reply(self, reply_id: str) -> "Comment | None":
        return next((reply for reply in self.replies or [] if reply.id == reply_id), None)

    def has_upvote_from(self, email: str) -> bool:
        return any(upvoter.email == email for upvoter in self.users_who_upvoted)


CommentList = TypeAdapter(list[Comment])


def find_comment(comments: list[Comment], comment_id: str) -> Comment | None:
    """Top-level lookup by id."""
    return next((comment for comment in comments if comment.id == comment_id), None)


def parse_comments(content: Any) -> list[Comment]:
    """Parse stored comment data (JSON string, decoded list or None).

    Malformed data degrades to an empty conversation. Only structural metadata is
    logged, never comment text.
    """
    if not content:
        return []

    data = content
    if isinstance(content, str):
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning(
                "comments_json_invalid",
                content_length=len(content),
                starts_with_bracket=content.startswith(("[", "{")),
                error_position=e.pos,
            )
            return []

    if not isinstance(data, list):
        logger.warning("comments_unexpected_type", content_type=type(data).__name__)
        return []

    try:
        return CommentList.validate_python([normalize_comment(item) for item in data])
    except PydanticValidationError as e:
        logger.warning(
            "comments_validation_failed",
            array_length=len(data),
            first_item_type=type(data[0]).__name__,
            error_count=e.error_count(),
        )
        return []


def serialize_comments(comments: list[Comment]) -> str:
    return CommentList.dump_json(comments, by_alias=True, exclude_none=True).decode()
