"""Replay-safe mutations of a comment tree."""

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from recordcomments.core.modules.comment.models import Comment, Person
from recordcomments.core.modules.mention.models import CommentSegment


class OperationType(StrEnum):
    ADD_COMMENT = "ADD_COMMENT"
    DELETE_COMMENT = "DELETE_COMMENT"
    EDIT_COMMENT = "EDIT_COMMENT"
    UPVOTE_COMMENT = "UPVOTE_COMMENT"
    ADD_REPLY = "ADD_REPLY"


class UpvoteAction(StrEnum):
    """Explicit direction so replaying an upvote never flips it back."""

    ADD = "add"
    REMOVE = "remove"


class AddComment(BaseModel):
    type: Literal[OperationType.ADD_COMMENT] = OperationType.ADD_COMMENT
    comment: Comment


class DeleteComment(BaseModel):
    type: Literal[OperationType.DELETE_COMMENT] = OperationType.DELETE_COMMENT
    id: str
    parent_comment_id: str | None = None


class EditComment(BaseModel):
    type: Literal[OperationType.EDIT_COMMENT] = OperationType.EDIT_COMMENT
    id: str
    new_content: list[CommentSegment]
    parent_comment_id: str | None = None


class UpvoteComment(BaseModel):
    type: Literal[OperationType.UPVOTE_COMMENT] = OperationType.UPVOTE_COMMENT
    id: str
    action: UpvoteAction
    user: Person
    parent_comment_id: str | None = None


class AddReply(BaseModel):
    type: Literal[OperationType.ADD_REPLY] = OperationType.ADD_REPLY
    parent_comment_id: str
    reply: Comment


Operation = Annotated[
    AddComment | DeleteComment | EditComment | UpvoteComment | AddReply,
    Field(discriminator="type"),
]


class OperationStatus(StrEnum):
    APPLIED = "applied"
    NO_OP_IDEMPOTENT = "no_op_idempotent"  # Already reflected in the tree
    FAILED_PARENT_MISSING = "failed_parent_missing"  # Thread deleted by someone else
    FAILED_TARGET_MISSING = "failed_target_missing"  # Comment deleted by someone else


class OperationResult(BaseModel):
    """Tree after applying an operation, and what happened."""

    comments: list[Comment]
    status: OperationStatus
    failure_reason: str | None = Field(None, description="Message suitable for showing to the user")

    @property
    def failed(self) -> bool:
        return self.status in (OperationStatus.FAILED_PARENT_MISSING, OperationStatus.FAILED_TARGET_MISSING)
