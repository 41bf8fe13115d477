"""Pure application of operations to a comment tree.

Every operation is idempotent: applying it to a tree that already reflects it
returns `no_op_idempotent` with the tree unchanged. Conflicts caused by other
clients (a deleted parent or target) are reported through the result status,
never raised. Comments are identified by `id`, never by `date_iso`.
"""

from collections.abc import Callable
from typing import NamedTuple

import structlog

from recordcomments.core.modules.comment.models import Comment, Person, find_comment
from recordcomments.core.modules.operation.models import (
    AddComment,
    AddReply,
    DeleteComment,
    EditComment,
    Operation,
    OperationResult,
    OperationStatus,
    UpvoteAction,
    UpvoteComment,
)

logger = structlog.get_logger(__name__)


class FailureMessages(NamedTuple):
    parent_missing: str
    target_missing: str


class Resolved(NamedTuple):
    target: Comment
    parent: Comment | None


def _resolve_target(
    comments: list[Comment],
    target_id: str,
    parent_id: str | None,
    operation: str,
    messages: FailureMessages,
    missing_is_idempotent: bool = False,
) -> Resolved | OperationResult:
    """Find the operation's target, or the result to return when it cannot be found."""
    parent = None
    if parent_id is not None:
        parent = find_comment(comments, parent_id)
        if parent is None:
            logger.warning("operation_parent_missing", operation=operation, parent_id=parent_id)
            return OperationResult(
                comments=comments, status=OperationStatus.FAILED_PARENT_MISSING, failure_reason=messages.parent_missing
            )
        target = parent.find_reply(target_id)
    else:
        target = find_comment(comments, target_id)

    if target is None:
        if missing_is_idempotent:
            return OperationResult(comments=comments, status=OperationStatus.NO_OP_IDEMPOTENT)
        logger.warning("operation_target_missing", operation=operation, target_id=target_id, parent_id=parent_id)
        return OperationResult(
            comments=comments, status=OperationStatus.FAILED_TARGET_MISSING, failure_reason=messages.target_missing
        )
    return Resolved(target, parent)


def _update_comment(
    comments: list[Comment], target_id: str, parent_id: str | None, update: Callable[[Comment], Comment]
) -> list[Comment]:
    if parent_id is None:
        return [update(comment) if comment.id == target_id else comment for comment in comments]
    return [
        comment.model_copy(
            update={"replies": [update(reply) if reply.id == target_id else reply for reply in comment.replies or []]}
        )
        if comment.id == parent_id
        else comment
        for comment in comments
    ]


def apply_add_comment(comments: list[Comment], op: AddComment) -> OperationResult:
    if find_comment(comments, op.comment.id) is not None:
        return OperationResult(comments=comments, status=OperationStatus.NO_OP_IDEMPOTENT)
    # Newest first
    return OperationResult(comments=[op.comment, *comments], status=OperationStatus.APPLIED)


def apply_delete_comment(comments: list[Comment], op: DeleteComment) -> OperationResult:
    resolved = _resolve_target(
        comments,
        op.id,
        op.parent_comment_id,
        "DELETE_COMMENT",
        FailureMessages(
            parent_missing="The comment thread was deleted by another user.",
            target_missing="The comment was deleted by another user.",
        ),
        missing_is_idempotent=True,
    )
    if isinstance(resolved, OperationResult):
        return resolved

    if op.parent_comment_id is None:
        return OperationResult(comments=[c for c in comments if c.id != op.id], status=OperationStatus.APPLIED)

    new_comments = [
        comment.model_copy(update={"replies": [r for r in comment.replies or [] if r.id != op.id]})
        if comment.id == op.parent_comment_id
        else comment
        for comment in comments
    ]
    return OperationResult(comments=new_comments, status=OperationStatus.APPLIED)


def apply_edit_comment(comments: list[Comment], op: EditComment) -> OperationResult:
    resolved = _resolve_target(
        comments,
        op.id,
        op.parent_comment_id,
        "EDIT_COMMENT",
        FailureMessages(
            parent_missing="Your edit could not be saved because the comment thread was deleted by another user.",
            target_missing=(
                "The reply you were editing was deleted by another user."
                if op.parent_comment_id
                else "The comment you were editing was deleted by another user."
            ),
        ),
    )
    if isinstance(resolved, OperationResult):
        return resolved

    if resolved.target.content == op.new_content:
        return OperationResult(comments=comments, status=OperationStatus.NO_OP_IDEMPOTENT)

    new_comments = _update_comment(
        comments, op.id, op.parent_comment_id, lambda comment: comment.model_copy(update={"content": op.new_content})
    )
    return OperationResult(comments=new_comments, status=OperationStatus.APPLIED)


def apply_upvote_comment(comments: list[Comment], op: UpvoteComment) -> OperationResult:
    resolved = _resolve_target(
        comments,
        op.id,
        op.parent_comment_id,
        "UPVOTE_COMMENT",
        FailureMessages(
            parent_missing="The comment thread was deleted by another user.",
            target_missing=(
                "The reply was deleted by another user." if op.parent_comment_id else "The comment was deleted by another user."
            ),
        ),
    )
    if isinstance(resolved, OperationResult):
        return resolved

    has_upvoted = resolved.target.has_upvote_from(op.user.email)
    if (op.action is UpvoteAction.ADD) == has_upvoted:
        return OperationResult(comments=comments, status=OperationStatus.NO_OP_IDEMPOTENT)

    def modify_upvotes(comment: Comment) -> Comment:
        upvoters: list[Person]
        if op.action is UpvoteAction.ADD:
            upvoters = [*comment.users_who_upvoted, op.user]
        else:
            upvoters = [voter for voter in comment.users_who_upvoted if voter.email != op.user.email]
        return comment.model_copy(update={"users_who_upvoted": upvoters})

    new_comments = _update_comment(comments, op.id, op.parent_comment_id, modify_upvotes)
    return OperationResult(comments=new_comments, status=OperationStatus.APPLIED)


def apply_add_reply(comments: list[Comment], op: AddReply) -> OperationResult:
    parent = find_comment(comments, op.parent_comment_id)
    if parent is None:
        # The composed reply cannot be kept anywhere
        logger.warning("operation_parent_missing", operation="ADD_REPLY", parent_id=op.parent_comment_id)
        return OperationResult(
            comments=comments,
            status=OperationStatus.FAILED_PARENT_MISSING,
            failure_reason="Your reply could not be saved because the comment was deleted by another user.",
        )

    if parent.find_reply(op.reply.id) is not None:
        return OperationResult(comments=comments, status=OperationStatus.NO_OP_IDEMPOTENT)

    reply = op.reply.model_copy(update={"parent_comment_id": op.parent_comment_id, "replies": None})
    new_comments = [
        comment.model_copy(update={"replies": [reply, *(comment.replies or [])]}) if comment.id == op.parent_comment_id else comment
        for comment in comments
    ]
    return OperationResult(comments=new_comments, status=OperationStatus.APPLIED)


def apply_operation(comments: list[Comment], op: Operation) -> OperationResult:
    """Apply one operation to a comment tree without mutating the input list."""
    match op:
        case AddComment():
            return apply_add_comment(comments, op)
        case DeleteComment():
            return apply_delete_comment(comments, op)
        case EditComment():
            return apply_edit_comment(comments, op)
        case UpvoteComment():
            return apply_upvote_comment(comments, op)
        case AddReply():
            return apply_add_reply(comments, op)
