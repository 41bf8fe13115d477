import structlog

from recordcomments.core.core import Service
from recordcomments.core.modules.comment.models import Comment, Person, find_comment
from recordcomments.core.modules.mention.codec import EditableContent, decode, encode, is_content_empty
from recordcomments.core.modules.mention.models import CommentSegment, MentionMap
from recordcomments.core.modules.operation.models import (
    AddComment,
    AddReply,
    DeleteComment,
    EditComment,
    OperationResult,
    UpvoteAction,
    UpvoteComment,
)
from recordcomments.core.modules.sync.queue import SyncQueue
from recordcomments.errors import AccessDeniedError, NotFoundError
from recordcomments.utils import new_id, now_iso

logger = structlog.get_logger(__name__)


class CommentService(Service):
    """Comment actions of the current user, applied optimistically and persisted through the sync queue."""

    def __init__(self, queue: SyncQueue) -> None:
        super().__init__(queue)

    @property
    def author(self) -> Person:
        return self.core.current_user

    def get_comments(self) -> list[Comment]:
        return self.queue.comments

    def get_comment(self, comment_id: str, parent_comment_id: str | None = None) -> Comment:
        """Get a comment, or a reply when `parent_comment_id` is given."""
        if parent_comment_id is None:
            comment = find_comment(self.queue.comments, comment_id)
        else:
            parent = find_comment(self.queue.comments, parent_comment_id)
            comment = parent.find_reply(comment_id) if parent is not None else None
        if comment is None:
            raise NotFoundError(f"Comment '{comment_id}' not found")
        return comment

    def _decode(self, text: str, mentions: MentionMap) -> list[CommentSegment]:
        return decode(text, mentions, self.core.config.project_locales or None)

    def _check_author(self, comment: Comment) -> None:
        if comment.author.email != self.author.email:
            raise AccessDeniedError("Only the author can change this comment")

    def submit_comment(self, text: str, mentions: MentionMap) -> OperationResult | None:
        """Add a top-level comment; empty text is skipped."""
        content = self._decode(text, mentions)
        if is_content_empty(content):
            logger.debug("empty_comment_skipped")
            return None
        comment = Comment(id=new_id(), date_iso=now_iso(), content=content, author=self.author, replies=[])
        return self.queue.enqueue(AddComment(comment=comment))

    def reply(self, parent_comment_id: str, text: str, mentions: MentionMap) -> OperationResult | None:
        content = self._decode(text, mentions)
        if is_content_empty(content):
            logger.debug("empty_reply_skipped", parent_id=parent_comment_id)
            return None
        reply = Comment(
            id=new_id(), date_iso=now_iso(), content=content, author=self.author, parent_comment_id=parent_comment_id
        )
        return self.queue.enqueue(AddReply(parent_comment_id=parent_comment_id, reply=reply))

    def start_edit(self, comment_id: str, parent_comment_id: str | None = None) -> EditableContent:
        """Editable text and mention map for an existing comment of the current user."""
        comment = self.get_comment(comment_id, parent_comment_id)
        self._check_author(comment)
        return encode(comment.content)

    def edit_comment(
        self, comment_id: str, text: str, mentions: MentionMap, parent_comment_id: str | None = None
    ) -> OperationResult | None:
        comment = self.get_comment(comment_id, parent_comment_id)
        self._check_author(comment)
        content = self._decode(text, mentions)
        if is_content_empty(content):
            logger.debug("empty_edit_skipped", comment_id=comment_id)
            return None
        return self.queue.enqueue(EditComment(id=comment_id, new_content=content, parent_comment_id=parent_comment_id))

    def delete_comment(self, comment_id: str, parent_comment_id: str | None = None) -> OperationResult:
        comment = self.get_comment(comment_id, parent_comment_id)
        self._check_author(comment)
        return self.queue.enqueue(DeleteComment(id=comment_id, parent_comment_id=parent_comment_id))

    def toggle_upvote(self, comment_id: str, parent_comment_id: str | None = None) -> OperationResult:
        """Flip the current user's upvote, sent as an explicit add or remove."""
        comment = self.get_comment(comment_id, parent_comment_id)
        action = UpvoteAction.REMOVE if comment.has_upvote_from(self.author.email) else UpvoteAction.ADD
        return self.queue.enqueue(
            UpvoteComment(id=comment_id, action=action, user=self.author, parent_comment_id=parent_comment_id)
        )
