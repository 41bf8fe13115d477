"""Preservation of local drafts across inbound updates.

A draft is a comment or reply with empty content authored by the current user.
Drafts exist only locally, so adopting a server tree would drop them without a merge.
"""

from typing import NamedTuple

from recordcomments.core.modules.comment.models import Comment
from recordcomments.core.modules.mention.codec import is_content_empty


class Draft(NamedTuple):
    comment: Comment
    parent_id: str | None = None  # None for top-level drafts


class MergeResult(NamedTuple):
    comments: list[Comment]
    orphaned_drafts: list[Draft]  # Reply drafts whose parent no longer exists


def _is_draft(comment: Comment, current_user_email: str) -> bool:
    return is_content_empty(comment.content) and comment.author.email == current_user_email


def extract_drafts(comments: list[Comment], current_user_email: str) -> list[Draft]:
    drafts: list[Draft] = []
    for comment in comments:
        if _is_draft(comment, current_user_email):
            drafts.append(Draft(comment))
        for reply in comment.replies or []:
            if _is_draft(reply, current_user_email):
                drafts.append(Draft(reply, parent_id=comment.id))
    return drafts


def merge_with_drafts(server_comments: list[Comment], drafts: list[Draft]) -> MergeResult:
    """Append missing top-level drafts and re-attach reply drafts to their parents."""
    merged = list(server_comments)
    orphaned: list[Draft] = []

    for draft in drafts:
        if draft.parent_id is None:
            if not any(comment.id == draft.comment.id for comment in merged):
                merged.append(draft.comment)
            continue

        parent_index = next((i for i, comment in enumerate(merged) if comment.id == draft.parent_id), None)
        if parent_index is None:
            orphaned.append(draft)
            continue

        parent = merged[parent_index]
        if parent.find_reply(draft.comment.id) is None:
            merged[parent_index] = parent.model_copy(update={"replies": [*(parent.replies or []), draft.comment]})

    return MergeResult(merged, orphaned)
