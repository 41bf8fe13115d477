"""Normalisation of legacy comment data to the current stored shape.

Legacy records stored upvoters as bare e-mail strings, linked replies through
`parentCommentISO`, and had no `id` (the timestamp doubled as identifier).
"""

from typing import Any


def normalize_upvoters(upvoters: Any) -> list[Any]:
    """Turn legacy `"user@example.com"` entries into `{"name": "user", "email": ...}`."""
    if not isinstance(upvoters, list):
        return []
    normalized: list[Any] = []
    for upvoter in upvoters:
        if isinstance(upvoter, str):
            name = upvoter.split("@", 1)[0] if "@" in upvoter else upvoter
            normalized.append({"name": name, "email": upvoter})
        else:
            normalized.append(upvoter)
    return normalized


def normalize_comment(comment: Any) -> Any:
    """Normalise one raw comment dict and its replies; anything else is returned unchanged.

    A missing `id` falls back to `dateISO` without rewriting either field, so
    `parentCommentId` references written against timestamp ids keep resolving.
    """
    if not isinstance(comment, dict):
        return comment

    normalized = dict(comment)
    if "parentCommentISO" in normalized:
        parent_iso = normalized.pop("parentCommentISO")
        normalized.setdefault("parentCommentId", parent_iso)
    if "id" not in normalized and isinstance(normalized.get("dateISO"), str):
        normalized["id"] = normalized["dateISO"]
    if "usersWhoUpvoted" in normalized:
        normalized["usersWhoUpvoted"] = normalize_upvoters(normalized["usersWhoUpvoted"])
    if isinstance(normalized.get("replies"), list):
        normalized["replies"] = [normalize_comment(reply) for reply in normalized["replies"]]
    return normalized
