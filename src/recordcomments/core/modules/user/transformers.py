"""Conversion of the different user sources to UserInfo."""

import hashlib
from typing import Any

from recordcomments.core.modules.comment.models import Person
from recordcomments.core.modules.user.models import Owner, RegularUser, SsoUser, UserInfo

UNKNOWN_EMAIL = "unknown@email.com"


def gravatar_url(email: str, size: int = 48) -> str:
    digest = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()  # noqa: S324
    return f"https://www.gravatar.com/avatar/{digest}?d=mp&s={size}"


def extract_email_local_part(email_or_username: str) -> str:
    """Part before `@`, or the input unchanged when it has no local part.

    >>> extract_email_local_part("user@example.com")
    'user'
    >>> extract_email_local_part("johndoe")
    'johndoe'
    """
    at_index = email_or_username.find("@")
    return email_or_username[:at_index] if at_index > 0 else email_or_username


def _join_name(*parts: str | None) -> str:
    return " ".join(part for part in parts if part)


def regular_user_to_user_info(user: RegularUser, avatar_size: int = 48) -> UserInfo:
    email = user.attributes.email
    return UserInfo(
        id=user.id,
        email=email,
        name=user.attributes.full_name or extract_email_local_part(email),
        avatar_url=gravatar_url(email, avatar_size),
    )


def sso_user_to_user_info(user: SsoUser, avatar_size: int = 48) -> UserInfo:
    """The SSO username stands in for the e-mail; a Gravatar is only derived when it looks like one."""
    username = user.attributes.username
    name = _join_name(user.attributes.first_name, user.attributes.last_name) or extract_email_local_part(username)
    return UserInfo(
        id=user.id,
        email=username,
        name=name,
        avatar_url=gravatar_url(username, avatar_size) if "@" in username else None,
    )


def owner_to_user_info(owner: Owner, avatar_size: int = 48) -> UserInfo:
    if owner.type == "account":
        email = owner.get_string("email") or ""
        name = (
            _join_name(owner.get_string("first_name"), owner.get_string("last_name"))
            or extract_email_local_part(email)
            or "Account Owner"
        )
        return UserInfo(id=owner.id, email=email, name=name, avatar_url=gravatar_url(email, avatar_size) if email else None)

    return UserInfo(id=owner.id, email="", name=owner.get_string("name") or "Organization")


def current_user_to_person(attributes: dict[str, Any]) -> Person:
    """Author identity of the signed-in user."""
    email = attributes.get("email")
    if not isinstance(email, str):
        email = UNKNOWN_EMAIL
    name = next(
        (attributes[key] for key in ("full_name", "name") if isinstance(attributes.get(key), str)),
        extract_email_local_part(email),
    )
    return Person(name=name, email=email)


def transform_users(regular_users: list[RegularUser], sso_users: list[SsoUser], avatar_size: int = 48) -> list[UserInfo]:
    return [
        *(regular_user_to_user_info(user, avatar_size) for user in regular_users),
        *(sso_user_to_user_info(user, avatar_size) for user in sso_users),
    ]
