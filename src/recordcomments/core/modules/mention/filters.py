"""Candidate filtering for mention dropdowns."""

from collections.abc import Callable, Iterable
from typing import Protocol, TypeVar


class UserCandidate(Protocol):
    name: str
    email: str


class FieldCandidate(Protocol):
    api_key: str
    label: str
    field_path: str
    display_label: str | None


class ModelCandidate(Protocol):
    api_key: str
    name: str


TUser = TypeVar("TUser", bound=UserCandidate)
TField = TypeVar("TField", bound=FieldCandidate)
TModel = TypeVar("TModel", bound=ModelCandidate)
T = TypeVar("T")


def filter_by_searchable_strings(items: Iterable[T], query: str, searchable: Callable[[T], list[str | None]]) -> list[T]:
    """Keep items where any searchable string contains the query (case-insensitive)."""
    lower_query = query.lower()
    return [item for item in items if any(value and lower_query in value.lower() for value in searchable(item))]


def filter_users(users: Iterable[TUser], query: str) -> list[TUser]:
    return filter_by_searchable_strings(users, query, lambda user: [user.name, user.email])


def filter_fields(fields: Iterable[TField], query: str) -> list[TField]:
    return filter_by_searchable_strings(
        fields, query, lambda field: [field.api_key, field.label, field.display_label, field.field_path]
    )


def filter_models(models: Iterable[TModel], query: str) -> list[TModel]:
    return filter_by_searchable_strings(models, query, lambda model: [model.api_key, model.name])
