"""Shared pytest fixtures."""

import pytest

from recordcomments.config import Config
from recordcomments.core.modules.comment.models import Comment, Person
from recordcomments.core.modules.mention.models import TextSegment
from recordcomments.core.modules.sync.store import Conversation, InMemoryCommentStore


class FakeClock:
    """Monotonic clock advanced by hand; also records requested sleeps."""

    def __init__(self) -> None:
        self.now = 1000.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def config():
    """Create a config that ignores the environment."""
    return Config(_env_file=None)


@pytest.fixture
def alice():
    """Create the current user."""
    return Person(name="Alice", email="alice@example.com")


@pytest.fixture
def bob():
    """Create another user."""
    return Person(name="Bob", email="bob@example.com")


@pytest.fixture
def make_comment(alice):
    """Factory for comments with plain text content."""

    def _make(
        comment_id: str,
        text: str = "hello",
        author: Person | None = None,
        replies: list[Comment] | None = None,
        parent_comment_id: str | None = None,
    ) -> Comment:
        return Comment(
            id=comment_id,
            date_iso="2024-05-01T10:00:00.000Z",
            content=[TextSegment(content=text)] if text else [],
            author=author or alice,
            replies=replies,
            parent_comment_id=parent_comment_id,
        )

    return _make


@pytest.fixture
def clock():
    """Create a controllable clock."""
    return FakeClock()


@pytest.fixture
def store():
    """Create an empty in-memory comment store."""
    return InMemoryCommentStore()


@pytest.fixture
def conversation():
    """Create the conversation under test."""
    return Conversation(model_id="blog_post", record_id="rec-1")
