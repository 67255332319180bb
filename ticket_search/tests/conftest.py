"""
pytest configuration and shared fixtures
"""
from datetime import datetime, timezone
from typing import List

import pytest

from ticket_search.models.schemas import Comment, Ticket
from ticket_search.tests.fakes import FakeEmbedder, InMemoryVectorIndex, NOW


@pytest.fixture
def fixed_clock():
    """Local clock pinned to NOW"""
    return lambda: NOW


@pytest.fixture
def utc_clock():
    """Mutable aware clock for freshness tests"""
    class Clock:
        def __init__(self):
            self.now = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)

        def __call__(self) -> datetime:
            return self.now

    return Clock()


@pytest.fixture
def sample_tickets() -> List[Ticket]:
    """Two tickets, one with comments"""
    return [
        Ticket(
            id=1,
            subject="Login broken after password reset",
            description=None,
            status="open",
            priority="high",
            created_at="2026-10-17T10:00:00+00:00",
            updated_at="2026-10-17T11:00:00+00:00",
            creator_id="u-9",
            assignee_type="user",
            assigned_to=42,
            comments=[
                Comment(
                    id=10,
                    ticket_id=1,
                    content="Looking into it",
                    created_at="2026-10-17T10:30:00+00:00",
                    author_id="u-1"
                ),
                Comment(id=11, ticket_id=1, content=None, created_at=None, author_id=None),
            ]
        ),
        Ticket(
            id=2,
            subject="Invoice missing",
            description="No invoice for September",
            status="pending",
            priority="low",
            created_at="2026-10-16T08:00:00+00:00",
            updated_at="2026-10-16T08:00:00+00:00",
            creator_id=None,
            assignee_type=None,
            assigned_to=None,
            comments=[]
        ),
    ]


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def vector_index() -> InMemoryVectorIndex:
    return InMemoryVectorIndex()
