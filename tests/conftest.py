# tests/conftest.py

from __future__ import annotations

import pytest

from momentum.core.coordinator import TaskCoordinator
from momentum.tasks.task_models import Task

from .fakes import FakeIngestor, FakeSuggester, InMemoryBlobStore


@pytest.fixture()
def store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture()
def ingestor() -> FakeIngestor:
    return FakeIngestor([{"title": "Find venue"}, {"title": "Send invites"}])


@pytest.fixture()
def suggester() -> FakeSuggester:
    return FakeSuggester()


@pytest.fixture()
def coordinator(store, ingestor, suggester) -> TaskCoordinator:
    """Coordinator wired with deterministic fakes, already loaded (empty)."""
    coord = TaskCoordinator(store=store, ingestor=ingestor, suggester=suggester)
    coord.load()
    return coord


@pytest.fixture()
def sample_tree() -> tuple[Task, ...]:
    """
    a
    ├── a1
    │   └── a1x
    └── a2
    b
    c
    """
    a1 = Task(id="a1", title="A1", subtasks=(Task(id="a1x", title="A1x"),))
    a2 = Task(id="a2", title="A2")
    return (
        Task(id="a", title="A", subtasks=(a1, a2)),
        Task(id="b", title="B"),
        Task(id="c", title="C"),
    )
