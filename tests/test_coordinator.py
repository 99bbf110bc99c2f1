# tests/test_coordinator.py

from __future__ import annotations

import asyncio
import json

import pytest

from momentum.core.coordinator import TaskCoordinator
from momentum.core.errors import ExternalCallFailure
from momentum.tasks import task_tree
from momentum.tasks.task_models import Task
from momentum.tasks.task_store import TASKS_STORAGE_KEY, decode_tree, encode_tree

from .fakes import FakeIngestor, FakeSuggester, InMemoryBlobStore


def _roots(coord: TaskCoordinator) -> list[str]:
    return [t.title for t in coord.tree]


# ---- ingestion ----


@pytest.mark.asyncio
async def test_ingest_replaces_tree_and_persists(coordinator, store, ingestor) -> None:
    coordinator.add_task(None, "Old task")

    result = await coordinator.ingest("Plan party")

    assert result.ok
    assert ingestor.calls == ["Plan party"]
    assert _roots(coordinator) == ["Find venue", "Send invites"]
    for task in coordinator.tree:
        assert task.subtasks == ()
        assert task.is_completed is False
    assert decode_tree(store.data[TASKS_STORAGE_KEY]) == coordinator.tree
    assert coordinator.state.ingestion_busy is False


@pytest.mark.asyncio
async def test_ingest_blank_text_is_rejected(coordinator, ingestor, store) -> None:
    result = await coordinator.ingest("   \n")

    assert not result.ok
    assert result.title == "Input Required"
    assert ingestor.calls == []
    assert store.writes == 0


@pytest.mark.asyncio
async def test_ingest_failure_keeps_previous_tree(store, suggester) -> None:
    coord = TaskCoordinator(
        store=store,
        ingestor=FakeIngestor(error=ExternalCallFailure("model down")),
        suggester=suggester,
    )
    coord.add_task(None, "Keep me")
    before = coord.tree

    result = await coord.ingest("anything")

    assert not result.ok
    assert result.title == "Ingestion Failed"
    assert coord.tree is before
    assert coord.state.ingestion_busy is False


@pytest.mark.asyncio
async def test_ingest_missing_title_is_reported_not_raised(store, suggester) -> None:
    coord = TaskCoordinator(store=store, ingestor=FakeIngestor([{"subtasks": []}]), suggester=suggester)  # type: ignore[list-item]
    result = await coord.ingest("x")
    assert not result.ok
    assert coord.tree == ()


@pytest.mark.asyncio
async def test_ingest_busy_flag_is_set_while_in_flight(store, suggester) -> None:
    gate = asyncio.Event()

    class SlowIngestor:
        async def ingest(self, text):
            await gate.wait()
            return [{"title": "Done"}]

    coord = TaskCoordinator(store=store, ingestor=SlowIngestor(), suggester=suggester)
    pending = asyncio.create_task(coord.ingest("go"))
    await asyncio.sleep(0)
    assert coord.state.ingestion_busy is True

    gate.set()
    result = await pending
    assert result.ok
    assert coord.state.ingestion_busy is False


@pytest.mark.asyncio
async def test_ingest_and_suggestion_busy_flags_are_independent(store, suggester) -> None:
    ingest_gate = asyncio.Event()

    class SlowIngestor:
        async def ingest(self, text):
            await ingest_gate.wait()
            return [{"title": "Fresh"}]

    coord = TaskCoordinator(store=store, ingestor=SlowIngestor(), suggester=suggester)
    tid = coord.add_task(None, "Write report").task_id
    suggester.gates = {"Write report": asyncio.Event()}

    ingesting = asyncio.create_task(coord.ingest("new plan"))
    suggesting = asyncio.create_task(coord.suggest_first_step(tid, "Write report"))
    await asyncio.sleep(0)
    assert coord.state.ingestion_busy is True
    assert coord.state.suggestion_busy is True

    ingest_gate.set()
    assert (await ingesting).ok
    assert coord.state.ingestion_busy is False
    assert coord.state.suggestion_busy is True

    suggester.gates["Write report"].set()
    await suggesting
    assert coord.state.suggestion_busy is False
    assert coord.state.ingestion_busy is False


# ---- add / delete / update ----


def test_add_then_delete_returns_to_original(coordinator) -> None:
    coordinator.add_task(None, "A")
    coordinator.add_task(None, "B")
    original = coordinator.tree

    result = coordinator.add_task(None, "New Task")
    assert result.ok
    assert len(coordinator.tree) == 3
    new = coordinator.tree[-1]
    assert new.id == result.task_id
    assert new == Task(id=new.id, title="New Task")

    coordinator.delete_task(new.id)
    assert coordinator.tree == original


def test_add_blank_title_rejected(coordinator, store) -> None:
    result = coordinator.add_task(None, "  ")
    assert not result.ok
    assert result.title == "Title Required"
    assert coordinator.tree == ()
    assert store.writes == 0


def test_add_subtask_and_missing_parent(coordinator) -> None:
    parent = coordinator.add_task(None, "Parent").task_id
    child = coordinator.add_task(parent, "Child")
    assert child.ok
    assert [t.title for t in coordinator.find(parent).subtasks] == ["Child"]

    before = coordinator.tree
    result = coordinator.add_task("ghost", "Orphan")
    assert not result.ok
    assert coordinator.tree is before


def test_update_and_rename(coordinator) -> None:
    tid = coordinator.add_task(None, "Draft").task_id
    coordinator.start_editing(tid)
    assert coordinator.is_editing(tid)

    assert not coordinator.rename_task(tid, "").ok
    assert coordinator.is_editing(tid)

    assert coordinator.rename_task(tid, "Final").ok
    assert coordinator.find(tid).title == "Final"
    assert not coordinator.is_editing(tid)

    coordinator.update_task(tid, is_completed=True, first_step="Open editor")
    task = coordinator.find(tid)
    assert task.is_completed and task.first_step == "Open editor"


def test_clear_all(coordinator, store) -> None:
    for title in ("A", "B", "C"):
        coordinator.add_task(None, title)
    writes = store.writes

    coordinator.clear_all()

    assert store.writes == writes + 1
    assert coordinator.tree == ()
    assert decode_tree(store.data[TASKS_STORAGE_KEY]) == ()


# ---- toggles / first step ----


def test_toggles_flip_and_ignore_missing(coordinator, store) -> None:
    tid = coordinator.add_task(None, "T").task_id

    coordinator.toggle_complete(tid)
    assert coordinator.find(tid).is_completed is True
    coordinator.toggle_complete(tid)
    assert coordinator.find(tid).is_completed is False

    coordinator.set_first_step(tid, "Write one line")
    coordinator.toggle_first_step_complete(tid)
    assert coordinator.find(tid).is_first_step_completed is True

    coordinator.set_first_step(tid, "")
    assert coordinator.find(tid).first_step == ""

    writes = store.writes
    before = coordinator.tree
    coordinator.toggle_complete("ghost")
    coordinator.toggle_first_step_complete("ghost")
    assert coordinator.tree is before
    assert store.writes == writes


@pytest.mark.asyncio
async def test_suggest_first_step(coordinator, suggester) -> None:
    tid = coordinator.add_task(None, "Write thesis").task_id

    result = await coordinator.suggest_first_step(tid, "Write thesis")

    assert result.ok
    assert suggester.calls == ["Write thesis"]
    assert coordinator.find(tid).first_step == "Open a blank document"
    assert coordinator.state.suggestion_busy is False


@pytest.mark.asyncio
async def test_suggest_failure_keeps_state(coordinator, suggester) -> None:
    tid = coordinator.add_task(None, "T").task_id
    coordinator.set_first_step(tid, "mine")
    suggester.fail = True

    result = await coordinator.suggest_first_step(tid, "T")

    assert not result.ok
    assert coordinator.find(tid).first_step == "mine"
    assert coordinator.state.suggestion_busy is False


@pytest.mark.asyncio
async def test_concurrent_suggestions_last_completion_wins(coordinator, suggester) -> None:
    tid = coordinator.add_task(None, "T").task_id
    suggester.replies = {"first": "from first", "second": "from second"}
    suggester.gates = {"first": asyncio.Event(), "second": asyncio.Event()}

    first = asyncio.create_task(coordinator.suggest_first_step(tid, "first"))
    second = asyncio.create_task(coordinator.suggest_first_step(tid, "second"))
    await asyncio.sleep(0)

    suggester.gates["second"].set()
    await second
    suggester.gates["first"].set()
    await first

    assert coordinator.find(tid).first_step == "from first"


@pytest.mark.asyncio
async def test_results_after_close_are_ignored(coordinator, suggester) -> None:
    tid = coordinator.add_task(None, "T").task_id
    suggester.gates = {"T": asyncio.Event()}

    pending = asyncio.create_task(coordinator.suggest_first_step(tid, "T"))
    await asyncio.sleep(0)
    coordinator.close()
    suggester.gates["T"].set()
    result = await pending

    assert not result.ok
    assert coordinator.find(tid).first_step == ""


# ---- reorder ----


def test_reorder_roots_down_then_noop(coordinator) -> None:
    a = coordinator.add_task(None, "A").task_id
    coordinator.add_task(None, "B")

    coordinator.reorder_task(a, "down")
    assert _roots(coordinator) == ["B", "A"]

    before = coordinator.tree
    coordinator.reorder_task(a, "down")
    assert coordinator.tree is before


def test_reorder_in_list_splices_back(coordinator) -> None:
    p = coordinator.add_task(None, "P").task_id
    c1 = coordinator.add_task(p, "C1").task_id
    coordinator.add_task(p, "C2")

    siblings = coordinator.find(p).subtasks
    coordinator.reorder_in_list(c1, "down", siblings, p)
    assert [t.title for t in coordinator.find(p).subtasks] == ["C2", "C1"]

    roots = coordinator.tree
    q = coordinator.add_task(None, "Q").task_id
    coordinator.reorder_in_list(q, "up", coordinator.tree, None)
    assert _roots(coordinator) == ["Q", "P"]
    assert roots[0] in coordinator.tree


# ---- focus ----


def test_deleting_focused_task_clears_focus(coordinator) -> None:
    tid = coordinator.add_task(None, "Focus me").task_id
    coordinator.select_focus(tid)
    assert coordinator.toggle_focus_view().ok
    assert coordinator.state.focus_active is True

    coordinator.delete_task(tid)

    assert coordinator.state.focused_id is None
    assert coordinator.state.focus_active is False
    assert coordinator.focused_task is None


def test_deleting_ancestor_of_focused_task_clears_focus(coordinator) -> None:
    parent = coordinator.add_task(None, "Parent").task_id
    child = coordinator.add_task(parent, "Child").task_id
    coordinator.select_focus(child)
    coordinator.toggle_focus_view()

    coordinator.delete_task(parent)

    assert coordinator.state.focused_id is None
    assert coordinator.state.focus_active is False


def test_deleting_other_task_keeps_focus(coordinator) -> None:
    keep = coordinator.add_task(None, "Keep").task_id
    other = coordinator.add_task(None, "Other").task_id
    coordinator.select_focus(keep)
    coordinator.toggle_focus_view()

    coordinator.delete_task(other)

    assert coordinator.state.focused_id == keep
    assert coordinator.state.focus_active is True
    assert coordinator.focused_task.title == "Keep"


def test_focus_view_requires_selection(coordinator) -> None:
    result = coordinator.toggle_focus_view()
    assert not result.ok
    assert result.title == "No Task Selected"
    assert coordinator.state.focus_active is False

    tid = coordinator.add_task(None, "T").task_id
    coordinator.select_focus(tid)
    coordinator.toggle_focus_view()
    assert coordinator.state.focus_active is True
    coordinator.toggle_focus_view()
    assert coordinator.state.focus_active is False

    coordinator.toggle_focus_view()
    coordinator.select_focus(None)
    assert coordinator.state.focus_active is False


# ---- persistence ----


def test_load_restores_saved_tree(ingestor, suggester, sample_tree) -> None:
    store = InMemoryBlobStore({TASKS_STORAGE_KEY: encode_tree(sample_tree)})
    coord = TaskCoordinator(store=store, ingestor=ingestor, suggester=suggester)

    result = coord.load()

    assert result.ok
    assert coord.tree == sample_tree
    assert store.writes == 0


def test_load_malformed_falls_back_to_empty(ingestor, suggester) -> None:
    store = InMemoryBlobStore({TASKS_STORAGE_KEY: json.dumps({"version": 1, "tasks": [{"title": "no id"}]})})
    coord = TaskCoordinator(store=store, ingestor=ingestor, suggester=suggester)

    result = coord.load()

    assert not result.ok
    assert coord.tree == ()
    assert coord.last_storage_error is not None


def test_failed_write_does_not_revert_state(coordinator, store) -> None:
    store.fail_writes = True

    result = coordinator.add_task(None, "Still here")

    assert result.ok
    assert _roots(coordinator) == ["Still here"]
    assert coordinator.last_storage_error is not None

    store.fail_writes = False
    coordinator.add_task(None, "Second")
    assert coordinator.last_storage_error is None
    assert [t.title for t in decode_tree(store.data[TASKS_STORAGE_KEY])] == ["Still here", "Second"]


def test_every_change_is_persisted(coordinator, store) -> None:
    tid = coordinator.add_task(None, "T").task_id
    coordinator.set_first_step(tid, "Step")
    saved = decode_tree(store.data[TASKS_STORAGE_KEY])
    assert task_tree.find_task(saved, tid).first_step == "Step"


def test_very_deep_nesting_never_raises(coordinator) -> None:
    parent = None
    for i in range(1200):
        result = coordinator.add_task(parent, f"Level {i}")
        assert result.ok
        parent = result.task_id

    assert task_tree.count_tasks(coordinator.tree) == 1200
    assert coordinator.find(parent).title == "Level 1199"

    coordinator.toggle_complete(parent)
    assert coordinator.find(parent).is_completed is True

    coordinator.delete_task(coordinator.tree[0].id)
    assert coordinator.tree == ()
    assert coordinator.last_storage_error is None
