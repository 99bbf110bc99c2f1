# src/momentum/core/coordinator.py

"""
Task coordinator.

Owns the authoritative task tree plus focus/busy state and exposes them
through commands. Every command replaces the tree with the result of a pure
tree operation and then persists it (best-effort).

Errors never escape a command: validation and external failures are returned
as a failed CommandResult, storage failures are logged and remembered in
`last_storage_error`.
"""

from __future__ import annotations

import logging
from typing import Any

from ..tasks import task_tree
from ..tasks.ingestion import map_raw_tasks, new_task
from ..tasks.task_models import Direction, Task, TaskTree
from ..tasks.task_store import TASKS_STORAGE_KEY, decode_tree, encode_tree
from .errors import StorageFailure, ValidationError
from .ports import BlobStore, FirstStepSuggester, TaskIngestor
from .state import CommandResult, CoordinatorState

logger = logging.getLogger(__name__)


def _require_text(value: str, message: str) -> str:
    if not value or not value.strip():
        raise ValidationError(message)
    return value


class TaskCoordinator:
    def __init__(
        self,
        *,
        store: BlobStore,
        ingestor: TaskIngestor,
        suggester: FirstStepSuggester,
        storage_key: str = TASKS_STORAGE_KEY,
    ) -> None:
        self._store = store
        self._ingestor = ingestor
        self._suggester = suggester
        self._storage_key = storage_key
        self._closed = False

        self.state = CoordinatorState()
        self.last_storage_error: StorageFailure | None = None

    # ---- read access ----

    @property
    def tree(self) -> TaskTree:
        return self.state.tree

    @property
    def focused_task(self) -> Task | None:
        if self.state.focused_id is None:
            return None
        return task_tree.find_task(self.state.tree, self.state.focused_id)

    def find(self, task_id: str) -> Task | None:
        return task_tree.find_task(self.state.tree, task_id)

    # ---- persistence ----

    def load(self) -> CommandResult:
        """Seed the tree from storage. Call once at startup."""
        try:
            blob = self._store.get(self._storage_key)
            tree = decode_tree(blob) if blob is not None else ()
        except Exception as e:
            failure = e if isinstance(e, StorageFailure) else StorageFailure(str(e))
            logger.warning("Failed to load tasks (key=%s): %s", self._storage_key, failure)
            self.last_storage_error = failure
            self.state.tree = ()
            return CommandResult(False, "Error", "Could not load saved tasks.")

        self.state.tree = tree
        logger.info("Loaded %d tasks (%d roots)", task_tree.count_tasks(tree), len(tree))
        return CommandResult(True, "Loaded", f"{len(tree)} task(s) restored.")

    def _persist(self) -> None:
        try:
            self._store.put(self._storage_key, encode_tree(self.state.tree))
        except Exception as e:
            failure = e if isinstance(e, StorageFailure) else StorageFailure(str(e))
            logger.warning("Failed to save tasks (key=%s): %s", self._storage_key, failure)
            self.last_storage_error = failure
            return
        self.last_storage_error = None

    def _set_tree(self, new_tree: TaskTree) -> TaskTree:
        if new_tree is self.state.tree:
            return new_tree
        self.state.tree = new_tree
        self._forget_missing()
        self._persist()
        return new_tree

    def _forget_missing(self) -> None:
        """Drop focus/editing references to tasks that no longer exist."""
        alive = set(task_tree.collect_ids(self.state.tree))
        if self.state.focused_id is not None and self.state.focused_id not in alive:
            self.state.focused_id = None
            self.state.focus_active = False
        self.state.editing_ids &= alive

    def close(self) -> None:
        """Tear down. External calls that finish afterwards are ignored."""
        self._closed = True

    # ---- ingestion ----

    async def ingest(self, text: str) -> CommandResult:
        try:
            _require_text(text, "Please enter your problem or tasks.")
        except ValidationError as e:
            return CommandResult(False, "Input Required", str(e))

        self.state.ingestion_busy = True
        try:
            raw_tasks = await self._ingestor.ingest(text)
            new_tree = map_raw_tasks(raw_tasks)
        except Exception as e:
            logger.warning("Ingestion failed: %s", e, exc_info=True)
            return CommandResult(False, "Ingestion Failed", "Could not process your tasks. Please try again.")
        finally:
            self.state.ingestion_busy = False

        if self._closed:
            logger.debug("Ingestion finished after close; result dropped.")
            return CommandResult(False, "Ingestion Ignored", "The task list was closed.")

        self._set_tree(new_tree)
        logger.info("Ingested %d tasks (%d roots)", task_tree.count_tasks(new_tree), len(new_tree))
        return CommandResult(True, "Success", "Tasks ingested successfully!")

    # ---- structure ----

    def add_task(self, parent_id: str | None, title: str) -> CommandResult:
        try:
            _require_text(title, "Task title cannot be empty.")
        except ValidationError as e:
            return CommandResult(False, "Title Required", str(e))

        task = new_task(title)
        before = self.state.tree
        after = self._set_tree(task_tree.insert_task(before, parent_id, task))
        if after is before:
            return CommandResult(False, "Not Found", f"No parent task {parent_id}.")
        return CommandResult(True, "Task Added", title, task_id=task.id)

    def update_task(self, task_id: str, **updates: Any) -> TaskTree:
        return self._set_tree(task_tree.update_task(self.state.tree, task_id, **updates))

    def rename_task(self, task_id: str, title: str) -> CommandResult:
        try:
            _require_text(title, "Task title cannot be empty.")
        except ValidationError as e:
            return CommandResult(False, "Title Required", str(e))
        self.update_task(task_id, title=title)
        self.stop_editing(task_id)
        return CommandResult(True, "Task Renamed", title, task_id=task_id)

    def delete_task(self, task_id: str) -> CommandResult:
        self._set_tree(task_tree.delete_task(self.state.tree, task_id))
        return CommandResult(True, "Task Deleted", "The task has been removed.", task_id=task_id)

    def clear_all(self) -> CommandResult:
        self._set_tree(())
        return CommandResult(True, "Cleared", "All tasks have been removed.")

    def reorder_task(self, task_id: str, direction: Direction | str) -> TaskTree:
        return self._set_tree(task_tree.reorder_task(self.state.tree, task_id, direction))

    def reorder_in_list(
        self,
        task_id: str,
        direction: Direction | str,
        sibling_list: tuple[Task, ...] | list[Task],
        parent_id: str | None,
    ) -> TaskTree:
        """
        Reorder within a caller-supplied sibling list and splice it back:
        as the root when parent_id is None, else as the subtasks of parent_id.
        """
        siblings = tuple(sibling_list)
        reordered = task_tree.reorder_siblings(siblings, task_id, direction)
        if reordered is siblings:
            return self.state.tree
        return self._set_tree(task_tree.replace_children(self.state.tree, parent_id, reordered))

    # ---- completion / first step ----

    def toggle_complete(self, task_id: str) -> TaskTree:
        task = self.find(task_id)
        if task is None:
            return self.state.tree
        return self.update_task(task_id, is_completed=not task.is_completed)

    def set_first_step(self, task_id: str, text: str) -> TaskTree:
        return self.update_task(task_id, first_step=text)

    def toggle_first_step_complete(self, task_id: str) -> TaskTree:
        task = self.find(task_id)
        if task is None:
            return self.state.tree
        return self.update_task(task_id, is_first_step_completed=not task.is_first_step_completed)

    async def suggest_first_step(self, task_id: str, title: str) -> CommandResult:
        self.state.suggestion_busy = True
        try:
            suggestion = await self._suggester.suggest_first_step(title)
        except Exception as e:
            logger.warning("First step suggestion failed task_id=%s: %s", task_id, e, exc_info=True)
            return CommandResult(False, "Suggestion Failed", "Could not suggest a first step.", task_id=task_id)
        finally:
            self.state.suggestion_busy = False

        if self._closed:
            logger.debug("Suggestion for task_id=%s finished after close; dropped.", task_id)
            return CommandResult(False, "Suggestion Ignored", "The task list was closed.", task_id=task_id)

        self.set_first_step(task_id, suggestion)
        return CommandResult(True, "Suggestion Ready", suggestion, task_id=task_id)

    # ---- focus / view mode ----

    def select_focus(self, task_id: str | None) -> None:
        self.state.focused_id = task_id
        if task_id is None:
            self.state.focus_active = False

    def toggle_focus_view(self) -> CommandResult:
        if self.state.focused_id is None:
            self.state.focus_active = False
            return CommandResult(False, "No Task Selected", "Select a task to enter focus view.")
        self.state.focus_active = not self.state.focus_active
        return CommandResult(True, "Focus View", "on" if self.state.focus_active else "off")

    def start_editing(self, task_id: str) -> None:
        if self.find(task_id) is not None:
            self.state.editing_ids.add(task_id)

    def stop_editing(self, task_id: str) -> None:
        self.state.editing_ids.discard(task_id)

    def is_editing(self, task_id: str) -> bool:
        return task_id in self.state.editing_ids
