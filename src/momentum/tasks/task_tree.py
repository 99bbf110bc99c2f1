# src/momentum/tasks/task_tree.py

from __future__ import annotations

"""
Pure operations on an immutable task tree.

Every function takes a tree (tuple of root Tasks) and returns a new tree:
- the input is never mutated,
- subtrees that are not on the path to the change are reused as-is,
- every ancestor on the path to the change is rebuilt.

A missing id is never an error: the input tree object is returned unchanged.
"""

import dataclasses
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import Any

from .task_models import Direction, Task, TaskTree

_UPDATABLE_FIELDS = frozenset(f.name for f in dataclasses.fields(Task)) - {"id"}


# ---- read-only helpers ----


def iter_tasks(tree: Sequence[Task]) -> Iterator[tuple[int, Task]]:
    """Depth-first pre-order walk yielding (depth, task), siblings in order."""
    stack: list[tuple[int, Task]] = [(0, t) for t in reversed(tree)]
    while stack:
        depth, task = stack.pop()
        yield depth, task
        stack.extend((depth + 1, t) for t in reversed(task.subtasks))


def find_task(tree: Sequence[Task], task_id: str) -> Task | None:
    """First task with `task_id` in depth-first order, or None."""
    for _, task in iter_tasks(tree):
        if task.id == task_id:
            return task
    return None


def collect_ids(tree: Sequence[Task]) -> list[str]:
    return [t.id for _, t in iter_tasks(tree)]


def count_tasks(tree: Sequence[Task]) -> int:
    return sum(1 for _ in iter_tasks(tree))


# ---- path rebuilding ----

# (siblings, index) from the root sequence down to the target node.
_Path = list[tuple[tuple[Task, ...], int]]


def _find_path(tasks: tuple[Task, ...], task_id: str) -> _Path | None:
    """Path to the first node with `task_id` in depth-first pre-order, without recursion."""
    frames: list[list[Any]] = [[tasks, 0]]
    while frames:
        frame = frames[-1]
        siblings, i = frame
        if i >= len(siblings):
            frames.pop()
            if frames:
                frames[-1][1] += 1
            continue
        task = siblings[i]
        if task.id == task_id:
            return [(s, j) for s, j in frames]
        if task.subtasks:
            frames.append([task.subtasks, 0])
        else:
            frame[1] += 1
    return None


def _rebuild(path: _Path, new_seq: tuple[Task, ...]) -> tuple[Task, ...]:
    """Put `new_seq` in place of the deepest sequence on `path`, rebuilding every ancestor."""
    for siblings, i in reversed(path[:-1]):
        parent = dataclasses.replace(siblings[i], subtasks=new_seq)
        new_seq = siblings[:i] + (parent,) + siblings[i + 1 :]
    return new_seq


def _replace_node(
    tasks: tuple[Task, ...],
    task_id: str,
    fn: Callable[[Task], tuple[Task, ...]],
) -> tuple[Task, ...]:
    """
    Replace the first node with `task_id` by fn(node) (zero or one tasks).

    Returns `tasks` itself when the id is not found.
    """
    path = _find_path(tasks, task_id)
    if path is None:
        return tasks
    siblings, i = path[-1]
    return _rebuild(path, siblings[:i] + fn(siblings[i]) + siblings[i + 1 :])


def _replace_siblings(
    tasks: tuple[Task, ...],
    task_id: str,
    fn: Callable[[tuple[Task, ...]], tuple[Task, ...]],
) -> tuple[Task, ...]:
    """
    Replace the sibling sequence that directly contains `task_id` by fn(siblings).

    Returns `tasks` itself when the id is not found or fn leaves the sequence as-is.
    """
    path = _find_path(tasks, task_id)
    if path is None:
        return tasks
    siblings, _ = path[-1]
    new_seq = fn(siblings)
    if new_seq is siblings:
        return tasks
    return _rebuild(path, new_seq)


# ---- mutations (pure) ----


def update_task(tree: Sequence[Task], task_id: str, **updates: Any) -> TaskTree:
    """
    Shallow-merge `updates` into the task with `task_id`.

    Subtasks are kept unless `subtasks=` is passed explicitly.
    The id itself cannot be changed.
    """
    if "id" in updates:
        raise ValueError("task id cannot be updated")
    unknown = set(updates) - _UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"unknown task field(s): {', '.join(sorted(unknown))}")
    if "subtasks" in updates:
        updates["subtasks"] = tuple(updates["subtasks"])

    return _replace_node(tuple(tree), task_id, lambda t: (dataclasses.replace(t, **updates),))


def insert_task(tree: Sequence[Task], parent_id: str | None, new_task: Task) -> TaskTree:
    """Append `new_task` to the root (parent_id None) or to the end of a parent's subtasks."""
    roots = tuple(tree)
    if parent_id is None:
        return roots + (new_task,)
    return _replace_node(
        roots,
        parent_id,
        lambda t: (dataclasses.replace(t, subtasks=t.subtasks + (new_task,)),),
    )


def delete_task(tree: Sequence[Task], task_id: str) -> TaskTree:
    """Remove the task with `task_id` together with its whole subtree."""
    return _replace_node(tuple(tree), task_id, lambda _t: ())


def reorder_siblings(
    siblings: Sequence[Task],
    task_id: str,
    direction: Direction | str,
) -> tuple[Task, ...]:
    """
    Swap the task with its neighbour in a single sibling sequence.

    Returns the input unchanged when the id is not in the list
    or the move would go out of bounds.
    """
    items = tuple(siblings)
    direction = Direction.parse(direction)

    index = next((i for i, t in enumerate(items) if t.id == task_id), -1)
    if index < 0:
        return items

    target = index - 1 if direction is Direction.UP else index + 1
    if target < 0 or target >= len(items):
        return items

    swapped = list(items)
    swapped[index], swapped[target] = swapped[target], swapped[index]
    return tuple(swapped)


def reorder_task(tree: Sequence[Task], task_id: str, direction: Direction | str) -> TaskTree:
    """Move a task one position up/down among its siblings, wherever it lives in the tree."""
    direction = Direction.parse(direction)
    return _replace_siblings(
        tuple(tree),
        task_id,
        lambda siblings: reorder_siblings(siblings, task_id, direction),
    )


def replace_children(tree: Sequence[Task], parent_id: str | None, children: Iterable[Task]) -> TaskTree:
    """Replace the root sequence (parent_id None) or a parent's subtasks with `children`."""
    if parent_id is None:
        return tuple(children)
    return update_task(tree, parent_id, subtasks=tuple(children))
