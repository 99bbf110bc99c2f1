# tests/test_task_store.py

from __future__ import annotations

import json
from pathlib import Path

import pytest

from momentum.core.errors import StorageFailure
from momentum.tasks import task_tree
from momentum.tasks.task_models import Task, tree_from_list, tree_to_list
from momentum.tasks.task_store import JsonBlobStore, decode_tree, encode_tree

from .fakes import chain_tree


def test_json_store_get_put(tmp_path: Path) -> None:
    store = JsonBlobStore(tmp_path / "data" / "tasks.json")
    assert store.get("k") is None

    store.put("k", "v1")
    store.put("other", "v2")
    store.put("k", "v3")

    assert store.get("k") == "v3"
    assert store.get("other") == "v2"
    assert json.loads(store.path.read_text("utf-8")) == {"k": "v3", "other": "v2"}
    assert not store.path.with_suffix(".tmp").exists()


def test_json_store_unreadable_file(tmp_path: Path) -> None:
    path = tmp_path / "tasks.json"
    path.write_text("{not json", "utf-8")
    store = JsonBlobStore(path)

    with pytest.raises(StorageFailure):
        store.get("k")

    # a write replaces the broken file
    store.put("k", "v")
    assert store.get("k") == "v"


def test_tree_payload_is_versioned_and_drops_view_state(sample_tree) -> None:
    blob = encode_tree(sample_tree)
    data = json.loads(blob)

    assert data["version"] == 1
    first = data["tasks"][0]
    assert set(first) == {"id", "title", "subtasks", "isCompleted", "firstStep", "isFirstStepCompleted"}
    assert decode_tree(blob) == sample_tree


def test_decode_legacy_bare_list() -> None:
    legacy = json.dumps(
        [
            {
                "id": "x",
                "title": "Old",
                "subtasks": [{"id": "y", "title": "Child", "subtasks": [], "isCompleted": True}],
                "isCompleted": False,
                "isEditing": True,
            }
        ]
    )
    tree = decode_tree(legacy)
    assert tree == (
        Task(id="x", title="Old", subtasks=(Task(id="y", title="Child", is_completed=True),)),
    )


@pytest.mark.parametrize(
    "blob",
    [
        "not json",
        json.dumps({"version": 99, "tasks": []}),
        json.dumps({"tasks": []}),
        json.dumps([{"title": "no id"}]),
        json.dumps([{"id": "a", "title": "A", "subtasks": "oops"}]),
        json.dumps("a string"),
    ],
)
def test_decode_malformed_raises_storage_failure(blob: str) -> None:
    with pytest.raises(StorageFailure):
        decode_tree(blob)


def test_deep_tree_survives_dict_round_trip() -> None:
    tree = chain_tree(3000)

    data = tree_to_list(tree)
    restored = tree_from_list(data)

    assert task_tree.collect_ids(restored) == task_tree.collect_ids(tree)
    assert task_tree.find_task(restored, "n2999").title == "leaf"


def test_json_nesting_limit_is_a_storage_failure() -> None:
    nested = "[" * 1_000_000 + "]" * 1_000_000
    with pytest.raises(StorageFailure):
        decode_tree(nested)
