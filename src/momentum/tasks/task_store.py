# src/momentum/tasks/task_store.py

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from ..core.errors import StorageFailure
from .task_models import TaskTree, tree_from_list, tree_to_list

logger = logging.getLogger(__name__)

TASKS_STORAGE_KEY = "momentumTasks"
PAYLOAD_VERSION = 1


class JsonBlobStore:
    """
    Key-value blob store backed by a single JSON file.

    The file holds one object mapping keys to string blobs.
    Writes are atomic: a temp file is written next to the target and os.replace'd.
    """

    def __init__(self, path: str | Path = "tasks.json") -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("JsonBlobStore ready path=%s exists=%s", self._path, self._path.exists())

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError) as e:
            raise StorageFailure(f"Could not read {self._path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageFailure(f"{self._path} does not contain a JSON object")
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> str | None:
        return self._read_all().get(key)

    def put(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except StorageFailure:
            logger.warning("Overwriting unreadable store file %s", self._path)
            data = {}
        data[key] = value

        tmp = self._path.with_suffix(".tmp")
        try:
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            raise StorageFailure(f"Could not write {self._path}: {e}") from e
        logger.debug("Stored key=%s (%d bytes) in %s", key, len(value), self._path)


def encode_tree(tree: TaskTree) -> str:
    payload = {"version": PAYLOAD_VERSION, "tasks": tree_to_list(tree)}
    try:
        return json.dumps(payload, ensure_ascii=False)
    except RecursionError as e:
        raise StorageFailure("Task tree is nested too deeply to encode as JSON") from e


def decode_tree(blob: str) -> TaskTree:
    """
    Decode a stored tree.

    Accepts the versioned payload {"version": 1, "tasks": [...]}
    and the legacy bare list of tasks.
    """
    try:
        data: Any = json.loads(blob)
    except ValueError as e:
        raise StorageFailure(f"Stored tasks are not valid JSON: {e}") from e
    except RecursionError as e:
        raise StorageFailure("Stored tasks are nested too deeply to decode") from e

    if isinstance(data, dict):
        version = data.get("version")
        if version != PAYLOAD_VERSION:
            raise StorageFailure(f"Unsupported tasks payload version: {version!r}")
        data = data.get("tasks")

    try:
        return tree_from_list(data)
    except ValueError as e:
        raise StorageFailure(f"Stored tasks are malformed: {e}") from e
