"""Whole-document JSON persistence.

Every mutation goes through ``JsonStore.update`` which holds the store's lock
across read, modify and write, so two handlers incrementing the same counter
cannot overwrite each other. The file is written to a temp sibling and then
swapped in with ``os.replace``.
"""

import asyncio
import copy
import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class JsonStore:
    """Single-writer JSON document kept in memory and flushed on every change"""

    def __init__(self, path: Path, default: Callable[[], dict[str, Any]]):
        self.path = Path(path)
        self._default = default
        self._data: dict[str, Any] | None = None
        self._lock = asyncio.Lock()

    def _read_file(self) -> dict[str, Any]:
        if not self.path.exists():
            return self._default()
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt state file {self.path}: {e}, starting from defaults")
            return self._default()
        if not isinstance(data, dict):
            logger.error(f"State file {self.path} is not a JSON object, starting from defaults")
            return self._default()
        return data

    def _write_file(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    async def _ensure_loaded(self) -> dict[str, Any]:
        if self._data is None:
            self._data = await asyncio.to_thread(self._read_file)
        return self._data

    async def read(self) -> dict[str, Any]:
        """Return a snapshot of the document"""
        async with self._lock:
            return copy.deepcopy(await self._ensure_loaded())

    async def update(self, mutate: Callable[[dict[str, Any]], T]) -> T:
        """Apply *mutate* to the document and persist it before releasing the lock.

        The in-memory copy only changes once the write succeeded.
        """
        async with self._lock:
            draft = copy.deepcopy(await self._ensure_loaded())
            result = mutate(draft)
            await asyncio.to_thread(self._write_file, draft)
            self._data = draft
            return result
