"""Durable JSON-array files shared by the reminder and information stores.

The whole collection lives in one human-readable JSON array that is rewritten
wholesale on every mutation.  :meth:`JsonArrayFile.transaction` holds the
store's lock across load, mutate and save so concurrent writers cannot lose
each other's updates.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from mcplink.server.errors import StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class Batch(list[T]):
    """The loaded records of one transaction.

    Call :meth:`mark_dirty` after mutating; only dirty batches are written.
    """

    dirty: bool = False

    def mark_dirty(self) -> None:
        self.dirty = True


class JsonArrayFile(Generic[T]):
    """A list of pydantic records persisted as one JSON array."""

    def __init__(self, path: Path, model: type[T]) -> None:
        self.path = path
        self._adapter = TypeAdapter(list[model])  # type: ignore[valid-type]
        self._lock = asyncio.Lock()
        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("[]", encoding="utf-8")

    def _read(self) -> list[T]:
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageError(f"Cannot read {self.path}: {exc}") from exc
        if not content.strip():
            return []
        try:
            return self._adapter.validate_json(content)
        except ValidationError as exc:
            logger.error("Corrupt store file %s: %s", self.path, exc)
            raise StorageError(f"Corrupt store file {self.path}") from exc

    def _write(self, records: list[T]) -> None:
        payload = [r.model_dump(mode="json", by_alias=True) for r in records]
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as exc:
            raise StorageError(f"Cannot write {self.path}: {exc}") from exc

    async def read(self) -> list[T]:
        """Snapshot of every record."""
        async with self._lock:
            return await asyncio.to_thread(self._read)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Batch[T]]:
        """Exclusive load → mutate → save cycle."""
        async with self._lock:
            batch: Batch[T] = Batch(await asyncio.to_thread(self._read))
            yield batch
            if batch.dirty:
                await asyncio.to_thread(self._write, list(batch))
