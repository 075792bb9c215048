"""Ad-hoc information store and the ``save_info`` tool.

Records are append-only apart from explicit deletes and are searchable by
substring (title, content, summary) or by tag overlap.
"""

from __future__ import annotations

import itertools
import logging
from collections import Counter
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from mcplink.protocols.mcp.models import ToolDescriptor
from mcplink.server.errors import ToolExecutionError
from mcplink.server.tools.base import optional_str, require_str
from mcplink.server.tools.storage import JsonArrayFile, now_ms

logger = logging.getLogger(__name__)

FETCH_LIMIT = 20_000


class StoredInformation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    content: str
    source: str | None = None
    summary: str | None = None
    tags: set[str] = set()
    metadata: dict[str, str] = {}
    created_at: int = Field(alias="createdAt")

    @field_serializer("tags")
    def _sorted_tags(self, tags: set[str]) -> list[str]:
        return sorted(tags)

    def matches(self, query: str) -> bool:
        needle = query.lower()
        return any(
            needle in field.lower()
            for field in (self.title, self.content, self.summary or "")
        )


def _clean_tags(tags: Iterable[str] | str | None) -> set[str]:
    """Tags as given, stripped; a string is split on commas."""
    if tags is None:
        return set()
    if isinstance(tags, str):
        tags = tags.split(",")
    return {t.strip() for t in tags if t and t.strip()}


class InformationStore:
    """File-backed store of :class:`StoredInformation` records."""

    def __init__(self, path: Path, *, clock: Callable[[], int] = now_ms) -> None:
        self._file = JsonArrayFile(path, StoredInformation)
        self._clock = clock
        self._sequence: itertools.count[int] | None = None

    @property
    def path(self) -> Path:
        return self._file.path

    def _next_index(self, existing: list[StoredInformation]) -> int:
        if self._sequence is None:
            start = len(existing)
            for record in existing:
                suffix = record.id.rsplit("_", 1)[-1]
                if suffix.isdigit():
                    start = max(start, int(suffix) + 1)
            self._sequence = itertools.count(start)
        return next(self._sequence)

    async def save(
        self,
        title: str,
        content: str,
        *,
        source: str | None = None,
        summary: str | None = None,
        tags: Iterable[str] | str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> StoredInformation:
        async with self._file.transaction() as records:
            now = self._clock()
            record = StoredInformation(
                id=f"info_{now}_{self._next_index(records)}",
                title=title,
                content=content,
                source=source,
                summary=summary,
                tags=_clean_tags(tags),
                metadata={str(k): str(v) for k, v in (metadata or {}).items()},
                created_at=now,
            )
            records.append(record)
            records.mark_dirty()
        logger.debug("Saved information %s", record.id)
        return record

    async def get(self, info_id: str) -> StoredInformation | None:
        return next((r for r in await self._file.read() if r.id == info_id), None)

    async def list(self, limit: int | None = None) -> list[StoredInformation]:
        """Most recent first."""
        records = sorted(await self._file.read(), key=lambda r: r.created_at, reverse=True)
        return records if limit is None else records[:limit]

    async def search(self, query: str) -> list[StoredInformation]:
        return [r for r in await self._file.read() if r.matches(query)]

    async def search_by_tags(self, tags: Iterable[str] | str) -> list[StoredInformation]:
        """Records sharing at least one tag with *tags*, ignoring case."""
        wanted = {t.casefold() for t in _clean_tags(tags)}
        return [
            r for r in await self._file.read()
            if any(t.casefold() in wanted for t in r.tags)
        ]

    async def delete(self, info_id: str) -> bool:
        async with self._file.transaction() as records:
            for index, record in enumerate(records):
                if record.id == info_id:
                    del records[index]
                    records.mark_dirty()
                    return True
        return False

    async def stats(self) -> dict[str, Any]:
        records = await self._file.read()
        tag_counts = Counter(tag for r in records for tag in r.tags)
        source_counts = Counter(r.source for r in records if r.source)
        return {
            "total": len(records),
            "tags": dict(tag_counts.most_common()),
            "sources": dict(source_counts.most_common()),
        }


def format_information(record: StoredInformation, *, full: bool = False) -> str:
    lines = [f"[{record.id}] {record.title}"]
    if record.source:
        lines.append(f"  Source: {record.source}")
    if record.tags:
        lines.append(f"  Tags: {', '.join(sorted(record.tags))}")
    if record.summary:
        lines.append(f"  Summary: {record.summary}")
    if full:
        lines.append("")
        lines.append(record.content)
    return "\n".join(lines)


class SaveInfoTool:
    """The ``save_info`` tool over an :class:`InformationStore`."""

    name = "save_info"
    actions = ("save", "get", "search", "search_tags", "list", "delete", "stats", "fetch_and_save")

    def __init__(self, store: InformationStore, *, http: httpx.AsyncClient | None = None) -> None:
        self._store = store
        self._http = http

    @property
    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description="Save, search and manage pieces of information for later use",
            input_schema={
                "type": "object",
                "properties": {
                    "action": {"type": "string", "enum": list(self.actions)},
                    "id": {"type": "string", "description": "Record id (get/delete)"},
                    "title": {"type": "string"},
                    "content": {"type": "string"},
                    "source": {"type": "string"},
                    "summary": {"type": "string"},
                    "tags": {"type": "array", "items": {"type": "string"}},
                    "metadata": {"type": "object"},
                    "query": {"type": "string", "description": "Substring to search for"},
                    "url": {"type": "string", "description": "URL to fetch (fetch_and_save)"},
                    "limit": {"type": "integer"},
                },
                "required": ["action"],
            },
        )

    async def run(self, arguments: dict[str, Any]) -> str:
        action = str(arguments.get("action") or "save")
        if action == "save":
            record = await self._store.save(
                require_str(arguments, "title", self.name),
                require_str(arguments, "content", self.name),
                source=optional_str(arguments, "source"),
                summary=optional_str(arguments, "summary"),
                tags=_tags_argument(arguments, self.name),
                metadata=_metadata_argument(arguments, self.name),
            )
            return f"Information saved with id {record.id}.\n\n" + format_information(record)
        if action == "get":
            info_id = require_str(arguments, "id", self.name)
            record = await self._store.get(info_id)
            if record is None:
                raise ToolExecutionError(self.name, f"Information '{info_id}' not found")
            return format_information(record, full=True)
        if action == "search":
            return _listing(await self._store.search(require_str(arguments, "query", self.name)))
        if action == "search_tags":
            tags = _tags_argument(arguments, self.name)
            if not tags:
                raise ToolExecutionError(self.name, "Missing required argument 'tags'")
            return _listing(await self._store.search_by_tags(tags))
        if action == "list":
            return _listing(await self._store.list(_limit_argument(arguments, self.name)))
        if action == "delete":
            info_id = require_str(arguments, "id", self.name)
            if not await self._store.delete(info_id):
                raise ToolExecutionError(self.name, f"Information '{info_id}' not found")
            return f"Information '{info_id}' deleted."
        if action == "stats":
            stats = await self._store.stats()
            lines = [f"Stored records: {stats['total']}"]
            if stats["tags"]:
                lines.append("Tags: " + ", ".join(f"{t} ({n})" for t, n in stats["tags"].items()))
            if stats["sources"]:
                lines.append("Sources: " + ", ".join(f"{s} ({n})" for s, n in stats["sources"].items()))
            return "\n".join(lines)
        if action == "fetch_and_save":
            return await self._fetch_and_save(arguments)
        raise ToolExecutionError(
            self.name, f"Unknown action: {action}. Available actions: {', '.join(self.actions)}"
        )

    async def _fetch_and_save(self, arguments: dict[str, Any]) -> str:
        # Fetch and save are two separate steps; a failure in between loses the fetch.
        url = require_str(arguments, "url", self.name)
        tags = _tags_argument(arguments, self.name)
        try:
            if self._http is not None:
                response = await self._http.get(url, follow_redirects=True)
            else:
                async with httpx.AsyncClient(timeout=30.0) as client:
                    response = await client.get(url, follow_redirects=True)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ToolExecutionError(self.name, f"Cannot fetch {url}: {exc}") from exc

        content = response.text[:FETCH_LIMIT]
        record = await self._store.save(
            optional_str(arguments, "title") or url,
            content,
            source=url,
            summary=optional_str(arguments, "summary"),
            tags=tags,
            metadata={"content_type": response.headers.get("content-type", "")},
        )
        return f"Fetched {len(content)} characters from {url} and saved as {record.id}."


def _tags_argument(arguments: dict[str, Any], tool: str) -> list[str] | str | None:
    tags = arguments.get("tags")
    if tags is None or isinstance(tags, str):
        return tags
    if isinstance(tags, list) and all(isinstance(t, str) for t in tags):
        return tags
    raise ToolExecutionError(tool, "'tags' must be a list of strings")


def _metadata_argument(arguments: dict[str, Any], tool: str) -> dict[str, Any] | None:
    metadata = arguments.get("metadata")
    if metadata is None or isinstance(metadata, dict):
        return metadata
    raise ToolExecutionError(tool, "'metadata' must be an object")


def _limit_argument(arguments: dict[str, Any], tool: str) -> int | None:
    limit = arguments.get("limit")
    if limit is None or limit == "":
        return None
    if isinstance(limit, str) and limit.strip().isdigit():
        limit = int(limit)
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise ToolExecutionError(tool, "'limit' must be a non-negative integer")
    return limit or None


def _listing(records: list[StoredInformation]) -> str:
    if not records:
        return "No matching information."
    return f"Found {len(records)} record(s):\n\n" + "\n\n".join(format_information(r) for r in records)
