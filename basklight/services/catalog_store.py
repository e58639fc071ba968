"""Incrementally fetched, locally materialized catalog of one record kind."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable

from pydantic import ValidationError

from ..errors import NotFoundError, SourceUnavailable
from ..events import Signal
from ..fallback import fallback_records
from ..models import (
    TERMINAL_CURSOR,
    UNSET_CURSOR,
    MovieRecord,
    PageCursor,
    RecordKind,
    SongRecord,
    parse_record,
)
from .document_store import DocumentStore

logger = logging.getLogger(__name__)

Record = MovieRecord | SongRecord


class CatalogStore:
    """Holds the fetched records for one kind plus the pagination cursor.

    Fetches are serialized: a call issued while another fetch is outstanding
    waits for it and then runs against the cursor it left behind.
    """

    def __init__(
        self,
        store: DocumentStore,
        kind: RecordKind,
        *,
        page_size: int = 16,
        fallback: Iterable[Record] | None = None,
    ) -> None:
        self._store = store
        self.kind: RecordKind = kind
        self.page_size = page_size
        self._fallback: tuple[Record, ...] = (
            tuple(fallback) if fallback is not None else fallback_records(kind)
        )
        self._records: tuple[Record, ...] = ()
        self._cursor: PageCursor = UNSET_CURSOR
        self._lock = asyncio.Lock()
        self.loaded = False
        self.using_fallback = False
        self.changed = Signal("catalog.changed")

    @property
    def records(self) -> tuple[Record, ...]:
        return self._records

    @property
    def cursor(self) -> PageCursor:
        return self._cursor

    @property
    def has_more(self) -> bool:
        return not (self._cursor.is_unset or self._cursor.is_terminal)

    @property
    def is_fetching(self) -> bool:
        return self._lock.locked()

    def _parse_page(self, documents: list[dict[str, Any]]) -> list[Record]:
        records: list[Record] = []
        for document in documents:
            try:
                records.append(parse_record(self.kind, document))
            except (ValidationError, ValueError) as exc:
                logger.warning(
                    "Skipping malformed %s document %s: %s",
                    self.kind,
                    document.get("id"),
                    exc,
                )
        return records

    def _cursor_after(self, documents: list[dict[str, Any]], requested: int) -> PageCursor:
        # exhaustion and position follow the raw page; malformed documents
        # still occupied a slot in it
        if not documents or len(documents) < requested:
            return TERMINAL_CURSOR
        return PageCursor.after_document(documents[-1])

    async def fetch_initial_page(self, page_size: int | None = None) -> tuple[Record, ...]:
        """Replace the materialized set with the newest page of records.

        When the backend is unavailable the bundled fallback records are
        installed instead so the catalog never renders empty.
        """

        size = page_size if page_size is not None else self.page_size
        async with self._lock:
            try:
                documents = await self._store.query_page(self.kind, limit=size)
            except SourceUnavailable as exc:
                logger.warning(
                    "Loading %s catalog failed, using fallback records: %s", self.kind, exc
                )
                self._records = self._fallback
                self._cursor = TERMINAL_CURSOR
                self.using_fallback = True
            else:
                page = self._parse_page(documents)
                self._records = tuple(page)
                self._cursor = self._cursor_after(documents, size)
                self.using_fallback = False
                logger.info(
                    "Loaded %s %s records (more available: %s)",
                    len(page),
                    self.kind,
                    self.has_more,
                )
            self.loaded = True
        self.changed.emit()
        return self._records

    async def fetch_next_page(self, page_size: int | None = None) -> tuple[Record, ...]:
        """Append the next page after the cursor; return the appended records.

        Does nothing when no page has been fetched yet or the catalog is
        exhausted. :class:`SourceUnavailable` propagates and leaves the
        materialized set untouched.
        """

        size = page_size if page_size is not None else self.page_size
        async with self._lock:
            if not self.has_more:
                return ()
            cursor = self._cursor
            documents = await self._store.query_page(self.kind, limit=size, after=cursor)
            page = self._parse_page(documents)
            self._records = self._records + tuple(page)
            self._cursor = self._cursor_after(documents, size)
            logger.info(
                "Appended %s %s records (total %s, more available: %s)",
                len(page),
                self.kind,
                len(self._records),
                self.has_more,
            )
        if page:
            self.changed.emit()
        return tuple(page)

    async def get_record(self, record_id: str) -> Record:
        """Resolve a record by id, locally first and then from the backend."""

        for record in self._records:
            if record.id == record_id:
                return record
        document = await self._store.get_by_id(self.kind, record_id)
        try:
            return parse_record(self.kind, document)
        except (ValidationError, ValueError) as exc:
            logger.warning("Malformed %s document %s: %s", self.kind, record_id, exc)
            raise NotFoundError(self.kind, record_id) from exc
