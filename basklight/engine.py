"""Composition root wiring the engine's components together."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

import httpx

from .config import Settings, get_settings
from .models import RecordKind
from .services.auth import AuthProvider
from .services.catalog_store import CatalogStore
from .services.document_store import DocumentStore, HttpDocumentStore
from .services.featured import FeaturedContent, load_featured
from .services.filter_engine import FilterEngine
from .services.library import ContentLibrary
from .services.playback import PlaybackSession
from .services.timers import AsyncioScheduler, Scheduler
from .services.transport import TransportController

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ContentEngine:
    """One content page's worth of catalog, filter and playback state."""

    settings: Settings
    store: DocumentStore
    catalog: CatalogStore
    filters: FilterEngine
    session: PlaybackSession
    transport: TransportController
    library: ContentLibrary

    async def load(self) -> None:
        await self.catalog.fetch_initial_page(self.settings.page_size)

    async def load_more(self) -> None:
        await self.catalog.fetch_next_page(self.settings.page_size)

    async def featured(self) -> FeaturedContent:
        return await load_featured(
            self.store,
            movie_limit=self.settings.featured_movie_limit,
            song_limit=self.settings.featured_song_limit,
        )

    def play(self, record_id: str) -> bool:
        """Play a record from the current view.

        Songs use the view as their playlist; movies play on their own and
        stay ended when they finish.
        """

        view = self.filters.view()
        for record in view:
            if record.id == record_id:
                if record.kind == "song":
                    return self.library.play(record, view)
                return self.library.play(record)
        logger.warning("Record %s is not in the current view", record_id)
        return False

    def close(self) -> None:
        self.transport.close()
        self.filters.close()
        self.session.stop()


def build_engine(
    kind: RecordKind,
    auth: AuthProvider,
    store: DocumentStore,
    *,
    settings: Settings | None = None,
    scheduler: Scheduler | None = None,
) -> ContentEngine:
    settings = settings or get_settings()
    catalog = CatalogStore(store, kind, page_size=settings.page_size)
    filters = FilterEngine(catalog)
    session = PlaybackSession(
        scheduler or AsyncioScheduler(),
        ad_skip_seconds=settings.ad_skip_seconds,
        volume=settings.default_volume,
    )
    return ContentEngine(
        settings=settings,
        store=store,
        catalog=catalog,
        filters=filters,
        session=session,
        transport=TransportController(session),
        library=ContentLibrary(auth, store, session),
    )


@asynccontextmanager
async def open_engine(
    kind: RecordKind,
    auth: AuthProvider,
    *,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[ContentEngine]:
    """Create an engine talking to the configured document store over HTTP."""

    settings = settings or get_settings()
    exit_stack = AsyncExitStack()
    client_kwargs: dict[str, object] = {
        "base_url": str(settings.document_store_url),
        "timeout": httpx.Timeout(settings.request_timeout_seconds, connect=5.0),
    }
    if transport is not None:
        client_kwargs["transport"] = transport
    http_client = await exit_stack.enter_async_context(httpx.AsyncClient(**client_kwargs))
    engine = build_engine(
        kind, auth, HttpDocumentStore(settings, http_client), settings=settings
    )
    try:
        yield engine
    finally:
        engine.close()
        await exit_stack.aclose()
