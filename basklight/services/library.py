"""User-facing content actions gated on authentication."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from ..errors import AuthenticationRequired, NotFoundError, SourceUnavailable
from ..events import Signal
from ..models import MovieRecord, SongRecord
from ..utils import download_filename
from .auth import AuthProvider
from .catalog_store import CatalogStore
from .document_store import DocumentStore
from .playback import PlaybackSession

logger = logging.getLogger(__name__)

Record = MovieRecord | SongRecord

FAVORITE_FIELDS: dict[str, str] = {
    "movie": "favoriteMovies",
    "song": "favoriteSongs",
}


class ContentLibrary:
    """Play, download and favourite actions for the signed-in user.

    When nobody is signed in the action is refused and ``login_required``
    fires so the host page can open its login flow.
    """

    def __init__(
        self,
        auth: AuthProvider,
        store: DocumentStore,
        session: PlaybackSession,
    ) -> None:
        self._auth = auth
        self._store = store
        self._session = session
        self._favorites: dict[str, list[str]] | None = None
        self._favorites_user: str | None = None
        self._favorites_lock = asyncio.Lock()
        self.login_required = Signal("library.login_required")
        self.unavailable = Signal("library.unavailable")

    def _require_user(self) -> str:
        user_id = self._auth.current_user_id() if self._auth.is_authenticated() else None
        if not user_id:
            raise AuthenticationRequired("Sign in to continue")
        return user_id

    def _guard(self, action: str) -> str | None:
        try:
            return self._require_user()
        except AuthenticationRequired:
            logger.info("%s requires sign-in", action)
            self.login_required.emit()
            return None

    def play(self, record: Record, playlist: Iterable[Record] | None = None) -> bool:
        if self._guard("play") is None:
            return False
        self._session.start(record, playlist)
        return True

    def download_link(self, record: Record) -> tuple[str, str] | None:
        """Return ``(url, filename)`` for the record's primary media."""

        if self._guard("download") is None:
            return None
        url = record.media_url
        if not url:
            logger.warning("%s %s has no downloadable media", record.kind, record.id)
            return None
        if isinstance(record, SongRecord):
            return url, download_filename(record.title, "mp3", artist=record.artist)
        return url, download_filename(record.title, "mp4")

    async def _load_favorites(self, user_id: str) -> dict[str, list[str]]:
        if self._favorites is None or self._favorites_user != user_id:
            profile = await self._store.get_user(user_id)
            self._favorites = {
                field: [str(item) for item in profile.get(field) or []]
                for field in FAVORITE_FIELDS.values()
            }
            self._favorites_user = user_id
        return self._favorites

    async def is_favorite(self, record: Record) -> bool:
        user_id = self._auth.current_user_id() if self._auth.is_authenticated() else None
        if not user_id:
            return False
        favorites = await self._load_favorites(user_id)
        return record.id in favorites[FAVORITE_FIELDS[record.kind]]

    async def toggle_favorite(self, record: Record) -> bool | None:
        """Flip the record's favourite flag; return the new flag.

        Returns ``None`` when the user must sign in first. Toggles run one at
        a time so each starts from the list the previous one stored. A store
        failure propagates and leaves the cached favourites unchanged.
        """

        user_id = self._guard("favorite")
        if user_id is None:
            return None
        async with self._favorites_lock:
            favorites = await self._load_favorites(user_id)
            field = FAVORITE_FIELDS[record.kind]
            current = favorites[field]
            if record.id in current:
                updated = [item for item in current if item != record.id]
            else:
                updated = [*current, record.id]
            await self._store.upsert_user_field(user_id, field, updated)
            favorites[field] = updated
        logger.info("Favourite %s %s set to %s", record.kind, record.id, record.id in updated)
        return record.id in updated

    async def open_deep_link(self, catalog: CatalogStore, record_id: str) -> Record | None:
        """Resolve a linked record id; ``None`` means the content is unavailable."""

        try:
            return await catalog.get_record(record_id)
        except NotFoundError as exc:
            logger.warning("Deep link unavailable: %s", exc)
        except SourceUnavailable as exc:
            logger.warning("Deep link lookup for %s failed: %s", record_id, exc)
        self.unavailable.emit()
        return None
