"""Landing-page mashup of featured movies and recent songs."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass

from pydantic import ValidationError

from ..errors import SourceUnavailable
from ..fallback import fallback_records
from ..models import MovieRecord, RecordKind, SongRecord, parse_record
from .document_store import DocumentStore

logger = logging.getLogger(__name__)

Record = MovieRecord | SongRecord


@dataclass(frozen=True, slots=True)
class FeaturedContent:
    """Featured records in canonical order: movies first, then songs."""

    movies: tuple[MovieRecord, ...] = ()
    songs: tuple[SongRecord, ...] = ()

    @property
    def items(self) -> tuple[Record, ...]:
        return (*self.movies, *self.songs)

    def shuffled(self, rng: random.Random | None = None) -> list[Record]:
        """Return a shuffled display copy; the canonical order is untouched."""

        display = list(self.items)
        (rng or random.Random()).shuffle(display)
        return display


async def _load_kind(
    store: DocumentStore,
    kind: RecordKind,
    limit: int,
    where: dict[str, str] | None = None,
) -> tuple[Record, ...]:
    if limit <= 0:
        return ()
    try:
        documents = await store.query_page(kind, limit=limit, where=where)
    except SourceUnavailable as exc:
        logger.warning("Loading featured %s records failed, using fallback: %s", kind, exc)
        return fallback_records(kind)

    records: list[Record] = []
    for document in documents:
        try:
            records.append(parse_record(kind, document))
        except (ValidationError, ValueError) as exc:
            logger.warning("Skipping malformed featured %s %s: %s", kind, document.get("id"), exc)
    return tuple(records)


async def load_featured(
    store: DocumentStore,
    *,
    movie_limit: int = 6,
    song_limit: int = 4,
) -> FeaturedContent:
    """Fetch featured movies and the newest songs concurrently."""

    movies, songs = await asyncio.gather(
        _load_kind(store, "movie", movie_limit, {"category": "featured"}),
        _load_kind(store, "song", song_limit),
    )
    return FeaturedContent(
        movies=tuple(record for record in movies if isinstance(record, MovieRecord)),
        songs=tuple(record for record in songs if isinstance(record, SongRecord)),
    )
