"""Pydantic models describing catalog records and filter state."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from .utils import normalise_query

RecordKind = Literal["movie", "song"]
RECORD_KINDS: tuple[RecordKind, ...] = ("movie", "song")

ALL = "all"


class _RecordBase(BaseModel):
    """Fields shared by every catalog record."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    title: str = ""
    thumbnail_url: str | None = Field(default=None, alias="thumbnailURL")
    language: str = ""
    genre: str = ""
    year: int | None = None
    duration_label: str | None = Field(default=None, alias="duration")
    ad_url: str | None = Field(default=None, alias="adURL")
    created_at: datetime | None = Field(default=None, alias="createdAt")

    @field_validator("language", "genre", mode="before")
    @classmethod
    def _normalise_enumerable(cls, value: object) -> object:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("ad_url", "thumbnail_url", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def has_ad(self) -> bool:
        return bool(self.ad_url)


class MovieRecord(_RecordBase):
    """A movie entry from the ``movies`` collection."""

    kind: Literal["movie"] = "movie"
    description: str = ""
    video_url: str | None = Field(default=None, alias="videoURL")
    category: str | None = None

    @property
    def media_url(self) -> str | None:
        return self.video_url

    @property
    def subtitle(self) -> str:
        return self.description

    def search_fields(self) -> tuple[str, ...]:
        return (self.title, self.description)


class SongRecord(_RecordBase):
    """A song entry from the ``songs`` collection."""

    kind: Literal["song"] = "song"
    artist: str = ""
    album: str = ""
    audio_url: str | None = Field(default=None, alias="audioURL")

    @property
    def media_url(self) -> str | None:
        return self.audio_url

    @property
    def subtitle(self) -> str:
        return self.artist

    def search_fields(self) -> tuple[str, ...]:
        return (self.title, self.artist, self.album)


CatalogRecord = Annotated[Union[MovieRecord, SongRecord], Field(discriminator="kind")]

_RECORD_ADAPTER: TypeAdapter[MovieRecord | SongRecord] = TypeAdapter(CatalogRecord)


def parse_record(kind: RecordKind, payload: dict[str, Any]) -> MovieRecord | SongRecord:
    """Validate a raw document as a record of ``kind``.

    Documents fetched from a collection do not always carry their ``kind`` (the
    collection name implies it), so the expected kind is injected before
    validation. A document that declares a different kind is rejected.
    """

    data = {**payload}
    declared = data.get("kind") or data.get("type")
    if declared and declared != kind:
        raise ValueError(f"Document {data.get('id')!r} is a {declared}, expected {kind}")
    data.pop("type", None)
    data["kind"] = kind
    return _RECORD_ADAPTER.validate_python(data)


_TIMESTAMP_ADAPTER: TypeAdapter[datetime] = TypeAdapter(datetime)


def parse_timestamp(value: object) -> datetime | None:
    """Parse a ``createdAt`` value (ISO string, ``Z`` suffix allowed); naive means UTC."""

    if value is None:
        return None
    try:
        parsed = _TIMESTAMP_ADAPTER.validate_python(value)
    except ValidationError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True, slots=True)
class PageCursor:
    """Opaque pagination token referencing the last fetched record."""

    created_at: datetime | None = None
    record_id: str | None = None
    terminal: bool = False

    @property
    def is_unset(self) -> bool:
        return not self.terminal and self.created_at is None and self.record_id is None

    @property
    def is_terminal(self) -> bool:
        return self.terminal

    @classmethod
    def after(cls, record: MovieRecord | SongRecord) -> "PageCursor":
        return cls(created_at=record.created_at, record_id=record.id)

    @classmethod
    def after_document(cls, document: dict[str, Any]) -> "PageCursor":
        """Cursor positioned after a raw document, whether or not it validates."""

        return cls(
            created_at=parse_timestamp(document.get("createdAt")),
            record_id=str(document.get("id") or ""),
        )

    def to_params(self) -> dict[str, str]:
        """Return query parameters understood by the document store."""

        params: dict[str, str] = {}
        if self.created_at is not None:
            params["afterCreatedAt"] = self.created_at.isoformat()
        if self.record_id is not None:
            params["afterId"] = self.record_id
        return params


UNSET_CURSOR = PageCursor()
TERMINAL_CURSOR = PageCursor(terminal=True)


FilterKind = Literal["language", "genre", "year", "search"]
FILTER_KINDS: tuple[FilterKind, ...] = ("language", "genre", "year", "search")


class FilterState(BaseModel):
    """Active predicate set; ``all`` (or blank) disables a predicate."""

    model_config = ConfigDict(frozen=True)

    language: str = ALL
    genre: str = ALL
    year: str = ALL
    search: str = ""

    @field_validator("language", "genre", "year", mode="before")
    @classmethod
    def _normalise_choice(cls, value: object) -> str:
        if value is None:
            return ALL
        text = str(value).strip().lower()
        return text or ALL

    @field_validator("search", mode="before")
    @classmethod
    def _normalise_search(cls, value: object) -> str:
        if value is None:
            return ""
        return normalise_query(str(value))

    def is_active(self, kind: FilterKind) -> bool:
        value = getattr(self, kind)
        if kind == "search":
            return bool(value)
        return value != ALL

    def active_kinds(self) -> tuple[FilterKind, ...]:
        return tuple(kind for kind in FILTER_KINDS if self.is_active(kind))
