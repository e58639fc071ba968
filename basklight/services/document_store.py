"""Clients for the remote document store backing the catalog."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Protocol

import httpx

from ..config import Settings
from ..errors import NotFoundError, SourceUnavailable
from ..models import PageCursor, RecordKind, parse_timestamp

logger = logging.getLogger(__name__)

COLLECTIONS: dict[str, str] = {
    "movie": "movies",
    "song": "songs",
    "user": "users",
}


class DocumentStore(Protocol):
    """Operations the engine needs from the managed backend."""

    async def query_page(
        self,
        kind: RecordKind,
        *,
        limit: int,
        after: PageCursor | None = None,
        where: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Return up to ``limit`` documents, newest ``createdAt`` first."""

    async def get_by_id(self, kind: RecordKind, record_id: str) -> dict[str, Any]:
        """Return a single document or raise :class:`NotFoundError`."""

    async def get_user(self, user_id: str) -> dict[str, Any]:
        """Return the user's profile document (empty when it does not exist)."""

    async def upsert_user_field(self, user_id: str, path: str, value: Any) -> None:
        """Create or overwrite one field of a user's profile document."""


class HttpDocumentStore:
    """Thin wrapper around a REST document-store API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "User-Agent": f"{self._settings.app_name} (basklight)",
        }
        if self._settings.document_store_api_key:
            headers["Authorization"] = f"Bearer {self._settings.document_store_api_key}"
        return headers

    @staticmethod
    def _documents_path(collection: str, document_id: str | None = None) -> str:
        path = f"/collections/{collection}/documents"
        if document_id is not None:
            path = f"{path}/{document_id}"
        return path

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(
                method, path, headers=self._headers(), **kwargs
            )
        except httpx.HTTPError as exc:
            logger.warning("Document store %s %s failed: %s", method, path, exc)
            raise SourceUnavailable(f"{method} {path} failed: {exc}") from exc
        if response.status_code >= 500:
            logger.warning(
                "Document store %s %s returned %s", method, path, response.status_code
            )
            raise SourceUnavailable(
                f"{method} {path} returned HTTP {response.status_code}"
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise SourceUnavailable("Unexpected non-JSON document store response") from exc

    async def query_page(
        self,
        kind: RecordKind,
        *,
        limit: int,
        after: PageCursor | None = None,
        where: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        path = self._documents_path(COLLECTIONS[kind])
        params: dict[str, Any] = {"orderBy": "createdAt desc", "limit": limit}
        if after is not None:
            params.update(after.to_params())
        for field, value in (where or {}).items():
            params[f"where.{field}"] = value

        response = await self._request("GET", path, params=params)
        if response.status_code >= 400:
            logger.warning(
                "Document store rejected %s query: %s", kind, response.text
            )
            raise SourceUnavailable(
                f"{kind} query returned HTTP {response.status_code}"
            )

        data = self._json(response)
        if isinstance(data, dict):
            data = data.get("documents")
        if not isinstance(data, list):
            logger.warning("Unexpected document store response structure for %s", kind)
            raise SourceUnavailable(f"Malformed {kind} page")
        return [document for document in data if isinstance(document, dict)]

    async def get_by_id(self, kind: RecordKind, record_id: str) -> dict[str, Any]:
        path = self._documents_path(COLLECTIONS[kind], record_id)
        response = await self._request("GET", path)
        if response.status_code == 404:
            raise NotFoundError(kind, record_id)
        if response.status_code >= 400:
            raise SourceUnavailable(
                f"{kind} lookup returned HTTP {response.status_code}"
            )

        data = self._json(response)
        if not isinstance(data, dict):
            raise SourceUnavailable(f"Malformed {kind} document")
        data.setdefault("id", record_id)
        return data

    async def get_user(self, user_id: str) -> dict[str, Any]:
        path = self._documents_path(COLLECTIONS["user"], user_id)
        response = await self._request("GET", path)
        if response.status_code == 404:
            return {}
        if response.status_code >= 400:
            raise SourceUnavailable(
                f"user lookup returned HTTP {response.status_code}"
            )
        data = self._json(response)
        return data if isinstance(data, dict) else {}

    async def upsert_user_field(self, user_id: str, path: str, value: Any) -> None:
        request_path = self._documents_path(COLLECTIONS["user"], user_id)
        response = await self._request(
            "PATCH",
            request_path,
            params={"updateMask": path},
            json={path: value},
        )
        if response.status_code >= 400:
            logger.warning(
                "Failed to update %s for user %s: %s", path, user_id, response.text
            )
            raise SourceUnavailable(
                f"user update returned HTTP {response.status_code}"
            )


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _ordering_key(document: Mapping[str, Any]) -> tuple[datetime, str]:
    created_at = parse_timestamp(document.get("createdAt"))
    return created_at or _EPOCH, str(document.get("id", ""))


class InMemoryDocumentStore:
    """Document store backed by plain dictionaries.

    Ordering mirrors the hosted store: ``createdAt`` descending with the
    document id as tie-breaker, and cursors are exclusive. Setting
    ``fail`` makes every call raise :class:`SourceUnavailable`; an optional
    ``gate`` event holds queries until it is set.
    """

    def __init__(
        self,
        documents: Mapping[RecordKind, Iterable[Mapping[str, Any]]] | None = None,
        *,
        users: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        self._documents: dict[str, list[dict[str, Any]]] = {
            kind: [dict(document) for document in docs]
            for kind, docs in (documents or {}).items()
        }
        self.users: dict[str, dict[str, Any]] = {
            user_id: dict(profile) for user_id, profile in (users or {}).items()
        }
        self.fail = False
        self.gate: asyncio.Event | None = None
        self.queries: list[tuple[RecordKind, PageCursor | None, int]] = []

    def add(self, kind: RecordKind, document: Mapping[str, Any]) -> None:
        self._documents.setdefault(kind, []).append(dict(document))

    async def _check(self, operation: str) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise SourceUnavailable(f"{operation} failed: store offline")

    async def query_page(
        self,
        kind: RecordKind,
        *,
        limit: int,
        after: PageCursor | None = None,
        where: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        self.queries.append((kind, after, limit))
        await self._check(f"{kind} query")

        ordered = sorted(
            self._documents.get(kind, []), key=_ordering_key, reverse=True
        )
        if where:
            ordered = [
                document
                for document in ordered
                if all(document.get(field) == value for field, value in where.items())
            ]
        if after is not None and not after.is_unset:
            bound = _ordering_key(
                {
                    "createdAt": after.created_at,
                    "id": after.record_id or "",
                }
            )
            ordered = [document for document in ordered if _ordering_key(document) < bound]
        return [dict(document) for document in ordered[: max(limit, 0)]]

    async def get_by_id(self, kind: RecordKind, record_id: str) -> dict[str, Any]:
        await self._check(f"{kind} lookup")
        for document in self._documents.get(kind, []):
            if document.get("id") == record_id:
                return dict(document)
        raise NotFoundError(kind, record_id)

    async def get_user(self, user_id: str) -> dict[str, Any]:
        await self._check("user lookup")
        return dict(self.users.get(user_id, {}))

    async def upsert_user_field(self, user_id: str, path: str, value: Any) -> None:
        await self._check("user update")
        self.users.setdefault(user_id, {})[path] = value
