"""Pagination, fallback and serialization behaviour of the catalog store."""

from __future__ import annotations

import asyncio

import pytest

from basklight.errors import NotFoundError, SourceUnavailable
from basklight.fallback import fallback_records
from basklight.services.catalog_store import CatalogStore
from basklight.services.document_store import InMemoryDocumentStore

from conftest import movie_document, song_document


def build_store(count: int = 10) -> InMemoryDocumentStore:
    return InMemoryDocumentStore(
        {
            "movie": [movie_document(index) for index in range(1, count + 1)],
            "song": [song_document(index) for index in range(1, 4)],
        }
    )


@pytest.mark.anyio("asyncio")
async def test_pagination_of_ten_records_in_pages_of_six() -> None:
    """Six records then four, the terminal cursor, then a no-op."""

    store = build_store(10)
    catalog = CatalogStore(store, "movie")
    notifications: list[int] = []
    catalog.changed.connect(lambda: notifications.append(len(catalog.records)))

    first = await catalog.fetch_initial_page(6)
    assert len(first) == 6
    assert [record.id for record in first][:2] == ["movie-10", "movie-09"]
    assert not catalog.cursor.is_terminal
    assert catalog.has_more
    assert catalog.loaded

    appended = await catalog.fetch_next_page(6)
    assert len(appended) == 4
    assert len(catalog.records) == 10
    assert catalog.cursor.is_terminal
    assert not catalog.has_more

    again = await catalog.fetch_next_page(6)
    assert again == ()
    assert len(catalog.records) == 10
    assert len(store.queries) == 2
    assert notifications == [6, 10]

    ids = [record.id for record in catalog.records]
    assert ids == [f"movie-{index:02d}" for index in range(10, 0, -1)]


@pytest.mark.anyio("asyncio")
async def test_next_page_before_initial_fetch_is_a_noop() -> None:
    store = build_store(3)
    catalog = CatalogStore(store, "movie")

    assert await catalog.fetch_next_page(6) == ()
    assert store.queries == []
    assert not catalog.loaded


@pytest.mark.anyio("asyncio")
async def test_exact_multiple_needs_one_empty_page_to_terminate() -> None:
    store = build_store(6)
    catalog = CatalogStore(store, "movie")

    await catalog.fetch_initial_page(6)
    assert catalog.has_more
    assert await catalog.fetch_next_page(6) == ()
    assert catalog.cursor.is_terminal


@pytest.mark.anyio("asyncio")
async def test_initial_failure_installs_fallback_records() -> None:
    store = build_store()
    store.fail = True
    catalog = CatalogStore(store, "song")
    notified: list[bool] = []
    catalog.changed.connect(lambda: notified.append(True))

    records = await catalog.fetch_initial_page(6)

    assert records == fallback_records("song")
    assert catalog.using_fallback is True
    assert catalog.loaded is True
    assert catalog.cursor.is_terminal
    assert notified == [True]


@pytest.mark.anyio("asyncio")
async def test_next_page_failure_leaves_state_untouched() -> None:
    store = build_store(10)
    catalog = CatalogStore(store, "movie")
    await catalog.fetch_initial_page(6)
    before_records = catalog.records
    before_cursor = catalog.cursor

    store.fail = True
    with pytest.raises(SourceUnavailable):
        await catalog.fetch_next_page(6)

    assert catalog.records == before_records
    assert catalog.cursor == before_cursor

    store.fail = False
    assert len(await catalog.fetch_next_page(6)) == 4


@pytest.mark.anyio("asyncio")
async def test_malformed_documents_are_skipped() -> None:
    store = InMemoryDocumentStore(
        {
            "movie": [
                movie_document(1),
                movie_document(2, year="not-a-year"),
                movie_document(3),
            ]
        }
    )
    catalog = CatalogStore(store, "movie")

    records = await catalog.fetch_initial_page(6)

    assert [record.id for record in records] == ["movie-03", "movie-01"]


@pytest.mark.anyio("asyncio")
async def test_fully_malformed_page_does_not_end_pagination() -> None:
    """A full page of invalid documents still advances past them."""

    documents = [movie_document(index) for index in range(1, 7)]
    documents += [movie_document(index, year="not-a-year") for index in range(7, 10)]
    catalog = CatalogStore(InMemoryDocumentStore({"movie": documents}), "movie")

    assert await catalog.fetch_initial_page(3) == ()
    assert catalog.has_more
    assert catalog.cursor.record_id == "movie-07"

    await catalog.fetch_next_page(3)
    await catalog.fetch_next_page(3)
    await catalog.fetch_next_page(3)

    assert [record.id for record in catalog.records] == [
        "movie-06",
        "movie-05",
        "movie-04",
        "movie-03",
        "movie-02",
        "movie-01",
    ]
    assert not catalog.has_more


@pytest.mark.anyio("asyncio")
async def test_cursor_follows_last_raw_document() -> None:
    documents = [movie_document(index) for index in range(1, 6)]
    documents.append(movie_document(3, id="movie-00", year="not-a-year"))
    catalog = CatalogStore(InMemoryDocumentStore({"movie": documents}), "movie")

    records = await catalog.fetch_initial_page(4)

    assert [record.id for record in records] == ["movie-05", "movie-04", "movie-03"]
    assert catalog.cursor.record_id == "movie-00"
    assert [record.id for record in await catalog.fetch_next_page(4)] == [
        "movie-02",
        "movie-01",
    ]


@pytest.mark.anyio("asyncio")
async def test_concurrent_next_page_calls_are_serialized() -> None:
    """A second fetch waits for the first and uses the advanced cursor."""

    store = build_store(10)
    catalog = CatalogStore(store, "movie")
    await catalog.fetch_initial_page(3)

    store.gate = asyncio.Event()
    first = asyncio.create_task(catalog.fetch_next_page(3))
    second = asyncio.create_task(catalog.fetch_next_page(3))
    await asyncio.sleep(0)
    assert catalog.is_fetching
    # only the first call reached the store; the second waits on the lock
    assert len(store.queries) == 2

    store.gate.set()
    first_page, second_page = await asyncio.gather(first, second)

    assert [record.id for record in first_page] == ["movie-07", "movie-06", "movie-05"]
    assert [record.id for record in second_page] == ["movie-04", "movie-03", "movie-02"]
    assert store.queries[1][1] != store.queries[2][1]
    assert len(catalog.records) == 9
    assert len({record.id for record in catalog.records}) == 9


@pytest.mark.anyio("asyncio")
async def test_get_record_prefers_local_then_backend() -> None:
    store = build_store(10)
    catalog = CatalogStore(store, "movie")
    await catalog.fetch_initial_page(3)
    queries_before = len(store.queries)

    local = await catalog.get_record("movie-10")
    remote = await catalog.get_record("movie-01")

    assert local.id == "movie-10"
    assert remote.id == "movie-01"
    assert len(catalog.records) == 3
    assert len(store.queries) == queries_before

    with pytest.raises(NotFoundError):
        await catalog.get_record("movie-99")
