"""End-to-end wiring of the content engine."""

from __future__ import annotations

import json

import httpx
import pytest

from basklight.config import Settings
from basklight.engine import build_engine, open_engine
from basklight.services.auth import StaticAuthProvider
from basklight.services.document_store import InMemoryDocumentStore
from basklight.services.playback import PlaybackState
from basklight.services.timers import ManualScheduler

from conftest import movie_document, song_document


def make_settings(**overrides) -> Settings:
    values = {"PAGE_SIZE": 4, "AD_SKIP_SECONDS": 2, **overrides}
    return Settings(_env_file=None, **values)


@pytest.mark.anyio("asyncio")
async def test_engine_pages_filters_and_plays_from_view() -> None:
    store = InMemoryDocumentStore(
        {"song": [song_document(index) for index in range(1, 11)]}
    )
    scheduler = ManualScheduler()
    engine = build_engine(
        "song",
        StaticAuthProvider("user-1"),
        store,
        settings=make_settings(),
        scheduler=scheduler,
    )

    await engine.load()
    await engine.load_more()
    assert len(engine.catalog.records) == 8

    engine.filters.set_predicate("language", "hindi")
    view = engine.filters.view()
    assert [record.id for record in view] == ["song-09", "song-07", "song-05", "song-03"]

    assert engine.play("song-05") is True
    assert engine.session.current == view[2]
    assert engine.session.playlist.index == 2
    assert engine.transport.display().volume == pytest.approx(0.7)

    assert engine.transport.next() is True
    assert engine.session.current.id == "song-03"
    assert engine.play("song-02") is False

    engine.close()
    assert engine.session.state is PlaybackState.IDLE


@pytest.mark.anyio("asyncio")
async def test_engine_uses_configured_ad_countdown() -> None:
    store = InMemoryDocumentStore(
        {"movie": [movie_document(1, adURL="https://ads.example.com/a.mp4")]}
    )
    scheduler = ManualScheduler()
    engine = build_engine(
        "movie",
        StaticAuthProvider("user-1"),
        store,
        settings=make_settings(),
        scheduler=scheduler,
    )
    await engine.load()

    engine.play("movie-01")
    assert engine.transport.display().skip_countdown == 2
    scheduler.advance(2)
    assert engine.transport.skip_ad() is True


@pytest.mark.anyio("asyncio")
async def test_movies_play_without_playlist_and_stay_ended() -> None:
    store = InMemoryDocumentStore({"movie": [movie_document(index) for index in range(1, 4)]})
    engine = build_engine(
        "movie",
        StaticAuthProvider("user-1"),
        store,
        settings=make_settings(),
        scheduler=ManualScheduler(),
    )
    await engine.load()

    assert engine.play("movie-02") is True
    assert engine.session.playlist.is_empty
    assert not engine.transport.display().has_playlist

    engine.session.media_ended()

    assert engine.session.state is PlaybackState.ENDED
    assert engine.session.current.id == "movie-02"
    assert engine.transport.next() is False


@pytest.mark.anyio("asyncio")
async def test_signed_out_play_prompts_login() -> None:
    store = InMemoryDocumentStore({"movie": [movie_document(1)]})
    engine = build_engine(
        "movie",
        StaticAuthProvider(),
        store,
        settings=make_settings(),
        scheduler=ManualScheduler(),
    )
    prompts: list[bool] = []
    engine.library.login_required.connect(lambda: prompts.append(True))
    await engine.load()

    assert engine.play("movie-01") is False
    assert prompts == [True]
    assert engine.session.state is PlaybackState.IDLE


@pytest.mark.anyio("asyncio")
async def test_open_engine_talks_to_http_store() -> None:
    requests: list[httpx.Request] = []
    movies = [movie_document(index) for index in range(6, 0, -1)]

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path.endswith("/collections/movies/documents"):
            limit = int(request.url.params["limit"])
            after = request.url.params.get("afterId")
            start = 0
            if after is not None:
                start = next(i for i, doc in enumerate(movies) if doc["id"] == after) + 1
            return httpx.Response(200, json={"documents": movies[start : start + limit]})
        return httpx.Response(404, json={"error": "not found"})

    settings = make_settings(DOCUMENT_STORE_URL="https://store.example.com/v1")
    async with open_engine(
        "movie",
        StaticAuthProvider("user-1"),
        settings=settings,
        transport=httpx.MockTransport(handler),
    ) as engine:
        await engine.load()
        await engine.load_more()
        assert [record.id for record in engine.catalog.records] == [
            "movie-06",
            "movie-05",
            "movie-04",
            "movie-03",
            "movie-02",
            "movie-01",
        ]
        assert not engine.catalog.has_more
        assert engine.catalog.using_fallback is False

    assert requests[0].url.host == "store.example.com"
    assert requests[0].url.path == "/v1/collections/movies/documents"
    assert requests[0].url.params["orderBy"] == "createdAt desc"
    assert requests[1].url.params["afterId"] == "movie-03"


@pytest.mark.anyio("asyncio")
async def test_open_engine_falls_back_when_store_is_down() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, content=json.dumps({"error": "down"}))

    async with open_engine(
        "song",
        StaticAuthProvider("user-1"),
        settings=make_settings(),
        transport=httpx.MockTransport(handler),
    ) as engine:
        await engine.load()

        assert engine.catalog.using_fallback
        assert [record.id for record in engine.catalog.records] == ["song1", "song2", "song3"]
        assert not engine.catalog.has_more
