"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest


# Ensure the engine package is importable when running tests without an
# editable install. This mirrors the expected layout where ``basklight`` sits
# at the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def movie_document(index: int, **overrides: Any) -> dict[str, Any]:
    """Return a raw movie document created ``index`` minutes after the base time."""

    document: dict[str, Any] = {
        "id": f"movie-{index:02d}",
        "title": f"Movie {index}",
        "description": f"Description of movie {index}",
        "thumbnailURL": f"https://cdn.example.com/movies/{index}.jpg",
        "videoURL": f"https://cdn.example.com/movies/{index}.mp4",
        "language": "hindi" if index % 2 else "bengali",
        "genre": ("action", "drama", "comedy")[index % 3],
        "year": 2022 + index % 3,
        "duration": "2h 00m",
        "createdAt": (BASE_TIME + timedelta(minutes=index)).isoformat(),
    }
    document.update(overrides)
    return document


def song_document(index: int, **overrides: Any) -> dict[str, Any]:
    """Return a raw song document created ``index`` minutes after the base time."""

    document: dict[str, Any] = {
        "id": f"song-{index:02d}",
        "title": f"Song {index}",
        "artist": f"Artist {index % 4}",
        "album": f"Album {index % 2}",
        "thumbnailURL": f"https://cdn.example.com/songs/{index}.jpg",
        "audioURL": f"https://cdn.example.com/songs/{index}.mp3",
        "language": "hindi" if index % 2 else "bengali",
        "genre": ("bollywood", "classical", "folk")[index % 3],
        "year": 2022 + index % 3,
        "duration": "4:30",
        "createdAt": (BASE_TIME + timedelta(minutes=index)).isoformat(),
    }
    document.update(overrides)
    return document


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"
