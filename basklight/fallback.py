"""Hand-authored sample records shown when the catalog cannot be fetched."""

from __future__ import annotations

from typing import Any

from .models import MovieRecord, RecordKind, SongRecord, parse_record

_SAMPLE_VIDEO = "https://sample-videos.com/zip/10/mp4/SampleVideo_1280x720_1mb.mp4"
_SAMPLE_AUDIO = "https://www.soundjay.com/misc/sounds/bell-ringing-05.wav"

FALLBACK_DOCUMENTS: dict[RecordKind, tuple[dict[str, Any], ...]] = {
    "movie": (
        {
            "id": "movie1",
            "title": "Bollywood Blockbuster",
            "description": "A thrilling action-packed adventure that will keep you on the edge of your seat.",
            "thumbnailURL": "https://via.placeholder.com/300x400?text=Movie+1",
            "videoURL": _SAMPLE_VIDEO,
            "language": "hindi",
            "genre": "action",
            "year": 2024,
            "duration": "2h 45m",
            "category": "featured",
        },
        {
            "id": "movie2",
            "title": "Bengali Classic",
            "description": "A beautiful story of love, family, and tradition set in rural Bengal.",
            "thumbnailURL": "https://via.placeholder.com/300x400?text=Movie+2",
            "videoURL": "https://sample-videos.com/zip/10/mp4/SampleVideo_1280x720_2mb.mp4",
            "language": "bengali",
            "genre": "drama",
            "year": 2024,
            "duration": "2h 15m",
            "category": "trending",
        },
        {
            "id": "movie3",
            "title": "Comedy Special",
            "description": "Laugh out loud with this hilarious comedy featuring top comedians.",
            "thumbnailURL": "https://via.placeholder.com/300x400?text=Movie+3",
            "videoURL": _SAMPLE_VIDEO,
            "language": "hindi",
            "genre": "comedy",
            "year": 2023,
            "duration": "1h 55m",
            "category": "new",
        },
    ),
    "song": (
        {
            "id": "song1",
            "title": "Bollywood Hit Song",
            "artist": "Famous Singer",
            "album": "Latest Album",
            "thumbnailURL": "https://via.placeholder.com/300x300?text=Song+1",
            "audioURL": _SAMPLE_AUDIO,
            "language": "hindi",
            "genre": "bollywood",
            "year": 2024,
            "duration": "4:30",
        },
        {
            "id": "song2",
            "title": "Bengali Classical",
            "artist": "Renowned Artist",
            "album": "Traditional Collection",
            "thumbnailURL": "https://via.placeholder.com/300x300?text=Song+2",
            "audioURL": _SAMPLE_AUDIO,
            "language": "bengali",
            "genre": "classical",
            "year": 2024,
            "duration": "5:15",
        },
        {
            "id": "song3",
            "title": "Modern Remix",
            "artist": "DJ Producer",
            "album": "Electronic Beats",
            "thumbnailURL": "https://via.placeholder.com/300x300?text=Song+3",
            "audioURL": _SAMPLE_AUDIO,
            "language": "hindi",
            "genre": "remix",
            "year": 2023,
            "duration": "3:45",
        },
    ),
}


def fallback_records(kind: RecordKind) -> tuple[MovieRecord | SongRecord, ...]:
    """Return the bundled sample records for ``kind``."""

    return tuple(parse_record(kind, document) for document in FALLBACK_DOCUMENTS[kind])
