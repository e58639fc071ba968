"""BaskLight content session engine package."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS: dict[str, str] = {
    "CatalogStore": "basklight.services.catalog_store",
    "FilterEngine": "basklight.services.filter_engine",
    "PlaybackSession": "basklight.services.playback",
    "PlaybackState": "basklight.services.playback",
    "TransportController": "basklight.services.transport",
    "Settings": "basklight.config",
    "get_settings": "basklight.config",
}

__all__ = list(_EXPORTS)


def __getattr__(name: str) -> Any:
    if name in _EXPORTS:
        module = import_module(_EXPORTS[name])
        return getattr(module, name)
    raise AttributeError(f"module 'basklight' has no attribute {name}")
