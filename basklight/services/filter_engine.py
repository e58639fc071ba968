"""Conjunctive client-side filtering over a catalog store."""

from __future__ import annotations

import logging
from typing import Literal

from ..events import Signal
from ..models import FILTER_KINDS, FilterKind, FilterState, MovieRecord, SongRecord
from ..utils import contains_text
from .catalog_store import CatalogStore

logger = logging.getLogger(__name__)

Record = MovieRecord | SongRecord


class FilterEngine:
    """Maintains the filtered view of a :class:`CatalogStore`.

    The view is recomputed synchronously whenever a predicate or the
    store's materialized set changes, and always preserves store order.
    """

    def __init__(self, catalog: CatalogStore, predicates: FilterState | None = None) -> None:
        self._catalog = catalog
        self._predicates = predicates or FilterState()
        self._view: tuple[Record, ...] = ()
        self.changed = Signal("filter.changed")
        self._disconnect = catalog.changed.connect(self._on_catalog_changed)
        self._recompute()

    @property
    def predicates(self) -> FilterState:
        return self._predicates

    def view(self) -> tuple[Record, ...]:
        return self._view

    def close(self) -> None:
        """Stop following the catalog store."""

        self._disconnect()

    def set_predicate(self, kind: FilterKind, value: object) -> tuple[Record, ...]:
        """Set (or clear with ``"all"``/blank) one predicate and refresh the view."""

        if kind not in FILTER_KINDS:
            raise ValueError(f"Unknown filter predicate: {kind!r}")
        normalised = getattr(FilterState.model_validate({kind: value}), kind)
        updated = self._predicates.model_copy(update={kind: normalised})
        if updated == self._predicates:
            return self._view
        self._predicates = updated
        logger.debug("Filter %s set to %r", kind, getattr(updated, kind))
        self._recompute()
        return self._view

    def reset(self) -> tuple[Record, ...]:
        if self._predicates == FilterState():
            return self._view
        self._predicates = FilterState()
        self._recompute()
        return self._view

    def matches(self, record: Record) -> bool:
        state = self._predicates
        if state.is_active("language") and record.language != state.language:
            return False
        if state.is_active("genre") and record.genre != state.genre:
            return False
        if state.is_active("year") and str(record.year) != state.year:
            return False
        if state.is_active("search"):
            if not any(contains_text(text, state.search) for text in record.search_fields()):
                return False
        return True

    def available_values(self, field: Literal["language", "genre", "year"]) -> list[str]:
        """Return the distinct values of ``field`` present in the catalog."""

        values = {
            str(getattr(record, field))
            for record in self._catalog.records
            if getattr(record, field) not in (None, "")
        }
        if field == "year":
            return sorted(values, key=int, reverse=True)
        return sorted(values)

    def _on_catalog_changed(self) -> None:
        self._recompute()

    def _recompute(self) -> None:
        view = tuple(record for record in self._catalog.records if self.matches(record))
        if view == self._view:
            return
        self._view = view
        self.changed.emit()
