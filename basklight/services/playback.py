"""Playback session state machine with pre-roll ads and a circular playlist."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from functools import partial
from typing import Iterable

from ..errors import InvalidTransition
from ..events import Signal
from ..models import MovieRecord, SongRecord
from ..utils import clamp
from .timers import AsyncioScheduler, Scheduler, TickHandle

logger = logging.getLogger(__name__)

Record = MovieRecord | SongRecord

TICK_SECONDS = 1.0


class PlaybackState(str, Enum):
    IDLE = "idle"
    AD_PLAYING = "ad_playing"
    MAIN_PLAYING = "main_playing"
    PAUSED = "paused"
    ENDED = "ended"


@dataclass(frozen=True, slots=True)
class PlaylistContext:
    """Snapshot of the records to step through plus the current position."""

    sequence: tuple[Record, ...] = ()
    index: int = 0

    @classmethod
    def snapshot(cls, records: Iterable[Record], current: Record) -> "PlaylistContext":
        """Position a copy of ``records`` at ``current``; empty if it is absent."""

        sequence = tuple(records)
        for index, record in enumerate(sequence):
            if record.id == current.id:
                return cls(sequence=sequence, index=index)
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.sequence

    @property
    def current(self) -> Record | None:
        if not self.sequence:
            return None
        return self.sequence[self.index]

    def step(self, offset: int) -> "PlaylistContext":
        length = len(self.sequence)
        return replace(self, index=(self.index + offset + length) % length)

    def __len__(self) -> int:
        return len(self.sequence)


@dataclass(slots=True)
class AdCountdown:
    total: int
    remaining: int

    @property
    def can_skip(self) -> bool:
        return self.remaining <= 0


class PlaybackSession:
    """Drives one active media item through Idle → (ad) → main → ended.

    Ad skip countdowns tick from the injected scheduler. Every countdown is
    bound to the generation it was started in, so ticks and media events
    arriving after the session moved on are ignored.
    """

    def __init__(
        self,
        scheduler: Scheduler | None = None,
        *,
        ad_skip_seconds: int = 5,
        volume: float = 0.7,
    ) -> None:
        self._scheduler = scheduler or AsyncioScheduler()
        self.ad_skip_seconds = max(0, int(ad_skip_seconds))
        self._state = PlaybackState.IDLE
        self._current: Record | None = None
        self._playlist = PlaylistContext()
        self._elapsed = 0.0
        self._duration = 0.0
        self._volume = clamp(float(volume), 0.0, 1.0)
        self._muted = False
        self._countdown: AdCountdown | None = None
        self._timer: TickHandle | None = None
        self._generation = 0
        self.last_rejection: InvalidTransition | None = None
        self.changed = Signal("playback.changed")

    # ------------------------------------------------------------------ state
    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def current(self) -> Record | None:
        return self._current

    @property
    def playlist(self) -> PlaylistContext:
        return self._playlist

    @property
    def elapsed(self) -> float:
        return self._elapsed

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def volume(self) -> float:
        return self._volume

    @property
    def muted(self) -> bool:
        return self._muted

    @property
    def countdown(self) -> AdCountdown | None:
        return self._countdown

    @property
    def can_skip(self) -> bool:
        return (
            self._state is PlaybackState.AD_PLAYING
            and self._countdown is not None
            and self._countdown.can_skip
        )

    @property
    def media_url(self) -> str | None:
        """URI the media element should be playing right now."""

        if self._current is None:
            return None
        if self._state is PlaybackState.AD_PLAYING:
            return self._current.ad_url
        return self._current.media_url

    # ------------------------------------------------------------ transitions
    def start(self, record: Record, playlist: Iterable[Record] | None = None) -> None:
        """Begin playback of ``record``, replacing any playlist context."""

        context = (
            PlaylistContext.snapshot(playlist, record)
            if playlist is not None
            else PlaylistContext()
        )
        self._enter(record, context)

    def restart(self) -> bool:
        """Play the current record again from the top."""

        if self._current is None:
            return self._reject("restart", "nothing loaded")
        self._enter(self._current, self._playlist)
        return True

    def next(self) -> bool:
        return self._step(1, "next")

    def previous(self) -> bool:
        return self._step(-1, "previous")

    def skip_ad(self) -> bool:
        if self._state is not PlaybackState.AD_PLAYING:
            return self._reject("skip_ad")
        if not self.can_skip:
            remaining = self._countdown.remaining if self._countdown else 0
            return self._reject("skip_ad", f"{remaining}s left")
        logger.info("Ad skipped for %s", self._current.id if self._current else None)
        self._enter_main()
        return True

    def ad_ended(self) -> bool:
        """Natural completion of the advertisement media."""

        if self._state is not PlaybackState.AD_PLAYING:
            logger.debug("Ignoring ad end while %s", self._state.value)
            return False
        self._enter_main()
        return True

    def pause(self) -> bool:
        if self._state is not PlaybackState.MAIN_PLAYING:
            return self._reject("pause")
        self._state = PlaybackState.PAUSED
        self.changed.emit()
        return True

    def resume(self) -> bool:
        if self._state is not PlaybackState.PAUSED:
            return self._reject("resume")
        self._state = PlaybackState.MAIN_PLAYING
        self.changed.emit()
        return True

    def toggle(self) -> bool:
        if self._state is PlaybackState.MAIN_PLAYING:
            return self.pause()
        if self._state is PlaybackState.PAUSED:
            return self.resume()
        return self._reject("toggle")

    def media_ended(self) -> bool:
        """Natural completion of the main media; auto-advances a playlist."""

        if self._state not in (PlaybackState.MAIN_PLAYING, PlaybackState.PAUSED):
            logger.debug("Ignoring media end while %s", self._state.value)
            return False
        self._elapsed = self._duration
        self._state = PlaybackState.ENDED
        self.changed.emit()
        if not self._playlist.is_empty:
            self.next()
        return True

    def media_failed(self, reason: str | None = None) -> bool:
        """Treat a load/decode failure as the end of the failing media."""

        if self._state is PlaybackState.AD_PLAYING:
            logger.warning(
                "Ad media failed for %s (%s), continuing to main content",
                self._current.id if self._current else None,
                reason or "unknown error",
            )
            self._enter_main()
            return True
        if self._state in (PlaybackState.MAIN_PLAYING, PlaybackState.PAUSED):
            logger.warning(
                "Media failed for %s (%s)",
                self._current.id if self._current else None,
                reason or "unknown error",
            )
            return self.media_ended()
        logger.debug("Ignoring media failure while %s", self._state.value)
        return False

    def stop(self) -> None:
        self._cancel_countdown()
        self._generation += 1
        self._state = PlaybackState.IDLE
        self._current = None
        self._playlist = PlaylistContext()
        self._elapsed = 0.0
        self._duration = 0.0
        self.changed.emit()

    # --------------------------------------------------------------- progress
    def seek(self, seconds: float) -> bool:
        if self._state not in (PlaybackState.MAIN_PLAYING, PlaybackState.PAUSED):
            return self._reject("seek")
        self._elapsed = clamp(float(seconds), 0.0, self._duration)
        self.changed.emit()
        return True

    def load_metadata(self, duration: float) -> bool:
        if self._state not in (PlaybackState.MAIN_PLAYING, PlaybackState.PAUSED):
            logger.debug("Ignoring metadata while %s", self._state.value)
            return False
        self._duration = max(0.0, float(duration))
        self._elapsed = min(self._elapsed, self._duration)
        self.changed.emit()
        return True

    def time_update(self, elapsed: float, duration: float | None = None) -> bool:
        """Progress report from the main media element."""

        if self._state not in (PlaybackState.MAIN_PLAYING, PlaybackState.PAUSED):
            return False
        if duration is not None and duration > 0:
            self._duration = float(duration)
        position = max(0.0, float(elapsed))
        if self._duration:
            position = min(position, self._duration)
        if position < self._elapsed:
            # only seek() may move the position backwards
            return False
        self._elapsed = position
        self.changed.emit()
        return True

    # ------------------------------------------------------------------ audio
    def set_volume(self, volume: float) -> None:
        self._volume = clamp(float(volume), 0.0, 1.0)
        self.changed.emit()

    def set_muted(self, muted: bool) -> None:
        self._muted = bool(muted)
        self.changed.emit()

    # ---------------------------------------------------------------- helpers
    def _step(self, offset: int, action: str) -> bool:
        if self._playlist.is_empty:
            return self._reject(action, "no playlist")
        context = self._playlist.step(offset)
        record = context.current
        if record is None:
            return self._reject(action, "empty playlist position")
        self._enter(record, context)
        return True

    def _enter(self, record: Record, context: PlaylistContext) -> None:
        self._cancel_countdown()
        self._generation += 1
        self._current = record
        self._playlist = context
        self._elapsed = 0.0
        self._duration = 0.0
        if record.has_ad:
            self._state = PlaybackState.AD_PLAYING
            self._begin_countdown()
        else:
            self._state = PlaybackState.MAIN_PLAYING
        logger.info(
            "Playing %s %s (%s, playlist %s/%s)",
            record.kind,
            record.id,
            self._state.value,
            context.index + 1 if context.sequence else 0,
            len(context),
        )
        self.changed.emit()

    def _enter_main(self) -> None:
        self._cancel_countdown()
        self._generation += 1
        self._state = PlaybackState.MAIN_PLAYING
        self._elapsed = 0.0
        self._duration = 0.0
        self.changed.emit()

    def _begin_countdown(self) -> None:
        self._countdown = AdCountdown(
            total=self.ad_skip_seconds, remaining=self.ad_skip_seconds
        )
        if self.ad_skip_seconds <= 0:
            return
        self._timer = self._scheduler.every(
            TICK_SECONDS, partial(self._on_countdown_tick, self._generation)
        )

    def _on_countdown_tick(self, generation: int) -> None:
        if (
            generation != self._generation
            or self._state is not PlaybackState.AD_PLAYING
            or self._countdown is None
        ):
            logger.debug("Ignoring stale countdown tick (generation %s)", generation)
            return
        if self._countdown.can_skip:
            return
        self._countdown.remaining -= 1
        if self._countdown.can_skip and self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.changed.emit()

    def _cancel_countdown(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._countdown = None

    def _reject(self, action: str, reason: str | None = None) -> bool:
        error = InvalidTransition(action, self._state.value, reason)
        self.last_rejection = error
        logger.debug("Rejected: %s", error)
        return False
