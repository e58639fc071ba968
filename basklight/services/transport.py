"""Transport controls mediating between the render layer and a playback session."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from ..events import Signal
from ..utils import clamp, format_clock
from .playback import PlaybackSession, PlaybackState

logger = logging.getLogger(__name__)

VolumeLevel = Literal["mute", "down", "up"]


@dataclass(frozen=True, slots=True)
class TransportDisplay:
    """Everything a player bar needs to render, pulled after a change."""

    state: PlaybackState
    title: str
    subtitle: str
    thumbnail_url: str | None
    media_url: str | None
    elapsed: str
    duration: str
    progress: float
    volume: float
    muted: bool
    volume_level: VolumeLevel
    skip_countdown: int | None
    can_skip: bool
    has_playlist: bool

    @property
    def is_playing(self) -> bool:
        return self.state in (PlaybackState.AD_PLAYING, PlaybackState.MAIN_PLAYING)


def volume_level(volume: float, muted: bool) -> VolumeLevel:
    if muted or volume <= 0:
        return "mute"
    if volume < 0.5:
        return "down"
    return "up"


class TransportController:
    """Translates transport intents into :class:`PlaybackSession` calls."""

    def __init__(self, session: PlaybackSession) -> None:
        self._session = session
        self._volume_before_mute = session.volume
        self.changed = Signal("transport.changed")
        self._disconnect = session.changed.connect(self.changed.emit)

    @property
    def session(self) -> PlaybackSession:
        return self._session

    def close(self) -> None:
        self._disconnect()

    def toggle_play(self) -> bool:
        """Pause/resume main content; replay the current item once it ended."""

        state = self._session.state
        if state is PlaybackState.ENDED:
            return self._session.restart()
        return self._session.toggle()

    def seek_fraction(self, fraction: float) -> bool:
        fraction = clamp(float(fraction), 0.0, 1.0)
        return self._session.seek(fraction * self._session.duration)

    def set_volume(self, volume: float) -> None:
        volume = clamp(float(volume), 0.0, 1.0)
        if volume > 0:
            self._volume_before_mute = volume
        self._session.set_volume(volume)
        if self._session.muted and volume > 0:
            self._session.set_muted(False)

    def toggle_mute(self) -> bool:
        """Flip mute, restoring the pre-mute volume on unmute; return the new flag."""

        if self._session.muted:
            self._session.set_muted(False)
            if self._session.volume <= 0:
                self._session.set_volume(self._volume_before_mute)
            return False
        if self._session.volume > 0:
            self._volume_before_mute = self._session.volume
        self._session.set_muted(True)
        return True

    def skip_ad(self) -> bool:
        return self._session.skip_ad()

    def next(self) -> bool:
        return self._session.next()

    def previous(self) -> bool:
        return self._session.previous()

    def display(self) -> TransportDisplay:
        session = self._session
        record = session.current
        countdown = session.countdown
        duration = session.duration
        progress = session.elapsed / duration if duration else 0.0
        return TransportDisplay(
            state=session.state,
            title=record.title if record else "",
            subtitle=record.subtitle if record else "",
            thumbnail_url=record.thumbnail_url if record else None,
            media_url=session.media_url,
            elapsed=format_clock(session.elapsed),
            duration=format_clock(duration),
            progress=clamp(progress, 0.0, 1.0),
            volume=session.volume,
            muted=session.muted,
            volume_level=volume_level(session.volume, session.muted),
            skip_countdown=(
                max(countdown.remaining, 0)
                if countdown is not None and session.state is PlaybackState.AD_PLAYING
                else None
            ),
            can_skip=session.can_skip,
            has_playlist=not session.playlist.is_empty,
        )
