"""Authentication provider interface consumed by the engine."""

from __future__ import annotations

from typing import Protocol


class AuthProvider(Protocol):
    def is_authenticated(self) -> bool:
        ...

    def current_user_id(self) -> str | None:
        ...


class StaticAuthProvider:
    """Auth provider whose signed-in user is set explicitly by the host page."""

    def __init__(self, user_id: str | None = None) -> None:
        self._user_id = user_id

    def sign_in(self, user_id: str) -> None:
        self._user_id = user_id

    def sign_out(self) -> None:
        self._user_id = None

    def is_authenticated(self) -> bool:
        return self._user_id is not None

    def current_user_id(self) -> str | None:
        return self._user_id
