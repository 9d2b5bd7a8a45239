from __future__ import annotations

from typing import Protocol


class Identity(Protocol):
    async def get_user_id(self) -> str | None: ...


class StaticIdentity:
    """Identity for the single-user session; an empty id means signed out."""

    def __init__(self, user_id: str | None):
        self.user_id = user_id or None

    async def get_user_id(self) -> str | None:
        return self.user_id

    def sign_out(self) -> None:
        self.user_id = None
