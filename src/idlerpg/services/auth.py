"""Boundary to whatever issues credentials: credential in, user id out."""
from __future__ import annotations

from typing import Dict, Mapping, Protocol

from idlerpg.services.errors import UnauthenticatedError


class UserResolver(Protocol):
    def resolve_user(self, credential: str) -> str: ...


class TokenTableResolver:
    """Maps opaque tokens to user ids; the host decides how tokens are issued."""

    def __init__(self, tokens: Mapping[str, str] | None = None) -> None:
        self._tokens: Dict[str, str] = dict(tokens or {})

    def grant(self, token: str, user_id: str) -> None:
        if not token:
            raise ValueError("Token must not be empty.")
        self._tokens[token] = user_id

    def revoke(self, token: str) -> None:
        self._tokens.pop(token, None)

    def resolve_user(self, credential: str) -> str:
        user_id = self._tokens.get(credential) if credential else None
        if user_id is None:
            raise UnauthenticatedError("Unknown or revoked credential.")
        return user_id
