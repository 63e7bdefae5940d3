import pytest

from idlerpg.services.auth import TokenTableResolver
from idlerpg.services.errors import UnauthenticatedError


def test_granted_token_resolves_to_user() -> None:
    resolver = TokenTableResolver({"abc": "alice"})
    resolver.grant("xyz", "bob")

    assert resolver.resolve_user("abc") == "alice"
    assert resolver.resolve_user("xyz") == "bob"


def test_revoked_or_unknown_tokens_are_rejected() -> None:
    resolver = TokenTableResolver({"abc": "alice"})
    resolver.revoke("abc")

    for credential in ("abc", "nope", ""):
        with pytest.raises(UnauthenticatedError):
            resolver.resolve_user(credential)


def test_empty_token_cannot_be_granted() -> None:
    with pytest.raises(ValueError):
        TokenTableResolver().grant("", "alice")
