"""Deterministic fakes for API and service tests."""

from __future__ import annotations

from dataclasses import dataclass, field

from backend.auth.supabase_auth import AuthProviderError
from backend.errors import AuthError
from shared.models import AuthSession


OWNER_U1 = "11111111-1111-1111-1111-111111111111"
OWNER_U2 = "22222222-2222-2222-2222-222222222222"
TOKENS = {"token-u1": OWNER_U1, "token-u2": OWNER_U2}


@dataclass(slots=True)
class FakeIdentityVerifier:
    """Maps fixed bearer tokens to subject ids."""

    tokens: dict[str, str] = field(default_factory=lambda: dict(TOKENS))
    calls: list[str] = field(default_factory=list)

    def verify_token(self, token: str) -> str:
        self.calls.append(token)
        try:
            return self.tokens[token]
        except KeyError:
            raise AuthError("Unauthorized: Invalid token") from None


@dataclass(slots=True)
class FakeAuthClient:
    """In-process stand-in for the Supabase auth client."""

    users: dict[str, str] = field(default_factory=dict)
    signed_out_tokens: list[str] = field(default_factory=list)
    fail_sign_out: bool = False

    def sign_up(self, *, email: str, password: str) -> AuthSession:
        if email in self.users:
            raise AuthProviderError("User already registered", status=422)
        self.users[email] = password
        return AuthSession(uid=OWNER_U1, email=email, token="token-u1")

    def sign_in(self, *, email: str, password: str) -> AuthSession:
        if self.users.get(email) != password:
            raise AuthProviderError("Invalid login credentials", status=400)
        return AuthSession(uid=OWNER_U1, email=email, token="token-u1")

    def sign_out(self, *, token: str) -> None:
        if self.fail_sign_out:
            raise AuthProviderError("Auth provider unreachable")
        self.signed_out_tokens.append(token)


def coffee_payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "title": "Coffee",
        "amount": 4.50,
        "date": "2024-01-05",
        "category": "Food",
        "is_expense": True,
    }
    payload.update(overrides)
    return payload
