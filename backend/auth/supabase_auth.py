"""Supabase Auth integration: bearer token verification and password sessions."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen
from uuid import UUID

from backend.errors import AuthError, ConfigurationError
from shared import config
from shared.models import AuthSession


logger = logging.getLogger(__name__)


REQUIRED_AUTH_USER_ID_FIELD = "id"
BEARER_PREFIX = "Bearer "


class IdentityVerifier(Protocol):
    def verify_token(self, token: str) -> str:
        """Return the verified subject id for a bearer token or raise AuthError."""


class AuthProviderError(Exception):
    """Raised when the identity provider rejects a sign-up, sign-in or sign-out call."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


def _is_uuid_like(value: str) -> bool:
    try:
        UUID(value)
    except (ValueError, TypeError):
        return False
    return True


def extract_bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise AuthError("Unauthorized: No token provided")
    if not authorization.startswith(BEARER_PREFIX):
        raise AuthError("Unauthorized: No token provided")
    token = authorization[len(BEARER_PREFIX) :].strip()
    if not token:
        raise AuthError("Unauthorized: No token provided")
    return token


def _error_message(payload: Any, default: str) -> str:
    if isinstance(payload, dict):
        for key in ("msg", "error_description", "message", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return default


@dataclass(slots=True)
class SupabaseAuthClient:
    """Thin GoTrue client; every call is a blocking ``urllib`` request."""

    url: str
    anon_key: str

    def _request(
        self,
        path: str,
        *,
        method: str,
        body: dict[str, object] | None = None,
        query: dict[str, str] | None = None,
        token: str | None = None,
    ) -> dict[str, Any]:
        encoded_query = f"?{urlencode(query)}" if query else ""
        data = json.dumps(body).encode("utf-8") if body is not None else None
        request = Request(
            url=f"{self.url.rstrip('/')}/auth/v1/{path}{encoded_query}",
            data=data,
            headers={
                "apikey": self.anon_key,
                "Authorization": f"Bearer {token or self.anon_key}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            method=method,
        )
        try:
            with urlopen(request) as response:  # noqa: S310 - trusted Supabase URL from env
                raw_body = response.read().decode("utf-8")
        except HTTPError as exc:
            raw_error = exc.read().decode("utf-8", errors="replace")[:500]
            try:
                error_payload = json.loads(raw_error)
            except ValueError:
                error_payload = None
            raise AuthProviderError(
                _error_message(error_payload, f"Auth request failed with status {exc.code}"),
                status=exc.code,
            ) from exc
        except URLError as exc:
            raise AuthProviderError("Auth provider unreachable") from exc

        if not raw_body:
            return {}
        payload = json.loads(raw_body)
        return payload if isinstance(payload, dict) else {}

    def verify_token(self, token: str) -> str:
        try:
            payload = self._request("user", method="GET", token=token)
        except AuthProviderError as exc:
            logger.info("auth_token_rejected status=%s", exc.status)
            raise AuthError("Unauthorized: Invalid token") from exc

        user_id = payload.get(REQUIRED_AUTH_USER_ID_FIELD)
        if not isinstance(user_id, str) or not _is_uuid_like(user_id):
            raise AuthError("Unauthorized: Invalid token")
        return user_id

    def _session_from_payload(self, payload: dict[str, Any], *, fallback_email: str) -> AuthSession:
        user = payload.get("user") if isinstance(payload.get("user"), dict) else payload
        token = payload.get("access_token")
        user_id = user.get(REQUIRED_AUTH_USER_ID_FIELD)
        if not isinstance(token, str) or not token or not isinstance(user_id, str):
            raise AuthProviderError("Auth provider did not return a session")
        email = user.get("email")
        return AuthSession(
            uid=user_id,
            email=email if isinstance(email, str) else fallback_email,
            token=token,
        )

    def sign_up(self, *, email: str, password: str) -> AuthSession:
        payload = self._request("signup", method="POST", body={"email": email, "password": password})
        return self._session_from_payload(payload, fallback_email=email)

    def sign_in(self, *, email: str, password: str) -> AuthSession:
        payload = self._request(
            "token",
            method="POST",
            query={"grant_type": "password"},
            body={"email": email, "password": password},
        )
        return self._session_from_payload(payload, fallback_email=email)

    def sign_out(self, *, token: str) -> None:
        self._request("logout", method="POST", token=token)


@lru_cache(maxsize=1)
def get_auth_client() -> SupabaseAuthClient:
    """Create and cache the Supabase auth client once per process."""

    supabase_url = (config.supabase_url() or "").strip()
    anon_key = (config.supabase_anon_key() or "").strip()
    if not supabase_url or not anon_key:
        logger.error(
            "supabase_auth_not_configured has_url=%s has_anon_key=%s",
            bool(supabase_url),
            bool(anon_key),
        )
        raise ConfigurationError("Internal Server Error")
    return SupabaseAuthClient(url=supabase_url, anon_key=anon_key)


def reset_auth_client() -> None:
    """Drop the cached client so the next call re-reads configuration."""

    get_auth_client.cache_clear()
