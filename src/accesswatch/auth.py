"""MCP authentication helpers."""

from __future__ import annotations

import hashlib
import hmac
import logging
import os
from collections.abc import Mapping

from fastmcp.server.auth import AccessToken
from fastmcp.server.auth import TokenVerifier

logger = logging.getLogger(__name__)

_DEFAULT_SCOPES = ["accesswatch:all"]


class APIKeyVerifier(TokenVerifier):
    """Static bearer-token verifier for MCP requests."""

    def __init__(
        self,
        api_key: str,
        *,
        scopes: list[str] | None = None,
        claims: Mapping[str, object] | None = None,
    ) -> None:
        normalized = api_key.strip()
        if not normalized:
            raise ValueError("api_key must be a non-empty, non-whitespace string")
        super().__init__()
        self._api_key = normalized
        self._scopes = scopes[:] if scopes else list(_DEFAULT_SCOPES)
        self._claims = dict(claims or {})

    async def verify_token(self, token: str) -> AccessToken | None:
        """Return an access token when the provided bearer token is valid."""
        if hmac.compare_digest(token, self._api_key):
            return AccessToken(
                token=token,
                client_id="accesswatch-client",
                scopes=self._scopes,
                expires_at=None,
                claims=self._claims,
            )

        token_fingerprint = hashlib.sha256(token.encode("utf-8")).hexdigest()[:12]
        logger.debug(
            "Invalid MCP auth token provided (token_len=%d, token_fp=%s)",
            len(token),
            token_fingerprint,
        )
        return None


def _env(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    stripped = raw.strip()
    return stripped or None


def create_mcp_auth() -> APIKeyVerifier | None:
    """Build a verifier from ``ACCESSWATCH_AUTH_KEY`` and friends.

    ``ACCESSWATCH_AUTH_SCOPES`` is a comma-separated scope list and
    ``ACCESSWATCH_AUTH_ROLE`` an optional role claim.  Returns ``None``
    (no authentication) when no key is configured.
    """
    api_key = _env("ACCESSWATCH_AUTH_KEY")
    if api_key is None:
        return None
    raw_scopes = os.getenv("ACCESSWATCH_AUTH_SCOPES", "")
    scopes = [scope.strip() for scope in raw_scopes.split(",") if scope.strip()]
    role = _env("ACCESSWATCH_AUTH_ROLE")
    return APIKeyVerifier(
        api_key,
        scopes=scopes or None,
        claims={"role": role} if role else None,
    )
