"""MCP authorization policy helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from fastmcp.server.auth import AccessToken

_READ = "accesswatch:anomalies:read"
_RESOLVE = "accesswatch:anomalies:resolve"
_INGEST = "accesswatch:decisions:write"

_ROLE_SCOPES: dict[str, set[str]] = {
    "viewer": {_READ},
    "operator": {_READ, _RESOLVE},
    "admin": {_READ, _RESOLVE, _INGEST},
    # The authorization engine itself only needs to push decisions.
    "pdp": {_INGEST},
}

_TOOL_REQUIRED_SCOPES: dict[str, set[str]] = {
    "analyze_decision": {_INGEST},
    "get_anomalies": {_READ},
    "get_recent_anomalies": {_READ},
    "get_risk_score": {_READ},
    "resolve_anomaly": {_RESOLVE},
}

_WILDCARD_SCOPE = "accesswatch:all"
_AUTHZ_ENV = "ACCESSWATCH_AUTHZ_ENABLED"


@dataclass(frozen=True)
class AuthorizationDecision:
    allowed: bool
    error_code: str | None = None
    message: str | None = None


def is_authorization_enabled() -> bool:
    """Return whether MCP authorization checks are enabled."""
    raw = os.getenv(_AUTHZ_ENV, "").strip().lower()
    return raw in {"1", "true", "yes", "on"}


def _extract_roles(claims: dict[str, Any]) -> set[str]:
    roles: set[str] = set()
    role = claims.get("role")
    if isinstance(role, str) and role.strip():
        roles.add(role.strip())

    role_list = claims.get("roles")
    if isinstance(role_list, list):
        roles.update(
            item.strip() for item in role_list if isinstance(item, str) and item.strip()
        )
    return roles


def _effective_scopes(token: AccessToken | None) -> set[str]:
    if token is None:
        return set()

    scopes = {scope.strip() for scope in token.scopes if scope.strip()}
    if _WILDCARD_SCOPE in scopes:
        return {_WILDCARD_SCOPE}

    claims = token.claims if isinstance(token.claims, dict) else {}
    for role in _extract_roles(claims):
        scopes.update(_ROLE_SCOPES.get(role, set()))
    return scopes


def authorize_tool(
    tool_name: str,
    token: AccessToken | None,
) -> AuthorizationDecision:
    """Authorize access to one AccessWatch MCP tool."""
    if not is_authorization_enabled():
        return AuthorizationDecision(allowed=True)

    required_scopes = _TOOL_REQUIRED_SCOPES.get(tool_name, set())
    token_scopes = _effective_scopes(token)
    if not required_scopes or _WILDCARD_SCOPE in token_scopes:
        return AuthorizationDecision(allowed=True)

    if not token_scopes.intersection(required_scopes):
        required = ", ".join(sorted(required_scopes))
        return AuthorizationDecision(
            allowed=False,
            error_code="forbidden",
            message=f"Insufficient scope for {tool_name}. Required one of: {required}.",
        )
    return AuthorizationDecision(allowed=True)
