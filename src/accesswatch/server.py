"""AccessWatch — FastMCP v2 server exposing the anomaly engine.

Tools delegate to an ``AnomalyEngine`` instance.  Call
``configure(...)`` (optionally with a pre-built engine) before using the
server.  The engine itself never touches disk; when archiving is enabled
fired anomalies are queued and written on ``flush_archive()`` or
``shutdown()``.
"""

from __future__ import annotations

import logging
from time import perf_counter

from fastmcp import FastMCP
from fastmcp.server.dependencies import get_access_token
from pydantic import ValidationError

from accesswatch.audit import AnomalyArchive
from accesswatch.auth import create_mcp_auth
from accesswatch.authz import authorize_tool
from accesswatch.authz import AuthorizationDecision
from accesswatch.authz import is_authorization_enabled
from accesswatch.config import ArchiveConfig
from accesswatch.config import DetectionConfig
from accesswatch.engine import AnomalyEngine
from accesswatch.models import AnalyzeDecisionInput
from accesswatch.models import AnalyzeDecisionResult
from accesswatch.models import AnomalyListResult
from accesswatch.models import GetAnomaliesInput
from accesswatch.models import GetRecentAnomaliesInput
from accesswatch.models import ResolveAnomalyResult
from accesswatch.models import RiskScoreResult

logger = logging.getLogger(__name__)

mcp = FastMCP("AccessWatch", auth=create_mcp_auth())

# ---------------------------------------------------------------------------
# Engine instance (set via configure())
# ---------------------------------------------------------------------------

_engine: AnomalyEngine | None = None
_archive: AnomalyArchive | None = None


def configure(
    *,
    engine: AnomalyEngine | None = None,
    detection_config: DetectionConfig | None = None,
    archive_config: ArchiveConfig | None = None,
) -> AnomalyEngine:
    """Wire the MCP tools to an engine.

    When *engine* is given it is used as-is and *detection_config* is
    ignored.  Passing *archive_config* builds an ``AnomalyArchive`` and
    installs it as the sink of the engine built here; a prebuilt engine
    must be constructed with its own sink instead.
    """
    global _engine, _archive
    if engine is not None and archive_config is not None:
        raise ValueError(
            "archive_config cannot be wired into a prebuilt engine; "
            "pass sink=AnomalyArchive(...).submit when constructing it"
        )
    _archive = AnomalyArchive(archive_config) if archive_config else None
    if engine is None:
        engine = AnomalyEngine(
            detection_config,
            sink=_archive.submit if _archive is not None else None,
        )
    _engine = engine
    return engine


async def flush_archive() -> int:
    """Write queued anomalies to the archive, if one is configured."""
    if _archive is None:
        return 0
    return await _archive.flush()


async def shutdown() -> None:
    """Flush the archive and release the engine."""
    global _engine, _archive
    written = await flush_archive()
    if written:
        logger.info("Archived %d anomalies on shutdown", written)
    _engine = None
    _archive = None


def _get_engine() -> AnomalyEngine:
    """Return the engine instance or raise."""
    if _engine is None:
        raise RuntimeError("Anomaly engine not configured. Call configure() first.")
    return _engine


def _authorize(tool_name: str) -> AuthorizationDecision:
    if not is_authorization_enabled():
        return AuthorizationDecision(allowed=True)
    return authorize_tool(tool_name, get_access_token())


def _validation_message(exc: ValidationError) -> str:
    err = exc.errors()[0] if exc.errors() else {}
    return str(err.get("msg", "Invalid input"))


def _record(tool_name: str, start: float, ok: bool) -> None:
    if _engine is not None:
        _engine.metrics.record_latency(
            operation=f"mcp.{tool_name}",
            duration_ms=(perf_counter() - start) * 1000,
            ok=ok,
        )


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool
async def analyze_decision(
    principal_id: str,
    resource: str,
    action: str,
    decision: str,
    context: dict | None = None,
) -> AnalyzeDecisionResult:
    """Analyse one authorization decision for anomalies.

    Args:
        principal_id: Identity whose request was evaluated.
        resource: Resource the principal tried to access.
        action: Action attempted on the resource.
        decision: ALLOW or DENY.
        context: Optional request context copied into anomaly metadata.
    """
    start = perf_counter()
    ok = False
    try:
        engine = _get_engine()
        authz = _authorize("analyze_decision")
        if not authz.allowed:
            return AnalyzeDecisionResult(
                status="error", error_code=authz.error_code, message=authz.message
            )
        try:
            validated = AnalyzeDecisionInput.model_validate(
                {
                    "principal_id": principal_id,
                    "resource": resource,
                    "action": action,
                    "decision": decision.upper(),
                    "context": context,
                }
            )
        except ValidationError as exc:
            return AnalyzeDecisionResult(
                status="error",
                error_code="validation_error",
                message=_validation_message(exc),
            )

        result = engine.analyze_decision(
            validated.principal_id,
            validated.resource,
            validated.action,
            validated.decision,
            validated.context,
        )
        ok = True
        return AnalyzeDecisionResult(
            detected=result.detected,
            risk_score=result.risk_score,
            anomalies=result.anomalies,
        )
    finally:
        _record("analyze_decision", start, ok)


@mcp.tool
async def get_anomalies(principal_id: str, limit: int = 50) -> AnomalyListResult:
    """List a principal's anomalies, newest first.

    Args:
        principal_id: Principal whose anomalies to list.
        limit: Max anomalies returned (1-1000).
    """
    start = perf_counter()
    ok = False
    try:
        engine = _get_engine()
        authz = _authorize("get_anomalies")
        if not authz.allowed:
            return AnomalyListResult(
                status="error", error_code=authz.error_code, message=authz.message
            )
        try:
            validated = GetAnomaliesInput.model_validate(
                {"principal_id": principal_id, "limit": limit}
            )
        except ValidationError as exc:
            return AnomalyListResult(
                status="error",
                error_code="validation_error",
                message=_validation_message(exc),
            )
        anomalies = engine.get_anomalies_for_principal(
            validated.principal_id, validated.limit
        )
        ok = True
        return AnomalyListResult(anomalies=anomalies, returned=len(anomalies))
    finally:
        _record("get_anomalies", start, ok)


@mcp.tool
async def get_recent_anomalies(limit: int = 100) -> AnomalyListResult:
    """List unresolved anomalies across all principals, newest first.

    Args:
        limit: Max anomalies returned (1-1000).
    """
    start = perf_counter()
    ok = False
    try:
        engine = _get_engine()
        authz = _authorize("get_recent_anomalies")
        if not authz.allowed:
            return AnomalyListResult(
                status="error", error_code=authz.error_code, message=authz.message
            )
        try:
            validated = GetRecentAnomaliesInput.model_validate({"limit": limit})
        except ValidationError as exc:
            return AnomalyListResult(
                status="error",
                error_code="validation_error",
                message=_validation_message(exc),
            )
        anomalies = engine.get_recent_anomalies(validated.limit)
        ok = True
        return AnomalyListResult(anomalies=anomalies, returned=len(anomalies))
    finally:
        _record("get_recent_anomalies", start, ok)


@mcp.tool
async def resolve_anomaly(anomaly_id: str) -> ResolveAnomalyResult:
    """Mark an anomaly as reviewed.

    Args:
        anomaly_id: ID of the anomaly to resolve.
    """
    start = perf_counter()
    ok = False
    try:
        engine = _get_engine()
        authz = _authorize("resolve_anomaly")
        if not authz.allowed:
            return ResolveAnomalyResult(
                anomaly_id=anomaly_id,
                status="error",
                error_code=authz.error_code,
                message=authz.message,
            )
        resolved = engine.resolve_anomaly(anomaly_id)
        ok = True
        return ResolveAnomalyResult(
            anomaly_id=anomaly_id,
            status="resolved" if resolved else "not_found",
        )
    finally:
        _record("resolve_anomaly", start, ok)


@mcp.tool
async def get_risk_score(principal_id: str) -> RiskScoreResult:
    """Return the principal's aggregate risk score (0-100).

    Args:
        principal_id: Principal to score.
    """
    start = perf_counter()
    ok = False
    try:
        engine = _get_engine()
        authz = _authorize("get_risk_score")
        if not authz.allowed:
            return RiskScoreResult(
                principal_id=principal_id,
                status="error",
                error_code=authz.error_code,
                message=authz.message,
            )
        ok = True
        return RiskScoreResult(
            principal_id=principal_id,
            risk_score=engine.get_risk_score(principal_id),
        )
    finally:
        _record("get_risk_score", start, ok)
