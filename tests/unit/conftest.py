"""Unit test fixtures — engine wired to the fake clock, FastMCP client."""

from __future__ import annotations

import pytest
from fastmcp import Client

from accesswatch.engine import AnomalyEngine


@pytest.fixture()
def engine(clock) -> AnomalyEngine:
    return AnomalyEngine(clock=clock)


@pytest.fixture()
async def mcp_client():
    """Yield a FastMCP Client wired to a fresh AccessWatch engine."""
    from accesswatch.server import configure
    from accesswatch.server import mcp
    from accesswatch.server import shutdown

    configure()
    async with Client(mcp) as client:
        yield client
    await shutdown()
