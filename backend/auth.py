"""
Shared-secret authentication for the webhook endpoints.
Each route compares the presented token to one configured secret.
"""

from __future__ import annotations

import logging
import secrets
from typing import Callable, List

from fastapi import HTTPException
from starlette.requests import Request

from backend.config import ServiceConfig
from backend.context import get_context

logger = logging.getLogger(__name__)


def presented_tokens(request: Request) -> List[str]:
    """
    Collect candidate tokens from the request headers, in priority order:
    Bearer token, raw Authorization value, X-Auth-Token.
    """
    tokens = []
    raw_auth = request.headers.get("Authorization", "")
    if raw_auth.startswith("Bearer "):
        tokens.append(raw_auth[7:])
    if raw_auth:
        tokens.append(raw_auth)
    x_token = request.headers.get("X-Auth-Token", "")
    if x_token:
        tokens.append(x_token)
    return tokens


def token_matches(request: Request, expected: str) -> bool:
    """Exact match of any presented token against the expected secret."""
    if not expected:
        return False
    return any(
        secrets.compare_digest(token.encode(), expected.encode())
        for token in presented_tokens(request)
    )


def require_token(select_secret: Callable[[ServiceConfig], str], route: str):
    """Build a FastAPI dependency that rejects requests without the route's secret."""

    async def dependency(request: Request) -> None:
        config = get_context(request).config
        if not token_matches(request, select_secret(config)):
            logger.warning(f"[AUTH] ❌ Unauthorized {route} request from {request.client.host if request.client else 'unknown'}")
            raise HTTPException(status_code=401, detail="unauthorized")

    return dependency


require_client_data_token = require_token(lambda c: c.client_data_token(), "client-data")
require_read_token = require_token(lambda c: c.read_secret, "lookup")
require_intake_token = require_token(lambda c: c.intake_secret, "pending-upsert")
