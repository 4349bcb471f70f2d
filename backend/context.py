from __future__ import annotations

from dataclasses import dataclass

from starlette.requests import Request

from backend.config import ServiceConfig
from backend.store import DocumentStore


@dataclass
class ServiceContext:
    """Everything a handler needs, built once at startup."""

    config: ServiceConfig
    store: DocumentStore


def get_context(request: Request) -> ServiceContext:
    """FastAPI dependency returning the context attached to the running app."""
    return request.app.state.context
