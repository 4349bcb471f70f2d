"""Shared pytest fixtures.

Fixtures:
    - store: In-memory document store
    - config: Service config with known secrets
    - client: TestClient for an app wired to store + config
    - valid_submission: Complete camelCase pending-contact payload
"""

import copy
from typing import Any, Dict, Optional

import pytest
from fastapi.testclient import TestClient

from backend.config import ServiceConfig
from backend.context import ServiceContext
from backend.exceptions import StoreError
from backend.store import DocumentStore
from main import create_app

READ_SECRET = "read-secret"
INTAKE_SECRET = "intake-secret"
REGISTRY_TOKEN = "registry-token"


class FakeDocumentStore(DocumentStore):
    """Dict-backed store that records calls and can be told to fail."""

    def __init__(self):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.reads = []
        self.writes = []
        self.fail_reads = False
        self.fail_writes = False

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        self.reads.append((collection, doc_id))
        if self.fail_reads:
            raise StoreError("store unavailable")
        doc = self.collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self.writes.append((collection, doc_id))
        if self.fail_writes:
            raise StoreError("store unavailable")
        self.collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)

    def put(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Seed a document without recording a write."""
        self.collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)


@pytest.fixture
def store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def config() -> ServiceConfig:
    return ServiceConfig(
        read_secret=READ_SECRET,
        intake_secret=INTAKE_SECRET,
        caller_registry_token=REGISTRY_TOKEN,
        run_migrations=False,
    )


@pytest.fixture
def client(config: ServiceConfig, store: FakeDocumentStore) -> TestClient:
    app = create_app(ServiceContext(config=config, store=store))
    return TestClient(app)


@pytest.fixture
def valid_submission() -> Dict[str, Any]:
    return {
        "name": "  Jane Doe ",
        "phone": "(415) 555-1212",
        "email": " Jane@Example.COM ",
        "business": "Doe Builders",
        "cslb": "1234567",
        "businessType": " residential ",
        "contactMethod": "sms",
        "language": "en",
        "isRepeat": False,
        "callCount": 0,
        "createdDate": "2025-01-27",
        "lastCallDate": "2025-01-27",
        "interests": ["remodel"],
        "feedbackParticipation": True,
    }
