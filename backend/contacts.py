"""
Read-only access to the contacts collection.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from backend.store import DocumentStore


def get_contact(store: DocumentStore, collection: str, e164: str) -> Optional[Dict[str, Any]]:
    """Single keyed read. Raises StoreError if the store is unreachable."""
    return store.get(collection, e164)


def project_contact(contact: Optional[Dict[str, Any]], e164: str) -> Optional[Dict[str, Any]]:
    """Minimal projection returned by the tools lookup endpoint."""
    if contact is None:
        return None
    return {
        "phone_e164": e164,
        "name": contact.get("name") or "",
        "business": contact.get("business") or "",
        "cslb": contact.get("cslb") or "",
        "isRegistered": bool(contact.get("isRegistered")),
    }
