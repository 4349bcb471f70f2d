"""
Call-context payloads for the conversation initiation webhook.

The voice agent platform calls this at the start of every inbound call and
expects the same response shape every time: found, not found, or failed.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional

from backend.phone import digits_of

RESPONSE_TYPE = "conversation_initiation_client_data"

# Checked in order, first non-null wins
CALLER_PHONE_PATHS = [
    ("telephony", "from"),
    ("twilio", "From"),
    ("from",),
    ("caller_id",),
    ("system__caller_id",),
]


def extract_caller_phone(body: Any) -> Optional[Any]:
    """Pull the caller's number out of whichever provider payload shape was sent."""
    if not isinstance(body, dict):
        return None

    for path in CALLER_PHONE_PATHS:
        value: Any = body
        for key in path:
            if not isinstance(value, dict):
                value = None
                break
            value = value.get(key)
        if value is not None:
            return value
    return None


def format_timestamp(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, str):
        return value
    return ""


def _text(contact: Dict[str, Any], field: str) -> str:
    value = contact.get(field)
    return value if isinstance(value, str) else ""


def build_caller_status(
    contact: Optional[Dict[str, Any]],
    e164: str = "",
    error: bool = False,
) -> Dict[str, Any]:
    """Map a stored contact (or None) onto the fixed memorycaller_status shape."""
    c = contact or {}
    tags = c.get("tags")
    return {
        "isRegistered": bool(c.get("isRegistered")) if contact else False,
        "business": _text(c, "business"),
        "cslb": _text(c, "cslb"),
        "name": _text(c, "name"),
        "phone_e164": e164,
        "digits": digits_of(e164),
        "lastChannel": _text(c, "lastChannel"),
        "source": _text(c, "source"),
        "notes": _text(c, "notes"),
        "tags": tags if isinstance(tags, list) else [],
        "createdAt": format_timestamp(c.get("createdAt")),
        "updatedAt": format_timestamp(c.get("updatedAt")),
        "error": error,
    }


def build_config_override(contact: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Personalized opening line for the agent."""
    if contact and contact.get("isRegistered"):
        name = _text(contact, "name") or "there"
        business = _text(contact, "business")
        if business:
            first_message = f"Hi {name} from {business}, welcome back. How can I help you today?"
        else:
            first_message = f"Hi {name}, welcome back. How can I help you today?"
    else:
        first_message = "Hi! I can help you get started. Are you calling about a new project or an existing one?"

    return {"agent": {"first_message": first_message}}


def empty_response() -> Dict[str, Any]:
    """Response for a caller whose number cannot be canonicalized."""
    return {"type": RESPONSE_TYPE, "dynamic_variables": {}}


def status_response(
    contact: Optional[Dict[str, Any]],
    e164: str,
    include_override: bool = False,
) -> Dict[str, Any]:
    response = {
        "type": RESPONSE_TYPE,
        "dynamic_variables": {"memorycaller_status": build_caller_status(contact, e164)},
    }
    if include_override:
        response["conversation_config_override"] = build_config_override(contact)
    return response


def error_response() -> Dict[str, Any]:
    """Fully defaulted payload with error=True; still returned with HTTP 200."""
    return {
        "type": RESPONSE_TYPE,
        "dynamic_variables": {"memorycaller_status": build_caller_status(None, error=True)},
    }
