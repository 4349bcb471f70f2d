"""
Pending-contact intake.
Handles schema mapping, validation, normalization and the keyed upsert of
submitted contacts into the pending collection.

Submissions arrive in two shapes: the unified camelCase field set and the
older snake_case one. Both are mapped onto the camelCase shape before
anything else looks at them.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from backend.exceptions import InvalidPhoneError, ValidationFailed
from backend.phone import to_e164
from backend.store import DocumentStore

logger = logging.getLogger(__name__)

CONTACT_METHODS = ("phone", "sms", "email")
BUSINESS_TYPES = ("residential", "commercial", "both")

REQUIRED_FIELDS = [
    "name",
    "phone",
    "email",
    "business",
    "cslb",
    "businessType",
    "contactMethod",
    "language",
    "isRepeat",
    "callCount",
    "createdDate",
    "lastCallDate",
    "interests",
    "feedbackParticipation",
]

OPTIONAL_FIELDS = ["notes", "submittedBy"]

STRING_FIELDS = ["name", "business", "cslb", "language", "createdDate", "lastCallDate"]

# Legacy snake_case name -> canonical camelCase name
LEGACY_FIELD_MAPPINGS = {
    "phone_e164": "phone",
    "business_type": "businessType",
    "contact_method": "contactMethod",
    "preferred_language": "language",
    "is_repeat": "isRepeat",
    "call_count": "callCount",
    "created_date": "createdDate",
    "last_call_date": "lastCallDate",
    "feedback_participation": "feedbackParticipation",
    "submitted_by": "submittedBy",
}


# Snake_case keys that only the legacy form sends; optional aliases like
# submitted_by do not mark a payload as legacy
LEGACY_MARKERS = [
    "phone_e164",
    "business_type",
    "contact_method",
    "is_repeat",
    "call_count",
    "created_date",
    "last_call_date",
]

# Keys that only the unified form sends
UNIFIED_MARKERS = [
    "businessType",
    "contactMethod",
    "isRepeat",
    "callCount",
    "createdDate",
    "lastCallDate",
    "interests",
    "feedbackParticipation",
]


def is_legacy_payload(payload: Dict[str, Any]) -> bool:
    """Legacy when it carries snake_case core keys and no unified-only keys."""
    if any(key in payload for key in UNIFIED_MARKERS):
        return False
    return any(key in payload for key in LEGACY_MARKERS)


def to_canonical(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map either submission shape onto the canonical camelCase shape.
    A camelCase key present in the payload always wins over its legacy alias.
    """
    legacy = is_legacy_payload(payload)
    canonical = {k: v for k, v in payload.items() if k not in LEGACY_FIELD_MAPPINGS}

    for old_field, new_field in LEGACY_FIELD_MAPPINGS.items():
        if old_field in payload and new_field not in canonical:
            canonical[new_field] = payload[old_field]

    # Legacy submissions predate the extended fields
    if legacy:
        canonical.setdefault("interests", [])
        canonical.setdefault("feedbackParticipation", False)

    return canonical


def submitted_name(field: str, payload: Dict[str, Any], legacy: bool) -> str:
    """Name of a canonical field as the submitter would know it."""
    for old_field, new_field in LEGACY_FIELD_MAPPINGS.items():
        if new_field != field or field in payload:
            continue
        if old_field in payload or legacy:
            return old_field
    return field


def _violation(field: str, issue: str, message: str) -> Dict[str, str]:
    return {"field": field, "issue": issue, "message": message}


def _trimmed(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def validate_submission(payload: Dict[str, Any]) -> List[Dict[str, str]]:
    """
    Check a canonical payload. Returns every violation found, empty when valid.
    """
    violations = []

    for field in REQUIRED_FIELDS:
        if field not in payload:
            violations.append(_violation(field, "missing", f"Missing required field: {field}"))

    for field in STRING_FIELDS + ["phone"]:
        if field in payload and not isinstance(payload[field], str):
            violations.append(_violation(field, "invalid", f"{field} must be a string"))

    for field in OPTIONAL_FIELDS:
        value = payload.get(field)
        if value is not None and not isinstance(value, str):
            violations.append(_violation(field, "invalid", f"{field} must be a string"))

    if "email" in payload:
        email = payload["email"]
        if not isinstance(email, str):
            violations.append(_violation("email", "invalid", "email must be a string"))
        elif email.strip() and "@" not in email:
            violations.append(_violation("email", "invalid", "email must contain '@'"))

    if "contactMethod" in payload and _trimmed(payload["contactMethod"]) not in CONTACT_METHODS:
        violations.append(_violation(
            "contactMethod", "invalid",
            f"contactMethod must be one of: {', '.join(CONTACT_METHODS)}",
        ))

    if "businessType" in payload and _trimmed(payload["businessType"]) not in BUSINESS_TYPES:
        violations.append(_violation(
            "businessType", "invalid",
            f"businessType must be one of: {', '.join(BUSINESS_TYPES)}",
        ))

    if "isRepeat" in payload and not isinstance(payload["isRepeat"], bool):
        violations.append(_violation("isRepeat", "invalid", "isRepeat must be a boolean"))

    if "callCount" in payload:
        count = payload["callCount"]
        # bool is an int subclass
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            violations.append(_violation("callCount", "invalid", "callCount must be a non-negative integer"))

    if "interests" in payload and not isinstance(payload["interests"], list):
        violations.append(_violation("interests", "invalid", "interests must be an array"))

    if "feedbackParticipation" in payload and not isinstance(payload["feedbackParticipation"], bool):
        violations.append(_violation("feedbackParticipation", "invalid", "feedbackParticipation must be a boolean"))

    return violations


def normalize_submission(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Trim strings, lower-case email and canonicalize phone.
    Raises InvalidPhoneError when the phone has no E.164 form.
    """
    normalized = {k: _trimmed(v) for k, v in payload.items()}

    if isinstance(normalized.get("email"), str):
        normalized["email"] = normalized["email"].lower()

    e164 = to_e164(normalized.get("phone"))
    if not e164:
        raise InvalidPhoneError(f"Cannot normalize phone: {payload.get('phone')!r}")
    normalized["phone"] = e164

    return normalized


def merge_with_existing(
    submission: Dict[str, Any],
    existing: Optional[Dict[str, Any]],
) -> Tuple[Dict[str, Any], bool]:
    """
    Fold a prior record into a new submission.
    Returns (merged, is_update). Creation date is immutable across repeats.
    """
    if existing is None:
        return dict(submission), False

    merged = dict(submission)
    merged["createdDate"] = existing.get("createdDate", submission.get("createdDate"))

    previous = existing.get("callCount")
    if isinstance(previous, bool) or not isinstance(previous, int):
        previous = 0
    merged["callCount"] = previous + 1
    merged["isRepeat"] = True

    return merged, True


def build_document(
    submission: Dict[str, Any],
    submitted_by_default: str,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Final stored document: payload plus status and server-assigned timestamps."""
    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    document = dict(submission)
    document.update({
        "phone_e164": submission["phone"],
        "isRegistered": False,
        "status": "pending",
        "submittedBy": submission.get("submittedBy") or submitted_by_default,
        "submittedAt": timestamp,
        "updatedAt": timestamp,
    })
    return document


def upsert_pending_contact(
    store: DocumentStore,
    collection: str,
    payload: Dict[str, Any],
    submitted_by_default: str = "sms-intake",
) -> Dict[str, Any]:
    """
    Validate, normalize and upsert one submission keyed by canonical phone.

    Raises ValidationFailed, InvalidPhoneError (both before any store access)
    or StoreError.
    """
    canonical = to_canonical(payload)

    violations = validate_submission(canonical)
    if violations:
        legacy = is_legacy_payload(payload)
        for violation in violations:
            name = submitted_name(violation["field"], payload, legacy)
            if name != violation["field"]:
                violation["message"] = violation["message"].replace(violation["field"], name)
                violation["field"] = name
        raise ValidationFailed(violations)

    submission = normalize_submission(canonical)
    e164 = submission["phone"]

    existing = store.get(collection, e164)
    merged, is_update = merge_with_existing(submission, existing)

    document = build_document(merged, submitted_by_default)
    store.set(collection, e164, document)

    logger.info(f"[pending upsert] collection={collection} id={e164} update={is_update} callCount={merged['callCount']}")
    return {
        "ok": True,
        "id": e164,
        "isUpdate": is_update,
        "callCount": merged["callCount"],
    }
