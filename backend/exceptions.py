"""
Service exception hierarchy.

    ServiceError (base)
    ├── StoreError         backing document store read/write failed
    ├── InvalidPhoneError  phone has no canonical E.164 form
    └── ValidationFailed   one or more submission fields failed a check
"""
from __future__ import annotations

from typing import Any, Dict, List


class ServiceError(Exception):
    """Base exception for all service errors."""


class StoreError(ServiceError):
    """Read or write against the document store failed."""


class InvalidPhoneError(ServiceError):
    """Phone number could not be normalized to E.164."""


class ValidationFailed(ServiceError):
    """Submission payload failed validation.

    Carries the itemized violations so handlers can report every field.
    """

    def __init__(self, violations: List[Dict[str, Any]]):
        self.violations = violations
        fields = ", ".join(v["field"] for v in violations)
        super().__init__(f"Validation failed for fields: {fields}")
