from __future__ import annotations

from typing import Any, Optional

# Loose international fallback range for bare digit runs
MIN_DIGITS = 7
MAX_DIGITS = 15

# ASCII only; str.isdigit() also accepts other scripts and superscripts
DIGITS = "0123456789"


def to_e164(raw: Any) -> Optional[str]:
    """
    Best-effort conversion of a caller-ID string to E.164.

    Returns None when no canonical form can be produced. This is a digit-count
    heuristic, not full E.164 validation; callers use the result as a document key.
    """
    if raw is None:
        return None

    phone = str(raw).strip()
    if not phone:
        return None

    # Already international: keep the leading + and digits only
    if phone.startswith("+"):
        digits = "".join(ch for ch in phone[1:] if ch in DIGITS)
        if not digits:
            return None
        return "+" + digits

    digits = "".join(ch for ch in phone if ch in DIGITS)

    if len(digits) == 11 and digits[0] == "1":
        return "+" + digits

    # 10 digits: assume US/Canada
    if len(digits) == 10:
        return "+1" + digits

    if MIN_DIGITS <= len(digits) <= MAX_DIGITS:
        return "+" + digits

    return None


def digits_of(e164: Optional[str]) -> str:
    """Strip the leading + from an E.164 string."""
    if not e164:
        return ""
    return e164[1:] if e164.startswith("+") else e164
