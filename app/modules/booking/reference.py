"""Human-readable booking references."""

from __future__ import annotations

import secrets
import string

REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
REFERENCE_CODE_LENGTH = 8


def generate_booking_reference(prefix: str) -> str:
    """Return a reference such as ``L4D-7K2Q9XBA``."""
    code = "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(REFERENCE_CODE_LENGTH))
    return f"{prefix}-{code}"
