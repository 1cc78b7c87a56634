"""
Receipt number generation.
Format: PREFIX-<epoch millis in base 36>-<4 random base 36 chars>, uppercase, e.g. RCP-MB3K9Z1Q-7XQ2.
Practically unique, not guaranteed: the tenant-level unique constraint rejects the rare collision.
"""

import secrets
import string
import time
from typing import Optional

from feedesk.core.config import settings

_ALPHABET = string.digits + string.ascii_uppercase


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


def generate_receipt_number(prefix: Optional[str] = None, now_ms: Optional[int] = None) -> str:
    if prefix is None:
        prefix = settings.receipt_prefix
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    random_part = "".join(secrets.choice(_ALPHABET) for _ in range(4))
    return f"{prefix.upper()}-{to_base36(now_ms)}-{random_part}"
