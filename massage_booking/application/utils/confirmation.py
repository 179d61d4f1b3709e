from __future__ import annotations

import secrets
import string
import time

_ALPHABET = string.digits + string.ascii_uppercase


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


def generate_confirmation_number(now_ms: int | None = None) -> str:
    """
    Short human-readable reference, e.g. "LXQ3K2C1-7F2A".
    Not a key: two bookings in the same millisecond may collide.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(4))
    return f"{_base36(now_ms)}-{suffix}"
