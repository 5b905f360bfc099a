from __future__ import annotations

import secrets
import string
import threading
import time

_ALPHABET = string.digits + string.ascii_lowercase
_RANDOM_LENGTH = 10

_lock = threading.Lock()
_last_millis = 0


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


def _next_millis() -> int:
    """Wall-clock milliseconds, bumped so successive calls in this process strictly increase."""
    global _last_millis
    with _lock:
        now = time.time_ns() // 1_000_000
        if now <= _last_millis:
            now = _last_millis + 1
        _last_millis = now
        return now


def new_id() -> str:
    """Locally unique id: base-36 time component followed by a random base-36 suffix."""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(_RANDOM_LENGTH))
    return _base36(_next_millis()) + suffix
