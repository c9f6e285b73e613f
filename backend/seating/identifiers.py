# Overview: Time-ordered opaque identifiers for charts and versions.

from __future__ import annotations

import secrets
import string
import threading
import time

_ALPHABET = string.ascii_lowercase + string.digits
_lock = threading.Lock()
_last_ns = 0


def _monotonic_ns() -> int:
    """Wall-clock nanoseconds, strictly increasing within this process."""
    global _last_ns
    with _lock:
        now = time.time_ns()
        if now <= _last_ns:
            now = _last_ns + 1
        _last_ns = now
        return now


def _suffix(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def new_chart_id() -> str:
    # Fixed-width timestamp keeps lexical order equal to creation order
    return f"chart-{_monotonic_ns():020d}-{_suffix(9)}"


def new_version_id() -> str:
    return f"v-{_monotonic_ns():020d}-{_suffix(6)}"
