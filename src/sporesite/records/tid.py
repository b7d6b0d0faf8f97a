"""
Timestamp identifiers (TIDs) for record keys.

A TID is a 64-bit integer (53 bits of microseconds since the epoch, 10 bits
of clock id) rendered as 13 characters of sortable base32, so keys created
later sort after keys created earlier.
"""

from __future__ import annotations

import random
import threading
import time

TID_ALPHABET = "234567abcdefghijklmnopqrstuvwxyz"
TID_LENGTH = 13

_CLOCK_ID_BITS = 10


def encode_tid(timestamp_us: int, clock_id: int) -> str:
    """Encode a microsecond timestamp and clock id as a TID string."""
    value = ((timestamp_us & ((1 << 53) - 1)) << _CLOCK_ID_BITS) | (
        clock_id & ((1 << _CLOCK_ID_BITS) - 1)
    )
    chars = []
    for _ in range(TID_LENGTH):
        chars.append(TID_ALPHABET[value & 31])
        value >>= 5
    return "".join(reversed(chars))


class TidGenerator:
    """
    Generates strictly increasing TIDs.

    Two calls within the same microsecond (or after the wall clock steps
    back) still produce increasing keys.

    Example:
        >>> gen = TidGenerator(clock_id=7)
        >>> a, b = gen.next(), gen.next()
        >>> a < b
        True
    """

    def __init__(self, clock_id: int | None = None) -> None:
        self._clock_id = (
            clock_id if clock_id is not None else random.randrange(1 << _CLOCK_ID_BITS)
        )
        self._last_us = 0
        self._lock = threading.Lock()

    def next(self) -> str:
        with self._lock:
            now_us = time.time_ns() // 1000
            self._last_us = max(now_us, self._last_us + 1)
            return encode_tid(self._last_us, self._clock_id)


__all__ = ["TID_ALPHABET", "TID_LENGTH", "TidGenerator", "encode_tid"]
