"""Business ids for the marketplace.

- quotes, orders and order events: snowflake-style decimal strings, sortable by
  creation time within one worker
- quote requests: opaque url-safe tokens, since the id is the buyer's only handle
- delivery codes: short numeric codes read out at the door
"""

import secrets
import threading
import time

from config.settings import settings


class SnowflakeIdGenerator:
    """Layout (64 bits): 41 bits ms since epoch | 10 bits worker | 12 bits sequence.

    Each API process must run with a distinct worker id (ID_WORKER_ID), otherwise
    two processes can mint the same quote or order id in the same millisecond.
    """

    _EPOCH_MS = 1_767_225_600_000  # 2026-01-01T00:00:00Z
    _WORKER_BITS = 10
    _SEQUENCE_BITS = 12
    _MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1

    def __init__(self, machine_id: int = 0) -> None:
        if not (0 <= machine_id < (1 << self._WORKER_BITS)):
            raise ValueError(f"worker id must be 0-{(1 << self._WORKER_BITS) - 1}")
        self._worker_id = machine_id
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            ms = self._now_ms()
            if ms < self._last_ms:
                # Wall clock stepped back; keep ids increasing
                ms = self._last_ms
            if ms == self._last_ms:
                self._sequence = (self._sequence + 1) & self._MAX_SEQUENCE
                if self._sequence == 0:
                    ms = self._wait_past(ms)
            else:
                self._sequence = 0
            self._last_ms = ms
            return str(
                ((ms - self._EPOCH_MS) << (self._WORKER_BITS + self._SEQUENCE_BITS))
                | (self._worker_id << self._SEQUENCE_BITS)
                | self._sequence
            )

    @staticmethod
    def _now_ms() -> int:
        return time.time_ns() // 1_000_000

    def _wait_past(self, last_ms: int) -> int:
        ms = self._now_ms()
        while ms <= last_ms:
            ms = self._now_ms()
        return ms


_default_generator = SnowflakeIdGenerator(settings.ID_WORKER_ID)


def generate_id() -> str:
    """Next id from this process's generator (quotes, orders, order events)."""
    return _default_generator.next_id()


def generate_session_token() -> str:
    """Opaque, unguessable quote request id."""
    return f"qr_{secrets.token_urlsafe(16)}"


def generate_delivery_code(digits: int = 6) -> str:
    """Numeric code the buyer hands to the provider at the door."""
    return "".join(secrets.choice("0123456789") for _ in range(digits))
