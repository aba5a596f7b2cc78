"""Retry-with-backoff wrapper for any GridStore.

Transient GridStoreError failures (locked database, flaky remote sheet API) are
retried with exponential backoff. ReadOnlyStoreError is never retried: the
store refused the write on purpose.
"""
from __future__ import annotations
import time
from dataclasses import dataclass
from typing import Callable, List, Sequence

from .base_store import GridStore, Row, Scalar
from .errors import GridStoreError, ReadOnlyStoreError
from .logging_util import warn
from .sqlite_store import env_int

DEFAULT_ATTEMPTS = 3
MAX_ATTEMPTS = 10
DEFAULT_BASE_DELAY_MS = 200
DEFAULT_MAX_DELAY_MS = 5_000

@dataclass
class RetryConfig:
    attempts: int = DEFAULT_ATTEMPTS
    base_delay_ms: int = DEFAULT_BASE_DELAY_MS
    max_delay_ms: int = DEFAULT_MAX_DELAY_MS

    @classmethod
    def from_env(cls) -> "RetryConfig":
        attempts = env_int("GRID_RETRY_ATTEMPTS", DEFAULT_ATTEMPTS)
        base = env_int("GRID_RETRY_BASE_DELAY_MS", DEFAULT_BASE_DELAY_MS)
        cap = env_int("GRID_RETRY_MAX_DELAY_MS", DEFAULT_MAX_DELAY_MS)
        clamped = min(MAX_ATTEMPTS, max(1, attempts))
        if clamped != attempts:
            warn("retry_config_clamped", key="GRID_RETRY_ATTEMPTS", original=attempts, clamped=clamped)
        return cls(attempts=clamped, base_delay_ms=max(0, base), max_delay_ms=max(0, cap))

    def delay_s(self, attempt: int) -> float:
        """Backoff before retry number `attempt` (1-based)."""
        return min(self.max_delay_ms, self.base_delay_ms * (2 ** (attempt - 1))) / 1000.0


class RetryingGridStore:
    def __init__(self, inner: GridStore, config: RetryConfig | None = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.inner = inner
        self.config = config or RetryConfig.from_env()
        self._sleep = sleep

    def read_all(self) -> List[Row]:
        return self._call("read_all")

    def write_range(self, row_index: int, col_start: int, rows: Sequence[Sequence[Scalar]]) -> None:
        self._call("write_range", row_index, col_start, rows)

    def write_cell(self, row_index: int, col_index: int, value: Scalar) -> None:
        self._call("write_cell", row_index, col_index, value)

    def _call(self, op: str, *args):
        fn = getattr(self.inner, op)
        attempt = 1
        while True:
            try:
                return fn(*args)
            except ReadOnlyStoreError:
                raise
            except GridStoreError as e:
                if attempt >= self.config.attempts:
                    raise
                delay = self.config.delay_s(attempt)
                warn("store_write_retry" if op != "read_all" else "store_read_retry",
                     op=op, attempt=attempt, delay_s=delay, error=str(e))
                self._sleep(delay)
                attempt += 1
