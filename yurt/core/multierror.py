"""Aggregated error for operations that fan out to several workers."""

import threading
from typing import List, Optional


class MultiError(Exception):
    """Collects errors from concurrent tasks.

    Safe to add to from several threads. ``None`` is ignored so callers can
    add the outcome of every task unconditionally.
    """

    def __init__(self, errors: Optional[List[BaseException]] = None):
        super().__init__()
        self._lock = threading.Lock()
        self.errors: List[BaseException] = list(errors or [])

    def add(self, err: Optional[BaseException]):
        if err is None:
            return
        with self._lock:
            self.errors.append(err)

    def return_error(self) -> Optional['MultiError']:
        """Return self if any error was collected, None otherwise."""
        with self._lock:
            return self if self.errors else None

    def __bool__(self) -> bool:
        return bool(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def __str__(self) -> str:
        with self._lock:
            return "\n".join(str(e) for e in self.errors)
