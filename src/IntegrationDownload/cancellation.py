"""Cooperative cancellation for the materialization loop.

Downloads run sequentially (or on a small thread pool) and may take minutes
each.  The :class:`CancellationToken` is checked between entries and between
streamed chunks so that a SIGINT or SIGTERM stops the run at the next safe
point instead of leaving the process hung on a stalled transfer.
"""

from __future__ import annotations

import threading


class CancellationToken:
    """Thread-safe cancellation token for cooperative task cancellation.

    Examples:
        >>> token = CancellationToken()
        >>> token.is_cancelled()
        False
        >>> token.cancel()
        >>> token.is_cancelled()
        True
    """

    def __init__(self) -> None:
        self._is_cancelled = threading.Event()
        self._lock = threading.Lock()

    def cancel(self) -> None:
        """Signal that cancellation has been requested."""
        with self._lock:
            self._is_cancelled.set()

    def is_cancelled(self) -> bool:
        return self._is_cancelled.is_set()

    def reset(self) -> None:
        """Reset the token to its initial state (tests and reuse only)."""
        with self._lock:
            self._is_cancelled.clear()


__all__ = ["CancellationToken"]
