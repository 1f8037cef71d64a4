"""Shared state management for MCP server.

FastMCP's Context is per-request, so we need a shared state mechanism
to persist the loaded activity snapshot and its configuration across
tool calls.
"""

import threading
from typing import Any


class SharedState:
    """Thread-safe shared state storage for MCP tools.

    Uses threading.RLock for thread-safe access to shared data.
    Implements basic size-based eviction to prevent unbounded memory growth.

    Protected keys (the snapshot, its fingerprint and the analysis config)
    are only evicted as a last resort when all keys in the store are
    protected.
    """

    MAX_ITEMS = 100

    PROTECTED_KEYS = frozenset(
        {
            "snapshot",
            "snapshot_fingerprint",
            "analysis_config",
        }
    )

    def __init__(self):
        self._store: dict[str, Any] = {}
        self._lock = threading.RLock()

    def set(self, key: str, value: Any) -> None:
        """Store a value in shared state.

        If MAX_ITEMS is reached, the oldest non-protected item is evicted.

        Args:
            key: Storage key
            value: Value to store
        """
        with self._lock:
            if len(self._store) >= self.MAX_ITEMS and key not in self._store:
                evicted = False
                for k in self._store:
                    if k not in self.PROTECTED_KEYS:
                        del self._store[k]
                        evicted = True
                        break

                if not evicted:
                    first_key = next(iter(self._store))
                    del self._store[first_key]

            self._store[key] = value

    def update(self, values: dict[str, Any]) -> None:
        """Store several values atomically.

        Readers never observe a snapshot paired with another snapshot's
        fingerprint.
        """
        with self._lock:
            for key, value in values.items():
                self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._store.get(key, default)

    def get_many(self, *keys: str) -> tuple[Any, ...]:
        """Read several values under one lock acquisition."""
        with self._lock:
            return tuple(self._store.get(key) for key in keys)

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._store

    def clear(self) -> None:
        """Clear all stored state."""
        with self._lock:
            self._store.clear()

    def keys(self) -> list[str]:
        """Get all keys in shared state (copy, not live view)."""
        with self._lock:
            return list(self._store.keys())


_shared_state = SharedState()


def get_shared_state() -> SharedState:
    """Get the global shared state instance."""
    return _shared_state
