"""
Transform Cache Module
Process-wide memo of transformed style callback bodies.
"""

import logging
import threading
from typing import Callable, Dict, Optional, Set, Tuple

from .syntax_tree import SyntaxNode

logger = logging.getLogger(__name__)


class TransformCache:
    """
    Maps a fingerprint to a deep copy of the transformed callback body.

    A fingerprint is handed to the transform function at most once for the
    lifetime of the cache. Every hit returns a fresh clone, so mutating one
    call site never leaks into another. Entries are never evicted.
    """

    def __init__(self):
        self._seen: Set[str] = set()
        self._entries: Dict[str, SyntaxNode] = {}
        self._registry_lock = threading.Lock()
        self._key_locks: Dict[str, threading.Lock] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fingerprint: str) -> bool:
        return fingerprint in self._entries

    def _lock_for(self, fingerprint: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._key_locks.get(fingerprint)
            if lock is None:
                lock = self._key_locks[fingerprint] = threading.Lock()
            return lock

    # Counters are shared by every key, so they use the registry lock.
    def _count_hit(self) -> None:
        with self._registry_lock:
            self.hits += 1

    def _count_miss(self) -> None:
        with self._registry_lock:
            self.misses += 1

    def get(self, fingerprint: str) -> Optional[SyntaxNode]:
        """Return a clone of the cached body, or None."""
        with self._lock_for(fingerprint):
            cached = self._entries.get(fingerprint)
            return cached.clone() if cached is not None else None

    def resolve(self, fingerprint: str, body: SyntaxNode,
                transform: Callable[[SyntaxNode], object]) -> Tuple[SyntaxNode, bool]:
        """
        Return the body to use at a call site and whether it came from the cache.

        On a miss *body* is transformed in place and returned; a deep copy is
        stored. On a hit *body* is left alone and a clone of the cached
        result is returned instead.
        """
        with self._lock_for(fingerprint):
            cached = self._entries.get(fingerprint)
            if fingerprint in self._seen:
                if cached is not None:
                    self._count_hit()
                    return cached.clone(), True
                logger.warning(f"Fingerprint {fingerprint} was seen without a cached body; transforming again")

            transform(body)
            self._entries[fingerprint] = body.clone()
            self._seen.add(fingerprint)
            self._count_miss()
            return body, False
