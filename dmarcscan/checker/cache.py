"""
In-memory cache of completed domain checks.

Keys are normalised domain names; values are the DomainCheckResult objects
themselves, returned verbatim on a hit.  Entries never expire; only
``clear()`` removes them.

Thread safety note:
  Scan workers read and write concurrently.  A lock guards each individual
  operation, but there is no get-then-set transaction: two workers missing
  on the same domain both run the check and the last ``set()`` wins.
"""

from __future__ import annotations

import logging
import threading

from dmarcscan.models import DomainCheckResult

logger = logging.getLogger(__name__)


class ResultCache:
    """Thread-safe domain -> DomainCheckResult map."""

    def __init__(self) -> None:
        self._entries: dict[str, DomainCheckResult] = {}
        self._lock = threading.Lock()

    def get(self, domain: str) -> DomainCheckResult | None:
        with self._lock:
            return self._entries.get(domain)

    def set(self, domain: str, result: DomainCheckResult) -> None:
        with self._lock:
            self._entries[domain] = result

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Result cache cleared (%d entries)", count)

    def __contains__(self, domain: object) -> bool:
        with self._lock:
            return domain in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
