from __future__ import annotations

import hashlib
import threading
from typing import Protocol

from app.schemas.analysis import CachedAnalysis


def fingerprint_text(text: str) -> str:
    """SHA-256 hex digest of the extracted text, unsalted."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class FingerprintStore(Protocol):
    def get(self, fingerprint: str) -> CachedAnalysis | None: ...

    def put(self, fingerprint: str, analysis: CachedAnalysis) -> None: ...


class InMemoryFingerprintStore:
    """Process-local cache of analyses. No TTL and no size bound."""

    def __init__(self) -> None:
        self._entries: dict[str, CachedAnalysis] = {}
        self._lock = threading.Lock()

    def get(self, fingerprint: str) -> CachedAnalysis | None:
        with self._lock:
            return self._entries.get(fingerprint)

    def put(self, fingerprint: str, analysis: CachedAnalysis) -> None:
        with self._lock:
            self._entries[fingerprint] = analysis

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
