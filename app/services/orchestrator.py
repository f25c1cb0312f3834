from __future__ import annotations

import asyncio
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable

from app.core.analysis_store import AnalysisHistory
from app.core.fingerprint_store import FingerprintStore, fingerprint_text
from app.parsing.parse import clean_extracted_text, is_supported_mime_type
from app.schemas.analysis import AnalysisResult, CachedAnalysis
from app.services.analyzer import ResumeAnalyzer
from app.services.classifier import DocumentClassifier
from app.services.errors import (
    AnalysisServiceError,
    EmptyDocumentError,
    ExtractionError,
    UnsupportedFileTypeError,
)
from app.services.fallbacks import NOT_RESUME_RESULT, TECHNICAL_FALLBACK_RESULT

logger = logging.getLogger(__name__)

Extractor = Callable[[bytes, str], str]


class AnalysisIdGenerator:
    """Millisecond timestamps, bumped so ids stay strictly increasing within the process."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            candidate = int(self._clock() * 1000)
            self._last = max(candidate, self._last + 1)
            return self._last


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisOrchestrator:
    def __init__(
        self,
        *,
        extractor: Extractor,
        classifier: DocumentClassifier,
        analyzer: ResumeAnalyzer,
        store: FingerprintStore,
        history: AnalysisHistory | None = None,
        extraction_timeout_s: float = 30.0,
        id_generator: Callable[[], int] | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._extractor = extractor
        self._classifier = classifier
        self._analyzer = analyzer
        self._store = store
        self._history = history
        self._extraction_timeout_s = extraction_timeout_s
        self._next_id = id_generator or AnalysisIdGenerator()
        self._clock = clock

    async def process(self, content: bytes, mime_type: str, filename: str) -> CachedAnalysis:
        if not is_supported_mime_type(mime_type):
            raise UnsupportedFileTypeError()

        text = await self._extract(content, mime_type)
        logger.info("resume_text_extracted filename=%s length=%s", filename, len(text))
        if not text.strip():
            raise EmptyDocumentError()

        fingerprint = fingerprint_text(text)
        cached = self._store.get(fingerprint)
        if cached is not None:
            logger.info("resume_analysis_cache_hit fingerprint=%s id=%s", fingerprint[:12], cached.id)
            return cached
        logger.info("resume_analysis_cache_miss fingerprint=%s", fingerprint[:12])

        if await self._classifier.is_resume(text):
            result = await self._analyze(text)
        else:
            logger.info("resume_analysis_not_resume filename=%s", filename)
            result = NOT_RESUME_RESULT

        analysis = CachedAnalysis.from_result(
            result,
            id=self._next_id(),
            filename=filename,
            file_type=mime_type,
            created_at=self._clock(),
        )
        self._store.put(fingerprint, analysis)
        self._record(analysis)
        logger.info("resume_analysis_cached fingerprint=%s id=%s", fingerprint[:12], analysis.id)
        return analysis

    async def _extract(self, content: bytes, mime_type: str) -> str:
        try:
            text = await asyncio.wait_for(
                asyncio.to_thread(self._extractor, content, mime_type),
                timeout=self._extraction_timeout_s,
            )
        except asyncio.TimeoutError as exc:
            logger.error("resume_text_extraction_timeout timeout_s=%s", self._extraction_timeout_s)
            raise ExtractionError("Timed out while extracting text from document.") from exc
        return clean_extracted_text(text)

    async def _analyze(self, text: str) -> AnalysisResult:
        try:
            return await self._analyzer.analyze(text)
        except AnalysisServiceError as exc:
            logger.error(
                "resume_analysis_failed returning_fallback=technical error=%s: %s",
                type(exc).__name__,
                exc,
            )
            return TECHNICAL_FALLBACK_RESULT

    def _record(self, analysis: CachedAnalysis) -> None:
        if self._history is None:
            return
        try:
            self._history.save(analysis)
        except Exception:  # noqa: BLE001 - history is best effort, the upload still succeeds
            logger.warning("resume_analysis_history_write_failed id=%s", analysis.id, exc_info=True)
