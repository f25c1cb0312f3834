from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from app.ai.types import AIClient, AIClientError
from app.core.config import settings
from app.schemas.analysis import FEEDBACK_FIELDS, AnalysisResult
from app.services.errors import (
    AnalysisUnavailableError,
    EmptyDocumentError,
    MalformedAnalysisResponseError,
)
from app.services.fallbacks import NO_FEEDBACK_TEXT, NO_SUGGESTIONS, NOT_CONFIGURED_RESULT

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert ATS (Applicant Tracking System) resume analyzer. Score the resume realistically, not overly strict. Most good resumes should score between 60 and 85. Be encouraging and provide actionable feedback for each section.

Strictly evaluate the following resume as a real ATS would, using these criteria:
- Keyword & phrase match for the target job
- Work experience relevance and quantification
- Skills match (technical and soft)
- Education completeness
- Formatting & structure (ATS-friendly, no images, simple layout, clear sections)

For each category, give a score out of 100.
For each section, provide 1-2 sentences of feedback.
Return your response as a JSON object with these keys:
- overallScore
- keywordsScore
- experienceScore
- skillsScore
- educationScore
- formattingScore
- feedback (object with keys: keywords, experience, skills, education, formatting)
- improvementSuggestions (array of 3-5 actionable suggestions)
"""

# Most deterministic sampling the API allows.
DETERMINISTIC_SAMPLING: dict[str, Any] = {"temperature": 0.0, "top_p": 1.0, "top_k": 1}

_FENCE_OPEN_RE = re.compile(r"^```(?:json)?\s*", flags=re.IGNORECASE)
_FENCE_CLOSE_RE = re.compile(r"\s*```$")


def strip_code_fence(raw: str) -> str:
    content = raw.strip()
    content = _FENCE_OPEN_RE.sub("", content)
    content = _FENCE_CLOSE_RE.sub("", content)
    return content.strip()


def _feedback_text(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return NO_FEEDBACK_TEXT


def normalize_analysis_payload(payload: Any) -> AnalysisResult:
    """Fill missing feedback and suggestions, then validate into an AnalysisResult.

    Scores are passed through untouched; a missing or non-integer score makes
    the payload malformed.
    """
    if not isinstance(payload, dict):
        raise MalformedAnalysisResponseError("Analysis response is not a JSON object.")

    feedback_raw = payload.get("feedback")
    if not isinstance(feedback_raw, dict):
        feedback_raw = {}

    suggestions = payload.get("improvementSuggestions")
    if not isinstance(suggestions, list) or not suggestions:
        suggestions = list(NO_SUGGESTIONS)

    candidate = {
        **payload,
        "feedback": {field: _feedback_text(feedback_raw.get(field)) for field in FEEDBACK_FIELDS},
        "improvementSuggestions": suggestions,
    }
    try:
        return AnalysisResult.model_validate(candidate)
    except ValidationError as exc:
        raise MalformedAnalysisResponseError(
            f"Analysis response does not match the expected shape: {exc.error_count()} error(s)."
        ) from exc


def parse_analysis_response(raw: str) -> AnalysisResult:
    content = strip_code_fence(raw)
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as exc:
        logger.error("resume_analysis_response_not_json preview=%r", content[:200])
        raise MalformedAnalysisResponseError("Failed to parse analysis results. Please try again later.") from exc
    return normalize_analysis_payload(payload)


class ResumeAnalyzer:
    def __init__(self, client: AIClient | None):
        self._client = client

    async def analyze(self, text: str) -> AnalysisResult:
        if not text or not text.strip():
            raise EmptyDocumentError()

        logger.debug("resume_analysis_text_preview text=%r", text[: settings.log_text_preview_chars])

        if self._client is None:
            logger.warning("resume_analyzer_not_configured returning_fallback=not_configured")
            return NOT_CONFIGURED_RESULT

        prompt = f"{SYSTEM_PROMPT}\n\nResume:\n{text}"
        try:
            raw = await self._client.complete(prompt, json_output=True, **DETERMINISTIC_SAMPLING)
        except AIClientError as exc:
            if exc.code in {"invalid_response", "empty_response"}:
                raise MalformedAnalysisResponseError(str(exc)) from exc
            raise AnalysisUnavailableError(
                "Failed to connect to analysis service. Please try again later."
            ) from exc

        return parse_analysis_response(raw)
