from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel

FEEDBACK_FIELDS: tuple[str, ...] = ("keywords", "experience", "skills", "education", "formatting")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class AnalysisFeedback(_CamelModel):
    keywords: str
    experience: str
    skills: str
    education: str
    formatting: str


class AnalysisResult(_CamelModel):
    """Scores are 0-100 by convention; values from the model are not clamped or coerced."""

    overall_score: StrictInt
    keywords_score: StrictInt
    experience_score: StrictInt
    skills_score: StrictInt
    education_score: StrictInt
    formatting_score: StrictInt
    feedback: AnalysisFeedback
    improvement_suggestions: list[str] = Field(min_length=1)


class CachedAnalysis(AnalysisResult):
    id: int
    filename: str
    file_type: str
    created_at: datetime

    @classmethod
    def from_result(
        cls,
        result: AnalysisResult,
        *,
        id: int,
        filename: str,
        file_type: str,
        created_at: datetime,
    ) -> "CachedAnalysis":
        return cls(
            id=id,
            filename=filename,
            file_type=file_type,
            created_at=created_at,
            **result.model_dump(),
        )


class ErrorResponse(BaseModel):
    message: str
