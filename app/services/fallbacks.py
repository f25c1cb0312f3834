from __future__ import annotations

from app.schemas.analysis import FEEDBACK_FIELDS, AnalysisFeedback, AnalysisResult

NO_FEEDBACK_TEXT = "No feedback provided."
NO_SUGGESTIONS: tuple[str, ...] = ("No suggestions provided.",)


def _uniform_result(score: int, feedback: dict[str, str], suggestions: list[str]) -> AnalysisResult:
    return AnalysisResult(
        overall_score=score,
        keywords_score=score,
        experience_score=score,
        skills_score=score,
        education_score=score,
        formatting_score=score,
        feedback=AnalysisFeedback(**feedback),
        improvement_suggestions=suggestions,
    )


_NOT_CONFIGURED_TEXT = "API not configured. Please configure Gemini API key for detailed analysis."

# Returned by the analyzer when no external-model credential is set.
NOT_CONFIGURED_RESULT = _uniform_result(
    75,
    {field: _NOT_CONFIGURED_TEXT for field in FEEDBACK_FIELDS},
    [
        "Configure your Gemini API key for detailed resume analysis.",
        "Ensure your resume is in PDF or DOCX format.",
        "Make sure your resume contains clear sections for experience, skills, and education.",
    ],
)

_NOT_RESUME_TEXT = (
    "This document does not appear to be a resume. Please upload a valid resume (CV) for analysis."
)

NOT_RESUME_RESULT = _uniform_result(
    0,
    {field: _NOT_RESUME_TEXT for field in FEEDBACK_FIELDS},
    ["Please upload a resume or CV document for accurate analysis."],
)

# Substituted by the orchestrator when the external model fails or answers garbage.
TECHNICAL_FALLBACK_RESULT = _uniform_result(
    70,
    {
        field: f"Unable to analyze {field} due to technical issues. Please try again later."
        for field in FEEDBACK_FIELDS
    },
    [
        "Please try uploading your resume again in a few moments.",
        "Ensure your resume is in PDF or DOCX format.",
        "Check that your resume contains clear sections for experience, skills, and education.",
    ],
)

# Served by the query routes when the history database cannot be read.
SAMPLE_ANALYSIS = AnalysisResult(
    overall_score=78,
    keywords_score=75,
    experience_score=82,
    skills_score=80,
    education_score=85,
    formatting_score=70,
    feedback=AnalysisFeedback(
        keywords="Your resume contains good keywords, but could benefit from more industry-specific terminology.",
        experience="Your work experience is well presented with quantified achievements.",
        skills="Your skills section is comprehensive and well organized.",
        education="Education details are clearly presented with relevant highlights.",
        formatting="The resume has a good structure but could be more ATS-friendly.",
    ),
    improvement_suggestions=[
        "Add more industry-specific keywords throughout your resume.",
        "Quantify more achievements with specific metrics to demonstrate impact.",
        "Ensure consistent formatting of dates and headers for better ATS readability.",
        "Tailor your resume for each application by highlighting relevant experiences.",
        "Use standard section headers that are easily recognized by ATS systems.",
    ],
)
