import json
import sys
import time
import unittest
from datetime import datetime, timezone
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.ai.types import AIClientError  # noqa: E402
from app.core.fingerprint_store import InMemoryFingerprintStore, fingerprint_text  # noqa: E402
from app.services.analyzer import ResumeAnalyzer  # noqa: E402
from app.services.classifier import DocumentClassifier  # noqa: E402
from app.services.errors import (  # noqa: E402
    EmptyDocumentError,
    ExtractionError,
    UnsupportedFileTypeError,
)
from app.services.fallbacks import (  # noqa: E402
    NOT_CONFIGURED_RESULT,
    NOT_RESUME_RESULT,
    TECHNICAL_FALLBACK_RESULT,
)
from app.services.orchestrator import AnalysisIdGenerator, AnalysisOrchestrator  # noqa: E402

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
FIXED_NOW = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)

MODEL_JSON = json.dumps(
    {
        "overallScore": 82,
        "keywordsScore": 78,
        "experienceScore": 88,
        "skillsScore": 80,
        "educationScore": 70,
        "formattingScore": 91,
        "feedback": {
            "keywords": "Strong backend vocabulary.",
            "experience": "Impact is quantified.",
            "skills": "Stack is relevant.",
            "education": "Degree is listed.",
            "formatting": "Simple layout.",
        },
        "improvementSuggestions": ["Add certifications.", "Add a summary.", "Trim older roles."],
    }
)


class _RoutingClient:
    """Answers the classifier prompt and the analysis prompt separately."""

    def __init__(self, verdict="yes", analysis=MODEL_JSON, analysis_error=None, verdict_error=None):
        self.verdict = verdict
        self.analysis = analysis
        self.analysis_error = analysis_error
        self.verdict_error = verdict_error
        self.classify_calls = 0
        self.analyze_calls = 0

    async def complete(self, prompt, *, temperature=None, top_p=None, top_k=None, json_output=False):
        if prompt.startswith("Is the following document a resume or CV?"):
            self.classify_calls += 1
            if self.verdict_error is not None:
                raise self.verdict_error
            return self.verdict
        self.analyze_calls += 1
        if self.analysis_error is not None:
            raise self.analysis_error
        return self.analysis


class _RecordingHistory:
    def __init__(self, fail=False):
        self.saved = []
        self.fail = fail

    def save(self, analysis):
        if self.fail:
            raise RuntimeError("disk full")
        self.saved.append(analysis)

    def get(self, analysis_id):
        return None

    def recent(self, limit):
        return []


def _decode(content: bytes, mime_type: str) -> str:
    return content.decode("utf-8")


def _failing_extractor(content: bytes, mime_type: str) -> str:
    raise ExtractionError("Failed to extract text from PDF document.")


def _slow_extractor(content: bytes, mime_type: str) -> str:
    time.sleep(0.5)
    return content.decode("utf-8")


class AnalysisOrchestratorTests(unittest.IsolatedAsyncioTestCase):
    RESUME = b"Jane Doe\nBackend Engineer\nPython, SQL, Docker\n"

    def _orchestrator(self, client, *, extractor=_decode, history=None, timeout=5.0):
        self.store = InMemoryFingerprintStore()
        ids = iter(range(1000, 2000))
        return AnalysisOrchestrator(
            extractor=extractor,
            classifier=DocumentClassifier(client),
            analyzer=ResumeAnalyzer(client),
            store=self.store,
            history=history,
            extraction_timeout_s=timeout,
            id_generator=lambda: next(ids),
            clock=lambda: FIXED_NOW,
        )

    async def test_successful_analysis_carries_provenance_and_is_cached(self):
        client = _RoutingClient()
        history = _RecordingHistory()
        orchestrator = self._orchestrator(client, history=history)

        result = await orchestrator.process(self.RESUME, PDF, "jane.pdf")

        self.assertEqual(result.id, 1000)
        self.assertEqual(result.filename, "jane.pdf")
        self.assertEqual(result.file_type, PDF)
        self.assertEqual(result.created_at, FIXED_NOW)
        self.assertEqual(result.overall_score, 82)
        self.assertEqual(result.feedback.experience, "Impact is quantified.")
        self.assertIs(self.store.get(fingerprint_text(self.RESUME.decode())), result)
        self.assertEqual(history.saved, [result])

    async def test_identical_upload_is_served_from_cache_without_external_calls(self):
        client = _RoutingClient()
        orchestrator = self._orchestrator(client)

        first = await orchestrator.process(self.RESUME, PDF, "jane.pdf")
        second = await orchestrator.process(self.RESUME, DOCX, "renamed.docx")

        self.assertEqual(second, first)
        self.assertEqual(second.filename, "jane.pdf")
        self.assertEqual(client.classify_calls, 1)
        self.assertEqual(client.analyze_calls, 1)

    async def test_unsupported_type_fails_before_extraction(self):
        calls = []

        def extractor(content, mime_type):
            calls.append(mime_type)
            return "text"

        orchestrator = self._orchestrator(_RoutingClient(), extractor=extractor)
        with self.assertRaises(UnsupportedFileTypeError):
            await orchestrator.process(b"hello", "text/plain", "notes.txt")
        self.assertEqual(calls, [])

    async def test_extraction_failure_propagates_message(self):
        orchestrator = self._orchestrator(_RoutingClient(), extractor=_failing_extractor)
        with self.assertRaises(ExtractionError) as ctx:
            await orchestrator.process(b"%PDF-broken", PDF, "broken.pdf")
        self.assertIn("PDF", str(ctx.exception))
        self.assertEqual(len(self.store), 0)

    async def test_extraction_timeout_is_an_extraction_error(self):
        orchestrator = self._orchestrator(_RoutingClient(), extractor=_slow_extractor, timeout=0.05)
        with self.assertRaises(ExtractionError):
            await orchestrator.process(self.RESUME, PDF, "slow.pdf")

    async def test_whitespace_text_is_rejected_before_any_external_call(self):
        client = _RoutingClient()
        orchestrator = self._orchestrator(client)
        with self.assertRaises(EmptyDocumentError):
            await orchestrator.process(b"   \n\t  ", PDF, "blank.pdf")
        self.assertEqual(client.classify_calls, 0)
        self.assertEqual(client.analyze_calls, 0)
        self.assertEqual(len(self.store), 0)

    async def test_not_resume_result_is_cached_and_returned_verbatim(self):
        client = _RoutingClient(verdict="No")
        orchestrator = self._orchestrator(client)

        first = await orchestrator.process(b"Invoice #4411 total 300 EUR", PDF, "invoice.pdf")
        second = await orchestrator.process(b"Invoice #4411 total 300 EUR", PDF, "invoice.pdf")

        for score in (
            first.overall_score,
            first.keywords_score,
            first.experience_score,
            first.skills_score,
            first.education_score,
            first.formatting_score,
        ):
            self.assertEqual(score, 0)
        self.assertEqual(first.feedback, NOT_RESUME_RESULT.feedback)
        self.assertEqual(first.improvement_suggestions, ["Please upload a resume or CV document for accurate analysis."])
        self.assertEqual(second, first)
        self.assertEqual(client.analyze_calls, 0)
        self.assertEqual(client.classify_calls, 1)

    async def test_classifier_failure_fails_open_into_analysis(self):
        client = _RoutingClient(verdict_error=AIClientError("503", code="http_status"))
        result = await self._orchestrator(client).process(self.RESUME, PDF, "jane.pdf")
        self.assertEqual(client.analyze_calls, 1)
        self.assertEqual(result.overall_score, 82)

    async def test_unavailable_analysis_gets_cached_technical_fallback(self):
        client = _RoutingClient(analysis_error=AIClientError("timed out", code="timeout"))
        orchestrator = self._orchestrator(client)

        result = await orchestrator.process(self.RESUME, PDF, "jane.pdf")

        self.assertEqual(result.overall_score, 70)
        self.assertEqual(result.feedback, TECHNICAL_FALLBACK_RESULT.feedback)
        self.assertEqual(result.improvement_suggestions, TECHNICAL_FALLBACK_RESULT.improvement_suggestions)
        self.assertIsNotNone(self.store.get(fingerprint_text(self.RESUME.decode())))

    async def test_malformed_analysis_gets_technical_fallback(self):
        client = _RoutingClient(analysis="definitely not json")
        result = await self._orchestrator(client).process(self.RESUME, PDF, "jane.pdf")
        self.assertEqual(result.skills_score, 70)

    async def test_missing_credential_uses_not_configured_result(self):
        orchestrator = self._orchestrator(None)
        result = await orchestrator.process(self.RESUME, DOCX, "jane.docx")
        self.assertEqual(result.overall_score, 75)
        self.assertEqual(result.feedback, NOT_CONFIGURED_RESULT.feedback)
        self.assertEqual(len(self.store), 1)

    async def test_history_failure_does_not_fail_the_upload(self):
        orchestrator = self._orchestrator(_RoutingClient(), history=_RecordingHistory(fail=True))
        result = await orchestrator.process(self.RESUME, PDF, "jane.pdf")
        self.assertEqual(result.overall_score, 82)


    async def test_unencodable_characters_in_extracted_text_still_produce_a_result(self):
        client = _RoutingClient()
        orchestrator = self._orchestrator(client, extractor=lambda content, mime_type: "Jane Doe resume \ud835 Python")

        result = await orchestrator.process(b"x", PDF, "broken-font.pdf")

        self.assertEqual(result.overall_score, 82)
        self.assertIsNotNone(self.store.get(fingerprint_text("Jane Doe resume ? Python")))
        self.assertEqual(client.analyze_calls, 1)

class AnalysisIdGeneratorTests(unittest.TestCase):
    def test_ids_are_strictly_increasing_within_one_millisecond(self):
        generator = AnalysisIdGenerator(clock=lambda: 1_700_000_000.0)
        first = generator()
        second = generator()
        self.assertEqual(first, 1_700_000_000_000)
        self.assertEqual(second, first + 1)


if __name__ == "__main__":
    unittest.main()
