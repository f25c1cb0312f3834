from __future__ import annotations

import logging
from typing import Callable

from app.ai.types import AIClient

logger = logging.getLogger(__name__)

CLASSIFIER_PROMPT = (
    "Is the following document a resume or CV? Reply only with 'yes' or 'no'.\n\n"
    "Document:\n{text}"
)

AnswerRule = Callable[[str], bool]


def answer_is_yes(answer: str) -> bool:
    return answer.strip().lower().startswith("yes")


class DocumentClassifier:
    """Fail-open resume gate: only an explicit non-"yes" answer rejects a document."""

    def __init__(self, client: AIClient | None, *, answer_rule: AnswerRule = answer_is_yes):
        self._client = client
        self._answer_rule = answer_rule

    async def is_resume(self, text: str) -> bool:
        if self._client is None:
            logger.warning("resume_classifier_not_configured assuming_resume=true")
            return True

        try:
            answer = await self._client.complete(CLASSIFIER_PROMPT.format(text=text))
        except Exception as exc:  # noqa: BLE001 - the gate must never block analysis
            logger.error("resume_classifier_failed assuming_resume=true: %s", exc)
            return True

        verdict = self._answer_rule(answer)
        logger.info("resume_classifier_verdict is_resume=%s answer=%r", verdict, answer[:40])
        return verdict
