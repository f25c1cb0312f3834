from contextlib import asynccontextmanager
import logging

from app.ai.config import load_ai_config
from app.core.analysis_store import SQLiteAnalysisHistory

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    from app.api.v1.resume import get_analysis_history

    ai_config = load_ai_config()
    if ai_config.configured:
        logger.info("ai_provider_ready provider=%s model=%s", ai_config.provider, ai_config.model)
    else:
        logger.warning(
            "ai_provider_not_configured provider=%s resume_gate=permissive analysis=fallback",
            ai_config.provider,
        )

    history = get_analysis_history()
    if isinstance(history, SQLiteAnalysisHistory):
        history.init()
    yield
    if isinstance(history, SQLiteAnalysisHistory):
        history.close()
