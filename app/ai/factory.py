import logging

from app.ai.config import AIConfig, load_ai_config
from app.ai.types import AIClient

from app.ai.providers.gemini_provider import GeminiProvider
from app.ai.providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)


def get_ai_client(config: AIConfig | None = None) -> AIClient | None:
    """Build the configured client, or return None when no usable credential is set."""
    cfg = config or load_ai_config()

    if cfg.provider not in {"gemini", "openai"}:
        raise ValueError(f"Unsupported AI_PROVIDER='{cfg.provider}'")

    if not cfg.configured:
        logger.warning("ai_client_not_configured provider=%s", cfg.provider)
        return None

    if cfg.provider == "openai":
        return OpenAIProvider(
            model=cfg.model,
            api_key=cfg.api_key,
            base_url=cfg.base_url,
            timeout_s=cfg.timeout_s,
        )

    return GeminiProvider(
        model=cfg.model,
        api_key=cfg.api_key,
        base_url=cfg.base_url,
        timeout_s=cfg.timeout_s,
    )
