import os
from dataclasses import dataclass

_DEFAULT_MODELS = {
    "gemini": "gemini-1.5-pro",
    "openai": "gpt-4o-mini",
}

_PLACEHOLDER_KEYS = {"changeme", "todo", "your-gemini-api-key-here"}


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    api_key: str
    base_url: str | None
    timeout_s: float

    @property
    def configured(self) -> bool:
        return bool(self.api_key) and not looks_like_placeholder(self.api_key)


def looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("your-") or lower.startswith("replace_") or lower in _PLACEHOLDER_KEYS


def _timeout_s() -> float:
    try:
        return float(os.getenv("AI_TIMEOUT_S", "30"))
    except ValueError:
        return 30.0


def load_ai_config() -> AIConfig:
    provider = (os.getenv("AI_PROVIDER") or "gemini").strip().lower()
    model = (os.getenv("AI_MODEL") or _DEFAULT_MODELS.get(provider, "")).strip()

    if provider == "openai":
        api_key = (os.getenv("OPENAI_API_KEY") or "").strip()
        base_url = (os.getenv("OPENAI_BASE_URL") or "").strip() or None
    else:
        api_key = (os.getenv("GEMINI_API_KEY") or "").strip()
        base_url = (os.getenv("GEMINI_API_BASE_URL") or "").strip() or None

    return AIConfig(
        provider=provider,
        model=model,
        api_key=api_key,
        base_url=base_url,
        timeout_s=_timeout_s(),
    )
