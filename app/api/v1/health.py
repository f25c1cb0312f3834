from fastapi import APIRouter

from app.ai.config import load_ai_config

router = APIRouter()


@router.get("/health", summary="Health Check", description="Report liveness and whether the external model is configured.")
async def health_check():
    ai_config = load_ai_config()
    return {"status": "healthy", "ai_provider": ai_config.provider, "ai_configured": ai_config.configured}
