from datetime import datetime, timezone
from fastapi import APIRouter, Request

from models.relay import HealthResponse, Mode

router = APIRouter(tags=["health"])

@router.get("/", response_model=HealthResponse, response_model_by_alias=True)
async def root(request: Request):
    """Liveness and introspection. Never touches the provider or the credential."""
    settings = request.app.state.settings
    image_generation = settings.RELAY_MODE == Mode.IMAGE_GENERATION

    return HealthResponse(
        status=f"{settings.PROJECT_NAME} running",
        timestamp=datetime.now(timezone.utc),
        model=settings.active_model,
        mode=settings.RELAY_MODE,
        imageGeneration="enabled" if image_generation else "disabled (analysis only)",
    )
