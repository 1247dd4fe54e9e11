from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pathlib import Path
from typing import Optional
import logging

from dotenv import load_dotenv

from api import edit, health
from config.settings import Settings, get_settings
from core.log_config import configure_logging
from models.relay import Mode
from services.openai_service import OpenAIService
from services.relay_service import RelayService
from services.storage_service import StorageService

logger = logging.getLogger(__name__)

def create_app(settings: Optional[Settings] = None, openai_service: Optional[OpenAIService] = None) -> FastAPI:
    """Build the relay app. Settings are read once here and never during requests."""
    settings = settings or get_settings()

    app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION)
    app.state.settings = settings

    storage = StorageService.from_settings(settings)
    output_dir = storage.ensure_output_dir()
    app.state.relay = RelayService(
        settings,
        openai_service or OpenAIService.from_settings(settings),
        storage,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(
            "🌐 %s %s (content-type: %s)",
            request.method,
            request.url.path,
            request.headers.get("content-type", "n/a"),
        )
        return await call_next(request)

    app.include_router(health.router)
    app.include_router(edit.router)

    app.mount(storage.url_prefix, StaticFiles(directory=str(output_dir)), name="generated")
    if Path(settings.PUBLIC_DIR).is_dir():
        app.mount("/", StaticFiles(directory=settings.PUBLIC_DIR), name="public")

    return app

def run():
    load_dotenv()
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    import uvicorn
    logger.info("🍌 %s running on port %s", settings.PROJECT_NAME, settings.PORT)
    logger.info(
        "Mode: %s",
        "Image Generation" if settings.RELAY_MODE == Mode.IMAGE_GENERATION else "Analysis Only",
    )
    logger.info("Model: %s", settings.active_model)
    if not settings.has_credential:
        logger.warning("OPENAI_API_KEY is missing. /edit will fail until it is set.")

    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT)

if __name__ == "__main__":
    run()
