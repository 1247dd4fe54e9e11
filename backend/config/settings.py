from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List

from models.relay import Mode

class Settings(BaseSettings):
    """Relay settings with environment variable support."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    PROJECT_NAME: str = "Photo Relay"
    VERSION: str = "1.0.0"

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    # Provider
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    PROVIDER_TIMEOUT: Optional[float] = None  # None disables the local timeout

    # Relay behaviour
    RELAY_MODE: Mode = Mode.IMAGE_GENERATION
    ANALYSIS_USE_VISION: bool = True
    VISION_MODEL: str = "gpt-4o-mini"
    VISION_MAX_TOKENS: int = 900
    VISION_TEMPERATURE: float = 0.9
    IMAGE_MODEL: str = "gpt-image-1"
    IMAGE_SIZE: str = "1024x1024"

    # Generated assets
    OUTPUT_DIR: str = "generated"
    STATIC_URL_PREFIX: str = "/generated"
    PUBLIC_BASE_URL: Optional[str] = None
    PUBLIC_DIR: str = "public"

    # Upload Limits
    MAX_FORM_PART_SIZE: int = 50 * 1024 * 1024  # 50MB per non-file form field

    # CORS Settings
    ALLOWED_ORIGINS: List[str] = ["*"]

    @property
    def active_model(self) -> str:
        """Model name reported by the health check for the configured mode."""
        if self.RELAY_MODE == Mode.IMAGE_GENERATION:
            return self.IMAGE_MODEL
        return self.VISION_MODEL

    @property
    def has_credential(self) -> bool:
        return bool(self.OPENAI_API_KEY and self.OPENAI_API_KEY.strip())


def get_settings() -> Settings:
    return Settings()
