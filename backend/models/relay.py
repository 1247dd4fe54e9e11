from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Any
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

class Mode(str, Enum):
    ANALYSIS_ONLY = "analysis_only"
    IMAGE_GENERATION = "image_generation"

class ProviderErrorKind(str, Enum):
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    API = "api"
    INVALID_RESPONSE = "invalid_response"

class ResultKind(str, Enum):
    TEXT_ANALYSIS = "text_analysis"
    GENERATED_IMAGE = "generated_image"
    EDITED_IMAGE = "edited_image"
    EMPTY = "empty"

@dataclass
class EditRequest:
    """Validated /edit input. Built once per request and consumed once."""
    query: str
    image_bytes: Optional[bytes] = None
    image_mime: str = "image/jpeg"

    @property
    def has_image(self) -> bool:
        return self.image_bytes is not None

@dataclass
class ProviderOutcome:
    """Tagged result of one provider call: Ok(payload) or Err(kind, message)."""
    payload: Any = None
    error_kind: Optional[ProviderErrorKind] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None

    @classmethod
    def success(cls, payload: Any) -> "ProviderOutcome":
        return cls(payload=payload)

    @classmethod
    def failure(cls, kind: ProviderErrorKind, message: str) -> "ProviderOutcome":
        # Quota and rate-limit exhaustion is recognised from the message text alone
        if "quota" in message or "rate limit" in message:
            kind = ProviderErrorKind.RATE_LIMIT
        return cls(error_kind=kind, error=message)

@dataclass
class ProviderResult:
    kind: ResultKind
    text: Optional[str] = None
    b64_image: Optional[str] = None

    @classmethod
    def empty(cls) -> "ProviderResult":
        return cls(kind=ResultKind.EMPTY)

class EditBody(BaseModel):
    """Raw /edit body fields, before validation."""
    model_config = ConfigDict(populate_by_name=True)

    query: Optional[Any] = None
    base64_image: Optional[Any] = Field(default=None, alias="base64Image")

class EditResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    analysis: str = ""
    edited_images: List[str] = Field(default_factory=list, alias="editedImages")
    generated_images: List[str] = Field(default_factory=list, alias="generatedImages")
    message: str = ""

class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: Optional[str] = None
    fix: Optional[str] = None

class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str
    timestamp: datetime
    model: str
    mode: Mode
    image_generation: str = Field(alias="imageGeneration")
