"""
Edit/analyze relay.

Validates an inbound /edit body, dispatches it to the provider call that the
configured mode calls for, and shapes the outcome into the response envelope.
Provider failures come back as ProviderOutcome values and are turned into
RelayError subclasses here; the route converts those into HTTP responses.
"""

import base64
import binascii
import logging
import re
from typing import Optional, Tuple

from config.settings import Settings
from core.errors import ConfigError, ProviderError, ValidationError
from models.relay import (
    EditBody,
    EditRequest,
    EditResponse,
    Mode,
    ProviderResult,
    ResultKind,
)
from services.openai_service import OpenAIService
from services.prompts import build_messages
from services.storage_service import StorageService

logger = logging.getLogger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:(image/[\w.+-]+);base64,", re.IGNORECASE)
URLSAFE_TO_STANDARD = str.maketrans("-_", "+/")

NO_IMAGE_OUTPUT = "Model returned no image output."
NO_ANALYSIS_OUTPUT = "Model returned no analysis output."
STATIC_ADVICE = (
    "Analysis-only mode: describe how to adjust brightness, contrast, colors, "
    "and composition here."
)


def decode_image(base64_image: str) -> Tuple[bytes, str]:
    """Decode a base64 image (optionally a data URL) into bytes and a mime type."""
    mime_type = "image/jpeg"
    data = base64_image.strip()

    match = DATA_URL_PATTERN.match(data)
    if match:
        mime_type = match.group(1).lower()
        data = data[match.end():]

    # Accept the URL-safe alphabet and missing padding
    data = "".join(data.split()).translate(URLSAFE_TO_STANDARD)
    data += "=" * (-len(data) % 4)

    try:
        image_bytes = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Invalid base64 image")

    if not image_bytes:
        raise ValidationError("Invalid base64 image")
    return image_bytes, mime_type


class RelayService:
    def __init__(self, settings: Settings, openai_service: OpenAIService, storage: StorageService):
        self.settings = settings
        self.openai = openai_service
        self.storage = storage
        self.mode = settings.RELAY_MODE

    def validate(self, body: EditBody) -> EditRequest:
        """Turn a raw body into an EditRequest or raise ConfigError/ValidationError."""
        if not self.settings.has_credential:
            logger.error("❌ OPENAI_API_KEY missing")
            raise ConfigError("OPENAI_API_KEY missing", fix="Add it inside your .env file")

        query = body.query
        if query is not None and not isinstance(query, str):
            raise ValidationError("Query must be a string")
        if not query or not query.strip():
            logger.info("❌ Missing 'query' in body")
            raise ValidationError("Query is required")

        base64_image = body.base64_image
        if base64_image is not None and not isinstance(base64_image, str):
            raise ValidationError("Invalid base64 image")

        request = EditRequest(query=query)
        if base64_image and base64_image.strip():
            request.image_bytes, request.image_mime = decode_image(base64_image)

        logger.info("👉 Prompt: %s", query)
        logger.info(
            "🖼 Image present: %s%s",
            request.has_image,
            f" ({len(request.image_bytes)} bytes)" if request.has_image else "",
        )
        return request

    async def process(self, body: EditBody) -> EditResponse:
        """Validate, dispatch and shape a single /edit request."""
        request = self.validate(body)

        if self.mode == Mode.IMAGE_GENERATION:
            if request.has_image:
                return await self._edit_image(request)
            return await self._generate_image(request)

        if not self.settings.ANALYSIS_USE_VISION:
            logger.info("ℹ Vision disabled, returning static analysis-only advice")
            return EditResponse(
                analysis=STATIC_ADVICE,
                message="Analysis-only mode (no images generated).",
            )
        return await self._analyze(request)

    async def _analyze(self, request: EditRequest) -> EditResponse:
        logger.info("🛠 Mode: VISION ANALYSIS (%s)", "image + text" if request.has_image else "text only")

        image_data_url = None
        if request.has_image:
            encoded = base64.b64encode(request.image_bytes).decode("ascii")
            image_data_url = f"data:{request.image_mime};base64,{encoded}"

        outcome = await self.openai.chat_completion(
            build_messages(request.query, image_data_url),
            model=self.settings.VISION_MODEL,
            max_tokens=self.settings.VISION_MAX_TOKENS,
            temperature=self.settings.VISION_TEMPERATURE,
        )
        if not outcome.ok:
            raise ProviderError.from_outcome("Failed to process request", outcome)

        result = ProviderResult(kind=ResultKind.TEXT_ANALYSIS, text=outcome.payload) if outcome.payload else ProviderResult.empty()
        if result.kind == ResultKind.EMPTY:
            logger.warning("⚠ No analysis text returned from OpenAI.")
            return EditResponse(analysis=NO_ANALYSIS_OUTPUT, message="No analysis returned by the provider.")

        return EditResponse(analysis=result.text, message="AI analysis complete!")

    async def _edit_image(self, request: EditRequest) -> EditResponse:
        logger.info("🛠 Mode: IMAGE EDIT")
        outcome = await self.openai.edit_image(
            request.image_bytes,
            request.query,
            model=self.settings.IMAGE_MODEL,
            size=self.settings.IMAGE_SIZE,
            mime_type=request.image_mime,
        )
        if not outcome.ok:
            raise ProviderError.from_outcome("OpenAI image edit failed", outcome)

        result = ProviderResult(kind=ResultKind.EDITED_IMAGE, b64_image=outcome.payload) if outcome.payload else ProviderResult.empty()
        url = await self._persist(result, "edited_image")
        if url is None:
            return self._no_image_response()

        return EditResponse(
            analysis=f"Image edited using OpenAI {self.settings.IMAGE_MODEL} with your instructions.",
            edited_images=[url],
            message="Image processed successfully",
        )

    async def _generate_image(self, request: EditRequest) -> EditResponse:
        logger.info("🛠 Mode: TEXT → IMAGE")
        outcome = await self.openai.generate_image(
            request.query,
            model=self.settings.IMAGE_MODEL,
            size=self.settings.IMAGE_SIZE,
        )
        if not outcome.ok:
            raise ProviderError.from_outcome("OpenAI image generate failed", outcome)

        result = ProviderResult(kind=ResultKind.GENERATED_IMAGE, b64_image=outcome.payload) if outcome.payload else ProviderResult.empty()
        url = await self._persist(result, "generated_image")
        if url is None:
            return self._no_image_response()

        return EditResponse(
            analysis=f"Image generated using OpenAI {self.settings.IMAGE_MODEL} based on your prompt.",
            generated_images=[url],
            message="Image generated successfully",
        )

    async def _persist(self, result: ProviderResult, prefix: str) -> Optional[str]:
        if result.kind == ResultKind.EMPTY:
            logger.warning("⚠ No b64_json returned from OpenAI (%s).", prefix)
            return None

        saved, url, error = await self.storage.save_b64_image(result.b64_image, prefix)
        if not saved:
            raise ProviderError("Failed to process image", details=error)
        return url

    @staticmethod
    def _no_image_response() -> EditResponse:
        return EditResponse(analysis=NO_IMAGE_OUTPUT, message="No image returned by the provider.")
