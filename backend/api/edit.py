import json
import logging
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from core.errors import RelayError, ProviderError, ValidationError
from models.relay import EditBody, EditResponse, ErrorResponse
from services.relay_service import RelayService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["edit"])

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")

def get_relay_service(request: Request) -> RelayService:
    return request.app.state.relay

async def read_edit_body(request: Request) -> EditBody:
    """Read `query` and `base64Image` from a JSON, multipart or urlencoded body"""
    content_type = request.headers.get("content-type", "")
    logger.info("🔧 Content type: %s", content_type or "n/a")

    if content_type.startswith(FORM_CONTENT_TYPES):
        try:
            settings = request.app.state.settings
            form = await request.form(max_part_size=settings.MAX_FORM_PART_SIZE)
        except Exception as e:
            raise ValidationError("Invalid form body", details=str(e))

        upload = form.get("image")
        if upload is not None and not isinstance(upload, str):
            # The uploaded file is accepted for client compatibility but not used
            logger.info("📎 Ignoring uploaded file field 'image' (%s)", upload.filename)

        return EditBody(query=form.get("query"), base64Image=form.get("base64Image"))

    raw = await request.body()
    if not raw.strip():
        return EditBody()

    try:
        data = json.loads(raw)
    except ValueError:
        raise ValidationError("Invalid JSON body")

    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    logger.info("🔧 Body keys: %s", sorted(data.keys()))
    return EditBody(query=data.get("query"), base64Image=data.get("base64Image"))

@router.post(
    "/edit",
    response_model=EditResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def edit(request: Request):
    """Edit, generate or analyze a photo according to the configured relay mode"""
    logger.info("📥 NEW /edit REQUEST")
    relay = get_relay_service(request)

    try:
        body = await read_edit_body(request)
        result = await relay.process(body)
    except RelayError as error:
        logger.warning("❌ /edit failed (%s): %s %s", error.status_code, error.error, error.details or "")
        return JSONResponse(status_code=error.status_code, content=error.to_body())
    except Exception as error:
        logger.exception("❌ SERVER ERROR in /edit")
        message = str(error)
        failure = ProviderError(
            "Failed to process image",
            details=message,
            rate_limited="quota" in message or "rate limit" in message,
        )
        return JSONResponse(status_code=failure.status_code, content=failure.to_body())

    logger.info("✅ /edit completed successfully.")
    return JSONResponse(content=result.model_dump(by_alias=True))
