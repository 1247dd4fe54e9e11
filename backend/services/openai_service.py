import logging
import httpx
from typing import Optional, List, Dict, Any

from config.settings import Settings
from models.relay import ProviderOutcome, ProviderErrorKind

logger = logging.getLogger(__name__)

EXTENSION_MAP = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
}

class OpenAIService:
    """Thin async client for the OpenAI chat and image endpoints.

    Every call returns a ProviderOutcome instead of raising, so callers match
    on the result rather than intercepting exceptions.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.openai.com/v1",
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "OpenAIService":
        return cls(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL,
            timeout=settings.PROVIDER_TIMEOUT,
            transport=transport,
        )

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def chat_completion(
        self,
        messages: List[Dict[str, Any]],
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> ProviderOutcome:
        """Run a chat completion. Payload is the reply text, or None when empty."""
        payload = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        outcome = await self._post("/chat/completions", json=payload)
        if not outcome.ok:
            return outcome

        try:
            content = outcome.payload["choices"][0]["message"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError):
            return ProviderOutcome.failure(
                ProviderErrorKind.INVALID_RESPONSE, "Unexpected chat completion response shape"
            )
        if isinstance(content, list):
            # Content-part replies: keep the text parts in order
            content = "".join(
                part.get("text") or "" for part in content
                if isinstance(part, dict) and part.get("type") == "text"
            )
        if content is not None and not isinstance(content, str):
            return ProviderOutcome.failure(
                ProviderErrorKind.INVALID_RESPONSE, "Unexpected chat completion content type"
            )
        return ProviderOutcome.success(content or None)

    async def edit_image(
        self,
        image_bytes: bytes,
        prompt: str,
        model: str,
        size: str,
        mime_type: str = "image/jpeg",
    ) -> ProviderOutcome:
        """Edit an image. Payload is the b64 PNG of the first result, or None."""
        extension = EXTENSION_MAP.get(mime_type, "jpg")
        files = {"image": (f"input.{extension}", image_bytes, mime_type)}
        data = {"model": model, "prompt": prompt, "size": size}
        outcome = await self._post("/images/edits", data=data, files=files)
        return self._first_b64(outcome)

    async def generate_image(self, prompt: str, model: str, size: str) -> ProviderOutcome:
        """Generate one image from text. Payload is the b64 PNG, or None."""
        payload = {"model": model, "prompt": prompt, "n": 1, "size": size}
        outcome = await self._post("/images/generations", json=payload)
        return self._first_b64(outcome)

    def _first_b64(self, outcome: ProviderOutcome) -> ProviderOutcome:
        if not outcome.ok:
            return outcome
        data = outcome.payload.get("data") if isinstance(outcome.payload, dict) else None
        if not data or not isinstance(data[0], dict):
            return ProviderOutcome.success(None)
        return ProviderOutcome.success(data[0].get("b64_json") or None)

    async def _post(self, path: str, **kwargs: Any) -> ProviderOutcome:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.base_url}{path}",
                    headers=self._headers(),
                    **kwargs
                )

                if response.status_code != 200:
                    error_message = self._error_message(response)
                    logger.warning("❌ OpenAI %s failed (%s): %s", path, response.status_code, error_message)
                    return ProviderOutcome.failure(ProviderErrorKind.API, error_message)

                return ProviderOutcome.success(response.json())

        except httpx.TimeoutException:
            return ProviderOutcome.failure(ProviderErrorKind.TIMEOUT, "Request timeout - OpenAI API may be slow")
        except httpx.HTTPError as error:
            return ProviderOutcome.failure(ProviderErrorKind.TRANSPORT, f"Error calling OpenAI API: {str(error)}")
        except ValueError as error:
            return ProviderOutcome.failure(ProviderErrorKind.INVALID_RESPONSE, f"Invalid JSON from OpenAI API: {str(error)}")

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        fallback = f"API request failed: {response.status_code}"
        try:
            error_data = response.json() if response.content else {}
        except ValueError:
            return fallback
        if not isinstance(error_data, dict):
            return fallback
        error = error_data.get('error')
        if isinstance(error, dict):
            return error.get('message') or fallback
        if isinstance(error, str) and error:
            return error
        return fallback
