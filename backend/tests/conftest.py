"""
Shared pytest fixtures and configuration for all tests
"""
import base64
import json
import pytest
import sys
import httpx
from pathlib import Path

# Add backend to Python path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR-relay-test-payload"
PNG_B64 = base64.b64encode(PNG_BYTES).decode("ascii")
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"relay-test-photo" + b"\xff\xd9"
JPEG_B64 = base64.b64encode(JPEG_BYTES).decode("ascii")


class FakeProvider:
    """Stands in for the OpenAI API through httpx.MockTransport and records every call"""

    def __init__(self):
        self.requests = []
        self.responses = {}

    def respond(self, path, status_code=200, body=None):
        self.responses[path] = (status_code, body if body is not None else {})

    def fail_with(self, path, exc):
        self.responses[path] = exc

    def handler(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        path = request.url.path.replace("/v1", "", 1)
        response = self.responses.get(path, (200, {}))
        if isinstance(response, Exception):
            raise response
        status_code, body = response
        return httpx.Response(status_code, json=body)

    @property
    def paths(self):
        return [r.url.path for r in self.requests]

    def json_body(self, index=-1):
        return json.loads(self.requests[index].content)


@pytest.fixture
def provider():
    """Provide a FakeProvider with image and chat endpoints answering successfully"""
    fake = FakeProvider()
    fake.respond("/images/generations", body={"data": [{"b64_json": PNG_B64}]})
    fake.respond("/images/edits", body={"data": [{"b64_json": PNG_B64}]})
    fake.respond("/chat/completions", body={
        "choices": [{"message": {"role": "assistant", "content": "📌 Summary: a bright beach photo"}}]
    })
    return fake


@pytest.fixture
def make_settings(tmp_path):
    """Factory for Settings isolated from the process environment and .env file"""
    from config.settings import Settings

    def _make(**overrides):
        values = {
            "OPENAI_API_KEY": "sk-test",
            "OUTPUT_DIR": str(tmp_path / "generated"),
            "PUBLIC_DIR": str(tmp_path / "public"),
            "RELAY_MODE": "image_generation",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def make_openai_service(provider):
    from services.openai_service import OpenAIService

    def _make(settings):
        return OpenAIService.from_settings(settings, transport=httpx.MockTransport(provider.handler))

    return _make


@pytest.fixture
def make_client(make_settings, make_openai_service):
    """Factory for a TestClient around a relay app wired to the FakeProvider"""
    from fastapi.testclient import TestClient
    from main import create_app

    def _make(**overrides):
        settings = make_settings(**overrides)
        return TestClient(create_app(settings, make_openai_service(settings)))

    return _make


@pytest.fixture
def relay_service(make_settings, make_openai_service):
    """Provide a RelayService for the image generation mode"""
    from services.relay_service import RelayService
    from services.storage_service import StorageService

    settings = make_settings()
    storage = StorageService.from_settings(settings)
    storage.ensure_output_dir()
    return RelayService(settings, make_openai_service(settings), storage)
