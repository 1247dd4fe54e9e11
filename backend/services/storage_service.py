import asyncio
import base64
import binascii
import logging
import time
import uuid
from pathlib import Path
from typing import Tuple, Optional

from config.settings import Settings

logger = logging.getLogger(__name__)

class StorageService:
    """Writes generated images to the output directory and derives their public URLs."""

    def __init__(self, output_dir: str, url_prefix: str = "/generated", public_base_url: Optional[str] = None):
        self.output_dir = Path(output_dir)
        self.url_prefix = "/" + url_prefix.strip("/")
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageService":
        return cls(settings.OUTPUT_DIR, settings.STATIC_URL_PREFIX, settings.PUBLIC_BASE_URL)

    def ensure_output_dir(self) -> Path:
        """Create the output directory if it is missing. Safe to call repeatedly."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir

    def public_url(self, filename: str) -> str:
        path = f"{self.url_prefix}/{filename}"
        if self.public_base_url:
            return f"{self.public_base_url}{path}"
        return path

    async def save_b64_image(self, b64_data: str, prefix: str) -> Tuple[bool, Optional[str], Optional[str]]:
        """Decode a base64 PNG, write it under the output directory and return its URL"""
        try:
            image_bytes = base64.b64decode(b64_data)
        except (binascii.Error, ValueError) as error:
            return False, None, f"Provider returned invalid base64 image data: {str(error)}"

        try:
            filename = await asyncio.to_thread(self._write_unique, image_bytes, prefix)
        except OSError as error:
            logger.error("❌ Failed to save %s image: %s", prefix, error)
            return False, None, f"Failed to save generated image: {str(error)}"

        logger.info("💾 File saved: %s (%d bytes)", self.output_dir / filename, len(image_bytes))
        return True, self.public_url(filename), None

    def _write_unique(self, image_bytes: bytes, prefix: str) -> str:
        self.ensure_output_dir()
        filename = f"{prefix}_{int(time.time() * 1000)}.png"
        try:
            with open(self.output_dir / filename, "xb") as f:
                f.write(image_bytes)
        except FileExistsError:
            # Same millisecond as another request
            filename = f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}.png"
            with open(self.output_dir / filename, "xb") as f:
                f.write(image_bytes)
        return filename
