"""Company branding storage: display name and logo for receipts.

Both live outside the database under ``ASSETS_PATH``::

    settings.json   {"companyName": "...", "updatedAt": "..."}
    logo.png
"""

import asyncio
import json
import os
from io import BytesIO
from typing import Optional

from fastapi import HTTPException, status
from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from PIL import Image, UnidentifiedImageError

logger = get_logger(__name__)

SETTINGS_FILENAME = "settings.json"
LOGO_FILENAME = "logo.png"
MAX_LOGO_BYTES = 5 * 1024 * 1024


class BrandingStore:
    """Reads and writes branding assets in one directory."""

    def __init__(self, assets_path: str):
        self.assets_path = assets_path

    @property
    def settings_file(self) -> str:
        return os.path.join(self.assets_path, SETTINGS_FILENAME)

    @property
    def logo_file(self) -> str:
        return os.path.join(self.assets_path, LOGO_FILENAME)

    def _read_settings(self) -> dict:
        try:
            with open(self.settings_file, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("Unreadable branding settings %s: %s", self.settings_file, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_settings(self, data: dict) -> None:
        os.makedirs(self.assets_path, exist_ok=True)
        with open(self.settings_file, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    async def get_company_name(self) -> str:
        data = await asyncio.to_thread(self._read_settings)
        return str(data.get("companyName") or "")

    async def set_company_name(self, company_name: str) -> str:
        data = await asyncio.to_thread(self._read_settings)
        data["companyName"] = company_name.strip()
        data["updatedAt"] = utc_now().isoformat()
        await asyncio.to_thread(self._write_settings, data)
        logger.info("Company name updated")
        return data["companyName"]

    async def get_logo_path(self) -> Optional[str]:
        exists = await asyncio.to_thread(os.path.isfile, self.logo_file)
        return self.logo_file if exists else None

    def _store_logo(self, content: bytes) -> int:
        try:
            img = Image.open(BytesIO(content))
            img.load()
        except (UnidentifiedImageError, OSError) as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Uploaded file is not a valid image",
            ) from e

        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA")
        os.makedirs(self.assets_path, exist_ok=True)
        img.save(self.logo_file, format="PNG")
        return os.path.getsize(self.logo_file)

    async def save_logo(self, content: bytes) -> int:
        """Validate an uploaded image and store it as PNG. Returns stored size."""
        if not content:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No file uploaded",
            )
        if len(content) > MAX_LOGO_BYTES:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="Logo must be 5 MB or smaller",
            )
        size = await asyncio.to_thread(self._store_logo, content)
        logger.info("Logo saved to %s (%d bytes)", self.logo_file, size)
        return size

    async def read_logo(self) -> bytes:
        path = await self.get_logo_path()
        if path is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Logo not found",
            )

        def _read() -> bytes:
            with open(path, "rb") as f:
                return f.read()

        return await asyncio.to_thread(_read)

    async def delete_logo(self) -> bool:
        """Remove the logo. Returns False when there was none."""
        try:
            await asyncio.to_thread(os.remove, self.logo_file)
        except FileNotFoundError:
            return False
        logger.info("Logo deleted")
        return True


def get_branding_store() -> BrandingStore:
    return BrandingStore(get_settings().ASSETS_PATH)
