# greetlink/domain/photo_service.py
import asyncio
import base64
import functools
import os
import time
from concurrent.futures import Executor
from typing import List, Optional

import aiofiles
import aiohttp
from pydantic import BaseModel, Field

from greetlink.config.logging import get_logger
from greetlink.domain.errors import UploadFailed
from greetlink.domain.payload import MAX_PHOTOS
from greetlink.infrastructure.cloudinary.upload_file import upload_signed
from greetlink.infrastructure.image.image_process import compress_image
from greetlink.infrastructure.relay.client import RelayClient

REQUEST_TIMEOUT = 30
SKIPPED_PHOTO_WARNING = "A photo failed to upload. It will be skipped."
TOO_MANY_PHOTOS_WARNING = "Only the first {max} photos will be used."

logger = get_logger(__name__)


class PhotoUploadReport(BaseModel):
    urls: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    failed: List[int] = Field(default_factory=list)


class PhotoUploadService:
    """Compresses and uploads the selected photos one after another."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        relay: RelayClient,
        max_photos: int = MAX_PHOTOS,
        max_dimension: int = 1200,
        jpeg_quality: int = 85,
        folder: str = "",
        executor: Optional[Executor] = None,
    ):
        self.session = session
        self.relay = relay
        # A link never carries more than MAX_PHOTOS photos
        self.max_photos = min(max_photos, MAX_PHOTOS)
        self.max_dimension = max_dimension
        self.jpeg_quality = jpeg_quality
        self.folder = folder
        self.executor = executor

    async def _load_image_bytes_async(self, src: str) -> bytes:
        if src.startswith(("http://", "https://")):
            async with self.session.get(src, timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT)) as response:
                response.raise_for_status()
                return await response.read()
        if os.path.isfile(src):
            async with aiofiles.open(src, "rb") as f:
                return await f.read()
        if src.startswith("data:image"):
            _, encoded = src.split(",", 1)
            return base64.b64decode(encoded + "===")
        return base64.b64decode(src + "===")

    async def _upload_one(self, index: int, src: str) -> str:
        try:
            raw = await self._load_image_bytes_async(src)
            loop = asyncio.get_running_loop()
            compressed = await loop.run_in_executor(
                self.executor,
                functools.partial(compress_image, raw, self.max_dimension, self.jpeg_quality),
            )
            grant = await self.relay.request_grant(self.folder)
            return await upload_signed(self.session, compressed, grant, filename=f"photo_{index + 1}.jpg")
        except UploadFailed as e:
            e.index = index
            raise
        except Exception as e:
            # Any failure here skips only this photo
            raise UploadFailed(f"{type(e).__name__}: {e}", index=index) from e

    async def upload_photos(self, sources: List[str]) -> PhotoUploadReport:
        report = PhotoUploadReport()
        if len(sources) > self.max_photos:
            report.warnings.append(TOO_MANY_PHOTOS_WARNING.format(max=self.max_photos))

        selected = sources[: self.max_photos]
        logger.info(f"Uploading {len(selected)} photo(s) sequentially.")
        start_time = time.perf_counter()

        for i, src in enumerate(selected):
            try:
                url = await self._upload_one(i, src)
            except UploadFailed as e:
                logger.warning(f"Photo [{i + 1}/{len(selected)}] skipped: {e}")
                report.failed.append(i)
                report.warnings.append(SKIPPED_PHOTO_WARNING)
                continue
            report.urls.append(url)
            logger.info(f"Photo [{i + 1}/{len(selected)}] uploaded (T+{time.perf_counter() - start_time:.2f}s).")

        return report
