# greetlink/infrastructure/relay/client.py
import asyncio
from typing import List, Optional

import aiohttp
from pydantic import ValidationError

from greetlink.config.logging import get_logger
from greetlink.domain.errors import ShortenerUnavailable, UploadFailed
from greetlink.domain.signing import SignedUploadGrant

logger = get_logger(__name__, tag="RELAY")


class RelayClient:
    """
    Client side of the sign/shorten relays.

    Each call tries the configured relay base URLs in order and takes the
    first one that answers 2xx, so one deployment being down is not fatal.
    """

    def __init__(self, session: aiohttp.ClientSession, base_urls: List[str], timeout_seconds: float = 5.0):
        self.session = session
        self.base_urls = [u.rstrip("/") for u in base_urls]
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def _post_json(self, path: str, body: dict) -> Optional[dict]:
        for base in self.base_urls:
            endpoint = f"{base}/{path}"
            try:
                async with self.session.post(endpoint, json=body, timeout=self.timeout) as response:
                    if response.status >= 400:
                        logger.warning(f"{endpoint} answered HTTP {response.status}, trying next relay")
                        continue
                    data = await response.json(content_type=None)
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                logger.warning(f"{endpoint} unreachable ({type(e).__name__}), trying next relay")
                continue
            if isinstance(data, dict):
                return data
        return None

    async def request_grant(self, folder: str = "") -> SignedUploadGrant:
        data = await self._post_json("sign", {"folder": folder})
        if data is None:
            raise UploadFailed("No signing endpoint available")
        try:
            return SignedUploadGrant.model_validate(data)
        except ValidationError as e:
            raise UploadFailed("Signing endpoint returned an unusable grant") from e

    async def shorten(self, url: str) -> str:
        data = await self._post_json("shorten", {"url": url})
        shorturl = data.get("shorturl") if data else None
        if not shorturl:
            raise ShortenerUnavailable("Could not shorten the link")
        return shorturl
