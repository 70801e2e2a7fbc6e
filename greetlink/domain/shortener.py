# greetlink/domain/shortener.py
import asyncio
from urllib.parse import urlsplit

import aiohttp
from pydantic import BaseModel

from greetlink.config.logging import get_logger
from greetlink.domain.errors import MissingUrl, ShortenerUnavailable

logger = get_logger(__name__, tag="SHORTEN")

DEFAULT_SHORTENER_API_URL = "https://is.gd/create.php"
DEFAULT_TIMEOUT_SECONDS = 5.0


class ShortenedLink(BaseModel):
    shorturl: str
    fullurl: str


def is_absolute_url(url: str) -> bool:
    if not isinstance(url, str) or not url.strip():
        return False
    parts = urlsplit(url.strip())
    return bool(parts.scheme and parts.netloc)


class LinkShortener:
    """Proxies one long URL to is.gd and hands back the short form."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        api_url: str = DEFAULT_SHORTENER_API_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.session = session
        self.api_url = api_url
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def shorten(self, url: str) -> ShortenedLink:
        if not is_absolute_url(url):
            raise MissingUrl("Missing url")
        url = url.strip()

        try:
            async with self.session.get(
                self.api_url,
                params={"format": "json", "url": url},
                timeout=self.timeout,
            ) as response:
                if response.status >= 400:
                    text = await response.text()
                    raise ShortenerUnavailable(f"Shortener error: HTTP {response.status} {text[:200]}")
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"Shortener request failed: {type(e).__name__}: {e}")
            raise ShortenerUnavailable(f"Shortener failed: {type(e).__name__}") from e

        shorturl = data.get("shorturl") if isinstance(data, dict) else None
        if not shorturl:
            # is.gd answers 200 with errorcode/errormessage for rejected URLs
            message = data.get("errormessage") if isinstance(data, dict) else None
            raise ShortenerUnavailable(f"Shortener returned no short URL: {message or 'empty response'}")

        logger.info(f"Shortened {url[:60]}... -> {shorturl}")
        return ShortenedLink(shorturl=shorturl, fullurl=url)
