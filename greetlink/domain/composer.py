# greetlink/domain/composer.py
"""
Client-side orchestration: composer state -> payload -> share link, and
share link -> payload when a recipient opens it.

Links always carry the payload in the fragment (``#data=<token>``), so the
greeting never reaches a server log.
"""
from typing import List, Optional, Protocol
from urllib.parse import parse_qs, quote, urlsplit, urlunsplit

from pydantic import BaseModel, Field, ValidationError

from greetlink.config.logging import get_logger
from greetlink.config.settings import Settings
from greetlink.domain import codec
from greetlink.domain.errors import InvalidGreeting, MalformedPayload, ShortenerUnavailable
from greetlink.domain.payload import MAX_PHOTOS, GreetingPayload
from greetlink.domain.photo_service import PhotoUploadReport, PhotoUploadService

logger = get_logger(__name__)

FRAGMENT_PREFIX = "data="
SHARE_LINK_SOFT_LIMIT = 1800
LONG_LINK_WARNING = "The generated link is quite large and may not shorten reliably."
SHORTENER_FALLBACK_WARNING = "Could not shorten the link (shortener unavailable). The full link is provided instead."


class Shortener(Protocol):
    async def shorten(self, url: str) -> str: ...


class ComposerState(BaseModel):
    from_name: str = ""
    to_name: str = ""
    date: str = ""
    template: str = ""
    text: str = ""
    youtube: str = ""
    gifts: List[str] = Field(default_factory=list)
    photos: List[str] = Field(default_factory=list)

    def toggle_gift(self, token: str) -> bool:
        """Selects or deselects a gift; returns True when it ends up selected."""
        if token in self.gifts:
            self.gifts.remove(token)
            return False
        self.gifts.append(token)
        return True

    def build_payload(self) -> GreetingPayload:
        try:
            return GreetingPayload(
                from_=self.from_name,
                to=self.to_name,
                date=self.date,
                template=self.template,
                text=self.text,
                gifts=list(self.gifts),
                youtube=self.youtube,
                photos=self.photos[:MAX_PHOTOS],
            )
        except ValidationError as e:
            detail = "; ".join(
                f"{'.'.join(str(p) for p in err.get('loc', ())) or 'greeting'}: {err.get('msg')}"
                for err in e.errors()
            )
            raise InvalidGreeting(detail) from e


class ShareLink(BaseModel):
    url: str
    full_url: str
    shortened: bool = False
    warnings: List[str] = Field(default_factory=list)


def build_share_url(payload: GreetingPayload, base_url: str) -> str:
    parts = urlsplit(base_url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", parts.query, FRAGMENT_PREFIX + codec.encode(payload)))


def extract_token(url: str) -> Optional[str]:
    fragment = urlsplit(url).fragment
    if not fragment.startswith(FRAGMENT_PREFIX):
        return None
    return fragment[len(FRAGMENT_PREFIX):]


def open_link(url: str) -> Optional[GreetingPayload]:
    """Payload carried by a share link, or None to stay in compose mode."""
    try:
        token = extract_token(url)
    except ValueError as e:  # urlsplit rejects e.g. an unbalanced IPv6 host
        logger.warning(f"Ignoring unparsable link: {e}")
        return None
    if token is None:
        return None
    try:
        return codec.decode(token)
    except MalformedPayload as e:
        logger.warning(f"Failed to parse payload from URL fragment ({token[:24]}...): {e}")
        return None


async def generate_share_link(
    state: ComposerState,
    shortener: Shortener,
    base_url: str,
    soft_limit: int = SHARE_LINK_SOFT_LIMIT,
) -> ShareLink:
    full_url = build_share_url(state.build_payload(), base_url)
    link = ShareLink(url=full_url, full_url=full_url)

    if len(full_url) > soft_limit:
        link.warnings.append(LONG_LINK_WARNING)

    try:
        link.url = await shortener.shorten(full_url)
        link.shortened = True
    except ShortenerUnavailable as e:
        logger.warning(f"Shortening failed, falling back to full link: {e}")
        link.warnings.append(SHORTENER_FALLBACK_WARNING)
    return link


def youtube_embed_url(link: str) -> Optional[str]:
    if not link or "youtube" not in link:
        return None
    video_ids = parse_qs(urlsplit(link).query).get("v")
    if not video_ids or not video_ids[0]:
        return None
    return f"https://www.youtube.com/embed/{quote(video_ids[0], safe='')}?rel=0"


def whatsapp_share_url(link: str) -> str:
    return "https://wa.me/?text=" + quote("I made this for you: " + link, safe="")


class GreetingComposer:
    """Ties composer state to the photo uploader and the shortening relay."""

    def __init__(self, photos: PhotoUploadService, shortener: Shortener, settings: Settings):
        self.photos = photos
        self.shortener = shortener
        self.base_url = settings.SHARE_BASE_URL
        self.soft_limit = settings.SHARE_LINK_SOFT_LIMIT

    async def attach_photos(self, state: ComposerState, sources: List[str]) -> PhotoUploadReport:
        report = await self.photos.upload_photos(sources)
        state.photos = list(report.urls)
        return report

    async def share(self, state: ComposerState) -> ShareLink:
        return await generate_share_link(state, self.shortener, self.base_url, self.soft_limit)
