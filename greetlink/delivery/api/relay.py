# greetlink/delivery/api/relay.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from greetlink.delivery.schemas.body import ShortenRequest, SignRequest
from greetlink.config.settings import settings
from greetlink.domain.errors import ConfigurationMissing, MissingUrl, ShortenerUnavailable
from greetlink.domain.shortener import LinkShortener, ShortenedLink
from greetlink.domain.signing import SignedUploadGrant, UploadSigner
import logging
import traceback

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


def get_upload_signer() -> UploadSigner:
    return UploadSigner.from_settings(settings)


def get_link_shortener(request: Request) -> LinkShortener:
    session = getattr(request.app.state, "http_session", None)
    if session is None:
        logger.error("HTTP session not initialized, cannot reach shortener")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is not ready. Please try again in a moment.",
        )
    return LinkShortener(
        session,
        api_url=settings.SHORTENER_API_URL,
        timeout_seconds=settings.RELAY_TIMEOUT_SECONDS,
    )


@router.post("/sign", response_model=SignedUploadGrant)
async def sign_upload(
    body: Optional[SignRequest] = None,
    signer: UploadSigner = Depends(get_upload_signer),
):
    folder = body.folder if body else ""
    try:
        grant = signer.sign(folder)
    except ConfigurationMissing as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    logger.info(f"Upload grant issued (folder={folder!r}, timestamp={grant.timestamp})")
    return grant


@router.post("/shorten", response_model=ShortenedLink)
async def shorten_link(
    body: ShortenRequest,
    shortener: LinkShortener = Depends(get_link_shortener),
):
    try:
        return await shortener.shorten(body.url)
    except MissingUrl as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ShortenerUnavailable as e:
        logger.warning(f"Shortener unavailable: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected shortener error: {e}\n{traceback.format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Shortener failed",
        )
