# greetlink/infrastructure/cloudinary/upload_file.py
import asyncio

import aiohttp
import cloudinary.utils
from greetlink.domain.errors import UploadFailed
from greetlink.domain.signing import SignedUploadGrant


def upload_url_for(cloud_name: str) -> str:
    return cloudinary.utils.cloudinary_api_url("upload", cloud_name=cloud_name, resource_type="image")


async def upload_signed(
    session: aiohttp.ClientSession,
    image_bytes: bytes,
    grant: SignedUploadGrant,
    filename: str = "photo.jpg",
    timeout_seconds: float = 30.0,
) -> str:
    """Posts one image straight to Cloudinary using a grant from the signing relay."""
    form = aiohttp.FormData()
    form.add_field("file", image_bytes, filename=filename, content_type="image/jpeg")
    form.add_field("timestamp", str(grant.timestamp))
    form.add_field("api_key", grant.api_key)
    form.add_field("signature", grant.signature)
    if grant.folder:
        form.add_field("folder", grant.folder)

    try:
        async with session.post(
            upload_url_for(grant.cloud_name),
            data=form,
            timeout=aiohttp.ClientTimeout(total=timeout_seconds),
        ) as response:
            if response.status >= 400:
                text = await response.text()
                raise UploadFailed(f"Upload failed: {text[:200]}")
            res = await response.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        raise UploadFailed(f"Upload failed: {type(e).__name__}: {e}") from e

    url = (res.get("secure_url") or res.get("url")) if isinstance(res, dict) else None
    if not url:
        raise UploadFailed("Upload response carried no URL")
    return url
