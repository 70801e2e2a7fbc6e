# greetlink/domain/signing.py
import hashlib
import time
from typing import Callable, Optional

from pydantic import BaseModel

from greetlink.config.logging import get_logger
from greetlink.config.settings import Settings
from greetlink.domain.errors import ConfigurationMissing

logger = get_logger(__name__, tag="SIGN")


class SignedUploadGrant(BaseModel):
    api_key: str
    cloud_name: str
    timestamp: int
    signature: str
    folder: str = ""


class UploadSigner:
    """
    Issues Cloudinary upload signatures so the browser can upload directly
    without ever seeing the API secret.

    The signed string is ``timestamp=<ts>`` followed by ``&folder=<folder>``
    when a folder is given. The client must send the exact same timestamp and
    folder to Cloudinary, otherwise Cloudinary rejects the signature.
    """

    def __init__(
        self,
        cloud_name: Optional[str],
        api_key: Optional[str],
        api_secret: Optional[str],
        clock: Callable[[], float] = time.time,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self._api_secret = api_secret
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "UploadSigner":
        cloud_name, api_key, api_secret = settings.cloudinary_credentials()
        return cls(cloud_name=cloud_name, api_key=api_key, api_secret=api_secret)

    @property
    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self._api_secret)

    @staticmethod
    def params_to_sign(timestamp: int, folder: str = "") -> str:
        params = f"timestamp={timestamp}"
        if folder:
            params += f"&folder={folder}"
        return params

    def signature_for(self, timestamp: int, folder: str = "") -> str:
        if not self._api_secret:
            raise ConfigurationMissing("Cloudinary API secret is not configured")
        to_sign = self.params_to_sign(timestamp, folder) + self._api_secret
        return hashlib.sha1(to_sign.encode("utf-8")).hexdigest()

    def sign(self, folder: str = "", timestamp: Optional[int] = None) -> SignedUploadGrant:
        if not self.is_configured:
            logger.error("Refusing to sign: CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY or CLOUDINARY_API_SECRET missing.")
            raise ConfigurationMissing("Cloudinary env variables not configured")

        folder = folder or ""
        if timestamp is None:
            timestamp = int(self._clock())

        grant = SignedUploadGrant(
            api_key=self.api_key,
            cloud_name=self.cloud_name,
            timestamp=timestamp,
            signature=self.signature_for(timestamp, folder),
            folder=folder,
        )
        logger.debug(f"Signed upload params for folder={folder!r} at {timestamp}")
        return grant
