# config/settings.py
from urllib.parse import urlparse
from pydantic_settings import BaseSettings
from typing import List, Optional, Tuple

class Settings(BaseSettings):
    # API
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "greetlink"

    # CORS
    ALLOWED_HOSTS: List[str] = ["*"]

    # Env
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Cloudinary (either use CLOUDINARY_URL or the 3 fields below)
    CLOUDINARY_URL: Optional[str] = None
    CLOUDINARY_CLOUD_NAME: Optional[str] = None
    CLOUDINARY_API_KEY: Optional[str] = None
    CLOUDINARY_API_SECRET: Optional[str] = None

    # Shortener
    SHORTENER_API_URL: str = "https://is.gd/create.php"
    RELAY_TIMEOUT_SECONDS: float = 5.0

    # Client side
    RELAY_BASE_URLS: List[str] = ["http://localhost:8000/api"]
    SHARE_BASE_URL: str = "http://localhost:8000/"
    SHARE_LINK_SOFT_LIMIT: int = 1800
    PHOTO_MAX_DIMENSION: int = 1200
    PHOTO_JPEG_QUALITY: int = 85
    UPLOAD_FOLDER: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = True

    def cloudinary_credentials(self) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        """(cloud_name, api_key, api_secret); split vars win over CLOUDINARY_URL."""
        cloud_name, api_key, api_secret = None, None, None
        if self.CLOUDINARY_URL:
            parsed = urlparse(self.CLOUDINARY_URL)
            if parsed.scheme == "cloudinary":
                cloud_name = parsed.hostname or None
                api_key = parsed.username or None
                api_secret = parsed.password or None
        return (
            self.CLOUDINARY_CLOUD_NAME or cloud_name,
            self.CLOUDINARY_API_KEY or api_key,
            self.CLOUDINARY_API_SECRET or api_secret,
        )

settings = Settings()
