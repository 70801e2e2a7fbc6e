# greetlink/domain/errors.py


class GreetLinkError(Exception):
    """Base class for every error raised by greetlink."""


class MalformedPayload(GreetLinkError):
    """The link token is not valid base64url JSON of a greeting."""


class ConfigurationMissing(GreetLinkError):
    """Cloudinary credentials are not configured on the server."""


class MissingUrl(GreetLinkError):
    """No absolute URL was given to shorten."""


class ShortenerUnavailable(GreetLinkError):
    """The shortening service failed, timed out or returned no short URL."""


class UploadFailed(GreetLinkError):
    """A single photo could not be loaded, granted or uploaded."""

    def __init__(self, message: str, index: int = -1):
        super().__init__(message)
        self.index = index


class InvalidGreeting(GreetLinkError):
    """The composed greeting cannot be turned into a payload (e.g. a mistyped date)."""
