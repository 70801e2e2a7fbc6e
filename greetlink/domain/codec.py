# greetlink/domain/codec.py
"""
Greeting payload <-> URL-safe token.

The token is base64url (no padding) of the compact UTF-8 JSON of the payload.
There is no compression and no encryption: anyone holding the link can read
the greeting.
"""
import base64
import binascii
import json

from pydantic import ValidationError

from greetlink.domain.errors import MalformedPayload
from greetlink.domain.payload import GreetingPayload


def encode(payload: GreetingPayload) -> str:
    text = json.dumps(payload.to_wire(), ensure_ascii=False, separators=(",", ":"))
    b64 = base64.b64encode(text.encode("utf-8")).decode("ascii")
    return b64.replace("+", "-").replace("/", "_").rstrip("=")


def decode(token: str) -> GreetingPayload:
    if not isinstance(token, str) or not token.strip():
        raise MalformedPayload("Empty payload token")

    s = token.strip().replace("-", "+").replace("_", "/")
    s += "=" * (-len(s) % 4)

    try:
        raw = base64.b64decode(s, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedPayload(f"Payload is not valid base64: {e}") from e

    try:
        data = json.loads(raw.decode("utf-8"))
    except ValueError as e:  # UnicodeDecodeError and JSONDecodeError
        raise MalformedPayload(f"Payload is not valid UTF-8 JSON: {e}") from e
    except RecursionError as e:
        raise MalformedPayload("Payload JSON is nested too deeply") from e

    if not isinstance(data, dict):
        raise MalformedPayload(f"Payload must be a JSON object, got {type(data).__name__}")

    try:
        return GreetingPayload.model_validate(data)
    except ValidationError as e:
        raise MalformedPayload(f"Payload has an invalid shape: {e.error_count()} error(s)") from e
