from typing import Optional

from pydantic import BaseModel, field_validator


class SignRequest(BaseModel):
    folder: Optional[str] = ""

    @field_validator("folder")
    @classmethod
    def _null_folder_is_empty(cls, v: Optional[str]) -> str:
        return v or ""


class ShortenRequest(BaseModel):
    url: str
