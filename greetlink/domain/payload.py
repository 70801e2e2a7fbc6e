# greetlink/domain/payload.py
from datetime import date as _date
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_PHOTOS = 3


class GreetingPayload(BaseModel):
    """Everything a recipient needs to replay a greeting; lives only inside the link."""

    # Known keys must have the right JSON type; unknown keys are dropped.
    model_config = ConfigDict(populate_by_name=True, strict=True, extra="ignore")

    from_: str = Field("", alias="from")
    to: str = ""
    date: str = ""
    template: str = ""
    text: str = ""
    gifts: List[str] = Field(default_factory=list)
    youtube: str = ""
    photos: List[str] = Field(default_factory=list, max_length=MAX_PHOTOS)

    @field_validator("date")
    @classmethod
    def _iso_date_or_empty(cls, v: str) -> str:
        if v:
            try:
                _date.fromisoformat(v)
            except ValueError:
                raise ValueError("date must be an ISO date (YYYY-MM-DD)") from None
        return v

    @field_validator("gifts")
    @classmethod
    def _distinct_gifts(cls, v: List[str]) -> List[str]:
        if len(set(v)) != len(v):
            raise ValueError("gifts must be distinct")
        return v

    def to_wire(self) -> dict:
        # Key order is part of the link format: from, to, date, template, text, gifts, youtube, photos
        return self.model_dump(by_alias=True)
