"""Schemas for petition submissions and templates."""

from datetime import date
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from animalert.core.constants import COUNTIES, UPLOADS_PREFIX


class ComplaintCreate(BaseModel):
    """Validated petition form (contact details, incident, uploaded evidence)."""

    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr

    country: Literal["Romania"] = "Romania"
    county: str
    city: str = Field(..., min_length=1, max_length=255)
    street: str = Field(..., min_length=1, max_length=255)
    house_number: str = Field(..., min_length=1, max_length=50)
    building: str | None = Field(default=None, max_length=50)
    staircase: str | None = Field(default=None, max_length=50)
    apartment: str | None = Field(default=None, max_length=50)

    phone_number: str = Field(..., min_length=10, max_length=15)

    incident_type: int
    incident_date: date | None = None
    incident_county: str
    incident_city: str | None = Field(default=None, max_length=255)
    incident_address: str | None = Field(default=None, max_length=255)
    destination_institute: str = Field(..., min_length=1, max_length=255)
    incident_description: str = Field(..., min_length=10)

    attachments: list[str] = Field(default_factory=list, max_length=20)
    is_public: bool = True

    @field_validator("county", "incident_county")
    @classmethod
    def _known_county(cls, value: str) -> str:
        code = value.strip().upper()
        if code not in COUNTIES:
            raise ValueError("Va rugam sa selectati un judet")
        return code

    @field_validator("attachments")
    @classmethod
    def _uploaded_keys_only(cls, value: list[str]) -> list[str]:
        for key in value:
            if not key.startswith(UPLOADS_PREFIX) or ".." in key:
                raise ValueError(f"Invalid attachment key: {key}")
        return value

    @field_validator("building", "staircase", "apartment", "incident_city", "incident_address")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None


class ComplaintSubmitResponse(BaseModel):
    success: bool = True
    public_id: str
    internal_id: str


class ComplaintTemplateTypeRead(BaseModel):
    id: int
    display_name: str


class ComplaintTemplateRead(BaseModel):
    id: int
    display_name: str
    html: str
    category_id: int | None = None


class UploadUrlRequest(BaseModel):
    file_name: str = Field(..., min_length=1, max_length=200)
    file_type: str = Field(..., min_length=1, max_length=100)
    file_size: int = Field(..., gt=0)


class UploadUrlResponse(BaseModel):
    key: str
    url: str
