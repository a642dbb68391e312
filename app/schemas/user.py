"""
Profile schemas: public profile views and update requests.
"""
from pydantic import BaseModel, EmailStr, field_validator, ConfigDict
from typing import Optional
from datetime import datetime
import re

PHONE_PATTERN = re.compile(r"^[6-9]\d{9}$")


def clean_phone(v: str) -> str:
    """Strip spaces, dashes and parentheses; require a 10-digit Indian mobile."""
    v = re.sub(r"[\s\-()]", "", v)
    if v and not PHONE_PATTERN.match(v):
        raise ValueError("Phone must be a 10-digit mobile number starting with 6-9")
    return v


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: str
    phone: str
    role: str
    created_at: datetime
    updated_at: datetime

    # UUID → str conversion for JSON serialization
    @field_validator("id", mode="before")
    @classmethod
    def uuid_to_str(cls, v) -> str:
        return str(v)


class ProfileCreateRequest(BaseModel):
    user_id: str
    email: EmailStr
    full_name: Optional[str] = ""
    phone: Optional[str] = ""

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: Optional[str]) -> str:
        return clean_phone(v or "")


class ProfileCreateResponse(BaseModel):
    profile: ProfileOut
    message: str


class ProfileUpdateRequest(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def name_valid(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not re.match(r"^[a-zA-Z\s]{2,}$", v):
            raise ValueError("Name must be at least 2 letters")
        return v

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return clean_phone(v)
