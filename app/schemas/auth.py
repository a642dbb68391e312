"""
Auth schemas: request bodies and responses for registration, login, OTP, and token operations.
"""
from pydantic import BaseModel, EmailStr, field_validator, model_validator
from typing import Optional

from app.schemas.user import ProfileOut, clean_phone


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    confirm_password: str
    full_name: str = ""
    phone: str = ""

    @field_validator("password")
    @classmethod
    def password_strong(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters long")
        return v

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: str) -> str:
        return clean_phone(v)

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResponse(TokenResponse):
    profile: ProfileOut


class CheckEmailRequest(BaseModel):
    email: EmailStr


class CheckEmailResponse(BaseModel):
    exists: bool


class SendEmailOTPRequest(BaseModel):
    email: EmailStr


class SendEmailOTPResponse(BaseModel):
    success: bool
    message: str
    # Only populated outside production, so the flow can be tested without SMTP
    debug_otp: Optional[str] = None


class VerifyEmailOTPRequest(BaseModel):
    email: EmailStr
    # Format is checked by the OTP service so it can answer 400 InvalidFormat
    code: str

    @field_validator("code", mode="before")
    @classmethod
    def code_as_text(cls, v):
        # Storefronts send the code as a JSON number as often as a string
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class VerifyEmailOTPResponse(BaseModel):
    success: bool
    token: str
    message: str


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    token: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_strong(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters long")
        return v


class SendPhoneOTPRequest(BaseModel):
    phone: str

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: str) -> str:
        v = clean_phone(v)
        if not v:
            raise ValueError("Phone is required")
        return v


class SendPhoneOTPResponse(BaseModel):
    success: bool
    session_id: str


class VerifyPhoneOTPRequest(BaseModel):
    session_id: str
    otp: str


class SuccessResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
