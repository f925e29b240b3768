"""Owner domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email


class OwnerRegistrationRequest(BaseModel):
    """Schema for starting an OTP-gated owner registration"""

    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_names(cls, v):
        if not v or not v.strip():
            raise ValueError("Field is required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        if not v:
            raise ValueError("Email is required")
        return validate_email(v)


class OwnerVerifyRequest(BaseModel):
    email: str
    otp: str

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        if not v:
            raise ValueError("Email is required")
        return validate_email(v)

    @field_validator("otp", mode="before")
    @classmethod
    def validate_otp(cls, v):
        if v is None or not str(v).strip():
            raise ValueError("OTP is required")
        return str(v).strip()


class GuestOwnerCreate(BaseModel):
    """Schema for an ad hoc owner used for direct booking"""

    first_name: str
    last_name: str
    email: str

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        if not v:
            raise ValueError("Email is required")
        return validate_email(v)


class OwnerResponse(BaseModel):
    """Schema for owner response"""

    id: int
    user_id: Optional[int] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    pet_count: int = 0
    is_guest: bool = False
    avatar: Optional[str] = None

    class Config:
        from_attributes = True
