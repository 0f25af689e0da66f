from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from rideway.db.models.user import UserRole, UserStatus


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=2)
    phone_number: Optional[str] = Field(None, pattern=r"^\+?[\d\s-]{8,}$")


class UserAuth(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class VerifyOTPSchema(BaseModel):
    user_id: str
    code: str = Field(..., min_length=1, max_length=12, pattern=r"^[0-9]+$")


class ResendOTPSchema(BaseModel):
    user_id: str


class UserRead(BaseModel):
    id: str
    email: str
    name: str
    role: UserRole
    status: UserStatus
    country: Optional[str] = None
    is_verified: bool
    last_login_at: Optional[datetime] = None
    phone_number: Optional[str] = None
    profile_image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2)
    phone_number: Optional[str] = Field(None, pattern=r"^\+?[\d\s-]{8,}$")


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)
