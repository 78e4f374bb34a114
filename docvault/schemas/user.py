from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class UserBase(BaseModel):
    email: EmailStr


class UserCreate(UserBase):
    password: str = Field(min_length=8)
    name: Optional[str] = Field(default=None, max_length=100)


class UserRead(UserBase):
    id: str
    name: Optional[str] = None
    avatar: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ProfileRead(UserRead):
    bio: Optional[str] = None
    profession: Optional[str] = None
    timezone: Optional[str] = None
    avatar_public_id: Optional[str] = None
    last_login_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=500)
    profession: Optional[str] = Field(default=None, max_length=100)
    timezone: Optional[str] = None
