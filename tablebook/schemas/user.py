from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime


# Shared properties
class UserBase(BaseModel):
    email: EmailStr
    full_name: str


# Properties to receive via API on creation (POST /auth/register)
class UserCreate(UserBase):
    password: str = Field(..., min_length=6)


# Properties to receive via API on admin creation (POST /auth/admin/register)
class AdminCreate(UserCreate):
    admin_secret: str


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserInDBBase(UserBase):
    id: int
    role: str
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Properties returned via API
class User(UserInDBBase):
    pass


class Token(BaseModel):
    access_token: str
    token_type: str
    user: User


class TokenPayload(BaseModel):
    sub: Optional[str] = None
    role: Optional[str] = None
