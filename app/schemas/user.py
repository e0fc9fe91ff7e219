from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class UserCreate(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=30, pattern=r"^[a-zA-Z0-9_-]+$")
    full_name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=8)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: int
    email: EmailStr
    username: str
    full_name: str
    role: str
    avatar_url: Optional[str] = None
    xp: int = 0

    class Config:
        from_attributes = True


# Joined onto offers, ratings and reports
class UserSummary(BaseModel):
    id: int
    full_name: str
    username: str
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True
