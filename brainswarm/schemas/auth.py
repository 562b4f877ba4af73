"""
Brainswarm Backend — Auth & User Schemas
=========================================

What:  Registration/login payloads and the public user representation.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, model_validator

from brainswarm.config import settings


class RegisterRequest(BaseModel):
    """Fields submitted on registration; `password_confirmation` must match."""
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr = Field(max_length=255)
    password: str = Field(min_length=settings.min_password_length, max_length=255)
    password_confirmation: str
    nickname: Optional[str] = Field(default=None, max_length=255)
    anonymous: bool = False

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.password != self.password_confirmation:
            raise ValueError("The password confirmation does not match.")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    """Account as returned to its owner. The password hash never leaves the server."""
    id: int
    name: str
    email: str
    nickname: Optional[str] = None
    anonymous: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserPublic(BaseModel):
    """Minimal user block embedded in entries and teams."""
    id: int
    name: str
    nickname: Optional[str] = None

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    user: UserResponse
    access_token: str
    token_type: str = "Bearer"
