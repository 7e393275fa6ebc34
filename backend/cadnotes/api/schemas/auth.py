from __future__ import annotations

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class SignInRequest(BaseModel):
    """Request to sign in with email and password."""

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=1, description="User's password")


class SignUpRequest(BaseModel):
    """Request to sign up with email and password."""

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=8, description="User's password")


class UserPublic(BaseModel):
    id: str
    email: str


class AuthResponse(BaseModel):
    """Login/signup outcome; tokens stay in the server-side session."""

    message: str
    user: UserPublic | None = None


class CurrentUserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user: UserPublic
    onshape_connected: bool = Field(default=False, alias="onshapeConnected")
