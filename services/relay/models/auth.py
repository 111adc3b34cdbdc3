"""
Pydantic models related to session registration and account settings.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class SessionGrantRequest(BaseModel):
    """Hands an already established remote auth cookie to the relay."""

    session_id: Optional[str] = None
    auth_cookie: str = Field(..., min_length=1)
    expires_at: datetime


class AuthenticationResult(BaseModel):
    """Authentication result."""

    IdToken: str
    SessionId: str


class SessionGrantResponse(BaseModel):
    """Authentication response."""

    AuthenticationResult: AuthenticationResult


class ProfileUpdateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class PasswordUpdateRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    password_confirmation: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def _confirmed(self) -> "PasswordUpdateRequest":
        if self.password != self.password_confirmation:
            raise ValueError("password confirmation does not match")
        return self
