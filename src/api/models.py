"""Pydantic models for API request/response."""

from typing import Optional
from pydantic import BaseModel, Field


class CreateUserRequest(BaseModel):
    """Request model for creating a user.

    Fields default to empty so the service can report which one is missing.
    """
    name: str = ""
    email: str = ""
    password: str = ""


class UpdateUserRequest(BaseModel):
    """Request model for a partial user update. Omitted fields are left unchanged."""
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class UserResponse(BaseModel):
    """Response model for user (never includes the password)."""
    id: str = Field(..., description="User ID")
    name: str
    email: str


class MessageResponse(BaseModel):
    """Confirmation message."""
    message: str
