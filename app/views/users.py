"""Pydantic schemas for user interactions."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.user import UserRole


class UserRegistrationRequest(BaseModel):
    """Request model for user registration."""

    email: EmailStr
    firstName: str = Field(
        ...,
        min_length=1,
        max_length=50,
        validation_alias=AliasChoices("firstName", "first_name"),
        serialization_alias="firstName",
    )
    lastName: str = Field(
        ...,
        min_length=1,
        max_length=50,
        validation_alias=AliasChoices("lastName", "last_name"),
        serialization_alias="lastName",
    )
    password: str = Field(..., min_length=8, max_length=128)
    role: Optional[UserRole] = None

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not re.search(r"[A-Z]", value):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", value):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"\d", value):
            raise ValueError("Password must contain at least one digit")
        return value

    @field_validator("firstName", "lastName")
    @classmethod
    def validate_names(cls, value: str) -> str:
        if not re.match(r"^[a-zA-Z\s\-']+$", value):
            raise ValueError(
                "Name can only contain letters, spaces, hyphens, and apostrophes"
            )
        return value.strip()


class UserResponse(BaseModel):
    """General user response model."""

    id: int
    email: EmailStr
    firstName: str = Field(
        ...,
        validation_alias=AliasChoices("firstName", "first_name"),
        serialization_alias="firstName",
    )
    lastName: str = Field(
        ...,
        validation_alias=AliasChoices("lastName", "last_name"),
        serialization_alias="lastName",
    )
    role: Optional[UserRole] = None
    created_at: datetime = Field(serialization_alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class UserRegistrationResponse(UserResponse):
    """Response model for successful user registration."""

    message: str = "User registered successfully"


class RoleSelectionRequest(BaseModel):
    role: UserRole


__all__ = [
    "RoleSelectionRequest",
    "UserRegistrationRequest",
    "UserRegistrationResponse",
    "UserResponse",
]
