"""
User and Authentication Schemas
Pydantic models for request/response validation
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from courtside.models.user import UserRole


# Authentication Schemas
class Token(BaseModel):
    """Response schema for login"""

    access_token: str
    token_type: str = "bearer"
    user: "UserResponse"


class LoginRequest(BaseModel):
    """Request schema for login"""

    email: EmailStr
    password: str = Field(..., min_length=6)


# User Schemas
class UserBase(BaseModel):
    """Base user schema with common fields"""

    email: EmailStr
    username: str = Field(..., min_length=3, max_length=50)
    full_name: str = Field(..., min_length=1, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=20)


class UserCreate(UserBase):
    """Schema for registering a customer account"""

    password: str = Field(..., min_length=8)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        """Ensure password meets requirements"""
        if not any(char.isdigit() for char in v):
            raise ValueError("Password must contain at least one digit")
        if not any(char.isupper() for char in v):
            raise ValueError("Password must contain at least one uppercase letter")
        return v


class UserResponse(BaseModel):
    """Schema for user response (without sensitive data)"""

    id: UUID
    email: str
    username: str
    full_name: str
    phone_number: Optional[str] = None
    role: UserRole
    is_active: bool
    wallet_balance: Decimal
    reward_points: int
    created_at: datetime

    class Config:
        from_attributes = True


Token.model_rebuild()
