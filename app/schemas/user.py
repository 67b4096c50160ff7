"""
Pydantic schemas for users and their application roles.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime


class RoleResponse(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    """User profile response (credentials live in Supabase)."""
    id: int
    name: str
    email: EmailStr
    role: Optional[RoleResponse] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UpdateRoleRequest(BaseModel):
    """Request schema for assigning a role to a user."""
    role_name: str = Field(..., min_length=1, max_length=50)


class RegisterRequest(BaseModel):
    """Display name for the local profile; defaults to the token's email local part."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
