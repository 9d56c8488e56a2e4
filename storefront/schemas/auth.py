"""Authentication schemas"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from storefront.models.user import UserRole


class Token(BaseModel):
    """JWT token response"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class LoginRequest(BaseModel):
    """Login request"""
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    """Token refresh request"""
    refresh_token: str


class RegisterRequest(BaseModel):
    """Customer registration request"""
    name: str = Field(..., max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    password_confirmation: str
    phone: Optional[str] = Field(None, max_length=20)


class PasswordChange(BaseModel):
    """Password change request"""
    current_password: str
    password: str = Field(..., min_length=8)
    password_confirmation: str


class UserResponse(BaseModel):
    """User response"""
    id: int
    email: str
    full_name: Optional[str]
    role: UserRole
    customer_id: Optional[int]
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime]

    class Config:
        from_attributes = True
