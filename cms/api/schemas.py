from pydantic import BaseModel, field_validator
from typing import Any, Dict, List
from datetime import datetime


class EnvelopeResponse(BaseModel):
    id: str
    type: str
    values: List[Dict[str, Any]]
    created_at: datetime
    updated_at: datetime


class DeleteResponse(BaseModel):
    success: bool


class ErrorResponse(BaseModel):
    error: str


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def email_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('email cannot be empty')
        return v.strip()

    @field_validator('password')
    @classmethod
    def password_must_not_be_empty(cls, v):
        if not v:
            raise ValueError('password cannot be empty')
        return v


class LoginUser(BaseModel):
    email: str


class LoginResponse(BaseModel):
    token: str
    user: LoginUser


class HealthResponse(BaseModel):
    status: str
    version: str
    db_health: bool
    envelope_count: int
