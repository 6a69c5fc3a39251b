"""
Pydantic models for authentication.

Login is shared by staff accounts and student accounts; the endpoint
decides which table is consulted.
"""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=3, examples=["admin"])
    password: str = Field(..., min_length=6, examples=["strongpassword"])


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: dict
