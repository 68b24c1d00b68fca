"""
Schemas de autenticación: login por CIP, tokens y refresh.
"""

from pydantic import BaseModel, Field


# ── Login ────────────────────────────────────────────
class LoginRequest(BaseModel):
    cip_code: str = Field(..., min_length=1, max_length=20)
    password: str = Field(..., min_length=1)


class TokenData(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserLoginData(BaseModel):
    id: int
    cip_code: str
    full_name: str
    role_id: int
    area_id: int
    permissions: int


class LoginResponse(BaseModel):
    user: UserLoginData
    tokens: TokenData


# ── Refresh Token ────────────────────────────────────
class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
