"""Pydantic request/response schemas for ah_gateway.

All responses are wrapped in ApiResponse at the router layer.
"""

from pydantic import BaseModel, Field, field_validator

from src.ah_gateway.user.wallet import normalize_wallet


class _WalletBody(BaseModel):
    wallet: str

    @field_validator("wallet")
    @classmethod
    def wallet_format(cls, v: str) -> str:
        return normalize_wallet(v)


class NonceRequest(_WalletBody):
    pass


class NonceResponse(BaseModel):
    wallet: str
    nonce: str
    message: str
    expires_in: int


class LoginRequest(_WalletBody):
    signature: str = Field(..., min_length=4)


class RefreshRequest(BaseModel):
    refresh_token: str


class UpdateFidRequest(BaseModel):
    fid: str = Field(..., min_length=1, max_length=64)


class UserInfo(BaseModel):
    user_id: str
    wallet: str
    fid: str | None = None
    display_name: str | None = None


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = 1800
    user: UserInfo


class RefreshResponse(BaseModel):
    access_token: str
    expires_in: int = 1800


class UpdateFidResponse(BaseModel):
    updated: bool
    user: UserInfo
