"""Pydantic request and response schemas for the auth API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from walletauth.services.address import is_valid_address


class ChallengeRequest(BaseModel):
    """Request model for challenge generation."""

    model_config = ConfigDict(str_strip_whitespace=True)

    wallet_address: str = Field(..., description="Ethereum wallet address")

    @field_validator("wallet_address")
    @classmethod
    def validate_ethereum_address(cls, v: str) -> str:
        """Validate Ethereum address format (0x + 40 hex chars)."""
        if not is_valid_address(v):
            raise ValueError("Invalid Ethereum address format")
        return v


class ChallengeResponse(BaseModel):
    """Response model for a generated challenge."""

    nonce: str = Field(..., description="Unique nonce identifying the challenge")
    message: str = Field(..., description="Challenge message to sign with personal_sign")


class LoginRequest(BaseModel):
    """Request model for signature login.

    The address is deliberately not shape-checked here: a malformed address
    fails verification like any other bad login.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    wallet_address: str = Field(..., min_length=1)
    nonce: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Response model carrying a session bearer token."""

    access_token: str = Field(..., description="Opaque session token")
    token_type: str = Field(default="Bearer")
    expires_in: int = Field(..., description="Token lifetime in seconds")
    wallet_address: str = Field(..., description="Verified wallet address (lowercase)")


class LogoutResponse(BaseModel):
    """Response for the logout endpoint."""

    success: bool = True


class UserInfoResponse(BaseModel):
    """Current user information."""

    wallet_address: str
    token_expiring_soon: bool
    expires_at: datetime


class HealthResponse(BaseModel):
    """Liveness probe response."""

    status: str
    version: str
