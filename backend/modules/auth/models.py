"""
Authentication module data models.

These models define the data structures used by the auth module
and exposed to other modules through the interface.
"""

from typing import Optional
from pydantic import BaseModel, Field


class JWTPayload(BaseModel):
    """
    Decoded JWT token payload from Supabase.

    This matches the structure of Supabase Auth JWTs, including
    anonymous sign-in sessions.
    """

    sub: Optional[str] = Field(None, description="Subject (user ID)")
    email: Optional[str] = Field(None, description="User's email")
    email_confirmed_at: Optional[str] = Field(None, description="Email confirmation time")
    exp: int = Field(..., description="Expiration timestamp")
    iat: int = Field(..., description="Issued at timestamp")
    aud: str = Field(default="authenticated", description="Audience")
    role: str = Field(default="authenticated", description="User role")
    is_anonymous: bool = Field(default=False, description="Anonymous sign-in session")

    # Supabase-specific claims
    app_metadata: dict = Field(default_factory=dict)
    user_metadata: dict = Field(default_factory=dict)

    @property
    def sign_in_provider(self) -> Optional[str]:
        """Provider used for this session ("anonymous" for anonymous sign-ins)."""
        if self.is_anonymous:
            return "anonymous"
        return self.app_metadata.get("provider")


class Identity(BaseModel):
    """
    The caller identity as seen by the quota system.

    puid is the billing/quota principal the call is attributed to.
    """

    uid: str = Field(..., description="Auth subject ID")
    puid: str = Field(..., description="Principal ID used for quota accounting")
    is_anonymous: bool = Field(default=False, description="Anonymous sign-in session")

    model_config = {"frozen": True}
