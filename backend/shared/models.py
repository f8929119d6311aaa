"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AuthenticatedUser(BaseModel):
    """
    Represents an authenticated caller.

    This model is populated from JWT claims and made available
    to route handlers via dependency injection. Anonymous Supabase
    sessions are authenticated callers too; they carry is_anonymous=True
    and usually no email.
    """

    id: str = Field(..., description="User ID (auth subject)")
    email: Optional[str] = Field(None, description="User's email address")
    email_verified: bool = Field(default=False, description="Whether email is verified")
    is_anonymous: bool = Field(default=False, description="Anonymous sign-in session")
    sign_in_provider: Optional[str] = Field(None, description="Auth provider used to sign in")

    last_sign_in: Optional[datetime] = Field(None, description="Last sign-in time")

    role: str = Field(default="user", description="User role")

    model_config = {
        "frozen": True,
        "extra": "ignore",
    }


class CamelModel(BaseModel):
    """
    Base for API bodies serialized with camelCase keys.

    Fields are declared in snake_case and accepted under either name.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OkResponse(CamelModel):
    """Body of operations that only acknowledge success."""

    ok: bool = True
