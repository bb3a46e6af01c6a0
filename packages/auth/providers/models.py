from typing import Optional
from pydantic import BaseModel

from common.core.constants import IdentityProviderType

__all__ = ["IdentityProviderType", "VerifiedIdentity", "SupabaseUser"]


class VerifiedIdentity(BaseModel):
    """Standardized result of verifying a bearer token"""

    subject_id: str  # Provider's unique user ID
    email: Optional[str] = None
    provider: IdentityProviderType


class SupabaseUser(BaseModel):
    """Subset of the Supabase Auth /user response we rely on"""

    id: str
    email: Optional[str] = None
    aud: Optional[str] = None
