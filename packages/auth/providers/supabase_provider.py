"""Supabase Auth provider implementation."""

import httpx

from common.core.config import settings
from common.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ProviderUnavailableError,
)
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.auth.providers.interface import IdentityProviderInterface
from packages.auth.providers.models import (
    IdentityProviderType,
    SupabaseUser,
    VerifiedIdentity,
)

logger = get_logger(__name__)


class SupabaseAuthProvider(IdentityProviderInterface):
    """Verifies Supabase access tokens against the project's /auth/v1/user endpoint."""

    def __init__(self):
        if not settings.supabase_url or not settings.supabase_anon_key:
            raise ConfigurationError(
                "Supabase configuration missing: supabase_url and supabase_anon_key required"
            )
        self.user_url = f"{settings.supabase_url.rstrip('/')}/auth/v1/user"
        self.anon_key = settings.supabase_anon_key
        self.timeout = settings.identity_timeout_seconds

    @trace_span
    async def verify_token(self, token: str) -> VerifiedIdentity:
        headers = {
            "Authorization": f"Bearer {token}",
            "apikey": self.anon_key,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.user_url, headers=headers)
        except httpx.RequestError as e:
            logger.error(f"Supabase auth unreachable: {e}")
            raise ProviderUnavailableError(
                f"Supabase auth unreachable: {e}", operation="supabase.get_user"
            ) from e

        if response.status_code in (401, 403):
            raise AuthenticationError("Invalid or expired Supabase token")
        if response.status_code >= 500:
            raise ProviderUnavailableError(
                f"Supabase auth returned {response.status_code}",
                operation="supabase.get_user",
            )
        if response.status_code != 200:
            logger.warning(
                f"Unexpected Supabase auth response: {response.status_code}",
                extra={"status_code": response.status_code},
            )
            raise AuthenticationError("Supabase token rejected")

        user = SupabaseUser.model_validate(response.json())
        return VerifiedIdentity(
            subject_id=user.id,
            email=user.email,
            provider=IdentityProviderType.SUPABASE,
        )

    def get_provider_name(self) -> IdentityProviderType:
        return IdentityProviderType.SUPABASE
