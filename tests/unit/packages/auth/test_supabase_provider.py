"""
Unit tests for the Supabase identity provider.

httpx is patched; no network calls.
"""

import httpx
import pytest
from unittest.mock import AsyncMock, patch

from common.core.config import settings
from common.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ProviderUnavailableError,
)
from packages.auth.providers.models import IdentityProviderType
from packages.auth.providers.supabase_provider import SupabaseAuthProvider

USER_URL = "https://project.supabase.co/auth/v1/user"


def _response(status_code: int, json=None) -> httpx.Response:
    return httpx.Response(
        status_code, json=json, request=httpx.Request("GET", USER_URL)
    )


@patch("common.core.otel_axiom_exporter.axiom_tracer.start_as_current_span")
class TestSupabaseAuthProvider:
    """Tests for SupabaseAuthProvider.verify_token."""

    @pytest.mark.asyncio
    async def test_valid_token(self, mock_start_span):
        get = AsyncMock(
            return_value=_response(
                200, {"id": "uuid-1", "email": "member@example.com", "aud": "authenticated"}
            )
        )
        with patch.object(httpx.AsyncClient, "get", get):
            identity = await SupabaseAuthProvider().verify_token("jwt")

        assert identity.subject_id == "uuid-1"
        assert identity.email == "member@example.com"
        assert identity.provider == IdentityProviderType.SUPABASE
        assert get.call_args.args[0] == USER_URL
        headers = get.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer jwt"
        assert headers["apikey"] == "anon-test-key"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 403, 400])
    async def test_rejected_token(self, mock_start_span, status_code):
        with patch.object(
            httpx.AsyncClient, "get", AsyncMock(return_value=_response(status_code, {}))
        ):
            with pytest.raises(AuthenticationError):
                await SupabaseAuthProvider().verify_token("jwt")

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self, mock_start_span):
        with patch.object(
            httpx.AsyncClient, "get", AsyncMock(return_value=_response(502, {}))
        ):
            with pytest.raises(ProviderUnavailableError):
                await SupabaseAuthProvider().verify_token("jwt")

    @pytest.mark.asyncio
    async def test_network_error_is_unavailable(self, mock_start_span):
        error = httpx.ConnectTimeout("timed out", request=httpx.Request("GET", USER_URL))
        with patch.object(httpx.AsyncClient, "get", AsyncMock(side_effect=error)):
            with pytest.raises(ProviderUnavailableError):
                await SupabaseAuthProvider().verify_token("jwt")

    def test_missing_configuration(self, mock_start_span, monkeypatch):
        monkeypatch.setattr(settings, "supabase_url", None)

        with pytest.raises(ConfigurationError):
            SupabaseAuthProvider()


class TestIdentityProviderFactory:
    """Tests for identity provider singletons."""

    def test_supabase_singleton(self):
        from packages.auth.providers.factory import (
            IdentityProviderFactory,
            get_identity_provider,
        )

        IdentityProviderFactory.clear_cache()
        first = get_identity_provider(IdentityProviderType.SUPABASE)
        second = get_identity_provider(IdentityProviderType.SUPABASE)

        assert first is second
        assert first.get_provider_name() == IdentityProviderType.SUPABASE

        IdentityProviderFactory.clear_cache(IdentityProviderType.SUPABASE)
        assert get_identity_provider(IdentityProviderType.SUPABASE) is not first
