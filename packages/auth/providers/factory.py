"""Factory for creating singleton identity provider instances."""

from typing import Dict, Optional
from packages.auth.providers.interface import IdentityProviderInterface
from packages.auth.providers.models import IdentityProviderType
from packages.auth.providers.firebase_provider import FirebaseAuthProvider
from packages.auth.providers.supabase_provider import SupabaseAuthProvider


class IdentityProviderFactory:
    """Factory for creating and managing identity provider singletons."""

    _instances: Dict[IdentityProviderType, IdentityProviderInterface] = {}

    @classmethod
    def get_provider(cls, provider: IdentityProviderType) -> IdentityProviderInterface:
        """Get or create a singleton instance of the specified provider.

        Raises:
            ValueError: If the provider is not supported
        """
        if provider not in cls._instances:
            cls._instances[provider] = cls._create_provider(provider)

        return cls._instances[provider]

    @classmethod
    def _create_provider(cls, provider: IdentityProviderType) -> IdentityProviderInterface:
        if provider == IdentityProviderType.SUPABASE:
            return SupabaseAuthProvider()
        elif provider == IdentityProviderType.FIREBASE:
            return FirebaseAuthProvider()
        else:
            raise ValueError(
                f"Unsupported identity provider: {provider}. Supported: SUPABASE, FIREBASE."
            )

    @classmethod
    def clear_cache(cls, provider: Optional[IdentityProviderType] = None):
        """Clear cached provider instances.

        Args:
            provider: Specific provider to clear, or None to clear all
        """
        if provider:
            cls._instances.pop(provider, None)
        else:
            cls._instances.clear()


def get_identity_provider(provider: IdentityProviderType) -> IdentityProviderInterface:
    """Convenience function to get an identity provider instance."""
    return IdentityProviderFactory.get_provider(provider)
