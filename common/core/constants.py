from enum import Enum


class Environment(str, Enum):
    """Environment profiles."""

    LOCAL = "local"
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class IdentityProviderType(str, Enum):
    """Hosted identity providers that can verify bearer tokens."""

    SUPABASE = "supabase"
    FIREBASE = "firebase"


STRIPE_PRICE_PREFIX = "price_"
