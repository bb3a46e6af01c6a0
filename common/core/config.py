from typing import Optional, List
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.core.constants import Environment, IdentityProviderType, STRIPE_PRICE_PREFIX
from common.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Environment Profile
    environment: Environment = Environment.LOCAL

    # API Settings
    app_name: str = "cusp-billing"
    api_version: str = "1.0.0"
    debug: bool = False
    cors_allowed_origins: List[str] = ["http://localhost:8081"]

    # Database Components
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "cusp"
    db_pool_size: int = 10
    db_pool_overflow: int = 5

    @property
    def database_url(self) -> str:
        """Construct database URL from components."""
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    # Redis (rate limiter storage)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0

    @property
    def redis_connection_url(self) -> str:
        """Construct Redis URL from components."""
        if self.redis_password:
            return f"redis://:{self.redis_password}@{self.redis_host}:{self.redis_port}/{self.redis_db}"
        else:
            return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    # OpenTelemetry
    otel_service_name: str = "cusp-billing"
    otel_service_version: str = "1.0.0"

    # Axiom (optional; spans stay local when unset)
    axiom_token: Optional[str] = None
    axiom_dataset: str = "cusp-billing"

    # Identity provider
    identity_provider: IdentityProviderType = IdentityProviderType.SUPABASE
    identity_timeout_seconds: float = 5.0

    # Supabase Auth
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None

    # Firebase Auth
    firebase_project_id: Optional[str] = None
    google_application_credentials: Optional[str] = None

    # Stripe
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_api_version: str = "2024-06-20"
    stripe_price_monthly: str = ""
    stripe_price_yearly: str = ""
    stripe_price_cusp_oneoff: str = ""

    # Stripe call policy
    stripe_timeout_seconds: float = 10.0
    stripe_max_attempts: int = 3
    stripe_retry_base_seconds: float = 0.5
    stripe_retry_max_seconds: float = 4.0
    stripe_subscription_list_limit: int = 10

    # Checkout / portal redirects
    site_url: str = "https://www.astrocusp.com.au"
    checkout_success_path: str = "/auth/success?type={plan}"
    checkout_cancel_path: str = "/subscription"
    portal_return_url: str = "https://www.astrocusp.com.au/settings/account"

    # Entitlement policy
    billing_override_emails: List[str] = []
    billing_override_plan: str = "yearly"
    billing_override_renewal_days: int = 365
    billing_mirror_max_age_seconds: int = 86400
    billing_ambiguous_recheck_seconds: int = 60

    @field_validator("billing_override_emails", mode="after")
    @classmethod
    def normalize_override_emails(cls, v: List[str]) -> List[str]:
        return [email.strip().lower() for email in v if email.strip()]

    @property
    def stripe_prices(self) -> dict[str, str]:
        """Configured plan label -> Stripe price id (unset prices omitted)."""
        prices = {
            "monthly": self.stripe_price_monthly,
            "yearly": self.stripe_price_yearly,
            "oneoff": self.stripe_price_cusp_oneoff,
        }
        return {label: price for label, price in prices.items() if price}

    def ensure_billing_configured(self) -> None:
        """Fail fast on missing or malformed billing configuration."""
        missing = []
        if not self.stripe_secret_key:
            missing.append("stripe_secret_key")
        if not self.stripe_webhook_secret:
            missing.append("stripe_webhook_secret")
        if not self.stripe_price_monthly and not self.stripe_price_yearly:
            missing.append("stripe_price_monthly or stripe_price_yearly")
        if self.identity_provider == IdentityProviderType.SUPABASE and not (
            self.supabase_url and self.supabase_anon_key
        ):
            missing.append("supabase_url and supabase_anon_key")
        if missing:
            raise ConfigurationError(
                f"Missing billing configuration: {', '.join(missing)}"
            )

        malformed = [
            f"{label}={price}"
            for label, price in self.stripe_prices.items()
            if not price.startswith(STRIPE_PRICE_PREFIX)
        ]
        if malformed:
            raise ConfigurationError(
                f"Stripe price ids must start with '{STRIPE_PRICE_PREFIX}': {', '.join(malformed)}"
            )


settings = Settings()
