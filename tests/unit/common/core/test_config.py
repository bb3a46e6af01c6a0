"""
Unit tests for billing configuration checks.
"""

import pytest

from common.core.config import Settings
from common.core.constants import IdentityProviderType
from common.core.exceptions import ConfigurationError


def _settings(**overrides) -> Settings:
    values = {
        "stripe_secret_key": "sk_test_123",
        "stripe_webhook_secret": "whsec_123",
        "stripe_price_monthly": "price_monthly",
        "stripe_price_yearly": "price_yearly",
        "supabase_url": "https://project.supabase.co",
        "supabase_anon_key": "anon",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestEnsureBillingConfigured:
    """Tests for Settings.ensure_billing_configured."""

    def test_complete_configuration(self):
        _settings().ensure_billing_configured()

    @pytest.mark.parametrize(
        "field", ["stripe_secret_key", "stripe_webhook_secret"]
    )
    def test_missing_secret(self, field):
        with pytest.raises(ConfigurationError) as exc_info:
            _settings(**{field: ""}).ensure_billing_configured()

        assert field in str(exc_info.value)

    def test_one_recurring_price_is_enough(self):
        _settings(stripe_price_yearly="").ensure_billing_configured()

    def test_no_recurring_price(self):
        with pytest.raises(ConfigurationError):
            _settings(
                stripe_price_monthly="", stripe_price_yearly=""
            ).ensure_billing_configured()

    def test_malformed_price_id(self):
        with pytest.raises(ConfigurationError) as exc_info:
            _settings(stripe_price_cusp_oneoff="prod_123").ensure_billing_configured()

        assert "oneoff=prod_123" in str(exc_info.value)

    def test_supabase_required_only_when_selected(self):
        with pytest.raises(ConfigurationError):
            _settings(supabase_url=None).ensure_billing_configured()

        _settings(
            supabase_url=None, identity_provider=IdentityProviderType.FIREBASE
        ).ensure_billing_configured()


class TestSettingsValues:
    def test_stripe_prices_omits_unset(self):
        assert _settings().stripe_prices == {
            "monthly": "price_monthly",
            "yearly": "price_yearly",
        }

    def test_override_emails_normalized(self):
        settings = _settings(billing_override_emails=[" VIP@Example.com ", ""])
        assert settings.billing_override_emails == ["vip@example.com"]
