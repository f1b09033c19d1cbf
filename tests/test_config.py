"""Unit tests for settings validation."""
from decimal import Decimal

import pytest

from app.core.config import DEFAULT_MONGODB_URI, Settings


class TestSettingsValidation:
    """Test validate_required_settings."""

    def test_defaults_are_valid(self):
        Settings(ENVIRONMENT="development").validate_required_settings()

    def test_canonical_currency_needs_a_rate(self):
        settings = Settings(CANONICAL_CURRENCY="CHF", EXCHANGE_RATES={"USD": Decimal("1")})
        with pytest.raises(ValueError, match="CHF"):
            settings.validate_required_settings()

    def test_unknown_rate_source(self):
        with pytest.raises(ValueError, match="RATE_SOURCE"):
            Settings(RATE_SOURCE="carrier-pigeon").validate_required_settings()

    def test_remote_source_needs_url(self):
        with pytest.raises(ValueError, match="EXCHANGE_RATE_API_URL"):
            Settings(RATE_SOURCE="remote", EXCHANGE_RATE_API_URL=None).validate_required_settings()

    def test_production_needs_real_database(self):
        settings = Settings(ENVIRONMENT="production", MONGODB_URI=DEFAULT_MONGODB_URI)
        with pytest.raises(ValueError, match="MONGODB_URI"):
            settings.validate_required_settings()

    def test_rates_parsed_as_decimals(self):
        settings = Settings(EXCHANGE_RATES={"USD": "1", "EUR": "0.5"})
        assert settings.exchange_rates["EUR"] == Decimal("0.5")
