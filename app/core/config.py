"""Core application configuration and settings.

Handles environment variables, database/cache connections, currency
settings and catalog limits.
"""
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional
from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings


# Load environment variables
ROOT = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=ROOT / ".env", override=True)
load_dotenv(override=True)

DEFAULT_MONGODB_URI = "mongodb://localhost:27017"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # MongoDB
    mongodb_uri: str = Field(default=DEFAULT_MONGODB_URI, alias="MONGODB_URI")
    mongodb_db: str = Field(default="storefront", alias="MONGODB_DB")
    products_collection: str = Field(default="products", alias="PRODUCTS_COLLECTION")
    users_collection: str = Field(default="users", alias="USERS_COLLECTION")

    # Currency
    canonical_currency: str = Field(default="USD", alias="CANONICAL_CURRENCY")
    # Units of each currency per one unit of the canonical currency
    exchange_rates: Dict[str, Decimal] = Field(
        default_factory=lambda: {
            "USD": Decimal("1"),
            "EUR": Decimal("0.92"),
            "GBP": Decimal("0.79"),
            "CAD": Decimal("1.36"),
            "AUD": Decimal("1.52"),
            "JPY": Decimal("149.50"),
            "INR": Decimal("83.20"),
        },
        alias="EXCHANGE_RATES"
    )
    rate_source: str = Field(default="static", alias="RATE_SOURCE")
    exchange_rate_api_url: Optional[str] = Field(default=None, alias="EXCHANGE_RATE_API_URL")
    exchange_rate_timeout: float = Field(default=5.0, alias="EXCHANGE_RATE_TIMEOUT")
    rate_cache_ttl_hours: int = Field(default=6, alias="RATE_CACHE_TTL_HOURS")
    price_decimal_places: int = Field(default=2, alias="PRICE_DECIMAL_PLACES")

    # Redis Configuration (exchange-rate cache)
    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_password: Optional[str] = Field(default=None, alias="REDIS_PASSWORD")
    redis_db: int = Field(default=0, alias="REDIS_DB")

    # Catalog limits
    search_result_limit: int = Field(default=12, alias="SEARCH_RESULT_LIMIT")
    # Upper bound for price and originalPrice, in the submitted currency
    max_price: Decimal = Field(default=Decimal("1000000000"), alias="MAX_PRICE")
    image_allowed_formats: List[str] = Field(
        default_factory=lambda: ["jpg", "jpeg", "png", "gif", "webp", "svg", "avif"],
        alias="IMAGE_ALLOWED_FORMATS"
    )
    image_max_bytes: int = Field(default=5 * 1024 * 1024, alias="IMAGE_MAX_BYTES")  # 5 MB

    # Application Settings
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # API Settings
    api_prefix: str = Field(default="/api", alias="API_PREFIX")
    cors_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000"
        ],
        alias="CORS_ORIGINS"
    )

    class Config:
        case_sensitive = False
        env_file = ".env"
        populate_by_name = True
        extra = "ignore"

    def validate_required_settings(self):
        """Validate that required settings are present."""
        canonical = self.canonical_currency.upper()
        if canonical not in {code.upper() for code in self.exchange_rates}:
            raise ValueError(
                f"EXCHANGE_RATES has no rate for the canonical currency {canonical}."
            )
        if self.rate_source not in ("static", "remote"):
            raise ValueError(
                f"RATE_SOURCE must be 'static' or 'remote', got '{self.rate_source}'."
            )
        if self.rate_source == "remote" and not self.exchange_rate_api_url:
            raise ValueError(
                "EXCHANGE_RATE_API_URL must be set when RATE_SOURCE=remote."
            )
        if self.environment == "production" and self.mongodb_uri == DEFAULT_MONGODB_URI:
            raise ValueError(
                "MONGODB_URI must point at the production database."
            )


# Global settings instance
settings = Settings()


# Validate settings on module import (only in non-test environments)
if settings.environment != "test":
    try:
        settings.validate_required_settings()
    except ValueError as e:
        print(f"Configuration Error: {e}")
        # Don't raise in development to allow partial setup
        if settings.environment == "production":
            raise
