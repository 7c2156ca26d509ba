"""
Application configuration.

Loads settings from environment variables and .env file.
All configuration is centralized here, no scattered magic strings.
"""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        debug: Enable debug mode. Must be False in production.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        rate_limit_default: Default rate limit for all endpoints.
        rate_limit_heavy: Rate limit for order submission and swaps.
        rate_limit_enabled: Switch the limiter off (tests, trusted networks).
        database_url: SQLAlchemy URL of the ledger/order store.
        admin_api_key: Shared secret expected in the X-Admin-Key header.
            Admin routes are refused while it is empty.
        price_endpoints: Binance-compatible endpoints, primary first.
        aggregator_url: CoinGecko-compatible API base URL.
        price_timeout_seconds: Hard timeout per upstream price request.
        settlement_currency: Currency every order settles in.
        sweep_adjustment_rate: Fraction of the balance moved per sweep
            settlement (0.001 = 0.1%).
        sweep_interval_seconds: Period of the automatic sweep.
        sweep_lease_seconds: Age after which a sweep lease is considered
            abandoned and may be taken over.
        sweep_require_expiry: Only settle orders whose duration elapsed.
        scheduler_enabled: Start the periodic sweep with the application.
        price_history_size: Samples kept per ticker in the price tracker.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    project_name: str = "Settlement Engine"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    rate_limit_default: str = "60/minute"
    rate_limit_heavy: str = "10/minute"
    rate_limit_enabled: bool = True

    database_url: str = "sqlite:///./settlement.db"
    admin_api_key: str = ""

    price_endpoints: list[str] = [
        "https://api.binance.com/api/v3",
        "https://api1.binance.com/api/v3",
        "https://api2.binance.com/api/v3",
        "https://api3.binance.com/api/v3",
    ]
    aggregator_url: str = "https://api.coingecko.com/api/v3"
    price_timeout_seconds: float = 10.0

    settlement_currency: str = "USDT"
    sweep_adjustment_rate: Decimal = Decimal("0.001")
    sweep_interval_seconds: int = 300
    sweep_lease_seconds: int = 900
    sweep_require_expiry: bool = True
    scheduler_enabled: bool = True
    price_history_size: int = 100


settings = Settings()
