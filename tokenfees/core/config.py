from functools import lru_cache
from typing import Dict, Optional, Tuple

from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

# (base fee, volatility weight, max fee)
FEE_PROFILES: Dict[str, Tuple[float, float, float]] = {
    "standard": (0.002, 0.5, 0.02),
    "wide": (0.001, 0.5, 0.03),
}

MARKET_DATA_PROVIDERS = {"static", "coingecko", "coinmarketcap"}
REFERENCE_RATE_PROVIDERS = {"static", "coingecko", "coinmarketcap"}
VOLATILITY_ESTIMATORS = {"series", "daily-change"}
FEE_DIRECTIONS = {"deduct", "add"}


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG,
    MARKET_DATA_PROVIDER, PRICE_CACHE_TTL_SECONDS, COINMARKETCAP_API_KEY).
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Basic app metadata
    app_name: str = "IDRX Token Fee Service"
    debug: bool = False
    version: str = "0.1.0"

    # Market data providers
    market_data_provider: str = "coingecko"
    reference_rate_provider: str = "static"
    coingecko_base_url: AnyHttpUrl = "https://api.coingecko.com/api/v3"
    coinmarketcap_base_url: AnyHttpUrl = "https://pro-api.coinmarketcap.com/v1"
    coinmarketcap_api_key: Optional[str] = None
    http_timeout_seconds: float = 10.0

    # Caching
    price_cache_ttl_seconds: int = 300  # 5 minutes
    volatility_cache_ttl_seconds: int = 900  # 15 minutes

    # Fee policy
    volatility_estimator: str = "series"
    fee_profile: str = "standard"
    base_spread_fee: Optional[float] = None  # overrides profile when set
    volatility_weight: Optional[float] = None
    max_spread_fee: Optional[float] = None
    admin_fee_fraction: float = 0.005
    default_spread_fee_fraction: float = 0.002
    max_custom_spread_fee: float = 0.1
    fee_direction: str = "deduct"

    # Reference rate (IDR per USD)
    default_reference_rate: float = 15500.0
    reference_rate_refresh_seconds: int = 3600
    reference_rate_enabled: bool = True

    def init_post_load(self) -> None:
        """Validate enumerated options; raises ValueError on unsupported values."""
        checks = (
            ("market_data_provider", self.market_data_provider, MARKET_DATA_PROVIDERS),
            (
                "reference_rate_provider",
                self.reference_rate_provider,
                REFERENCE_RATE_PROVIDERS,
            ),
            ("volatility_estimator", self.volatility_estimator, VOLATILITY_ESTIMATORS),
            ("fee_profile", self.fee_profile, set(FEE_PROFILES)),
            ("fee_direction", self.fee_direction, FEE_DIRECTIONS),
        )
        for name, value, allowed in checks:
            if value not in allowed:
                raise ValueError(
                    f"Unsupported {name} '{value}'. Allowed: {sorted(allowed)}"
                )
        if self.price_cache_ttl_seconds <= 0 or self.volatility_cache_ttl_seconds <= 0:
            raise ValueError("cache TTLs must be positive seconds")
        if self.reference_rate_refresh_seconds <= 0:
            raise ValueError("reference_rate_refresh_seconds must be positive")

    def fee_policy_params(self) -> Tuple[float, float, float]:
        """Resolve (base, weight, cap) from the profile plus explicit overrides."""
        base, weight, cap = FEE_PROFILES[self.fee_profile]
        if self.base_spread_fee is not None:
            base = self.base_spread_fee
        if self.volatility_weight is not None:
            weight = self.volatility_weight
        if self.max_spread_fee is not None:
            cap = self.max_spread_fee
        return base, weight, cap


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
