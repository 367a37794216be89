"""Runtime configuration.

All tunable constants (exchange rate, margins, sync thresholds) live here and
are passed into the components that need them. Values are read from the
environment by load_settings().
"""

import os
from dataclasses import dataclass, field
from typing import Literal

DropshippingMode = Literal["email", "api"]


@dataclass(frozen=True)
class PricingConfig:
    """Pricing constants shared by the importers and the sync runner."""

    usd_to_nok_rate: float = 10.5
    profit_margin: float = 2.0  # multiplier used by the bulk import route (100% margin)
    compare_at_price_multiplier: float = 1.3
    default_supplier_price: float = 9.99  # USD, used when a scrape yields no price
    default_margin: str = "50%"
    target_margin_pct: float = 55.0
    min_markup: float = 1.5
    min_stock_when_in_stock: int = 5


@dataclass(frozen=True)
class ScraperSettings:
    """HTTP behaviour shared by all scrapers."""

    timeout: int = 30  # seconds
    min_delay_ms: int = 1000
    max_delay_ms: int = 2500
    max_retries: int = 0
    locale: str = "en-US,en;q=0.9,no;q=0.8,nb;q=0.7"
    headless: bool = True


@dataclass(frozen=True)
class DropshippingConfig:
    mode: DropshippingMode = "email"
    supplier_name: str | None = None
    supplier_order_email: str | None = None
    api_base_url: str | None = None
    api_key: str | None = None


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./electrohypex.db"
    default_store_id: str = "default"
    pricing: PricingConfig = field(default_factory=PricingConfig)
    scraper: ScraperSettings = field(default_factory=ScraperSettings)
    dropshipping: DropshippingConfig = field(default_factory=DropshippingConfig)
    ai_model: str = "claude-sonnet-4-20250514"
    ai_cache_dir: str = "output/.ai_cache"


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(
            f"Environment variable {name} must be a number, got {value!r}"
        ) from None


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, default))


def load_pricing_config() -> PricingConfig:
    defaults = PricingConfig()
    return PricingConfig(
        usd_to_nok_rate=_env_float("USD_TO_NOK_RATE", defaults.usd_to_nok_rate),
        profit_margin=_env_float("PROFIT_MARGIN", defaults.profit_margin),
        compare_at_price_multiplier=_env_float(
            "COMPARE_AT_PRICE_MULTIPLIER", defaults.compare_at_price_multiplier
        ),
        default_supplier_price=_env_float(
            "DEFAULT_SUPPLIER_PRICE", defaults.default_supplier_price
        ),
        default_margin=os.getenv("DEFAULT_PROFIT_MARGIN", defaults.default_margin),
        target_margin_pct=_env_float("TARGET_MARGIN_PCT", defaults.target_margin_pct),
        min_markup=_env_float("MIN_MARKUP", defaults.min_markup),
        min_stock_when_in_stock=_env_int(
            "MIN_STOCK_WHEN_IN_STOCK", defaults.min_stock_when_in_stock
        ),
    )


def load_dropshipping_config() -> DropshippingConfig:
    mode_env = (os.getenv("DROPSHIPPING_MODE") or "").lower()
    supplier = os.getenv("DROPSHIPPING_SUPPLIER")

    return DropshippingConfig(
        mode="api" if mode_env == "api" else "email",
        supplier_name=supplier.lower() if supplier else None,
        supplier_order_email=os.getenv("DROPSHIPPING_SUPPLIER_EMAIL"),
        api_base_url=os.getenv("DROPSHIPPING_API_BASE_URL"),
        api_key=os.getenv("DROPSHIPPING_API_KEY"),
    )


def load_settings() -> Settings:
    """Build Settings from environment variables, falling back to defaults."""
    defaults = ScraperSettings()
    scraper = ScraperSettings(
        timeout=_env_int("SCRAPER_TIMEOUT", defaults.timeout),
        min_delay_ms=_env_int("SCRAPER_MIN_DELAY_MS", defaults.min_delay_ms),
        max_delay_ms=_env_int("SCRAPER_MAX_DELAY_MS", defaults.max_delay_ms),
        max_retries=_env_int("SCRAPER_MAX_RETRIES", defaults.max_retries),
        headless=os.getenv("HEADLESS", "true").lower() != "false",
    )

    return Settings(
        database_url=os.getenv("DATABASE_URL", Settings.database_url),
        default_store_id=os.getenv("STORE_ID", Settings.default_store_id),
        pricing=load_pricing_config(),
        scraper=scraper,
        dropshipping=load_dropshipping_config(),
        ai_model=os.getenv("AI_MODEL", Settings.ai_model),
        ai_cache_dir=os.getenv("AI_CACHE_DIR", Settings.ai_cache_dir),
    )
