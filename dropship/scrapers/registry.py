"""Supplier scraper registry.

Maps supplier tags to scraper classes. Classes are referenced by import path
and only imported on first use, so resolving the Temu or eBay scraper never
loads Playwright. Adding a supplier only requires an entry in
SCRAPER_REGISTRY and a host pattern in supplier_identifier.
"""

import importlib
from typing import Type

from loguru import logger

from dropship.config import PricingConfig, ScraperSettings
from dropship.errors import UnsupportedSupplierError
from dropship.models import ScraperResult, SupplierTag
from dropship.scrapers.base_scraper import BaseScraper
from dropship.scrapers.supplier_identifier import (
    SUPPORTED_SUPPLIERS_MESSAGE,
    identify_supplier,
)

# Registry of available scrapers ("module:Class")
SCRAPER_REGISTRY: dict[str, str] = {
    "alibaba": "dropship.scrapers.alibaba_scraper:AlibabaScraper",
    "ebay": "dropship.scrapers.ebay_scraper:EbayScraper",
    "temu": "dropship.scrapers.temu_scraper:TemuScraper",
}

_loaded: dict[str, Type[BaseScraper]] = {}


def get_scraper_class(supplier: str) -> Type[BaseScraper]:
    """Get scraper class for a supplier, importing its module on first use.

    Args:
        supplier: Supplier tag (e.g., 'temu')

    Returns:
        Scraper class for the supplier

    Raises:
        ValueError: If supplier is not supported
    """
    if supplier not in SCRAPER_REGISTRY:
        available = ", ".join(SCRAPER_REGISTRY.keys())
        raise ValueError(f"Unknown supplier: {supplier}. Available: {available}")

    if supplier not in _loaded:
        module_path, class_name = SCRAPER_REGISTRY[supplier].split(":")
        logger.debug(f"Loading scraper module {module_path}")
        module = importlib.import_module(module_path)
        _loaded[supplier] = getattr(module, class_name)

    return _loaded[supplier]


def get_scraper(
    supplier: SupplierTag, settings: ScraperSettings | None = None, **kwargs
) -> BaseScraper:
    """Instantiate the scraper for a supplier tag."""
    return get_scraper_class(supplier)(settings=settings, **kwargs)


def get_scraper_for_url(
    url: str, settings: ScraperSettings | None = None, **kwargs
) -> BaseScraper:
    """Instantiate the scraper for whichever supplier hosts url.

    Raises:
        UnsupportedSupplierError: If the host is not a known supplier
    """
    supplier = identify_supplier(url)
    if supplier is None:
        raise UnsupportedSupplierError(url, SUPPORTED_SUPPLIERS_MESSAGE)
    return get_scraper(supplier, settings, **kwargs)


def scrape_product(
    url: str,
    settings: ScraperSettings | None = None,
    pricing: PricingConfig | None = None,
) -> ScraperResult:
    """Scrape url with the matching supplier scraper.

    Unsupported hosts come back as an unsuccessful result rather than an
    exception, like every other scrape failure.
    """
    try:
        scraper = get_scraper_for_url(url, settings, pricing=pricing)
    except UnsupportedSupplierError as e:
        return ScraperResult(success=False, error=str(e))

    with scraper:
        return scraper.scrape_product(url)


def get_available_suppliers() -> list[str]:
    """Get list of supported supplier tags.

    Returns:
        List of supplier identifiers
    """
    return list(SCRAPER_REGISTRY.keys())
