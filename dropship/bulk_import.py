"""Admin bulk import of supplier URLs.

Unlike dropship.importer, a URL that is already in the catalog is rejected
with "Produktet eksisterer allerede" and the existing product is left alone.
Prices use the configured exchange rate and flat profit multiplier.
"""

import json
import time
from typing import Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from dropship.catalog.helpers import (
    assign_category,
    collect_images,
    generate_id,
    short_description,
    slugify,
    spec_tags,
)
from dropship.catalog.models import Product, ProductVariant
from dropship.config import PricingConfig, Settings
from dropship.errors import DuplicateProductError
from dropship.models import ImportResult, ScrapedProductData, has_variants
from dropship.pricing import round_nok
from dropship.scrapers.registry import get_scraper
from dropship.scrapers.supplier_identifier import (
    SUPPORTED_SUPPLIERS_MESSAGE,
    identify_supplier,
)
from dropship.titles.title_improver import improve_title

PAUSE_BETWEEN_ITEMS = 2.0  # seconds


def validate_urls(urls: list[str]) -> None:
    """Reject the whole batch if any entry is not an http(s) URL.

    Raises:
        ValueError: With the Norwegian message shown to the admin
    """
    if not isinstance(urls, list) or not urls:
        raise ValueError("URL-er er påkrevd (array)")
    for url in urls:
        if not isinstance(url, str) or not url.startswith(("http://", "https://")):
            raise ValueError(f"Ugyldig URL: {url}")


def base_supplier_price(data: ScrapedProductData, pricing: PricingConfig) -> float:
    """Lowest variant price, else the product price, else the default estimate."""
    if data.variants:
        price = min(variant.price for variant in data.variants)
    else:
        price = data.price.amount
    return price or pricing.default_supplier_price


def import_product(session: Session, url: str, settings: Optional[Settings] = None) -> ImportResult:
    """Import one URL, rejecting products that are already in the catalog.

    Never raises; every failure is returned as an unsuccessful ImportResult.
    """
    settings = settings or Settings()
    pricing = settings.pricing

    try:
        supplier = identify_supplier(url)
        if supplier is None:
            return ImportResult(success=False, url=url, error=SUPPORTED_SUPPLIERS_MESSAGE)

        with get_scraper(supplier, settings.scraper, pricing=settings.pricing) as scraper:
            result = scraper.scrape_product(url)
        if not result.success or result.data is None:
            return ImportResult(
                success=False, url=url, error=result.error or "Ukjent feil ved scraping"
            )
        data = result.data

        existing = session.execute(
            select(Product).where(Product.supplier_url == url).limit(1)
        ).scalars().first()
        if existing is not None:
            raise DuplicateProductError(url, existing.name)

        images = collect_images(data.images, data.variants)
        logger.info(
            f"[Bulk Import] Collected {len(images)} images "
            f"({len(data.images)} base + {sum(1 for v in data.variants if v.image)} variant)"
        )

        supplier_price = round_nok(base_supplier_price(data, pricing) * pricing.usd_to_nok_rate)
        selling_price = round_nok(supplier_price * pricing.profit_margin)
        compare_price = round_nok(selling_price * pricing.compare_at_price_multiplier)

        title = improve_title(data.title) or data.title
        sku = f"TEMU-{generate_id().upper()}"
        slug = f"{slugify(title) or 'produkt'}-{generate_id(4)}"
        short = short_description(data.description)

        product = Product(
            name=title,
            slug=slug,
            description=data.description or short,
            short_description=short,
            price=selling_price,
            compare_at_price=compare_price,
            supplier_price=supplier_price,
            images=json.dumps(images),
            tags=spec_tags(data.specs, limit=10),
            category=assign_category(data.title),
            sku=sku,
            is_active=True,
            supplier_url=url,
            supplier_name=supplier,
            store_id=settings.default_store_id,
        )
        if has_variants(data):
            product.variants = _build_variants(data, sku, pricing)

        session.add(product)
        session.commit()

        logger.success(f"[Bulk Import] Created '{product.name}' ({selling_price} kr)")
        return ImportResult(
            success=True,
            url=url,
            product_id=product.id,
            product_name=product.name,
            images=len(images),
            price=selling_price,
            variants=len(product.variants),
        )

    except DuplicateProductError as e:
        logger.info(f"[Bulk Import] Skipping existing product: {url[:80]}")
        return ImportResult(success=False, url=url, product_name=e.product_name, error=str(e))
    except Exception as e:
        session.rollback()
        logger.error(f"[Bulk Import] Failed for {url[:80]}: {e}")
        return ImportResult(success=False, url=url, error=str(e) or "Ukjent feil")


def _build_variants(
    data: ScrapedProductData, sku: str, pricing: PricingConfig
) -> list[ProductVariant]:
    variants = []
    for index, variant in enumerate(data.variants, start=1):
        supplier_price = round_nok(variant.price * pricing.usd_to_nok_rate)
        selling_price = round_nok(supplier_price * pricing.profit_margin)
        if variant.compare_at_price:
            compare_price = round_nok(
                variant.compare_at_price * pricing.usd_to_nok_rate * pricing.profit_margin
            )
        else:
            compare_price = round_nok(selling_price * pricing.compare_at_price_multiplier)

        variants.append(
            ProductVariant(
                name=variant.name,
                sku=f"{sku}-V{index}",
                price=selling_price,
                compare_at_price=compare_price,
                supplier_price=supplier_price,
                image=variant.image,
                attributes=dict(variant.attributes),
                stock=variant.stock,
                is_active=True,
                sort_order=index,
            )
        )
    return variants


def run_bulk_import(
    session: Session, urls: list[str], settings: Optional[Settings] = None
) -> list[ImportResult]:
    """Validate all URLs, then import them sequentially with a fixed pause.

    Raises:
        ValueError: If any URL is invalid; nothing is imported in that case
    """
    validate_urls(urls)

    results = []
    for index, url in enumerate(urls):
        results.append(import_product(session, url, settings))
        if index < len(urls) - 1:
            time.sleep(PAUSE_BETWEEN_ITEMS)

    succeeded = sum(1 for r in results if r.success)
    logger.info(f"[Bulk Import] {succeeded}/{len(results)} products imported")
    return results
