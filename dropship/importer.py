"""Import supplier products into the catalog.

Entry point for single URLs and the automated bulk/sync jobs. Re-importing a
URL that is already in the catalog updates that product in place; the admin
bulk route in dropship.bulk_import rejects duplicates instead.
"""

import json
import random
import time
from datetime import datetime, timezone
from typing import Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dropship.ai.description_generator import generate_description
from dropship.catalog.helpers import (
    assign_category,
    collect_images,
    extract_supplier_product_id,
    generate_sku,
    slugify,
    spec_tags,
    unique_slug,
)
from dropship.catalog.models import OrderItem, Product, ProductVariant
from dropship.config import Settings
from dropship.errors import ScrapeFailedError, UnsupportedSupplierError
from dropship.models import ImportResult, ScrapedProductData, has_variants
from dropship.pricing import (
    ProfitMarginInput,
    calculate_sale_price,
    compare_at_price,
    convert_to_nok,
    round_nok,
)
from dropship.scrapers.registry import SCRAPER_REGISTRY, get_scraper
from dropship.scrapers.supplier_identifier import identify_supplier
from dropship.titles.title_improver import improve_title

BULK_DELAY_RANGE = (1.0, 2.0)  # seconds between bulk items

VARIANT_FIELDS = (
    "name",
    "sku",
    "price",
    "compare_at_price",
    "supplier_price",
    "image",
    "attributes",
    "stock",
    "is_active",
    "sort_order",
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _scrape(url: str, supplier: str, settings: Settings) -> ScrapedProductData:
    with get_scraper(supplier, settings.scraper, pricing=settings.pricing) as scraper:
        result = scraper.scrape_product(url)
    if not result.success or result.data is None:
        raise ScrapeFailedError(result.error or "Unknown scraping error", url)
    return result.data


def find_existing_product(
    session: Session, url: str, supplier_product_id: Optional[str]
) -> Optional[Product]:
    """Find a product by supplier URL, else by supplier product id.

    An exact URL match wins. The id lookup only runs when no row has the
    URL yet, so the matched row can take it without a unique clash.
    """
    by_url = session.execute(
        select(Product).where(Product.supplier_url == url).limit(1)
    ).scalars().first()
    if by_url is not None or not supplier_product_id:
        return by_url

    return session.execute(
        select(Product).where(Product.supplier_product_id == supplier_product_id).limit(1)
    ).scalars().first()


def import_product_from_url(
    session: Session,
    url: str,
    profit_margin: ProfitMarginInput,
    settings: Optional[Settings] = None,
    ai_descriptions: bool = False,
) -> Product:
    """Scrape a supplier URL and create or update the matching catalog product.

    Args:
        session: Database session
        url: Supplier product URL
        profit_margin: Margin in any form calculate_sale_price accepts
        settings: Runtime settings (defaults when omitted)
        ai_descriptions: Replace the scraped description with an AI-written one

    Returns:
        The created or updated product

    Raises:
        UnsupportedSupplierError: If no scraper handles the URL
        ScrapeFailedError: If the scrape fails; nothing is written
        SQLAlchemyError: If the write fails; the session is rolled back
    """
    settings = settings or Settings()

    supplier = identify_supplier(url)
    if supplier is None:
        raise UnsupportedSupplierError(url)

    logger.info(f"Importing {supplier} product: {url[:80]}")
    data = _scrape(url, supplier, settings)

    supplier_price = round_nok(
        convert_to_nok(data.price.amount, data.price.currency, settings.pricing)
    )
    sale_price = round_nok(calculate_sale_price(supplier_price, profit_margin))
    supplier_product_id = extract_supplier_product_id(url)

    existing = find_existing_product(session, url, supplier_product_id)

    title = improve_title(data.title) or data.title
    category = assign_category(data.title)
    slug = unique_slug(
        session,
        slugify(title) or f"product-{int(time.time() * 1000)}",
        exclude_id=existing.id if existing else None,
    )

    description = data.description
    if ai_descriptions:
        description = generate_description(
            name=title,
            cache_key=f"{supplier}_{supplier_product_id}",
            category=category,
            price=sale_price,
            notes=", ".join(list(data.specs)[:10]),
            fallback=data.description,
            model=settings.ai_model,
            cache_dir=settings.ai_cache_dir,
        ).as_text()

    fields = dict(
        name=title,
        slug=slug,
        description=description,
        category=category,
        price=sale_price,
        compare_at_price=round_nok(compare_at_price(sale_price)),
        supplier_price=supplier_price,
        images=json.dumps(collect_images(data.images, data.variants)),
        tags=spec_tags(data.specs),
        supplier_url=url,
        supplier_name=supplier.upper(),
        supplier_product_id=supplier_product_id,
        profit_margin=str(profit_margin),
        last_synced=_now(),
        auto_import=True,
        is_active=True,
    )

    try:
        if existing is not None:
            for key, value in fields.items():
                setattr(existing, key, value)
            product = existing
            logger.info(f"Updating existing product {product.id} ({product.slug})")
        else:
            product = Product(
                **fields,
                sku=generate_sku(data.title),
                store_id=settings.default_store_id,
            )
            session.add(product)

        scraped_variants = (
            build_variants(data, product.sku, profit_margin, settings)
            if has_variants(data)
            else []
        )
        apply_variants(session, product, scraped_variants)

        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise

    logger.success(
        f"Imported '{product.name}' (id={product.id}, {sale_price} kr, "
        f"{active_variant_count(product)} variants)"
    )
    return product


def active_variant_count(product: Product) -> int:
    return sum(1 for variant in product.variants if variant.is_active)


def apply_variants(
    session: Session, product: Product, scraped: list[ProductVariant]
) -> None:
    """Update the product's variants in place from a freshly scraped list.

    Variants are matched by position, which is also their -V{index} SKU.
    Existing rows are overwritten, extra scraped variants are added, and
    leftover rows are deleted unless an order item references them, in
    which case they are deactivated instead.
    """
    current = list(product.variants)

    for index, variant in enumerate(scraped):
        if index < len(current):
            for field in VARIANT_FIELDS:
                setattr(current[index], field, getattr(variant, field))
        else:
            product.variants.append(variant)

    leftovers = current[len(scraped):]
    if not leftovers:
        return

    ordered_ids = set(
        session.execute(
            select(OrderItem.variant_id).where(
                OrderItem.variant_id.in_([v.id for v in leftovers])
            )
        ).scalars()
    )
    for variant in leftovers:
        if variant.id in ordered_ids:
            variant.is_active = False
        else:
            product.variants.remove(variant)
    if ordered_ids:
        logger.info(
            f"Kept {len(ordered_ids)} ordered variant(s) of product {product.id} as inactive"
        )


def build_variants(
    data: ScrapedProductData,
    sku: Optional[str],
    profit_margin: ProfitMarginInput,
    settings: Settings,
) -> list[ProductVariant]:
    """One ProductVariant per scraped variant, SKUs suffixed -V1, -V2..."""
    variants = []
    for index, variant in enumerate(data.variants, start=1):
        variant_supplier_price = round_nok(
            convert_to_nok(variant.price, data.price.currency, settings.pricing)
        )
        variant_price = round_nok(calculate_sale_price(variant_supplier_price, profit_margin))
        variants.append(
            ProductVariant(
                name=variant.name,
                sku=f"{sku}-V{index}" if sku else variant.sku,
                price=variant_price,
                compare_at_price=round_nok(compare_at_price(variant_price)),
                supplier_price=variant_supplier_price,
                image=variant.image,
                attributes=dict(variant.attributes),
                stock=variant.stock,
                is_active=True,
                sort_order=index,
            )
        )
    return variants


def bulk_import_products(
    session: Session,
    urls: list[str],
    profit_margin: ProfitMarginInput,
    settings: Optional[Settings] = None,
    ai_descriptions: bool = False,
) -> list[ImportResult]:
    """Import URLs one by one with a random 1-2 s pause between them.

    A failing URL is recorded in its ImportResult and does not stop the batch.
    """
    results: list[ImportResult] = []

    for index, raw_url in enumerate(urls):
        url = raw_url.strip()
        try:
            product = import_product_from_url(
                session, url, profit_margin, settings, ai_descriptions
            )
            results.append(
                ImportResult(
                    success=True,
                    url=url,
                    product_id=product.id,
                    product_name=product.name,
                    images=len(product.image_list),
                    price=product.price,
                    variants=active_variant_count(product),
                )
            )
        except Exception as e:
            logger.error(f"Failed to import {url[:80]}: {e}")
            results.append(ImportResult(success=False, url=url, error=str(e) or "Unknown error"))

        if index < len(urls) - 1:
            time.sleep(random.uniform(*BULK_DELAY_RANGE))

    succeeded = sum(1 for r in results if r.success)
    logger.info(f"Bulk import finished: {succeeded}/{len(results)} succeeded")
    return results


def _auto_imported_products(session: Session) -> list[Product]:
    query = select(Product).where(
        Product.auto_import.is_(True), Product.supplier_url.is_not(None)
    )
    return list(session.execute(query).scalars())


def _supplier_tag(product: Product) -> Optional[str]:
    if not product.supplier_url or not product.supplier_name:
        return None
    tag = product.supplier_name.lower()
    return tag if tag in SCRAPER_REGISTRY else None


def sync_product_prices(session: Session, settings: Optional[Settings] = None) -> int:
    """Re-scrape auto-imported products and reprice those whose cost changed.

    Returns:
        Number of products updated
    """
    settings = settings or Settings()
    updated = 0

    for product in _auto_imported_products(session):
        supplier = _supplier_tag(product)
        if supplier is None:
            continue

        try:
            data = _scrape(product.supplier_url, supplier, settings)
            if not data.price.amount:
                continue
            supplier_price = round_nok(
                convert_to_nok(data.price.amount, data.price.currency, settings.pricing)
            )
            if supplier_price == product.supplier_price:
                continue

            old_price = product.supplier_price
            product.supplier_price = supplier_price
            product.price = round_nok(
                calculate_sale_price(
                    supplier_price, product.profit_margin or settings.pricing.default_margin
                )
            )
            product.last_synced = _now()
            session.commit()
            updated += 1
            logger.info(
                f"Product {product.id}: supplier price {old_price} -> {supplier_price} kr, "
                f"sale price {product.price} kr"
            )
        except Exception as e:
            session.rollback()
            logger.error(f"Failed to sync product {product.id}: {e}")

    return updated


def sync_product_availability(session: Session, settings: Optional[Settings] = None) -> int:
    """Re-scrape auto-imported products and mirror supplier availability.

    Returns:
        Number of products checked successfully
    """
    settings = settings or Settings()
    checked = 0

    for product in _auto_imported_products(session):
        supplier = _supplier_tag(product)
        if supplier is None:
            continue

        try:
            data = _scrape(product.supplier_url, supplier, settings)
        except ScrapeFailedError as e:
            logger.warning(f"Skipping availability for product {product.id}: {e}")
            continue
        except Exception as e:
            logger.error(f"Failed to sync availability for product {product.id}: {e}")
            continue

        try:
            product.is_active = data.availability
            product.last_synced = _now()
            session.commit()
            checked += 1
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Failed to sync availability for product {product.id}: {e}")

    return checked
