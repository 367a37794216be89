"""Sync supplier feed prices and stock into the catalog.

Runs as a dry run unless told otherwise: matches are logged with a suggested
price, but nothing is written.
"""

from dataclasses import dataclass
from typing import Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from dropship.catalog.models import Product
from dropship.config import PricingConfig, Settings
from dropship.models import SupplierProduct
from dropship.pricing import profit_calculation, round_nok
from dropship.suppliers.base_adapter import SupplierAdapter
from dropship.suppliers.registry import get_supplier_adapter


@dataclass
class SyncReport:
    store_id: str
    supplier_products: int
    matched: int
    updated: int
    dry_run: bool


def fetch_supplier_products(
    adapter: Optional[SupplierAdapter] = None, supplier: Optional[str] = None
) -> list[SupplierProduct]:
    adapter = adapter or get_supplier_adapter(supplier)
    products = adapter.fetch_products()
    if not products:
        logger.warning(f"[supplier-sync] {adapter!r} returned no products")
    return products


def match_local_products(
    session: Session, supplier_products: list[SupplierProduct], store_id: str
) -> list[tuple[Product, SupplierProduct]]:
    """Pair catalog products with feed entries by exact supplier SKU within a store."""
    by_sku = {p.supplier_sku: p for p in supplier_products if p.supplier_sku}
    if not by_sku:
        return []

    query = select(Product).where(
        Product.supplier_sku.in_(list(by_sku)), Product.store_id == store_id
    )
    return [(product, by_sku[product.supplier_sku]) for product in session.execute(query).scalars()]


def update_local_product(
    session: Session,
    product: Product,
    supplier_product: SupplierProduct,
    dry_run: bool = True,
    pricing: Optional[PricingConfig] = None,
) -> bool:
    """Write the supplier's price and a stock floor to a product.

    In stock means at least min_stock_when_in_stock units; out of stock means 0.

    Returns:
        True if the product was written
    """
    pricing = pricing or PricingConfig()
    stock = (
        max(product.stock or 0, pricing.min_stock_when_in_stock)
        if supplier_product.in_stock
        else 0
    )

    if dry_run:
        logger.info(
            f"[supplier-sync] Would update product {product.id} (store {product.store_id}): "
            f"supplier_price={supplier_product.price}, stock={stock}"
        )
        return False

    product.supplier_price = round_nok(supplier_product.price)
    product.stock = stock
    session.commit()
    return True


def sync_runner(
    session: Session,
    store_id: str,
    dry_run: bool = True,
    adapter: Optional[SupplierAdapter] = None,
    settings: Optional[Settings] = None,
) -> SyncReport:
    """Fetch the supplier feed, match it to the store's products and apply it.

    Args:
        session: Database session
        store_id: Store whose products are synced
        dry_run: Only log what would change
        adapter: Supplier adapter (the configured supplier's when omitted)
        settings: Runtime settings (defaults when omitted)

    Returns:
        SyncReport; updated counts products actually written
    """
    settings = settings or Settings()
    pricing = settings.pricing

    adapter = adapter or get_supplier_adapter(config=settings.dropshipping)
    supplier_products = fetch_supplier_products(adapter)
    matched = match_local_products(session, supplier_products, store_id)

    updated = 0
    for product, supplier_product in matched:
        profit = profit_calculation(
            supplier_product.price, pricing.target_margin_pct, pricing.min_markup
        )
        logger.info(
            f"[supplier-sync] store={store_id} product={product.id} "
            f"sku={supplier_product.supplier_sku} cost={profit.cost} "
            f"current={product.price} suggested={profit.suggested_price} "
            f"margin={profit.margin_pct}%"
        )
        if update_local_product(session, product, supplier_product, dry_run, pricing):
            updated += 1

    report = SyncReport(
        store_id=store_id,
        supplier_products=len(supplier_products),
        matched=len(matched),
        updated=updated,
        dry_run=dry_run,
    )
    logger.success(f"[supplier-sync] {report}")
    return report
