"""Supplier adapter registry.

Maps supplier tags to adapter classes. Alibaba and eBay have no order
integration of their own and reuse the AliExpress adapter.
"""

from typing import Optional, Type

from loguru import logger

from dropship.config import DropshippingConfig, load_dropshipping_config
from dropship.errors import SupplierNotConfiguredError, SupplierNotFoundError
from dropship.suppliers.aliexpress_adapter import AliExpressSupplierAdapter
from dropship.suppliers.base_adapter import SupplierAdapter
from dropship.suppliers.cj_adapter import CjSupplierAdapter
from dropship.suppliers.temu_adapter import TemuSupplierAdapter

ADAPTER_REGISTRY: dict[str, Type[SupplierAdapter]] = {
    "alibaba": AliExpressSupplierAdapter,
    "aliexpress": AliExpressSupplierAdapter,
    "ebay": AliExpressSupplierAdapter,
    "temu": TemuSupplierAdapter,
    "cj": CjSupplierAdapter,
}


def get_supplier_adapter(
    supplier: Optional[str] = None, config: Optional[DropshippingConfig] = None
) -> SupplierAdapter:
    """Get an adapter for a supplier, or for the configured one.

    Args:
        supplier: Supplier tag (e.g., 'temu'); case-insensitive
        config: Dropshipping config consulted when supplier is omitted
            (read from the environment if not given)

    Returns:
        Adapter instance

    Raises:
        SupplierNotConfiguredError: If no supplier is given or configured
        SupplierNotFoundError: If the supplier has no adapter
    """
    if not supplier:
        config = config or load_dropshipping_config()
        supplier = config.supplier_name
        if not supplier:
            raise SupplierNotConfiguredError("Supplier not configured")

    name = supplier.lower()
    if name not in ADAPTER_REGISTRY:
        raise SupplierNotFoundError(name)

    adapter = ADAPTER_REGISTRY[name]()
    logger.debug(f"Using {adapter!r} for supplier {name}")
    return adapter


def get_available_suppliers() -> list[str]:
    return list(ADAPTER_REGISTRY.keys())
