"""Interface every supplier order integration implements."""

from abc import ABC, abstractmethod

from dropship.models import (
    NormalizedOrder,
    SupplierCreateResponse,
    SupplierProduct,
    SupplierStatusResponse,
)


class SupplierAdapter(ABC):
    """Places orders with a supplier and reports their progress.

    Subclasses must implement:
    - create_order(order) - Submit a normalized order, return the supplier's id
    - get_order_status(supplier_order_id) - Current state and tracking info
    """

    name: str = ""

    @abstractmethod
    def create_order(self, order: NormalizedOrder) -> SupplierCreateResponse:
        """Submit an order to the supplier."""

    @abstractmethod
    def get_order_status(self, supplier_order_id: str) -> SupplierStatusResponse:
        """Look up an order previously created with create_order."""

    def fetch_products(self) -> list[SupplierProduct]:
        """Supplier product feed. Adapters without a feed return nothing."""
        return []

    def is_configured(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"
