"""AliExpress order integration (not yet connected to the AliExpress API)."""

from loguru import logger

from dropship.models import NormalizedOrder, SupplierCreateResponse, SupplierStatusResponse
from dropship.suppliers.base_adapter import SupplierAdapter


class AliExpressSupplierAdapter(SupplierAdapter):
    name = "aliexpress"
    order_prefix = "ALX"

    def create_order(self, order: NormalizedOrder) -> SupplierCreateResponse:
        logger.info(f"[{type(self).__name__}] createOrder {order.order_id}")
        return SupplierCreateResponse(
            supplier_order_id=f"{self.order_prefix}-{order.order_id}",
            status="pending",
        )

    def get_order_status(self, supplier_order_id: str) -> SupplierStatusResponse:
        logger.info(f"[{type(self).__name__}] getOrderStatus {supplier_order_id}")
        return SupplierStatusResponse(supplier_order_id=supplier_order_id, status="pending")
