"""Temu order integration.

Temu has no ordering API for resellers; this adapter simulates one so the
dispatch and polling jobs can run end to end.
"""

from loguru import logger

from dropship.models import (
    NormalizedOrder,
    SupplierCreateResponse,
    SupplierProduct,
    SupplierSku,
    SupplierStatusResponse,
)
from dropship.suppliers.base_adapter import SupplierAdapter

TRACKING_URL_TEMPLATE = "https://www.17track.net/en#nums={number}"


class TemuSupplierAdapter(SupplierAdapter):
    name = "temu"

    def create_order(self, order: NormalizedOrder) -> SupplierCreateResponse:
        logger.info(f"[TemuAdapter] createOrder {order.order_id}")
        return SupplierCreateResponse(
            supplier_order_id=f"TEMU-{order.order_id}",
            status="pending",
        )

    def get_order_status(self, supplier_order_id: str) -> SupplierStatusResponse:
        logger.info(f"[TemuAdapter] getOrderStatus {supplier_order_id}")
        return SupplierStatusResponse(
            supplier_order_id=supplier_order_id,
            status="shipped",
            tracking_number=f"TRACK-{supplier_order_id}",
            tracking_url=TRACKING_URL_TEMPLATE.format(number=supplier_order_id),
        )

    def fetch_products(self) -> list[SupplierProduct]:
        return [
            SupplierProduct(
                supplier_sku=SupplierSku("TEMU-001"),
                name="Temu produkt 1",
                price=10,
                images=[],
                in_stock=True,
                shipping_info="5-9 dager",
            )
        ]
