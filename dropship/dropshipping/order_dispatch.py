"""Forward paid orders to suppliers and track their progress.

Every status transition is recorded as a SupplierOrderEvent so the order
timeline can be reconstructed.
"""

import json
from typing import Any, Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from dropship.catalog.models import Order, OrderItem, SupplierOrderEvent, SupplierOrderStatus
from dropship.config import DropshippingConfig
from dropship.models import (
    NormalizedOrder,
    NormalizedOrderItem,
    OrderCustomer,
    ShippingAddress,
)
from dropship.suppliers.registry import get_supplier_adapter

# Orders in these states still have something to report
OPEN_STATUSES = (
    SupplierOrderStatus.SENT_TO_SUPPLIER,
    SupplierOrderStatus.ACCEPTED_BY_SUPPLIER,
    SupplierOrderStatus.SHIPPED,
)

ADAPTER_STATUS_MAP: dict[str, SupplierOrderStatus] = {
    "pending": SupplierOrderStatus.SENT_TO_SUPPLIER,
    "confirmed": SupplierOrderStatus.ACCEPTED_BY_SUPPLIER,
    "shipped": SupplierOrderStatus.SHIPPED,
    "delivered": SupplierOrderStatus.DELIVERED,
    "cancelled": SupplierOrderStatus.CANCELLED,
}


def log_supplier_event(
    session: Session,
    order_id: int,
    new_status: SupplierOrderStatus,
    old_status: Optional[SupplierOrderStatus] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> None:
    """Record a status transition. Failure to log never fails the caller."""
    try:
        session.add(
            SupplierOrderEvent(
                order_id=order_id,
                old_status=old_status,
                new_status=new_status,
                event_metadata=metadata,
            )
        )
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"[SupplierEvent] Failed to log event for order {order_id} ({new_status.value}): {e}")


def _parse_address(raw: Optional[str]) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("Shipping address is not valid JSON, ignoring it")
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _supplier_sku(item: OrderItem) -> str:
    product = item.product
    return (
        (product.supplier_sku if product else None)
        or (item.variant.sku if item.variant else None)
        or (product.supplier_product_id if product else None)
        or str(item.product_id)
    )


def build_normalized_order(order: Order) -> NormalizedOrder:
    """Convert a stored order into the supplier-agnostic payload."""
    address = _parse_address(order.shipping_address)

    items = [
        NormalizedOrderItem(
            name=(item.product.name if item.product else None) or item.variant_name or "Produkt",
            quantity=item.quantity,
            supplier_sku=_supplier_sku(item),
            price=item.price,
        )
        for item in order.items
    ]

    return NormalizedOrder(
        order_id=str(order.id),
        store_id=order.store_id,
        customer=OrderCustomer(
            name=address.get("name") or order.customer_name or "Kunde",
            email=order.customer_email,
            phone=order.customer_phone,
        ),
        shipping_address=ShippingAddress(
            line1=address.get("address") or address.get("addressLine1") or "",
            line2=address.get("addressLine2") or address.get("address2") or "",
            city=address.get("city") or "",
            postal_code=address.get("zip") or address.get("zipCode") or "",
            country=address.get("country") or "NO",
            region=address.get("region") or address.get("state") or "",
        ),
        items=items,
    )


def _order_supplier(order: Order) -> Optional[str]:
    """Supplier of the first item's product; None falls back to configuration."""
    if order.items and order.items[0].product and order.items[0].product.supplier_name:
        return order.items[0].product.supplier_name.lower()
    return None


def _load_order(session: Session, order_id: int) -> Optional[Order]:
    query = (
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.items).selectinload(OrderItem.product))
    )
    return session.execute(query).scalars().first()


def send_order_to_supplier(
    session: Session, order_id: int, config: Optional[DropshippingConfig] = None
) -> Optional[Order]:
    """Submit an order to its supplier and record the outcome on the order.

    Adapter failures are stored on the order (auto_order_error) rather than
    raised, so the admin can retry.

    Returns:
        The updated order, or None if it does not exist
    """
    order = _load_order(session, order_id)
    if order is None:
        logger.warning(f"[Dropshipping] Order not found: {order_id}")
        return None

    old_status = order.supplier_order_status or SupplierOrderStatus.PENDING
    payload = build_normalized_order(order)

    try:
        adapter = get_supplier_adapter(_order_supplier(order), config)
        result = adapter.create_order(payload)
    except Exception as e:
        message = str(e) or "Kunne ikke sende til leverandør"
        logger.error(f"[Dropshipping] Failed to send order {order.id} to supplier: {message}")
        order.supplier_order_status = SupplierOrderStatus.PENDING
        order.auto_order_error = message
        order.auto_order_attempts = (order.auto_order_attempts or 0) + 1
        session.commit()
        log_supplier_event(
            session, order.id, SupplierOrderStatus.PENDING, old_status, {"error": message}
        )
        return order

    order.supplier_order_id = result.supplier_order_id
    order.supplier_order_status = SupplierOrderStatus.SENT_TO_SUPPLIER
    order.auto_order_error = None
    order.auto_order_attempts = (order.auto_order_attempts or 0) + 1
    session.commit()
    log_supplier_event(
        session,
        order.id,
        SupplierOrderStatus.SENT_TO_SUPPLIER,
        old_status,
        {"supplierOrderId": result.supplier_order_id},
    )

    logger.success(
        f"[Dropshipping] Order {order.id} sent to supplier as {result.supplier_order_id}"
    )
    return order


def poll_supplier_status(
    session: Session, store_id: Optional[str] = None, config: Optional[DropshippingConfig] = None
) -> dict[str, int]:
    """Ask suppliers for the status of every open order and apply changes.

    Returns:
        {"processed": orders polled, "updated": orders whose status changed}
    """
    query = (
        select(Order)
        .where(
            Order.supplier_order_id.is_not(None),
            Order.supplier_order_status.in_(OPEN_STATUSES),
        )
        .options(selectinload(Order.items).selectinload(OrderItem.product))
    )
    if store_id:
        query = query.where(Order.store_id == store_id)
    candidates = list(session.execute(query).scalars())

    updated = 0
    for order in candidates:
        try:
            adapter = get_supplier_adapter(_order_supplier(order), config)
            status = adapter.get_order_status(order.supplier_order_id)
            new_status = ADAPTER_STATUS_MAP[status.status]

            if new_status == order.supplier_order_status:
                continue

            old_status = order.supplier_order_status
            order.supplier_order_status = new_status
            order.tracking_number = status.tracking_number
            order.tracking_url = status.tracking_url
            session.commit()
            log_supplier_event(
                session,
                order.id,
                new_status,
                old_status,
                {"supplierOrderId": order.supplier_order_id},
            )
            updated += 1
            logger.info(f"[pollSupplierStatus] Order {order.id}: {old_status.value} -> {new_status.value}")
        except Exception as e:
            session.rollback()
            logger.error(f"[pollSupplierStatus] Failed for order {order.id}: {e}")

    return {"processed": len(candidates), "updated": updated}
