"""Unit tests for sending orders to suppliers and polling their status."""

import json
from unittest.mock import patch

import pytest

from dropship.catalog.models import (
    Order,
    OrderItem,
    Product,
    ProductVariant,
    SupplierOrderEvent,
    SupplierOrderStatus,
)
from dropship.config import DropshippingConfig
from dropship.dropshipping.order_dispatch import (
    build_normalized_order,
    poll_supplier_status,
    send_order_to_supplier,
)


def _order(session, supplier_name="TEMU", supplier_sku=None, address=None, **order_fields):
    product = Product(
        name="Trådløs mus",
        slug=f"tradlos-mus-{supplier_name or 'none'}",
        price=199,
        supplier_name=supplier_name,
        supplier_product_id="mus-g-601099512345678.html",
        supplier_sku=supplier_sku,
    )
    variant = ProductVariant(name="Svart", sku="TRADLOS-MUS-V1", price=199)
    product.variants = [variant]
    order = Order(
        customer_name="Kari Nordmann",
        customer_email="kari@example.no",
        shipping_address=json.dumps(
            address
            if address is not None
            else {"address": "Storgata 1", "city": "Oslo", "zip": "0155"}
        ),
        total=398,
        items=[OrderItem(product=product, variant=variant, quantity=2, price=199)],
        **order_fields,
    )
    session.add(order)
    session.commit()
    return order


def _events(session, order_id):
    return (
        session.query(SupplierOrderEvent)
        .filter(SupplierOrderEvent.order_id == order_id)
        .order_by(SupplierOrderEvent.id)
        .all()
    )


@pytest.mark.unit
def test_build_normalized_order(session):
    order = _order(session, address={"name": "Ola", "addressLine1": "Gata 2", "zipCode": "5003", "city": "Bergen"})

    payload = build_normalized_order(order)

    assert payload.order_id == str(order.id)
    assert payload.customer.name == "Ola"
    assert payload.customer.email == "kari@example.no"
    assert payload.shipping_address.line1 == "Gata 2"
    assert payload.shipping_address.postal_code == "5003"
    assert payload.shipping_address.country == "NO"
    assert payload.items[0].quantity == 2
    # No supplier SKU on the product: variant SKU is next in line
    assert payload.items[0].supplier_sku == "TRADLOS-MUS-V1"


@pytest.mark.unit
def test_build_normalized_order_tolerates_bad_address(session):
    order = _order(session, supplier_sku="TEMU-001")
    order.shipping_address = "not json"

    payload = build_normalized_order(order)

    assert payload.customer.name == "Kari Nordmann"
    assert payload.shipping_address.city == ""
    assert payload.items[0].supplier_sku == "TEMU-001"


@pytest.mark.unit
def test_send_order_to_supplier(session):
    order = _order(session)

    sent = send_order_to_supplier(session, order.id)

    assert sent.supplier_order_id == f"TEMU-{order.id}"
    assert sent.supplier_order_status == SupplierOrderStatus.SENT_TO_SUPPLIER
    assert sent.auto_order_error is None
    assert sent.auto_order_attempts == 1

    events = _events(session, order.id)
    assert len(events) == 1
    assert events[0].old_status == SupplierOrderStatus.PENDING
    assert events[0].new_status == SupplierOrderStatus.SENT_TO_SUPPLIER
    assert events[0].event_metadata == {"supplierOrderId": f"TEMU-{order.id}"}


@pytest.mark.unit
def test_send_order_uses_configured_supplier(session):
    order = _order(session, supplier_name=None)

    sent = send_order_to_supplier(session, order.id, DropshippingConfig(supplier_name="cj"))

    assert sent.supplier_order_id == f"CJ-{order.id}"


@pytest.mark.unit
def test_send_order_failure_is_recorded(session):
    order = _order(session, supplier_name="wish")

    sent = send_order_to_supplier(session, order.id)

    assert sent.supplier_order_status == SupplierOrderStatus.PENDING
    assert sent.auto_order_error == "Unsupported supplier: wish"
    assert sent.auto_order_attempts == 1
    assert sent.supplier_order_id is None
    assert _events(session, order.id)[0].event_metadata == {"error": "Unsupported supplier: wish"}


@pytest.mark.unit
def test_send_missing_order_returns_none(session):
    assert send_order_to_supplier(session, 999) is None


@pytest.mark.unit
def test_poll_supplier_status_updates_open_orders(session):
    open_order = _order(
        session,
        supplier_order_id="TEMU-1",
        supplier_order_status=SupplierOrderStatus.SENT_TO_SUPPLIER,
    )
    _order(session, supplier_name="AliExpress", supplier_order_status=SupplierOrderStatus.PENDING)

    counts = poll_supplier_status(session)

    assert counts == {"processed": 1, "updated": 1}
    session.refresh(open_order)
    assert open_order.supplier_order_status == SupplierOrderStatus.SHIPPED
    assert open_order.tracking_number == "TRACK-TEMU-1"
    assert _events(session, open_order.id)[-1].old_status == SupplierOrderStatus.SENT_TO_SUPPLIER


@pytest.mark.unit
def test_poll_unchanged_status_is_not_counted(session):
    _order(
        session,
        supplier_name="CJ",
        supplier_order_id="CJ-1",
        supplier_order_status=SupplierOrderStatus.SENT_TO_SUPPLIER,
    )

    assert poll_supplier_status(session) == {"processed": 1, "updated": 0}


@pytest.mark.unit
def test_poll_filters_by_store(session):
    _order(
        session,
        supplier_order_id="TEMU-1",
        supplier_order_status=SupplierOrderStatus.SENT_TO_SUPPLIER,
        store_id="other",
    )

    assert poll_supplier_status(session, store_id="default") == {"processed": 0, "updated": 0}


@pytest.mark.unit
def test_poll_adapter_error_does_not_stop_the_run(session):
    order = _order(
        session,
        supplier_order_id="TEMU-1",
        supplier_order_status=SupplierOrderStatus.ACCEPTED_BY_SUPPLIER,
    )

    with patch(
        "dropship.suppliers.temu_adapter.TemuSupplierAdapter.get_order_status",
        side_effect=RuntimeError("timeout"),
    ):
        counts = poll_supplier_status(session)

    assert counts == {"processed": 1, "updated": 0}
    session.refresh(order)
    assert order.supplier_order_status == SupplierOrderStatus.ACCEPTED_BY_SUPPLIER
