"""Unit tests for catalog field helpers."""

import json

import pytest

from dropship.catalog.helpers import (
    assign_category,
    collect_images,
    extract_supplier_product_id,
    generate_id,
    generate_sku,
    short_description,
    slugify,
    spec_tags,
    unique_slug,
)
from dropship.catalog.models import Product
from dropship.models import ScrapedVariant


@pytest.mark.unit
@pytest.mark.parametrize(
    "text,expected",
    [
        ("Trådløs Gaming-mus (Blå brytere)", "tradlos-gaming-mus-bla-brytere"),
        ("Ærlig  USB-C  kabel 2m!", "aerlig-usb-c-kabel-2m"),
        ("Café Øreplugger", "cafe-oreplugger"),
        ("---", ""),
    ],
)
def test_slugify(text, expected):
    assert slugify(text) == expected


@pytest.mark.unit
def test_generate_sku_is_truncated_slug():
    sku = generate_sku("Mekanisk tastatur " * 5)

    assert len(sku) == 40
    assert sku.startswith("mekanisk-tastatur-mekanisk")


@pytest.mark.unit
def test_generate_id():
    assert len(generate_id()) == 12
    assert len(generate_id(4)) == 4
    assert generate_id() != generate_id()


@pytest.mark.unit
@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://www.ebay.com/itm/1234567890/", "1234567890"),
        ("https://www.temu.com/no/mus-g-601099512345.html?refer=x", "mus-g-601099512345.html"),
        ("https://www.alibaba.com", "https://www.alibaba.com"),
    ],
)
def test_extract_supplier_product_id(url, expected):
    assert extract_supplier_product_id(url) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "title,expected",
    [
        ("iPhone 15 deksel", "Mobil & Tilbehør"),
        ("Mekanisk Keyboard RGB", "Datamaskiner"),
        ("Bluetooth Speaker", "TV & Lyd"),
        ("Gaming headset", "Gaming"),
        ("LED-lampe for hjem", "Hjem & Fritid"),
        ("USB-C kabel", "Elektronikk"),
    ],
)
def test_assign_category(title, expected):
    assert assign_category(title) == expected


@pytest.mark.unit
def test_collect_images_orders_and_filters():
    variants = [
        ScrapedVariant(name="Svart", price=1, image="https://img.kwcdn.com/a.jpg"),
        ScrapedVariant(name="Hvit", price=1, image=None),
        ScrapedVariant(name="Blå", price=1, image="https://placehold.co/600x400"),
    ]
    images = ["https://img.kwcdn.com/b.jpg", "https://img.kwcdn.com/a.jpg", "/relative.jpg"]

    assert collect_images(images, variants) == [
        "https://img.kwcdn.com/a.jpg",
        "https://img.kwcdn.com/b.jpg",
    ]


@pytest.mark.unit
def test_short_description():
    assert short_description("Kort") == "Kort"
    assert short_description("x" * 200) == "x" * 150 + "..."
    assert short_description(None) == ""


@pytest.mark.unit
def test_spec_tags():
    specs = {"DPI": "3200", "Vekt": "80 g", "Farge": "Svart"}

    assert json.loads(spec_tags(specs)) == ["DPI", "Vekt", "Farge"]
    assert json.loads(spec_tags(specs, limit=2)) == ["DPI", "Vekt"]
    assert spec_tags({}) == "[]"


@pytest.mark.unit
def test_unique_slug(session):
    first = Product(name="Mus", slug="mus", price=100)
    session.add_all([first, Product(name="Mus", slug="mus-2", price=100)])
    session.commit()

    assert unique_slug(session, "tastatur") == "tastatur"
    assert unique_slug(session, "mus") == "mus-3"
    assert unique_slug(session, "mus", exclude_id=first.id) == "mus"
