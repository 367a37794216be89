"""Unit tests for supplier identification from URLs."""

import pytest

from dropship.scrapers.supplier_identifier import (
    SUPPORTED_SUPPLIERS_MESSAGE,
    identify_supplier,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://www.alibaba.com/product-detail/USB-C-Cable_1600.html", "alibaba"),
        ("https://detail.1688.com/offer/123.html", "alibaba"),
        ("https://www.ebay.com/itm/1234567890", "ebay"),
        ("https://www.ebay.no/itm/1234567890", "ebay"),
        ("https://www.ebay.co.uk/itm/1234567890", "ebay"),
        ("https://www.temu.com/no/mus-g-601099512345.html", "temu"),
        ("https://www.temu.co.uk/mouse-g-601099512345.html", "temu"),
        ("https://img.temu-cdn.example/image.jpg", "temu"),
        ("HTTPS://WWW.TEMU.COM/NO/MUS-G-1.HTML", "temu"),
    ],
)
def test_identify_supplier_known_hosts(url, expected):
    """Should map every known supplier host to its tag, case-insensitively."""
    assert identify_supplier(url) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "url",
    [
        "https://www.amazon.com/dp/B000",
        "https://www.aliexpress.com/item/100.html",
        "",
        "not a url",
    ],
)
def test_identify_supplier_unknown_returns_none(url):
    """Should return None for hosts that no scraper handles."""
    assert identify_supplier(url) is None


@pytest.mark.unit
def test_supported_suppliers_message_lists_all_suppliers():
    """User-facing message should name every supported supplier."""
    for name in ("Alibaba", "Temu", "eBay"):
        assert name in SUPPORTED_SUPPLIERS_MESSAGE
