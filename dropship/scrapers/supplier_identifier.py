"""Map a product URL to the supplier that hosts it.

Has no dependency on any scraper module, so it is safe to import from
anywhere without pulling in browser tooling.
"""

from dropship.models import SupplierTag

SUPPLIER_HOST_PATTERNS: dict[SupplierTag, tuple[str, ...]] = {
    "alibaba": ("alibaba.com", "1688.com"),
    "ebay": ("ebay.com", "ebay.no", "ebay.co.uk"),
    "temu": ("temu.com", "temu.co.uk", "temu-cdn"),
}

SUPPORTED_SUPPLIERS_MESSAGE = "Ustøttet leverandør. Støttede: Alibaba, Temu, eBay"


def identify_supplier(url: str) -> SupplierTag | None:
    """Return the supplier tag for a URL, or None if the host is unknown.

    Examples:
        >>> identify_supplier("https://www.temu.com/no/foo-g-601099512345.html")
        'temu'
        >>> identify_supplier("https://example.com/product") is None
        True
    """
    normalized = url.lower()
    for supplier, patterns in SUPPLIER_HOST_PATTERNS.items():
        if any(pattern in normalized for pattern in patterns):
            return supplier
    return None
