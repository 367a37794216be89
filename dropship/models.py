"""Type definitions for scraped supplier data and supplier integrations.

Branded types (NewType) keep URLs, SKUs and supplier tags from being mixed up
with arbitrary strings.
"""

from dataclasses import dataclass, field
from typing import Any, Literal, NewType

ImageUrl = NewType("ImageUrl", str)
ProductUrl = NewType("ProductUrl", str)
SupplierSku = NewType("SupplierSku", str)

SupplierTag = Literal["alibaba", "ebay", "temu"]
Supplier = Literal["alibaba", "ebay", "temu", "aliexpress", "cj"]

SupplierCreateStatus = Literal["pending", "confirmed", "shipped"]
SupplierOrderState = Literal["pending", "confirmed", "shipped", "delivered", "cancelled"]


@dataclass
class Money:
    """Amount in the supplier's native currency."""

    amount: float
    currency: str = "USD"


@dataclass
class ScrapedVariant:
    """A purchasable option of a scraped product (colour, size, length...)."""

    name: str
    price: float
    compare_at_price: float | None = None
    image: ImageUrl | None = None
    attributes: dict[str, str] = field(default_factory=dict)
    stock: int = 0
    sku: str | None = None


@dataclass
class ScrapedProductData:
    """Canonical product shape produced by every supplier scraper."""

    supplier: SupplierTag
    url: ProductUrl
    title: str
    description: str
    price: Money
    images: list[ImageUrl] = field(default_factory=list)
    variants: list[ScrapedVariant] = field(default_factory=list)
    specs: dict[str, str] = field(default_factory=dict)
    shipping_estimate: str | None = None
    availability: bool = True


@dataclass
class ScraperResult:
    success: bool
    data: ScrapedProductData | None = None
    error: str | None = None
    raw_html: str | None = None


def has_variants(data: ScrapedProductData) -> bool:
    """A single variant (or none) is not a meaningful choice for the customer."""
    return len(data.variants) > 1


@dataclass
class SupplierProduct:
    """One row of a supplier's product feed."""

    supplier_sku: SupplierSku
    name: str
    price: float
    images: list[str] = field(default_factory=list)
    in_stock: bool = True
    shipping_info: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass
class NormalizedOrderItem:
    name: str
    quantity: int
    supplier_sku: str | None = None
    price: float | None = None


@dataclass
class OrderCustomer:
    name: str
    email: str | None = None
    phone: str | None = None


@dataclass
class ShippingAddress:
    line1: str
    city: str
    postal_code: str
    country: str = "NO"
    line2: str | None = None
    region: str | None = None


@dataclass
class NormalizedOrder:
    """Supplier-agnostic order payload handed to a supplier adapter."""

    order_id: str
    items: list[NormalizedOrderItem]
    customer: OrderCustomer
    shipping_address: ShippingAddress
    store_id: str | None = None


@dataclass
class SupplierCreateResponse:
    supplier_order_id: str
    status: SupplierCreateStatus
    tracking_number: str | None = None
    tracking_url: str | None = None
    raw: Any = None


@dataclass
class SupplierStatusResponse:
    supplier_order_id: str
    status: SupplierOrderState
    tracking_number: str | None = None
    tracking_url: str | None = None
    raw: Any = None


@dataclass
class ImportResult:
    """Outcome of importing a single URL inside a batch."""

    success: bool
    url: str
    product_id: int | None = None
    product_name: str | None = None
    error: str | None = None
    images: int | None = None
    price: int | None = None
    variants: int | None = None
