"""Pure helpers for turning scraped data into catalog fields."""

import json
import re
import unicodedata
import uuid
from typing import Iterable, Optional
from urllib.parse import urlparse

from sqlalchemy import select
from sqlalchemy.orm import Session

from dropship.catalog.models import Product
from dropship.models import ScrapedVariant

# NFKD does not decompose these
NORWEGIAN_LETTERS = str.maketrans({"æ": "ae", "ø": "o", "å": "a"})

PLACEHOLDER_MARKERS = ("placeholder", "placehold.co")

DEFAULT_CATEGORY = "Elektronikk"

# First match wins
CATEGORY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("Mobil & Tilbehør", ("phone", "iphone", "mobil")),
    ("Datamaskiner", ("computer", "laptop", "pc", "tastatur", "keyboard")),
    ("TV & Lyd", ("tv", "speaker", "høyttaler")),
    ("Gaming", ("game", "gaming")),
    ("Hjem & Fritid", ("home", "hjem")),
]


def slugify(text: str) -> str:
    """Lowercase ASCII slug with hyphens.

    Examples:
        >>> slugify("Trådløs Gaming-mus (Blå brytere)")
        'tradlos-gaming-mus-bla-brytere'
    """
    text = (text or "").lower().translate(NORWEGIAN_LETTERS)
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-")


def generate_sku(title: str) -> str:
    return slugify(title)[:40]


def generate_id(length: int = 12) -> str:
    """Random lowercase hex id for SKUs and slug suffixes."""
    return uuid.uuid4().hex[:length]


def extract_supplier_product_id(url: str) -> str:
    """Last non-empty path segment of a product URL, or the URL itself.

    Examples:
        >>> extract_supplier_product_id("https://www.ebay.com/itm/1234567890/")
        '1234567890'
    """
    segments = [s for s in urlparse(url).path.split("/") if s]
    return segments[-1] if segments else url


def assign_category(title: str) -> str:
    """Pick a storefront category from keywords in the title."""
    lower = (title or "").lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def _usable_image(url: Optional[str]) -> bool:
    return bool(url) and url.startswith("http") and not any(
        marker in url for marker in PLACEHOLDER_MARKERS
    )


def collect_images(images: Iterable[str], variants: Iterable[ScrapedVariant]) -> list[str]:
    """Merge product and variant images, variant images first, no duplicates.

    Only http(s) URLs are kept; placeholder images are dropped.
    """
    variant_images = [v.image for v in variants if _usable_image(v.image)]
    product_images = [img for img in images if _usable_image(img)]
    return list(dict.fromkeys(variant_images + product_images))


def short_description(description: str, limit: int = 150) -> str:
    description = description or ""
    if len(description) <= limit:
        return description
    return description[:limit] + "..."


def spec_tags(specs: dict[str, str], limit: Optional[int] = None) -> str:
    """JSON-encoded list of spec names, used as product tags."""
    keys = list(specs or {})
    return json.dumps(keys[:limit] if limit is not None else keys)


def unique_slug(session: Session, base: str, exclude_id: Optional[int] = None) -> str:
    """Return base, or base-2, base-3... if another product already has it."""
    base = base or f"product-{generate_id(8)}"
    candidate = base
    suffix = 2
    while True:
        query = select(Product.id).where(Product.slug == candidate)
        if exclude_id is not None:
            query = query.where(Product.id != exclude_id)
        if session.execute(query).first() is None:
            return candidate
        candidate = f"{base}-{suffix}"
        suffix += 1
