"""Temu product scraper.

Temu blocks most headless browsers, so this scraper never starts one. It
combines three cheap sources, best first:

1. The product URL itself (title slug, goods id, gallery image, price hint)
2. Temu's JSON goods endpoints (variant list)
3. The static HTML (embedded state, JSON-LD, meta tags)
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs, unquote, urlparse

from bs4 import BeautifulSoup
from loguru import logger

from dropship.config import ScraperSettings
from dropship.models import (
    ImageUrl,
    Money,
    ProductUrl,
    ScrapedProductData,
    ScrapedVariant,
    ScraperResult,
)
from dropship.scrapers.base_scraper import BaseScraper, ScraperConfig

TEMU_IMAGE_HOST = "img.kwcdn.com"
TEMU_GENERATED_IMAGE = "https://img.kwcdn.com/product/fancy/{product_id}.jpg"

API_ENDPOINTS = [
    "https://www.temu.com/api/product/detail?goods_id={product_id}",
    "https://www.temu.com/no/api/goods/detail?goodsId={product_id}",
    "https://www.temu.com/api/goods/detail?goodsId={product_id}&scene=detail",
]

API_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "no,en-US;q=0.9,en;q=0.8",
    "Referer": "https://www.temu.com/",
    "Origin": "https://www.temu.com",
}

SKU_LIST_KEYS = ("goodsSkuList", "skuList", "skus", "variants", "goodsSku", "skuInfo")
IMAGE_LIST_KEYS = ("gallery", "images", "imgList", "goodsGallery", "goodsImgList", "productImages")
VARIANT_IMAGE_KEYS = ("thumbUrl", "image", "imgUrl", "goodsImg", "imageUrl", "thumb", "img")
VARIANT_PRICE_KEYS = ("salePrice", "goodsPrice", "price", "minPrice")
COLOR_SPEC_NAMES = ("color", "colour", "farge")

# Keyword -> Norwegian colour name. Only black variants are stocked.
COLOR_KEYWORDS = {
    "svart": "Svart",
    "black": "Svart",
    "sort": "Svart",
    "hvit": "Hvit",
    "white": "Hvit",
    "rød": "Rød",
    "red": "Rød",
    "grå": "Grå",
    "grey": "Grå",
    "gray": "Grå",
    "blå": "Blå",
    "blue": "Blå",
    "grønn": "Grønn",
    "green": "Grønn",
}
STOCKED_COLOR = "Svart"
BLACK_IMAGE_HINTS = ("black", "svart", "dark", "sort")

URL_PRICE_PATTERNS = [
    re.compile(r"[_\-](\d+)[\-_]kr", re.IGNORECASE),
    re.compile(r"price[=_](\d+)", re.IGNORECASE),
]

EMBEDDED_STATE_PATTERNS = [
    re.compile(r"window\.__NEXT_DATA__\s*=\s*({.*?});", re.DOTALL),
    re.compile(r"window\.__INITIAL_STATE__\s*=\s*({.*?});", re.DOTALL),
    re.compile(r"var\s+productData\s*=\s*({.*?});", re.DOTALL),
]


@dataclass
class UrlExtract:
    title: str | None
    product_id: str | None
    images: list[ImageUrl]
    price: Money
    variants: list[ScrapedVariant] = field(default_factory=list)


@dataclass
class HtmlExtract:
    images: list[ImageUrl] = field(default_factory=list)
    variants: list[ScrapedVariant] = field(default_factory=list)
    description: str = ""


class TemuScraper(BaseScraper):
    """Scraper for temu.com product pages."""

    def __init__(
        self,
        settings: ScraperSettings | None = None,
        query_api: bool = True,
        **kwargs,
    ):
        config = ScraperConfig.from_settings(
            "temu", settings or ScraperSettings(), locale="no,en-US;q=0.9,en;q=0.8"
        )
        super().__init__(config, **kwargs)
        self.query_api = query_api

    def scrape_product(self, url: str) -> ScraperResult:
        logger.info(f"[Temu] Starting scrape for: {url[:80]}...")
        try:
            url_data = self.extract_from_url(url, query_api=self.query_api)
            html_data = HtmlExtract()
            try:
                html_data = self.fetch_html_and_extract(url)
            except Exception as e:
                logger.warning(f"[Temu] Could not fetch HTML, using URL data only: {e}")

            images = _unique(url_data.images + html_data.images)
            variants = html_data.variants or url_data.variants
            data = self._build_product(url, url_data, images, variants, html_data.description)
            logger.info(
                f"[Temu] Scrape complete - {len(data.variants)} variants, {len(data.images)} images"
            )
            return self.to_result(data)
        except Exception as e:
            logger.warning(f"[Temu] Scrape failed, falling back to URL-only data: {e}")
            try:
                url_data = self.extract_from_url(url, query_api=False)
                data = self._build_product(url, url_data, url_data.images, url_data.variants, "")
                return self.to_result(data)
            except Exception as fallback_error:
                logger.error(f"[Temu] URL fallback failed for {url[:80]}: {fallback_error}")
                return self.failure(e)

    def _build_product(
        self,
        url: str,
        url_data: UrlExtract,
        images: list[ImageUrl],
        variants: list[ScrapedVariant],
        description: str,
    ) -> ScrapedProductData:
        price = url_data.price
        if price.amount <= 0:
            price = Money(self.pricing.default_supplier_price)

        if not variants:
            variants = [ScrapedVariant(name="Standard", price=price.amount)]

        return ScrapedProductData(
            supplier="temu",
            url=ProductUrl(url),
            title=url_data.title or "Temu Produkt",
            description=description,
            price=price,
            images=images,
            variants=_normalize_variants(variants, images, price.amount),
            specs={},
            availability=True,
        )

    def extract_from_url(self, url: str, query_api: bool = True) -> UrlExtract:
        """Extract title, id, images, price and variants from the URL alone.

        Raises:
            ValueError: If the URL has no path to work with
        """
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"Invalid Temu URL: {url}")

        product_id = extract_goods_id(url)
        images: list[ImageUrl] = []

        gallery = parse_qs(parsed.query).get("top_gallery_url", [None])[0]
        if gallery:
            decoded = unquote(gallery) if "%" in gallery else gallery
            if decoded.startswith("http"):
                images.append(ImageUrl(decoded))
                logger.debug(f"[Temu] Found image from top_gallery_url: {decoded[:80]}")

        if not images and product_id:
            # Best guess at the CDN path; may not resolve, but beats no image
            images.append(ImageUrl(TEMU_GENERATED_IMAGE.format(product_id=product_id)))

        price = Money(self.pricing.default_supplier_price, "USD")
        for pattern in URL_PRICE_PATTERNS:
            match = pattern.search(url)
            if match:
                nok = float(match.group(1))
                if 0 < nok < 10000:
                    price = Money(round(nok / self.pricing.usd_to_nok_rate, 2), "USD")
                break

        title = title_from_url(url)

        variants: list[ScrapedVariant] = []
        if query_api and product_id:
            variants = self.fetch_variants_from_api(product_id)
        if not variants:
            variants = keyword_variants(f"{url} {title or ''}", images, price.amount)

        return UrlExtract(
            title=title,
            product_id=product_id,
            images=images,
            price=price,
            variants=variants,
        )

    def fetch_variants_from_api(self, product_id: str) -> list[ScrapedVariant]:
        """Query Temu's goods endpoints for a SKU list.

        Every endpoint failure is logged and skipped; an empty list means no
        endpoint answered with usable data.
        """
        headers = {**API_HEADERS, "User-Agent": self.random_user_agent()}
        for template in API_ENDPOINTS:
            endpoint = template.format(product_id=product_id)
            try:
                response = self.client.get(endpoint, headers=headers)
                if response.status_code != 200:
                    logger.debug(f"[Temu] {endpoint} returned {response.status_code}")
                    continue
                sku_list = find_sku_list(response.json())
                if sku_list:
                    variants = [_variant_from_sku(sku, i) for i, sku in enumerate(sku_list)]
                    logger.info(f"[Temu] Found {len(variants)} variants from API")
                    return variants
            except Exception as e:
                logger.debug(f"[Temu] Endpoint {endpoint} failed: {e}")
        return []

    def fetch_html_and_extract(self, url: str) -> HtmlExtract:
        """Fetch the product page and mine it for variants, images and copy."""
        soup = self.fetch_html(url)
        return parse_product_html(soup)


def extract_goods_id(url: str) -> str | None:
    """Return Temu's numeric goods id from a product URL.

    Examples:
        >>> extract_goods_id("https://www.temu.com/no/mus-g-601099512345.html")
        '601099512345'
    """
    path = urlparse(url).path
    last = path.rstrip("/").split("/")[-1] if path else ""
    match = re.search(r"g-(\d+)", last)
    return match.group(1) if match else None


def title_from_url(url: str) -> str | None:
    """Rebuild a readable title from the slug part of a Temu URL.

    Examples:
        >>> title_from_url("https://www.temu.com/no/tr%C3%A5dl%C3%B8s-mus-2-pack-g-601.html")
        'Trådløs Mus Pack'
    """
    parts = [p for p in urlparse(url).path.split("/") if p and p != "no"]
    if not parts:
        return None

    slug = re.sub(r"\.html?$", "", parts[-1])
    decoded = unquote(slug)
    if "%" in decoded:
        decoded = unquote(decoded)
    decoded = decoded.replace("+", " ")
    if "-g-" in decoded:
        decoded = decoded.split("-g-")[0]

    words = [w for w in decoded.split("-") if w and not w.isdigit()]
    title = " ".join(w[0].upper() + w[1:] for w in words).strip()
    return title if len(title) > 3 else None


def keyword_variants(
    text: str, images: list[ImageUrl], price: float
) -> list[ScrapedVariant]:
    """Derive the single stocked colour variant from URL/title keywords.

    Only black is stocked, so whatever colours are mentioned, the result is
    one "Svart" variant, preferring an image that looks black.
    """
    lowered = text.lower()
    mentions_black = any(
        COLOR_KEYWORDS[keyword] == STOCKED_COLOR and keyword in lowered
        for keyword in COLOR_KEYWORDS
    )

    image = images[0] if images else None
    if mentions_black and images:
        image = next(
            (img for img in images if any(h in img.lower() for h in BLACK_IMAGE_HINTS)),
            images[0],
        )

    return [
        ScrapedVariant(
            name=STOCKED_COLOR,
            price=price,
            image=image,
            attributes={"color": STOCKED_COLOR, "farge": STOCKED_COLOR},
        )
    ]


def find_sku_list(payload: Any) -> list[dict]:
    """Locate the SKU list in one of the response shapes Temu uses."""
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]
    if not isinstance(payload, dict):
        return []

    for container in (payload, payload.get("data"), payload.get("result"), payload.get("detail")):
        if not isinstance(container, dict):
            continue
        for key in SKU_LIST_KEYS:
            value = container.get(key)
            if isinstance(value, dict):
                value = value.get("list") or list(value.values())
            if isinstance(value, list) and value:
                return [item for item in value if isinstance(item, dict)]
    return []


def parse_product_html(soup: BeautifulSoup) -> HtmlExtract:
    """Extract variants, images and description from a Temu product page."""
    result = HtmlExtract()

    product_data = find_embedded_product_data(soup)
    if product_data:
        logger.debug(f"[Temu] Embedded product data keys: {', '.join(product_data)[:200]}")
        sku_list = find_sku_list(product_data)
        result.variants = [_variant_from_sku(sku, i) for i, sku in enumerate(sku_list)]
        result.images = _images_from_product_data(product_data, sku_list)

    for json_ld in _json_ld_products(soup):
        offers = json_ld.get("offers") or []
        if isinstance(offers, dict):
            offers = [offers]
        for index, offer in enumerate(offers):
            availability = str(offer.get("availability", ""))
            if not availability.endswith("InStock"):
                continue
            result.variants.append(
                ScrapedVariant(
                    name=offer.get("name") or f"Variant {index + 1}",
                    price=_to_float(offer.get("price")) or 0.0,
                    image=offer.get("image") if str(offer.get("image", "")).startswith("http") else None,
                    attributes={
                        key: offer[key] for key in ("color", "size") if offer.get(key)
                    },
                )
            )

        raw_images = json_ld.get("image") or []
        if not isinstance(raw_images, list):
            raw_images = [raw_images]
        for img in raw_images:
            img_url = img if isinstance(img, str) else (img.get("url") or img.get("@id") or "")
            if img_url.startswith("http"):
                result.images.append(ImageUrl(img_url))

    result.images = _unique(result.images)

    for attrs in ({"property": "og:description"}, {"name": "description"}):
        meta = soup.find("meta", attrs=attrs)
        if meta and meta.get("content"):
            result.description = meta["content"].strip()
            break

    return result


def find_embedded_product_data(soup: BeautifulSoup) -> dict | None:
    """Find the goods detail object in inline <script> state blobs."""
    for script in soup.find_all("script"):
        content = script.string or script.get_text() or ""
        candidates: list[Any] = []

        if script.get("id") == "__NEXT_DATA__":
            candidates.append(_loads(content))
        for pattern in EMBEDDED_STATE_PATTERNS:
            match = pattern.search(content)
            if match:
                candidates.append(_loads(match.group(1)))

        for state in candidates:
            product = _dig_product(state)
            if product:
                return product
    return None


def _dig_product(state: Any) -> dict | None:
    if not isinstance(state, dict):
        return None
    page_props = state.get("props", {}).get("pageProps", {}) if isinstance(state.get("props"), dict) else {}
    for candidate in (
        page_props.get("initialState", {}).get("goodsDetail") if isinstance(page_props.get("initialState"), dict) else None,
        page_props.get("goodsDetail"),
        page_props.get("product"),
        state.get("goodsDetail"),
        state.get("product"),
    ):
        if isinstance(candidate, dict):
            return candidate
    if any(key in state for key in SKU_LIST_KEYS):
        return state
    return None


def _json_ld_products(soup: BeautifulSoup) -> list[dict]:
    products = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        data = _loads(script.string or script.get_text() or "")
        for item in data if isinstance(data, list) else [data]:
            if isinstance(item, dict) and item.get("@type") in ("Product", "ProductGroup"):
                products.append(item)
    return products


def _images_from_product_data(product_data: dict, sku_list: list[dict]) -> list[ImageUrl]:
    sources: list[Any] = []
    for container in (product_data, product_data.get("goodsInfo"), product_data.get("detail")):
        if isinstance(container, dict):
            sources.extend(container.get(key) for key in IMAGE_LIST_KEYS)
    for sku in sku_list:
        sources.append([_first(sku, VARIANT_IMAGE_KEYS)])
        sources.append(sku.get("gallery"))

    images: list[ImageUrl] = []
    for source in sources:
        if not isinstance(source, list):
            continue
        for img in source:
            img_url = img if isinstance(img, str) else _first(img, ("url", "src", "thumbUrl", "imageUrl", "original")) if isinstance(img, dict) else None
            if img_url and img_url.startswith("http") and TEMU_IMAGE_HOST in img_url:
                images.append(ImageUrl(img_url.split("?")[0]))

    goods_img = product_data.get("goodsImg")
    if not images and isinstance(goods_img, str) and goods_img.startswith("http"):
        images.append(ImageUrl(goods_img))
    return _unique(images)


def _variant_from_sku(sku: dict, index: int) -> ScrapedVariant:
    name = sku.get("name") or sku.get("title") or ""
    attributes: dict[str, str] = {}

    for spec in sku.get("specList") or []:
        if not isinstance(spec, dict):
            continue
        spec_name = str(spec.get("specName") or spec.get("name") or spec.get("specKey") or "").lower()
        spec_value = spec.get("specValue") or spec.get("value") or spec.get("specVal") or ""
        if spec_name and spec_value:
            attributes[spec_name] = spec_value
            if not name or spec_name in COLOR_SPEC_NAMES:
                name = spec_value

    if not name:
        name = " ".join(attributes.values()) or f"Variant {index + 1}"

    image = _first(sku, VARIANT_IMAGE_KEYS)
    return ScrapedVariant(
        name=name,
        price=_to_float(_first(sku, VARIANT_PRICE_KEYS)) or 0.0,
        image=ImageUrl(image) if isinstance(image, str) and image.startswith("http") else None,
        attributes=attributes,
    )


def _normalize_variants(
    variants: list[ScrapedVariant], images: list[ImageUrl], fallback_price: float
) -> list[ScrapedVariant]:
    """Fill in missing names, prices and images.

    A variant without a usable image inherits the first product image.
    """
    first_image = images[0] if images else None
    normalized = []
    for variant in variants:
        image = variant.image if variant.image and variant.image.startswith("http") else first_image
        normalized.append(
            ScrapedVariant(
                name=variant.name or "Standard",
                price=variant.price if variant.price > 0 else fallback_price,
                compare_at_price=variant.compare_at_price,
                image=image,
                attributes=dict(variant.attributes),
                stock=variant.stock,
                sku=variant.sku,
            )
        )
    return normalized


def _first(data: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = data.get(key)
        if value:
            return value
    return None


def _to_float(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = re.sub(r"[^0-9.]", "", str(value))
    try:
        return float(cleaned)
    except ValueError:
        return None


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return None


def _unique(items: list[ImageUrl]) -> list[ImageUrl]:
    return list(dict.fromkeys(items))
