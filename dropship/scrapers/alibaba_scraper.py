"""Alibaba product scraper.

Alibaba renders product details client-side, so this scraper drives a real
browser through Playwright.
"""

from urllib.parse import urljoin

from loguru import logger
from playwright.sync_api import Page

from dropship.config import ScraperSettings
from dropship.models import ImageUrl, Money, ProductUrl, ScrapedProductData, ScraperResult
from dropship.scrapers.base_scraper import ScraperConfig
from dropship.scrapers.browser_scraper import BrowserScraper

SELECTORS = {
    "title": ".module-pc-detail-heading .title",
    "price_range": ".price .price-text",
    "images": ".product-image-gallery img",
    "description": "#J-rich-text-description",
    "specs_rows": ".do-entry-list li",
    "spec_key": ".do-entry-item",
    "spec_value": ".do-entry-value",
    "shipping": ".trade-detail-main-wrap .module-pc-ship .text",
}

TITLE_TIMEOUT_MS = 45_000


class AlibabaScraper(BrowserScraper):
    """Scraper for alibaba.com / 1688.com product pages."""

    def __init__(self, settings: ScraperSettings | None = None, **kwargs):
        config = ScraperConfig.from_settings(
            "alibaba", settings or ScraperSettings(), currency="USD"
        )
        super().__init__(config, **kwargs)

    def scrape_product(self, url: str) -> ScraperResult:
        try:
            data, html = self.with_page(url, lambda page: self._parse_product(page, url))
            return self.to_result(data, html)
        except Exception as e:
            logger.error(f"Alibaba scrape failed for {url[:80]}: {e}")
            return self.failure(e)

    def _parse_product(self, page: Page, url: str) -> tuple[ScrapedProductData, str]:
        page.wait_for_selector(SELECTORS["title"], timeout=TITLE_TIMEOUT_MS)
        html = page.content()

        title = _text(page, SELECTORS["title"]) or "Unnamed product"
        amount = self.normalize_price_range(_text(page, SELECTORS["price_range"]) or "")
        if not amount:
            raise ValueError("Unable to parse Alibaba price")

        images: list[ImageUrl] = []
        for img in page.query_selector_all(SELECTORS["images"]):
            src = img.get_attribute("src") or img.get_attribute("data-src")
            if src:
                images.append(ImageUrl(urljoin(url, src)))

        description_el = page.query_selector(SELECTORS["description"])
        description = description_el.inner_html().strip() if description_el else ""

        specs: dict[str, str] = {}
        for row in page.query_selector_all(SELECTORS["specs_rows"]):
            key_el = row.query_selector(SELECTORS["spec_key"])
            value_el = row.query_selector(SELECTORS["spec_value"])
            key = (key_el.text_content() or "").strip() if key_el else ""
            value = (value_el.text_content() or "").strip() if value_el else ""
            if key and value:
                specs[key] = value

        data = ScrapedProductData(
            supplier="alibaba",
            url=ProductUrl(url),
            title=title,
            description=description,
            price=Money(amount=amount, currency=self.config.currency),
            images=images,
            specs=specs,
            shipping_estimate=_text(page, SELECTORS["shipping"]) or None,
            availability=True,
        )
        return data, html

    def normalize_price_range(self, text: str) -> float | None:
        """Return the lowest price of a range like "$1.20 - $3.50"."""
        prices = [self.parse_price(part) for part in text.split("-")]
        valid = [price for price in prices if price is not None]
        return min(valid) if valid else None


def _text(page: Page, selector: str) -> str:
    element = page.query_selector(selector)
    if element is None:
        return ""
    return (element.text_content() or "").strip()
