"""eBay product scraper (plain HTTP, no browser)."""

from bs4 import BeautifulSoup
from loguru import logger

from dropship.config import ScraperSettings
from dropship.models import ImageUrl, Money, ProductUrl, ScrapedProductData, ScraperResult
from dropship.scrapers.base_scraper import BaseScraper, ScraperConfig


class EbayScraper(BaseScraper):
    """Scraper for ebay.com / ebay.no / ebay.co.uk listings."""

    def __init__(self, settings: ScraperSettings | None = None, **kwargs):
        config = ScraperConfig.from_settings("ebay", settings or ScraperSettings())
        super().__init__(config, **kwargs)

    def scrape_product(self, url: str) -> ScraperResult:
        try:
            soup = self.fetch_html(url)
            return self.to_result(self.parse_listing(soup, url), str(soup))
        except Exception as e:
            logger.error(f"eBay scrape failed for {url[:80]}: {e}")
            return self.failure(e)

    def parse_listing(self, soup: BeautifulSoup, url: str) -> ScrapedProductData:
        """Extract canonical product data from a parsed eBay listing page."""
        title_el = soup.select_one("h1[itemprop='name']")
        title = (
            (title_el.get_text(strip=True) if title_el else "")
            or _meta(soup, "og:title")
            or "eBay product"
        )

        price_el = soup.select_one("span[itemprop='price']")
        price_string = (
            (price_el.get("content") if price_el else None)
            or (price_el.get_text(strip=True) if price_el else None)
            or _meta(soup, "og:price:amount")
            or "0"
        )
        amount = self.parse_price(price_string) or 0.0

        currency_el = soup.select_one("span[itemprop='priceCurrency']")
        currency = (
            (currency_el.get("content") if currency_el else None)
            or _meta(soup, "og:price:currency")
            or self.config.currency
        )

        images = [
            ImageUrl(img["src"])
            for img in soup.select("img[itemprop='image']")
            if img.get("src")
        ]

        description = ""
        for selector in ("#desc_div", "#viTabs_0_is"):
            element = soup.select_one(selector)
            if element and element.get_text(strip=True):
                description = element.get_text(" ", strip=True)
                break
        if not description:
            description = _meta(soup, "og:description") or ""

        specs: dict[str, str] = {}
        for row in soup.select("#viTabs_0_is table tr"):
            cells = row.find_all("td")
            if len(cells) < 2:
                continue
            key = cells[0].get_text(strip=True)
            value = cells[1].get_text(strip=True)
            if key and value:
                specs[key] = value

        return ScrapedProductData(
            supplier="ebay",
            url=ProductUrl(url),
            title=title,
            description=description,
            price=Money(amount=amount, currency=currency),
            images=images,
            specs=specs,
            availability=True,
        )


def _meta(soup: BeautifulSoup, prop: str) -> str | None:
    tag = soup.find("meta", attrs={"property": prop})
    if tag is None:
        return None
    return tag.get("content") or None
