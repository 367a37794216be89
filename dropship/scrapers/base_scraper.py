"""Abstract base class for supplier-specific scrapers.

Shared logic lives here, supplier specifics in subclasses. This module must
not import any browser automation library: scrapers that only need plain
HTTP (Temu, eBay) inherit from it directly.
"""

import random
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx
from bs4 import BeautifulSoup
from loguru import logger

from dropship.config import PricingConfig, ScraperSettings
from dropship.errors import ScrapeFailedError
from dropship.models import ImageUrl, ScrapedProductData, ScraperResult, SupplierTag
from dropship.utils.retry_handler import RETRYABLE_EXCEPTIONS, retry_with_backoff

USER_AGENTS = [
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/129.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/128.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/127.0.0.0 Safari/537.36",
]


@dataclass
class ScraperConfig:
    """Configuration for a supplier scraper."""

    supplier: SupplierTag
    currency: str = "USD"  # currency the supplier quotes in; no conversion here
    locale: str = "en-US,en;q=0.9"
    min_delay_ms: int = 1000
    max_delay_ms: int = 2500
    timeout: int = 30  # seconds
    max_retries: int = 0
    user_agent_rotation: bool = True
    headless: bool = True

    @classmethod
    def from_settings(
        cls, supplier: SupplierTag, settings: ScraperSettings, **overrides
    ) -> "ScraperConfig":
        values = dict(
            supplier=supplier,
            locale=settings.locale,
            min_delay_ms=settings.min_delay_ms,
            max_delay_ms=settings.max_delay_ms,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
            headless=settings.headless,
        )
        values.update(overrides)
        return cls(**values)


class BaseScraper(ABC):
    """Abstract base class providing common scraping functionality.

    Subclasses must implement:
    - scrape_product(url) - Extract canonical product data from a supplier page
    """

    def __init__(
        self,
        config: ScraperConfig,
        client: httpx.Client | None = None,
        pricing: PricingConfig | None = None,
    ):
        """Initialize scraper with configuration.

        Args:
            config: Scraper configuration including delays and timeouts
            client: Optional pre-built HTTP client (tests inject a mock transport)
            pricing: Exchange rate and default price for suppliers that quote
                prices in NOK or omit them
        """
        self.config = config
        self.pricing = pricing or PricingConfig()
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                follow_redirects=True,
                timeout=httpx.Timeout(float(self.config.timeout), connect=10.0),
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client if this scraper created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def default_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.random_user_agent(),
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": self.config.locale,
            "Cache-Control": "no-cache",
        }

    def get(self, url: str, headers: dict[str, str] | None = None) -> httpx.Response:
        """GET a URL, raising for HTTP errors, retrying only if configured to."""

        def _request() -> httpx.Response:
            response = self.client.get(url, headers=headers or self.default_headers())
            response.raise_for_status()
            return response

        return retry_with_backoff(
            _request,
            max_retries=self.config.max_retries,
            retry_on=RETRYABLE_EXCEPTIONS,
        )

    def fetch_html(self, url: str) -> BeautifulSoup:
        """Download a page and parse it.

        Args:
            url: Page URL

        Returns:
            Parsed document

        Raises:
            httpx.HTTPError: If the request fails
        """
        logger.debug(f"Fetching {url[:80]}")
        response = self.get(url)
        return BeautifulSoup(response.text, "html.parser")

    def random_delay(self) -> None:
        """Sleep a random interval between configured min and max delay."""
        delay_ms = random.randint(self.config.min_delay_ms, self.config.max_delay_ms)
        time.sleep(delay_ms / 1000)

    def random_user_agent(self) -> str:
        if not self.config.user_agent_rotation:
            return USER_AGENTS[0]
        return random.choice(USER_AGENTS)

    @staticmethod
    def parse_price(text: str | None) -> float | None:
        """Parse a price string like "US $1,299.50" into a float.

        Examples:
            >>> BaseScraper.parse_price("US $1,299.50")
            1299.5
            >>> BaseScraper.parse_price("gratis") is None
            True
        """
        if not text:
            return None
        sanitized = re.sub(r"[, ]+", "", text)
        sanitized = re.sub(r"[^\d.]", "", sanitized)
        try:
            return float(sanitized)
        except ValueError:
            return None

    @staticmethod
    def to_result(data: ScrapedProductData, raw_html: str | None = None) -> ScraperResult:
        return ScraperResult(success=True, data=data, raw_html=raw_html)

    @staticmethod
    def failure(error: BaseException | None, raw_html: str | None = None) -> ScraperResult:
        message = str(error) if error is not None and str(error) else "Unknown scraper error"
        return ScraperResult(success=False, error=message, raw_html=raw_html)

    @abstractmethod
    def scrape_product(self, url: str) -> ScraperResult:
        """Extract product data from a supplier product page.

        Must be implemented by each supplier scraper. Must never raise:
        every failure is returned as ScraperResult(success=False, error=...).

        Args:
            url: Supplier product page URL

        Returns:
            Scrape result with canonical product data on success
        """

    def _require_data(self, url: str, what: str) -> ScrapedProductData:
        result = self.scrape_product(url)
        if not result.success or result.data is None:
            raise ScrapeFailedError(
                result.error or f"Unable to scrape {self.config.supplier} {what}", url
            )
        return result.data

    def scrape_price(self, url: str) -> float:
        return self._require_data(url, "price").price.amount

    def scrape_images(self, url: str) -> list[ImageUrl]:
        return self._require_data(url, "images").images

    def scrape_description(self, url: str) -> str:
        return self._require_data(url, "description").description

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
