"""Playwright-backed base class for suppliers that need a real browser.

Only imported lazily through the scraper registry, so suppliers that scrape
over plain HTTP never load Playwright.
"""

from typing import Callable, Optional, TypeVar

from loguru import logger
from playwright.sync_api import Browser, Page, Playwright, sync_playwright

from dropship.scrapers.base_scraper import BaseScraper

T = TypeVar("T")

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
    "--window-size=1920,1080",
    "--lang=en-US,en,no",
]

# Hides the most common automation fingerprints before any page script runs
STEALTH_INIT_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => false });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en', 'no'] });
window.chrome = { runtime: {} };
"""


class BrowserScraper(BaseScraper):
    """Base class adding a managed Chromium page to BaseScraper."""

    NAVIGATION_TIMEOUT_MS = 120_000
    SETTLE_MS = 5_000

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None
        self._keep_open = False

    def setup_browser(self) -> Page:
        """Initialize Playwright browser and return page instance."""
        if self._page is not None:
            return self._page

        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(
            headless=self.config.headless, args=BROWSER_ARGS
        )
        context = self._browser.new_context(
            user_agent=self.random_user_agent(),
            viewport={"width": 1920, "height": 1080},
            extra_http_headers={"Accept-Language": self.config.locale},
        )
        context.add_init_script(STEALTH_INIT_SCRIPT)
        self._page = context.new_page()

        logger.info(f"Browser initialized for {self.config.supplier}")
        return self._page

    def teardown_browser(self) -> None:
        """Close browser and cleanup resources."""
        if self._page:
            self._page.close()
        if self._browser:
            self._browser.close()
        if self._playwright:
            self._playwright.stop()

        self._page = None
        self._browser = None
        self._playwright = None

        logger.info(f"Browser closed for {self.config.supplier}")

    def with_page(self, url: str, fn: Callable[[Page], T]) -> T:
        """Navigate to url, let dynamic content settle, then run fn on the page.

        The browser is started here, on first use, so launch failures surface
        inside the caller's scrape. It is torn down afterwards unless the
        scraper is being used as a context manager.
        """
        keep_open = self._keep_open or self._page is not None
        try:
            page = self.setup_browser()
            logger.info(f"Navigating to: {url[:80]}...")
            page.goto(url, wait_until="networkidle", timeout=self.NAVIGATION_TIMEOUT_MS)
            page.wait_for_timeout(self.SETTLE_MS)
            self.random_delay()
            return fn(page)
        finally:
            if not keep_open:
                self.teardown_browser()

    def close(self) -> None:
        self.teardown_browser()
        super().close()

    def __enter__(self):
        self._keep_open = True
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._keep_open = False
        self.close()
