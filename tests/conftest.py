"""Shared fixtures: in-memory catalog database and canned scrape results."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dropship.catalog.database import Base
from dropship.catalog import models  # noqa: F401
from dropship.config import Settings
from dropship.models import Money, ProductUrl, ScrapedProductData, ScrapedVariant, ScraperResult


@pytest.fixture
def session():
    """Fresh in-memory SQLite session with all catalog tables."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    db = Session()
    yield db
    db.close()
    engine.dispose()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def temu_url():
    return "https://www.temu.com/no/trådløs-gaming-mus-g-601099512345678.html"


@pytest.fixture
def scraped_mouse(temu_url):
    """Two-variant Temu mouse priced in USD."""
    return ScrapedProductData(
        supplier="temu",
        url=ProductUrl(temu_url),
        title="Trådløs Gaming Mus RGB Temu Norway",
        description="En rask trådløs mus med RGB-lys og 6 knapper.",
        price=Money(10.0, "USD"),
        images=["https://img.kwcdn.com/product/fancy/main.jpg"],
        variants=[
            ScrapedVariant(
                name="Svart",
                price=10.0,
                image="https://img.kwcdn.com/product/fancy/black.jpg",
                attributes={"color": "Svart"},
            ),
            ScrapedVariant(
                name="Hvit",
                price=12.0,
                image="https://img.kwcdn.com/product/fancy/white.jpg",
                attributes={"color": "Hvit"},
            ),
        ],
        specs={"DPI": "3200", "Tilkobling": "2.4G"},
    )


class FakeScraper:
    """Stands in for a supplier scraper, returning canned results in order."""

    def __init__(self, *results: ScraperResult):
        self.results = list(results)
        self.calls: list[str] = []

    def scrape_product(self, url: str) -> ScraperResult:
        self.calls.append(url)
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return None


@pytest.fixture
def fake_scraper_factory(monkeypatch):
    """Patch get_scraper in the import modules to return a FakeScraper."""

    def install(*results: ScraperResult) -> FakeScraper:
        scraper = FakeScraper(*results)
        factory = lambda supplier, settings=None, **kwargs: scraper  # noqa: E731
        monkeypatch.setattr("dropship.importer.get_scraper", factory)
        monkeypatch.setattr("dropship.bulk_import.get_scraper", factory)
        return scraper

    return install
