"""Unit tests for the update-in-place importer."""

from unittest.mock import patch

import pytest
from sqlalchemy import func, select

from dropship.catalog.database import create_db_engine, init_db, make_session_factory
from dropship.catalog.models import Order, OrderItem, Product, ProductVariant
from dropship.config import PricingConfig, Settings
from dropship.errors import ScrapeFailedError, UnsupportedSupplierError
from dropship.importer import (
    active_variant_count,
    bulk_import_products,
    find_existing_product,
    import_product_from_url,
    sync_product_availability,
    sync_product_prices,
)
from dropship.models import Money, ScraperResult


def _product_count(session) -> int:
    return session.execute(select(func.count(Product.id))).scalar_one()


@pytest.mark.unit
def test_import_creates_product_with_variants(session, settings, temu_url, scraped_mouse, fake_scraper_factory):
    fake_scraper_factory(ScraperResult(success=True, data=scraped_mouse))

    product = import_product_from_url(session, temu_url, "50%", settings)

    # 10 USD * 10.5 = 105 kr cost, +50% = 157.5 -> 158
    assert product.id is not None
    assert product.supplier_price == 105
    assert product.price == 158
    assert product.compare_at_price == 182
    assert product.supplier_name == "TEMU"
    assert product.supplier_product_id == "trådløs-gaming-mus-g-601099512345678.html"
    assert product.category == "Gaming"
    assert product.auto_import is True
    assert product.profit_margin == "50%"
    assert product.store_id == "default"

    assert [v.name for v in product.variants] == ["Svart", "Hvit"]
    assert [v.sku for v in product.variants] == [f"{product.sku}-V1", f"{product.sku}-V2"]
    assert product.variants[1].supplier_price == 126
    assert product.variants[1].price == 189
    assert product.variants[0].attributes == {"color": "Svart"}

    # Variant images first, then product images
    assert product.image_list == [
        "https://img.kwcdn.com/product/fancy/black.jpg",
        "https://img.kwcdn.com/product/fancy/white.jpg",
        "https://img.kwcdn.com/product/fancy/main.jpg",
    ]


@pytest.mark.unit
def test_reimport_updates_in_place(session, settings, temu_url, scraped_mouse, fake_scraper_factory):
    fake_scraper_factory(ScraperResult(success=True, data=scraped_mouse))
    first = import_product_from_url(session, temu_url, "50%", settings)
    first_id, first_slug = first.id, first.slug

    scraped_mouse.price = Money(20.0, "USD")
    scraped_mouse.variants = scraped_mouse.variants[:1] + scraped_mouse.variants[:1]
    second = import_product_from_url(session, temu_url, "+100", settings)

    assert second.id == first_id
    assert second.slug == first_slug
    assert second.supplier_price == 210
    assert second.price == 310
    assert second.profit_margin == "+100"
    assert _product_count(session) == 1
    assert session.execute(select(func.count(ProductVariant.id))).scalar_one() == 2


@pytest.mark.unit
def test_single_variant_is_not_stored(session, settings, temu_url, scraped_mouse, fake_scraper_factory):
    scraped_mouse.variants = scraped_mouse.variants[:1]
    fake_scraper_factory(ScraperResult(success=True, data=scraped_mouse))

    product = import_product_from_url(session, temu_url, "50%", settings)

    assert product.variants == []


@pytest.mark.unit
def test_scrape_failure_keeps_error_and_writes_nothing(session, settings, temu_url, fake_scraper_factory):
    fake_scraper_factory(ScraperResult(success=False, error="Timeout after 30s"))

    with pytest.raises(ScrapeFailedError) as exc_info:
        import_product_from_url(session, temu_url, "50%", settings)

    assert str(exc_info.value) == "Timeout after 30s"
    assert _product_count(session) == 0


@pytest.mark.unit
def test_unsupported_url_raises(session, settings):
    with pytest.raises(UnsupportedSupplierError):
        import_product_from_url(session, "https://www.amazon.com/dp/B000", "50%", settings)


@pytest.mark.unit
def test_distinct_products_with_same_title_get_unique_slugs(
    session, settings, scraped_mouse, fake_scraper_factory
):
    fake_scraper_factory(ScraperResult(success=True, data=scraped_mouse))

    first = import_product_from_url(
        session, "https://www.temu.com/no/mus-g-601099500000001.html", "50%", settings
    )
    second = import_product_from_url(
        session, "https://www.temu.com/no/mus-g-601099500000002.html", "50%", settings
    )

    assert second.slug == f"{first.slug}-2"


@pytest.mark.unit
def test_bulk_import_continues_after_failure(session, settings, scraped_mouse, fake_scraper_factory):
    scraper = fake_scraper_factory(
        ScraperResult(success=True, data=scraped_mouse),
        ScraperResult(success=False, error="Blocked by captcha"),
    )
    urls = [
        " https://www.temu.com/no/mus-g-601099500000001.html ",
        "https://www.temu.com/no/mus-g-601099500000002.html",
        "https://www.amazon.com/dp/B000",
    ]

    with patch("dropship.importer.time.sleep") as mock_sleep:
        results = bulk_import_products(session, urls, "50%", settings)

    assert [r.success for r in results] == [True, False, False]
    assert results[0].url == "https://www.temu.com/no/mus-g-601099500000001.html"
    assert results[0].variants == 2
    assert results[0].images == 3
    assert results[1].error == "Blocked by captcha"
    assert "amazon" in results[2].error
    assert len(scraper.calls) == 2

    # Pause between items only
    assert mock_sleep.call_count == 2
    for call in mock_sleep.call_args_list:
        assert 1.0 <= call.args[0] <= 2.0


@pytest.mark.unit
def test_sync_product_prices_reprices_changed_products(
    session, settings, temu_url, scraped_mouse, fake_scraper_factory
):
    fake_scraper_factory(ScraperResult(success=True, data=scraped_mouse))
    product = import_product_from_url(session, temu_url, "50%", settings)

    # Unchanged cost: nothing to do
    assert sync_product_prices(session, settings) == 0

    scraped_mouse.price = Money(20.0, "USD")
    assert sync_product_prices(session, settings) == 1

    session.refresh(product)
    assert product.supplier_price == 210
    assert product.price == 315


@pytest.mark.unit
def test_sync_product_availability_mirrors_supplier(
    session, settings, temu_url, scraped_mouse, fake_scraper_factory
):
    fake_scraper_factory(ScraperResult(success=True, data=scraped_mouse))
    product = import_product_from_url(session, temu_url, "50%", settings)

    scraped_mouse.availability = False
    assert sync_product_availability(session, settings) == 1

    session.refresh(product)
    assert product.is_active is False


@pytest.mark.unit
def test_sync_skips_products_without_scraper(session, settings, fake_scraper_factory):
    scraper = fake_scraper_factory(ScraperResult(success=False, error="unused"))
    session.add(
        Product(
            name="Manuelt produkt",
            slug="manuelt-produkt",
            price=100,
            supplier_url="https://supplier.example/p/1",
            supplier_name="CJ",
            auto_import=True,
        )
    )
    session.commit()

    assert sync_product_prices(session, settings) == 0
    assert scraper.calls == []


@pytest.fixture
def fk_session():
    """Session on the production engine setup, with SQLite foreign keys enforced."""
    engine = create_db_engine("sqlite://")
    init_db(engine)
    db = make_session_factory(engine)()
    yield db
    db.close()
    engine.dispose()


def _order_variant(session, product, variant):
    session.add(
        Order(
            customer_name="Kari Nordmann",
            items=[OrderItem(product=product, variant=variant, variant_name=variant.name, price=variant.price)],
        )
    )
    session.commit()


@pytest.mark.unit
def test_reimport_keeps_ordered_variants(fk_session, settings, temu_url, scraped_mouse, fake_scraper_factory):
    fake_scraper_factory(ScraperResult(success=True, data=scraped_mouse))
    product = import_product_from_url(fk_session, temu_url, "50%", settings)
    svart, hvit = product.variants
    _order_variant(fk_session, product, hvit)

    # Supplier now lists a single variant: nothing left to choose between
    scraped_mouse.variants = scraped_mouse.variants[:1]
    product = import_product_from_url(fk_session, temu_url, "50%", settings)

    remaining = fk_session.execute(select(ProductVariant)).scalars().all()
    assert [(v.id, v.name, v.is_active) for v in remaining] == [(hvit.id, "Hvit", False)]
    assert active_variant_count(product) == 0

    item = fk_session.execute(select(OrderItem)).scalars().one()
    assert item.variant_id == hvit.id


@pytest.mark.unit
def test_reimport_updates_ordered_variants_in_place(
    fk_session, settings, temu_url, scraped_mouse, fake_scraper_factory
):
    fake_scraper_factory(ScraperResult(success=True, data=scraped_mouse))
    product = import_product_from_url(fk_session, temu_url, "50%", settings)
    ids = [v.id for v in product.variants]
    _order_variant(fk_session, product, product.variants[0])

    scraped_mouse.variants[0].price = 20.0
    product = import_product_from_url(fk_session, temu_url, "50%", settings)

    assert [v.id for v in product.variants] == ids
    assert product.variants[0].supplier_price == 210
    assert product.variants[0].price == 315
    assert all(v.is_active for v in product.variants)


@pytest.mark.unit
def test_find_existing_prefers_exact_url(session, temu_url):
    by_id = Product(
        name="Annen lenke",
        slug="annen-lenke",
        price=100,
        supplier_url="https://www.temu.com/se/trådløs-gaming-mus-g-601099512345678.html",
        supplier_product_id="trådløs-gaming-mus-g-601099512345678.html",
    )
    by_url = Product(name="Samme lenke", slug="samme-lenke", price=100, supplier_url=temu_url)
    session.add_all([by_id, by_url])
    session.commit()

    found = find_existing_product(session, temu_url, "trådløs-gaming-mus-g-601099512345678.html")

    assert found.id == by_url.id


@pytest.mark.unit
def test_find_existing_falls_back_to_supplier_product_id(session, temu_url):
    product = Product(
        name="Gammel lenke",
        slug="gammel-lenke",
        price=100,
        supplier_url="https://www.temu.com/se/trådløs-gaming-mus-g-601099512345678.html",
        supplier_product_id="trådløs-gaming-mus-g-601099512345678.html",
    )
    session.add(product)
    session.commit()

    assert find_existing_product(session, temu_url, product.supplier_product_id).id == product.id
    assert find_existing_product(session, temu_url, None) is None


@pytest.mark.unit
def test_scraper_receives_configured_pricing(session, temu_url, scraped_mouse, monkeypatch):
    settings = Settings(pricing=PricingConfig(usd_to_nok_rate=11.0))
    seen = {}

    class RecordingScraper:
        def __init__(self, supplier, scraper_settings=None, **kwargs):
            seen.update(kwargs, supplier=supplier)

        def scrape_product(self, url):
            return ScraperResult(success=True, data=scraped_mouse)

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return None

    monkeypatch.setattr("dropship.importer.get_scraper", RecordingScraper)

    product = import_product_from_url(session, temu_url, "50%", settings)

    assert seen["supplier"] == "temu"
    assert seen["pricing"] is settings.pricing
    assert product.supplier_price == 110
