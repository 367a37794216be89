"""Unit tests for eBay listing parsing."""

import httpx
import pytest
from bs4 import BeautifulSoup

from dropship.errors import ScrapeFailedError
from dropship.scrapers.ebay_scraper import EbayScraper

LISTING_URL = "https://www.ebay.com/itm/1234567890"

LISTING_PAGE = """
<html><head>
<meta property="og:title" content="Fallback title">
<meta property="og:description" content="Meta description">
</head><body>
<h1 itemprop="name">USB-C Hurtiglader 65W 3 Ports</h1>
<span itemprop="price" content="24.99">US $24.99</span>
<span itemprop="priceCurrency" content="USD"></span>
<img itemprop="image" src="https://i.ebayimg.com/images/1.jpg">
<img itemprop="image" src="https://i.ebayimg.com/images/2.jpg">
<div id="viTabs_0_is">
  <table>
    <tr><td>Brand</td><td>Anker</td></tr>
    <tr><td>Wattage</td><td>65 W</td></tr>
    <tr><td>Only one cell</td></tr>
  </table>
</div>
</body></html>
"""


@pytest.fixture
def scraper():
    return EbayScraper()


@pytest.mark.unit
def test_parse_listing_extracts_structured_fields(scraper):
    soup = BeautifulSoup(LISTING_PAGE, "html.parser")

    data = scraper.parse_listing(soup, LISTING_URL)

    assert data.supplier == "ebay"
    assert data.title == "USB-C Hurtiglader 65W 3 Ports"
    assert data.price.amount == 24.99
    assert data.price.currency == "USD"
    assert data.images == [
        "https://i.ebayimg.com/images/1.jpg",
        "https://i.ebayimg.com/images/2.jpg",
    ]
    assert data.specs == {"Brand": "Anker", "Wattage": "65 W"}
    assert "Anker" in data.description
    assert data.variants == []


@pytest.mark.unit
def test_parse_listing_falls_back_to_meta_tags(scraper):
    html = """
    <meta property="og:title" content="Bluetooth Headset">
    <meta property="og:price:amount" content="1,299.00">
    <meta property="og:price:currency" content="NOK">
    <meta property="og:description" content="Trådløst headset">
    """

    data = scraper.parse_listing(BeautifulSoup(html, "html.parser"), LISTING_URL)

    assert data.title == "Bluetooth Headset"
    assert data.price.amount == 1299.0
    assert data.price.currency == "NOK"
    assert data.description == "Trådløst headset"
    assert data.images == []


@pytest.mark.unit
def test_scrape_product_over_http():
    client = httpx.Client(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text=LISTING_PAGE))
    )

    with EbayScraper(client=client) as scraper:
        result = scraper.scrape_product(LISTING_URL)

    assert result.success is True
    assert result.data.title == "USB-C Hurtiglader 65W 3 Ports"
    assert result.raw_html is not None


@pytest.mark.unit
def test_scrape_product_http_error_returns_failure():
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(503)))

    result = EbayScraper(client=client).scrape_product(LISTING_URL)

    assert result.success is False
    assert "503" in result.error


@pytest.mark.unit
def test_scrape_price_raises_with_scraper_message():
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(404)))

    with pytest.raises(ScrapeFailedError, match="404"):
        EbayScraper(client=client).scrape_price(LISTING_URL)
