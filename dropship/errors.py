"""Exceptions raised by the import, scraping and supplier layers."""


class DropshipError(Exception):
    """Base class for all dropshipping errors."""


class UnsupportedSupplierError(DropshipError, ValueError):
    """URL does not belong to a supplier we can scrape."""

    def __init__(self, url: str, message: str | None = None):
        self.url = url
        super().__init__(message or f"Unsupported supplier URL: {url}")


class ScrapeFailedError(DropshipError):
    """Scraper returned an unsuccessful result.

    The message is the scraper's own error string, unchanged.
    """

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        super().__init__(message)


class DuplicateProductError(DropshipError):
    """A product with the same supplier URL is already in the catalog."""

    def __init__(self, url: str, product_name: str | None = None):
        self.url = url
        self.product_name = product_name
        super().__init__("Produktet eksisterer allerede")


class SupplierNotConfiguredError(DropshipError):
    """No supplier given and none configured through the environment."""


class SupplierNotFoundError(DropshipError, ValueError):
    """Supplier tag has no registered adapter."""

    def __init__(self, supplier: str):
        self.supplier = supplier
        super().__init__(f"Unsupported supplier: {supplier}")
