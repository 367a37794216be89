"""CJdropshipping order integration (not yet connected to the CJ API)."""

from dropship.suppliers.aliexpress_adapter import AliExpressSupplierAdapter


class CjSupplierAdapter(AliExpressSupplierAdapter):
    name = "cj"
    order_prefix = "CJ"
