"""Price calculation: currency conversion, sale price and margin suggestions.

Pure functions. All catalog prices are whole NOK; use round_nok for the
final rounding so .5 always rounds up.
"""

import math
import re
from dataclasses import dataclass
from typing import Union

from loguru import logger

from dropship.config import PricingConfig

ProfitMarginInput = Union[float, int, str]

_NUMBER = re.compile(r"^\s*[-+]?\d+(\.\d+)?")


@dataclass
class ProfitCalculation:
    cost: float
    suggested_price: float
    margin_pct: int


def round_nok(value: float) -> int:
    """Round half up to whole kroner.

    Examples:
        >>> round_nok(104.5)
        105
    """
    return int(math.floor(value + 0.5))


def _leading_float(text: str) -> float | None:
    match = _NUMBER.match(text)
    return float(match.group(0)) if match else None


def calculate_sale_price(cost: float, margin: ProfitMarginInput) -> float:
    """Apply a profit margin to a cost price.

    Margin forms:
        "N%": cost * (1 + N/100), at least cost + 1
        "+N": cost + N (cost unchanged when N is not a number)
        numeric string "N": cost + N, like "+N"
        number: values <= 1 are fractions (0.5 = 50%), larger values are
            percentages (50 = 50%); at least cost + 5
        anything else: cost * 1.5

    Args:
        cost: Cost price, any currency
        margin: Margin as described above

    Returns:
        Unrounded sale price in the same currency as cost

    Examples:
        >>> calculate_sale_price(100, "100%")
        200.0
        >>> calculate_sale_price(100, "+50")
        150.0
        >>> calculate_sale_price(100, 0.5)
        150.0
    """
    if isinstance(margin, str):
        value = margin.strip()
        if value.endswith("%"):
            percent = _leading_float(value[:-1])
            if percent is None:
                return cost * 1.5
            return max(cost * (1 + percent / 100), cost + 1)

        if value.startswith("+"):
            add = _leading_float(value[1:])
            return cost + (add if add is not None else 0)

        numeric = _leading_float(value)
        if numeric is None:
            return cost * 1.5
        return cost + numeric

    if margin <= 1:
        return max(cost * (1 + margin), cost + 5)
    return max(cost * (1 + margin / 100), cost + 5)


def compare_at_price(sale_price: float) -> float:
    """Strike-through "before" price: 15% above sale, at least 5 more."""
    return max(sale_price * 1.15, sale_price + 5)


def convert_to_nok(amount: float, currency: str, config: PricingConfig | None = None) -> float:
    """Convert a supplier price to NOK.

    Only USD has a configured rate; other currencies are treated as USD.
    """
    config = config or PricingConfig()
    code = (currency or "USD").upper()
    if code == "NOK":
        return amount
    if code != "USD":
        logger.warning(f"No exchange rate for {code}, converting as USD")
    return amount * config.usd_to_nok_rate


def profit_calculation(
    cost: float, target_margin_pct: float = 55.0, min_markup: float = 1.5
) -> ProfitCalculation:
    """Suggest a sale price that meets both a target margin and a minimum markup.

    Args:
        cost: Supplier cost
        target_margin_pct: Desired gross margin in percent of the sale price
        min_markup: Minimum sale/cost multiplier

    Returns:
        ProfitCalculation with the suggested price rounded to 2 decimals
    """
    target_price = max(cost * min_markup, cost / (1 - target_margin_pct / 100))
    margin_pct = round_nok((target_price - cost) / target_price * 100) if target_price else 0
    return ProfitCalculation(
        cost=cost,
        suggested_price=round(target_price, 2),
        margin_pct=margin_pct,
    )
