"""Integer arithmetic utilities for TND amounts.

All prices, amounts, debts and session totals are int millimes
(1 TND = 1000 millimes). No float, no Decimal.
"""


def millimes_to_display(millimes: int) -> str:
    """Convert millimes to display string: 12500 -> '12.500 TND', -1500 -> '-1.500 TND'."""
    sign = "-" if millimes < 0 else ""
    abs_m = abs(millimes)
    return f"{sign}{abs_m // 1000:,}.{abs_m % 1000:03d} TND"


def line_total(quantity: int, unit_price: int) -> int:
    return quantity * unit_price
