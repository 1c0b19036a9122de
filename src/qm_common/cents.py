"""Integer arithmetic utilities for cents-based amounts.

All prices, fees, and totals use int (cents). No float, no Decimal.
"""


def line_total(unit_price: int, quantity: int) -> int:
    return unit_price * quantity


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"
