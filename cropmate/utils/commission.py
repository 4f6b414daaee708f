from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

ORDER_SPLIT_RULE_V1 = "ORDER_SPLIT_2_98_V1"
DRIVER_COMMISSION_RULE_V1 = "DRIVER_COMMISSION_2_V1"

# Basis points of the order total kept by the platform; the farmer gets the rest.
ORDER_ADMIN_BPS = 200
# Basis points of a driver's accepted fee owed to the platform.
DRIVER_ADMIN_COMMISSION_BPS = 200

_CENT = Decimal("0.01")


def _to_decimal(value: int | float | Decimal | None) -> Decimal:
    try:
        parsed = Decimal(str(value if value is not None else 0))
    except Exception:
        parsed = Decimal("0")
    return parsed if parsed > 0 else Decimal("0")


def _cents(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def _bps_of(amount: Decimal, bps: int) -> Decimal:
    rate = Decimal(int(max(0, bps)))
    return (amount * rate) / Decimal("10000")


def order_total(quantity: int | float | Decimal, price_per_unit: int | float | Decimal) -> float:
    return float(_to_decimal(quantity) * _to_decimal(price_per_unit))


def split_order_total(total_price: int | float | Decimal | None) -> dict:
    """Split an order total between platform and farmer.

    Shares are stored unrounded. The farmer share is derived by subtraction so
    the two shares always add back up to the total. Drivers are paid from
    their accepted delivery request, never from the order split.
    """
    total = _to_decimal(total_price)
    admin = _bps_of(total, ORDER_ADMIN_BPS)
    farmer = total - admin
    return {
        "rule": ORDER_SPLIT_RULE_V1,
        "total_price": float(total),
        "admin_payment": float(admin),
        "farmer_payment": float(farmer),
        "driver_payment": 0.0,
    }


def driver_admin_commission(driver_fee: int | float | Decimal | None) -> float:
    return float(_bps_of(_to_decimal(driver_fee), DRIVER_ADMIN_COMMISSION_BPS))


def sum_money(values) -> float:
    """Total for display; the only place amounts are rounded to the cent."""
    total = Decimal("0")
    for value in values:
        total += _to_decimal(value)
    return float(_cents(total))
