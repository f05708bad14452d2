"""Decimal helpers for money values.

Amounts are accumulated as exact ``Decimal`` values and only rounded to cents
(``ROUND_HALF_UP``) when a record leaves an aggregation.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0")

# Inputs at or above 1e21 in magnitude are not treated as money.
_MAX_ADJUSTED_EXPONENT = 20


def to_decimal(raw: Any) -> Decimal | None:
    """Coerce ``raw`` to ``Decimal`` without rounding; ``None`` when not numeric.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")`` rather than
    its binary expansion. Booleans, NaN, infinities and magnitudes of 1e21 or
    more are rejected.
    """

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        d = raw
    else:
        text = str(raw).strip().replace(",", "")
        if not text:
            return None
        try:
            d = Decimal(text)
        except (InvalidOperation, ValueError):
            return None
    if not d.is_finite() or (d and d.adjusted() > _MAX_ADJUSTED_EXPONENT):
        return None
    return d


def quantize(value: Decimal, exp: Decimal = CENT) -> Decimal:
    """``ROUND_HALF_UP`` to ``exp`` with enough precision for any magnitude."""

    with localcontext() as ctx:
        if value:
            ctx.prec = max(ctx.prec, value.adjusted() - exp.adjusted() + 2)
        # Adding zero turns "-0.00" into "0.00".
        return value.quantize(exp, rounding=ROUND_HALF_UP) + ZERO


def to_money(value: Decimal | int | float) -> Decimal:
    """Round to two decimal places for output."""

    d = value if isinstance(value, Decimal) else (to_decimal(value) or ZERO)
    return quantize(d)


def canonical_amount(value: Decimal) -> str:
    """Exact, representation-independent text for ``value`` (``-150`` == ``-150.00``)."""

    if not value:
        return "0"
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(value.as_tuple().digits))
        return str(value.normalize())
