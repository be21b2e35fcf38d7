"""Cálculo de porcentajes de votación y participación.

Vote share and turnout percentage calculation.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

_TWO_PLACES = Decimal("0.01")
ZERO_PERCENT = 0.0


def percentage(part: int, whole: int) -> float:
    """Calcula ``round(part / whole * 100, 2)``; ``0.00`` si ``whole <= 0``.

    El redondeo es "half-up" sobre aritmética decimal para que coincida con
    ``toFixed(2)`` de los reportes existentes.

    English:
        Compute ``round(part / whole * 100, 2)``, returning the exact sentinel
        ``0.00`` when the denominator is not positive. Never returns NaN or
        infinity and never raises for a zero denominator.
    """
    if not whole or whole <= 0:
        return ZERO_PERCENT
    value = (Decimal(part) * 100 / Decimal(whole)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
    return float(value)


def vote_share(votes: int, total_votes: int) -> float:
    """Porcentaje de votos sobre el total emitido. / Share of votes over total votes cast."""
    return percentage(votes, total_votes)


def turnout(total_votes: int, nominal_list_size: int) -> float:
    """Participación sobre la lista nominal. / Turnout over the nominal list."""
    return percentage(total_votes, nominal_list_size)
