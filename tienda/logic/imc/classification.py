"""IMC (body mass index) computation and banding."""
from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple

from tienda.utilities.constants import IMC_BANDS

__all__ = ["compute_imc", "classify", "band_color", "imc_with_band"]

_TWO_PLACES = Decimal("0.01")


def compute_imc(peso_kg: float, altura_cm: float) -> float:
    """weight / height(m)^2 rounded half-up to 2 decimals.

    Callers reject non-positive inputs beforehand.
    """
    altura_m = float(altura_cm) / 100
    ratio = float(peso_kg) / (altura_m * altura_m)
    return float(Decimal(repr(ratio)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def classify(ratio: float) -> str:
    """Return the band label for ``ratio``. Bands are [lower, upper)."""
    for label, _lower, upper, _color in IMC_BANDS:
        if upper is None or ratio < upper:
            return label
    return IMC_BANDS[-1][0]  # pragma: no cover - last band is open ended


def band_color(label: str) -> str:
    for name, _lower, _upper, color in IMC_BANDS:
        if name == label:
            return color
    return "#e74c3c"


def imc_with_band(peso_kg: float, altura_cm: float) -> Tuple[float, str]:
    imc = compute_imc(peso_kg, altura_cm)
    return imc, classify(imc)
