"""
services/reservation/pricing.py
Price calculation for a parking duration.

- hourly: every started hour is charged at the base rate
- slab: flat price of the first slab whose [minMinutes, maxMinutes] covers the
  duration; falls back to hourly when no slab matches
- any other mode is charged hourly
"""

import math
from dataclasses import dataclass
from typing import Any, Optional

from shared.models.models import PricingMode


@dataclass(frozen=True)
class PriceQuote:
    duration_minutes: int
    price_paise: int
    mode: str
    applied_rate: int
    calculation_method: str


def _hourly(duration_minutes: int, base_price_paise: int, prefix: str = "") -> PriceQuote:
    hours = math.ceil(duration_minutes / 60)
    return PriceQuote(
        duration_minutes=duration_minutes,
        price_paise=hours * base_price_paise,
        mode=PricingMode.HOURLY.value,
        applied_rate=base_price_paise,
        calculation_method=f"{prefix}{hours} hour(s) × {base_price_paise} paise/hour",
    )


def _is_whole(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _matching_slab(slabs: Any, duration_minutes: int) -> Optional[dict]:
    """First usable slab covering the duration. Malformed entries are skipped."""
    if not isinstance(slabs, list):
        return None
    for slab in slabs:
        if not isinstance(slab, dict):
            continue
        fields = (slab.get("minMinutes"), slab.get("maxMinutes"), slab.get("pricePaise"))
        if not all(_is_whole(v) for v in fields):
            continue
        if slab["minMinutes"] <= duration_minutes <= slab["maxMinutes"]:
            return slab
    return None


def quote_price(
    duration_minutes: int,
    pricing_mode: str,
    base_price_paise: int,
    slabs: Any = None,
) -> PriceQuote:
    if pricing_mode == PricingMode.SLAB.value and slabs:
        slab = _matching_slab(slabs, duration_minutes)
        if slab is None:
            return _hourly(
                duration_minutes, base_price_paise, prefix="No matching slab found, fallback: "
            )
        return PriceQuote(
            duration_minutes=duration_minutes,
            price_paise=slab["pricePaise"],
            mode=PricingMode.SLAB.value,
            applied_rate=slab["pricePaise"],
            calculation_method=(
                f"Slab pricing: {slab['minMinutes']}-{slab['maxMinutes']} minutes"
                f" = {slab['pricePaise']} paise"
            ),
        )
    return _hourly(duration_minutes, base_price_paise)
