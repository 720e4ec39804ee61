"""
Brent price deck and realised-price adjustment.

Strategies:
  constant — flat at the initial price
  bull     — +5%/yr linear escalation to year 5, then held at +25%
  bear     — 3%/yr compounding decline, floored at $30/bbl
  custom   — linear ramp to a peak, then exponential reversion to a long-term level

Realised price = Brent × (1 − spread) × API quality factor.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from oilfield_economics.models import PriceAssumptions, PricePoint, PriceStrategy

BULL_ESCALATION_PER_YEAR = 0.05
BULL_ESCALATION_YEARS = 5
BEAR_DECLINE_FACTOR = 0.97
BEAR_FLOOR_USD_BBL = 30.0
CUSTOM_REVERSION_RATE = 0.15

# Quality differential: 0.4% of price per API degree relative to a 30° marker
API_REFERENCE = 30.0
API_PRICE_SENSITIVITY = 0.004


@dataclass
class PriceCurve:
    """Per-year Brent and realised oil prices ($/bbl), indexed by project year."""
    brent: list[float] = field(default_factory=list)
    realized: list[float] = field(default_factory=list)

    def points(self) -> list[PricePoint]:
        return [
            PricePoint(year=year, brent_usd_bbl=b, realized_usd_bbl=r)
            for year, (b, r) in enumerate(zip(self.brent, self.realized))
        ]


def api_price_factor(oil_api: float) -> float:
    """Multiplicative quality adjustment; heavier crude than the marker sells at a discount."""
    return max(0.0, 1.0 + (oil_api - API_REFERENCE) * API_PRICE_SENSITIVITY)


def brent_price_at_year(price: PriceAssumptions, year: int) -> float:
    """Brent price ($/bbl) for a single project year under the configured strategy."""
    p0 = price.initial_price_usd_bbl

    if price.strategy == PriceStrategy.bull:
        if year <= BULL_ESCALATION_YEARS:
            return p0 * (1.0 + BULL_ESCALATION_PER_YEAR * year)
        return p0 * (1.0 + BULL_ESCALATION_PER_YEAR * BULL_ESCALATION_YEARS)

    if price.strategy == PriceStrategy.bear:
        return max(BEAR_FLOOR_USD_BBL, p0 * BEAR_DECLINE_FACTOR ** year)

    if price.strategy == PriceStrategy.custom:
        peak = price.peak_price_usd_bbl
        peak_year = price.peak_year
        if year <= peak_year:
            if peak_year == 0:
                return peak
            return p0 + (peak - p0) * (year / peak_year)
        long_term = price.long_term_price_usd_bbl
        return long_term + (peak - long_term) * math.exp(-CUSTOM_REVERSION_RATE * (year - peak_year))

    return p0


def build_price_curve(price: PriceAssumptions, duration_years: int, oil_api: float) -> PriceCurve:
    """
    Build the Brent and realised price series for years 0..duration_years.

    The API factor and Brent spread are applied uniformly to every year; the
    strategy shapes the Brent series only.
    """
    quality = api_price_factor(oil_api)
    spread = 1.0 - price.brent_spread_pct / 100.0

    curve = PriceCurve()
    for year in range(duration_years + 1):
        brent = max(0.0, brent_price_at_year(price, year))
        curve.brent.append(brent)
        curve.realized.append(brent * spread * quality)
    return curve
