"""
Drip and infusion rate calculators.

Inputs usually arrive straight from form fields, so each calculator accepts
numbers or numeric strings. A missing, zero, or non-numeric input gives
``None`` ("no result") instead of raising.
"""

import math
from decimal import ROUND_HALF_UP, Decimal

Number = int | float | str | None

MCG_PER_MG = 1000.0
MINUTES_PER_HOUR = 60.0


def _to_number(value: Number) -> float | None:
    """Coerce a form value to a usable non-zero float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number == 0:
        return None
    return number


def _round_half_up(value: float, places: int = 0) -> float:
    """Round half away from zero, as on a calculator."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def gtt_per_minute(total_ml: Number, minutes: Number, drop_factor: Number) -> int | None:
    """Gravity drip rate in drops per minute.

    Args:
        total_ml: Volume to infuse in mL.
        minutes: Infusion time in minutes.
        drop_factor: Tubing calibration in drops per mL.
    """
    volume = _to_number(total_ml)
    duration = _to_number(minutes)
    factor = _to_number(drop_factor)
    if volume is None or duration is None or factor is None:
        return None
    return int(_round_half_up(volume * factor / duration))


def ml_per_hour(dose_mg_per_hour: Number, concentration_mg_per_ml: Number) -> float | None:
    """Pump rate in mL/hr for a mg/hr order, to 2 decimals."""
    dose = _to_number(dose_mg_per_hour)
    concentration = _to_number(concentration_mg_per_ml)
    if dose is None or concentration is None:
        return None
    return _round_half_up(dose / concentration, 2)


def weight_based_ml_per_hour(
    mcg_per_kg_per_min: Number,
    weight_kg: Number,
    concentration_mg_per_ml: Number,
) -> float | None:
    """Pump rate in mL/hr for a mcg/kg/min order, to 2 decimals."""
    dose = _to_number(mcg_per_kg_per_min)
    weight = _to_number(weight_kg)
    concentration = _to_number(concentration_mg_per_ml)
    if dose is None or weight is None or concentration is None:
        return None
    mg_per_kg_per_min = dose / MCG_PER_MG
    mg_per_hour = mg_per_kg_per_min * weight * MINUTES_PER_HOUR
    return _round_half_up(mg_per_hour / concentration, 2)
