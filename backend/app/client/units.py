"""Conversions between canonical metric integers and imperial display values."""
from __future__ import annotations

import math
from typing import Optional

CM_PER_INCH = 2.54
LB_PER_KG = 2.20462


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def inches_to_cm(inches: float) -> int:
    return round_half_up(inches * CM_PER_INCH)


def cm_to_inches(cm: float) -> int:
    return round_half_up(cm / CM_PER_INCH)


def pounds_to_kg(pounds: float) -> int:
    return round_half_up(pounds / LB_PER_KG)


def kg_to_pounds(kg: float) -> int:
    return round_half_up(kg * LB_PER_KG)


def display_height(height_cm: Optional[int], use_metric: bool) -> Optional[int]:
    if height_cm is None:
        return None
    return height_cm if use_metric else cm_to_inches(height_cm)


def display_weight(weight_kg: Optional[int], use_metric: bool) -> Optional[int]:
    if weight_kg is None:
        return None
    return weight_kg if use_metric else kg_to_pounds(weight_kg)


def canonical_height(value: Optional[float], use_metric: bool) -> Optional[int]:
    """Height entered in the current display unit, as whole centimetres."""
    if value is None:
        return None
    return round_half_up(value) if use_metric else inches_to_cm(value)


def canonical_weight(value: Optional[float], use_metric: bool) -> Optional[int]:
    if value is None:
        return None
    return round_half_up(value) if use_metric else pounds_to_kg(value)
