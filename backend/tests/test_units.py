from __future__ import annotations

import pytest

from app.client import units


def test_round_half_up_never_rounds_to_even() -> None:
    assert units.round_half_up(2.5) == 3
    assert units.round_half_up(3.5) == 4
    assert units.round_half_up(2.49) == 2


def test_imperial_entry_is_stored_as_whole_metric_values() -> None:
    assert units.canonical_height(70, use_metric=False) == 178
    assert units.canonical_weight(154, use_metric=False) == 70


def test_metric_entry_is_rounded_but_not_converted() -> None:
    assert units.canonical_height(177.6, use_metric=True) == 178
    assert units.canonical_weight(69.5, use_metric=True) == 70


def test_display_converts_back_to_imperial() -> None:
    assert units.display_height(178, use_metric=False) == 70
    assert units.display_weight(70, use_metric=False) == 154
    assert units.display_height(178, use_metric=True) == 178


def test_missing_values_stay_missing() -> None:
    assert units.display_height(None, use_metric=False) is None
    assert units.display_weight(None, use_metric=True) is None
    assert units.canonical_height(None, use_metric=False) is None
    assert units.canonical_weight(None, use_metric=True) is None


@pytest.mark.parametrize("height_cm", [0, 150, 200, 300])
def test_height_survives_repeated_unit_toggles(height_cm: int) -> None:
    first = units.inches_to_cm(units.cm_to_inches(height_cm))
    assert abs(first - height_cm) <= 1

    value = first
    for _ in range(5):
        value = units.inches_to_cm(units.cm_to_inches(value))
        assert value == first
