"""Tests for present-value discounting."""

from __future__ import annotations

import numpy as np
import pytest

from cea_engine.core.discounting import cycle_times, pv


def test_pv_matches_hand_computed_values() -> None:
    result = pv([100.0, 100.0, 100.0], rate=0.03, times=[0, 1, 2])
    assert result == pytest.approx([100.0, 97.0874, 94.2596], abs=1e-4)


def test_zero_rate_is_identity() -> None:
    values = np.array([3.0, -1.5, 10.0, 0.0])
    result = pv(values, rate=0.0, times=[0.0, 2.5, 7.0, 40.0])
    assert np.array_equal(result, values)


def test_zero_time_leaves_value_unchanged() -> None:
    result = pv([42.0, 42.0], rate=0.35, times=[0, 3])
    assert result[0] == 42.0
    assert result[1] < 42.0


def test_negative_time_scales_value_upward() -> None:
    result = pv([100.0], rate=0.05, times=[-1])
    assert result[0] == pytest.approx(105.0)


def test_length_mismatch_raises() -> None:
    with pytest.raises(ValueError, match="times has length 2"):
        pv([100.0, 100.0, 100.0], rate=0.03, times=[0, 1])


def test_two_dimensional_values_are_discounted_by_row() -> None:
    values = np.array([[100.0, 10.0], [100.0, 10.0]])
    result = pv(values, rate=0.1, times=[0, 1])

    assert result.shape == (2, 2)
    assert result[0].tolist() == [100.0, 10.0]
    assert result[1] == pytest.approx([100.0 / 1.1, 10.0 / 1.1])


def test_pv_does_not_sum() -> None:
    result = pv([1.0, 2.0, 3.0], rate=0.03, times=[1, 2, 3])
    assert result.shape == (3,)


@pytest.mark.parametrize(
    ("timing", "expected"),
    [
        ("end", [1.0, 2.0, 3.0]),
        ("mid", [0.5, 1.5, 2.5]),
        ("start", [0.0, 1.0, 2.0]),
    ],
)
def test_cycle_times_follow_timing_convention(timing: str, expected: list[float]) -> None:
    assert cycle_times(3, cycle_length=1.0, timing=timing).tolist() == expected


def test_cycle_times_scale_with_cycle_length() -> None:
    assert cycle_times(2, cycle_length=0.25).tolist() == [0.25, 0.5]


def test_unknown_timing_raises() -> None:
    with pytest.raises(ValueError, match="Unknown discount timing"):
        cycle_times(3, timing="beginning")
