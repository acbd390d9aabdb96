"""Present-value discounting helpers."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

DISCOUNT_TIMINGS: tuple[str, ...] = ("start", "mid", "end")
_TIMING_OFFSETS = {"start": 1.0, "mid": 0.5, "end": 0.0}


def pv(
    values: Sequence[float] | np.ndarray,
    rate: float,
    times: Sequence[float] | np.ndarray,
) -> np.ndarray:
    """Return the present value of each entry of ``values``.

    ``pv[i] = values[i] / (1 + rate) ** times[i]``. Nothing is summed. When
    ``values`` is two-dimensional (periods x categories) each row is
    discounted by its own time index.

    Raises:
        ValueError: If ``times`` is not 1-D or its length differs from the
            first axis of ``values``.
    """
    value_arr = np.asarray(values, dtype=np.float64)
    time_arr = np.asarray(times, dtype=np.float64)

    if time_arr.ndim != 1:
        raise ValueError(f"times must be one-dimensional, got shape {time_arr.shape}.")
    if value_arr.ndim == 0 or value_arr.shape[0] != time_arr.shape[0]:
        raise ValueError(
            f"values has shape {value_arr.shape} but times has length "
            f"{time_arr.shape[0]}."
        )

    factors = (1.0 + float(rate)) ** time_arr
    factors = factors.reshape((-1,) + (1,) * (value_arr.ndim - 1))
    return value_arr / factors


def cycle_times(n_cycles: int, cycle_length: float = 1.0, timing: str = "end") -> np.ndarray:
    """Time (in years) at which values of cycles ``1..n_cycles`` are discounted."""
    if timing not in _TIMING_OFFSETS:
        raise ValueError(
            f"Unknown discount timing {timing!r}; expected one of {DISCOUNT_TIMINGS}."
        )
    if n_cycles < 0:
        raise ValueError(f"n_cycles must be non-negative, got {n_cycles}.")
    cycles = np.arange(1, n_cycles + 1, dtype=np.float64)
    return (cycles - _TIMING_OFFSETS[timing]) * float(cycle_length)
