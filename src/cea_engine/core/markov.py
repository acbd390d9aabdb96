"""Cohort Markov trace simulation over a discrete-time transition matrix."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

_STOCHASTIC_ATOL = 1e-9


def sim_markov_chain(
    x0: Sequence[float] | np.ndarray,
    transition_matrix: Sequence[Sequence[float]] | np.ndarray,
    n_cycles: int,
) -> np.ndarray:
    """Simulate a cohort Markov trace.

    Each step left-multiplies the current occupancy (row) vector by the
    transition matrix, so ``trace[t + 1] = trace[t] @ transition_matrix``.
    Row stochasticity is not checked; see ``check_transition_matrix``.

    Args:
        x0: Initial state-occupancy vector of length S.
        transition_matrix: S x S per-cycle transition probabilities.
        n_cycles: Number of cycles to simulate.

    Returns:
        Array of shape ``(n_cycles + 1, S)``; rows are cycles, columns states.
        Row 0 equals ``x0``.

    Raises:
        ValueError: If shapes are inconsistent or ``n_cycles`` is negative.
    """
    x0_arr = np.asarray(x0, dtype=np.float64)
    matrix = np.asarray(transition_matrix, dtype=np.float64)

    if x0_arr.ndim != 1:
        raise ValueError(f"x0 must be one-dimensional, got shape {x0_arr.shape}.")
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError(f"transition_matrix must be square, got shape {matrix.shape}.")
    if x0_arr.shape[0] != matrix.shape[0]:
        raise ValueError(
            f"x0 has length {x0_arr.shape[0]} but transition_matrix is "
            f"{matrix.shape[0]}x{matrix.shape[1]}."
        )
    if isinstance(n_cycles, bool) or int(n_cycles) != n_cycles or n_cycles < 0:
        raise ValueError(f"n_cycles must be a non-negative integer, got {n_cycles!r}.")

    n_cycles = int(n_cycles)
    trace = np.empty((n_cycles + 1, x0_arr.shape[0]), dtype=np.float64)
    trace[0] = x0_arr
    for t in range(n_cycles):
        trace[t + 1] = trace[t] @ matrix
    return trace


def check_occupancy_vector(
    x: Sequence[float] | np.ndarray,
    atol: float = _STOCHASTIC_ATOL,
) -> None:
    """Raise if ``x`` is not a non-negative vector summing to one."""
    arr = np.asarray(x, dtype=np.float64)
    if arr.ndim != 1:
        raise ValueError(f"Occupancy vector must be one-dimensional, got shape {arr.shape}.")
    if np.any(arr < -atol):
        raise ValueError(f"Occupancy vector has negative entries: {arr.tolist()}")
    total = float(arr.sum())
    if abs(total - 1.0) > atol:
        raise ValueError(f"Occupancy vector sums to {total:.12g}, expected 1.")


def check_transition_matrix(
    transition_matrix: Sequence[Sequence[float]] | np.ndarray,
    atol: float = _STOCHASTIC_ATOL,
) -> None:
    """Raise if the matrix is not square, non-negative and row-stochastic."""
    matrix = np.asarray(transition_matrix, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError(f"transition_matrix must be square, got shape {matrix.shape}.")
    if np.any(matrix < -atol):
        raise ValueError("transition_matrix has negative entries.")

    row_sums = matrix.sum(axis=1)
    bad_rows = np.flatnonzero(np.abs(row_sums - 1.0) > atol)
    if bad_rows.size:
        row = int(bad_rows[0])
        raise ValueError(
            f"transition_matrix row {row} sums to {row_sums[row]:.12g}; "
            f"{bad_rows.size} row(s) are not stochastic."
        )
