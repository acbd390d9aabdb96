"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path
import sys

import pytest

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


def _preload_numpy_without_macos_check() -> None:
    """Preload NumPy while bypassing the macOS sanity check.

    Some macOS BLAS/LAPACK builds crash during NumPy's import-time polyfit
    check.
    """
    if sys.platform != "darwin":
        return

    original_platform = sys.platform
    try:
        sys.platform = "linux"
        import numpy  # noqa: F401
    finally:
        sys.platform = original_platform


_preload_numpy_without_macos_check()


@pytest.fixture
def small_params():
    """Three-state, two-strategy cohort model from ``tests/fixtures``."""
    from cea_engine.core.params import load_cohort_params

    return load_cohort_params(FIXTURES_DIR / "cohort_params_small.yaml")
