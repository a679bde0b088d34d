"""Least-squares fitting of REACLIB rates with SciPy."""
from __future__ import annotations

from .fit import FitResult, fit_rate, make_model_function

__all__ = [
    "FitResult",
    "fit_rate",
    "make_model_function",
]
