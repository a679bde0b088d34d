"""Fit thermonuclear reaction rates to the JINA REACLIB form."""

from . import constants, exceptions, models
from .fitting import FitResult, fit_rate, make_model_function
from .rates import ReaclibRate, reaclib_rate

__all__ = [
    "constants",
    "exceptions",
    "models",
    "FitResult",
    "ReaclibRate",
    "fit_rate",
    "make_model_function",
    "reaclib_rate",
]
