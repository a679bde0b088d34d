"""REACLIB rate parameterisation."""
from __future__ import annotations

from .reaclib_rate import ReaclibRate, reaclib_rate

__all__ = ["ReaclibRate", "reaclib_rate"]
