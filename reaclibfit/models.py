"""Enum definitions for the kinds of REACLIB parameter sets."""
from __future__ import annotations

from enum import Enum


class RateSet(Enum):
    NON_RESONANT = "non_resonant"
    NARROW_RESONANCE = "narrow_resonance"
