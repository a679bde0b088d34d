from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence

import numpy as np

from .. import constants
from ..exceptions import (
    DataNotFoundException,
    IncorrectValueException,
    ResonanceIndexException,
)
from ..models import RateSet
from ..yaml_loader import load_database

logger = logging.getLogger(__name__)

# T9 exponents (2j - 5) / 3 of the a1..a5 terms
_T9_EXPONENTS: np.ndarray = (2.0 * np.arange(1, 6, dtype=float) - 5.0) / 3.0


def reaclib_rate(t9, parameters: Sequence[float]):
    """
    Evaluate the REACLIB sum for the given temperature(s).

    Each block of seven coefficients contributes

        exp(a0 + sum_{j=1}^{5} a_j T9^((2j-5)/3) + a6 ln T9)

    and the rate is the sum over all blocks. A scalar ``t9`` returns a float,
    an array returns an array of the same shape. Non-positive temperatures are
    outside the domain and propagate NaN/inf rather than raising.
    """
    par = np.asarray(parameters, dtype=float)
    if par.ndim != 1 or par.size == 0 or par.size % constants.K_CONST_SET_SIZE:
        raise IncorrectValueException(
            f"Parameter vector of length {par.size} is not a whole number of REACLIB sets"
        )
    sets = par.reshape(-1, constants.K_CONST_SET_SIZE)
    t9_arr = np.asarray(t9, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        powers = np.power.outer(t9_arr, _T9_EXPONENTS)
        components = sets[:, 0] + powers @ sets[:, 1:6].T + np.multiply.outer(np.log(t9_arr), sets[:, 6])
        rate = np.exp(components).sum(axis=-1)
    if np.ndim(rate) == 0:
        return float(rate)
    return rate


def _block_offset(block: int) -> int:
    return constants.K_CONST_SET_SIZE * block


@dataclass(eq=False)
class ReaclibRate:
    """
    Reaction rate in the JINA REACLIB form, seeded from physical quantities.

    Set 0 is the charged-particle non-resonant contribution; sets 1..N are
    narrow resonances in registration order. Physical inputs (charges, reduced
    mass, S(0), resonance energies and strengths) are mapped onto initial and
    fixed coefficients, and the getters invert that mapping after a fit.

    Non-resonant set: a0 = ln[B (Z1 Z2 mu)^(1/3) S(0)] (free until S(0) is
    given), a1 = 0, a2 = -4.2486 (Z1^2 Z2^2 mu)^(1/3), a3..a5 free, a6 = -2/3.

    Resonant sets: a0 = ln[D mu^(-3/2) wg], a1 = -11.6045 Er (both free until
    the resonance is given), a2..a5 = 0, a6 = -3/2.

    Neutron induced non-resonant rates (Z = 0) are not supported.
    """

    name: str
    num_resonances: int
    z1: int
    z2: int
    mu: float
    t9_min: float = constants.K_CONST_T9_MIN
    t9_max: float = constants.K_CONST_T9_MAX
    parameters: np.ndarray = field(default_factory=lambda: np.zeros(0))
    fixed: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=bool))

    def __init__(
        self,
        name: str,
        num_resonances: int,
        z1: int,
        z2: int,
        mu: float,
        *,
        t9_min: float = constants.K_CONST_T9_MIN,
        t9_max: float = constants.K_CONST_T9_MAX,
    ) -> None:
        if int(num_resonances) < 0:
            raise IncorrectValueException("Number of resonances must be non-negative")
        if int(z1) < 1 or int(z2) < 1:
            raise IncorrectValueException(
                f"Charged particle rate requires Z1, Z2 >= 1 (got {z1}, {z2}); "
                "neutron induced rates are not supported"
            )
        if not mu > 0:
            raise IncorrectValueException(f"Reduced mass must be positive (got {mu})")
        if not 0 < t9_min < t9_max:
            raise IncorrectValueException(f"Invalid T9 range [{t9_min}, {t9_max}]")
        self.name = name
        self.num_resonances = int(num_resonances)
        self.z1 = int(z1)
        self.z2 = int(z2)
        self.mu = float(mu)
        self.t9_min = float(t9_min)
        self.t9_max = float(t9_max)
        self.parameters = np.zeros(constants.K_CONST_SET_SIZE * (self.num_resonances + 1), dtype=float)
        self.fixed = np.zeros(self.parameters.size, dtype=bool)

        # S(0) is not known yet, seed a0 as if S(0) = 1 MeV b.
        self.parameters[0] = math.log(self._nonresonant_prefactor())
        self.fix_parameter(1, 0.0)
        self.fix_parameter(2, -constants.K_CONST_COULOMB_A2 * ((self.z1 * self.z2) ** 2 * self.mu) ** (1.0 / 3.0))
        self.fix_parameter(6, constants.K_CONST_NONRES_A6)

        for i in range(self.num_resonances):
            base = _block_offset(i + 1)
            self.parameters[base + 0] = math.log(self._resonant_prefactor())
            self.parameters[base + 1] = -constants.K_CONST_MEV_TO_T9
            for j in range(2, 6):
                self.fix_parameter(base + j, 0.0)
            self.fix_parameter(base + 6, constants.K_CONST_RES_A6)
        logger.debug(
            "Created rate %s with %d resonance set(s), Z1=%d Z2=%d mu=%g",
            self.name,
            self.num_resonances,
            self.z1,
            self.z2,
            self.mu,
        )

    @classmethod
    def from_database(cls, name: str, filename: str | Path = "reactions.yaml") -> "ReaclibRate":
        """Build a rate from a reaction database entry, applying S(0) and resonances."""
        database = load_database(filename)
        if name not in database:
            raise DataNotFoundException(f"No data found for {name} reaction in the database")
        reaction = database[name] or {}
        if not isinstance(reaction, dict):
            raise DataNotFoundException(f"Entry for {name} reaction in the database is not a mapping")
        for key in ("Z1", "Z2", "Reduced mass, amu"):
            if key not in reaction:
                raise DataNotFoundException(f"No {key} found for {name} reaction in the database")
        resonances = reaction.get("Resonances") or []
        if not isinstance(resonances, list):
            raise DataNotFoundException(f"Resonances for {name} reaction in the database are not a list")
        t9_range = reaction.get("T9 range", [constants.K_CONST_T9_MIN, constants.K_CONST_T9_MAX])
        if not isinstance(t9_range, list) or len(t9_range) != 2:
            raise IncorrectValueException(f"T9 range for {name} reaction must be a [min, max] pair (got {t9_range})")
        rate = cls(
            name,
            len(resonances),
            int(reaction["Z1"]),
            int(reaction["Z2"]),
            float(reaction["Reduced mass, amu"]),
            t9_min=float(t9_range[0]),
            t9_max=float(t9_range[1]),
        )
        s_factor = reaction.get("S(0), MeV b")
        if s_factor is not None:
            rate.set_s_factor(float(s_factor))
        for idx, resonance in enumerate(resonances):
            if not isinstance(resonance, dict) or "Energy, MeV" not in resonance or "Strength, MeV" not in resonance:
                raise DataNotFoundException(f"Incomplete resonance {idx} for {name} reaction in the database")
            rate.set_resonance(idx, float(resonance["Energy, MeV"]), float(resonance["Strength, MeV"]), strict=True)
        return rate

    def _nonresonant_prefactor(self) -> float:
        return constants.K_CONST_REACLIB_B * (self.z1 * self.z2 * self.mu) ** (1.0 / 3.0)

    def _resonant_prefactor(self) -> float:
        return constants.K_CONST_REACLIB_D * self.mu ** (-3.0 / 2.0)

    def _valid_resonance(self, resonance_id: int) -> bool:
        return 0 <= resonance_id < self.num_resonances

    def _check_index(self, index: int) -> int:
        if not 0 <= index < self.parameters.size:
            raise IncorrectValueException(
                f"Parameter index {index} out of range for {self.parameters.size} parameters"
            )
        return index

    @property
    def num_sets(self) -> int:
        return self.num_resonances + 1

    @property
    def num_parameters(self) -> int:
        return int(self.parameters.size)

    def set_kind(self, block: int) -> RateSet:
        if not 0 <= block < self.num_sets:
            raise IncorrectValueException(f"Set {block} out of range for {self.num_sets} sets")
        return RateSet.NON_RESONANT if block == 0 else RateSet.NARROW_RESONANCE

    def parameter_names(self) -> List[str]:
        names = []
        for block in range(self.num_sets):
            label = self.set_kind(block).value if block == 0 else f"resonance_{block - 1}"
            names.extend(f"{label}.a{j}" for j in range(constants.K_CONST_SET_SIZE))
        return names

    def set_parameter(self, index: int, value: float) -> None:
        """Set a coefficient without touching its fixed flag."""
        self.parameters[self._check_index(index)] = float(value)

    def fix_parameter(self, index: int, value: float | None = None) -> None:
        self._check_index(index)
        if value is not None:
            self.parameters[index] = float(value)
        self.fixed[index] = True

    def release_parameter(self, index: int) -> None:
        """Let a fixed coefficient float again, keeping its value as the seed."""
        self.fixed[self._check_index(index)] = False

    def free_indices(self) -> np.ndarray:
        return np.flatnonzero(~self.fixed)

    def copy(self) -> "ReaclibRate":
        clone = ReaclibRate(
            self.name, self.num_resonances, self.z1, self.z2, self.mu, t9_min=self.t9_min, t9_max=self.t9_max
        )
        clone.parameters = self.parameters.copy()
        clone.fixed = self.fixed.copy()
        return clone

    def set_s_factor(self, s0_MeVb: float) -> None:
        """
        Fix the non-resonant a0 from S(0) in MeV b.

        Call ``release_parameter(0)`` afterwards to let the fit refine it.
        """
        if not s0_MeVb > 0:
            raise IncorrectValueException(f"S-factor must be positive (got {s0_MeVb})")
        self.fix_parameter(0, math.log(self._nonresonant_prefactor() * s0_MeVb))

    def set_resonance(self, resonance_id: int, energy: float, strength: float, *, strict: bool = False) -> None:
        """
        Fix a0 and a1 of a narrow resonance set from its energy (MeV) and strength.

        ``resonance_id`` starts at 0. Out of range ids are ignored unless
        ``strict`` is set, in which case ResonanceIndexException is raised.
        """
        if not self._valid_resonance(resonance_id):
            if strict:
                raise ResonanceIndexException(
                    f"Resonance {resonance_id} out of range for {self.num_resonances} resonance(s)"
                )
            logger.warning(
                "Ignoring resonance %s for rate %s with %d resonance(s)",
                resonance_id,
                self.name,
                self.num_resonances,
            )
            return
        if not strength > 0:
            raise IncorrectValueException(f"Resonance strength must be positive (got {strength})")
        base = _block_offset(resonance_id + 1)
        self.fix_parameter(base + 0, math.log(self._resonant_prefactor() * strength))
        self.fix_parameter(base + 1, -constants.K_CONST_MEV_TO_T9 * energy)

    def evaluate(self, t9, parameters: Sequence[float] | None = None):
        """Rate at ``t9`` for ``parameters`` (the rate's own coefficients by default)."""
        return reaclib_rate(t9, self.parameters if parameters is None else parameters)

    def __call__(self, t9):
        return self.evaluate(t9)

    def get_reduced_mass(self) -> float:
        """Reduced mass in amu recovered from a2, assuming Z1 and Z2 are fixed."""
        return float((self.parameters[2] / -constants.K_CONST_COULOMB_A2) ** 3 / (self.z1 * self.z2) ** 2)

    def get_s_factor(self) -> float:
        """
        S(0) in MeV b from a0, using the reduced mass recovered from a2.

        NaN if a2 no longer encodes a positive reduced mass.
        """
        mu = self.get_reduced_mass()
        if not mu > 0:
            return float("nan")
        return math.exp(self.parameters[0]) / constants.K_CONST_REACLIB_B / (self.z1 * self.z2 * mu) ** (1.0 / 3.0)

    def get_resonance_energy(self, resonance_id: int) -> float:
        if not self._valid_resonance(resonance_id):
            return -1.0
        return float(self.parameters[_block_offset(resonance_id + 1) + 1] / -constants.K_CONST_MEV_TO_T9)

    def get_resonance_strength(self, resonance_id: int) -> float:
        if not self._valid_resonance(resonance_id):
            return -1.0
        mu = self.get_reduced_mass()
        if not mu > 0:
            return float("nan")
        a0 = self.parameters[_block_offset(resonance_id + 1)]
        return math.exp(a0) / constants.K_CONST_REACLIB_D / mu ** (-3.0 / 2.0)
