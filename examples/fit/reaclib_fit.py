"""Fit a REACLIB rate to a tabulated rate generated from a database entry."""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import numpy as np

ROOT = Path(__file__).resolve().parents[2]
sys.path.append(str(ROOT))

from reaclibfit.fitting import fit_rate  # noqa: E402
from reaclibfit.rates import ReaclibRate  # noqa: E402


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    data_dir = Path(os.environ.get("REACLIB_DATA_DIRECTORY", ROOT / "examples" / "data"))
    reactions_yaml = data_dir / "reactions.yaml"

    # Pseudo data: the database rate with a small non-resonant energy dependence.
    truth = ReaclibRate.from_database("12C + p", reactions_yaml)
    truth.set_parameter(3, 0.6)
    truth.set_parameter(4, -0.15)
    t9 = np.logspace(np.log10(0.05), np.log10(3.0), 50)
    rng = np.random.default_rng(2024)
    values = truth.evaluate(t9) * (1.0 + 0.03 * rng.standard_normal(t9.size))
    sigma = 0.03 * np.abs(values)

    rate = ReaclibRate.from_database("12C + p", reactions_yaml)
    rate.release_parameter(0)
    result = fit_rate(rate, t9, values, sigma, absolute_sigma=True)

    for label, value, error in zip(rate.parameter_names(), result.parameters, result.errors):
        print(f"{label:22s}{value:16.8e}{error:16.8e}")
    print(f"chi2 / ndf = {result.chi_square:.3f} / {result.ndf} = {result.reduced_chi_square:.3f}")
    print("S(0), MeV b:", rate.get_s_factor())
    print("Resonance energy, MeV:", rate.get_resonance_energy(0))
    print("Resonance strength, MeV:", rate.get_resonance_strength(0))


if __name__ == "__main__":
    main()
