"""Constants of the REACLIB seven-parameter rate form."""
from __future__ import annotations

# non-resonant a0 prefactor, cm^3 s^-1 mole^-1 MeV^-1 barn^-1
K_CONST_REACLIB_B: float = 7.8318e9
# narrow resonance a0 prefactor, cm^3 s^-1 mole^-1 MeV^-1
K_CONST_REACLIB_D: float = 1.5394e11
# Coulomb barrier coefficient of the non-resonant a2 term
K_CONST_COULOMB_A2: float = 4.2486
# 1 MeV / k_B in units of 1e9 K
K_CONST_MEV_TO_T9: float = 11.6045

K_CONST_SET_SIZE: int = 7
K_CONST_NONRES_A6: float = -2.0 / 3.0
K_CONST_RES_A6: float = -3.0 / 2.0

K_CONST_T9_MIN: float = 0.01
K_CONST_T9_MAX: float = 10.0
