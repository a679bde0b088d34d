from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from typing import Callable

import numpy as np
from scipy.optimize import OptimizeWarning, curve_fit

from ..exceptions import FitException
from ..rates import ReaclibRate, reaclib_rate

logger = logging.getLogger(__name__)


@dataclass
class FitResult:
    """Outcome of a least-squares fit of a REACLIB rate."""

    parameters: np.ndarray
    covariance: np.ndarray
    chi_square: float
    ndf: int
    free_indices: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=int))

    @property
    def reduced_chi_square(self) -> float:
        if self.ndf <= 0:
            return float("nan")
        return self.chi_square / self.ndf

    @property
    def errors(self) -> np.ndarray:
        """One-sigma uncertainties, zero for fixed coefficients."""
        return np.sqrt(np.abs(np.diag(self.covariance)))


def make_model_function(rate: ReaclibRate) -> Callable[..., np.ndarray]:
    """
    Bind ``rate`` to the ``f(x, *p)`` signature expected by scipy.optimize.

    Only the free coefficients are exposed as ``p``; fixed ones are taken from
    a snapshot of ``rate.parameters`` made when the function is created.
    """
    template = rate.parameters.copy()
    free = rate.free_indices()

    def model(t9, *free_values):
        par = template.copy()
        par[free] = free_values
        return reaclib_rate(t9, par)

    return model


def _prepare_data(rate: ReaclibRate, t9, values, sigma):
    t9 = np.asarray(t9, dtype=float)
    values = np.asarray(values, dtype=float)
    if t9.ndim != 1 or t9.shape != values.shape:
        raise FitException(f"T9 and rate arrays must be 1-D and of equal length (got {t9.shape}, {values.shape})")
    if t9.size == 0:
        raise FitException("No data points to fit")
    if np.any(t9 <= 0):
        raise FitException("T9 values must be positive")
    if sigma is not None:
        sigma = np.asarray(sigma, dtype=float)
        if sigma.shape != values.shape:
            raise FitException("Uncertainty array must match the rate array")
        if np.any(sigma <= 0):
            raise FitException("Uncertainties must be positive")
    outside = (t9 < rate.t9_min) | (t9 > rate.t9_max)
    if np.any(outside):
        logger.warning(
            "%d data point(s) outside T9 range [%g, %g] of rate %s",
            int(outside.sum()),
            rate.t9_min,
            rate.t9_max,
            rate.name,
        )
    return t9, values, sigma


def _chi_square(rate_values: np.ndarray, values: np.ndarray, sigma) -> float:
    residuals = values - rate_values
    if sigma is not None:
        residuals = residuals / sigma
    return float(np.sum(residuals**2))


def fit_rate(
    rate: ReaclibRate,
    t9,
    values,
    sigma=None,
    *,
    absolute_sigma: bool = False,
    maxfev: int | None = None,
) -> FitResult:
    """
    Fit the free coefficients of ``rate`` to tabulated rate values.

    The fit is performed with scipy.optimize.curve_fit seeded from the current
    coefficients. On success the fitted free values are written back to
    ``rate.parameters``; fixed coefficients are never modified.
    """
    t9, values, sigma = _prepare_data(rate, t9, values, sigma)
    free = rate.free_indices()
    size = rate.num_parameters
    ndf = int(t9.size - free.size)
    if ndf < 0:
        raise FitException(
            f"Rate {rate.name} has {free.size} free parameter(s) but only {t9.size} data point(s)"
        )

    if free.size == 0:
        chi2 = _chi_square(rate.evaluate(t9), values, sigma)
        return FitResult(rate.parameters.copy(), np.zeros((size, size)), chi2, ndf, free)

    model = make_model_function(rate)
    kwargs = {}
    if maxfev is not None:
        kwargs["maxfev"] = maxfev
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", OptimizeWarning)
        try:
            popt, pcov = curve_fit(
                model,
                t9,
                values,
                p0=rate.parameters[free],
                sigma=sigma,
                absolute_sigma=absolute_sigma,
                **kwargs,
            )
        except (RuntimeError, TypeError, ValueError) as exc:
            raise FitException(f"Fit of rate {rate.name} failed: {exc}") from exc

    rate.parameters[free] = popt
    covariance = np.zeros((size, size))
    covariance[np.ix_(free, free)] = pcov
    chi2 = _chi_square(rate.evaluate(t9), values, sigma)
    logger.info(
        "Fitted rate %s: %d free parameter(s), chi2=%g, ndf=%d",
        rate.name,
        free.size,
        chi2,
        ndf,
    )
    return FitResult(rate.parameters.copy(), covariance, chi2, ndf, free)
