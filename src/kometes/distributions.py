"""
Distribution Sampler
====================

Turns user-facing distribution parameters (min, max, mean, standard
deviation) into a single draw from one of ten distribution kinds.

Parameters are reparametrised as follows before sampling:

=========== =============================================================
Kind        Draw
=========== =============================================================
Uniform     U(min, max)
LogUniform  exp(U(ln min, ln max)); requires 0 < min <= max
Gaussian    Normal(avg, stddev); ``Normal`` is a synonym
LogNormal   exp(Normal(μ, σ)) with the linear-space mean and stddev
            converted to μ and σ of the logarithm
Rayleigh    scale σ = avg·√(2/π), so that the mean is ``avg``
Exponential mean ``avg``
Gamma       shape (avg/stddev)², scale stddev²/avg
Beta        method-of-moments fit to avg, stddev rescaled to [min, max]
Isotropic   polar angle in degrees, density ∝ sin θ
=========== =============================================================
"""

import numpy as np
from .errors import InvalidParameterError
from .random_source import RandomSource
from .utils import ConfigEnum


class Distribution(ConfigEnum):
    """Distribution kinds understood by parameter ranges."""
    UNIFORM = "Uniform"
    LOG_UNIFORM = "LogUniform"
    GAUSSIAN = "Gaussian"
    NORMAL = "Normal"
    LOG_NORMAL = "LogNormal"
    RAYLEIGH = "Rayleigh"
    EXPONENTIAL = "Exponential"
    GAMMA = "Gamma"
    BETA = "Beta"
    ISOTROPIC = "Isotropic"


def lognormal_parameters(avg: float, stddev: float):
    """
    Convert the mean and standard deviation of a lognormal variable to the
    (μ, σ) of its logarithm.
    """
    if avg <= 0.0 or stddev <= 0.0:
        raise InvalidParameterError(
            f"Lognormal distribution requires positive mean and standard deviation "
            f"(gave avg={avg}, stddev={stddev})")
    quad = np.sqrt(avg**2 + stddev**2)
    return np.log(avg**2 / quad), np.sqrt(2.0 * np.log(quad / avg))


def gamma_parameters(avg: float, stddev: float):
    """Convert a mean and standard deviation to Gamma (shape, scale)."""
    if avg <= 0.0 or stddev <= 0.0:
        raise InvalidParameterError(
            f"Gamma distribution requires positive mean and standard deviation "
            f"(gave avg={avg}, stddev={stddev})")
    return (avg / stddev)**2, stddev**2 / avg


def beta_parameters(min: float, max: float, avg: float, stddev: float):
    """
    Method-of-moments (α, β) for a Beta variable rescaled to [min, max].

    Raises
    ------
    InvalidParameterError
        Unless min < avg < max and stddev > 0, or if the variance is too
        large for any Beta distribution with that mean.
    """
    if not (min < avg < max):
        raise InvalidParameterError(
            f"Beta distribution requires min < avg < max (gave min={min}, "
            f"avg={avg}, max={max})")
    if stddev <= 0.0:
        raise InvalidParameterError(
            f"Beta distribution requires a positive standard deviation (gave {stddev})")
    scaled_mean = (avg - min) / (max - min)
    scaled_var = (stddev / (max - min))**2
    factor = (scaled_mean - scaled_mean**2 - scaled_var) / scaled_var
    if factor <= 0.0:
        raise InvalidParameterError(
            f"Standard deviation {stddev} is too large for a Beta distribution "
            f"with mean {avg} on [{min}, {max}]")
    return scaled_mean * factor, (1.0 - scaled_mean) * factor


def draw_value(dist, rng: RandomSource, min=0.0, max=1.0, avg=0.0, stddev=0.0) -> float:
    """
    Draw one value from a distribution.

    Parameters
    ----------
    dist : Distribution or str
        Distribution kind
    rng : RandomSource
        Source of randomness
    min, max, avg, stddev : float
        Distribution parameters; which are used depends on ``dist``

    Returns
    -------
    float

    Raises
    ------
    InvalidParameterError
        If the parameters needed by ``dist`` are outside its domain
    """
    dist = Distribution.parse(dist)
    if dist is Distribution.UNIFORM:
        return rng.uniform(min, max)
    elif dist is Distribution.LOG_UNIFORM:
        return rng.log_uniform(min, max)
    elif dist in (Distribution.GAUSSIAN, Distribution.NORMAL):
        return rng.normal(avg, stddev)
    elif dist is Distribution.LOG_NORMAL:
        return rng.lognormal(*lognormal_parameters(avg, stddev))
    elif dist is Distribution.RAYLEIGH:
        if avg < 0.0:
            raise InvalidParameterError(
                f"Rayleigh distribution requires a nonnegative mean (gave {avg})")
        return rng.rayleigh(avg * np.sqrt(2.0 / np.pi))
    elif dist is Distribution.EXPONENTIAL:
        return rng.exponential(avg)
    elif dist is Distribution.GAMMA:
        return rng.gamma(*gamma_parameters(avg, stddev))
    elif dist is Distribution.BETA:
        alpha, beta = beta_parameters(min, max, avg, stddev)
        return min + (max - min) * rng.beta(alpha, beta)
    elif dist is Distribution.ISOTROPIC:
        return rng.isotropic()
    raise InvalidParameterError(f"Unsupported distribution {dist}")
