"""
Bayesian Regression Tutorials — Synthetic Data Generator
=========================================================
Fake datasets with known "true" parameters, used to check that a fitted
posterior recovers the values the data were generated from.

Models:
    Linear:  y = intercept + slope * x + noise,   noise ~ N(0, noise_sd)
    Binary:  p = 1 / (1 + exp(-y_linear)),        y ~ Bernoulli(p)

    The binary response is drawn with an independent U(0, 1) value per
    point (y = 1 when u < p), not by thresholding p at 0.5.

All randomness comes from an explicit numpy Generator built from the
seed; numpy's global random state is never touched. Draw order is fixed
(x, then noise, then u) so identical arguments give bit-identical output.

Usage:
    from bayesreg.datagen import generate_linear, standardize

    x, y = generate_linear(100, {'intercept': 1.0, 'slope': 1.2},
                           noise_sd=0.5, seed=42)
    x_std, x_mean, x_std_dev = standardize(x)
    x_again = x_std * x_std_dev + x_mean

License: MIT
"""

import json
from dataclasses import dataclass, field, asdict
from typing import Dict, Optional, Tuple, Union

import numpy as np
import pandas as pd

from .exceptions import InvalidArgument, DivisionByZero


SeedLike = Union[int, np.random.Generator, None]

_KNOWN_PARAMS = ('intercept', 'slope', 'slopes', 'sigma')


# ═══════════════════════════════════════════════════════════════
# Parameter handling
# ═══════════════════════════════════════════════════════════════

def _as_generator(seed: SeedLike) -> np.random.Generator:
    """Return a Generator for ``seed`` (an existing Generator is used as-is)."""
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


def _unpack_params(true_params: Dict, noise_sd: Optional[float] = None) -> Tuple[float, np.ndarray, bool]:
    """Split a parameter set into (intercept, slopes, multi).

    A 'sigma' entry names the true noise scale; it must agree with
    ``noise_sd`` when both are given.

    ``multi`` is True when the caller passed ``slopes`` (a sequence) and
    therefore expects an (n, k) predictor matrix back.
    """
    unknown = set(true_params) - set(_KNOWN_PARAMS)
    if unknown:
        raise InvalidArgument(f"Unknown parameter(s): {sorted(unknown)}. "
                              f"Expected some of {list(_KNOWN_PARAMS)}")
    if 'slope' in true_params and 'slopes' in true_params:
        raise InvalidArgument("Give either 'slope' or 'slopes', not both")
    if 'sigma' in true_params and noise_sd is not None:
        if not np.isclose(float(true_params['sigma']), noise_sd):
            raise InvalidArgument(f"true_params['sigma']={true_params['sigma']} "
                                  f"disagrees with noise_sd={noise_sd}")

    intercept = float(true_params.get('intercept', 0.0))

    if 'slopes' in true_params:
        slopes = np.atleast_1d(np.asarray(true_params['slopes'], dtype=np.float64))
        if slopes.ndim != 1 or slopes.size == 0:
            raise InvalidArgument(f"'slopes' must be a non-empty 1-D sequence, got {true_params['slopes']!r}")
        return intercept, slopes, True

    slope = float(true_params.get('slope', 0.0))
    return intercept, np.array([slope]), False


def _check_sizes(n: int, noise_sd: float):
    if int(n) != n or n <= 0:
        raise InvalidArgument(f"n must be a positive integer, got {n}")
    if not np.isfinite(noise_sd) or noise_sd < 0:
        raise InvalidArgument(f"noise_sd must be >= 0, got {noise_sd}")


def _linear_draws(n: int, true_params: Dict, noise_sd: float,
                  rng: np.random.Generator) -> Tuple[np.ndarray, np.ndarray]:
    _check_sizes(n, noise_sd)
    intercept, slopes, multi = _unpack_params(true_params, noise_sd)
    n = int(n)

    x = rng.standard_normal((n, slopes.size))
    noise = rng.normal(0.0, noise_sd, size=n)
    y = intercept + x @ slopes + noise

    if not multi:
        x = x[:, 0]
    return x, y


# ═══════════════════════════════════════════════════════════════
# Generators
# ═══════════════════════════════════════════════════════════════

def generate_linear(n: int, true_params: Dict, noise_sd: float,
                    seed: SeedLike = None) -> Tuple[np.ndarray, np.ndarray]:
    """Simulate a linear-regression dataset.

    Args:
        n: Number of data points (> 0)
        true_params: {'intercept': a, 'slope': b} or {'intercept': a, 'slopes': [b1, b2, ...]},
            optionally with 'sigma' (must equal noise_sd)
        noise_sd: Standard deviation of the Gaussian noise (>= 0)
        seed: int, None or numpy Generator

    Returns:
        x: [n] predictor (or [n, k] when 'slopes' is given), drawn from N(0, 1)
        y: [n] response

    Raises:
        InvalidArgument: n <= 0, noise_sd < 0, unrecognised parameter names,
            or a 'sigma' entry that disagrees with noise_sd
    """
    return _linear_draws(n, true_params, noise_sd, _as_generator(seed))


def inv_logit(y: np.ndarray) -> np.ndarray:
    """Inverse-logit (sigmoid) link, 1 / (1 + exp(-y))."""
    y = np.asarray(y, dtype=np.float64)
    # exp(-y) overflows to inf for very negative y, which still gives p = 0
    with np.errstate(over='ignore'):
        return 1.0 / (1.0 + np.exp(-y))


def generate_binary(n: int, true_params: Dict, noise_sd: float,
                    seed: SeedLike = None,
                    return_probabilities: bool = False):
    """Simulate a logistic-regression dataset.

    Computes the same linear predictor as :func:`generate_linear` (same
    seed gives the same x), maps it through the inverse logit and draws
    y = 1 where an independent U(0, 1) value falls below p. Where p is
    exactly 0 or 1 the outcome is deterministic.

    Returns:
        (x, y_binary) or (x, y_binary, p) when ``return_probabilities``
    """
    rng = _as_generator(seed)
    x, y_linear = _linear_draws(n, true_params, noise_sd, rng)

    p = inv_logit(y_linear)
    u = rng.uniform(0.0, 1.0, size=p.shape)
    y_binary = (u < p).astype(np.int64)

    if return_probabilities:
        return x, y_binary, p
    return x, y_binary


# ═══════════════════════════════════════════════════════════════
# Standardization
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Standardization:
    """Stored mean/std of a standardization so it can be inverted."""
    mean: Union[float, np.ndarray]
    std: Union[float, np.ndarray]
    ddof: int = 0

    def apply(self, values) -> np.ndarray:
        return (np.asarray(values, dtype=np.float64) - self.mean) / self.std

    def invert(self, values) -> np.ndarray:
        return np.asarray(values, dtype=np.float64) * self.std + self.mean


def standardize(vector, ddof: int = 0) -> Tuple[np.ndarray, Union[float, np.ndarray],
                                                Union[float, np.ndarray]]:
    """Rescale to zero mean and unit variance.

    Args:
        vector: [n] values, or [n, k] matrix (standardized column-wise)
        ddof: 0 for the population std (default), 1 for the sample std

    Returns:
        standardized: new array, the input is left untouched
        mean: mean that was subtracted (float, or [k] for a matrix)
        std: std that was divided by (float, or [k] for a matrix)

    x == standardized * std + mean, so the transform can be undone.

    Raises:
        DivisionByZero: the input (or any column) has zero variance
        InvalidArgument: empty input or ddof not in {0, 1}
    """
    values = np.array(vector, dtype=np.float64)
    if values.size == 0:
        raise InvalidArgument("Cannot standardize an empty vector")
    if ddof not in (0, 1):
        raise InvalidArgument(f"ddof must be 0 or 1, got {ddof}")
    if values.shape[0] <= ddof:
        raise InvalidArgument(f"Need more than {ddof} value(s) to standardize")

    mean = values.mean(axis=0)
    std = values.std(axis=0, ddof=ddof)

    # ptp catches constant input whose float mean leaves a ~1e-17 residual std
    if np.any(std == 0.0) or np.any(np.ptp(values, axis=0) == 0.0):
        raise DivisionByZero("Input has zero variance; standardization is undefined")

    if values.ndim == 1:
        mean, std = float(mean), float(std)

    return (values - mean) / std, mean, std


def unstandardize_coefficients(intercept, slopes,
                               x_scaling: Standardization,
                               y_scaling: Optional[Standardization] = None):
    """Map regression coefficients fitted on standardized data back to the original scale.

    If the model was  y_s = a + b * (x - mx) / sx  (and optionally
    y_s = (y - my) / sy), the original-scale coefficients are

        slope     = b * sy / sx
        intercept = my + sy * (a - sum(b * mx / sx))

    Works elementwise, so ``intercept`` / ``slopes`` may be arrays of
    posterior draws. ``slopes`` is [..., k] for k predictors.
    """
    a = np.asarray(intercept, dtype=np.float64)
    b = np.asarray(slopes, dtype=np.float64)
    mx = np.asarray(x_scaling.mean, dtype=np.float64)
    sx = np.asarray(x_scaling.std, dtype=np.float64)

    my, sy = (0.0, 1.0) if y_scaling is None else (y_scaling.mean, y_scaling.std)

    slope_orig = b * sy / sx
    shift = b * mx / sx
    if mx.ndim > 0:
        shift = shift.sum(axis=-1)
    intercept_orig = my + sy * (a - shift)
    return intercept_orig, slope_orig


# ═══════════════════════════════════════════════════════════════
# Dataset & configuration
# ═══════════════════════════════════════════════════════════════

@dataclass
class SyntheticDataset:
    """A generated dataset together with the truth it came from."""
    x: np.ndarray
    y: np.ndarray
    true_params: Dict
    noise_sd: float
    seed: Optional[int] = None
    kind: str = 'linear'                      # 'linear' or 'binary'
    probabilities: Optional[np.ndarray] = None
    x_scaling: Optional[Standardization] = None

    @property
    def n(self) -> int:
        return len(self.y)

    @property
    def n_predictors(self) -> int:
        return 1 if self.x.ndim == 1 else self.x.shape[1]

    @property
    def design(self) -> np.ndarray:
        """Predictors as an [n, k] matrix."""
        return self.x.reshape(len(self.x), -1)

    def to_dataframe(self) -> pd.DataFrame:
        if self.x.ndim == 1:
            frame = pd.DataFrame({'x': self.x})
        else:
            frame = pd.DataFrame(self.x, columns=[f'x{j+1}' for j in range(self.x.shape[1])])
        frame['y'] = self.y
        if self.probabilities is not None:
            frame['p'] = self.probabilities
        return frame

    def standardized(self) -> 'SyntheticDataset':
        """Copy of the dataset with standardized predictors (scaling stored on it)."""
        x_std, mean, std = standardize(self.x)
        scaling = Standardization(mean=mean, std=std, ddof=0)
        return SyntheticDataset(
            x=x_std, y=self.y.copy(), true_params=dict(self.true_params),
            noise_sd=self.noise_sd, seed=self.seed, kind=self.kind,
            probabilities=None if self.probabilities is None else self.probabilities.copy(),
            x_scaling=scaling,
        )


@dataclass
class DataConfig:
    """Configuration for synthetic data generation."""
    n: int = 100
    true_params: Dict = field(default_factory=lambda: {'intercept': 1.0, 'slope': 1.2})
    noise_sd: float = 0.5
    seed: Optional[int] = 42
    kind: str = 'linear'            # 'linear' or 'binary'
    standardize: bool = False       # Standardize predictors before fitting

    def generate(self, seed: Optional[int] = None, verbose: bool = False) -> SyntheticDataset:
        """Generate a dataset. ``seed`` overrides the configured seed when given."""
        if seed is None:
            seed = self.seed

        if self.kind == 'linear':
            x, y = generate_linear(self.n, self.true_params, self.noise_sd, seed)
            p = None
        elif self.kind == 'binary':
            x, y, p = generate_binary(self.n, self.true_params, self.noise_sd, seed,
                                      return_probabilities=True)
        else:
            raise InvalidArgument(f"Unknown data kind: {self.kind}")

        dataset = SyntheticDataset(
            x=x, y=y, true_params=dict(self.true_params), noise_sd=self.noise_sd,
            seed=seed if isinstance(seed, (int, np.integer)) else None,
            kind=self.kind, probabilities=p,
        )

        if verbose:
            print(f"[Data] Generated {self.kind} dataset: n={dataset.n}, "
                  f"predictors={dataset.n_predictors}, seed={seed}")
            if self.kind == 'binary':
                print(f"  Fraction of ones: {np.mean(y):.3f}")

        if self.standardize:
            dataset = dataset.standardized()
            if verbose:
                print(f"[Data] Standardized predictors (mean={scaling_repr(dataset.x_scaling.mean)}, "
                      f"std={scaling_repr(dataset.x_scaling.std)})")
        return dataset

    def to_dict(self) -> Dict:
        d = asdict(self)
        if 'slopes' in d['true_params']:
            d['true_params']['slopes'] = [float(s) for s in d['true_params']['slopes']]
        return d

    @classmethod
    def from_dict(cls, d: Dict) -> 'DataConfig':
        return cls(**d)

    def save(self, filepath: str):
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, filepath: str) -> 'DataConfig':
        with open(filepath, 'r') as f:
            return cls.from_dict(json.load(f))


def scaling_repr(value) -> str:
    """Short printable form of a scalar or per-column mean/std."""
    arr = np.atleast_1d(value)
    if arr.size == 1:
        return f"{float(arr[0]):.3f}"
    return '[' + ', '.join(f"{v:.3f}" for v in arr) + ']'
