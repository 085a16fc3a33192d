"""
Bayesian Regression Tutorials - synthetic data and posterior diagnostics

Simulate regression data from known parameters, fit it with an external
MCMC sampler (PyMC), and check convergence and parameter recovery from
the raw chains.
"""

__version__ = "0.3.0"

# Synthetic data
from .datagen import (
    generate_linear,
    generate_binary,
    standardize,
    unstandardize_coefficients,
    Standardization,
    SyntheticDataset,
    DataConfig,
)

# Chains & diagnostics
from .chains import ChainCollection
from .diagnostics import (
    summarize,
    gelman_rubin,
    recover_intervals,
    effective_independence_check,
    DiagnosticsConfig,
)
from .exceptions import (
    BayesRegError,
    InvalidArgument,
    DivisionByZero,
    EmptyInput,
    InsufficientChains,
    InsufficientSamples,
    UnknownParameter,
)

# Workflow
from .workflow import run_tutorial, recovery_study

try:
    from .bayesian import RegressionEstimator, BayesianConfig
except ImportError:
    # PyMC is optional
    RegressionEstimator = None
    BayesianConfig = None

__all__ = [
    "generate_linear",
    "generate_binary",
    "standardize",
    "unstandardize_coefficients",
    "Standardization",
    "SyntheticDataset",
    "DataConfig",
    "ChainCollection",
    "summarize",
    "gelman_rubin",
    "recover_intervals",
    "effective_independence_check",
    "DiagnosticsConfig",
    "BayesRegError",
    "InvalidArgument",
    "DivisionByZero",
    "EmptyInput",
    "InsufficientChains",
    "InsufficientSamples",
    "UnknownParameter",
    "run_tutorial",
    "recovery_study",
    "RegressionEstimator",
    "BayesianConfig",
]
