"""
Pytest configuration and fixtures for reproducible testing.

This file provides centralized test configuration including:
- Random seed management for reproducibility
- A non-interactive matplotlib backend
- Chain-collection factories and a closed-form stand-in sampler, so the
  diagnostics and workflow can be tested without PyMC
"""
import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest

from bayesreg.chains import ChainCollection
from bayesreg.datagen import inv_logit


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: MCMC sampling runs (deselect with -m 'not slow')")


@pytest.fixture(scope="session", autouse=True)
def set_random_seeds():
    """Set random seeds at the start of test session for reproducibility.

    The package itself never reads numpy's global state; this only pins
    any test helper that does.
    """
    np.random.seed(42)

    yield


@pytest.fixture
def rng():
    """Fresh seeded Generator for each test."""
    return np.random.default_rng(12345)


@pytest.fixture
def normal_chains(rng):
    """Factory: C chains of T iid N(loc, 1) draws for the given parameter names."""
    def make(n_chains=4, n_samples=200, names=('theta',), locs=None):
        locs = locs if locs is not None else [0.0] * n_chains
        return ChainCollection([
            {name: rng.normal(locs[c], 1.0, size=n_samples) for name in names}
            for c in range(n_chains)
        ])
    return make


def closed_form_fit_func(n_chains=4, n_draws=500, seed=0):
    """Stand-in sampler drawing from the large-sample posterior approximation.

    Linear data: N(beta_ols, s^2 (X'X)^-1) for the coefficients and
    sigma ~ s * N(1, 1/sqrt(2(n-p))). Binary data: Laplace approximation
    around the logistic MLE (Newton iterations). Draws are iid, so chains
    mix perfectly.
    """
    def fit(dataset):
        rng = np.random.default_rng(seed)
        X = np.column_stack([np.ones(dataset.n), dataset.design])
        y = np.asarray(dataset.y, dtype=np.float64)
        n, p = X.shape

        if dataset.kind == 'linear':
            beta, *_ = np.linalg.lstsq(X, y, rcond=None)
            resid = y - X @ beta
            s2 = resid @ resid / (n - p)
            cov = s2 * np.linalg.inv(X.T @ X)
        else:
            beta = np.zeros(p)
            for _ in range(25):
                prob = inv_logit(X @ beta)
                hessian = X.T @ (X * (prob * (1 - prob))[:, None])
                beta = beta + np.linalg.solve(hessian, X.T @ (y - prob))
            prob = inv_logit(X @ beta)
            cov = np.linalg.inv(X.T @ (X * (prob * (1 - prob))[:, None]))

        draws = rng.multivariate_normal(beta, cov, size=(n_chains, n_draws))
        arrays = {'intercept': draws[..., 0]}
        if dataset.x.ndim == 1:
            arrays['slope'] = draws[..., 1]
        else:
            for j in range(p - 1):
                arrays[f"slopes[{j}]"] = draws[..., j + 1]
        if dataset.kind == 'linear':
            arrays['sigma'] = np.sqrt(s2) * rng.normal(1.0, 1.0 / np.sqrt(2 * (n - p)),
                                                       size=(n_chains, n_draws))
        return ChainCollection.from_arrays(arrays)

    return fit


@pytest.fixture
def fit_func():
    return closed_form_fit_func()


@pytest.fixture
def make_fit_func():
    """Factory for stand-in samplers with custom chain counts / lengths."""
    return closed_form_fit_func


@pytest.fixture(autouse=True)
def close_figures():
    yield
    import matplotlib.pyplot as plt
    plt.close('all')
