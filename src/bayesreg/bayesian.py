"""
Bayesian Regression Tutorials — PyMC Sampler Boundary
======================================================
Declares the tutorial regression models in PyMC, runs its MCMC sampler and
hands the draws to the diagnostics engine as a ChainCollection.

Everything probabilistic-programming related (model graph, compilation,
transition kernels) lives inside PyMC; this module only configures it.

Models:
    Linear:    intercept ~ N(0, s_b),  slope ~ N(0, s_b),  sigma ~ HalfNormal(s_n)
               y ~ N(intercept + slope * x, sigma)

    Logistic:  intercept ~ N(0, s_b),  slope ~ N(0, s_b)
               y ~ Bernoulli(p),  logit(p) = intercept + slope * x

    With several predictors the slope becomes a vector 'slopes' whose
    draws reach the diagnostics as 'slopes[0]', 'slopes[1]', ...

Usage:
    from bayesreg.datagen import DataConfig
    from bayesreg.bayesian import RegressionEstimator, BayesianConfig

    dataset = DataConfig(n=100, seed=42).generate()
    estimator = RegressionEstimator(BayesianConfig(n_chains=4, n_draws=1000))
    chains = estimator.fit(dataset)

License: MIT
"""

import json
import warnings
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional

import numpy as np

try:
    import pymc as pm
    import arviz as az
    PYMC_AVAILABLE = True
except ImportError:
    PYMC_AVAILABLE = False
    pm = None
    az = None
    warnings.warn("[WARNING] PyMC not installed. Install with: pip install 'bayesreg-tutorials[bayesian]'")

from .chains import ChainCollection
from .datagen import SyntheticDataset
from .diagnostics import gelman_rubin, effective_independence_check, summarize


# ═══════════════════════════════════════════════════════════════
# Configuration
# ═══════════════════════════════════════════════════════════════

@dataclass
class BayesianConfig:
    """Configuration for MCMC sampling of the regression models."""
    n_chains: int = 4              # Number of independent chains
    n_draws: int = 1000            # Samples kept per chain
    n_tune: int = 1000             # Burn-in / tuning steps (discarded by the sampler)
    thin: int = 1                  # Keep every k-th draw
    target_accept: float = 0.9     # Target acceptance rate (NUTS)
    sampler: str = 'NUTS'          # 'NUTS', 'Metropolis', 'Slice'

    # Priors
    coef_prior_sigma: float = 10.0   # sd of the Normal priors on intercept/slopes
    noise_prior_sigma: float = 5.0   # scale of the HalfNormal prior on sigma

    # Computational
    cores: int = 1
    progressbar: bool = False
    random_seed: Optional[int] = 42

    # Diagnostics
    check_convergence: bool = True
    rhat_threshold: float = 1.1    # Display threshold for the convergence printout
    verbose: bool = True

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict) -> 'BayesianConfig':
        return cls(**d)

    def save(self, filepath: str):
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, filepath: str) -> 'BayesianConfig':
        with open(filepath, 'r') as f:
            return cls.from_dict(json.load(f))


def monitored_names(dataset: SyntheticDataset) -> List[str]:
    """Names of the scalar parameters a fit of ``dataset`` reports."""
    if dataset.x.ndim == 1:
        names = ['intercept', 'slope']
    else:
        names = ['intercept'] + [f"slopes[{j}]" for j in range(dataset.n_predictors)]
    if dataset.kind == 'linear':
        names.append('sigma')
    return names


# ═══════════════════════════════════════════════════════════════
# Regression Estimator — Main Class
# ═══════════════════════════════════════════════════════════════

class RegressionEstimator:
    """Bayesian linear / logistic regression via PyMC.

    The estimator owns no statistics of its own: after sampling it converts
    the trace into a ChainCollection, and every summary and convergence
    number comes from bayesreg.diagnostics.
    """

    def __init__(self, config: Optional[BayesianConfig] = None):
        """
        Args:
            config: MCMC configuration (defaults if None)
        """
        if not PYMC_AVAILABLE:
            raise ImportError("PyMC required. Install with: pip install 'bayesreg-tutorials[bayesian]'")

        self.config = config or BayesianConfig()
        if self.config.thin < 1:
            raise ValueError(f"thin must be >= 1, got {self.config.thin}")

        # Model and trace (populated by fit)
        self.model = None
        self.trace = None
        self.chains = None

        if self.config.verbose:
            print(f"[Bayesian] Sampler: {self.config.sampler}, Chains: {self.config.n_chains}")

    def build_model(self, dataset: SyntheticDataset) -> 'pm.Model':
        """Declare the regression model for ``dataset`` (linear or binary)."""
        cfg = self.config
        y = np.asarray(dataset.y)

        with pm.Model() as model:
            intercept = pm.Normal('intercept', mu=0.0, sigma=cfg.coef_prior_sigma)

            if dataset.x.ndim == 1:
                slope = pm.Normal('slope', mu=0.0, sigma=cfg.coef_prior_sigma)
                mu = intercept + slope * dataset.x
            else:
                slopes = pm.Normal('slopes', mu=0.0, sigma=cfg.coef_prior_sigma,
                                   shape=dataset.n_predictors)
                mu = intercept + pm.math.dot(dataset.x, slopes)

            if dataset.kind == 'linear':
                sigma = pm.HalfNormal('sigma', sigma=cfg.noise_prior_sigma)
                pm.Normal('y_obs', mu=mu, sigma=sigma, observed=y)
            elif dataset.kind == 'binary':
                pm.Bernoulli('y_obs', logit_p=mu, observed=y)
            else:
                raise ValueError(f"Unknown data kind: {dataset.kind}")

        return model

    def _step(self):
        if self.config.sampler == 'NUTS':
            return pm.NUTS(target_accept=self.config.target_accept)
        elif self.config.sampler == 'Metropolis':
            return pm.Metropolis()
        elif self.config.sampler == 'Slice':
            return pm.Slice()
        raise ValueError(f"Unknown sampler: {self.config.sampler}")

    def fit(self, dataset: SyntheticDataset) -> ChainCollection:
        """Sample the posterior of the regression model for ``dataset``.

        Returns:
            ChainCollection of the monitored parameters (after thinning)
        """
        cfg = self.config
        if cfg.verbose:
            print(f"[Bayesian] Fitting {dataset.kind} regression: n={dataset.n}, "
                  f"predictors={dataset.n_predictors}")

        self.model = self.build_model(dataset)

        with self.model:
            if cfg.verbose:
                print(f"[Bayesian] Starting MCMC sampling...")
                print(f"  Chains: {cfg.n_chains}")
                print(f"  Draws per chain: {cfg.n_draws}")
                print(f"  Tuning steps: {cfg.n_tune}")

            self.trace = pm.sample(
                draws=cfg.n_draws,
                tune=cfg.n_tune,
                chains=cfg.n_chains,
                step=self._step(),
                cores=cfg.cores,
                progressbar=cfg.progressbar,
                return_inferencedata=True,
                random_seed=cfg.random_seed,
            )

        var_names = ['intercept', 'slope' if dataset.x.ndim == 1 else 'slopes']
        if dataset.kind == 'linear':
            var_names.append('sigma')

        chains = ChainCollection.from_inference_data(self.trace, var_names=var_names)
        if cfg.thin > 1:
            chains = chains.thin(cfg.thin)
        self.chains = chains

        if cfg.check_convergence:
            self._check_convergence(chains)

        if cfg.verbose:
            print("[Bayesian] Sampling complete!")
        return chains

    def _check_convergence(self, chains: ChainCollection):
        """Print R-hat and lag-1 autocorrelation for every monitored parameter."""
        if self.config.verbose:
            print("\n[Bayesian] Convergence Diagnostics:")

        if chains.n_chains < 2 or chains.n_samples < 2:
            if self.config.verbose:
                print("  R-hat needs at least 2 chains of 2 samples; skipped")
            return

        rhat = gelman_rubin(chains)
        mixing = effective_independence_check(chains)
        threshold = self.config.rhat_threshold

        flagged = [name for name, r in rhat.items() if not r.rhat < threshold]
        if self.config.verbose:
            print(f"  R-hat (target < {threshold}):")
            for name, r in rhat.items():
                status = "✓" if r.rhat < threshold else "✗ WARNING"
                print(f"    {name}: {r.rhat:.4f} (upper {r.upper:.4f}) {status}")
            print(f"\n  Lag-1 autocorrelation (mean over chains):")
            for name, m in mixing.items():
                print(f"    {name}: {m.mean_lag1:.3f}")

        if flagged:
            warnings.warn(f"R-hat >= {threshold} for {flagged}; chains may not have converged")

    def summarize_posterior(self,
                            chains: Optional[ChainCollection] = None,
                            credible_interval: float = 0.95) -> Dict:
        """Mean, sd and central credible interval for each parameter.

        Args:
            chains: Draws to summarize (uses the last fit if None)
            credible_interval: Interval mass (0.95 = 95% CI)

        Returns:
            Dict of {name: {'mean', 'std', 'ci_lower', 'ci_upper'}}
        """
        if chains is None:
            chains = self.chains

        if chains is None:
            raise ValueError("No chains available. Run fit() first.")

        tail = (1.0 - credible_interval) / 2.0
        summary = summarize(chains, tail_probs=(tail, 1.0 - tail))

        return {
            name: {
                'mean': record.mean,
                'std': record.sd,
                'ci_lower': record.lower,
                'ci_upper': record.upper,
            }
            for name, record in summary.items()
        }

    def save_trace(self, filepath: str):
        """Save MCMC trace to NetCDF."""
        if self.trace is None:
            raise ValueError("No trace to save")

        az.to_netcdf(self.trace, filepath)
        if self.config.verbose:
            print(f"[Bayesian] Trace saved to {filepath}")

    @staticmethod
    def load_trace(filepath: str) -> 'az.InferenceData':
        """Load saved MCMC trace."""
        trace = az.from_netcdf(filepath)
        print(f"[Bayesian] Trace loaded from {filepath}")
        return trace
