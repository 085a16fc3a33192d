"""
Bayesian Regression Tutorials — Posterior Diagnostics Engine
=============================================================
Summaries and convergence checks computed directly from sampler output.

Operations:
- summarize:                    mean, sd and central-interval quantiles per
                                parameter, pooled over chains or per chain
- gelman_rubin:                 potential scale reduction factor R-hat
- recover_intervals:            point estimate + 50% / 90% intervals paired
                                with the true value the data came from
- effective_independence_check: lag-1 autocorrelation as a mixing proxy

Gelman-Rubin (C chains, T samples each, per parameter):

    W = mean_j s_j^2                              (s_j^2 with T-1 denominator)
    B = T / (C-1) * sum_j (mean_j - grand_mean)^2
    V = (T-1)/T * W + B/T
    R-hat = sqrt(V / W)

    Values near 1.0 indicate the chains agree. No threshold is applied here;
    1.1 is the usual cut-off and is left to the caller.

Quantiles use linear interpolation between order statistics (Hyndman & Fan
type 7, numpy's default 'linear' method): for sorted x_0..x_{n-1} and
probability q, h = (n-1)q and Q(q) = x_floor(h) + (h - floor(h)) *
(x_floor(h)+1 - x_floor(h)).

Every function is pure: it reads the (immutable) chain collection and
returns fresh records, or raises before computing anything.

References:
    Gelman, A. & Rubin, D. B. (1992). Inference from iterative simulation
    using multiple sequences. Statistical Science, 7(4), 457-472.

License: MIT
"""

import json
import warnings
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from scipy import stats

from .chains import ChainCollection
from .exceptions import (
    InvalidArgument, EmptyInput, InsufficientChains,
    InsufficientSamples, UnknownParameter,
)


POOLED = 'pooled'
PER_CHAIN = 'per_chain'

DEFAULT_TAIL_PROBS = (0.025, 0.975)
RECOVERY_LEVELS = (0.5, 0.9)


# ═══════════════════════════════════════════════════════════════
# Records
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SummaryRecord:
    """Summary of one parameter over one scope (a single chain or all chains)."""
    parameter: str
    scope: str                      # 'pooled' or 'chain'
    chain: Optional[int]            # chain index, None when pooled
    n_samples: int
    mean: float
    sd: float
    quantiles: Dict[float, float]

    @property
    def lower(self) -> float:
        return self.quantiles[min(self.quantiles)]

    @property
    def upper(self) -> float:
        return self.quantiles[max(self.quantiles)]

    def interval(self, level: float) -> Tuple[float, float]:
        """Central interval of the given mass, if its tail quantiles were computed."""
        lo, hi = _central_tails(level)
        try:
            return self.quantiles[lo], self.quantiles[hi]
        except KeyError:
            raise InvalidArgument(
                f"{level:.0%} interval needs quantiles {lo} and {hi}; "
                f"summary has {sorted(self.quantiles)}") from None

    def to_dict(self) -> Dict:
        d = asdict(self)
        d['quantiles'] = {str(q): v for q, v in self.quantiles.items()}
        return d


@dataclass(frozen=True)
class ConvergenceRecord:
    """Gelman-Rubin statistic for one parameter."""
    parameter: str
    rhat: float
    upper: Optional[float]          # upper confidence bound, None if not requested
    within: float                   # W
    between: float                  # B
    pooled_variance: float          # V
    n_chains: int
    n_samples: int

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class RecoveryRecord:
    """Posterior estimate of one parameter next to the value used to simulate the data."""
    parameter: str
    true_value: float
    estimate: float
    point_estimator: str
    intervals: Dict[float, Tuple[float, float]] = field(default_factory=dict)

    def covers(self, level: float) -> bool:
        lo, hi = self.intervals[level]
        return lo <= self.true_value <= hi

    @property
    def covered_50(self) -> bool:
        return self.covers(0.5)

    @property
    def covered_90(self) -> bool:
        return self.covers(0.9)

    @property
    def error(self) -> float:
        return self.estimate - self.true_value

    def to_dict(self) -> Dict:
        return {
            'parameter': self.parameter,
            'true_value': self.true_value,
            'estimate': self.estimate,
            'point_estimator': self.point_estimator,
            'intervals': {str(level): list(bounds) for level, bounds in self.intervals.items()},
        }


@dataclass(frozen=True)
class MixingRecord:
    """Lag-1 autocorrelation of each chain for one parameter (informational)."""
    parameter: str
    lag1: Tuple[float, ...]

    @property
    def mean_lag1(self) -> float:
        finite = [r for r in self.lag1 if np.isfinite(r)]
        return float(np.mean(finite)) if finite else float('nan')

    def to_dict(self) -> Dict:
        return {'parameter': self.parameter, 'lag1': list(self.lag1),
                'mean_lag1': self.mean_lag1}


# ═══════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════

def _central_tails(level: float) -> Tuple[float, float]:
    """Tail probabilities of a central interval, rounded to kill float noise (0.05 not 0.04999...)."""
    if not 0.0 < level < 1.0:
        raise InvalidArgument(f"Interval level must be in (0, 1), got {level}")
    tail = (1.0 - level) / 2.0
    return round(tail, 10), round(1.0 - tail, 10)


def _check_tail_probs(tail_probs: Sequence[float]) -> Tuple[float, ...]:
    probs = tuple(float(q) for q in tail_probs)
    if len(probs) == 0:
        raise InvalidArgument("At least one tail probability is required")
    for q in probs:
        if not 0.0 <= q <= 1.0:
            raise InvalidArgument(f"Tail probabilities must be in [0, 1], got {q}")
    return probs


def _check_not_empty(chains: ChainCollection):
    if chains.n_samples == 0:
        raise EmptyInput(f"All {chains.n_chains} chain(s) have zero samples")


def _summary_of(values: np.ndarray, name: str, scope: str, chain: Optional[int],
                probs: Tuple[float, ...]) -> SummaryRecord:
    sd = float(np.std(values, ddof=1)) if len(values) > 1 else float('nan')
    quantiles = np.quantile(values, probs, method='linear')
    return SummaryRecord(
        parameter=name, scope=scope, chain=chain, n_samples=len(values),
        mean=float(np.mean(values)), sd=sd,
        quantiles={q: float(v) for q, v in zip(probs, quantiles)},
    )


def _lag1_autocorrelation(x: np.ndarray) -> float:
    if len(x) < 2:
        return float('nan')
    centered = x - x.mean()
    denom = float(np.dot(centered, centered))
    if denom == 0.0:
        return float('nan')
    return float(np.dot(centered[:-1], centered[1:]) / denom)


# ═══════════════════════════════════════════════════════════════
# Operations
# ═══════════════════════════════════════════════════════════════

def summarize(chains: ChainCollection,
              scope: str = POOLED,
              tail_probs: Sequence[float] = DEFAULT_TAIL_PROBS,
              parameters: Optional[List[str]] = None
              ) -> Dict[str, Union[SummaryRecord, List[SummaryRecord]]]:
    """Mean, standard deviation and quantiles of each monitored parameter.

    Args:
        chains: Sampler output
        scope: 'pooled' (all C*T samples together) or 'per_chain'
        tail_probs: Probabilities of the reported quantiles, default a 95%
            central credible interval (0.025, 0.975)
        parameters: Subset of parameter names (default: all monitored)

    Returns:
        pooled:    {name: SummaryRecord}
        per_chain: {name: [SummaryRecord for chain 0..C-1]}

    The standard deviation uses the T-1 (sample) denominator; pooling is a
    plain concatenation of the chains, so pooled mean/sd equal those of a
    single chain holding all C*T samples.

    Raises:
        EmptyInput: the chains hold zero samples
        UnknownParameter: a requested name is not monitored
        InvalidArgument: bad scope or tail probabilities
    """
    if scope not in (POOLED, PER_CHAIN):
        raise InvalidArgument(f"scope must be '{POOLED}' or '{PER_CHAIN}', got '{scope}'")
    probs = _check_tail_probs(tail_probs)
    names = chains.parameter_names if parameters is None else list(parameters)
    for name in names:
        if name not in chains:
            raise UnknownParameter(f"Parameter '{name}' is not monitored in the chains")
    _check_not_empty(chains)

    summary = {}
    for name in names:
        if scope == POOLED:
            summary[name] = _summary_of(chains.pooled(name), name, POOLED, None, probs)
        else:
            summary[name] = [_summary_of(values, name, 'chain', c, probs)
                             for c, values in enumerate(chains.values(name))]
    return summary


def gelman_rubin(chains: ChainCollection,
                 confidence: Optional[float] = 0.95) -> Dict[str, ConvergenceRecord]:
    """Gelman-Rubin potential scale reduction factor per parameter.

    Args:
        chains: Sampler output with C >= 2 chains of T >= 2 samples
        confidence: Level of the upper confidence bound on R-hat, or None
            to skip it. The bound replaces B/W by its F-quantile
            (Gelman & Rubin 1992):

                upper^2 = (T-1)/T + F^-1((1+confidence)/2; C-1, W_df) * B / (T*W)
                W_df    = 2 W^2 / var_w,   var_w = var_j(s_j^2) / C

            With identical per-chain variances (var_w = 0) the F quantile is
            taken at its W_df -> inf limit, chi2(C-1) / (C-1).

    Returns:
        {name: ConvergenceRecord}. When every chain is constant (W = 0)
        R-hat is undefined and reported as NaN with a warning.

    Raises:
        InsufficientChains: fewer than 2 chains
        InsufficientSamples: fewer than 2 samples per chain
    """
    n_chains, n_samples = chains.n_chains, chains.n_samples
    if n_chains < 2:
        raise InsufficientChains(f"Gelman-Rubin needs at least 2 chains, got {n_chains}")
    if n_samples < 2:
        raise InsufficientSamples(
            f"Gelman-Rubin needs at least 2 samples per chain, got {n_samples}")
    if confidence is not None and not 0.0 < confidence < 1.0:
        raise InvalidArgument(f"confidence must be in (0, 1), got {confidence}")

    C, T = n_chains, n_samples
    records = {}

    for name in chains.parameter_names:
        x = chains.values(name)                      # [C, T]
        chain_means = x.mean(axis=1)
        chain_vars = x.var(axis=1, ddof=1)
        grand_mean = chain_means.mean()

        W = float(chain_vars.mean())
        B = float(T / (C - 1) * np.sum((chain_means - grand_mean) ** 2))
        V = (T - 1) / T * W + B / T

        if W == 0.0:
            warnings.warn(f"Within-chain variance of '{name}' is zero; R-hat is undefined")
            rhat = float('nan')
            upper = None if confidence is None else float('nan')
        else:
            rhat = float(np.sqrt(V / W))
            upper = None
            if confidence is not None:
                q = (1.0 + confidence) / 2.0
                var_w = float(np.var(chain_vars, ddof=1)) / C
                if var_w == 0.0:
                    f_quantile = stats.chi2.ppf(q, C - 1) / (C - 1)
                else:
                    w_df = 2.0 * W ** 2 / var_w
                    f_quantile = stats.f.ppf(q, C - 1, w_df)
                upper = float(np.sqrt((T - 1) / T + f_quantile * B / (T * W)))

        records[name] = ConvergenceRecord(
            parameter=name, rhat=rhat, upper=upper,
            within=W, between=B, pooled_variance=float(V),
            n_chains=C, n_samples=T,
        )

    return records


def recover_intervals(chains: ChainCollection,
                      true_values: Mapping[str, float],
                      point_estimator: str = 'mean',
                      levels: Sequence[float] = RECOVERY_LEVELS) -> Dict[str, RecoveryRecord]:
    """Pair each true parameter value with its posterior estimate and intervals.

    Args:
        chains: Sampler output
        true_values: {name: value used to simulate the data}
        point_estimator: 'mean' or 'median' of the pooled samples
        levels: Central credible-interval masses (default 50% and 90%)

    Returns:
        {name: RecoveryRecord} in the order of ``true_values``

    Raises:
        UnknownParameter: a name in ``true_values`` is not monitored
            (checked before anything is computed)
    """
    missing = [name for name in true_values if name not in chains]
    if missing:
        raise UnknownParameter(
            f"True value(s) given for unmonitored parameter(s) {missing} "
            f"(monitored: {chains.parameter_names})")
    if point_estimator not in ('mean', 'median'):
        raise InvalidArgument(f"point_estimator must be 'mean' or 'median', got '{point_estimator}'")

    tails = [_central_tails(level) for level in levels]
    probs = sorted({0.5} | {q for pair in tails for q in pair})
    summary = summarize(chains, POOLED, probs, parameters=list(true_values))

    records = {}
    for name, true_value in true_values.items():
        s = summary[name]
        estimate = s.mean if point_estimator == 'mean' else s.quantiles[0.5]
        records[name] = RecoveryRecord(
            parameter=name,
            true_value=float(true_value),
            estimate=estimate,
            point_estimator=point_estimator,
            intervals={level: (s.quantiles[lo], s.quantiles[hi])
                       for level, (lo, hi) in zip(levels, tails)},
        )
    return records


def effective_independence_check(chains: ChainCollection) -> Dict[str, MixingRecord]:
    """Lag-1 autocorrelation of every chain, a cheap proxy for mixing speed.

    Values near 0 mean successive draws are nearly independent; values
    near 1 mean the chain moves slowly. Constant or single-sample chains
    give NaN. No verdict is attached.
    """
    _check_not_empty(chains)
    return {
        name: MixingRecord(
            parameter=name,
            lag1=tuple(_lag1_autocorrelation(values) for values in chains.values(name)),
        )
        for name in chains.parameter_names
    }


def compare_summaries(summary: Mapping[str, SummaryRecord],
                      reference: Mapping[str, Mapping[str, float]],
                      atol: float = 1e-8) -> Dict[str, Dict]:
    """Check a sampler's own summary against ours.

    Args:
        summary: Pooled output of :func:`summarize`
        reference: {name: {'mean': ..., 'sd': ...}} as reported by the
            sampler ('std' is accepted for 'sd')
        atol: Absolute tolerance for a match

    Returns:
        {name: {'mean_diff', 'sd_diff', 'match'}}
    """
    missing = [name for name in reference if name not in summary]
    if missing:
        raise UnknownParameter(f"Reference summary has unknown parameter(s) {missing}")

    result = {}
    for name, ref in reference.items():
        ours = summary[name]
        ref_sd = ref['sd'] if 'sd' in ref else ref['std']
        mean_diff = abs(ours.mean - float(ref['mean']))
        sd_diff = abs(ours.sd - float(ref_sd))
        result[name] = {
            'mean_diff': mean_diff,
            'sd_diff': sd_diff,
            'match': bool(mean_diff <= atol and sd_diff <= atol),
        }
    return result


# ═══════════════════════════════════════════════════════════════
# Tables
# ═══════════════════════════════════════════════════════════════

def summary_table(summary: Mapping) -> pd.DataFrame:
    """Flatten a pooled or per-chain summary into one row per record."""
    rows = []
    for records in summary.values():
        if isinstance(records, SummaryRecord):
            records = [records]
        for r in records:
            row = {'parameter': r.parameter,
                   'chain': 'all' if r.chain is None else r.chain,
                   'n': r.n_samples, 'mean': r.mean, 'sd': r.sd}
            for q, v in r.quantiles.items():
                row[f"q{q * 100:g}%"] = v
            rows.append(row)
    return pd.DataFrame(rows)


def convergence_table(convergence: Mapping[str, ConvergenceRecord]) -> pd.DataFrame:
    return pd.DataFrame([r.to_dict() for r in convergence.values()]).set_index('parameter')


def recovery_table(recovery: Mapping[str, RecoveryRecord]) -> pd.DataFrame:
    rows = []
    for r in recovery.values():
        row = {'parameter': r.parameter, 'true': r.true_value, r.point_estimator: r.estimate}
        for level, (lo, hi) in r.intervals.items():
            row[f"{level:.0%}_lower"] = lo
            row[f"{level:.0%}_upper"] = hi
            row[f"in_{level:.0%}"] = lo <= r.true_value <= hi
        rows.append(row)
    return pd.DataFrame(rows).set_index('parameter')


# ═══════════════════════════════════════════════════════════════
# Configuration
# ═══════════════════════════════════════════════════════════════

@dataclass
class DiagnosticsConfig:
    """Configuration for posterior summaries and convergence checks."""
    tail_probs: Tuple[float, ...] = DEFAULT_TAIL_PROBS
    point_estimator: str = 'mean'       # 'mean' or 'median'
    recovery_levels: Tuple[float, ...] = RECOVERY_LEVELS
    rhat_confidence: Optional[float] = 0.95
    rhat_threshold: float = 1.1         # Display only; never applied by gelman_rubin

    def to_dict(self) -> Dict:
        d = asdict(self)
        d['tail_probs'] = list(self.tail_probs)
        d['recovery_levels'] = list(self.recovery_levels)
        return d

    @classmethod
    def from_dict(cls, d: Dict) -> 'DiagnosticsConfig':
        d = dict(d)
        for key in ('tail_probs', 'recovery_levels'):
            if key in d:
                d[key] = tuple(d[key])
        return cls(**d)

    def save(self, filepath: str):
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, filepath: str) -> 'DiagnosticsConfig':
        with open(filepath, 'r') as f:
            return cls.from_dict(json.load(f))
