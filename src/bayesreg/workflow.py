"""
End-to-end tutorial pipeline: simulate -> fit -> diagnose -> report.

This mirrors the narrative of the regression tutorials:
1. Choose true parameters and simulate a dataset
2. (Optionally) standardize the predictors
3. Sample the posterior with the external sampler
4. Summarize, check R-hat and mixing
5. Compare the recovered intervals with the truth

The sampler is injected as ``fit_func(dataset) -> ChainCollection`` so any
library able to emit chains can stand in for PyMC.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Optional

import numpy as np
import pandas as pd
from tqdm import tqdm

from .chains import ChainCollection
from .datagen import DataConfig, SyntheticDataset, unstandardize_coefficients
from .diagnostics import (
    DiagnosticsConfig, summarize, gelman_rubin, recover_intervals,
    effective_independence_check, summary_table, convergence_table,
    recovery_table,
)


FitFunc = Callable[[SyntheticDataset], ChainCollection]


def true_values_for(dataset: SyntheticDataset) -> Dict[str, float]:
    """Ground truth keyed by the names the regression fit reports."""
    truth = {'intercept': float(dataset.true_params.get('intercept', 0.0))}
    if 'slopes' in dataset.true_params:
        for j, s in enumerate(np.atleast_1d(dataset.true_params['slopes'])):
            truth[f"slopes[{j}]"] = float(s)
    else:
        truth['slope'] = float(dataset.true_params.get('slope', 0.0))
    if dataset.kind == 'linear':
        truth['sigma'] = float(dataset.true_params.get('sigma', dataset.noise_sd))
    return truth


def to_original_scale(chains: ChainCollection, dataset: SyntheticDataset) -> ChainCollection:
    """Back-transform intercept/slope draws fitted on standardized predictors.

    Returns ``chains`` unchanged when the dataset was not standardized.
    """
    if dataset.x_scaling is None:
        return chains

    arrays = {name: np.array(chains.values(name)) for name in chains.parameter_names}

    if 'slope' in arrays:
        intercept, slope = unstandardize_coefficients(
            arrays['intercept'], arrays['slope'], dataset.x_scaling)
        arrays['intercept'], arrays['slope'] = intercept, slope
    else:
        k = dataset.n_predictors
        slopes = np.stack([arrays[f"slopes[{j}]"] for j in range(k)], axis=-1)   # [C, T, k]
        intercept, slopes = unstandardize_coefficients(
            arrays['intercept'], slopes, dataset.x_scaling)
        arrays['intercept'] = intercept
        for j in range(k):
            arrays[f"slopes[{j}]"] = slopes[..., j]

    return ChainCollection.from_arrays(arrays)


@dataclass
class TutorialResult:
    """Everything one tutorial run produces."""
    dataset: SyntheticDataset
    chains: ChainCollection
    summary: Dict
    convergence: Dict
    mixing: Dict
    recovery: Dict
    tables: Dict[str, pd.DataFrame] = field(default_factory=dict)

    def __post_init__(self):
        if not self.tables:
            self.tables = {
                'summary': summary_table(self.summary),
                'convergence': convergence_table(self.convergence) if self.convergence else pd.DataFrame(),
                'recovery': recovery_table(self.recovery),
            }


def _default_fit_func(bayes_config) -> FitFunc:
    from .bayesian import RegressionEstimator
    return RegressionEstimator(bayes_config).fit


def run_tutorial(data_config: Optional[DataConfig] = None,
                 bayes_config=None,
                 diag_config: Optional[DiagnosticsConfig] = None,
                 fit_func: Optional[FitFunc] = None,
                 seed: Optional[int] = None,
                 verbose: bool = True) -> TutorialResult:
    """Run one simulate-fit-diagnose cycle.

    Args:
        data_config: Synthetic data settings (defaults if None)
        bayes_config: BayesianConfig for the PyMC estimator (ignored when
            ``fit_func`` is given)
        diag_config: Summary / convergence settings
        fit_func: dataset -> ChainCollection; defaults to RegressionEstimator.fit
        seed: Overrides the data seed
        verbose: Print progress

    Returns:
        TutorialResult
    """
    data_config = data_config or DataConfig()
    diag_config = diag_config or DiagnosticsConfig()
    fit_func = fit_func or _default_fit_func(bayes_config)

    if verbose:
        print("\n[Workflow] Step 1: simulating data...")
    dataset = data_config.generate(seed=seed, verbose=verbose)

    if verbose:
        print("[Workflow] Step 2: sampling the posterior...")
    chains = to_original_scale(fit_func(dataset), dataset)

    if verbose:
        print("[Workflow] Step 3: diagnostics...")
    summary = summarize(chains, tail_probs=diag_config.tail_probs)
    if chains.n_chains >= 2 and chains.n_samples >= 2:
        convergence = gelman_rubin(chains, confidence=diag_config.rhat_confidence)
    else:
        convergence = {}
        if verbose:
            print("  [Diagnostics] R-hat skipped (needs 2+ chains of 2+ samples)")
    mixing = effective_independence_check(chains)

    truth = {name: value for name, value in true_values_for(dataset).items() if name in chains}
    recovery = recover_intervals(chains, truth,
                                 point_estimator=diag_config.point_estimator,
                                 levels=diag_config.recovery_levels)

    result = TutorialResult(dataset=dataset, chains=chains, summary=summary,
                            convergence=convergence, mixing=mixing, recovery=recovery)
    if verbose:
        print(format_report(result, rhat_threshold=diag_config.rhat_threshold))
    return result


def recovery_study(data_config: DataConfig,
                   seeds: Iterable[int],
                   fit_func: Optional[FitFunc] = None,
                   bayes_config=None,
                   diag_config: Optional[DiagnosticsConfig] = None,
                   progressbar: bool = True) -> pd.DataFrame:
    """Repeat the tutorial over many seeds and report interval coverage.

    With a well-calibrated model, the 50% and 90% intervals should contain
    the truth in roughly 50% and 90% of the runs.

    Returns:
        DataFrame indexed by parameter with columns n_runs, coverage_<level>
        and mean_error (estimate - truth)
    """
    diag_config = diag_config or DiagnosticsConfig()
    fit_func = fit_func or _default_fit_func(bayes_config)
    seeds = list(seeds)

    hits = {}
    errors = {}
    for seed in tqdm(seeds, desc='Recovery study', disable=not progressbar):
        result = run_tutorial(data_config, diag_config=diag_config,
                              fit_func=fit_func, seed=seed, verbose=False)
        for name, record in result.recovery.items():
            errors.setdefault(name, []).append(record.error)
            for level in record.intervals:
                hits.setdefault(name, {}).setdefault(level, []).append(record.covers(level))

    rows = []
    for name in errors:
        row = {'parameter': name, 'n_runs': len(errors[name]),
               'mean_error': float(np.mean(errors[name]))}
        for level, covered in hits[name].items():
            row[f"coverage_{level:.0%}"] = float(np.mean(covered))
        rows.append(row)
    return pd.DataFrame(rows).set_index('parameter')


def format_report(result: TutorialResult, rhat_threshold: float = 1.1) -> str:
    """Text table of truth vs. posterior estimate, intervals and R-hat."""
    records = list(result.recovery.values())
    ci_label = f"{max(records[0].intervals):.0%} CI" if records else 'CI'
    lines = [f"\n{'Parameter':<14} {'True':>9} {'Estimate':>10} {ci_label:>22} {'R-hat':>8} {'In CI?':>7}",
             "-" * 75]
    for name, r in result.recovery.items():
        widest = max(r.intervals)
        lo, hi = r.intervals[widest]
        conv = result.convergence.get(name)
        rhat = f"{conv.rhat:8.3f}" if conv is not None else f"{'n/a':>8}"
        flag = '✓' if r.covers(widest) else '✗'
        lines.append(f"{name:<14} {r.true_value:>9.3f} {r.estimate:>10.3f} "
                     f"[{lo:>9.3f}, {hi:>9.3f}] {rhat} {flag:>7}")

    high = [name for name, c in result.convergence.items() if not c.rhat < rhat_threshold]
    if high:
        lines.append(f"\n⚠ R-hat >= {rhat_threshold} for: {', '.join(high)}")
    return "\n".join(lines)
