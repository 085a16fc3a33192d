"""
Figures for the regression tutorials.

Rendering is matplotlib/seaborn's job; these helpers only arrange the
records produced by bayesreg.diagnostics into the tutorials' standard
plots (trace + density, recovered intervals vs. truth, raw data).
"""

from typing import Dict, List, Optional

import numpy as np

try:
    import matplotlib.pyplot as plt
    import seaborn as sns
    PLOTTING_AVAILABLE = True
    sns.set_style('whitegrid')
except ImportError:
    PLOTTING_AVAILABLE = False

from .chains import ChainCollection
from .datagen import SyntheticDataset, inv_logit
from .diagnostics import RecoveryRecord


def _require_plotting():
    if not PLOTTING_AVAILABLE:
        raise ImportError("Matplotlib/Seaborn required for plotting. "
                          "Install with: pip install matplotlib seaborn")


def _finish(fig, save_path: Optional[str], show: bool):
    fig.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
    if show:
        plt.show()
    return fig


def plot_traces(chains: ChainCollection,
                parameters: Optional[List[str]] = None,
                save_path: Optional[str] = None,
                show: bool = False):
    """Trace (left) and per-chain density (right) for each parameter.

    Well-mixed chains overlap in both panels; a chain stuck elsewhere shows
    up as a separate band / separate density bump.
    """
    _require_plotting()
    names = parameters or chains.parameter_names
    fig, axes = plt.subplots(len(names), 2, figsize=(12, 2.5 * len(names)), squeeze=False)
    palette = sns.color_palette('colorblind', chains.n_chains)

    for row, name in enumerate(names):
        values = chains.values(name)
        ax_trace, ax_density = axes[row]
        for c in range(chains.n_chains):
            ax_trace.plot(values[c], color=palette[c], lw=0.6, alpha=0.8, label=f"chain {c}")
            if np.ptp(values[c]) > 0:
                sns.kdeplot(values[c], ax=ax_density, color=palette[c], lw=1.2)
        ax_trace.set_ylabel(name)
        ax_trace.set_xlabel('iteration')
        ax_density.set_xlabel(name)

    axes[0, 0].legend(loc='upper right', fontsize='small')
    return _finish(fig, save_path, show)


def plot_recovery(recovery: Dict[str, RecoveryRecord],
                  save_path: Optional[str] = None,
                  show: bool = False):
    """Posterior intervals of each parameter with the true value marked.

    Thin line: widest interval (90% by default), thick line: narrowest
    (50%), dot: point estimate, red cross: true value.
    """
    _require_plotting()
    records = list(recovery.values())
    fig, ax = plt.subplots(figsize=(7, 0.8 * len(records) + 1.5))

    for i, r in enumerate(records):
        levels = sorted(r.intervals)
        for level, lw in zip(levels[::-1], (1.5, 5.0)):
            lo, hi = r.intervals[level]
            ax.hlines(i, lo, hi, color='C0', lw=lw,
                      label=f"{level:.0%} interval" if i == 0 else None)
        ax.plot(r.estimate, i, 'o', color='C0', ms=6,
                label=f"posterior {r.point_estimator}" if i == 0 else None)
        ax.plot(r.true_value, i, 'x', color='red', ms=9, mew=2,
                label='true value' if i == 0 else None)

    ax.set_yticks(range(len(records)))
    ax.set_yticklabels([r.parameter for r in records])
    ax.invert_yaxis()
    ax.legend(loc='best', fontsize='small')
    return _finish(fig, save_path, show)


def plot_data(dataset: SyntheticDataset,
              save_path: Optional[str] = None,
              show: bool = False):
    """Scatter of the simulated data with the true regression line / curve."""
    _require_plotting()
    x = dataset.design[:, 0]
    fig, ax = plt.subplots(figsize=(7, 4.5))

    intercept = dataset.true_params.get('intercept', 0.0)
    if 'slopes' in dataset.true_params:
        slope = float(np.asarray(dataset.true_params['slopes'])[0])
    else:
        slope = dataset.true_params.get('slope', 0.0)

    grid = np.linspace(x.min(), x.max(), 200)
    if dataset.x_scaling is not None:
        # Truth is on the original predictor scale
        mean = np.atleast_1d(dataset.x_scaling.mean)[0]
        std = np.atleast_1d(dataset.x_scaling.std)[0]
        truth = intercept + slope * (grid * std + mean)
    else:
        truth = intercept + slope * grid

    if dataset.kind == 'binary':
        jitter = np.random.default_rng(0).uniform(-0.03, 0.03, size=len(x))
        ax.scatter(x, dataset.y + jitter, s=12, alpha=0.6)
        ax.plot(grid, inv_logit(truth), color='red', label='true P(y=1)')
        ax.set_ylabel('y (jittered)')
    else:
        ax.scatter(x, dataset.y, s=12, alpha=0.6)
        ax.plot(grid, truth, color='red', label='true line')
        ax.set_ylabel('y')

    ax.set_xlabel('x' if dataset.x_scaling is None else 'x (standardized)')
    ax.legend(loc='best')
    return _finish(fig, save_path, show)
