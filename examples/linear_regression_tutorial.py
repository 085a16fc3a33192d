"""
Bayesian Linear Regression — Tutorial
======================================
Simulate data from a known line, fit it with PyMC and check that the
posterior recovers the truth.

Steps:
1. Choose true parameters and simulate a dataset
2. Sample the posterior (4 chains)
3. Check convergence (R-hat, lag-1 autocorrelation)
4. Compare the 50% / 90% credible intervals with the true values
"""

from bayesreg import DataConfig, DiagnosticsConfig, run_tutorial
from bayesreg.bayesian import BayesianConfig, PYMC_AVAILABLE
from bayesreg.plotting import plot_data, plot_traces, plot_recovery


def main():
    print("╔══════════════════════════════════════════════════════════╗")
    print("║  Bayesian Linear Regression — Parameter Recovery          ║")
    print("╚══════════════════════════════════════════════════════════╝")

    if not PYMC_AVAILABLE:
        print("[ERROR] PyMC not installed. Please run:")
        print("  pip install 'bayesreg-tutorials[bayesian]'")
        return

    data_config = DataConfig(
        n=100,
        true_params={'intercept': 1.0, 'slope': 1.2},
        noise_sd=0.5,
        seed=42,
    )
    bayes_config = BayesianConfig(
        n_chains=4,
        n_draws=1000,
        n_tune=1000,      # burn-in
        thin=1,
        sampler='NUTS',
    )
    diag_config = DiagnosticsConfig(point_estimator='mean')

    result = run_tutorial(data_config, bayes_config, diag_config)

    print("\n[Plotting] Saving figures...")
    plot_data(result.dataset, save_path='linear_data.png')
    plot_traces(result.chains, save_path='linear_trace.png')
    plot_recovery(result.recovery, save_path='linear_recovery.png')

    print("\nConvergence table:")
    print(result.tables['convergence'].round(4))
    print("\n✓ Linear regression tutorial complete!")


if __name__ == '__main__':
    main()
