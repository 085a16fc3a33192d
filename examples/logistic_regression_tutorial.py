"""
Bayesian Logistic Regression — Tutorial
========================================
Binary outcomes drawn through the inverse-logit link, standardized
predictors, and a convergence comparison between NUTS and random-walk
Metropolis.

The outcome for each point is 1 when an independent U(0, 1) draw falls
below p = inv_logit(intercept + slope * x); it is not a 0.5 cutoff.
"""

from bayesreg import DataConfig, DiagnosticsConfig, run_tutorial, recovery_study
from bayesreg.bayesian import BayesianConfig, RegressionEstimator, PYMC_AVAILABLE
from bayesreg.plotting import plot_data, plot_recovery


def main():
    print("╔══════════════════════════════════════════════════════════╗")
    print("║  Bayesian Logistic Regression — Parameter Recovery        ║")
    print("╚══════════════════════════════════════════════════════════╝")

    if not PYMC_AVAILABLE:
        print("[ERROR] PyMC not installed. Please run:")
        print("  pip install 'bayesreg-tutorials[bayesian]'")
        return

    data_config = DataConfig(
        n=300,
        true_params={'intercept': -0.5, 'slopes': [1.5, -0.8]},
        noise_sd=0.0,
        seed=7,
        kind='binary',
        standardize=True,   # intervals are reported back on the original scale
    )
    diag_config = DiagnosticsConfig(point_estimator='median')

    # 1. NUTS
    print("\n[1/3] NUTS")
    nuts = run_tutorial(data_config, BayesianConfig(sampler='NUTS'), diag_config)
    plot_data(nuts.dataset, save_path='logistic_data.png')
    plot_recovery(nuts.recovery, save_path='logistic_recovery.png')

    # 2. Random-walk Metropolis mixes more slowly: compare R-hat and lag-1 autocorrelation
    print("\n[2/3] Metropolis")
    metropolis = run_tutorial(data_config,
                              BayesianConfig(sampler='Metropolis', n_draws=2000, thin=2),
                              diag_config)

    print(f"\n  {'Parameter':<12} {'lag-1 NUTS':>12} {'lag-1 Metropolis':>18}")
    for name in nuts.mixing:
        print(f"  {name:<12} {nuts.mixing[name].mean_lag1:>12.3f} "
              f"{metropolis.mixing[name].mean_lag1:>18.3f}")

    # 3. Interval coverage over repeated simulations (reduced for demo)
    print("\n[3/3] Coverage over 10 simulated datasets...")
    estimator = RegressionEstimator(BayesianConfig(n_draws=500, n_tune=500,
                                                   check_convergence=False, verbose=False))
    coverage = recovery_study(data_config, seeds=range(10), fit_func=estimator.fit,
                              diag_config=diag_config)
    print(coverage.round(2))

    print("\n✓ Logistic regression tutorial complete!")


if __name__ == '__main__':
    main()
