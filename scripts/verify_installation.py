"""
Manual Verification Script for the Bayesian Regression Tutorials
Run this to check that every component imports and runs on this machine.

Usage: python scripts/verify_installation.py
"""

import numpy as np

print("=" * 70)
print("Bayesian Regression Tutorials - Installation Check")
print("=" * 70)
print()

# Test 1: Data generation
print("[1/4] Testing Synthetic Data Generator...")
try:
    from bayesreg import DataConfig

    dataset = DataConfig(n=100, seed=42).generate()
    binary = DataConfig(n=100, kind='binary', seed=42).generate()

    print(f"   ✓ Data generator working!")
    print(f"   - Linear y range: [{dataset.y.min():.2f}, {dataset.y.max():.2f}]")
    print(f"   - Binary outcome rate: {binary.y.mean():.2f}")
    print()
except Exception as e:
    print(f"   ✗ FAILED: {str(e)}\n")

# Test 2: Diagnostics on hand-made chains
print("[2/4] Testing Chain Diagnostics...")
try:
    from bayesreg import ChainCollection, gelman_rubin, summarize

    rng = np.random.default_rng(0)
    chains = ChainCollection.from_arrays({'theta': rng.normal(0.0, 1.0, size=(4, 500))})
    rhat = gelman_rubin(chains)['theta']
    summary = summarize(chains)['theta']

    print(f"   ✓ Diagnostics working!")
    print(f"   - R-hat: {rhat.rhat:.4f} (upper {rhat.upper:.4f})")
    print(f"   - 95% interval: [{summary.lower:.2f}, {summary.upper:.2f}]")
    print()
except Exception as e:
    print(f"   ✗ FAILED: {str(e)}\n")

# Test 3: Plotting
print("[3/4] Testing Plotting...")
try:
    from bayesreg.plotting import PLOTTING_AVAILABLE

    if PLOTTING_AVAILABLE:
        print(f"   ✓ matplotlib / seaborn available")
    else:
        print(f"   ⚠ matplotlib / seaborn missing (figures disabled)")
    print()
except Exception as e:
    print(f"   ✗ FAILED: {str(e)}\n")

# Test 4: Sampler
print("[4/4] Testing PyMC Sampler...")
try:
    from bayesreg.bayesian import PYMC_AVAILABLE, RegressionEstimator, BayesianConfig

    if PYMC_AVAILABLE:
        estimator = RegressionEstimator(BayesianConfig(verbose=False))
        model = estimator.build_model(DataConfig(n=20, seed=1).generate())
        print(f"   ✓ PyMC sampler available!")
        print(f"   - Free variables: {[rv.name for rv in model.free_RVs]}")
    else:
        print(f"   ⚠ PyMC not installed: pip install 'bayesreg-tutorials[bayesian]'")
    print()
except Exception as e:
    print(f"   ✗ FAILED: {str(e)}\n")

# Summary
print("=" * 70)
print("Verification Complete!")
print("=" * 70)
print()
print("Next Steps:")
print("1. Run full test suite: pytest tests/ -v")
print("2. Run a tutorial: python examples/linear_regression_tutorial.py")
print("=" * 70)
