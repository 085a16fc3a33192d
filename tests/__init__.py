"""
Bayesian Regression Tutorials — Test Suite
==========================================

Test modules:
- test_datagen.py: Synthetic data generator tests
- test_chains.py: Chain collection tests
- test_diagnostics.py: Summaries, Gelman-Rubin, recovery and mixing tests
- test_workflow.py: End-to-end tutorial pipeline and figure tests
- test_bayesian.py: PyMC sampler boundary tests (skipped without PyMC)
"""

__version__ = '0.3.0'
