"""
Unit tests for the posterior diagnostics engine
"""

import warnings

import numpy as np
import pandas as pd
import pytest
from scipy import stats

from bayesreg import diagnostics
from bayesreg.chains import ChainCollection
from bayesreg.diagnostics import (
    summarize, gelman_rubin, recover_intervals, effective_independence_check,
    compare_summaries, summary_table, convergence_table, recovery_table,
    DiagnosticsConfig, SummaryRecord,
)
from bayesreg.exceptions import (
    EmptyInput, InsufficientChains, InsufficientSamples, UnknownParameter,
    InvalidArgument,
)


class TestSummarize:
    """Tests for summarize()."""

    def test_pooled_fields(self, normal_chains):
        chains = normal_chains(n_chains=3, n_samples=100, names=('a', 'b'))
        summary = summarize(chains)
        assert set(summary) == {'a', 'b'}
        record = summary['a']
        assert isinstance(record, SummaryRecord)
        assert record.scope == 'pooled'
        assert record.chain is None
        assert record.n_samples == 300
        assert set(record.quantiles) == {0.025, 0.975}
        assert record.lower < record.mean < record.upper

    def test_pooled_equals_concatenated_chain(self, normal_chains):
        """Pooling is a flattening operation for mean and sd."""
        chains = normal_chains(n_chains=4, n_samples=50, locs=[0.0, 1.0, 2.0, 5.0])
        pooled = summarize(chains, scope='pooled')['theta']

        single = ChainCollection([{'theta': np.concatenate(list(chains.values('theta')))}])
        flat = summarize(single)['theta']

        assert pooled.mean == pytest.approx(flat.mean, rel=1e-12)
        assert pooled.sd == pytest.approx(flat.sd, rel=1e-12)

    def test_per_chain(self, normal_chains):
        chains = normal_chains(n_chains=3, n_samples=40)
        summary = summarize(chains, scope='per_chain')
        records = summary['theta']
        assert len(records) == 3
        for c, record in enumerate(records):
            assert record.chain == c
            assert record.scope == 'chain'
            assert record.mean == pytest.approx(chains.values('theta')[c].mean())
            assert record.sd == pytest.approx(chains.values('theta')[c].std(ddof=1))

    def test_sd_uses_sample_denominator(self):
        chains = ChainCollection([{'a': [1.0, 2.0, 3.0, 4.0]}])
        record = summarize(chains)['a']
        assert record.sd == pytest.approx(np.std([1, 2, 3, 4], ddof=1))

    def test_linear_interpolation_quantiles(self):
        """Type-7 quantiles: h = (n-1)q, interpolate between order statistics."""
        chains = ChainCollection([{'a': [5.0, 1.0, 4.0, 2.0, 3.0]}])
        record = summarize(chains, tail_probs=(0.1, 0.25, 0.5, 0.9))['a']
        assert record.quantiles[0.1] == pytest.approx(1.4)
        assert record.quantiles[0.25] == pytest.approx(2.0)
        assert record.quantiles[0.5] == pytest.approx(3.0)
        assert record.quantiles[0.9] == pytest.approx(4.6)

    def test_interval_lookup(self, normal_chains):
        record = summarize(normal_chains())['theta']
        lo, hi = record.interval(0.95)
        assert (lo, hi) == (record.lower, record.upper)
        with pytest.raises(InvalidArgument):
            record.interval(0.5)

    def test_empty_chain_raises(self):
        chains = ChainCollection([{'a': []}, {'a': []}])
        with pytest.raises(EmptyInput):
            summarize(chains)
        with pytest.raises(EmptyInput):
            summarize(chains, scope='per_chain')

    def test_bad_scope(self, normal_chains):
        with pytest.raises(InvalidArgument):
            summarize(normal_chains(), scope='everything')

    @pytest.mark.parametrize("probs", [(), (-0.1, 0.5), (0.5, 1.5)])
    def test_bad_tail_probs(self, normal_chains, probs):
        with pytest.raises(InvalidArgument):
            summarize(normal_chains(), tail_probs=probs)

    def test_parameter_subset(self, normal_chains):
        chains = normal_chains(names=('a', 'b', 'c'))
        assert set(summarize(chains, parameters=['b'])) == {'b'}
        with pytest.raises(UnknownParameter):
            summarize(chains, parameters=['z'])

    def test_single_sample_sd_is_nan(self):
        record = summarize(ChainCollection([{'a': [2.0]}]))['a']
        assert record.mean == 2.0
        assert np.isnan(record.sd)


class TestGelmanRubin:
    """Tests for gelman_rubin()."""

    def test_hand_computed_value(self):
        # means 2, 3; variances 1, 1 -> W = 1, B = 3 * 0.5 = 1.5, V = 2/3 + 0.5
        chains = ChainCollection([{'a': [1.0, 2.0, 3.0]}, {'a': [2.0, 3.0, 4.0]}])
        record = gelman_rubin(chains)['a']
        assert record.within == pytest.approx(1.0)
        assert record.between == pytest.approx(1.5)
        assert record.pooled_variance == pytest.approx(2.0 / 3.0 + 0.5)
        assert record.rhat == pytest.approx(np.sqrt(7.0 / 6.0))

    def test_upper_bound_with_equal_variances(self):
        chains = ChainCollection([{'a': [1.0, 2.0, 3.0]}, {'a': [2.0, 3.0, 4.0]}])
        record = gelman_rubin(chains, confidence=0.95)['a']
        q = stats.chi2.ppf(0.975, 1)
        assert record.upper == pytest.approx(np.sqrt(2.0 / 3.0 + q * 1.5 / 3.0))
        assert record.upper >= record.rhat

    def test_upper_bound_uses_f_quantile(self, normal_chains):
        chains = normal_chains(n_chains=4, n_samples=100, locs=[0.0, 0.2, -0.1, 0.5])
        record = gelman_rubin(chains, confidence=0.9)['theta']

        x = chains.values('theta')
        s2 = x.var(axis=1, ddof=1)
        W = s2.mean()
        w_df = 2 * W ** 2 / (s2.var(ddof=1) / 4)
        expected = np.sqrt(99 / 100 + stats.f.ppf(0.95, 3, w_df) * record.between / (100 * W))
        assert record.upper == pytest.approx(expected)

    def test_no_upper_bound_requested(self, normal_chains):
        record = gelman_rubin(normal_chains(), confidence=None)['theta']
        assert record.upper is None

    @pytest.mark.parametrize("n_samples", [10, 50, 500])
    def test_identical_chains(self, rng, n_samples):
        """B = 0 for identical chains, so R-hat = sqrt((T-1)/T), just below 1."""
        samples = rng.normal(size=n_samples)
        chains = ChainCollection([{'a': samples, 'b': samples * 3.0} for _ in range(4)])
        bound = np.sqrt((n_samples - 1) / n_samples)
        for record in gelman_rubin(chains).values():
            assert record.between == pytest.approx(0.0, abs=1e-12)
            assert record.rhat == pytest.approx(bound)
            assert bound - 1e-12 <= record.rhat <= 1.0

    def test_identical_long_chains_are_one(self, rng):
        samples = rng.normal(size=5000)
        chains = ChainCollection([{'a': samples}, {'a': samples}])
        assert gelman_rubin(chains)['a'].rhat == pytest.approx(1.0, abs=1e-3)

    def test_well_mixed_chains_near_one(self, normal_chains):
        chains = normal_chains(n_chains=4, n_samples=2000)
        assert gelman_rubin(chains)['theta'].rhat < 1.01

    def test_detects_non_convergence(self, normal_chains):
        """Three N(0,1) chains and one N(5,1) chain of 50 samples."""
        chains = normal_chains(n_chains=4, n_samples=50, locs=[0.0, 0.0, 0.0, 5.0])
        assert gelman_rubin(chains)['theta'].rhat > 1.1

    def test_one_chain_raises(self, normal_chains):
        with pytest.raises(InsufficientChains):
            gelman_rubin(normal_chains(n_chains=1))

    def test_one_sample_raises(self):
        chains = ChainCollection([{'a': [1.0]}, {'a': [2.0]}])
        with pytest.raises(InsufficientSamples):
            gelman_rubin(chains)

    def test_constant_chains_give_nan(self):
        chains = ChainCollection([{'a': [1.0, 1.0]}, {'a': [2.0, 2.0]}])
        with pytest.warns(UserWarning, match="undefined"):
            record = gelman_rubin(chains)['a']
        assert np.isnan(record.rhat)

    def test_bad_confidence(self, normal_chains):
        with pytest.raises(InvalidArgument):
            gelman_rubin(normal_chains(), confidence=1.5)

    def test_matches_independent_formula(self, normal_chains):
        chains = normal_chains(n_chains=3, n_samples=30, locs=[0.0, 0.3, -0.3])
        x = chains.values('theta')
        C, T = x.shape
        W = x.var(axis=1, ddof=1).mean()
        B = T * x.mean(axis=1).var(ddof=1)
        V = (T - 1) / T * W + B / T
        assert gelman_rubin(chains)['theta'].rhat == pytest.approx(np.sqrt(V / W))


class TestRecoverIntervals:
    """Tests for recover_intervals()."""

    def test_records(self, normal_chains):
        chains = normal_chains(n_chains=4, n_samples=500, names=('intercept', 'slope'))
        recovery = recover_intervals(chains, {'intercept': 0.0, 'slope': 0.1})
        assert list(recovery) == ['intercept', 'slope']
        record = recovery['intercept']
        assert record.point_estimator == 'mean'
        assert set(record.intervals) == {0.5, 0.9}
        lo50, hi50 = record.intervals[0.5]
        lo90, hi90 = record.intervals[0.9]
        assert lo90 < lo50 < hi50 < hi90
        assert record.covered_50 and record.covered_90

    def test_intervals_are_pooled_quantiles(self, normal_chains):
        chains = normal_chains(n_chains=2, n_samples=101)
        record = recover_intervals(chains, {'theta': 0.0})['theta']
        pooled = chains.pooled('theta')
        assert record.intervals[0.5] == pytest.approx(tuple(np.quantile(pooled, [0.25, 0.75])))
        assert record.intervals[0.9] == pytest.approx(tuple(np.quantile(pooled, [0.05, 0.95])))
        assert record.estimate == pytest.approx(pooled.mean())

    def test_median_estimator(self, normal_chains):
        chains = normal_chains(n_chains=2, n_samples=100)
        record = recover_intervals(chains, {'theta': 0.0}, point_estimator='median')['theta']
        assert record.estimate == pytest.approx(np.median(chains.pooled('theta')))

    def test_uncovered_truth(self, normal_chains):
        chains = normal_chains(n_chains=2, n_samples=200)
        record = recover_intervals(chains, {'theta': 50.0})['theta']
        assert not record.covered_50
        assert not record.covered_90
        assert record.error < 0

    def test_unknown_parameter_computes_nothing(self, normal_chains, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("summarize must not run")
        monkeypatch.setattr(diagnostics, 'summarize', fail)

        chains = normal_chains(names=('intercept',))
        with pytest.raises(UnknownParameter, match="slope"):
            recover_intervals(chains, {'intercept': 1.0, 'slope': 1.2})

    def test_bad_estimator(self, normal_chains):
        with pytest.raises(InvalidArgument):
            recover_intervals(normal_chains(), {'theta': 0.0}, point_estimator='mode')

    def test_custom_levels(self, normal_chains):
        record = recover_intervals(normal_chains(), {'theta': 0.0}, levels=(0.8,))['theta']
        assert list(record.intervals) == [0.8]


class TestMixing:
    """Tests for effective_independence_check()."""

    def test_known_values(self):
        chains = ChainCollection([{'a': [1.0, -1.0, 1.0, -1.0]}, {'a': [1.0, 2.0, 3.0, 4.0]}])
        record = effective_independence_check(chains)['a']
        assert record.lag1[0] == pytest.approx(-0.75)
        assert record.lag1[1] == pytest.approx(0.25)
        assert record.mean_lag1 == pytest.approx(-0.25)

    def test_iid_near_zero_and_random_walk_near_one(self, rng):
        iid = rng.normal(size=5000)
        walk = np.cumsum(rng.normal(size=5000))
        chains = ChainCollection([{'a': iid}, {'a': walk}])
        lag1 = effective_independence_check(chains)['a'].lag1
        assert abs(lag1[0]) < 0.05
        assert lag1[1] > 0.9

    def test_constant_chain_is_nan(self):
        chains = ChainCollection([{'a': [2.0, 2.0, 2.0]}])
        record = effective_independence_check(chains)['a']
        assert np.isnan(record.lag1[0])
        assert np.isnan(record.mean_lag1)

    def test_empty_raises(self):
        with pytest.raises(EmptyInput):
            effective_independence_check(ChainCollection([{'a': []}]))


class TestCompareAndTables:
    """compare_summaries() and the DataFrame helpers."""

    def test_compare_matching(self, normal_chains):
        chains = normal_chains()
        summary = summarize(chains)
        pooled = chains.pooled('theta')
        reference = {'theta': {'mean': pooled.mean(), 'std': pooled.std(ddof=1)}}
        result = compare_summaries(summary, reference)
        assert result['theta']['match']

    def test_compare_mismatch(self, normal_chains):
        summary = summarize(normal_chains())
        result = compare_summaries(summary, {'theta': {'mean': 100.0, 'sd': 1.0}})
        assert not result['theta']['match']
        assert result['theta']['mean_diff'] > 90

    def test_compare_unknown(self, normal_chains):
        with pytest.raises(UnknownParameter):
            compare_summaries(summarize(normal_chains()), {'z': {'mean': 0.0, 'sd': 1.0}})

    def test_tables(self, normal_chains):
        chains = normal_chains(names=('a', 'b'))
        table = summary_table(summarize(chains, scope='per_chain'))
        assert isinstance(table, pd.DataFrame)
        assert len(table) == 2 * chains.n_chains
        assert 'q2.5%' in table.columns

        conv = convergence_table(gelman_rubin(chains))
        assert list(conv.index) == ['a', 'b']
        assert 'rhat' in conv.columns

        rec = recovery_table(recover_intervals(chains, {'a': 0.0}))
        assert rec.loc['a', 'in_90%'] in (True, False)
        assert '50%_lower' in rec.columns

    def test_records_serialize(self, normal_chains):
        chains = normal_chains()
        assert summarize(chains)['theta'].to_dict()['quantiles'].keys() == {'0.025', '0.975'}
        assert gelman_rubin(chains)['theta'].to_dict()['n_chains'] == 4
        assert recover_intervals(chains, {'theta': 0.0})['theta'].to_dict()['intervals']['0.9']


class TestDiagnosticsConfig:
    """DiagnosticsConfig persistence."""

    def test_json_round_trip(self, tmp_path):
        config = DiagnosticsConfig(tail_probs=(0.05, 0.95), point_estimator='median',
                                   rhat_confidence=None)
        path = tmp_path / 'diag.json'
        config.save(str(path))
        assert DiagnosticsConfig.load(str(path)) == config
