import numpy as np
import pytest

from crpmix.helpers import DivergenceUndefined, EmptyInput, InvalidParameter, NumericDegeneracy
from crpmix.metrics import align_to_support, empirical_frequencies, kl_divergence, \
    kl_divergence_curve, log10_curve, normalize


def test_equal_weights_give_relative_frequencies():
    values = [1, 2, 2, 3, 3, 3, 2, 1]
    freqs = empirical_frequencies([(value, -4.2) for value in values])
    for value in set(values):
        assert abs(freqs[value] - values.count(value) / len(values)) < 1e-9


def test_weights_are_applied_per_value():
    freqs = empirical_frequencies([(1, np.log(1.)), (2, np.log(3.)), (1, np.log(4.))])
    assert np.isclose(freqs[1], 5. / 8.)
    assert np.isclose(freqs[2], 3. / 8.)


@pytest.mark.parametrize('shift', [-1000., -3., 0., 5., 800.])
def test_empirical_frequencies_shift_invariant(shift):
    rng = np.random.default_rng(0)
    values = rng.integers(1, 5, size=50)
    log_weights = rng.normal(scale=10., size=50)
    freqs = empirical_frequencies(list(zip(values, log_weights)))
    shifted_freqs = empirical_frequencies(list(zip(values, log_weights + shift)))
    assert freqs.keys() == shifted_freqs.keys()
    for value in freqs:
        assert np.isclose(freqs[value], shifted_freqs[value])


def test_empirical_frequencies_large_log_weights_do_not_overflow():
    freqs = empirical_frequencies([(1, 1e4), (2, 1e4 - np.log(3.))])
    assert np.isclose(freqs[1], 0.75)
    assert np.isclose(freqs[2], 0.25)


def test_empirical_frequencies_empty():
    with pytest.raises(EmptyInput):
        empirical_frequencies([])


def test_empirical_frequencies_all_zero_weights():
    with pytest.raises(NumericDegeneracy):
        empirical_frequencies([(1, -np.inf), (2, -np.inf)])


def test_align_to_support_fills_missing_values():
    aligned = align_to_support({3: 0.25, 1: 0.75}, support=[1, 2, 3, 4])
    assert np.allclose(aligned, [0.75, 0., 0.25, 0.])


def test_align_to_support_rejects_values_outside_support():
    with pytest.raises(DivergenceUndefined):
        align_to_support({1: 0.5, 5: 0.5}, support=[1, 2, 3])


def test_normalize():
    assert np.allclose(normalize([1., 3.]), [0.25, 0.75])
    with pytest.raises(NumericDegeneracy):
        normalize([0., 0.])


def test_kl_divergence_reference_values():
    q = [0.6, 0.3, 0.1]
    assert np.isclose(kl_divergence([0.6, 0.3, 0.1], q), 0.)
    # only the first term survives: 1 * log(1 / 0.6)
    assert np.isclose(kl_divergence([1., 0., 0.], q), np.log(1. / 0.6))
    assert np.isclose(kl_divergence([1., 0., 0.], q), 0.5108256237659907)


def test_kl_divergence_undefined_where_reference_is_zero():
    with pytest.raises(DivergenceUndefined):
        kl_divergence([0.5, 0.5], [1., 0.])
    # zero mass in p is fine even where q is zero
    assert np.isclose(kl_divergence([1., 0.], [1., 0.]), 0.)


def test_kl_divergence_shape_mismatch():
    with pytest.raises(InvalidParameter):
        kl_divergence([1.], [0.5, 0.5])


@pytest.mark.parametrize('seed', range(20))
def test_kl_divergence_non_negative(seed):
    rng = np.random.default_rng(seed)
    dim = rng.integers(2, 12)
    p = rng.dirichlet(np.full(dim, 0.5))
    q = rng.dirichlet(np.full(dim, 0.5))
    assert kl_divergence(p, q) >= 0.
    assert np.isclose(kl_divergence(p, p), 0.)


def test_curve_matching_reference_is_zero():
    # 6 / 3 / 1 samples of 1 / 2 / 3 clusters reproduce [0.6, 0.3, 0.1] exactly
    samples = [(1, 0.)] * 6 + [(2, 0.)] * 3 + [(3, 0.)]
    curve = kl_divergence_curve(samples, reference_distribution=[0.6, 0.3, 0.1], prefix_sizes=[10])
    assert curve[0][0] == 10
    assert np.isclose(curve[0][1], 0.)


def test_curve_uses_arrival_order_prefixes():
    samples = [(1, 0.)] * 5 + [(2, 0.)] * 3 + [(3, 0.)] * 2
    reference = [0.5, 0.3, 0.2]
    curve = kl_divergence_curve(samples, reference_distribution=reference, prefix_sizes=[5, 8, 10])
    assert [n for n, _ in curve] == [5, 8, 10]
    assert np.isclose(curve[0][1], np.log(1. / 0.5))
    assert np.isclose(curve[1][1], kl_divergence([5. / 8., 3. / 8., 0.], reference))
    assert np.isclose(curve[2][1], 0.)


def test_curve_with_explicit_support():
    samples = [(2, 0.), (4, 0.)]
    curve = kl_divergence_curve(samples, reference_distribution=[0.5, 0.5], prefix_sizes=[2], support=[2, 4])
    assert np.isclose(curve[0][1], 0.)


@pytest.mark.parametrize('prefix_sizes', [[0], [5, 3], [4, 4], [11]])
def test_curve_rejects_bad_prefix_sizes(prefix_sizes):
    samples = [(1, 0.)] * 10
    with pytest.raises(InvalidParameter):
        kl_divergence_curve(samples, reference_distribution=[1.], prefix_sizes=prefix_sizes)


def test_curve_rejects_unnormalized_reference():
    with pytest.raises(InvalidParameter):
        kl_divergence_curve([(1, 0.)], reference_distribution=[0.5, 0.4], prefix_sizes=[1])


def test_curve_value_outside_reference_support():
    with pytest.raises(DivergenceUndefined):
        kl_divergence_curve([(4, 0.)], reference_distribution=[0.5, 0.5], prefix_sizes=[1])


def test_log10_curve_drops_zero_divergences():
    log_curve = log10_curve([(10, 0.), (100, 0.1)])
    assert len(log_curve) == 1
    assert np.allclose(log_curve[0], (2., -1.))


@pytest.mark.parametrize('p_probs, q_probs', [
    ([np.nan, 1.], [0.5, 0.5]),
    ([0.5, 0.5], [np.nan, 0.5]),
    ([np.inf, 0.], [0.5, 0.5]),
])
def test_kl_divergence_rejects_non_finite_inputs(p_probs, q_probs):
    with pytest.raises(InvalidParameter):
        kl_divergence(p_probs, q_probs)


@pytest.mark.parametrize('prefix_sizes', [[2.7], [1, 2.5], [np.nan]])
def test_curve_rejects_fractional_prefix_sizes(prefix_sizes):
    samples = [(1, 0.)] * 10
    with pytest.raises(InvalidParameter):
        kl_divergence_curve(samples, reference_distribution=[1.], prefix_sizes=prefix_sizes)


def test_curve_accepts_whole_float_prefix_sizes():
    samples = [(1, 0.)] * 10
    curve = kl_divergence_curve(samples, reference_distribution=[1.], prefix_sizes=10 * np.array([0.5, 1.]))
    assert [n for n, _ in curve] == [5, 10]
