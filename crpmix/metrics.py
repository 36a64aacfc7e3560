import numpy as np
import scipy.special

from crpmix.helpers import DivergenceUndefined, EmptyInput, InvalidParameter, NumericDegeneracy


def empirical_frequencies(samples):
    """
    Importance-weighted distribution over the values of a sample collection.

    :param samples: sequence of (value, log importance weight) pairs
    :return: dict mapping each observed value to its probability. Keys appear
        in order of first arrival, not sorted.
    """
    if len(samples) == 0:
        raise EmptyInput('empirical_frequencies: no samples to estimate from')

    values = [value for value, _ in samples]
    log_weights = np.array([log_weight for _, log_weight in samples], dtype=np.float64)
    num_samples = len(log_weights)

    # log of the mean importance weight
    log_Z = scipy.special.logsumexp(log_weights) - np.log(num_samples)
    if not np.isfinite(log_Z) or np.any(np.isnan(log_weights)):
        raise NumericDegeneracy(
            f'empirical_frequencies: cannot normalize log weights (log mean weight = {log_Z})')

    # weights relative to the mean sum to num_samples
    weights = np.exp(log_weights - log_Z) / num_samples
    freqs = {}
    for value, weight in zip(values, weights):
        freqs[value] = freqs.get(value, 0.) + weight

    assert np.allclose(sum(freqs.values()), 1.)
    return freqs


def normalize(probs):
    probs = np.asarray(probs, dtype=np.float64)
    norm = np.sum(probs)
    if not norm > 0.:
        raise NumericDegeneracy(f'normalize: cannot normalize a vector summing to {norm}')
    return probs / norm


def align_to_support(freqs: dict,
                     support):
    support = list(support)
    outside_support = [value for value, prob in freqs.items()
                       if value not in support and prob > 0.]
    if len(outside_support) > 0:
        raise DivergenceUndefined(
            f'align_to_support: values {sorted(outside_support)} carry probability '
            f'but lie outside the reference support')
    return np.array([freqs.get(value, 0.) for value in support], dtype=np.float64)


def kl_divergence(p_probs,
                  q_probs):
    """KL(p || q) between two normalized probability vectors over the same support."""
    p_probs = np.asarray(p_probs, dtype=np.float64)
    q_probs = np.asarray(q_probs, dtype=np.float64)
    if p_probs.shape != q_probs.shape:
        raise InvalidParameter(
            f'kl_divergence: p has shape {p_probs.shape} but q has shape {q_probs.shape}')
    if not (np.all(np.isfinite(p_probs)) and np.all(np.isfinite(q_probs))):
        raise InvalidParameter('kl_divergence: p and q must contain only finite probabilities')

    # rel_entr gives 0 where p == 0 and inf where p > 0, q == 0
    terms = scipy.special.rel_entr(p_probs, q_probs)
    undefined_indices = np.where(np.isinf(terms))[0]
    if len(undefined_indices) > 0:
        raise DivergenceUndefined(
            f'kl_divergence: p > 0 where q == 0 at support indices {undefined_indices.tolist()}')
    return float(np.sum(terms))


def check_reference_distribution(reference_distribution):
    reference_distribution = np.asarray(reference_distribution, dtype=np.float64)
    if reference_distribution.ndim != 1 or len(reference_distribution) == 0:
        raise InvalidParameter('kl_divergence_curve: reference distribution must be a non-empty vector')
    if np.any(reference_distribution < 0.) or not np.isclose(np.sum(reference_distribution), 1., atol=1e-6):
        raise InvalidParameter(
            f'kl_divergence_curve: reference distribution must be non-negative and sum to 1, '
            f'sums to {np.sum(reference_distribution)}')
    return reference_distribution


def kl_divergence_curve(samples,
                        reference_distribution,
                        prefix_sizes,
                        support=None):
    """
    KL divergence of the weighted empirical distribution from the reference,
    as a function of how many samples have arrived.

    Each estimate uses the first n samples of the stream, not a random
    subsample.

    :param samples: sequence of (value, log importance weight) pairs, in arrival order
    :param reference_distribution: probabilities over `support`, summing to 1
    :param prefix_sizes: strictly ascending prefix lengths, each <= len(samples)
    :param support: values indexed by the reference; defaults to 1..len(reference)
    :return: list of (n, KL divergence) pairs
    """
    reference_distribution = check_reference_distribution(reference_distribution)
    if support is None:
        support = 1 + np.arange(len(reference_distribution))
    support = list(support)
    if len(support) != len(reference_distribution):
        raise InvalidParameter(
            f'kl_divergence_curve: support has {len(support)} values but reference has '
            f'{len(reference_distribution)} probabilities')

    prefix_sizes = np.asarray(prefix_sizes, dtype=np.float64)
    if len(prefix_sizes) == 0:
        raise EmptyInput('kl_divergence_curve: no prefix sizes given')
    if not (np.all(np.isfinite(prefix_sizes)) and np.all(prefix_sizes == np.round(prefix_sizes))):
        raise InvalidParameter(
            f'kl_divergence_curve: prefix sizes must be whole numbers, got {prefix_sizes.tolist()}')
    prefix_sizes = [int(n) for n in prefix_sizes]
    if prefix_sizes[0] < 1 or np.any(np.diff(prefix_sizes) <= 0) or prefix_sizes[-1] > len(samples):
        raise InvalidParameter(
            f'kl_divergence_curve: prefix sizes must be strictly ascending in [1, {len(samples)}], '
            f'got {prefix_sizes}')

    curve = []
    for n in prefix_sizes:
        freqs = empirical_frequencies(samples[:n])
        p_probs = normalize(align_to_support(freqs=freqs, support=support))
        curve.append((n, kl_divergence(p_probs=p_probs, q_probs=reference_distribution)))
    return curve


def log10_curve(curve):
    # log10(0) is undefined, so exact matches are dropped
    return [(np.log10(n), np.log10(kl)) for n, kl in curve if kl > 0.]
