import copy

import joblib
import numpy as np
import scipy.special

from crpmix.helpers import InvalidParameter
from crpmix.model import CRPMixtureRun, run_crp_mixture


def effective_sample_size(log_weights):
    # (sum w)^2 / sum w^2, computed in log space
    log_weights = np.asarray(log_weights, dtype=np.float64)
    log_ess = 2. * scipy.special.logsumexp(log_weights) - scipy.special.logsumexp(2. * log_weights)
    return float(np.exp(log_ess))


def smc_crp_mixture(observations,
                    hyperparameters: dict,
                    num_particles: int,
                    resample_threshold: float = 0.5,
                    rng: np.random.Generator = None):
    """
    One sweep of sequential Monte Carlo over the CRP mixture.

    Every particle is advanced one observation at a time and its log weight
    accumulates the observation's log likelihood. When the effective sample
    size drops below resample_threshold * num_particles, particles are
    multinomially resampled and every log weight is reset to the log mean
    weight, which keeps weights comparable across independent sweeps.
    """
    if num_particles < 1:
        raise InvalidParameter(f'smc_crp_mixture: num_particles must be >= 1, got {num_particles}')
    if not 0. <= resample_threshold <= 1.:
        raise InvalidParameter(
            f'smc_crp_mixture: resample_threshold must lie in [0, 1], got {resample_threshold}')
    if rng is None:
        rng = np.random.default_rng()

    particles = [CRPMixtureRun(observations=observations, **hyperparameters)
                 for _ in range(num_particles)]
    log_weights = np.zeros(shape=num_particles, dtype=np.float64)
    num_resamples = 0

    for obs_idx in range(particles[0].num_obs):
        for particle_idx, particle in enumerate(particles):
            log_weights[particle_idx] += particle.step(rng)

        if effective_sample_size(log_weights) < resample_threshold * num_particles:
            log_normalizer = scipy.special.logsumexp(log_weights)
            probs = np.exp(log_weights - log_normalizer)
            probs /= np.sum(probs)
            ancestor_indices = rng.choice(num_particles, size=num_particles, p=probs)
            particles = [copy.deepcopy(particles[ancestor_idx]) for ancestor_idx in ancestor_indices]
            log_weights = np.full(shape=num_particles,
                                  fill_value=log_normalizer - np.log(num_particles))
            num_resamples += 1

    smc_results = dict(
        samples=[(particle.num_clusters, log_weight)
                 for particle, log_weight in zip(particles, log_weights)],
        table_assignments=[particle.table_assignments for particle in particles],
        log_marginal_likelihood=scipy.special.logsumexp(log_weights) - np.log(num_particles),
        num_resamples=num_resamples,
    )

    return smc_results


def likelihood_weighting_crp_mixture(observations,
                                     hyperparameters: dict,
                                     num_samples: int,
                                     rng: np.random.Generator = None):
    # importance sampling with the prior as proposal
    if num_samples < 1:
        raise InvalidParameter(
            f'likelihood_weighting_crp_mixture: num_samples must be >= 1, got {num_samples}')
    if rng is None:
        rng = np.random.default_rng()

    samples, table_assignments = [], []
    for _ in range(num_samples):
        label_sequence, num_clusters, log_likelihood = run_crp_mixture(
            observations=observations,
            rng=rng,
            **hyperparameters)
        samples.append((num_clusters, log_likelihood))
        table_assignments.append(label_sequence)

    log_weights = np.array([log_weight for _, log_weight in samples])
    likelihood_weighting_results = dict(
        samples=samples,
        table_assignments=table_assignments,
        log_marginal_likelihood=scipy.special.logsumexp(log_weights) - np.log(num_samples),
    )

    return likelihood_weighting_results


def run_inference_alg(inference_alg_str: str,
                      observations,
                      hyperparameters: dict,
                      num_particles: int,
                      rng: np.random.Generator = None):
    # for likelihood weighting, num_particles is the number of independent runs per call
    if inference_alg_str == 'SMC':
        inference_alg_results = smc_crp_mixture(
            observations=observations,
            hyperparameters=hyperparameters,
            num_particles=num_particles,
            rng=rng)
    elif inference_alg_str == 'Likelihood Weighting':
        inference_alg_results = likelihood_weighting_crp_mixture(
            observations=observations,
            hyperparameters=hyperparameters,
            num_samples=num_particles,
            rng=rng)
    else:
        raise ValueError(f'Unknown inference algorithm: {inference_alg_str}')
    return inference_alg_results


def sample_stream(inference_alg_str: str,
                  observations,
                  hyperparameters: dict,
                  num_samples: int,
                  num_particles: int = 1000,
                  seed: int = 0,
                  n_jobs: int = 1):
    """
    Repeat independent sweeps of an inference algorithm until num_samples
    weighted samples have been emitted.

    Sweeps may run in parallel; each gets its own child seed, and the returned
    samples are ordered by sweep index regardless of completion order.

    :return: list of (number of clusters, log importance weight) pairs
    """
    if num_samples < 1:
        raise InvalidParameter(f'sample_stream: num_samples must be >= 1, got {num_samples}')

    num_sweeps = int(np.ceil(num_samples / num_particles))
    sweep_seeds = np.random.SeedSequence(seed).spawn(num_sweeps)
    sweeps_results = joblib.Parallel(n_jobs=n_jobs)(
        joblib.delayed(run_inference_alg)(
            inference_alg_str=inference_alg_str,
            observations=observations,
            hyperparameters=hyperparameters,
            num_particles=num_particles,
            rng=np.random.default_rng(sweep_seed))
        for sweep_seed in sweep_seeds)

    samples = [sample for sweep_results in sweeps_results for sample in sweep_results['samples']]
    return samples[:num_samples]
