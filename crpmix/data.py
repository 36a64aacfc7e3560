import numpy as np


def load_aistats_crp_mixture():
    """
    CRP Gaussian mixture benchmark from the 2014 AISTATS particle Gibbs paper:
    10 observations with a posterior over the number of clusters obtained by
    exhaustive enumeration.
    """
    observations = np.array([10., 11., 12., -100., -150., -200., 0.001, 0.01, 0.005, 0.])

    hyperparameters = dict(
        alpha=1.72,
        mu=0.,
        beta=100.,
        a=1.,
        b=10.,
    )

    # log P(number of clusters = k | observations) for k = 1, ..., 10
    log_posterior = np.array([-11.4681, -1.0437, -0.9126, -1.6553, -3.0348,
                              -4.9985, -7.5829, -10.9459, -15.6461, -21.6521])
    # published values are rounded to 4 decimals
    num_clusters_posterior = np.exp(log_posterior)
    num_clusters_posterior /= np.sum(num_clusters_posterior)

    aistats_crp_mixture_results = dict(
        observations=observations,
        hyperparameters=hyperparameters,
        num_clusters_support=1 + np.arange(len(observations)),
        num_clusters_posterior=num_clusters_posterior,
    )

    return aistats_crp_mixture_results
