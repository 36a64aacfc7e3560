import numpy as np

from crpmix.crp import ChineseRestaurantProcess
from crpmix.helpers import check_observations, InvalidParameter
from crpmix.likelihood import NormalGammaClusters


class CRPMixtureRun:
    """
    One execution of the CRP Gaussian mixture over a fixed observation sequence.

    The run advances one observation per `step`; an inference engine may
    reweight or copy runs between steps. Randomness is supplied by the caller
    on every step so that copies of a run do not replay the same draws.
    """

    def __init__(self,
                 observations,
                 alpha: float,
                 mu: float,
                 beta: float,
                 a: float,
                 b: float):
        self.observations = check_observations(observations)
        self.crp = ChineseRestaurantProcess(alpha=alpha)
        self.clusters = NormalGammaClusters(mu=mu, beta=beta, a=a, b=b)
        self.obs_idx = 0
        self.table_assignments = []
        self.log_likelihood = 0.

    @property
    def num_obs(self) -> int:
        return len(self.observations)

    @property
    def done(self) -> bool:
        return self.obs_idx == self.num_obs

    @property
    def num_clusters(self) -> int:
        return self.crp.num_tables

    def step(self, rng: np.random.Generator) -> float:
        if self.done:
            raise InvalidParameter(
                f'CRPMixtureRun: all {self.num_obs} observations have already been processed')

        table = self.crp.sample_next(rng)
        component = self.clusters.get_or_create(label=table, rng=rng)
        log_p = self.clusters.score(component=component,
                                    observation=self.observations[self.obs_idx])
        self.log_likelihood += log_p
        self.crp.absorb(table)
        self.table_assignments.append(table)
        self.obs_idx += 1

        assert self.crp.num_customers == self.obs_idx
        return log_p

    def result(self) -> dict:
        assert self.done
        return dict(
            table_assignments=list(self.table_assignments),
            num_clusters=self.num_clusters,
            log_likelihood=self.log_likelihood,
        )


def run_crp_mixture(observations,
                    alpha: float,
                    mu: float,
                    beta: float,
                    a: float,
                    b: float,
                    rng: np.random.Generator = None):
    if rng is None:
        rng = np.random.default_rng()
    crp_mixture_run = CRPMixtureRun(observations=observations,
                                    alpha=alpha, mu=mu, beta=beta, a=a, b=b)
    while not crp_mixture_run.done:
        crp_mixture_run.step(rng)
    run_results = crp_mixture_run.result()
    return run_results['table_assignments'], run_results['num_clusters'], run_results['log_likelihood']
