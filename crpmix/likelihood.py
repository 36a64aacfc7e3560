from typing import NamedTuple

import numpy as np
import scipy.stats

from crpmix.helpers import check_finite, check_positive, NumericDegeneracy


class ClusterComponent(NamedTuple):
    mean: float
    std: float


class NormalGammaClusters:
    """
    Lazily drawn per-table Normal likelihoods under a Normal-Gamma prior.

    The first time a table label is seen, a precision l ~ Gamma(a, rate=b)
    and a mean m ~ N(mu, sqrt(beta / l)) are drawn, and the table's
    component is N(m, sqrt(1 / l)). The component is then cached for the
    lifetime of this object, so every observation seated at the same table
    is scored by the same draw.
    """

    def __init__(self,
                 mu: float,
                 beta: float,
                 a: float,
                 b: float):
        self.mu = check_finite('NormalGammaClusters', 'mu', mu)
        self.beta = check_positive('NormalGammaClusters', 'beta', beta)
        self.a = check_positive('NormalGammaClusters', 'a', a)
        self.b = check_positive('NormalGammaClusters', 'b', b)
        self._components = {}

    @property
    def num_components(self) -> int:
        return len(self._components)

    @property
    def components(self) -> dict:
        return dict(self._components)

    def get_or_create(self,
                      label: int,
                      rng: np.random.Generator) -> ClusterComponent:
        if label in self._components:
            return self._components[label]

        # numpy parameterizes the gamma by scale = 1 / rate
        precision = rng.gamma(shape=self.a, scale=1. / self.b)
        if not precision > 0.:
            raise NumericDegeneracy(
                f'NormalGammaClusters: precision for table {label} underflowed to {precision} '
                f'(a={self.a}, b={self.b})')
        mean_std = np.sqrt(self.beta / precision)
        std = np.sqrt(1. / precision)
        if not (np.isfinite(mean_std) and np.isfinite(std) and std > 0.):
            raise NumericDegeneracy(
                f'NormalGammaClusters: precision {precision} for table {label} gives a degenerate '
                f'standard deviation (std={std}, mean std={mean_std})')
        mean = rng.normal(loc=self.mu, scale=mean_std)

        component = ClusterComponent(mean=float(mean), std=float(std))
        self._components[label] = component
        return component

    @staticmethod
    def score(component: ClusterComponent,
              observation: float) -> float:
        return float(scipy.stats.norm.logpdf(observation,
                                             loc=component.mean,
                                             scale=component.std))
