import math

import numpy as np
import scipy.special
from sympy.functions.combinatorial.numbers import stirling

from crpmix.helpers import check_positive, InvalidParameter


class ChineseRestaurantProcess:
    """
    Sequential Chinese Restaurant Process with concentration alpha.

    Tables (cluster labels) are 1-based integers, numbered in order of first
    appearance. The n-th customer joins occupied table i with probability
    c_i / (n - 1 + alpha) and opens a new table with probability
    alpha / (n - 1 + alpha).
    """

    def __init__(self, alpha: float):
        self.alpha = check_positive('ChineseRestaurantProcess', 'alpha', alpha)
        self._table_occupancies = []

    @property
    def num_customers(self) -> int:
        return int(np.sum(self._table_occupancies))

    @property
    def num_tables(self) -> int:
        return len(self._table_occupancies)

    @property
    def table_occupancies(self) -> dict:
        return {table_idx + 1: count for table_idx, count in enumerate(self._table_occupancies)}

    def propose_next(self) -> np.ndarray:
        """
        Predictive distribution over the next customer's table.

        :return: array of length num_tables + 1; entry i is the probability
            of table label i + 1, the last entry is the new table.
        """
        freq = np.array(self._table_occupancies + [self.alpha], dtype=np.float64)
        probs = freq / (self.num_customers + self.alpha)
        assert np.allclose(np.sum(probs), 1.)
        return probs

    def sample_next(self, rng: np.random.Generator) -> int:
        probs = self.propose_next()
        return int(rng.choice(np.arange(1, len(probs) + 1), p=probs))

    def absorb(self, label: int):
        if 1 <= label <= self.num_tables:
            self._table_occupancies[label - 1] += 1
        elif label == self.num_tables + 1:
            self._table_occupancies.append(1)
        else:
            raise InvalidParameter(
                f'ChineseRestaurantProcess: label {label} is neither an occupied table '
                f'nor the next new table ({self.num_tables + 1})')


def sample_sequence_from_crp(T: int,
                             alpha: float,
                             rng: np.random.Generator = None):
    if rng is None:
        rng = np.random.default_rng()
    crp = ChineseRestaurantProcess(alpha=alpha)
    customer_tables = np.zeros(shape=T, dtype=int)
    for t in range(T):
        z_t = crp.sample_next(rng)
        crp.absorb(z_t)
        customer_tables[t] = z_t
    assert crp.num_customers == T

    table_occupancies = np.zeros(shape=T, dtype=int)
    table_occupancies[:crp.num_tables] = list(crp.table_occupancies.values())

    return table_occupancies, customer_tables


def chinese_table_restaurant_distribution(t, k, alpha):
    # P(k occupied tables after t customers) = Gamma(alpha) / Gamma(alpha + t) * |s(t, k)| * alpha^k
    if k > t or k < 1:
        return 0.
    log_prob = scipy.special.gammaln(alpha) - scipy.special.gammaln(alpha + t)
    log_prob += math.log(int(stirling(n=t, k=k, kind=1, signed=False)))
    log_prob += k * np.log(alpha)
    return float(np.exp(log_prob))


def crp_num_tables_distribution(T: int,
                                alpha: float):
    check_positive('crp_num_tables_distribution', 'alpha', alpha)
    table_nums = 1 + np.arange(T)
    result = np.array([chinese_table_restaurant_distribution(t=T, k=k, alpha=alpha)
                       for k in table_nums])
    assert np.allclose(np.sum(result), 1.)
    return result
