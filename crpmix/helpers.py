import numpy as np


class InvalidParameter(ValueError):
    pass


class NumericDegeneracy(ArithmeticError):
    pass


class EmptyInput(ValueError):
    pass


class DivergenceUndefined(ValueError):
    pass


def check_positive(component: str,
                   name: str,
                   value):
    # NaN fails the > 0 comparison, inf fails isfinite
    if not (np.isfinite(value) and value > 0):
        raise InvalidParameter(f'{component}: {name} must be a positive finite number, got {value}')
    return float(value)


def check_finite(component: str,
                 name: str,
                 value):
    if not np.isfinite(value):
        raise InvalidParameter(f'{component}: {name} must be finite, got {value}')
    return float(value)


def check_observations(observations):
    try:
        observations = np.asarray(observations, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidParameter(f'CRPMixtureRun: observations must be real numbers ({e})') from e
    if observations.ndim != 1:
        raise InvalidParameter(
            f'CRPMixtureRun: observations must be a 1-D sequence, got shape {observations.shape}')
    if not np.all(np.isfinite(observations)):
        raise InvalidParameter('CRPMixtureRun: observations must be finite')
    return observations
