"""Module containing the :class:`QuadraticConstraint` class, a penalty
term added to the likelihood to pull parameters towards external
measurements.
"""

from .base import Serializable
from .exceptions import DimensionError
import numpy as np


# -------------------------------------------------------------------------
class QuadraticConstraint(Serializable) :
  """Class representing a quadratic penalty on a vector of parameters

  The penalty is `sum_i ((x_i - mean_i)/sigma_i)**2`.

  Attributes:
     means (np.ndarray) : the target values
     sigmas (np.ndarray) : the widths
  """

  def __init__(self, means = None, sigmas = None) :
    """Initialize the constraint

      Args:
        means  : the target values (a scalar for a single parameter)
        sigmas : the widths, same size as `means`
    """
    self.means = np.atleast_1d(np.array(means if means is not None else [], dtype=float))
    self.sigmas = np.atleast_1d(np.array(sigmas if sigmas is not None else [], dtype=float))
    if self.means.shape != self.sigmas.shape :
      raise DimensionError('Constraint needs as many widths as target values, got %d and %d.' % (self.sigmas.size, self.means.size))
    if np.any(~(self.sigmas > 0)) :
      raise ValueError('Constraint widths must be positive, got %s.' % str(self.sigmas))

  def nparameters(self) -> int :
    return self.means.size

  def __call__(self, values) -> float :
    """Evaluate the penalty

      Args:
        values : the parameter values, same size as `means`

      Returns:
        the penalty value
    """
    values = np.atleast_1d(np.array(values, dtype=float))
    if values.shape != self.means.shape :
      raise DimensionError('Constraint on %d parameters evaluated for %d values.' % (self.means.size, values.size))
    return float(np.sum(((values - self.means)/self.sigmas)**2))

  def __str__(self) -> str :
    return 'QuadraticConstraint ' + ', '.join('%g +/- %g' % (mean, sigma) for mean, sigma in zip(self.means, self.sigmas))

  def load_dict(self, sdict : dict) -> 'QuadraticConstraint' :
    means = self.load_field('means', sdict, None, [int, float, list])
    sigmas = self.load_field('sigmas', sdict, None, [int, float, list])
    if means is None or sigmas is None : raise KeyError("Constraint definition must contain 'means' and 'sigmas'.")
    self.__init__(means, sigmas)
    return self

  def fill_dict(self, sdict : dict) :
    sdict['means'] = self.unnumpy(self.means)
    sdict['sigmas'] = self.unnumpy(self.sigmas)
