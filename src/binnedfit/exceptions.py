"""Module containing the exceptions raised by binnedfit classes

All the exceptions derive from :class:`BinnedFitError`, so that all
library errors can be caught with a single `except` clause. Each class also
derives from the closest builtin exception type (`ValueError`, `RuntimeError`,
etc.) so that generic handlers keep working.

The optional `source` attribute names the component that raised the error
(e.g. 'Convolution', 'BinnedNLLH'). When an error from a lower-level component
is re-raised as a higher-level one, this is done with `raise ... from` so
that the original condition remains available as `__cause__`.
"""


# -------------------------------------------------------------------------
class BinnedFitError(Exception) :
  """Base class for all binnedfit errors

  Attributes:
     source (str) : name of the component that raised the error (optional)
  """

  def __init__(self, message : str = '', source : str = None) :
    """Initialize the error

      Args:
        message : the error message
        source  : name of the component that raised the error
    """
    super().__init__(message)
    self.source = source

  def __str__(self) -> str :
    message = super().__str__()
    return '%s: %s' % (self.source, message) if self.source is not None else message


class DimensionError(BinnedFitError, ValueError) :
  """A vector length, observable or dimension index does not match what is expected"""
  pass


class RepresentationError(DimensionError) :
  """Event data or a data representation is incompatible with a PDF"""
  pass


class InitialisationError(BinnedFitError, RuntimeError) :
  """An operation was called before its prerequisites were set"""
  pass


class ParameterError(BinnedFitError, ValueError) :
  """A PDF rejected a parameter value"""
  pass


class SystematicError(BinnedFitError) :
  """Base class for errors raised by systematics"""
  pass


class InvalidSystematicParameter(SystematicError, ValueError) :
  """A systematic parameter has a value outside its allowed range"""
  pass


class WrongNumberOfParameters(SystematicError, ValueError) :
  """A systematic parameter vector or index does not match the parameter count"""
  pass


class NormalisationError(BinnedFitError, ValueError) :
  """Normalisation of a histogram with a zero integral"""
  pass


class DataMissingError(BinnedFitError, RuntimeError) :
  """A likelihood was evaluated without any data"""
  pass


class ZeroProbabilityError(BinnedFitError, ArithmeticError) :
  """A bin with observed events has zero expected probability"""
  pass
