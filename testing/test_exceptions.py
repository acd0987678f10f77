import pytest

from binnedfit import (
  BinnedFitError,
  DimensionError,
  RepresentationError,
  InitialisationError,
  ParameterError,
  SystematicError,
  InvalidSystematicParameter,
  WrongNumberOfParameters,
  NormalisationError,
  DataMissingError,
  ZeroProbabilityError,
)


class TestExceptionHierarchy :

  def test_all_inherit_from_binnedfit_error(self) :
    for exc_class in [ DimensionError, RepresentationError, InitialisationError, ParameterError, SystematicError,
                       InvalidSystematicParameter, WrongNumberOfParameters, NormalisationError,
                       DataMissingError, ZeroProbabilityError ] :
      assert issubclass(exc_class, BinnedFitError)

  def test_builtin_bases(self) :
    assert issubclass(DimensionError, ValueError)
    assert issubclass(RepresentationError, DimensionError)
    assert issubclass(InitialisationError, RuntimeError)
    assert issubclass(InvalidSystematicParameter, SystematicError)
    assert issubclass(WrongNumberOfParameters, SystematicError)
    assert issubclass(ZeroProbabilityError, ArithmeticError)

  def test_source_in_message(self) :
    err = DimensionError('bad size', source='Histogram')
    assert err.source == 'Histogram'
    assert str(err) == 'Histogram: bad size'

  def test_no_source(self) :
    err = DataMissingError('no data')
    assert err.source is None
    assert str(err) == 'no data'

  def test_caught_as_base(self) :
    with pytest.raises(BinnedFitError) :
      raise WrongNumberOfParameters('2 expected', source='conv')
