import pytest
import numpy as np

from binnedfit import BinnedNLLH, BinnedPdf, ArrayDataSet, Shift, Scale, Convolution, Gaussian, QuadraticConstraint, \
                      LineCut, DimensionError, DataMissingError, ZeroProbabilityError


@pytest.fixture
def nllh(uniform_pdf, one_per_bin) -> BinnedNLLH :
  nllh = BinnedNLLH()
  nllh.add_pdf(uniform_pdf)
  nllh.set_dataset(one_per_bin)
  return nllh


class TestEvaluate :

  def test_uniform_model(self, nllh) :
    assert np.isclose(nllh.evaluate(), -10*np.log(0.1) + 1)

  def test_normalisation(self, nllh) :
    nllh.set_normalisations([ 10 ])
    assert np.isclose(nllh.evaluate(), 10)

  def test_two_components(self, axes_1d, uniform_pdf, one_per_bin) :
    nllh = BinnedNLLH()
    nllh.add_pdfs([ uniform_pdf, BinnedPdf(axes_1d, contents=np.arange(10) + 1, name='background') ])
    nllh.set_dataset(one_per_bin)
    nllh.set_normalisations([ 5, 55 ])
    expected = 0.5 + np.arange(10) + 1
    assert np.isclose(nllh.evaluate(), -np.sum(np.log(expected)) + 60)

  def test_missing_data(self, uniform_pdf) :
    nllh = BinnedNLLH().add_pdf(uniform_pdf)
    with pytest.raises(DataMissingError) : nllh.evaluate()

  def test_zero_probability(self, axes_1d) :
    nllh = BinnedNLLH().add_pdf(BinnedPdf(axes_1d, contents=[ 0 ] + [ 1 ]*9))
    nllh.set_dataset(ArrayDataSet([ 0.5, 5.5 ]))
    with pytest.raises(ZeroProbabilityError) : nllh.evaluate()

  def test_negative_expectation(self, nllh) :
    nllh.set_normalisations([ -1 ])
    with pytest.raises(ZeroProbabilityError) : nllh.evaluate()

  def test_zero_probability_without_data_is_allowed(self, axes_1d) :
    nllh = BinnedNLLH().add_pdf(BinnedPdf(axes_1d, contents=[ 0 ] + [ 1 ]*9))
    nllh.set_dataset(ArrayDataSet([ 5.5 ]))
    nllh.set_normalisations([ 9 ])
    assert np.isclose(nllh.evaluate(), 9)

  def test_binned_data(self, nllh, axes_1d) :
    expected = nllh.evaluate()
    binned = BinnedNLLH().add_pdf(BinnedPdf(axes_1d, contents=np.ones(10)))
    binned.set_data_pdf(BinnedPdf(axes_1d, contents=np.ones(10)))
    assert np.isclose(binned.evaluate(), expected)

  def test_cuts(self, nllh) :
    nllh.set_normalisations([ 10 ])
    nllh.set_cuts([ LineCut('min', 0, 3) ])
    assert nllh.get_data_pdf().integral() == 7
    assert np.isclose(nllh.evaluate(), -7*np.log(1) + 10)


class TestParameters :

  def test_flat_vector(self, nllh, axes_1d) :
    nllh.add_systematic(Shift('shift', [ 0 ], 0.5))
    assert nllh.nparameters() == 2
    assert nllh.parameter_names() == [ 'norm_signal', 'shift' ]
    nllh.set_parameters([ 10, 0.25 ])
    assert np.array_equal(nllh.get_normalisations(), [ 10 ])
    assert np.array_equal(nllh.get_systematic_params(), [ 0.25 ])
    assert np.array_equal(nllh.get_parameters(), [ 10, 0.25 ])
    assert np.isclose(nllh([ 10, 0 ]), 10)
    with pytest.raises(DimensionError) : nllh.set_parameters([ 1 ])
    with pytest.raises(DimensionError) : nllh.set_normalisations([ 1, 2 ])
    with pytest.raises(DimensionError) : nllh.set_systematic_params([ 1, 2 ])

  def test_systematic_setup_from_first_pdf(self, uniform_pdf, one_per_bin) :
    nllh = BinnedNLLH()
    shift = Shift('shift', [ 0 ], 0)
    nllh.add_systematic(shift)
    assert not shift.has_axes
    nllh.add_pdf(uniform_pdf, 10)
    nllh.set_dataset(one_per_bin)
    assert shift.has_axes
    assert np.isclose(nllh.evaluate(), 10)

  def test_systematic_changes_value(self, nllh) :
    nllh.add_systematic(Scale('scale', [ 0 ], 1))
    nllh.set_normalisations([ 10 ])
    assert np.isclose(nllh.evaluate(), 10)
    nllh.set_systematic_params([ 0.9 ])
    assert nllh.evaluate() > 10

  def test_narrow_convolution_is_neutral(self, nllh) :
    expected = nllh.evaluate()
    nllh.add_systematic(Convolution('res', Gaussian(0, 1E-3), [ 0 ]))
    assert np.isclose(nllh.evaluate(), expected)


class TestConstraints :

  def test_normalisation_constraint(self, nllh) :
    nllh.set_normalisations([ 12 ])
    unconstrained = nllh.evaluate()
    nllh.set_normalisation_constraint(0, QuadraticConstraint(10, 1))
    assert np.isclose(nllh.evaluate(), unconstrained + 4)
    assert nllh.get_normalisation_constraint(0).nparameters() == 1

  def test_systematic_constraint(self, nllh) :
    nllh.add_systematic(Shift('shift', [ 0 ], 0.5))
    unconstrained = nllh.evaluate()
    nllh.set_systematic_constraint(0, QuadraticConstraint(0, 0.25))
    assert np.isclose(nllh.evaluate(), unconstrained + 4)

  def test_constraint_moves_minimum(self, nllh) :
    nllh.add_pdf(nllh.pdf_manager.get_original_pdf(0).clone(name='other'), 0, QuadraticConstraint(5, 1))
    at_target = nllh([ 5, 5 ])
    away = nllh([ 5, 7 ])
    assert nllh.evaluate() == away
    assert away - at_target > 0

  def test_slot_errors(self, nllh) :
    with pytest.raises(DimensionError) : nllh.set_normalisation_constraint(1, QuadraticConstraint(0, 1))
    with pytest.raises(DimensionError) : nllh.get_systematic_constraint(0)
    assert nllh.get_normalisation_constraint(0) is None


class TestRegionOfInterest :

  def test_buffer_with_empty_edges(self, axes_1d) :
    pdf = BinnedPdf(axes_1d, contents=[ 0 ] + [ 1 ]*8 + [ 0 ])
    nllh = BinnedNLLH().add_pdf(pdf, 8)
    nllh.set_dataset(ArrayDataSet(np.arange(1, 9) + 0.5))
    full = nllh.evaluate()
    nllh.set_buffer(0, 1, 1)
    assert nllh.get_buffer(0) == (1, 1)
    assert np.isclose(nllh.evaluate(), full)
    assert np.isclose(full, 8)

  def test_buffer_renormalises(self, nllh) :
    nllh.set_buffer(0, 1, 1)
    nllh.set_normalisations([ 8 ])
    assert nllh.get_data_pdf().nbins() == 8
    assert np.isclose(nllh.evaluate(), 8)

  def test_buffer_as_overflow(self, nllh) :
    nllh.set_buffer(0, 2, 2)
    nllh.set_buffer_as_overflow(True)
    assert nllh.get_buffer_as_overflow()
    assert np.array_equal(nllh.get_data_pdf().contents, [ 3, 1, 1, 1, 1, 3 ])


class TestMarkup :

  @pytest.mark.parametrize('extension', [ 'json', 'yaml' ])
  def test_round_trip(self, nllh, tmp_path, extension) :
    nllh.add_systematic(Convolution('res', Gaussian(0, 0.5), [ 0 ]), QuadraticConstraint([ 0, 0.5 ], [ 0.1, 0.1 ]))
    nllh.set_normalisation_constraint(0, QuadraticConstraint(10, 2))
    nllh.set_buffer(0, 1, 1)
    nllh.set_cuts([ LineCut('max', 0, 9, 'upper') ])
    nllh.set_parameters([ 9, 0.1, 0.6 ])
    expected = nllh.evaluate()
    filename = str(tmp_path / ('nllh.' + extension))
    nllh.save(filename)
    loaded = BinnedNLLH().load(filename)
    assert loaded.parameter_names() == nllh.parameter_names()
    assert np.allclose(loaded.get_parameters(), nllh.get_parameters())
    assert loaded.get_buffer(0) == (1, 1)
    assert np.isclose(loaded.evaluate(), expected)

  def test_dump_leaves_systematics(self, nllh) :
    shift = Shift('shift', [ 0 ], 0)
    nllh.add_systematic(shift)
    nllh.set_systematic_params([ 2 ])
    sdict = nllh.dump_dict()
    assert shift.get_parameter(0) == 0
    assert sdict['systematics'][0]['parameters'] == [ 2 ]
    assert np.array_equal(BinnedNLLH().load_dict(sdict).get_systematic_params(), [ 2 ])
    res = Convolution('res', Gaussian(0, 1), [ 0 ])
    nllh.add_systematic(res)
    nllh.set_systematic_params([ 2, 0, -1 ])
    assert nllh.dump_dict()['systematics'][1]['parameters'] == [ 0, -1 ]
    assert np.array_equal(res.get_parameters(), [ 0, 1 ])

  def test_binned_data_markup(self, nllh) :
    nllh.get_data_pdf()
    nllh.set_dataset(None)
    nllh.set_data_pdf(BinnedPdf(nllh.pdf_manager.get_original_pdf(0).axes, contents=np.ones(10)))
    expected = nllh.evaluate()
    loaded = BinnedNLLH().load_markup(nllh.dump_markup())
    assert np.isclose(loaded.evaluate(), expected)

  def test_missing_pdfs(self) :
    with pytest.raises(KeyError) : BinnedNLLH().load_dict({})


class TestClone :

  def test_clone_is_independent(self, nllh) :
    copy = nllh.clone()
    copy.set_normalisations([ 10 ])
    assert np.array_equal(nllh.get_normalisations(), [ 1 ])
    assert np.isclose(copy.evaluate(), 10)
    assert np.isclose(nllh.evaluate(), -10*np.log(0.1) + 1)
