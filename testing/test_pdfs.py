import pytest
import numpy as np

from binnedfit import BinnedPdf, Gaussian, IntegrablePdf, AxisCollection, PdfAxis, DataRepresentation, EventData, \
                      ArrayDataSet, CutCollection, LineCut, Histogram, DimensionError, RepresentationError, ParameterError


class TestBinnedPdf :

  def test_default_representation(self, axes_2d) :
    pdf = BinnedPdf(axes_2d)
    assert pdf.data_rep == DataRepresentation([ 0, 1 ])

  def test_representation_mismatch(self, axes_2d) :
    with pytest.raises(RepresentationError) : BinnedPdf(axes_2d, DataRepresentation([ 0 ]))

  def test_fill_projects_event(self, axes_1d) :
    pdf = BinnedPdf(axes_1d, DataRepresentation([ 2 ]))
    pdf.fill(EventData([ 100, -100, 4.5 ]))
    assert pdf.get_bin_content(4) == 1
    assert pdf(EventData([ 0, 0, 4.2 ])) == 1
    with pytest.raises(RepresentationError) : pdf.fill(EventData([ 4.5 ]))

  def test_fill_dataset(self, axes_1d, one_per_bin) :
    pdf = BinnedPdf(axes_1d)
    assert pdf.fill_dataset(one_per_bin) == 10
    assert np.array_equal(pdf.contents, np.ones(10))

  def test_fill_dataset_with_cuts(self, axes_1d, one_per_bin) :
    pdf = BinnedPdf(axes_1d)
    assert pdf.fill_dataset(one_per_bin, CutCollection([ LineCut('min', 0, 3) ])) == 7
    assert np.array_equal(pdf.contents, [ 0, 0, 0 ] + [ 1 ]*7)

  def test_clone_is_independent(self, uniform_pdf) :
    copy = uniform_pdf.clone(name='copy')
    copy.set_bin_content(0, 3)
    assert uniform_pdf.get_bin_content(0) == 1
    assert copy.name == 'copy' and uniform_pdf.name == 'signal'

  def test_marginalise_by_observable(self, axes_2d) :
    pdf = BinnedPdf(axes_2d, DataRepresentation([ 3, 1 ]), np.arange(12))
    marg = pdf.marginalise(1)
    assert marg.data_rep == DataRepresentation([ 1 ])
    assert np.array_equal(marg.contents, [ 12, 15, 18, 21 ])
    marg = pdf.marginalise([ 1, 3 ])
    assert marg.data_rep == DataRepresentation([ 3, 1 ])
    with pytest.raises(RepresentationError) : pdf.marginalise(0)

  def test_normalise(self, uniform_pdf) :
    uniform_pdf.normalise()
    assert np.allclose(uniform_pdf.contents, 0.1)

  def test_from_histogram(self, axes_1d) :
    pdf = BinnedPdf.from_histogram(Histogram(axes_1d, np.ones(10)), DataRepresentation([ 4 ]), 'bkg')
    assert pdf.integral() == 10
    assert pdf.data_rep.indices == [ 4 ]

  def test_markup(self, axes_2d) :
    pdf = BinnedPdf(axes_2d, DataRepresentation([ 3, 1 ]), np.arange(12), 'bkg')
    loaded = BinnedPdf().load_markup(pdf.dump_markup())
    assert loaded.name == 'bkg'
    assert loaded.data_rep == pdf.data_rep
    assert loaded.axes == pdf.axes
    assert np.array_equal(loaded.contents, pdf.contents)


class TestGaussian :

  def test_integral(self) :
    gauss = Gaussian(0, 1)
    assert np.isclose(gauss.integral([ -np.inf ], [ np.inf ]), 1)
    assert np.isclose(gauss.integral([ 0 ], [ np.inf ]), 0.5)
    assert np.isclose(gauss.integral([ -1 ], [ 1 ]), 0.682689492)

  def test_integral_2d(self) :
    gauss = Gaussian([ 0, 5 ], [ 1, 2 ])
    assert np.isclose(gauss.integral([ 0, 5 ], [ np.inf, np.inf ]), 0.25)
    boxes_low = np.zeros((3, 4, 2))
    assert gauss.integral(boxes_low, boxes_low + 1).shape == (3, 4)
    with pytest.raises(DimensionError) : gauss.integral([ 0 ], [ 1 ])

  def test_parameters(self) :
    gauss = Gaussian([ 0, 5 ], [ 1, 2 ])
    assert gauss.ndims() == 2
    assert gauss.nparameters() == 4
    assert np.array_equal(gauss.get_parameters(), [ 0, 5, 1, 2 ])
    gauss.set_parameter(1, 3)
    assert np.array_equal(gauss.means, [ 0, 3 ])
    assert gauss.parameter_names() == [ 'mean_0', 'mean_1', 'stdev_0', 'stdev_1' ]

  def test_invalid_parameters(self) :
    gauss = Gaussian(0, 1)
    with pytest.raises(ParameterError) : gauss.set_parameters([ 0, -1 ])
    with pytest.raises(ParameterError) : gauss.set_parameter(1, 0)
    with pytest.raises(DimensionError) : gauss.set_parameters([ 0, 1, 2 ])
    with pytest.raises(DimensionError) : gauss.get_parameter(2)
    with pytest.raises(ParameterError) : Gaussian(0, 0)
    assert np.array_equal(gauss.get_parameters(), [ 0, 1 ])

  def test_clone_is_independent(self) :
    gauss = Gaussian(0, 1)
    copy = gauss.clone()
    copy.set_parameter(0, 2)
    assert gauss.get_parameter(0) == 0

  def test_markup(self) :
    gauss = Gaussian([ 0, 5 ], [ 1, 2 ])
    loaded = IntegrablePdf.instantiate(gauss.dump_dict())
    assert isinstance(loaded, Gaussian)
    assert np.array_equal(loaded.get_parameters(), gauss.get_parameters())
