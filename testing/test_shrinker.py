import pytest
import numpy as np

from binnedfit import PdfShrinker, Histogram, BinnedPdf, DataRepresentation, DimensionError


class TestPdfShrinker :

  def test_default_buffer(self) :
    shrinker = PdfShrinker()
    assert shrinker.get_buffer(3) == (0, 0)
    assert not shrinker.active()

  def test_discard_buffer(self, axes_1d) :
    shrinker = PdfShrinker().set_buffer(0, 2, 3)
    shrunk = shrinker.shrink_histogram(Histogram(axes_1d, np.ones(10)))
    assert shrunk.nbins() == 5
    assert shrunk.axes.axis(0).min_value == 2
    assert shrunk.axes.axis(0).max_value == 7
    assert np.array_equal(shrunk.contents, np.ones(5))

  def test_buffer_as_overflow(self, axes_1d) :
    shrinker = PdfShrinker(using_overflows=True).set_buffer(0, 2, 3)
    shrunk = shrinker.shrink_histogram(Histogram(axes_1d, np.ones(10)))
    assert np.array_equal(shrunk.contents, [ 3, 1, 1, 1, 4 ])
    assert shrunk.integral() == 10

  def test_shrink_2d(self, axes_2d) :
    hist = Histogram(axes_2d, np.arange(12))
    shrinker = PdfShrinker().set_buffer(1, 1, 2)
    shrunk = shrinker.shrink_histogram(hist)
    assert shrunk.axes.shape() == (3, 1)
    assert np.array_equal(shrunk.contents, [ 1, 5, 9 ])
    shrinker.set_using_overflows(True)
    assert np.array_equal(shrinker.shrink_histogram(hist).contents, [ 6, 22, 38 ])

  def test_shrink_both_axes(self, axes_2d) :
    hist = Histogram(axes_2d, np.arange(12))
    shrinker = PdfShrinker().set_buffer(0, 1, 0).set_buffer(1, 0, 1)
    shrunk = shrinker.shrink_histogram(hist)
    assert shrunk.axes.shape() == (2, 3)
    assert np.array_equal(shrunk.contents, [ 4, 5, 6, 8, 9, 10 ])

  def test_invalid_buffers(self, axes_1d) :
    with pytest.raises(DimensionError) : PdfShrinker().set_buffer(-1, 1, 1)
    with pytest.raises(DimensionError) : PdfShrinker().get_buffer(-1)
    with pytest.raises(DimensionError) : PdfShrinker().set_buffer(0, 5, 5).shrink_histogram(Histogram(axes_1d))
    with pytest.raises(DimensionError) : PdfShrinker().set_buffer(1, 1, 1).shrink_histogram(Histogram(axes_1d))

  def test_shrink_pdf_keeps_representation(self, axes_1d) :
    pdf = BinnedPdf(axes_1d, DataRepresentation([ 2 ]), np.ones(10), 'bkg')
    shrunk = PdfShrinker().set_buffer(0, 1, 1).shrink_pdf(pdf)
    assert shrunk.name == 'bkg'
    assert shrunk.data_rep == DataRepresentation([ 2 ])
    assert shrunk.nbins() == 8
    assert pdf.nbins() == 10

  def test_inactive_returns_copy(self, uniform_pdf) :
    shrunk = PdfShrinker().shrink_pdf(uniform_pdf)
    shrunk.set_bin_content(0, 5)
    assert uniform_pdf.get_bin_content(0) == 1

  def test_markup(self) :
    shrinker = PdfShrinker(using_overflows=True).set_buffer(0, 1, 2).set_buffer(2, 0, 3)
    loaded = PdfShrinker().load_markup(shrinker.dump_markup('yaml'), 'yaml')
    assert loaded.get_buffers() == { 0 : (1, 2), 2 : (0, 3) }
    assert loaded.get_using_overflows()
