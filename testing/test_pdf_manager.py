import pytest
import numpy as np

from binnedfit import BinnedPdfManager, BinnedPdf, SystematicManager, Shift, PdfShrinker, AxisCollection, PdfAxis, \
                      DimensionError, RepresentationError


@pytest.fixture
def manager(axes_1d) -> BinnedPdfManager :
  signal = BinnedPdf(axes_1d, contents=np.ones(10), name='signal')
  background = BinnedPdf(axes_1d, contents=np.arange(10), name='background')
  return BinnedPdfManager().add_pdfs([ signal, background ])


class TestBinnedPdfManager :

  def test_pdfs_are_normalised(self, manager) :
    assert manager.npdfs() == 2
    assert manager.nbins() == 10
    for k in range(2) : assert np.isclose(manager.get_original_pdf(k).integral(), 1)

  def test_added_pdf_is_copied(self, axes_1d, uniform_pdf) :
    manager = BinnedPdfManager().add_pdf(uniform_pdf)
    assert uniform_pdf.integral() == 10

  def test_bin_probabilities(self, manager) :
    manager.set_normalisations([ 10, 45 ])
    assert np.allclose(manager.bin_probabilities(), 1 + np.arange(10))
    assert np.isclose(manager.bin_probability(3), 4)

  def test_errors(self, manager) :
    with pytest.raises(DimensionError) : manager.set_normalisations([ 1 ])
    with pytest.raises(DimensionError) : manager.get_original_pdf(2)
    with pytest.raises(DimensionError) : manager.get_working_pdf(-1)
    other = BinnedPdf(AxisCollection([ PdfAxis('x', 0, 10, 5) ]), contents=np.ones(5))
    with pytest.raises(DimensionError) : manager.add_pdf(other)

  def test_mismatched_binning(self, manager) :
    shifted = BinnedPdf(AxisCollection([ PdfAxis('x', 100, 200, 10) ]), contents=np.ones(10), name='shifted')
    with pytest.raises(DimensionError) : manager.add_pdf(shifted)
    renamed = BinnedPdf(AxisCollection([ PdfAxis('y', 0, 10, 10) ]), contents=np.ones(10), name='renamed')
    with pytest.raises(DimensionError) : manager.add_pdf(renamed)
    assert manager.npdfs() == 2

  def test_mismatched_representation(self, axes_2d) :
    manager = BinnedPdfManager().add_pdf(BinnedPdf(axes_2d, [ 0, 1 ], np.ones(12), name='a'))
    with pytest.raises(RepresentationError) : manager.add_pdf(BinnedPdf(axes_2d, [ 1, 0 ], np.ones(12), name='b'))
    manager.add_pdf(BinnedPdf(axes_2d, [ 0, 1 ], np.arange(12), name='c'))
    assert manager.npdfs() == 2

  def test_systematics_leave_originals(self, axes_1d, manager) :
    systematics = SystematicManager([ Shift('shift', [ 0 ], 1).set_axes(axes_1d) ])
    manager.apply_systematics(systematics)
    assert np.allclose(manager.get_original_pdf(0).contents, 0.1)
    assert np.allclose(manager.get_working_pdf(0).contents, [ 0 ] + [ 0.1 ]*8 + [ 0.2 ])
    manager.apply_systematics(systematics)
    assert np.allclose(manager.get_working_pdf(0).contents, [ 0 ] + [ 0.1 ]*8 + [ 0.2 ])

  def test_shrink_renormalises(self, manager) :
    manager.apply_systematics(SystematicManager())
    manager.apply_shrink(PdfShrinker().set_buffer(0, 1, 1))
    assert manager.nbins() == 8
    assert np.allclose(manager.get_working_pdf(0).contents, 1/8)
    assert np.isclose(manager.get_working_pdf(1).integral(), 1)

  def test_empty_after_shrink(self, axes_1d) :
    edge = BinnedPdf(axes_1d, contents=[ 1 ] + [ 0 ]*9, name='edge')
    manager = BinnedPdfManager().add_pdf(edge)
    manager.apply_shrink(PdfShrinker().set_buffer(0, 1, 0))
    assert manager.get_working_pdf(0).integral() == 0

  def test_clone_is_independent(self, manager) :
    copy = manager.clone()
    copy.set_normalisations([ 5, 5 ])
    assert np.array_equal(manager.get_normalisations(), [ 1, 1 ])
