import pytest
import numpy as np

from binnedfit import PdfMapping, BinnedPdf, DimensionError


class TestPdfMapping :

  def test_zero_on_creation(self, axes_1d) :
    mapping = PdfMapping(axes_1d)
    assert mapping.nbins() == 10
    assert mapping.nnz() == 0

  def test_identity(self, axes_1d, uniform_pdf) :
    mapping = PdfMapping.identity(axes_1d)
    mapped = mapping.apply(uniform_pdf)
    assert np.array_equal(mapped.contents, uniform_pdf.contents)
    assert mapped is not uniform_pdf

  def test_components(self, axes_1d) :
    mapping = PdfMapping(axes_1d)
    mapping.set_components([ 1, 1, 2 ], [ 0, 0, 2 ], [ 0.25, 0.5, 1 ])
    assert mapping.get_component(1, 0) == 0.75
    assert mapping.get_component(2, 2) == 1
    assert mapping.get_component(0, 1) == 0
    mapping.set_component(0, 1, 0.5)
    assert mapping.get_component(0, 1) == 0.5
    assert mapping.to_dense().shape == (10, 10)

  def test_index_errors(self, axes_1d) :
    mapping = PdfMapping(axes_1d)
    with pytest.raises(DimensionError) : mapping.set_components([ 10 ], [ 0 ], [ 1 ])
    with pytest.raises(DimensionError) : mapping.set_components([ 1, 2 ], [ 0 ], [ 1 ])
    with pytest.raises(DimensionError) : mapping.get_component(0, -1)
    with pytest.raises(DimensionError) : mapping.apply_contents(np.ones(5))

  def test_apply_moves_content(self, axes_1d, uniform_pdf) :
    mapping = PdfMapping(axes_1d)
    # everything from bin i goes to bin i + 1, last bin stays
    mapping.set_components(list(range(1, 10)) + [ 9 ], list(range(10)), np.ones(10))
    mapped = mapping.apply(uniform_pdf)
    assert np.array_equal(mapped.contents, [ 0 ] + [ 1 ]*8 + [ 2 ])
    assert np.array_equal(uniform_pdf.contents, np.ones(10))

  def test_compose_applies_other_first(self, axes_1d) :
    first = PdfMapping(axes_1d).set_components([ 1 ], [ 0 ], [ 1 ])
    second = PdfMapping(axes_1d).set_components([ 5 ], [ 1 ], [ 1 ])
    composed = second.compose(first)
    assert composed.get_component(5, 0) == 1
    assert first.compose(second).nnz() == 0
    contents = np.zeros(10)
    contents[0] = 1
    assert np.array_equal(composed.apply_contents(contents), second.apply_contents(first.apply_contents(contents)))

  def test_clone_is_independent(self, axes_1d) :
    mapping = PdfMapping.identity(axes_1d)
    copy = mapping.clone()
    copy.set_component(0, 0, 2)
    assert mapping.get_component(0, 0) == 1
