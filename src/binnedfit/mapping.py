"""Module containing the :class:`PdfMapping` class, a sparse matrix of
bin-to-bin transition probabilities over the bins of an
:class:`binnedfit.axes.AxisCollection`.

The element `(dest, orig)` is the probability for an event in bin `orig`
to end up in bin `dest`, so that applying the mapping to a vector of bin
contents `n` gives `M @ n`.
"""

from .axes import AxisCollection
from .exceptions import DimensionError
import numpy as np
import scipy.sparse


# -------------------------------------------------------------------------
class PdfMapping :
  """Class representing a transition matrix between bins

  Attributes:
     axes (AxisCollection) : the binning defining the bin space
     matrix (scipy.sparse.csr_matrix) : the (nbins x nbins) transition matrix
  """

  def __init__(self, axes : AxisCollection = None) :
    self.set_axes(axes if axes is not None else AxisCollection())

  def set_axes(self, axes : AxisCollection) -> 'PdfMapping' :
    """Set the bin space, resetting the matrix to zero

      Args:
        axes : the binning

      Returns:
        self
    """
    self.axes = axes
    nbins = axes.nbins()
    self.matrix = scipy.sparse.csr_matrix((nbins, nbins))
    return self

  @classmethod
  def identity(cls, axes : AxisCollection) -> 'PdfMapping' :
    mapping = PdfMapping(axes)
    mapping.matrix = scipy.sparse.identity(axes.nbins(), format='csr')
    return mapping

  def clone(self) -> 'PdfMapping' :
    mapping = PdfMapping(self.axes)
    mapping.matrix = self.matrix.copy()
    return mapping

  def nbins(self) -> int :
    return self.matrix.shape[0]

  def nnz(self) -> int :
    """Returns the number of stored non-zero elements
    """
    return self.matrix.count_nonzero()

  def _check_index(self, index : int) :
    if index < 0 or index >= self.nbins() :
      raise DimensionError('Bin %d is out of range for a mapping over %d bins.' % (index, self.nbins()))

  def set_components(self, rows, cols, values) -> 'PdfMapping' :
    """Replace the matrix by one built from (row, col, value) triplets

      Repeated (row, col) pairs are summed.

      Args:
        rows   : row (destination bin) indices
        cols   : column (origin bin) indices
        values : matrix elements

      Returns:
        self
    """
    rows = np.asarray(rows, dtype=int)
    cols = np.asarray(cols, dtype=int)
    values = np.asarray(values, dtype=float)
    if not rows.shape == cols.shape == values.shape :
      raise DimensionError('Mapping components need rows, columns and values of the same size, got %d, %d and %d.' % (rows.size, cols.size, values.size))
    if rows.size > 0 and (min(rows.min(), cols.min()) < 0 or max(rows.max(), cols.max()) >= self.nbins()) :
      raise DimensionError('Mapping component indices out of range for a mapping over %d bins.' % self.nbins())
    self.matrix = scipy.sparse.coo_matrix((values, (rows, cols)), shape=(self.nbins(), self.nbins())).tocsr()
    return self

  def get_component(self, row : int, col : int) -> float :
    self._check_index(row)
    self._check_index(col)
    return float(self.matrix[row, col])

  def set_component(self, row : int, col : int, value : float) :
    self._check_index(row)
    self._check_index(col)
    matrix = self.matrix.tolil()
    matrix[row, col] = value
    self.matrix = matrix.tocsr()

  def to_dense(self) -> np.ndarray :
    return self.matrix.toarray()

  def apply_contents(self, contents : np.ndarray) -> np.ndarray :
    """Apply the mapping to a vector of bin contents

      Args:
        contents : array of size `nbins()`

      Returns:
        the mapped contents
    """
    contents = np.asarray(contents, dtype=float)
    if contents.shape != (self.nbins(),) :
      raise DimensionError('Cannot apply a mapping over %d bins to contents of shape %s.' % (self.nbins(), str(contents.shape)))
    return self.matrix.dot(contents)

  def apply(self, pdf : 'BinnedPdf') -> 'BinnedPdf' :
    """Apply the mapping to a PDF

      Args:
        pdf : the input PDF, with `nbins()` bins

      Returns:
        a new PDF with the mapped contents
    """
    if pdf.nbins() != self.nbins() :
      raise DimensionError("Cannot apply a mapping over %d bins to PDF '%s' with %d bins." % (self.nbins(), pdf.name, pdf.nbins()))
    mapped = pdf.clone()
    mapped.set_bin_contents(self.apply_contents(pdf.contents))
    return mapped

  def compose(self, other : 'PdfMapping') -> 'PdfMapping' :
    """Returns the mapping equivalent to applying `other`, then this one

      Args:
        other : the mapping applied first

      Returns:
        the composed mapping
    """
    if other.nbins() != self.nbins() :
      raise DimensionError('Cannot compose mappings over %d and %d bins.' % (self.nbins(), other.nbins()))
    mapping = PdfMapping(self.axes)
    mapping.matrix = (self.matrix @ other.matrix).tocsr()
    return mapping

  def __str__(self) -> str :
    return 'PdfMapping over %d bins, %d non-zero elements' % (self.nbins(), self.nnz())
