"""Module defining the binning of PDFs and histograms:

  * :class:`PdfAxis` : the bin boundaries along one observable.

  * :class:`AxisCollection` : an ordered set of axes, defining a
    multi-dimensional binning. Each bin is identified either by its tuple
    of per-axis indices or by a single *global bin ID*.

Global bin IDs use the same mixed-radix convention as numpy arrays in C
order: the last axis varies fastest. A histogram over an axis collection
with shape `(n0, n1, n2)` can therefore be reshaped to that shape directly.
"""

from .base import Serializable
from .exceptions import DimensionError
import numpy as np


# -------------------------------------------------------------------------
class PdfAxis(Serializable) :
  """Class representing the binning of one observable

  The axis spans `[min_value, max_value)`. Values below `min_value` are
  assigned to the first bin, and values at or above `max_value` to the
  last bin, so that these act as underflow and overflow bins.

  Bins can be defined either from a range and a number of bins (equal
  widths), or from explicit lists of low and high bin edges.

  Attributes:
     name (str) : the observable name
     latex_name (str) : the observable name in LaTeX form, for display
     low_edges (np.ndarray) : the low edges of the bins
     high_edges (np.ndarray) : the high edges of the bins
     centres (np.ndarray) : the bin centres
     widths (np.ndarray) : the bin widths
     equal_width (bool) : True if all bins were constructed with the same width
  """

  def __init__(self, name : str = '', min_value : float = None, max_value : float = None, nbins : int = None,
               latex_name : str = '', low_edges : list = None, high_edges : list = None) :
    """Initialize the axis

      Either (`min_value`, `max_value`, `nbins`) or (`low_edges`,
      `high_edges`) should be provided.

      Args:
        name       : the observable name
        min_value  : lower bound of the axis range (equal-width case)
        max_value  : upper bound of the axis range (equal-width case)
        nbins      : number of bins, including under/overflow (equal-width case)
        latex_name : LaTeX form of the observable name
        low_edges  : low edges of the bins (variable-width case)
        high_edges : high edges of the bins (variable-width case)
    """
    self.name = name
    self.latex_name = latex_name
    self.low_edges = np.array([])
    self.high_edges = np.array([])
    self.equal_width = False
    if low_edges is not None or high_edges is not None :
      self.set_edges(low_edges, high_edges)
    elif nbins is not None :
      self.set_range(min_value, max_value, nbins)

  def set_range(self, min_value : float, max_value : float, nbins : int) -> 'PdfAxis' :
    """Define equal-width bins spanning a range

      Args:
        min_value  : lower bound of the axis range
        max_value  : upper bound of the axis range
        nbins      : number of bins

      Returns:
        self
    """
    if nbins is None or int(nbins) < 1 :
      raise ValueError("Axis '%s' must have at least one bin, got %s." % (self.name, str(nbins)))
    if not max_value > min_value :
      raise ValueError("Axis '%s' has an empty range [%g, %g)." % (self.name, min_value, max_value))
    edges = np.linspace(min_value, max_value, int(nbins) + 1)
    self.low_edges = edges[:-1]
    self.high_edges = edges[1:]
    self.equal_width = True
    self.update()
    return self

  def set_edges(self, low_edges : list, high_edges : list) -> 'PdfAxis' :
    """Define bins from their edges

      Args:
        low_edges  : low edges of the bins
        high_edges : high edges of the bins

      Returns:
        self
    """
    low_edges = np.array(low_edges, dtype=float)
    high_edges = np.array(high_edges, dtype=float)
    if low_edges.ndim != 1 or low_edges.shape != high_edges.shape or low_edges.size == 0 :
      raise DimensionError("Axis '%s' needs non-empty low and high edge lists of the same size, got %d and %d." % (self.name, low_edges.size, high_edges.size))
    if np.any(high_edges <= low_edges) or np.any(low_edges[1:] < high_edges[:-1]) :
      raise ValueError("Bin edges of axis '%s' are not monotonically increasing." % self.name)
    self.low_edges = low_edges
    self.high_edges = high_edges
    self.equal_width = False
    self.update()
    return self

  def update(self) :
    self.centres = (self.low_edges + self.high_edges)/2
    self.widths = self.high_edges - self.low_edges

  def nbins(self) -> int :
    """Returns the number of bins, including under/overflows
    """
    return self.low_edges.size

  @property
  def min_value(self) -> float :
    return self.low_edges[0]

  @property
  def max_value(self) -> float :
    return self.high_edges[-1]

  def find_bin(self, value) :
    """Find the bin containing a value

      Values outside the axis range are assigned to the first
      or last bin. Arrays of values are processed in one go.

      Args:
        value: a single value or an array of values

      Returns:
        the bin index (int), or an array of bin indices
    """
    values = np.asarray(value, dtype=float)
    nbins = self.nbins()
    if self.equal_width :
      width = (self.max_value - self.min_value)/nbins
      bins = np.clip(np.floor((values - self.min_value)/width).astype(int), 0, nbins - 1)
      # floating-point rounding at the bin boundaries
      bins = np.where((values < self.low_edges[bins]) & (bins > 0), bins - 1, bins)
      bins = np.where((values >= self.high_edges[bins]) & (bins < nbins - 1), bins + 1, bins)
    else :
      bins = np.clip(np.searchsorted(self.high_edges, values, side='right'), 0, nbins - 1)
    return int(bins) if bins.ndim == 0 else bins

  def sub_axis(self, first : int, last : int) -> 'PdfAxis' :
    """Returns a new axis made of a contiguous subset of the bins

      Args:
        first : index of the first bin to keep
        last  : index of the last bin to keep (included)

      Returns:
        the new axis
    """
    if first < 0 or last >= self.nbins() or last < first :
      raise DimensionError("Cannot take bins [%d, %d] of axis '%s' with %d bins." % (first, last, self.name, self.nbins()))
    return PdfAxis(self.name, latex_name=self.latex_name, low_edges=self.low_edges[first:last + 1], high_edges=self.high_edges[first:last + 1])

  def __eq__(self, other) -> bool :
    if not isinstance(other, PdfAxis) : return NotImplemented
    return self.name == other.name and np.array_equal(self.low_edges, other.low_edges) and np.array_equal(self.high_edges, other.high_edges)

  def __str__(self) -> str :
    return 'Axis ' + self.string_repr(verbosity = 1)

  def string_repr(self, verbosity : int = 1, pre_indent : str = '', indent : str = '   ') -> str :
    """Return a string representation of the object

      Args:
        verbosity : verbosity of the output
        pre_indent: indentation to add to all lines
        indent    : indentation to add to fields of this object

      Returns:
        the description string
    """
    rep = '%s%s : %d bins in [%g, %g)' % (pre_indent, self.name, self.nbins(), self.min_value, self.max_value)
    if verbosity >= 2 :
      rep += '\n%sedges = %s' % (pre_indent + indent, str(np.append(self.low_edges, self.max_value)))
    return rep

  def load_dict(self, sdict : dict) -> 'PdfAxis' :
    """Load object information from a dictionary of markup data

      Args:
        sdict: a dictionary containing markup data

      Returns:
        self
    """
    self.name = self.load_field('name', sdict, '', str)
    self.latex_name = self.load_field('latex_name', sdict, '', str)
    if 'low_edges' in sdict :
      self.set_edges(self.load_field('low_edges', sdict, None, np.ndarray), self.load_field('high_edges', sdict, None, np.ndarray))
    else :
      if not 'nbins' in sdict : raise KeyError("Axis '%s' definition must contain either 'nbins' or 'low_edges' and 'high_edges'." % self.name)
      self.set_range(self.load_field('min_value', sdict, 0, [int, float]), self.load_field('max_value', sdict, 1, [int, float]),
                     self.load_field('nbins', sdict, None, int))
    return self

  def fill_dict(self, sdict : dict) :
    """Save information to a dictionary of markup data

      Args:
         sdict: a dictionary containing markup data
    """
    sdict['name'] = self.name
    if self.latex_name != '' : sdict['latex_name'] = self.latex_name
    if self.equal_width :
      sdict['min_value'] = self.unnumpy(self.min_value)
      sdict['max_value'] = self.unnumpy(self.max_value)
      sdict['nbins'] = self.nbins()
    else :
      sdict['low_edges'] = self.unnumpy(self.low_edges)
      sdict['high_edges'] = self.unnumpy(self.high_edges)


# -------------------------------------------------------------------------
class AxisCollection(Serializable) :
  """Class representing a multi-dimensional binning

  The collection is built up by adding axes, and is then meant to be
  used read-only. The total number of bins is the product of the numbers
  of bins of each axis.

  Attributes:
     axes (list) : the list of :class:`PdfAxis` objects
  """

  def __init__(self, axes : list = None) :
    """Initialize the collection

      Args:
        axes: optional list of :class:`PdfAxis` objects to add
    """
    self.axes = []
    if axes is not None : self.add_axes(axes)

  def add_axis(self, axis : PdfAxis) -> 'AxisCollection' :
    """Add an axis

      Args:
        axis : the axis to add, must have a name not already in use

      Returns:
        self
    """
    if self.has_axis(axis.name) :
      raise ValueError("An axis named '%s' is already present in the collection." % axis.name)
    self.axes.append(axis)
    return self

  def add_axes(self, axes : list) -> 'AxisCollection' :
    for axis in axes : self.add_axis(axis)
    return self

  def has_axis(self, name : str) -> bool :
    return any(axis.name == name for axis in self.axes)

  def axis(self, index : int) -> PdfAxis :
    """Access an axis by index

      Args:
        index: the axis index

      Returns:
        the axis object
    """
    if index < 0 or index >= len(self.axes) :
      raise DimensionError('Axis index %d is out of range, the collection has %d axes.' % (index, len(self.axes)))
    return self.axes[index]

  def ndims(self) -> int :
    return len(self.axes)

  def shape(self) -> tuple :
    """Returns the number of bins along each axis, as a tuple
    """
    return tuple(axis.nbins() for axis in self.axes)

  def nbins(self) -> int :
    """Returns the total number of bins
    """
    return int(np.prod(self.shape())) if len(self.axes) > 0 else 0

  def flatten_indices(self, indices : list) -> int :
    """Compute the global bin ID from per-axis bin indices

      Args:
        indices : the bin index along each axis

      Returns:
        the global bin ID
    """
    if len(indices) != self.ndims() :
      raise DimensionError('Cannot flatten %d indices in a collection of %d axes.' % (len(indices), self.ndims()))
    for dim, (index, nbins) in enumerate(zip(indices, self.shape())) :
      if index < 0 or index >= nbins :
        raise DimensionError("Index %d is out of range for axis '%s' with %d bins." % (index, self.axes[dim].name, nbins))
    return int(np.ravel_multi_index(tuple(indices), self.shape()))

  def check_bin(self, bin_id : int) :
    if bin_id < 0 or bin_id >= self.nbins() :
      raise DimensionError('Bin %d is out of range, the collection has %d bins.' % (bin_id, self.nbins()))

  def unpack_indices(self, bin_id : int) -> list :
    """Compute the per-axis bin indices from a global bin ID

      Args:
        bin_id : the global bin ID

      Returns:
        the list of per-axis indices
    """
    self.check_bin(bin_id)
    return [ int(index) for index in np.unravel_index(bin_id, self.shape()) ]

  def unflatten_index(self, bin_id : int, dim : int) -> int :
    """Compute the bin index along one axis from a global bin ID

      Args:
        bin_id : the global bin ID
        dim    : the axis index

      Returns:
        the bin index along axis `dim`
    """
    self.check_bin(bin_id)
    self.axis(dim)
    shape = self.shape()
    return (bin_id // int(np.prod(shape[dim + 1:]))) % shape[dim]

  def all_indices(self) -> np.ndarray :
    """Per-axis indices of all the bins

      Returns:
        an integer array of shape (nbins, ndims), row `i` giving the indices of bin `i`
    """
    return np.stack(np.unravel_index(np.arange(self.nbins()), self.shape()), axis=-1)

  def find_bin(self, values : list) -> int :
    """Find the global ID of the bin containing a point

      Out-of-range values are assigned to the under/overflow bin of the
      corresponding axis.

      Args:
        values : the point coordinates, one per axis

      Returns:
        the global bin ID
    """
    if len(values) != self.ndims() :
      raise DimensionError('Cannot find bin of a %d-dimensional point in a collection of %d axes.' % (len(values), self.ndims()))
    return int(np.ravel_multi_index(tuple(axis.find_bin(value) for axis, value in zip(self.axes, values)), self.shape()))

  def find_bins(self, values : np.ndarray) -> np.ndarray :
    """Find the global IDs of the bins containing an array of points

      Args:
        values : an array of shape (npoints, ndims)

      Returns:
        an integer array of shape (npoints,)
    """
    values = np.asarray(values, dtype=float)
    if values.ndim != 2 or values.shape[1] != self.ndims() :
      raise DimensionError('Cannot find bins of points with shape %s in a collection of %d axes.' % (str(values.shape), self.ndims()))
    return np.ravel_multi_index(tuple(axis.find_bin(values[:, dim]) for dim, axis in enumerate(self.axes)), self.shape())

  def get_bin_centres(self, bin_id : int) -> np.ndarray :
    return np.array([ axis.centres[i] for axis, i in zip(self.axes, self.unpack_indices(bin_id)) ])

  def get_bin_low_edges(self, bin_id : int) -> np.ndarray :
    return np.array([ axis.low_edges[i] for axis, i in zip(self.axes, self.unpack_indices(bin_id)) ])

  def get_bin_high_edges(self, bin_id : int) -> np.ndarray :
    return np.array([ axis.high_edges[i] for axis, i in zip(self.axes, self.unpack_indices(bin_id)) ])

  def get_bin_centre(self, bin_id : int, dim : int) -> float :
    return self.axis(dim).centres[self.unflatten_index(bin_id, dim)]

  def get_bin_low_edge(self, bin_id : int, dim : int) -> float :
    return self.axis(dim).low_edges[self.unflatten_index(bin_id, dim)]

  def get_bin_high_edge(self, bin_id : int, dim : int) -> float :
    return self.axis(dim).high_edges[self.unflatten_index(bin_id, dim)]

  def get_bin_width(self, bin_id : int, dim : int) -> float :
    return self.axis(dim).widths[self.unflatten_index(bin_id, dim)]

  def all_bin_values(self, field : str) -> np.ndarray :
    """Per-axis bin quantities for all bins at once

      Args:
        field : one of 'centres', 'low_edges', 'high_edges' or 'widths'

      Returns:
        an array of shape (nbins, ndims)
    """
    indices = self.all_indices()
    return np.stack([ getattr(axis, field)[indices[:, dim]] for dim, axis in enumerate(self.axes) ], axis=-1)

  def subset(self, dims : list) -> 'AxisCollection' :
    """Returns a new collection made of a subset of the axes

      Args:
        dims : indices of the axes to keep, in the order they should appear

      Returns:
        the new collection
    """
    return AxisCollection([ self.axis(dim) for dim in dims ])

  def clone(self) -> 'AxisCollection' :
    return AxisCollection(list(self.axes))

  def __eq__(self, other) -> bool :
    if not isinstance(other, AxisCollection) : return NotImplemented
    return len(self.axes) == len(other.axes) and all(a == b for a, b in zip(self.axes, other.axes))

  def __str__(self) -> str :
    return 'AxisCollection ' + self.string_repr(verbosity = 1)

  def string_repr(self, verbosity : int = 1, pre_indent : str = '', indent : str = '   ') -> str :
    rep = '%s%d axes, %d bins' % (pre_indent, self.ndims(), self.nbins())
    for axis in self.axes :
      rep += '\n' + axis.string_repr(verbosity, pre_indent + indent, indent)
    return rep

  def load_dict(self, sdict : dict) -> 'AxisCollection' :
    """Load object information from a dictionary of markup data

      Args:
        sdict: a dictionary containing markup data

      Returns:
        self
    """
    if not 'axes' in sdict : raise KeyError("Axis collection definition must contain an 'axes' section.")
    self.axes = []
    for dict_axis in sdict['axes'] : self.add_axis(PdfAxis().load_dict(dict_axis))
    return self

  def fill_dict(self, sdict : dict) :
    sdict['axes'] = [ axis.dump_dict() for axis in self.axes ]
