"""Module containing the :class:`Histogram` class, a dense array of bin
contents over a multi-dimensional binning (see :class:`binnedfit.axes.AxisCollection`).
"""

from .base import Serializable
from .axes import AxisCollection
from .exceptions import DimensionError, NormalisationError
import numpy as np


# -------------------------------------------------------------------------
class Histogram(Serializable) :
  """Class representing a multi-dimensional histogram

  The bin contents are stored as a 1D array indexed by global bin ID
  (see :class:`AxisCollection` for the ordering convention). Each
  histogram owns its contents array: copies made by :meth:`clone`
  never share storage.

  Attributes:
     axes (AxisCollection) : the binning
     contents (np.ndarray) : the bin contents, of size `axes.nbins()`
  """

  def __init__(self, axes : AxisCollection = None, contents : np.ndarray = None) :
    """Initialize the histogram

      Args:
        axes     : the binning
        contents : initial bin contents (default: all zero)
    """
    self.set_axes(axes if axes is not None else AxisCollection())
    if contents is not None : self.set_bin_contents(contents)

  def set_axes(self, axes : AxisCollection) -> 'Histogram' :
    """Set the binning, resetting all contents to zero

      Args:
        axes : the new binning

      Returns:
        self
    """
    self.axes = axes
    self.contents = np.zeros(axes.nbins())
    return self

  def clone(self) -> 'Histogram' :
    return Histogram(self.axes.clone(), np.array(self.contents))

  def nbins(self) -> int :
    return self.contents.size

  def ndims(self) -> int :
    return self.axes.ndims()

  def find_bin(self, values) -> int :
    return self.axes.find_bin(self._as_point(values))

  def _as_point(self, values) -> list :
    return [ values ] if np.isscalar(values) else list(values)

  def fill(self, values, weight : float = 1) :
    """Add a weight to the bin containing a point

      Args:
        values : the point coordinates (a scalar is accepted for 1D histograms)
        weight : the weight to add
    """
    self.contents[self.find_bin(values)] += weight

  def fill_array(self, values : np.ndarray, weights : np.ndarray = None) :
    """Fill the histogram with an array of points

      Args:
        values  : array of shape (npoints, ndims)
        weights : optional per-point weights (default: 1)
    """
    bins = self.axes.find_bins(values)
    np.add.at(self.contents, bins, 1 if weights is None else np.asarray(weights, dtype=float))

  def __call__(self, values) -> float :
    """Returns the content of the bin containing a point
    """
    return self.contents[self.find_bin(values)]

  def get_bin_content(self, bin_id : int) -> float :
    self.axes.check_bin(bin_id)
    return self.contents[bin_id]

  def set_bin_content(self, bin_id : int, content : float) :
    self.axes.check_bin(bin_id)
    self.contents[bin_id] = content

  def add_bin_content(self, bin_id : int, content : float) :
    self.axes.check_bin(bin_id)
    self.contents[bin_id] += content

  def get_bin_contents(self) -> np.ndarray :
    return np.array(self.contents)

  def set_bin_contents(self, contents : np.ndarray) -> 'Histogram' :
    """Set all bin contents at once

      Args:
        contents : array of size `nbins()`

      Returns:
        self
    """
    contents = np.array(contents, dtype=float)
    if contents.shape != (self.axes.nbins(),) :
      raise DimensionError('Cannot set %s bin contents in a histogram of %d bins.' % (str(contents.shape), self.axes.nbins()))
    self.contents = contents
    return self

  def empty(self) :
    self.contents = np.zeros(self.axes.nbins())

  def integral(self) -> float :
    return self.contents.sum()

  def normalise(self) -> 'Histogram' :
    """Scale the contents so that they sum to 1

      Returns:
        self
    """
    integral = self.integral()
    if integral == 0 : raise NormalisationError('Cannot normalise a histogram with zero integral.')
    self.contents = self.contents/integral
    return self

  def flatten_indices(self, indices : list) -> int :
    return self.axes.flatten_indices(indices)

  def unpack_indices(self, bin_id : int) -> list :
    return self.axes.unpack_indices(bin_id)

  def marginalise(self, dims : list) -> 'Histogram' :
    """Project the histogram onto a subset of its axes

      The contents of all bins with the same indices along the
      kept axes are summed.

      Args:
        dims : indices of the axes to keep. The kept axes appear in the
               result in the same relative order as in this histogram.

      Returns:
        the lower-dimensional histogram
    """
    if isinstance(dims, (int, np.integer)) : dims = [ dims ]
    kept = sorted(set(dims))
    if len(kept) != len(dims) : raise DimensionError('Repeated axis index in %s.' % str(dims))
    for dim in kept : self.axes.axis(dim)
    summed = tuple(dim for dim in range(self.ndims()) if dim not in kept)
    contents = self.contents.reshape(self.axes.shape()).sum(axis=summed)
    return Histogram(self.axes.subset(kept), contents.ravel())

  def means(self) -> np.ndarray :
    """Returns the mean along each axis, using bin centres weighted by bin contents
    """
    integral = self.integral()
    if integral == 0 : raise NormalisationError('Cannot compute the means of a histogram with zero integral.')
    centres = self.axes.all_bin_values('centres')
    return self.contents.dot(centres)/integral

  def variances(self) -> np.ndarray :
    """Returns the variance along each axis, using bin centres weighted by bin contents
    """
    integral = self.integral()
    if integral == 0 : raise NormalisationError('Cannot compute the variances of a histogram with zero integral.')
    centres = self.axes.all_bin_values('centres')
    means = self.contents.dot(centres)/integral
    return self.contents.dot((centres - means)**2)/integral

  def __str__(self) -> str :
    return 'Histogram ' + self.string_repr(verbosity = 1)

  def string_repr(self, verbosity : int = 1, pre_indent : str = '', indent : str = '   ') -> str :
    rep = '%s%d bins, integral = %g' % (pre_indent, self.nbins(), self.integral())
    if verbosity >= 1 : rep += '\n' + self.axes.string_repr(verbosity, pre_indent + indent, indent)
    if verbosity >= 2 : rep += '\n%scontents = %s' % (pre_indent + indent, str(self.contents))
    return rep

  def load_dict(self, sdict : dict) -> 'Histogram' :
    """Load object information from a dictionary of markup data

      Args:
        sdict: a dictionary containing markup data

      Returns:
        self
    """
    self.set_axes(AxisCollection().load_dict(sdict))
    contents = self.load_field('contents', sdict, None, np.ndarray)
    if contents is not None : self.set_bin_contents(contents)
    return self

  def fill_dict(self, sdict : dict) :
    self.axes.fill_dict(sdict)
    sdict['contents'] = self.unnumpy(self.contents)
