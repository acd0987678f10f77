"""Module containing the :class:`PdfShrinker` class, which restricts
histograms and PDFs to a region of interest by removing a number of bins
(the *buffer*) at the low and high ends of some axes.

The removed bins can either be discarded, or added to the new first and
last bins of the axis, which then act as underflow and overflow bins.
"""

from .base import Serializable
from .axes import AxisCollection, PdfAxis
from .histogram import Histogram
from .pdfs import BinnedPdf
from .data import DataRepresentation
from .exceptions import DimensionError
import numpy as np


# -------------------------------------------------------------------------
class PdfShrinker(Serializable) :
  """Class removing buffer bins from histograms and PDFs

  Attributes:
     buffers (dict) : the (lower, upper) number of bins to remove, indexed by axis index
     using_overflows (bool) : if True, the removed contents are added to the
                              new first/last bins; otherwise they are discarded
  """

  def __init__(self, using_overflows : bool = False) :
    self.buffers = {}
    self.using_overflows = using_overflows

  def set_buffer(self, dim : int, lower : int, upper : int) -> 'PdfShrinker' :
    """Set the buffer of one axis

      Args:
        dim   : the axis index
        lower : number of bins to remove at the low end
        upper : number of bins to remove at the high end

      Returns:
        self
    """
    if dim < 0 : raise DimensionError('Invalid axis index %d for a buffer.' % dim)
    if lower < 0 or upper < 0 : raise ValueError('Buffer sizes must be non-negative, got (%d, %d).' % (lower, upper))
    self.buffers[int(dim)] = (int(lower), int(upper))
    return self

  def get_buffer(self, dim : int) -> tuple :
    """Returns the (lower, upper) buffer of an axis, (0, 0) if none is set
    """
    if dim < 0 : raise DimensionError('Invalid axis index %d for a buffer.' % dim)
    return self.buffers.get(dim, (0, 0))

  def get_buffers(self) -> dict :
    return dict(self.buffers)

  def set_using_overflows(self, using_overflows : bool) -> 'PdfShrinker' :
    self.using_overflows = using_overflows
    return self

  def get_using_overflows(self) -> bool :
    return self.using_overflows

  def active(self) -> bool :
    return any(lower > 0 or upper > 0 for lower, upper in self.buffers.values())

  def shrink_axis(self, axis : PdfAxis, lower : int, upper : int) -> PdfAxis :
    """Returns a new axis without the buffer bins

      Args:
        axis  : the axis to shrink
        lower : number of bins to remove at the low end
        upper : number of bins to remove at the high end

      Returns:
        the shrunk axis
    """
    if lower + upper >= axis.nbins() :
      raise DimensionError("Cannot remove %d + %d bins from axis '%s' with only %d bins." % (lower, upper, axis.name, axis.nbins()))
    return axis.sub_axis(lower, axis.nbins() - upper - 1)

  def shrink_histogram(self, histogram : Histogram) -> Histogram :
    """Returns a new histogram without the buffer bins

      Args:
        histogram : the histogram to shrink

      Returns:
        the shrunk histogram
    """
    for dim in self.buffers :
      if dim >= histogram.ndims() :
        raise DimensionError('Buffer set for axis %d, but the histogram only has %d axes.' % (dim, histogram.ndims()))
    if not self.active() : return histogram.clone()
    contents = histogram.contents.reshape(histogram.axes.shape())
    axes = []
    for dim, axis in enumerate(histogram.axes.axes) :
      lower, upper = self.buffers.get(dim, (0, 0))
      axes.append(self.shrink_axis(axis, lower, upper))
      if lower == 0 and upper == 0 : continue
      moved = np.moveaxis(contents, dim, 0)
      kept = moved[lower:axis.nbins() - upper].copy()
      if self.using_overflows :
        kept[0] += moved[:lower].sum(axis=0)
        kept[-1] += moved[axis.nbins() - upper:].sum(axis=0)
      contents = np.moveaxis(kept, 0, dim)
    return Histogram(AxisCollection(axes), contents.ravel())

  def shrink_pdf(self, pdf : BinnedPdf) -> BinnedPdf :
    """Returns a new PDF without the buffer bins

      Args:
        pdf : the PDF to shrink

      Returns:
        the shrunk PDF, with the same data representation
    """
    return BinnedPdf.from_histogram(self.shrink_histogram(pdf.histogram), DataRepresentation(pdf.data_rep.indices), pdf.name)

  def __str__(self) -> str :
    return 'PdfShrinker ' + self.string_repr(verbosity = 1)

  def string_repr(self, verbosity : int = 1, pre_indent : str = '', indent : str = '   ') -> str :
    rep = '%sbuffers %s, %s' % (pre_indent, ', '.join('axis %d : (%d, %d)' % (dim, lower, upper) for dim, (lower, upper) in sorted(self.buffers.items())) or 'none',
                                'as overflows' if self.using_overflows else 'discarded')
    return rep

  def load_dict(self, sdict : dict) -> 'PdfShrinker' :
    """Load object information from a dictionary of markup data

      Args:
        sdict: a dictionary containing markup data

      Returns:
        self
    """
    self.buffers = {}
    for buffer in self.load_field('buffers', sdict, [], list) :
      self.set_buffer(buffer['dim'], buffer.get('lower', 0), buffer.get('upper', 0))
    self.using_overflows = self.load_field('using_overflows', sdict, False, bool)
    return self

  def fill_dict(self, sdict : dict) :
    sdict['buffers'] = [ { 'dim' : dim, 'lower' : lower, 'upper' : upper } for dim, (lower, upper) in sorted(self.buffers.items()) ]
    sdict['using_overflows'] = self.using_overflows
