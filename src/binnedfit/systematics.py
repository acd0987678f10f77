"""Module containing the systematics, which modify binned PDFs through
bin-to-bin transition matrices (see :class:`binnedfit.mapping.PdfMapping`):

  * :class:`Systematic` : the common base class. It handles the geometry
    shared by all systematics: a systematic acts on a subset of the PDF
    observables, so its transition matrix is first computed on the reduced
    binning of these observables and then expanded to the full binning.

  * :class:`Convolution` : smearing by a kernel PDF (e.g. a detector
    resolution function).

  * :class:`Scale` : multiplication of one observable by a factor.

  * :class:`Shift` : translation of one observable by an offset.

  * :class:`SystematicManager` : an ordered list of systematics, sharing a
    single flat parameter vector.

Two bins of the full binning are *compatible* if they have the same index
along every axis that the systematic does not act on; only compatible bins
can receive a nonzero transition probability. The compatibility groups
depend only on the binning, and are cached until the axes or data
representations are changed.
"""

from .base import Serializable
from .axes import AxisCollection, PdfAxis
from .data import DataRepresentation
from .mapping import PdfMapping
from .pdfs import BinnedPdf, IntegrablePdf
from .exceptions import DimensionError, RepresentationError, InitialisationError, ParameterError, \
                        InvalidSystematicParameter, WrongNumberOfParameters
from abc import abstractmethod
import numpy as np


# -------------------------------------------------------------------------
class Systematic(Serializable) :
  """Base class for systematics

  Derived classes provide the parameter handling and :meth:`sub_matrix`,
  the transition matrix over the reduced binning.

  Attributes:
     name (str) : the systematic name
     data_rep (DataRepresentation) : the observables the systematic acts on
     pdf_data_rep (DataRepresentation) : the observables of the PDFs it is applied to
     mapping (PdfMapping) : the transition matrix over the full binning
     sys_axes (AxisCollection) : the reduced binning (cached)
     sys_bins (np.ndarray) : for each full bin, the corresponding reduced bin (cached)
     compatible_bins (list) : for each full bin, the array of compatible bins (cached)
     verbosity (int) : verbosity level
  """

  def __init__(self, name : str = '', data_rep : DataRepresentation = None, verbosity : int = 0) :
    self.name = name
    self.data_rep = data_rep if data_rep is None or isinstance(data_rep, DataRepresentation) else DataRepresentation(data_rep)
    self.pdf_data_rep = None
    self.mapping = PdfMapping()
    self.has_axes = False
    self.verbosity = verbosity
    self.invalidate()

  def invalidate(self) :
    """Mark the cached bin compatibility information as stale"""
    self.cache_dirty = True
    self.sys_axes = None
    self.sys_bins = None
    self.compatible_bins = None
    self.built_parameters = None

  def set_axes(self, axes : AxisCollection, pdf_data_rep : DataRepresentation = None) -> 'Systematic' :
    """Set the full binning the systematic operates in

      Args:
        axes         : the binning of the PDFs the systematic will be applied to
        pdf_data_rep : the observables of these PDFs (default: 0 to ndims - 1)

      Returns:
        self
    """
    self.mapping.set_axes(axes)
    self.has_axes = True
    if pdf_data_rep is not None or self.pdf_data_rep is None or self.pdf_data_rep.ndims() != axes.ndims() :
      self.set_pdf_data_rep(pdf_data_rep if pdf_data_rep is not None else DataRepresentation(list(range(axes.ndims()))))
    self.invalidate()
    return self

  def set_data_rep(self, data_rep : DataRepresentation) -> 'Systematic' :
    self.data_rep = data_rep if isinstance(data_rep, DataRepresentation) else DataRepresentation(data_rep)
    self.invalidate()
    return self

  def set_pdf_data_rep(self, data_rep : DataRepresentation) -> 'Systematic' :
    self.pdf_data_rep = data_rep if isinstance(data_rep, DataRepresentation) else DataRepresentation(data_rep)
    self.invalidate()
    return self

  def is_compatible(self, pdf : BinnedPdf) -> bool :
    """Check if the systematic acts on the observables of a PDF

      Args:
        pdf : the PDF

      Returns:
        True if all the observables of the systematic are present in the PDF
    """
    return self.data_rep is not None and self.data_rep.is_subset_of(pdf.data_rep)

  @abstractmethod
  def nparameters(self) -> int :
    pass

  def parameter_names(self) -> list :
    return [ '%s_%d' % (self.name, i) for i in range(self.nparameters()) ]

  @abstractmethod
  def get_parameters(self) -> np.ndarray :
    pass

  @abstractmethod
  def set_parameters(self, parameters) :
    pass

  def get_parameter(self, index : int) -> float :
    if index < 0 or index >= self.nparameters() :
      raise WrongNumberOfParameters('Parameter %d requested, but there are only %d.' % (index, self.nparameters()), source=self.name)
    return self.get_parameters()[index]

  def set_parameter(self, index : int, value : float) :
    if index < 0 or index >= self.nparameters() :
      raise WrongNumberOfParameters('Parameter %d requested, but there are only %d.' % (index, self.nparameters()), source=self.name)
    parameters = self.get_parameters()
    parameters[index] = value
    self.set_parameters(parameters)

  def check_ready(self) :
    if not self.has_axes or self.data_rep is None or self.data_rep.ndims() == 0 :
      raise InitialisationError('Tried to construct the systematic before setting its axes and data representation.', source=self.name)

  def cache_compatible_bins(self) :
    """Compute the reduced binning and the bin compatibility groups

      Each full bin is assigned the key formed by its indices along the
      axes the systematic does not act on. Bins with the same key are
      compatible with each other (including themselves). The (row, column)
      indices of all compatible pairs are also stored, since they are the
      non-zero pattern of the full transition matrix.
    """
    self.check_ready()
    axes = self.mapping.axes
    relative = self.data_rep.relative_indices(self.pdf_data_rep)
    others = [ dim for dim in range(axes.ndims()) if dim not in relative ]
    self.sys_axes = axes.subset(relative)
    indices = axes.all_indices()
    self.sys_bins = np.ravel_multi_index(tuple(indices[:, relative].T), self.sys_axes.shape())
    if len(others) > 0 :
      keys = np.ravel_multi_index(tuple(indices[:, others].T), tuple(axes.axis(dim).nbins() for dim in others))
    else :
      keys = np.zeros(axes.nbins(), dtype=int)
    order = np.argsort(keys, kind='stable')
    groups = np.split(order, np.flatnonzero(np.diff(keys[order])) + 1)
    self.compatible_bins = [ None ]*axes.nbins()
    rows, cols = [], []
    for group in groups :
      for i in group : self.compatible_bins[i] = group
      rows.append(np.repeat(group, group.size))
      cols.append(np.tile(group, group.size))
    self.compatible_rows = np.concatenate(rows)
    self.compatible_cols = np.concatenate(cols)
    self.cache_dirty = False
    if self.verbosity > 0 :
      print("Systematic '%s': cached %d compatibility groups of %d bins for %d full bins" % (self.name, len(groups), self.sys_axes.nbins(), axes.nbins()))

  def bins_compatible(self, bin1 : int, bin2 : int) -> bool :
    """Check if two full bins have the same indices along all axes outside the systematic
    """
    if self.cache_dirty : self.cache_compatible_bins()
    return bin2 in self.compatible_bins[bin1]

  @abstractmethod
  def sub_matrix(self) -> np.ndarray :
    """Compute the transition matrix over the reduced binning

      Returns:
        a dense array of shape (n, n), with `n = sys_axes.nbins()`, where
        element (dest, orig) is the transition probability from bin `orig`
        to bin `dest`.
    """
    pass

  def needs_construct(self) -> bool :
    return self.cache_dirty or self.built_parameters is None or not np.array_equal(self.built_parameters, self.get_parameters())

  def construct(self) -> PdfMapping :
    """Build the full transition matrix for the current parameter values

      Returns:
        the transition matrix
    """
    self.check_ready()
    if self.cache_dirty : self.cache_compatible_bins()
    sub = self.sub_matrix()
    values = sub[self.sys_bins[self.compatible_rows], self.sys_bins[self.compatible_cols]]
    self.mapping.set_components(self.compatible_rows, self.compatible_cols, values)
    self.built_parameters = self.get_parameters()
    if self.verbosity > 1 : print("Systematic '%s': built %s for parameters %s" % (self.name, str(self.mapping), str(self.built_parameters)))
    return self.mapping

  def apply(self, pdf : BinnedPdf) -> BinnedPdf :
    """Apply the systematic to a PDF

      Args:
        pdf : the PDF, which must have the binning and representation the systematic was set up with

      Returns:
        the modified PDF
    """
    if self.pdf_data_rep is None or pdf.data_rep != self.pdf_data_rep :
      raise RepresentationError("Systematic set up for observables %s cannot be applied to PDF '%s' over observables %s."
                                % (str(self.pdf_data_rep.indices) if self.pdf_data_rep is not None else '[]', pdf.name, str(pdf.data_rep.indices)), source=self.name)
    if self.needs_construct() : self.construct()
    return self.mapping.apply(pdf)

  def __str__(self) -> str :
    return '%s %s' % (self.__class__.__name__, self.string_repr(verbosity = 1))

  def string_repr(self, verbosity : int = 1, pre_indent : str = '', indent : str = '   ') -> str :
    rep = "%s'%s' on observables %s" % (pre_indent, self.name, str(self.data_rep.indices) if self.data_rep is not None else '[]')
    if verbosity >= 1 :
      rep += ', parameters : ' + ', '.join('%s = %g' % (name, value) for name, value in zip(self.parameter_names(), self.get_parameters()))
    return rep

  @classmethod
  def instantiate(cls, sdict : dict) -> 'Systematic' :
    """Create a systematic of the type specified in markup data

      Args:
        sdict : a dictionary containing markup data

      Returns:
        the new systematic
    """
    sys_type = cls.load_field('type', sdict, None, str)
    for sys_class in [ Convolution, Scale, Shift ] :
      if sys_type == sys_class.type_str : return sys_class().load_dict(sdict)
    raise KeyError("Unknown systematic type '%s'." % sys_type)

  def load_dict(self, sdict : dict) -> 'Systematic' :
    self.name = self.load_field('name', sdict, '', str)
    self.set_data_rep(self.load_field('data_rep', sdict, [ 0 ], list))
    return self

  def fill_dict(self, sdict : dict) :
    sdict['type'] = self.type_str
    sdict['name'] = self.name
    sdict['data_rep'] = self.data_rep.indices if self.data_rep is not None else []


# -------------------------------------------------------------------------
class Convolution(Systematic) :
  """Systematic smearing the PDF observables by a kernel PDF

  The transition probability from bin `orig` to bin `dest` is the
  integral of the kernel over the edges of `dest`, shifted by the centre
  of `orig`: the kernel is the PDF of the displacement between the true
  and the observed value.

  The systematic parameters are the kernel parameters.

  Attributes:
     kernel (IntegrablePdf) : the kernel PDF (owned copy)
  """

  type_str = 'convolution'

  def __init__(self, name : str = '', kernel : IntegrablePdf = None, data_rep : DataRepresentation = None, verbosity : int = 0) :
    """Initialize the convolution

      Args:
        name     : the systematic name
        kernel   : the kernel PDF, which is copied
        data_rep : the observables to smear, in the order of the kernel dimensions
        verbosity: verbosity level
    """
    super().__init__(name, data_rep, verbosity)
    self.kernel = None
    if kernel is not None : self.set_kernel(kernel)

  def set_kernel(self, kernel : IntegrablePdf) -> 'Convolution' :
    if not isinstance(kernel, IntegrablePdf) :
      raise InitialisationError('Convolution kernel must be an integrable PDF, got %s.' % kernel.__class__.__name__, source=self.name)
    self.kernel = kernel.clone()
    self.built_parameters = None
    return self

  def nparameters(self) -> int :
    return self.kernel.nparameters() if self.kernel is not None else 0

  def parameter_names(self) -> list :
    return [ '%s_%s' % (self.name, name) for name in self.kernel.parameter_names() ] if self.kernel is not None else []

  def get_parameters(self) -> np.ndarray :
    return self.kernel.get_parameters() if self.kernel is not None else np.array([])

  def set_parameters(self, parameters) :
    if self.kernel is None : raise InitialisationError('Tried to set parameters of a convolution without a kernel.', source=self.name)
    try :
      self.kernel.set_parameters(parameters)
    except ParameterError as inst :
      raise InvalidSystematicParameter('Could not set kernel parameters, invalid value : %s' % str(inst), source=self.name) from inst
    except DimensionError as inst :
      raise WrongNumberOfParameters('Could not set kernel parameters, wrong number of values : %s' % str(inst), source=self.name) from inst

  def get_parameter(self, index : int) -> float :
    if self.kernel is None : raise InitialisationError('Tried to access parameters of a convolution without a kernel.', source=self.name)
    try :
      return self.kernel.get_parameter(index)
    except DimensionError as inst :
      raise WrongNumberOfParameters('Tried to access a parameter the kernel does not have : %s' % str(inst), source=self.name) from inst

  def set_parameter(self, index : int, value : float) :
    if self.kernel is None : raise InitialisationError('Tried to set parameters of a convolution without a kernel.', source=self.name)
    try :
      self.kernel.set_parameter(index, value)
    except ParameterError as inst :
      raise InvalidSystematicParameter('Could not set kernel parameter %d, invalid value : %s' % (index, str(inst)), source=self.name) from inst
    except DimensionError as inst :
      raise WrongNumberOfParameters('Tried to access a parameter the kernel does not have : %s' % str(inst), source=self.name) from inst

  def check_ready(self) :
    if self.kernel is None or not self.has_axes or self.data_rep is None or self.data_rep.ndims() == 0 :
      raise InitialisationError('Tried to construct the convolution without axes and kernel PDF.', source=self.name)

  def sub_matrix(self) -> np.ndarray :
    if self.kernel.ndims() != self.sys_axes.ndims() :
      raise DimensionError('Kernel has %d dimensions, but the convolution acts on %d observables.' % (self.kernel.ndims(), self.sys_axes.ndims()), source=self.name)
    centres = self.sys_axes.all_bin_values('centres')
    low_edges = self.sys_axes.all_bin_values('low_edges')
    high_edges = self.sys_axes.all_bin_values('high_edges')
    # [dest, orig, dim]
    return self.kernel.integral(low_edges[:, None, :] - centres[None, :, :], high_edges[:, None, :] - centres[None, :, :])

  def load_dict(self, sdict : dict) -> 'Convolution' :
    super().load_dict(sdict)
    if not 'kernel' in sdict : raise KeyError("Convolution '%s' must define a 'kernel'." % self.name)
    self.set_kernel(IntegrablePdf.instantiate(sdict['kernel']))
    return self

  def fill_dict(self, sdict : dict) :
    super().fill_dict(sdict)
    sdict['kernel'] = self.kernel.dump_dict() if self.kernel is not None else None


# -------------------------------------------------------------------------
def transform_matrix(axis : PdfAxis, new_lows : np.ndarray, new_highs : np.ndarray) -> np.ndarray :
  """Transition matrix for a transformation of one observable

  The contents of each bin are taken as uniform within the bin, and the
  transformed bin `[new_lows[i], new_highs[i])` is spread over the
  destination bins in proportion to the overlaps. Content moved below or
  above the axis range goes to the first or last bin.

    Args:
      axis      : the binning of the observable
      new_lows  : transformed low edges of each bin
      new_highs : transformed high edges of each bin

    Returns:
      the (dest, orig) transition matrix
  """
  dest_lows = np.array(axis.low_edges)
  dest_highs = np.array(axis.high_edges)
  dest_lows[0] = -np.inf
  dest_highs[-1] = np.inf
  overlaps = np.minimum(new_highs[None, :], dest_highs[:, None]) - np.maximum(new_lows[None, :], dest_lows[:, None])
  return np.clip(overlaps, 0, None)/(new_highs - new_lows)[None, :]


# -------------------------------------------------------------------------
class Scale(Systematic) :
  """Systematic multiplying one observable by a positive factor

  Attributes:
     factor (float) : the scale factor, the single parameter of the systematic
  """

  type_str = 'scale'

  def __init__(self, name : str = '', data_rep : DataRepresentation = None, factor : float = 1, verbosity : int = 0) :
    super().__init__(name, data_rep, verbosity)
    self.factor = 1
    self.set_parameters([ factor ])

  def nparameters(self) -> int :
    return 1

  def parameter_names(self) -> list :
    return [ self.name ]

  def get_parameters(self) -> np.ndarray :
    return np.array([ self.factor ])

  def set_parameters(self, parameters) :
    parameters = np.atleast_1d(np.array(parameters, dtype=float))
    if parameters.size != 1 :
      raise WrongNumberOfParameters('Scale takes a single parameter, got %d.' % parameters.size, source=self.name)
    if not parameters[0] > 0 :
      raise InvalidSystematicParameter('Scale factor must be positive, got %g.' % parameters[0], source=self.name)
    self.factor = parameters[0]

  def sub_matrix(self) -> np.ndarray :
    if self.sys_axes.ndims() != 1 :
      raise RepresentationError('Scale acts on a single observable, got %d.' % self.sys_axes.ndims(), source=self.name)
    axis = self.sys_axes.axis(0)
    return transform_matrix(axis, axis.low_edges*self.factor, axis.high_edges*self.factor)

  def load_dict(self, sdict : dict) -> 'Scale' :
    super().load_dict(sdict)
    self.set_parameters([ self.load_field('factor', sdict, 1, [int, float]) ])
    return self

  def fill_dict(self, sdict : dict) :
    super().fill_dict(sdict)
    sdict['factor'] = self.unnumpy(self.factor)


# -------------------------------------------------------------------------
class Shift(Systematic) :
  """Systematic adding an offset to one observable

  Attributes:
     offset (float) : the offset, the single parameter of the systematic
  """

  type_str = 'shift'

  def __init__(self, name : str = '', data_rep : DataRepresentation = None, offset : float = 0, verbosity : int = 0) :
    super().__init__(name, data_rep, verbosity)
    self.offset = 0
    self.set_parameters([ offset ])

  def nparameters(self) -> int :
    return 1

  def parameter_names(self) -> list :
    return [ self.name ]

  def get_parameters(self) -> np.ndarray :
    return np.array([ self.offset ])

  def set_parameters(self, parameters) :
    parameters = np.atleast_1d(np.array(parameters, dtype=float))
    if parameters.size != 1 :
      raise WrongNumberOfParameters('Shift takes a single parameter, got %d.' % parameters.size, source=self.name)
    if not np.isfinite(parameters[0]) :
      raise InvalidSystematicParameter('Shift offset must be finite, got %g.' % parameters[0], source=self.name)
    self.offset = parameters[0]

  def sub_matrix(self) -> np.ndarray :
    if self.sys_axes.ndims() != 1 :
      raise RepresentationError('Shift acts on a single observable, got %d.' % self.sys_axes.ndims(), source=self.name)
    axis = self.sys_axes.axis(0)
    return transform_matrix(axis, axis.low_edges + self.offset, axis.high_edges + self.offset)

  def load_dict(self, sdict : dict) -> 'Shift' :
    super().load_dict(sdict)
    self.set_parameters([ self.load_field('offset', sdict, 0, [int, float]) ])
    return self

  def fill_dict(self, sdict : dict) :
    super().fill_dict(sdict)
    sdict['offset'] = self.unnumpy(self.offset)


# -------------------------------------------------------------------------
class SystematicManager :
  """Class holding an ordered list of systematics

  The parameters of all systematics are concatenated, in the order
  the systematics were added, into a single flat vector.

  Attributes:
     systematics (list) : the :class:`Systematic` objects
     verbosity (int) : verbosity level
  """

  def __init__(self, systematics : list = None, verbosity : int = 0) :
    self.systematics = []
    self.verbosity = verbosity
    if systematics is not None :
      for systematic in systematics : self.add(systematic)

  def add(self, systematic : Systematic) -> 'SystematicManager' :
    if any(sys.name == systematic.name for sys in self.systematics) :
      raise ValueError("A systematic named '%s' is already defined." % systematic.name)
    self.systematics.append(systematic)
    return self

  def nsystematics(self) -> int :
    return len(self.systematics)

  def systematic(self, index : int) -> Systematic :
    if index < 0 or index >= len(self.systematics) :
      raise DimensionError('Systematic %d requested, but there are only %d.' % (index, len(self.systematics)))
    return self.systematics[index]

  def parameter_counts(self) -> list :
    return [ sys.nparameters() for sys in self.systematics ]

  def nparameters(self) -> int :
    return sum(self.parameter_counts())

  def parameter_names(self) -> list :
    return [ name for sys in self.systematics for name in sys.parameter_names() ]

  def parameter_slices(self) -> list :
    """Returns the slice of the flat parameter vector belonging to each systematic
    """
    bounds = np.cumsum([ 0 ] + self.parameter_counts())
    return [ slice(int(lo), int(hi)) for lo, hi in zip(bounds[:-1], bounds[1:]) ]

  def get_parameters(self) -> np.ndarray :
    if len(self.systematics) == 0 : return np.array([])
    return np.concatenate([ sys.get_parameters() for sys in self.systematics ])

  def set_parameters(self, parameters) :
    """Dispatch a flat parameter vector to the systematics

      Args:
        parameters : the parameters of all systematics, in order
    """
    parameters = np.atleast_1d(np.array(parameters, dtype=float))
    if parameters.size != self.nparameters() :
      raise WrongNumberOfParameters('Systematics take %d parameters in total, got %d.' % (self.nparameters(), parameters.size), source='SystematicManager')
    for sys, pars in zip(self.systematics, self.parameter_slices()) :
      sys.set_parameters(parameters[pars])

  def construct(self) :
    """Rebuild the transition matrices of the systematics whose parameters changed
    """
    for sys in self.systematics :
      if sys.needs_construct() : sys.construct()

  def apply_systematics(self, pdf : BinnedPdf) -> BinnedPdf :
    """Apply all compatible systematics to a PDF, in the order they were added

      Args:
        pdf : the input PDF (not modified)

      Returns:
        the modified PDF
    """
    result = pdf
    for sys in self.systematics :
      if not sys.is_compatible(pdf) :
        if self.verbosity > 2 : print("Systematic '%s' does not apply to PDF '%s'" % (sys.name, pdf.name))
        continue
      result = sys.apply(result)
    return result if result is not pdf else pdf.clone()

  def total_mapping(self, pdf : BinnedPdf) -> PdfMapping :
    """Returns the combined transition matrix of all the systematics compatible with a PDF

      Args:
        pdf : the PDF defining which systematics apply

      Returns:
        the product of the transition matrices, in order of application
    """
    total = PdfMapping.identity(pdf.axes)
    for sys in self.systematics :
      if not sys.is_compatible(pdf) : continue
      if sys.needs_construct() : sys.construct()
      total = sys.mapping.compose(total)
    return total

  def __str__(self) -> str :
    return 'SystematicManager with %d systematics:\n' % len(self.systematics) + '\n'.join('  o ' + str(sys) for sys in self.systematics)
