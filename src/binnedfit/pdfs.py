"""Module containing the PDF classes:

  * :class:`BinnedPdf` : a histogram together with the data representation
    it is defined in. This is the per-component model used by the
    likelihood.

  * :class:`IntegrablePdf` : the interface of the continuous PDFs used as
    kernels by systematics (see :class:`binnedfit.systematics.Convolution`),
    and :class:`Gaussian`, a multi-dimensional Gaussian with independent
    dimensions.
"""

from .base import Serializable
from .axes import AxisCollection
from .histogram import Histogram
from .data import DataRepresentation, EventData, DataSet
from .exceptions import DimensionError, RepresentationError, ParameterError
from abc import abstractmethod
import numpy as np
import scipy.stats
import copy


# -------------------------------------------------------------------------
class BinnedPdf(Serializable) :
  """Class representing a binned PDF

  Wraps a :class:`Histogram`, adding the :class:`DataRepresentation`
  giving which observables of an event correspond to the histogram axes.
  Events with more observables than the PDF dimensions are projected onto
  this representation before being filled.

  Attributes:
     name (str) : the PDF name
     histogram (Histogram) : the bin contents and binning
     data_rep (DataRepresentation) : observables corresponding to the histogram axes
  """

  def __init__(self, axes : AxisCollection = None, data_rep : DataRepresentation = None,
               contents : np.ndarray = None, name : str = '') :
    """Initialize the PDF

      Args:
        axes     : the binning
        data_rep : the observables corresponding to each axis (default:
                   observables 0 to ndims - 1)
        contents : initial bin contents (default: all zero)
        name     : the PDF name
    """
    self.name = name
    self.histogram = Histogram(axes, contents)
    self.set_data_rep(data_rep)

  @classmethod
  def from_histogram(cls, histogram : Histogram, data_rep : DataRepresentation = None, name : str = '') -> 'BinnedPdf' :
    return BinnedPdf(histogram.axes.clone(), data_rep, histogram.contents, name)

  def set_data_rep(self, data_rep : DataRepresentation) -> 'BinnedPdf' :
    if data_rep is None : data_rep = DataRepresentation(list(range(self.ndims())))
    if not isinstance(data_rep, DataRepresentation) : data_rep = DataRepresentation(data_rep)
    if data_rep.ndims() != self.ndims() :
      raise RepresentationError("Representation %s has %d observables, but PDF '%s' has %d dimensions." % (str(data_rep.indices), data_rep.ndims(), self.name, self.ndims()))
    self.data_rep = data_rep
    return self

  def clone(self, name : str = None) -> 'BinnedPdf' :
    """Return a copy of the PDF, with its own contents array
    """
    return BinnedPdf(self.axes.clone(), DataRepresentation(self.data_rep.indices), self.histogram.contents,
                     name if name is not None else self.name)

  @property
  def axes(self) -> AxisCollection :
    return self.histogram.axes

  @property
  def contents(self) -> np.ndarray :
    return self.histogram.contents

  def nbins(self) -> int :
    return self.histogram.nbins()

  def ndims(self) -> int :
    return self.histogram.ndims()

  def _project(self, event : EventData) -> np.ndarray :
    try :
      values = event.to_representation(self.data_rep)
    except DimensionError as inst :
      raise RepresentationError("Event is incompatible with representation of PDF '%s' : %s" % (self.name, str(inst)), source='BinnedPdf') from inst
    if len(values) != self.ndims() :
      raise RepresentationError("Event projection has %d values, but PDF '%s' has %d dimensions." % (len(values), self.name, self.ndims()), source='BinnedPdf')
    return values

  def fill(self, values, weight : float = 1) :
    """Fill the PDF

      Args:
        values : an :class:`EventData`, projected onto the PDF representation,
                 or directly the coordinates of a point in the PDF axes
        weight : the weight to add
    """
    if isinstance(values, EventData) : values = self._project(values)
    self.histogram.fill(values, weight)

  def fill_dataset(self, dataset : DataSet, cuts : 'CutCollection' = None) -> int :
    """Fill the PDF with all the events of a data set

      Args:
        dataset : the events
        cuts    : if provided, only events passing the cuts are filled

      Returns:
        the number of events filled
    """
    if (cuts is None or len(cuts) == 0) and hasattr(dataset, 'to_representation') :
      try :
        values = dataset.to_representation(self.data_rep)
      except DimensionError as inst :
        raise RepresentationError("Data set is incompatible with representation of PDF '%s' : %s" % (self.name, str(inst)), source='BinnedPdf') from inst
      self.histogram.fill_array(values)
      return values.shape[0]
    nfilled = 0
    for event in dataset :
      if cuts is not None and not cuts.passes_cuts(event) : continue
      self.fill(event)
      nfilled += 1
    return nfilled

  def find_bin(self, values) -> int :
    if isinstance(values, EventData) : values = self._project(values)
    return self.histogram.find_bin(values)

  def __call__(self, values) -> float :
    return self.histogram.contents[self.find_bin(values)]

  def get_bin_content(self, bin_id : int) -> float :
    return self.histogram.get_bin_content(bin_id)

  def set_bin_content(self, bin_id : int, content : float) :
    self.histogram.set_bin_content(bin_id, content)

  def add_bin_content(self, bin_id : int, content : float) :
    self.histogram.add_bin_content(bin_id, content)

  def get_bin_contents(self) -> np.ndarray :
    return self.histogram.get_bin_contents()

  def set_bin_contents(self, contents : np.ndarray) -> 'BinnedPdf' :
    self.histogram.set_bin_contents(contents)
    return self

  def empty(self) :
    self.histogram.empty()

  def integral(self) -> float :
    return self.histogram.integral()

  def normalise(self) -> 'BinnedPdf' :
    self.histogram.normalise()
    return self

  def flatten_indices(self, indices : list) -> int :
    return self.histogram.flatten_indices(indices)

  def unpack_indices(self, bin_id : int) -> list :
    return self.histogram.unpack_indices(bin_id)

  def means(self) -> np.ndarray :
    return self.histogram.means()

  def variances(self) -> np.ndarray :
    return self.histogram.variances()

  def marginalise(self, indices) -> 'BinnedPdf' :
    """Project the PDF onto a subset of its observables

      Args:
        indices : the observable indices to keep (a single int is accepted).
                  These refer to observables, not to the PDF axes.

      Returns:
        the lower-dimensional PDF, with the kept observables in the same
        relative order as in this PDF
    """
    relative = sorted(DataRepresentation(indices).relative_indices(self.data_rep))
    return BinnedPdf.from_histogram(self.histogram.marginalise(relative),
                                    DataRepresentation([ self.data_rep.indices[r] for r in relative ]), self.name)

  def __str__(self) -> str :
    return 'BinnedPdf ' + self.string_repr(verbosity = 1)

  def string_repr(self, verbosity : int = 1, pre_indent : str = '', indent : str = '   ') -> str :
    rep = "%s'%s' over observables %s" % (pre_indent, self.name, str(self.data_rep.indices))
    if verbosity >= 1 : rep += '\n' + self.histogram.string_repr(verbosity, pre_indent + indent, indent)
    return rep

  def load_dict(self, sdict : dict) -> 'BinnedPdf' :
    """Load object information from a dictionary of markup data

      Args:
        sdict: a dictionary containing markup data

      Returns:
        self
    """
    self.name = self.load_field('name', sdict, '', str)
    self.histogram = Histogram().load_dict(sdict)
    self.set_data_rep(self.load_field('data_rep', sdict, None, list))
    return self

  def fill_dict(self, sdict : dict) :
    sdict['name'] = self.name
    sdict['data_rep'] = self.data_rep.indices
    self.histogram.fill_dict(sdict)


# -------------------------------------------------------------------------
class IntegrablePdf(Serializable) :
  """Interface of continuous PDFs that can be integrated over boxes

  Derived classes implement :meth:`integral` and store their
  parameters as a flat array, accessed through the parameter methods
  below.

  Attributes:
     parameters (np.ndarray) : the parameter values
  """

  @abstractmethod
  def ndims(self) -> int :
    pass

  @abstractmethod
  def integral(self, low_edges : np.ndarray, high_edges : np.ndarray) :
    """Integrate the PDF over a box

      Arrays of boxes can be integrated in one call, with the
      last array dimension running over PDF dimensions.

      Args:
        low_edges  : low edges of the box, shape (..., ndims)
        high_edges : high edges of the box, shape (..., ndims)

      Returns:
        the integral (a float, or an array of shape (...))
    """
    pass

  def check_parameters(self, parameters : np.ndarray) :
    pass

  def nparameters(self) -> int :
    return self.parameters.size

  def parameter_names(self) -> list :
    return [ 'p%d' % i for i in range(self.nparameters()) ]

  def get_parameters(self) -> np.ndarray :
    return np.array(self.parameters)

  def set_parameters(self, parameters) :
    """Set all the parameter values

      Args:
        parameters : the new values, one per parameter
    """
    parameters = np.array(parameters, dtype=float)
    if parameters.shape != self.parameters.shape :
      raise DimensionError('%s has %d parameters, got %d values.' % (self.__class__.__name__, self.nparameters(), parameters.size))
    self.check_parameters(parameters)
    self.parameters = parameters

  def get_parameter(self, index : int) -> float :
    if index < 0 or index >= self.nparameters() :
      raise DimensionError('Parameter %d requested from %s with %d parameters.' % (index, self.__class__.__name__, self.nparameters()))
    return self.parameters[index]

  def set_parameter(self, index : int, value : float) :
    if index < 0 or index >= self.nparameters() :
      raise DimensionError('Parameter %d requested from %s with %d parameters.' % (index, self.__class__.__name__, self.nparameters()))
    parameters = np.array(self.parameters)
    parameters[index] = value
    self.check_parameters(parameters)
    self.parameters = parameters

  def clone(self) -> 'IntegrablePdf' :
    return copy.deepcopy(self)

  @classmethod
  def instantiate(cls, sdict : dict) -> 'IntegrablePdf' :
    """Create a PDF of the type specified in markup data

      Args:
        sdict : a dictionary containing markup data

      Returns:
        the new PDF
    """
    pdf_type = cls.load_field('type', sdict, Gaussian.type_str, str)
    if pdf_type == Gaussian.type_str : return Gaussian().load_dict(sdict)
    raise KeyError("Unknown kernel PDF type '%s'." % pdf_type)


# -------------------------------------------------------------------------
class Gaussian(IntegrablePdf) :
  """Multi-dimensional Gaussian with independent dimensions

  The parameters are the means of all the dimensions, followed by their
  standard deviations.
  """

  type_str = 'gaussian'

  def __init__(self, means = 0, stdevs = 1) :
    """Initialize the Gaussian

      Args:
        means  : the means, one per dimension (a scalar for 1D)
        stdevs : the standard deviations, one per dimension (a scalar for 1D)
    """
    means = np.atleast_1d(np.array(means, dtype=float))
    stdevs = np.atleast_1d(np.array(stdevs, dtype=float))
    if means.shape != stdevs.shape :
      raise DimensionError('Gaussian needs as many means as standard deviations, got %d and %d.' % (means.size, stdevs.size))
    parameters = np.concatenate([ means, stdevs ])
    self.check_parameters(parameters)
    self.parameters = parameters

  def ndims(self) -> int :
    return self.parameters.size // 2

  @property
  def means(self) -> np.ndarray :
    return self.parameters[:self.ndims()]

  @property
  def stdevs(self) -> np.ndarray :
    return self.parameters[self.ndims():]

  def parameter_names(self) -> list :
    return [ 'mean_%d' % i for i in range(self.ndims()) ] + [ 'stdev_%d' % i for i in range(self.ndims()) ]

  def check_parameters(self, parameters : np.ndarray) :
    stdevs = parameters[parameters.size // 2:]
    if np.any(~(stdevs > 0)) :
      raise ParameterError('Gaussian standard deviations must be positive, got %s.' % str(stdevs))

  def __call__(self, values) -> float :
    return np.prod(scipy.stats.norm.pdf(values, loc=self.means, scale=self.stdevs), axis=-1)

  def integral(self, low_edges : np.ndarray, high_edges : np.ndarray) :
    low_edges = np.asarray(low_edges, dtype=float)
    high_edges = np.asarray(high_edges, dtype=float)
    if low_edges.shape[-1:] != (self.ndims(),) or high_edges.shape != low_edges.shape :
      raise DimensionError('Cannot integrate a %d-dimensional Gaussian over boxes of shape %s and %s.' % (self.ndims(), str(low_edges.shape), str(high_edges.shape)))
    probs = scipy.stats.norm.cdf(high_edges, loc=self.means, scale=self.stdevs) - scipy.stats.norm.cdf(low_edges, loc=self.means, scale=self.stdevs)
    return np.prod(probs, axis=-1)

  def __str__(self) -> str :
    return 'Gaussian(means = %s, stdevs = %s)' % (str(self.means), str(self.stdevs))

  def load_dict(self, sdict : dict) -> 'Gaussian' :
    self.__init__(self.load_field('means', sdict, 0, [int, float, list]), self.load_field('stdevs', sdict, 1, [int, float, list]))
    return self

  def fill_dict(self, sdict : dict) :
    sdict['type'] = Gaussian.type_str
    sdict['means'] = self.unnumpy(self.means)
    sdict['stdevs'] = self.unnumpy(self.stdevs)
