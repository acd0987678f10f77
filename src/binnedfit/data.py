"""Module containing the classes describing event data:

  * :class:`DataRepresentation` : the list of observables a PDF or a
    systematic is defined in, as indices into the full set of observables.

  * :class:`EventData` : the observable values of a single event.

  * :class:`DataSet` : the interface to a collection of events, and
    :class:`ArrayDataSet`, an implementation storing them in a numpy array.
"""

from .exceptions import DimensionError, RepresentationError
from abc import abstractmethod
import numpy as np


# -------------------------------------------------------------------------
class DataRepresentation :
  """Class listing the observables a PDF or systematic operates on

  Attributes:
     indices (list) : indices of the observables, in the order of the
                      PDF (or systematic) dimensions
  """

  def __init__(self, indices = None) :
    """Initialize the representation

      Args:
        indices : observable indices (a single int is accepted)
    """
    if indices is None : indices = []
    if isinstance(indices, (int, np.integer)) : indices = [ indices ]
    self.indices = [ int(index) for index in indices ]
    if len(set(self.indices)) != len(self.indices) :
      raise RepresentationError('Repeated observable index in representation %s.' % str(self.indices))

  def ndims(self) -> int :
    return len(self.indices)

  def relative_indices(self, other : 'DataRepresentation') -> list :
    """Locate the observables of this representation within another one

      Args:
        other : the representation to look into

      Returns:
        for each observable of this representation, its position in `other`
    """
    try :
      return [ other.indices.index(index) for index in self.indices ]
    except ValueError as inst :
      raise RepresentationError('Representation %s is not contained in representation %s.' % (str(self.indices), str(other.indices))) from inst

  def is_subset_of(self, other : 'DataRepresentation') -> bool :
    return all(index in other.indices for index in self.indices)

  def __eq__(self, other) -> bool :
    if not isinstance(other, DataRepresentation) : return NotImplemented
    return self.indices == other.indices

  def __str__(self) -> str :
    return 'DataRepresentation %s' % str(self.indices)


# -------------------------------------------------------------------------
class EventData :
  """Class holding the observable values of a single event

  Attributes:
     values (np.ndarray) : the observable values
     names (list) : optional observable names
  """

  def __init__(self, values, names : list = None) :
    self.values = np.array(values, dtype=float)
    self.names = names

  def ndims(self) -> int :
    return self.values.size

  def get_datum(self, index : int) -> float :
    """Access the value of one observable

      Args:
        index : the observable index

      Returns:
        the observable value
    """
    if index < 0 or index >= self.values.size :
      raise DimensionError('Observable %d requested from an event with %d observables.' % (index, self.values.size))
    return self.values[index]

  def to_representation(self, rep : DataRepresentation) -> np.ndarray :
    """Project the event onto a representation

      Args:
        rep : the representation

      Returns:
        the values of the observables of `rep`, in its order
    """
    for index in rep.indices :
      if index < 0 or index >= self.values.size :
        raise DimensionError('Observable %d requested from an event with %d observables.' % (index, self.values.size))
    return self.values[rep.indices]

  def __str__(self) -> str :
    if self.names is None : return 'Event %s' % str(self.values)
    return 'Event ' + ', '.join('%s = %g' % (name, value) for name, value in zip(self.names, self.values))


# -------------------------------------------------------------------------
class DataSet :
  """Interface to a collection of events
  """

  @abstractmethod
  def nentries(self) -> int :
    pass

  @abstractmethod
  def get_entry(self, index : int) -> EventData :
    pass

  def observable_names(self) -> list :
    return None

  def __iter__(self) :
    for i in range(self.nentries()) : yield self.get_entry(i)

  def __len__(self) -> int :
    return self.nentries()


# -------------------------------------------------------------------------
class ArrayDataSet(DataSet) :
  """Data set storing events as rows of a 2D numpy array

  Attributes:
     values (np.ndarray) : the events, with shape (nentries, nobservables)
     names (list) : optional observable names
  """

  def __init__(self, values = None, names : list = None) :
    """Initialize the data set

      Args:
        values : array-like of shape (nentries, nobservables)
        names  : observable names
    """
    self.values = np.zeros((0, len(names) if names is not None else 0)) if values is None else np.array(values, dtype=float)
    if self.values.ndim == 1 : self.values = self.values.reshape(-1, 1)
    if self.values.ndim != 2 : raise DimensionError('Data set values should be a 2D array, got shape %s.' % str(self.values.shape))
    if names is not None and len(names) != self.values.shape[1] :
      raise DimensionError('Got %d observable names for events with %d observables.' % (len(names), self.values.shape[1]))
    self.names = names

  def nentries(self) -> int :
    return self.values.shape[0]

  def nobservables(self) -> int :
    return self.values.shape[1]

  def observable_names(self) -> list :
    return self.names

  def get_entry(self, index : int) -> EventData :
    if index < 0 or index >= self.nentries() :
      raise DimensionError('Entry %d requested from a data set of %d entries.' % (index, self.nentries()))
    return EventData(self.values[index], self.names)

  def add_entry(self, event) -> 'ArrayDataSet' :
    values = event.values if isinstance(event, EventData) else np.array(event, dtype=float)
    if self.values.shape[0] > 0 and values.size != self.values.shape[1] :
      raise DimensionError('Cannot add an event with %d observables to a data set with %d.' % (values.size, self.values.shape[1]))
    self.values = np.vstack([ self.values.reshape(-1, values.size), values ])
    return self

  def to_representation(self, rep : DataRepresentation) -> np.ndarray :
    """Project all events onto a representation

      Args:
        rep : the representation

      Returns:
        an array of shape (nentries, rep.ndims())
    """
    for index in rep.indices :
      if index < 0 or index >= self.nobservables() :
        raise DimensionError('Observable %d requested from a data set with %d observables.' % (index, self.nobservables()))
    return self.values[:, rep.indices]
