"""Module containing the event selection cuts:

  * :class:`Cut` : the base class, defining the `passes_cut` interface.
  * :class:`BoxCut` : keeps events with an observable inside an open interval.
  * :class:`LineCut` : keeps events with an observable above or below a value.
  * :class:`CutCollection` : keeps events passing all of a list of cuts.

Cuts are applied to events before they are binned.
"""

from .base import Serializable
from .data import EventData
from .exceptions import DimensionError
from abc import abstractmethod


# -------------------------------------------------------------------------
class Cut(Serializable) :
  """Base class for cuts

  Attributes:
     name (str) : the cut name
     dim (int) : index of the observable the cut is applied to
  """

  def __init__(self, name : str = '', dim : int = 0) :
    self.name = name
    self.dim = dim

  def datum(self, event : EventData) -> float :
    try :
      return event.get_datum(self.dim)
    except DimensionError as inst :
      raise DimensionError("Cut '%s' requested observable %d, which is not present in the event." % (self.name, self.dim), source='Cut') from inst

  @abstractmethod
  def passes_cut(self, event : EventData) -> bool :
    pass

  @classmethod
  def instantiate(cls, sdict : dict) -> 'Cut' :
    """Create a cut of the type specified in markup data

      Args:
        sdict : a dictionary containing markup data

      Returns:
        the new cut
    """
    cut_type = cls.load_field('type', sdict, BoxCut.type_str, str)
    if cut_type == BoxCut.type_str : return BoxCut.from_dict(sdict)
    if cut_type == LineCut.type_str : return LineCut.from_dict(sdict)
    raise KeyError("Unknown cut type '%s'." % cut_type)


# -------------------------------------------------------------------------
class BoxCut(Cut) :
  """Keeps events with `lower < value < upper`
  """

  type_str = 'box'

  def __init__(self, name : str, dim : int, lower : float, upper : float) :
    super().__init__(name, dim)
    if lower is None or upper is None : raise ValueError("Box cut '%s' must define both lower and upper bounds." % name)
    self.lower = lower
    self.upper = upper

  def passes_cut(self, event : EventData) -> bool :
    value = self.datum(event)
    return self.lower < value < self.upper

  def __str__(self) -> str :
    return "BoxCut '%s' : %g < x[%d] < %g" % (self.name, self.lower, self.dim, self.upper)

  @classmethod
  def from_dict(cls, sdict : dict) -> 'BoxCut' :
    name = cls.load_field('name', sdict, '', str)
    lower = cls.load_field('lower', sdict, None, [int, float])
    upper = cls.load_field('upper', sdict, None, [int, float])
    if lower is None or upper is None : raise KeyError("Box cut '%s' must define both 'lower' and 'upper'." % name)
    return cls(name, cls.load_field('dim', sdict, 0, int), lower, upper)

  def load_dict(self, sdict : dict) -> 'BoxCut' :
    vars(self).update(vars(BoxCut.from_dict(sdict)))
    return self

  def fill_dict(self, sdict : dict) :
    sdict['type'] = BoxCut.type_str
    sdict['name'] = self.name
    sdict['dim'] = self.dim
    sdict['lower'] = self.lower
    sdict['upper'] = self.upper


# -------------------------------------------------------------------------
class LineCut(Cut) :
  """Keeps events with `value > threshold` (side 'lower') or `value < threshold` (side 'upper')

  The side names the side of the line that is cut away.
  """

  type_str = 'line'

  def __init__(self, name : str, dim : int, threshold : float, side : str = 'lower') :
    super().__init__(name, dim)
    if threshold is None : raise ValueError("Line cut '%s' must define a threshold." % name)
    if side not in [ 'lower', 'upper' ] : raise ValueError("Line cut side must be 'lower' or 'upper', got '%s'." % side)
    self.threshold = threshold
    self.side = side

  def passes_cut(self, event : EventData) -> bool :
    value = self.datum(event)
    return value > self.threshold if self.side == 'lower' else value < self.threshold

  def __str__(self) -> str :
    return "LineCut '%s' : x[%d] %s %g" % (self.name, self.dim, '>' if self.side == 'lower' else '<', self.threshold)

  @classmethod
  def from_dict(cls, sdict : dict) -> 'LineCut' :
    name = cls.load_field('name', sdict, '', str)
    threshold = cls.load_field('threshold', sdict, None, [int, float])
    if threshold is None : raise KeyError("Line cut '%s' must define a 'threshold'." % name)
    return cls(name, cls.load_field('dim', sdict, 0, int), threshold, cls.load_field('side', sdict, 'lower', str))

  def load_dict(self, sdict : dict) -> 'LineCut' :
    vars(self).update(vars(LineCut.from_dict(sdict)))
    return self

  def fill_dict(self, sdict : dict) :
    sdict['type'] = LineCut.type_str
    sdict['name'] = self.name
    sdict['dim'] = self.dim
    sdict['threshold'] = self.threshold
    sdict['side'] = self.side


# -------------------------------------------------------------------------
class CutCollection :
  """A list of cuts, all of which must be passed
  """

  def __init__(self, cuts : list = None) :
    self.cuts = list(cuts) if cuts is not None else []

  def add_cut(self, cut : Cut) -> 'CutCollection' :
    self.cuts.append(cut)
    return self

  def passes_cuts(self, event : EventData) -> bool :
    return all(cut.passes_cut(event) for cut in self.cuts)

  def __len__(self) -> int :
    return len(self.cuts)
