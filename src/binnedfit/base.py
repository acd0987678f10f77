"""Module containing the markup I/O base class for binnedfit objects

  * :class:`Serializable`, an abstract base class for objects that can be
    stored in, and restored from, JSON or YAML markup.

Derived classes only implement :meth:`Serializable.load_dict` and
:meth:`Serializable.fill_dict`, which translate between the object and a
plain dictionary; file and string I/O are handled here.
"""

import numpy as np
import json, yaml
from abc import abstractmethod

# -------------------------------------------------------------------------
class Serializable :
  """An abstract base class for objects that load from / save to markup

  The class implements

  * load() and save(), taking a file name,

  * load_markup() and dump_markup(), taking a markup string,

  all in terms of the abstract methods load_dict() and fill_dict().
  """

  flavors = [ 'json', 'yaml' ]

  def load(self, filename : str, flavor : str = None) -> 'Serializable' :
    """Load the object from a markup file

      Args:
        filename: name of the file to load from
        flavor  : markup flavor ('json' [default] or 'yaml'),
                  guessed from the file extension if not given
      Returns:
        self
    """
    if flavor is None : flavor = self.guess_flavor(filename, 'json')
    with open(filename, 'r') as fd :
      return self.load_dict(self.parse_markup(fd, flavor))

  def save(self, filename : str, flavor : str = None) -> 'Serializable' :
    """Save the object to a markup file

      Args:
        filename: name of the file to save to
        flavor  : markup flavor ('json' [default] or 'yaml'),
                  guessed from the file extension if not given
      Returns:
        self
    """
    if flavor is None : flavor = self.guess_flavor(filename, 'json')
    text = self.dump_markup(flavor)
    with open(filename, 'w') as fd :
      fd.write(text)
    return self

  @staticmethod
  def guess_flavor(filename : str, default : str) -> str :
    """Guess the markup flavor from a file name

      Args:
        filename: the file name
        default : value returned if the extension is not recognized

      Returns:
        str: the markup flavor
    """
    if filename.endswith('.json') : return 'json'
    if filename.endswith('.yaml') or filename.endswith('.yml') : return 'yaml'
    return default

  @staticmethod
  def parse_markup(data, flavor : str = 'json') -> dict :
    """Parse markup from a string or an open file

      Args:
        data  : markup string or file object
        flavor: markup flavor ('json' or 'yaml')

      Returns:
        the parsed dictionary
    """
    if flavor == 'json' :
      return json.loads(data) if isinstance(data, str) else json.load(data)
    if flavor == 'yaml' :
      return yaml.safe_load(data)
    raise KeyError("Unknown markup flavor '%s', only %s are supported" % (flavor, ' or '.join(Serializable.flavors)))

  def load_markup(self, data : str, flavor : str = 'json') -> 'Serializable' :
    """Load the object from a markup string

      Args:
        data  : markup string
        flavor: markup flavor ('json' [default] or 'yaml')

      Returns:
        self
    """
    return self.load_dict(self.parse_markup(data, flavor))

  def dump_markup(self, flavor : str = 'json') -> str :
    """Dump the object as a markup string

      Args:
        flavor: markup flavor ('json' [default] or 'yaml')

      Returns:
        the markup string
    """
    sdict = self.dump_dict()
    if flavor == 'json' : return json.dumps(sdict, ensure_ascii=True, indent=3)
    if flavor == 'yaml' : return yaml.dump(sdict, sort_keys=False, default_flow_style=None, width=10000)
    raise KeyError("Unknown markup flavor '%s', only %s are supported" % (flavor, ' or '.join(Serializable.flavors)))

  def dump_dict(self) -> dict :
    """Dump the object as a dictionary of markup data

      Returns:
        dict: dictionary with the object contents
    """
    sdict = {}
    self.fill_dict(sdict)
    return sdict

  @classmethod
  def load_field(cls, key : str, dic : dict, default = None, types : list = []) :
    """Read a field from a dictionary of markup data

      Args:
         key    : key to look up in the dictionary
         dic    : dictionary in which to look up the key
         default: value returned if `key` is absent
         types  : list of allowed value types (default: [], allows all types).
                  If `np.ndarray` is requested, lists are accepted and
                  converted to float arrays.

      Returns:
        the value indexed by `key`, or `default` if absent.
    """
    if not key in dic : return default
    val = dic[key]
    if val is None : return val
    types = list(types) if isinstance(types, (list, tuple)) else [ types ]
    if types == [ np.ndarray ] : types.append(list)
    if types != [] and not any([isinstance(val, t) for t in types]) :
      raise TypeError('Object at key %s in markup dictionary has type %s, not the expected %s' %
                      (key, val.__class__.__name__, '|'.join([t.__name__ for t in types])))
    if types == [ np.ndarray, list ] : val = np.array(val, dtype=float)
    return val

  @staticmethod
  def unnumpy(obj) :
    """Convert numpy data to plain python types, recursively

      Args:
         obj : object to convert

      Returns:
        the same object in serializable form
    """
    if isinstance(obj, np.integer) : return int(obj)
    if isinstance(obj, np.floating) : return float(obj)
    if isinstance(obj, (np.ndarray, list, tuple)) :
      return [ Serializable.unnumpy(element) for element in obj ]
    if isinstance(obj, dict) :
      return { key : Serializable.unnumpy(value) for key, value in obj.items() }
    return obj

  @abstractmethod
  def load_dict(self, sdict : dict) -> 'Serializable' :
    """Load information from a dictionary of markup data

      Args:
        sdict: a dictionary containing markup data

      Returns:
        self
    """
    return self

  @abstractmethod
  def fill_dict(self, sdict : dict) :
    """Save information to a dictionary of markup data

      Args:
         sdict: a dictionary to fill
    """
    pass
