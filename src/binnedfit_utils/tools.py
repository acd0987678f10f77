"""
Common functions for binnedfit_utils/ scripts

"""

import re
from binnedfit import BinnedNLLH
import numpy as np


def process_setvals(setvals : str, nllh : BinnedNLLH) -> dict :
  """Parse a set of likelihood parameter value assignments

  The input string is expected in the form

  par1=val1,par2=val2,...

  The return value is then the dict

  { "par1" : val1, "par2" : val2, ...}

  The `parX` are matched as regular expressions against the parameter
  names of the likelihood (see :meth:`BinnedNLLH.parameter_names`), so that
  several parameters can be set at once.

  Args:
    setvals : a string specifying parameter assignments
    nllh    : the likelihood defining the parameters

  Returns:
    the parsed assignments, as a dict in the form { par1 : val1, par2 : val2, ... }
  """
  par_dict = {}
  try:
    sets = [ a.replace(' ', '').split('=') for a in setvals.split(',') ]
    if any(len(s) != 2 for s in sets) : raise ValueError("expected assignments in the form par=value")
  except Exception as inst :
    print(inst)
    raise ValueError("ERROR : invalid variable assignment string '%s'." % setvals)
  names = nllh.parameter_names()
  for (var, val) in sets :
    matching = [ name for name in names if re.fullmatch(var, name) ]
    if len(matching) == 0 : raise ValueError("No parameters matching '%s' defined in the likelihood." % var)
    try :
      float_val = float(val)
    except ValueError as inst :
      raise ValueError("Invalid numerical value '%s' in assignment to parameter(s) '%s'." % (val, var)) from inst
    for name in matching : par_dict[name] = float_val
  return par_dict


def apply_setvals(par_dict : dict, nllh : BinnedNLLH) -> np.ndarray :
  """Apply parameter assignments to a likelihood

  Args:
    par_dict : assignments in the form returned by :meth:`process_setvals`
    nllh     : the likelihood

  Returns:
    the new flat parameter vector
  """
  names = nllh.parameter_names()
  pars = nllh.get_parameters()
  for name, value in par_dict.items() : pars[names.index(name)] = value
  nllh.set_parameters(pars)
  return pars
