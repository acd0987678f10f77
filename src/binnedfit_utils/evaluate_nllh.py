#! /usr/bin/env python

__doc__ = """
*Evaluate a binned negative log-likelihood*

Loads a likelihood setup (component PDFs, systematics, constraints,
region of interest and data) from a markup file given by the
`--model-file` argument, optionally changes parameter values using
`--setval`, and prints the NLL value.
"""

from argparse import ArgumentParser, ArgumentDefaultsHelpFormatter
from binnedfit import BinnedNLLH, BinnedFitError
from binnedfit_utils import process_setvals, apply_setvals
import json

####################################################################################################################################
###

def make_parser() :
  parser = ArgumentParser("evaluate_nllh.py", formatter_class=ArgumentDefaultsHelpFormatter)
  parser.description = __doc__
  parser.add_argument("-m", "--model-file"       , type=str  , required=True   , help="Name of markup file defining the likelihood")
  parser.add_argument("-a", "--setval"           , type=str  , default=None    , help="List of parameter value assignments, in the form par1=val1,par2=val2,...")
  parser.add_argument("-o", "--output-file"      , type=str  , default=''      , help="Name of JSON file in which to store the result (optional)")
  parser.add_argument("-s", "--save-model"       , type=str  , default=''      , help="Name of markup file in which to save the likelihood setup, after parameter changes (optional)")
  parser.add_argument("-v", "--verbosity"        , type = int, default=1       , help="Verbosity level")
  return parser

def run(argv = None) :
  parser = make_parser()
  options = parser.parse_args(argv)
  if not options :
    parser.print_help()
    return

  nllh = BinnedNLLH(verbosity=options.verbosity).load(options.model_file)
  if options.verbosity > 0 : print('INFO: Using likelihood from file %s.' % options.model_file)
  if options.setval is not None :
    par_dict = process_setvals(options.setval, nllh)
    apply_setvals(par_dict, nllh)
    if options.verbosity > 0 :
      for name, value in par_dict.items() : print('INFO: setting %s = %g' % (name, value))

  if options.verbosity > 1 : print(nllh)
  try :
    nll = nllh.evaluate()
  except BinnedFitError as inst :
    print('ERROR: likelihood evaluation failed : %s' % str(inst))
    raise
  print('nll = %g' % nll)

  if options.output_file :
    with open(options.output_file, 'w') as fd :
      json.dump({ 'nll' : nll, 'parameters' : dict(zip(nllh.parameter_names(), nllh.get_parameters().tolist())) }, fd, indent=3)
  if options.save_model : nllh.save(options.save_model)
  return nll


if __name__ == '__main__' : run()
