"""Module containing the :class:`BinnedNLLH` class, computing the binned
extended negative log-likelihood of a data set for a mixture of component
PDFs, with systematics, normalisation and systematic constraints and an
optional restriction to a region of interest.

The value computed by :meth:`BinnedNLLH.evaluate` is

  `- sum_i n_i log(nu_i) + sum_k N_k + sum_c penalty_c`

where `n_i` are the observed bin contents, `nu_i = sum_k N_k p_k(i)` the
expected contents (see :class:`binnedfit.pdf_manager.BinnedPdfManager`),
`N_k` the component normalisations and `penalty_c` the quadratic
constraints (see :class:`binnedfit.constraints.QuadraticConstraint`).
"""

from .base import Serializable
from .pdfs import BinnedPdf
from .data import DataSet, ArrayDataSet, DataRepresentation
from .cuts import Cut, CutCollection
from .systematics import Systematic, SystematicManager
from .shrinker import PdfShrinker
from .pdf_manager import BinnedPdfManager
from .constraints import QuadraticConstraint
from .exceptions import DimensionError, DataMissingError, ZeroProbabilityError
import numpy as np
import copy


# -------------------------------------------------------------------------
class BinnedNLLH(Serializable) :
  """Class computing a binned extended negative log-likelihood

  The likelihood parameters are the component normalisations and the
  systematic parameters. They can be set separately, or all together as
  a flat vector (normalisations first, then systematic parameters) through
  :meth:`set_parameters`, which is the interface used by external minimizers.

  Constraints are stored in fixed slots: one per component PDF for
  normalisation constraints, and one per systematic for systematic
  constraints. A constraint in slot `k` is evaluated on the parameters of
  item `k` only (the normalisation of PDF `k`, or the parameters of
  systematic `k`). Empty slots hold `None`.

  The binned data is derived from the data set the first time it is
  needed, using the binning and representation of the first component PDF,
  and is then cached until the data set, the cuts or the buffers change.

  Attributes:
     pdf_manager (BinnedPdfManager) : the component PDFs
     systematic_manager (SystematicManager) : the systematics
     shrinker (PdfShrinker) : the region of interest definition
     dataset (DataSet) : the unbinned data, if provided
     cuts (CutCollection) : cuts applied to the data set before binning
     normalisations (np.ndarray) : current component normalisations
     systematic_params (np.ndarray) : current systematic parameters
     normalisation_constraints (list) : constraint slots for the normalisations
     systematic_constraints (list) : constraint slots for the systematics
     verbosity (int) : verbosity level
  """

  def __init__(self, verbosity : int = 0) :
    self.verbosity = verbosity
    self.pdf_manager = BinnedPdfManager(verbosity)
    self.systematic_manager = SystematicManager(verbosity=verbosity)
    self.shrinker = PdfShrinker()
    self.dataset = None
    self.cuts = CutCollection()
    self.raw_data_pdf = None
    self.data_pdf = None
    self.normalisations = np.array([])
    self.systematic_params = np.array([])
    self.normalisation_constraints = []
    self.systematic_constraints = []

  def clone(self) -> 'BinnedNLLH' :
    """Returns an independent copy, e.g. for use in another worker
    """
    return copy.deepcopy(self)

  # --- Components ---

  def add_pdf(self, pdf : BinnedPdf, normalisation : float = 1, constraint : QuadraticConstraint = None) -> 'BinnedNLLH' :
    """Add a component PDF

      Args:
        pdf           : the PDF (copied and normalised to unit integral)
        normalisation : its initial normalisation
        constraint    : optional constraint on the normalisation

      Returns:
        self
    """
    self.pdf_manager.add_pdf(pdf, normalisation)
    self.normalisations = np.append(self.normalisations, float(normalisation))
    self.normalisation_constraints.append(constraint)
    if self.pdf_manager.npdfs() == 1 :
      # the first PDF defines the data binning
      if self.dataset is not None : self.raw_data_pdf = None
      self.data_pdf = None
      for sys in self.systematic_manager.systematics : self.setup_systematic(sys)
    return self

  def add_pdfs(self, pdfs : list) -> 'BinnedNLLH' :
    for pdf in pdfs : self.add_pdf(pdf)
    return self

  def npdfs(self) -> int :
    return self.pdf_manager.npdfs()

  def setup_systematic(self, systematic : Systematic) :
    if systematic.has_axes or self.pdf_manager.npdfs() == 0 : return
    pdf = self.pdf_manager.get_original_pdf(0)
    systematic.set_axes(pdf.axes, DataRepresentation(pdf.data_rep.indices))

  def add_systematic(self, systematic : Systematic, constraint : QuadraticConstraint = None) -> 'BinnedNLLH' :
    """Add a systematic

      If the systematic has no axes set, it is set up with the binning and
      representation of the first component PDF.

      Args:
        systematic : the systematic
        constraint : optional constraint on its parameters

      Returns:
        self
    """
    self.systematic_manager.add(systematic)
    self.setup_systematic(systematic)
    self.systematic_params = np.concatenate([ self.systematic_params, systematic.get_parameters() ])
    self.systematic_constraints.append(constraint)
    return self

  def add_systematics(self, systematics : list) -> 'BinnedNLLH' :
    for systematic in systematics : self.add_systematic(systematic)
    return self

  def nsystematics(self) -> int :
    return self.systematic_manager.nsystematics()

  # --- Parameters ---

  def set_normalisations(self, normalisations) :
    normalisations = np.atleast_1d(np.array(normalisations, dtype=float))
    if normalisations.shape != (self.npdfs(),) :
      raise DimensionError('Got %d normalisations for %d PDFs.' % (normalisations.size, self.npdfs()), source='BinnedNLLH')
    self.normalisations = normalisations

  def get_normalisations(self) -> np.ndarray :
    return np.array(self.normalisations)

  def set_systematic_params(self, parameters) :
    parameters = np.atleast_1d(np.array(parameters, dtype=float))
    if parameters.shape != (self.systematic_manager.nparameters(),) :
      raise DimensionError('Got %d systematic parameters, expected %d.' % (parameters.size, self.systematic_manager.nparameters()), source='BinnedNLLH')
    self.systematic_params = parameters

  def get_systematic_params(self) -> np.ndarray :
    return np.array(self.systematic_params)

  def nparameters(self) -> int :
    return self.npdfs() + self.systematic_manager.nparameters()

  def parameter_names(self) -> list :
    return [ 'norm_%s' % (pdf.name if pdf.name != '' else str(k)) for k, pdf in enumerate(self.pdf_manager.original_pdfs) ] \
           + self.systematic_manager.parameter_names()

  def get_parameters(self) -> np.ndarray :
    return np.concatenate([ self.normalisations, self.systematic_params ])

  def set_parameters(self, parameters) :
    """Set all parameters from a flat vector

      Args:
        parameters : the normalisations followed by the systematic parameters
    """
    parameters = np.atleast_1d(np.array(parameters, dtype=float))
    if parameters.shape != (self.nparameters(),) :
      raise DimensionError('Got %d parameters, expected %d.' % (parameters.size, self.nparameters()), source='BinnedNLLH')
    self.set_normalisations(parameters[:self.npdfs()])
    self.set_systematic_params(parameters[self.npdfs():])

  def __call__(self, parameters) -> float :
    """Set all parameters and evaluate, for use as a minimizer objective function
    """
    self.set_parameters(parameters)
    return self.evaluate()

  # --- Constraints ---

  def _check_slot(self, slots : list, index : int, kind : str) :
    if index < 0 or index >= len(slots) :
      raise DimensionError('Tried to access %s constraint %d, but only %d are defined.' % (kind, index, len(slots)), source='BinnedNLLH')

  def set_normalisation_constraint(self, index : int, constraint : QuadraticConstraint) :
    self._check_slot(self.normalisation_constraints, index, 'normalisation')
    self.normalisation_constraints[index] = constraint

  def get_normalisation_constraint(self, index : int) -> QuadraticConstraint :
    self._check_slot(self.normalisation_constraints, index, 'normalisation')
    return self.normalisation_constraints[index]

  def set_systematic_constraint(self, index : int, constraint : QuadraticConstraint) :
    self._check_slot(self.systematic_constraints, index, 'systematic')
    self.systematic_constraints[index] = constraint

  def get_systematic_constraint(self, index : int) -> QuadraticConstraint :
    self._check_slot(self.systematic_constraints, index, 'systematic')
    return self.systematic_constraints[index]

  def constraint_penalty(self) -> float :
    """Returns the sum of all the constraint penalties at the current parameter values
    """
    penalty = 0
    for norm, constraint in zip(self.normalisations, self.normalisation_constraints) :
      if constraint is not None : penalty += constraint([ norm ])
    for pars, constraint in zip(self.systematic_manager.parameter_slices(), self.systematic_constraints) :
      if constraint is not None : penalty += constraint(self.systematic_params[pars])
    return penalty

  # --- Data and region of interest ---

  def set_dataset(self, dataset : DataSet) :
    self.dataset = dataset
    self.raw_data_pdf = None
    self.data_pdf = None

  def set_data_pdf(self, pdf : BinnedPdf) :
    """Use pre-binned data

      Args:
        pdf : the binned data, with the binning of the component PDFs
    """
    self.raw_data_pdf = pdf.clone()
    self.data_pdf = self.shrinker.shrink_pdf(self.raw_data_pdf)

  def get_data_pdf(self) -> BinnedPdf :
    """Returns the (shrunk) binned data
    """
    self.check_data()
    if self.data_pdf is None : self.bin_data()
    return self.data_pdf.clone()

  def set_cuts(self, cuts) :
    self.cuts = cuts if isinstance(cuts, CutCollection) else CutCollection(cuts)
    if self.dataset is not None : self.raw_data_pdf = None
    self.data_pdf = None

  def set_buffer(self, dim : int, lower : int, upper : int) :
    self.shrinker.set_buffer(dim, lower, upper)
    self.data_pdf = None

  def get_buffer(self, dim : int) -> tuple :
    return self.shrinker.get_buffer(dim)

  def set_buffer_as_overflow(self, using_overflows : bool) :
    self.shrinker.set_using_overflows(using_overflows)
    self.data_pdf = None

  def get_buffer_as_overflow(self) -> bool :
    return self.shrinker.get_using_overflows()

  def check_data(self) :
    if self.dataset is None and self.raw_data_pdf is None :
      raise DataMissingError('Likelihood evaluated with no data set and no binned data, set one of these first.', source='BinnedNLLH')

  def bin_data(self) :
    """Bin the data set (if needed) and apply the shrinking
    """
    if self.raw_data_pdf is None :
      if self.npdfs() == 0 : raise DimensionError('Cannot bin data without any PDF to define the binning.', source='BinnedNLLH')
      raw = self.pdf_manager.get_original_pdf(0).clone(name='data')
      raw.empty()
      nfilled = raw.fill_dataset(self.dataset, self.cuts)
      if self.verbosity > 0 : print('Binned %d events out of %d in the data set' % (nfilled, self.dataset.nentries()))
      self.raw_data_pdf = raw
    self.data_pdf = self.shrinker.shrink_pdf(self.raw_data_pdf)

  # --- Evaluation ---

  def evaluate(self) -> float :
    """Compute the negative log-likelihood at the current parameter values

      Returns:
        the NLL value
    """
    self.check_data()
    if self.data_pdf is None : self.bin_data()
    self.systematic_manager.set_parameters(self.systematic_params)
    self.pdf_manager.apply_systematics(self.systematic_manager)
    self.pdf_manager.apply_shrink(self.shrinker)
    self.pdf_manager.set_normalisations(self.normalisations)

    probs = self.pdf_manager.bin_probabilities()
    counts = self.data_pdf.contents
    if probs.shape != counts.shape :
      raise DimensionError('Data has %d bins, but the model has %d.' % (counts.size, probs.size), source='BinnedNLLH')
    observed = counts != 0
    zero_bins = np.flatnonzero(observed & (probs <= 0))
    if zero_bins.size > 0 :
      bad = zero_bins[0]
      raise ZeroProbabilityError('Encountered non-positive expected content %g in bin %d, which has %g observed events.' % (probs[bad], bad, counts[bad]), source='BinnedNLLH')
    nll = -np.sum(counts[observed]*np.log(probs[observed]))
    nll += np.sum(self.normalisations)
    nll += self.constraint_penalty()
    if self.verbosity > 1 : print('NLL = %g at parameters %s' % (nll, str(self.get_parameters())))
    return float(nll)

  # --- Description and markup ---

  def __str__(self) -> str :
    return 'BinnedNLLH ' + self.string_repr(verbosity = 1)

  def string_repr(self, verbosity : int = 1, pre_indent : str = '', indent : str = '   ') -> str :
    rep = '%s%d PDFs, %d systematics, %d parameters' % (pre_indent, self.npdfs(), self.nsystematics(), self.nparameters())
    if verbosity >= 1 :
      for name, value in zip(self.parameter_names(), self.get_parameters()) :
        rep += '\n%s%-20s = %g' % (pre_indent + indent, name, value)
      rep += '\n%s%s' % (pre_indent + indent, self.shrinker.string_repr())
    return rep

  def load_dict(self, sdict : dict) -> 'BinnedNLLH' :
    """Load the full likelihood setup from a dictionary of markup data

      The dictionary contains a 'pdfs' section (each PDF with optional
      'normalisation' and 'constraint' fields), and optional 'systematics'
      (each with an optional 'constraint'), 'shrinker', 'cuts' and 'data'
      sections. The data is given either as binned 'contents' in the
      binning of the first PDF, or as a list of unbinned 'events'.

      Args:
        sdict: a dictionary containing markup data

      Returns:
        self
    """
    if not 'pdfs' in sdict : raise KeyError("No 'pdfs' section in specified markup.")
    self.__init__(self.verbosity)
    if 'shrinker' in sdict : self.shrinker.load_dict(sdict['shrinker'])
    for dict_pdf in sdict['pdfs'] :
      constraint = QuadraticConstraint().load_dict(dict_pdf['constraint']) if dict_pdf.get('constraint') is not None else None
      self.add_pdf(BinnedPdf().load_dict(dict_pdf), self.load_field('normalisation', dict_pdf, 1, [int, float]), constraint)
    for dict_sys in self.load_field('systematics', sdict, [], list) :
      constraint = QuadraticConstraint().load_dict(dict_sys['constraint']) if dict_sys.get('constraint') is not None else None
      systematic = Systematic.instantiate(dict_sys)
      self.add_systematic(systematic, constraint)
      if 'parameters' in dict_sys :
        pars = self.load_field('parameters', dict_sys, None, np.ndarray)
        if len(pars) != len(systematic.get_parameters()) :
          raise DimensionError("Systematic '%s' expects %d parameters, got %d in markup." % (systematic.name, len(systematic.get_parameters()), len(pars)), source='BinnedNLLH')
        self.systematic_params[len(self.systematic_params) - len(pars):] = pars
    self.set_cuts([ Cut.instantiate(dict_cut) for dict_cut in self.load_field('cuts', sdict, [], list) ])
    if 'data' in sdict :
      dict_data = sdict['data']
      if 'events' in dict_data :
        self.set_dataset(ArrayDataSet(dict_data['events'], self.load_field('observables', dict_data, None, list)))
      elif 'contents' in dict_data :
        data_pdf = self.pdf_manager.get_original_pdf(0).clone(name='data')
        data_pdf.set_bin_contents(self.load_field('contents', dict_data, None, np.ndarray))
        self.set_data_pdf(data_pdf)
      else :
        raise KeyError("Data section must contain either 'events' or 'contents'.")
    return self

  def fill_dict(self, sdict : dict) :
    sdict['pdfs'] = []
    for k, pdf in enumerate(self.pdf_manager.original_pdfs) :
      dict_pdf = pdf.dump_dict()
      dict_pdf['normalisation'] = self.unnumpy(self.normalisations[k])
      if self.normalisation_constraints[k] is not None : dict_pdf['constraint'] = self.normalisation_constraints[k].dump_dict()
      sdict['pdfs'].append(dict_pdf)
    sdict['systematics'] = []
    for sys, pars, constraint in zip(self.systematic_manager.systematics, self.systematic_manager.parameter_slices(), self.systematic_constraints) :
      dict_sys = sys.dump_dict()
      dict_sys['parameters'] = self.unnumpy(self.systematic_params[pars])
      if constraint is not None : dict_sys['constraint'] = constraint.dump_dict()
      sdict['systematics'].append(dict_sys)
    sdict['shrinker'] = self.shrinker.dump_dict()
    sdict['cuts'] = [ cut.dump_dict() for cut in self.cuts.cuts ]
    if self.dataset is not None and isinstance(self.dataset, ArrayDataSet) :
      sdict['data'] = { 'events' : self.unnumpy(self.dataset.values) }
      if self.dataset.names is not None : sdict['data']['observables'] = self.dataset.names
    elif self.raw_data_pdf is not None :
      sdict['data'] = { 'contents' : self.unnumpy(self.raw_data_pdf.contents) }
