"""Module containing the :class:`BinnedPdfManager` class, which holds the
component PDFs of a likelihood and computes the expected bin contents
of their normalised sum.
"""

from .pdfs import BinnedPdf
from .systematics import SystematicManager
from .shrinker import PdfShrinker
from .exceptions import DimensionError, RepresentationError
import numpy as np


# -------------------------------------------------------------------------
class BinnedPdfManager :
  """Class managing the component PDFs of a binned likelihood

  Each component is stored twice:

  * an *original* PDF, normalised to unit integral when it is added and
    never modified afterwards

  * a *working* PDF, re-derived from the original at each evaluation by
    applying the systematics and the shrinking.

  After shrinking, the working PDFs are normalised again to unit integral
  over the shrunk bins (unless they are empty), so that the normalisation
  of each component is its expected number of events in the fit region.
  The expected content of bin `i` is then

    `bin_probability(i) = sum_k norm_k * working_k[i]`

  Attributes:
     original_pdfs (list) : the original :class:`BinnedPdf` objects
     working_pdfs (list) : the working copies
     normalisations (np.ndarray) : the normalisation of each component
     verbosity (int) : verbosity level
  """

  def __init__(self, verbosity : int = 0) :
    self.original_pdfs = []
    self.working_pdfs = []
    self.normalisations = np.array([])
    self.verbosity = verbosity

  def clone(self) -> 'BinnedPdfManager' :
    manager = BinnedPdfManager(self.verbosity)
    manager.original_pdfs = [ pdf.clone() for pdf in self.original_pdfs ]
    manager.working_pdfs = [ pdf.clone() for pdf in self.working_pdfs ]
    manager.normalisations = np.array(self.normalisations)
    return manager

  def add_pdf(self, pdf : BinnedPdf, normalisation : float = 1) -> 'BinnedPdfManager' :
    """Add a component PDF

      The PDF is copied and normalised to unit integral.

      Args:
        pdf           : the component PDF
        normalisation : its initial normalisation

      Returns:
        self
    """
    if len(self.original_pdfs) > 0 : self.check_compatible(pdf)
    original = pdf.clone().normalise()
    self.original_pdfs.append(original)
    self.working_pdfs.append(original.clone())
    self.normalisations = np.append(self.normalisations, float(normalisation))
    if self.verbosity > 0 : print("Added PDF '%s' with %d bins" % (pdf.name, pdf.nbins()))
    return self

  def check_compatible(self, pdf : BinnedPdf) :
    """Check that a PDF has the binning and observables of the first component

      Args:
        pdf : the PDF to check
    """
    first = self.original_pdfs[0]
    if pdf.nbins() != first.nbins() :
      raise DimensionError("PDF '%s' has %d bins, but the other PDFs have %d." % (pdf.name, pdf.nbins(), first.nbins()))
    if pdf.axes != first.axes :
      raise DimensionError("PDF '%s' has a different binning from PDF '%s'." % (pdf.name, first.name))
    if pdf.data_rep != first.data_rep :
      raise RepresentationError("PDF '%s' is defined over observables %s, but the other PDFs use %s." % (pdf.name, str(pdf.data_rep.indices), str(first.data_rep.indices)))

  def add_pdfs(self, pdfs : list) -> 'BinnedPdfManager' :
    for pdf in pdfs : self.add_pdf(pdf)
    return self

  def npdfs(self) -> int :
    return len(self.original_pdfs)

  def nbins(self) -> int :
    return self.working_pdfs[0].nbins() if len(self.working_pdfs) > 0 else 0

  def _check_index(self, index : int) :
    if index < 0 or index >= len(self.original_pdfs) :
      raise DimensionError('PDF %d requested, but there are only %d.' % (index, len(self.original_pdfs)))

  def get_original_pdf(self, index : int) -> BinnedPdf :
    self._check_index(index)
    return self.original_pdfs[index]

  def get_working_pdf(self, index : int) -> BinnedPdf :
    self._check_index(index)
    return self.working_pdfs[index]

  def set_normalisations(self, normalisations) :
    """Set the normalisations of all components

      Args:
        normalisations : one value per component PDF
    """
    normalisations = np.atleast_1d(np.array(normalisations, dtype=float))
    if normalisations.shape != (self.npdfs(),) :
      raise DimensionError('Got %d normalisations for %d PDFs.' % (normalisations.size, self.npdfs()))
    self.normalisations = normalisations

  def get_normalisations(self) -> np.ndarray :
    return np.array(self.normalisations)

  def apply_systematics(self, systematics : SystematicManager) :
    """Re-derive the working PDFs from the originals, applying the systematics

      Args:
        systematics : the systematics, applied in the order they were added
    """
    systematics.construct()
    self.working_pdfs = [ systematics.apply_systematics(pdf) for pdf in self.original_pdfs ]

  def apply_shrink(self, shrinker : PdfShrinker) :
    """Shrink the working PDFs and normalise them over the remaining bins

      Args:
        shrinker : the shrinker
    """
    shrunk = []
    for pdf in self.working_pdfs :
      pdf = shrinker.shrink_pdf(pdf)
      if pdf.integral() > 0 :
        pdf.normalise()
      elif self.verbosity > 0 :
        print("WARNING: PDF '%s' has no content left after shrinking" % pdf.name)
      shrunk.append(pdf)
    self.working_pdfs = shrunk

  def bin_probabilities(self) -> np.ndarray :
    """Returns the expected contents of all bins

      Returns:
        the array of `sum_k norm_k * working_k` over all bins
    """
    if self.npdfs() == 0 : return np.array([])
    return self.normalisations.dot(np.stack([ pdf.contents for pdf in self.working_pdfs ]))

  def bin_probability(self, bin_id : int) -> float :
    """Returns the expected content of a bin

      Args:
        bin_id : the global bin ID in the (shrunk) working binning

      Returns:
        the sum over components of normalisation times bin content
    """
    return sum(norm*pdf.get_bin_content(bin_id) for norm, pdf in zip(self.normalisations, self.working_pdfs))

  def __str__(self) -> str :
    return 'BinnedPdfManager with %d PDFs:\n' % self.npdfs() + \
           '\n'.join("  o '%s' : normalisation = %g" % (pdf.name, norm) for pdf, norm in zip(self.original_pdfs, self.normalisations))
