from .exceptions  import BinnedFitError, DimensionError, RepresentationError, InitialisationError, ParameterError, \
                         SystematicError, InvalidSystematicParameter, WrongNumberOfParameters, NormalisationError, \
                         DataMissingError, ZeroProbabilityError
from .base        import Serializable
from .axes        import PdfAxis, AxisCollection
from .histogram   import Histogram
from .data        import DataRepresentation, EventData, DataSet, ArrayDataSet
from .cuts        import Cut, BoxCut, LineCut, CutCollection
from .pdfs        import BinnedPdf, IntegrablePdf, Gaussian
from .mapping     import PdfMapping
from .systematics import Systematic, Convolution, Scale, Shift, SystematicManager, transform_matrix
from .shrinker    import PdfShrinker
from .pdf_manager import BinnedPdfManager
from .constraints import QuadraticConstraint
from .nllh        import BinnedNLLH

import numpy as np
np.set_printoptions(linewidth=200, precision=4, suppress=True, floatmode='maxprec')
