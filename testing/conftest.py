"""
Shared pytest fixtures for the binnedfit tests.
"""

import pytest
import numpy as np
from binnedfit import PdfAxis, AxisCollection, BinnedPdf, ArrayDataSet


@pytest.fixture
def axes_1d() -> AxisCollection :
  """10 unit-width bins over [0, 10)"""
  return AxisCollection([ PdfAxis('x', 0, 10, 10) ])


@pytest.fixture
def axes_2d() -> AxisCollection :
  """3 x 4 unit-width bins over [0, 3) x [0, 4)"""
  return AxisCollection([ PdfAxis('x', 0, 3, 3), PdfAxis('y', 0, 4, 4) ])


@pytest.fixture
def uniform_pdf(axes_1d) -> BinnedPdf :
  return BinnedPdf(axes_1d, contents=np.ones(10), name='signal')


@pytest.fixture
def one_per_bin() -> ArrayDataSet :
  """One event at the centre of each bin of axes_1d"""
  return ArrayDataSet(np.arange(10) + 0.5, [ 'x' ])
