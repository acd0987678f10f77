import json
import pytest
import numpy as np

from binnedfit import BinnedNLLH, BinnedPdf, ArrayDataSet, Shift
from binnedfit_utils import process_setvals
from binnedfit_utils.evaluate_nllh import run


@pytest.fixture
def model_file(tmp_path, uniform_pdf, one_per_bin) -> str :
  nllh = BinnedNLLH().add_pdf(uniform_pdf)
  nllh.add_systematic(Shift('shift', [ 0 ], 0))
  nllh.set_dataset(one_per_bin)
  filename = str(tmp_path / 'model.json')
  nllh.save(filename)
  return filename


class TestEvaluateNLLH :

  def test_process_setvals(self, model_file) :
    nllh = BinnedNLLH().load(model_file)
    assert process_setvals('norm_signal=10, shift=0.5', nllh) == { 'norm_signal' : 10, 'shift' : 0.5 }
    assert process_setvals('norm_.*=3', nllh) == { 'norm_signal' : 3 }
    with pytest.raises(ValueError) : process_setvals('nothing=1', nllh)
    with pytest.raises(ValueError) : process_setvals('shift=abc', nllh)
    with pytest.raises(ValueError) : process_setvals('shift', nllh)

  def test_run(self, model_file, tmp_path) :
    output = str(tmp_path / 'result.json')
    nll = run([ '-m', model_file, '--setval', 'norm_signal=10', '-o', output, '-v', '0' ])
    assert np.isclose(nll, 10)
    with open(output) as fd :
      result = json.load(fd)
    assert np.isclose(result['nll'], 10)
    assert result['parameters'] == { 'norm_signal' : 10, 'shift' : 0 }

  def test_run_default_parameters(self, model_file) :
    assert np.isclose(run([ '-m', model_file, '-v', '0' ]), -10*np.log(0.1) + 1)
