from setuptools import setup

setup(
  name             = 'binnedfit',
  version          = '0.1.0',
  description      = 'Binned extended likelihoods with bin-migration systematics',
  package_dir      = { '' : 'src' },
  packages         = [ 'binnedfit', 'binnedfit_utils' ],
  python_requires  = '>=3.7',
  install_requires = [ 'numpy>=1.19.5', 'scipy>=1.5.0', 'PyYAML>=5.1' ],
  extras_require   = { 'test' : [ 'pytest>=6.0' ] },
  entry_points = {
    'console_scripts': [
      'evaluate_nllh.py   = binnedfit_utils.evaluate_nllh:run',
    ],
  },
)
