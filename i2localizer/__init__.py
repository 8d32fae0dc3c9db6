"""
I2Localizer
===========

Parser, substitution engine, RTL formatter and exporters for Unity
I2Languages text dumps.
"""

from . import core
from . import utils
from .version import VERSION

__version__ = VERSION
__all__ = ['core', 'utils', 'VERSION']
