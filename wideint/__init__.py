#
# Fixed-width signed and unsigned 128-bit integers emulated on 64-bit words
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

from .bits import *
from .context import *
from .native import *
from .text import *
from .uint128 import *
from .int128 import *

__version__ = '1.0.0'

__all__ = (bits.__all__ + context.__all__ + native.__all__ + text.__all__
           + uint128.__all__ + int128.__all__)
