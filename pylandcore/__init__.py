"""pylandcore init."""

from pylandcore.errors import *
from pylandcore.grid import *
from pylandcore.labeling import *
from pylandcore.core import *
from pylandcore.geometry import *
from pylandcore.proximity import *
from pylandcore.cooccurrence import *
from pylandcore.complexity import *
from pylandcore.fragmentation import *
from pylandcore.cache import *
from pylandcore.records import *
from pylandcore.multilayer import *

__version__ = "0.1.0"
