"""landed-cost-engine - customs cost computation for import simulations."""

from . import customs
from .version import __version__

__all__ = [
    "customs",
    "__version__",
]
