"""Version chain: numbering, snapshots, comparison and restore"""

from .chain import VersionChain
from .schemas import NewVersion, RestoreSpec, VersionComparison

__all__ = ["VersionChain", "NewVersion", "RestoreSpec", "VersionComparison"]
