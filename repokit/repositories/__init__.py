"""
Repository pipeline and the persistence strategies it runs on.
"""

from .base import Repository
from .mapped import MappedStrategy
from .strategy import PersistenceStrategy
from .table import TableStrategy

__all__ = [
    "Repository",
    "PersistenceStrategy",
    "TableStrategy",
    "MappedStrategy",
]
