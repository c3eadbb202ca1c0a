"""
In-memory stores for the catalog and the running instances.
"""
from .active import ActiveInstanceTracker
from .definitions import DefinitionStore

__all__ = ["ActiveInstanceTracker", "DefinitionStore"]
