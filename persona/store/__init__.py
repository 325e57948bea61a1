"""
Trait storage.
"""

from .trait_store import TraitStore

__all__ = ["TraitStore"]
