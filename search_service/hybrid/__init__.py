"""Hybrid search components.

Exports the ``HybridRanker`` used by the API layer.
"""

from .ranker import HybridRanker

__all__ = ["HybridRanker"]
