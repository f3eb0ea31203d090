"""
Default rule catalog data and loader.
"""

from .loader import DefaultCatalogLoader

__all__ = [
    "DefaultCatalogLoader",
]
