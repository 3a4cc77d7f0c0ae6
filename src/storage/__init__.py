"""
Storage module: persistence of pipeline by-products.
"""

from .gallery import GallerySink

__all__ = ["GallerySink"]
