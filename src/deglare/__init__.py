"""
De-glare module: turns generator output back into images.
"""

from .reconstruction import reconstruct

__all__ = ["reconstruct"]
