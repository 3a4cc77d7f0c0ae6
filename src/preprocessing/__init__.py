"""
Image-to-tensor preparation for model inputs.
"""

from .tensor_prep import prepare

__all__ = ["prepare"]
