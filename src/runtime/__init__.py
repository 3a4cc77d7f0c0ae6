"""
Runtime wiring: process-lifetime model handles and collaborators.
"""

from .context import RuntimeContext, build_context

__all__ = ["RuntimeContext", "build_context"]
