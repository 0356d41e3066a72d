"""Closer: conversation control plane for multi-tenant sales agents.

Decides whether the automated agent may speak, keeps it from looping,
shapes its output and classifies conversation outcomes for the sales
pipeline.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
