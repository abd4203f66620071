"""Application operator - reconciles Application resources into managed workloads."""

from application_operator.__version__ import __version__

__all__ = ["__version__"]
