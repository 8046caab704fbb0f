"""Application services."""

from .optimization import OptimizationService

__all__ = ["OptimizationService"]
