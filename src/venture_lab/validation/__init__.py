"""Validation canvas: per-idea assumptions, pivots and the kill decision."""

from venture_lab.validation.engine import ValidationCanvasEngine

__all__ = ["ValidationCanvasEngine"]
