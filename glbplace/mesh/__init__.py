"""Mesh flattening for direct rendering."""

from .flatten import flatten
from .geometry import GeometryData

__all__ = ["flatten", "GeometryData"]
