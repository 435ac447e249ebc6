"""Core modules for glbplace."""

from .config import GlbPlaceConfig
from .errors import FileTooLarge, FormatError, GlbError, UnsupportedFeature

__all__ = ["FileTooLarge", "FormatError", "GlbError", "GlbPlaceConfig", "UnsupportedFeature"]
