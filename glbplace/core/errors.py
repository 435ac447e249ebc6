"""Error types raised by the GLB manipulation layer."""

from __future__ import annotations


class GlbError(Exception):
    """Base class for all glbplace errors."""


class FormatError(GlbError, ValueError):
    """The container or its JSON chunk is malformed.

    Raised for bad magic, unsupported version, inconsistent lengths,
    truncated chunks, unparsable JSON and dangling references.
    """


class UnsupportedFeature(GlbError):
    """Well-formed input that uses something glbplace does not model.

    Examples are sparse accessors, non-triangle primitives and
    non-float vertex attributes.
    """


class FileTooLarge(GlbError):
    """Input exceeds the caller-side size ceiling."""
