"""
Exception types raised by the preview geometry engine.

All errors derive from ValueError so callers that already guard numeric
input with ``except ValueError`` keep working.
"""


class PreviewGeometryError(ValueError):
    """Base class for preview geometry errors."""


class InvalidArgumentError(PreviewGeometryError):
    """An argument is outside the accepted domain (e.g. empty size list)."""


class DegenerateGeometryError(PreviewGeometryError):
    """A size with a zero dimension was given where an area is required."""
