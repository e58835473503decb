# =============================================================================
# errors.py - NDE Exception Hierarchy
# =============================================================================
#
# Every NDE error also derives from the built-in a caller would already be
# catching (ValueError, OSError), so plain `except ValueError` still works.


class NDEError(Exception):
    """Root of all NDE errors."""


class DomainError(NDEError, ValueError):
    """A symbol or bit pattern outside the fixed digit domain."""


class ShapeError(NDEError, ValueError):
    """
    An activation trace, weight snapshot or wire layout does not fit the
    board.  Means the network and the pin map have drifted apart: a
    programming error, never masked.
    """


class TransportError(NDEError, OSError):
    """A bus transfer failed.  The frame is dropped; no retry."""
