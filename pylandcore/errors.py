"""Errors and warnings."""

__all__ = [
    "InvalidResolutionError",
    "InvalidConnectivityError",
    "InvalidKernelError",
    "InsufficientPatchesWarning",
    "AllMissingGridWarning",
]


class InvalidResolutionError(ValueError):
    """Non-positive, non-finite or malformed cell resolution."""


class InvalidConnectivityError(ValueError):
    """Connectivity (neighborhood rule) other than 4 or 8."""


class InvalidKernelError(ValueError):
    """Malformed neighbor-offset kernel for adjacency computations."""


class InsufficientPatchesWarning(RuntimeWarning):
    """A class has fewer patches than a metric requires, the value is missing."""


class AllMissingGridWarning(RuntimeWarning):
    """The whole grid consists of missing data, every derived value is missing."""
