"""
Errors - Exception taxonomy for pyramid and collection builds
"""


class DeepZoomError(Exception):
    """Base class for every failure raised by dzmaker."""


class InvalidDimensions(DeepZoomError, ValueError):
    """Raised for non-positive image sizes or unusable tile geometry."""


class DecodeError(DeepZoomError):
    """Raised when a source image cannot be read or decoded."""


class BackendError(DeepZoomError):
    """Raised when an image-processing operation fails."""


class BoundsError(BackendError):
    """
    Raised when a crop or composite window falls outside a raster.

    In correct code this never happens; it points at a partitioning bug.
    """


TileBoundsError = BoundsError


class UsageError(DeepZoomError):
    """Raised when required input is missing."""


class DescriptorError(DeepZoomError):
    """Raised when an existing .dzi or .dzc file cannot be parsed."""
