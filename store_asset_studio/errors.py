"""
Exceptions raised by the crop pipeline and its collaborators.

Nothing here is retried internally: callers report the error and let the
user adjust the crop or pick another file.
"""


class PipelineError(Exception):
    """Base class for all pipeline failures."""


class InvalidRegionError(PipelineError, ValueError):
    """Crop rectangle is empty or lies entirely outside the rotated image."""


class EncodingError(PipelineError):
    """The output raster could not be produced or serialized."""


class UnsupportedImageError(PipelineError):
    """A source file could not be decoded into a bitmap."""
