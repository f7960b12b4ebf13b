"""Contains custom exceptions for the pyScanConvert package."""


class ScanConvertError(Exception):
    """Exception for errors specifically thrown by pyScanConvert."""


class UnsupportedMethodError(ScanConvertError):
    """Raised when a resampling method cannot be served by a resampler."""

    def __init__(self, message: str):
        super().__init__(message)


class GeometryError(ScanConvertError):
    """Defines an error in the geometry of an image or coordinate mapping."""

    def __init__(self, message: str):
        super().__init__(message)
