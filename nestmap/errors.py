"""Error types raised while assembling mapping metadata."""

from __future__ import annotations

from typing import Sequence


class ErrorCode:
    """Error codes carried by every NestmapError."""
    UNKNOWN = "UNKNOWN"
    NOT_BUILT = "NOT_BUILT"
    INVALID_ARG = "INVALID_ARG"
    INSTANTIATION = "INSTANTIATION"
    DUPLICATE_COLUMN = "DUPLICATE_COLUMN"
    DUPLICATE_PROPERTY = "DUPLICATE_PROPERTY"
    UNSUPPORTED = "UNSUPPORTED"


class NestmapError(Exception):
    """Base exception class for all metadata errors."""

    def __init__(self, message: str, code: str = ErrorCode.UNKNOWN):
        super().__init__(message)
        self.code = code


class NotBuiltError(NestmapError):
    """Error raised when derived metadata is read before build() ran."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.NOT_BUILT)


class InvalidArgError(NestmapError):
    """Error raised when an invalid argument is provided."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.INVALID_ARG)


class InstantiationError(NestmapError):
    """Error raised when an embedded type has no usable factory."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.INSTANTIATION)


class DuplicateColumnError(NestmapError):
    """Error raised when two columns resolve to the same database name."""

    def __init__(self, message: str, names: Sequence[str] = ()):
        super().__init__(message, ErrorCode.DUPLICATE_COLUMN)
        self.names = list(names)


class DuplicatePropertyError(NestmapError):
    """Error raised when sibling declarations share a property name."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.DUPLICATE_PROPERTY)


class UnsupportedFeatureError(NestmapError):
    """Error raised when the active backend cannot represent a mapping."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.UNSUPPORTED)
