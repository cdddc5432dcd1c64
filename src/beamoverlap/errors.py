"""Exceptions raised by beamoverlap."""


class GeometryError(ValueError):
    """Raised when a beam is built from degenerate geometry.

    Zero or negative radius/length, non-finite coordinates, and zero-length
    direction vectors are rejected at construction so that NaN or infinity
    never reaches the estimators.
    """


class ConfigError(ValueError):
    """Raised for malformed scene or link-budget configuration."""

    def __init__(self, message: str, path=None):
        self.path = path
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)


__all__ = ["GeometryError", "ConfigError"]
