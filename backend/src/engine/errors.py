"""Typed errors for rejected generation input."""


class ShardConfigError(ValueError):
    """Base class for input rejected before any generation work starts."""


class InvalidIdentifier(ShardConfigError):
    """Identifier is empty, not a string, or not hexadecimal."""


class InvalidCanvasSize(ShardConfigError):
    """Canvas size is not a positive integer."""


class InvalidTextField(ShardConfigError):
    """Collection name, title or author is not a string."""
