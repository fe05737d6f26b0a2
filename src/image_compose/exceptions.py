"""
Domain-specific exceptions for image composition.

Catching these at the CLI entry point allows clean exit codes and targeted error
messages.  All exceptions inherit from ``ImageComposeError`` so callers can
also use a single broad catch when needed.
"""

from __future__ import annotations


class ImageComposeError(Exception):
    """Base exception for all image composition errors."""


class ImageNotFoundError(ImageComposeError):
    """Raised when an image path does not point to an existing file."""

    def __init__(self, path: object) -> None:
        super().__init__(f"File '{path}' not found. Are you sure this is the right path?")
        self.path = path


class EmptyImageError(ImageComposeError):
    """Raised when an operation needs pixels but the image was never created or loaded."""


class UndefinedFormatError(ImageComposeError):
    """Raised when an output format cannot be resolved or is not supported by the engine."""


class UnsupportedOperandError(ImageComposeError, TypeError):
    """Raised when a composite source is neither a path, raw bytes, nor a borrowable image.

    Attributes
    ----------
    operand:
        The rejected source object.
    """

    def __init__(self, operand: object) -> None:
        super().__init__(
            f"Object of type {type(operand).__name__} is not supported as an image source. "
            "Use a path, raw bytes, or a ComposableImage."
        )
        self.operand = operand


class RecipeValidationError(ImageComposeError, ValueError):
    """Raised when a compose recipe file cannot be parsed or fails validation."""
