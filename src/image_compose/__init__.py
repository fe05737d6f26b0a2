from .exceptions import (
    EmptyImageError,
    ImageComposeError,
    ImageNotFoundError,
    RecipeValidationError,
    UndefinedFormatError,
    UnsupportedOperandError,
)
from .fonts import FontSpec
from .geometry import Anchor, placement_coordinates
from .image import ComposableImage

__all__ = [
    "Anchor",
    "ComposableImage",
    "EmptyImageError",
    "FontSpec",
    "ImageComposeError",
    "ImageNotFoundError",
    "RecipeValidationError",
    "UndefinedFormatError",
    "UnsupportedOperandError",
    "placement_coordinates",
]
