from .base import ImageInfo, PixelCell, RasterEngine, Resource
from .pillow_engine import PillowEngine

__all__ = [
    "ImageInfo",
    "PillowEngine",
    "PixelCell",
    "RasterEngine",
    "Resource",
]
