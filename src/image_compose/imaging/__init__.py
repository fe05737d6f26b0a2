from .alpha import attenuate_opacity
from .compositor import BorrowableImage, BytesSource, Compositor, HandleSource, PathSource, resolve_source
from .text_fit import FitStrategy, fit_font_size

__all__ = [
    "BorrowableImage",
    "BytesSource",
    "Compositor",
    "FitStrategy",
    "HandleSource",
    "PathSource",
    "attenuate_opacity",
    "fit_font_size",
    "resolve_source",
]
