from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

Alignment = Literal["left", "center", "right"]


@dataclass(frozen=True, slots=True)
class FontSpec:
    """Font settings used to measure and draw text.

    ``family`` is a font file name or path (``"DejaVuSans.ttf"``); ``None``
    selects the engine's default font.
    """

    family: str | None = None
    size: int = 16
    color: str = "#000000"
    alignment: Alignment = "left"

    def with_size(self, size: int) -> FontSpec:
        return replace(self, size=size)
