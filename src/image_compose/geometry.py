from __future__ import annotations

from enum import Enum

Number = int | float
Size = tuple[Number, Number]


class Anchor(str, Enum):
    """Nine relative positions an overlay can be placed at."""

    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    MID_LEFT = "mid-left"
    MID_CENTER = "mid-center"
    MID_RIGHT = "mid-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"

    @classmethod
    def parse(cls, value: Anchor | str) -> Anchor:
        """Accept an ``Anchor``, its value (``"top-right"``) or its name (``"TOP_RIGHT"``)."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("_", "-")
        try:
            return cls(normalized)
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown anchor '{value}'. Expected one of: {choices}") from None


# (horizontal, vertical) factors: 0 = start edge, 1 = centered, 2 = end edge
_ANCHOR_FACTORS: dict[Anchor, tuple[int, int]] = {
    Anchor.TOP_LEFT: (0, 0),
    Anchor.TOP_CENTER: (1, 0),
    Anchor.TOP_RIGHT: (2, 0),
    Anchor.MID_LEFT: (0, 1),
    Anchor.MID_CENTER: (1, 1),
    Anchor.MID_RIGHT: (2, 1),
    Anchor.BOTTOM_LEFT: (0, 2),
    Anchor.BOTTOM_CENTER: (1, 2),
    Anchor.BOTTOM_RIGHT: (2, 2),
}


def _offset(free_space: Number, factor: int, integral: bool) -> Number:
    if factor == 0:
        return 0
    if factor == 2:
        return free_space
    return free_space // 2 if integral else free_space / 2


def placement_coordinates(container_size: Size, overlay_size: Size, anchor: Anchor | str) -> tuple[Number, Number]:
    """Return the top-left ``(x, y)`` that puts *overlay_size* at *anchor* inside *container_size*.

    *anchor* may be an ``Anchor``, its value or its member name, as accepted by
    :meth:`Anchor.parse`.  Coordinates are not clamped: an overlay larger than
    the container gets negative offsets.  Anything ``Anchor.parse`` rejects
    falls back to the top-left corner.
    """
    container_width, container_height = container_size
    overlay_width, overlay_height = overlay_size

    try:
        factors = _ANCHOR_FACTORS[Anchor.parse(anchor)]
    except ValueError:
        factors = (0, 0)

    integral = all(isinstance(value, int) for value in (*container_size, *overlay_size))
    x = _offset(container_width - overlay_width, factors[0], integral)
    y = _offset(container_height - overlay_height, factors[1], integral)
    return x, y
