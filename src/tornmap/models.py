"""Value types shared across the render pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence


MAP_WIDTH = 6_256
MAP_HEIGHT = 3_648
TILE_WIDTH = 600
TILE_HEIGHT = 400
TILE_COLUMNS = -(-MAP_WIDTH // TILE_WIDTH)
TILE_ROWS = -(-MAP_HEIGHT // TILE_HEIGHT)


class SegmentKind(Enum):
    MOVE_TO = "M"
    LINE_TO = "L"
    QUADRATIC = "Q"
    CUBIC = "C"
    CLOSE = "Z"

    @property
    def arity(self) -> int:
        return _SEGMENT_ARITY[self]


_SEGMENT_ARITY = {
    SegmentKind.MOVE_TO: 2,
    SegmentKind.LINE_TO: 2,
    SegmentKind.QUADRATIC: 4,
    SegmentKind.CUBIC: 6,
    SegmentKind.CLOSE: 0,
}


@dataclass(frozen=True, slots=True)
class PathSegment:
    """One simplified path instruction in map-pixel coordinates.

    `coords` holds control points before the end point, so a cubic is
    `(x1, y1, x2, y2, x, y)` and a close carries nothing.
    """

    kind: SegmentKind
    coords: tuple[float, ...] = ()

    def __post_init__(self) -> None:
        if len(self.coords) != self.kind.arity:
            raise ValueError(
                f"Segment '{self.kind.value}' expects {self.kind.arity} coordinates, "
                f"got {len(self.coords)}"
            )

    @property
    def points(self) -> tuple[tuple[float, float], ...]:
        return tuple(zip(self.coords[0::2], self.coords[1::2]))

    @classmethod
    def from_sequence(cls, raw: Sequence[Any]) -> PathSegment:
        """Build a segment from its compact form, e.g. `["Q", x1, y1, x, y]`."""
        if not raw or not isinstance(raw[0], str):
            raise ValueError(f"Segment must start with a command letter: {raw!r}")
        try:
            kind = SegmentKind(raw[0])
        except ValueError as exc:
            raise ValueError(f"Unknown path command '{raw[0]}'") from exc
        coords: list[float] = []
        for value in raw[1:]:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Expected numeric coordinate in segment {raw!r}")
            coords.append(float(value))
        return cls(kind=kind, coords=tuple(coords))


@dataclass(frozen=True, slots=True)
class FloatRect:
    """Unclamped rectangle in map-pixel space."""

    x: float
    y: float
    width: float
    height: float

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


@dataclass(frozen=True, slots=True)
class IntRect:
    """Pixel rectangle clamped inside the map."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def scaled_down(self, factor: int) -> IntRect:
        return IntRect(
            x=self.x // factor,
            y=self.y // factor,
            width=self.width // factor,
            height=self.height // factor,
        )


MAP_RECT = IntRect(x=0, y=0, width=MAP_WIDTH, height=MAP_HEIGHT)


@dataclass(frozen=True, slots=True)
class RenderInstruction:
    colour: tuple[int, int, int]
    opacity: float

    def __post_init__(self) -> None:
        if len(self.colour) != 3 or any(not 0 <= c <= 255 for c in self.colour):
            raise ValueError(f"Colour must be an RGB triple of 0..255 values: {self.colour!r}")
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError(f"Opacity must be between 0.0 and 1.0, got {self.opacity}")

    def rgba(self) -> tuple[float, float, float, float]:
        """Colour as matplotlib-style floats with the opacity as alpha."""
        r, g, b = self.colour
        return (r / 255.0, g / 255.0, b / 255.0, float(self.opacity))


class RenderScale(Enum):
    X1 = 1
    X4 = 4

    @property
    def factor(self) -> int:
        return int(self.value)
