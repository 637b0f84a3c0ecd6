"""Path reconstruction and viewport fitting in map-pixel space."""

from __future__ import annotations

import logging
from typing import Sequence

from matplotlib.path import Path as MplPath

from .models import MAP_HEIGHT, MAP_RECT, MAP_WIDTH, FloatRect, IntRect, PathSegment, SegmentKind
from .territories import TerritoryId


_LOGGER = logging.getLogger("tornmap.geometry")

_DRAW_CODES = {
    SegmentKind.LINE_TO: MplPath.LINETO,
    SegmentKind.QUADRATIC: MplPath.CURVE3,
    SegmentKind.CUBIC: MplPath.CURVE4,
}


class DegenerateShapeError(ValueError):
    """Raised when a shape's bounds cannot produce a view rectangle."""


def build_path(segments: Sequence[PathSegment]) -> MplPath | None:
    """Replay stored segments into a matplotlib path.

    Returns None for an empty list, a list that does not start with a
    move-to, or one that never draws anything.
    """
    vertices: list[tuple[float, float]] = []
    codes: list[int] = []
    subpath_start: tuple[float, float] | None = None
    closed = False
    drawable = False

    for segment in segments:
        if segment.kind is SegmentKind.MOVE_TO:
            subpath_start = segment.points[0]
            closed = False
            vertices.append(subpath_start)
            codes.append(MplPath.MOVETO)
            continue
        if subpath_start is None:
            _LOGGER.debug("Path does not start with a move-to; first segment is %s", segment.kind)
            return None
        if segment.kind is SegmentKind.CLOSE:
            if not closed:
                vertices.append(subpath_start)
                codes.append(MplPath.CLOSEPOLY)
                closed = True
            continue
        if closed:
            # drawing after a close resumes at the closed sub-path's start
            vertices.append(subpath_start)
            codes.append(MplPath.MOVETO)
            closed = False
        points = segment.points
        vertices.extend(points)
        codes.extend([_DRAW_CODES[segment.kind]] * len(points))
        drawable = True

    if not drawable:
        return None
    return MplPath(vertices, codes)


def path_for_territory(territory: TerritoryId) -> MplPath | None:
    return build_path(territory.info.shape)


def path_bounds(path: MplPath) -> FloatRect:
    """Tight bounds of the drawn curve, ignoring off-curve control points."""
    extents = path.get_extents()
    return FloatRect(
        x=float(extents.x0),
        y=float(extents.y0),
        width=float(extents.width),
        height=float(extents.height),
    )


def bounds_for_path(path: MplPath, factor: float, aspect_ratio: float) -> FloatRect:
    """Grow a path's bounds into a rectangle of the requested aspect ratio.

    The dimension where the shape is relatively wider is divided by
    `factor`; the other one is derived from `aspect_ratio`. A factor below
    1 zooms out, exactly 1 fits the shape.
    """
    if factor <= 0:
        raise ValueError(f"Zoom factor must be > 0, got {factor}")
    if aspect_ratio <= 0:
        raise ValueError(f"Aspect ratio must be > 0, got {aspect_ratio}")

    bounds = path_bounds(path)
    if bounds.height <= 0:
        raise DegenerateShapeError(
            f"Shape bounds have no height ({bounds.width:g} x {bounds.height:g}); "
            "cannot fit an aspect ratio"
        )

    if bounds.aspect_ratio > aspect_ratio:
        width = bounds.width / factor
        height = width / aspect_ratio
        x = bounds.x - width * (1.0 - factor) / 2.0
        y = bounds.y - (height - bounds.height) / 2.0
    else:
        height = bounds.height / factor
        width = height * aspect_ratio
        y = bounds.y - height * (1.0 - factor) / 2.0
        x = bounds.x - (width - bounds.width) / 2.0
    return FloatRect(x=x, y=y, width=width, height=height)


def _saturating_int(value: float) -> int:
    return max(0, int(value))


def fit_view_box(bbox: FloatRect) -> IntRect:
    """Clamp a rectangle into the map, sliding it inwards instead of cropping."""
    width = min(_saturating_int(bbox.width), MAP_WIDTH)
    height = min(_saturating_int(bbox.height), MAP_HEIGHT)
    x = min(_saturating_int(bbox.x), MAP_WIDTH - width)
    y = min(_saturating_int(bbox.y), MAP_HEIGHT - height)
    return IntRect(x=x, y=y, width=width, height=height)


def whole_map_view() -> IntRect:
    return MAP_RECT
