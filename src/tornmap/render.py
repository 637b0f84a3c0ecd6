"""Territory overlay rendering and compositing over the map background."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import numpy as np
from PIL import Image

from .geometry import path_for_territory
from .models import IntRect, RenderInstruction, RenderScale
from .territories import TerritoryId
from .tiles import TileStore, load_map_x4, load_view


_LOGGER = logging.getLogger("tornmap.render")

_POINTS_PER_INCH = 72.0


@dataclass(frozen=True, slots=True)
class OverlayStyle:
    stroke_width: float = 4.0
    antialiased: bool = False
    dpi: int = 100


@dataclass(frozen=True, slots=True)
class ShapeDraw:
    territory: TerritoryId
    fill: RenderInstruction | None
    stroke: RenderInstruction | None


def plan_draws(
    fill: Mapping[TerritoryId, RenderInstruction],
    stroke: Mapping[TerritoryId, RenderInstruction],
) -> tuple[ShapeDraw, ...]:
    """Order shapes bottom to top: filled shapes first, then border-only ones.

    A territory in both mappings is drawn once, filled and stroked. Each
    group is sorted by id so overlapping shapes stack the same on every run.
    """
    remaining = dict(stroke)
    draws = [
        ShapeDraw(territory=territory, fill=fill[territory], stroke=remaining.pop(territory, None))
        for territory in sorted(fill)
    ]
    draws.extend(
        ShapeDraw(territory=territory, fill=None, stroke=remaining[territory])
        for territory in sorted(remaining)
    )
    return tuple(draws)


def rasterize_shapes(
    viewport: IntRect,
    draws: Sequence[ShapeDraw],
    size: tuple[int, int],
    style: OverlayStyle,
) -> Image.Image:
    """Rasterize the draw plan with the viewport mapped onto `size` pixels."""
    plt, path_patch = _require_matplotlib()
    width_px, height_px = size
    dpi = style.dpi
    line_width_pt = style.stroke_width * (width_px / viewport.width) * _POINTS_PER_INCH / dpi

    fig = plt.figure(figsize=(width_px / dpi, height_px / dpi), dpi=dpi)
    try:
        fig.patch.set_facecolor("white")
        fig.patch.set_alpha(0.0)
        ax = fig.add_axes((0.0, 0.0, 1.0, 1.0))
        ax.set_axis_off()
        ax.set_facecolor((1.0, 1.0, 1.0, 0.0))
        ax.set_xlim(viewport.x, viewport.right)
        # map y grows downwards
        ax.set_ylim(viewport.bottom, viewport.y)

        for zorder, draw in enumerate(draws, start=1):
            path = path_for_territory(draw.territory)
            if path is None:
                _LOGGER.warning("Territory %s has no drawable shape; skipped", draw.territory)
                continue
            ax.add_patch(
                path_patch(
                    path,
                    fill=draw.fill is not None,
                    facecolor=draw.fill.rgba() if draw.fill is not None else "none",
                    edgecolor=draw.stroke.rgba() if draw.stroke is not None else "none",
                    linewidth=line_width_pt if draw.stroke is not None else 0.0,
                    joinstyle="miter",
                    capstyle="butt",
                    antialiased=style.antialiased,
                    zorder=zorder,
                )
            )

        fig.canvas.draw()
        rgba = np.asarray(fig.canvas.buffer_rgba(), dtype=np.uint8).copy()
    finally:
        plt.close(fig)

    shapes = Image.fromarray(rgba)
    if shapes.size != size:
        # figure sizes go through inches and may round one pixel short
        shapes = shapes.resize(size, Image.Resampling.NEAREST)
    return shapes


def load_background(
    viewport: IntRect,
    scale: RenderScale,
    store: TileStore | None = None,
) -> Image.Image:
    if scale is RenderScale.X1:
        return load_view(viewport, store=store)
    scaled = viewport.scaled_down(scale.factor)
    return load_map_x4(store=store).crop(
        (scaled.x, scaled.y, scaled.x + scaled.width, scaled.y + scaled.height)
    )


def render_territories(
    viewport: IntRect,
    fill: Mapping[TerritoryId, RenderInstruction],
    stroke: Mapping[TerritoryId, RenderInstruction],
    scale: RenderScale = RenderScale.X1,
    *,
    style: OverlayStyle | None = None,
    store: TileStore | None = None,
) -> Image.Image:
    """Render territory shapes over the map background as an RGBA image."""
    style = style or OverlayStyle()
    size = (viewport.width // scale.factor, viewport.height // scale.factor)
    if size[0] < 1 or size[1] < 1:
        raise ValueError(
            f"Viewport {viewport.width}x{viewport.height} is empty at scale x{scale.factor}"
        )

    draws = plan_draws(fill, stroke)
    _LOGGER.debug(
        "Rendering %d shapes into %dx%d at x%d (viewport %s)",
        len(draws),
        size[0],
        size[1],
        scale.factor,
        viewport,
    )
    shapes = rasterize_shapes(viewport, draws, size, style)
    background = load_background(viewport, scale, store=store).convert("RGBA")
    return Image.alpha_composite(background, shapes)


def _require_matplotlib() -> tuple[Any, Any]:
    try:
        import matplotlib

        matplotlib.use("Agg", force=False)
        import matplotlib.pyplot as plt
        from matplotlib.patches import PathPatch
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for overlay rendering") from exc
    return (plt, PathPatch)
