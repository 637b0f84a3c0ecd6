"""Embedded map tile bundle and rectangle stitching across tile boundaries."""

from __future__ import annotations

import io
import logging
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path

from PIL import Image

from .models import (
    MAP_HEIGHT,
    MAP_WIDTH,
    TILE_COLUMNS,
    TILE_HEIGHT,
    TILE_ROWS,
    TILE_WIDTH,
    IntRect,
)


_LOGGER = logging.getLogger("tornmap.tiles")

X4_TILE_NAME = "map_x4.tiff"
X4_SIZE = (MAP_WIDTH // 4, MAP_HEIGHT // 4)


class TileStoreError(RuntimeError):
    """A tile is missing from the bundle or is not a usable grayscale image."""


def tile_name(col: int, row: int) -> str:
    """Bundle name of a 1-indexed grid cell; the column comes first."""
    return f"map_{col}_{row}.tiff"


def tile_cell_size(col: int, row: int) -> tuple[int, int]:
    """Map area covered by a grid cell; the last column and row are trimmed."""
    if not 1 <= col <= TILE_COLUMNS or not 1 <= row <= TILE_ROWS:
        raise TileStoreError(f"Tile ({col}, {row}) is outside the {TILE_COLUMNS}x{TILE_ROWS} grid")
    width = min(TILE_WIDTH, MAP_WIDTH - (col - 1) * TILE_WIDTH)
    height = min(TILE_HEIGHT, MAP_HEIGHT - (row - 1) * TILE_HEIGHT)
    return (width, height)


def default_tile_root() -> Traversable:
    return resources.files("tornmap") / "static" / "map_tiles"


class TileStore:
    """Read-only, name-addressed access to the tile bundle."""

    def __init__(self, root: Traversable | Path | None = None) -> None:
        self.root = root if root is not None else default_tile_root()

    def read_bytes(self, name: str) -> bytes:
        resource = self.root / name
        if not resource.is_file():
            raise TileStoreError(f"Map tile '{name}' is not part of the tile bundle at {self.root}")
        return resource.read_bytes()

    def open_gray(self, name: str, min_size: tuple[int, int]) -> Image.Image:
        data = self.read_bytes(name)
        try:
            with Image.open(io.BytesIO(data)) as image:
                image.load()
                tile = image.copy()
        except OSError as exc:
            raise TileStoreError(f"Map tile '{name}' could not be decoded: {exc}") from exc
        if tile.mode != "L":
            raise TileStoreError(f"Map tile '{name}' has mode {tile.mode}, expected 8-bit grayscale (L)")
        if tile.width < min_size[0] or tile.height < min_size[1]:
            raise TileStoreError(
                f"Map tile '{name}' is {tile.width}x{tile.height}, "
                f"expected at least {min_size[0]}x{min_size[1]}"
            )
        return tile

    def tile(self, col: int, row: int) -> Image.Image:
        name = tile_name(col, row)
        _LOGGER.debug("Decoding tile %s", name)
        return self.open_gray(name, tile_cell_size(col, row))


def _check_segment(x: int, y: int, w: int, h: int) -> None:
    if x < 0 or y < 0:
        raise ValueError(f"Segment origin must be non-negative, got ({x}, {y})")
    if w < 1 or h < 1:
        raise ValueError(f"Segment size must be at least 1x1, got {w}x{h}")
    if x + w > MAP_WIDTH or y + h > MAP_HEIGHT:
        raise ValueError(
            f"Segment ({x}, {y}, {w}x{h}) extends past the {MAP_WIDTH}x{MAP_HEIGHT} map"
        )


def load_segment(x: int, y: int, w: int, h: int, store: TileStore | None = None) -> Image.Image:
    """Materialize a map rectangle as one grayscale image.

    A cursor walks the rectangle row strip by row strip. Each step copies
    the part of the current tile that lies inside both the tile and the
    rectangle, then moves right, or wraps to the left edge of the rectangle
    once the right edge has been reached.
    """
    _check_segment(x, y, w, h)
    store = store or TileStore()
    image = Image.new("L", (w, h))
    cursor_x, cursor_y = x, y

    while cursor_y < y + h:
        col = cursor_x // TILE_WIDTH + 1
        row = cursor_y // TILE_HEIGHT + 1
        x_min = cursor_x % TILE_WIDTH
        y_min = cursor_y % TILE_HEIGHT
        width = min(x + w - cursor_x, TILE_WIDTH - x_min)
        height = min(y + h - cursor_y, TILE_HEIGHT - y_min)

        tile = store.tile(col, row)
        view = tile.crop((x_min, y_min, x_min + width, y_min + height))
        image.paste(view, (cursor_x - x, cursor_y - y))

        if cursor_x + width >= x + w:
            cursor_x, cursor_y = x, cursor_y + height
        else:
            cursor_x += width

    return image


def load_view(view: IntRect, store: TileStore | None = None) -> Image.Image:
    return load_segment(view.x, view.y, view.width, view.height, store=store)


def load_map_x4(store: TileStore | None = None) -> Image.Image:
    """Whole map pre-downscaled by 4 in both dimensions."""
    store = store or TileStore()
    return store.open_gray(X4_TILE_NAME, X4_SIZE)
