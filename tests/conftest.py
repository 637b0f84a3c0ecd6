"""Shared fixtures: a synthetic tile bundle whose pixels encode their map position."""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from tornmap.models import TILE_COLUMNS, TILE_HEIGHT, TILE_ROWS, TILE_WIDTH
from tornmap.tiles import X4_SIZE, X4_TILE_NAME, TileStore, tile_cell_size, tile_name


def map_pixels(x, y, w, h):
    """Expected grayscale values of the map rectangle (x, y, w, h)."""
    xs = np.arange(x, x + w, dtype=np.int64)[None, :]
    ys = np.arange(y, y + h, dtype=np.int64)[:, None]
    return ((xs + 3 * ys) % 251).astype(np.uint8)


def x4_pixels(x, y, w, h):
    xs = np.arange(x, x + w, dtype=np.int64)[None, :]
    ys = np.arange(y, y + h, dtype=np.int64)[:, None]
    return ((5 * xs + 2 * ys) % 256).astype(np.uint8)


def write_gray_tiff(path, pixels):
    Image.fromarray(pixels).save(path, format="TIFF")


@pytest.fixture(scope="session")
def tile_dir(tmp_path_factory) -> Path:
    root = tmp_path_factory.mktemp("map_tiles")
    for row in range(1, TILE_ROWS + 1):
        for col in range(1, TILE_COLUMNS + 1):
            width, height = tile_cell_size(col, row)
            pixels = map_pixels((col - 1) * TILE_WIDTH, (row - 1) * TILE_HEIGHT, width, height)
            write_gray_tiff(root / tile_name(col, row), pixels)
    write_gray_tiff(root / X4_TILE_NAME, x4_pixels(0, 0, X4_SIZE[0], X4_SIZE[1]))
    return root


@pytest.fixture(scope="session")
def tile_store(tile_dir) -> TileStore:
    return TileStore(tile_dir)


@pytest.fixture
def config_file(tmp_path, tile_dir) -> Path:
    path = tmp_path / "tornmap.yaml"
    path.write_text(
        f"paths:\n  map_tiles: {str(tile_dir)!r}\n",
        encoding="utf-8",
    )
    return path
