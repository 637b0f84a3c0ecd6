"""CLI entrypoint for tornmap."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from PIL import Image

from .config import AppConfig, load_config
from .geometry import (
    DegenerateShapeError,
    bounds_for_path,
    fit_view_box,
    path_for_territory,
    whole_map_view,
)
from .instructions import InstructionError, merge_instructions, parse_render_instructions
from .models import MAP_HEIGHT, MAP_WIDTH, RenderScale
from .render import OverlayStyle, render_territories
from .territories import TerritoryId, TerritoryIdError
from .tiles import TileStore, load_segment
from .util import setup_logging, write_image
from .validate import Validator, format_report_lines

LOGGER = logging.getLogger("tornmap.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tornmap",
        description="Render segments and territory views of the Torn map.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default=None, help="Path to YAML config (optional).")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    def add_output(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "-o",
            "--output-file",
            type=Path,
            default=None,
            help="File the resulting image is written to. Defaults to stdout.",
        )
        p.add_argument(
            "--format",
            choices=("png", "tiff"),
            default=None,
            help="Output image format. Defaults to the configured format (png).",
        )

    segment_p = subparsers.add_parser("map-segment", help="Render a grayscale rectangle of the map.")
    add_common(segment_p)
    add_output(segment_p)
    segment_p.add_argument(
        "-x",
        "--x-position",
        type=int,
        required=True,
        help="X position of the upper left corner of the selected rectangle.",
    )
    segment_p.add_argument(
        "-y",
        "--y-position",
        type=int,
        required=True,
        help="Y position of the upper left corner of the selected rectangle.",
    )
    x2_group = segment_p.add_mutually_exclusive_group(required=True)
    x2_group.add_argument(
        "--x2-position", type=int, help="X position of the lower right corner."
    )
    x2_group.add_argument("--width", type=int, help="Width of the selected rectangle.")
    y2_group = segment_p.add_mutually_exclusive_group(required=True)
    y2_group.add_argument(
        "--y2-position", type=int, help="Y position of the lower right corner."
    )
    y2_group.add_argument("--height", type=int, help="Height of the selected rectangle.")

    view_p = subparsers.add_parser(
        "territory-view",
        help="Render the map around a territory with filled/bordered territory overlays.",
    )
    add_common(view_p)
    add_output(view_p)
    view_p.add_argument("territory", help="Three letter territory id to frame.")
    view_p.add_argument(
        "-f",
        "--factor",
        type=float,
        default=None,
        help="Zoom factor; values below 1 show more surroundings. Default from config (1.0).",
    )
    view_p.add_argument(
        "-a",
        "--aspect-ratio",
        type=float,
        default=None,
        help="Width/height ratio of the view. Default from config (4/3).",
    )
    view_p.add_argument(
        "--whole-map",
        action="store_true",
        help="Render the whole map at quarter resolution instead of framing the territory.",
    )
    view_p.add_argument(
        "--fill",
        action="append",
        default=[],
        metavar="COLOUR:OPACITY:IDS",
        help="Fill territories, e.g. '#FF0000:0.5:XOD,GVE'. Can be repeated.",
    )
    view_p.add_argument(
        "--border",
        action="append",
        default=[],
        metavar="COLOUR:OPACITY:IDS",
        help="Draw territory borders, same format as --fill. Can be repeated.",
    )

    validate_p = subparsers.add_parser(
        "validate", help="Check the tile bundle and territory dataset."
    )
    add_common(validate_p)

    return parser


def _load_and_setup(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config)
    setup_logging(cfg.paths.log_file, verbose=args.verbose)
    return cfg


def _resolve_extent(start: int, end: int | None, size: int | None) -> int:
    if size is not None:
        return size
    assert end is not None
    return end - start


def _run_map_segment(cfg: AppConfig, args: argparse.Namespace) -> int:
    x = int(args.x_position)
    y = int(args.y_position)
    w = _resolve_extent(x, args.x2_position, args.width)
    h = _resolve_extent(y, args.y2_position, args.height)
    if not 0 <= x < MAP_WIDTH or not 0 <= y < MAP_HEIGHT:
        LOGGER.error("Position (%d, %d) is outside the %dx%d map.", x, y, MAP_WIDTH, MAP_HEIGHT)
        return 1

    store = TileStore(cfg.paths.map_tiles)
    try:
        image = load_segment(x, y, w, h, store=store)
    except ValueError as exc:
        LOGGER.error("Invalid map segment: %s", exc)
        return 1

    _write_output(cfg, args, image)
    LOGGER.info("Rendered map segment (%d, %d, %dx%d).", x, y, w, h)
    return 0


def _run_territory_view(cfg: AppConfig, args: argparse.Namespace) -> int:
    try:
        territory = TerritoryId(args.territory)
        fill = merge_instructions(parse_render_instructions(spec) for spec in args.fill)
        stroke = merge_instructions(parse_render_instructions(spec) for spec in args.border)
    except (TerritoryIdError, InstructionError) as exc:
        LOGGER.error("%s", exc)
        return 1

    if not fill and not stroke:
        fill = {territory: cfg.territory_view.highlight}

    if args.whole_map:
        viewport = whole_map_view()
        scale = RenderScale.X4
    else:
        factor = args.factor if args.factor is not None else cfg.territory_view.factor
        aspect_ratio = (
            args.aspect_ratio if args.aspect_ratio is not None else cfg.territory_view.aspect_ratio
        )
        path = path_for_territory(territory)
        if path is None:
            LOGGER.error("Territory %s has no drawable shape.", territory)
            return 1
        try:
            bbox = bounds_for_path(path, factor, aspect_ratio)
        except DegenerateShapeError as exc:
            LOGGER.error("Cannot frame territory %s: %s", territory, exc)
            return 1
        except ValueError as exc:
            LOGGER.error("%s", exc)
            return 1
        viewport = fit_view_box(bbox)
        scale = RenderScale.X1
        LOGGER.debug("Territory %s bounds %s fitted to %s", territory, bbox, viewport)

    style = OverlayStyle(
        stroke_width=cfg.render.stroke_width,
        antialiased=cfg.render.antialiased,
        dpi=cfg.render.dpi,
    )
    try:
        image = render_territories(
            viewport,
            fill,
            stroke,
            scale,
            style=style,
            store=TileStore(cfg.paths.map_tiles),
        )
    except ValueError as exc:
        LOGGER.error("Cannot render territory view: %s", exc)
        return 1

    _write_output(cfg, args, image)
    LOGGER.info(
        "Rendered territory view of %s (%d filled, %d bordered, viewport %dx%d at x%d).",
        territory,
        len(fill),
        len(stroke),
        viewport.width,
        viewport.height,
        scale.factor,
    )
    return 0


def _run_validate(cfg: AppConfig) -> int:
    report = Validator(cfg).run()
    for line in format_report_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _write_output(cfg: AppConfig, args: argparse.Namespace, image: Image.Image) -> None:
    fmt = args.format or cfg.output.format
    write_image(image, fmt, output_file=args.output_file)
    if args.output_file is not None:
        LOGGER.info("Image written to %s", args.output_file)


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    command = str(args.command)
    if command == "map-segment":
        return _run_map_segment(cfg, args)
    if command == "territory-view":
        return _run_territory_view(cfg, args)
    if command == "validate":
        return _run_validate(cfg)
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return _dispatch(args)


if __name__ == "__main__":
    raise SystemExit(main())
