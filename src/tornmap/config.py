"""Typed configuration loader for the optional `tornmap.yaml`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, cast

import yaml

from .instructions import InstructionError, parse_hex_colour
from .models import RenderInstruction


_OUTPUT_FORMATS = ("png", "tiff")


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise ValueError(f"Expected float for '{field_name}'")


def _bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"Expected bool for '{field_name}'")
    return value


def _optional_path(value: Any, field_name: str, root_dir: Path) -> Path | None:
    if value is None:
        return None
    p = Path(_str(value, field_name))
    return p if p.is_absolute() else root_dir / p


@dataclass(frozen=True, slots=True)
class PathsConfig:
    map_tiles: Path | None = None
    log_file: Path | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> PathsConfig:
        return cls(
            map_tiles=_optional_path(raw.get("map_tiles"), "paths.map_tiles", root_dir),
            log_file=_optional_path(raw.get("log_file"), "paths.log_file", root_dir),
        )


@dataclass(frozen=True, slots=True)
class RenderConfig:
    stroke_width: float = 4.0
    antialiased: bool = False
    dpi: int = 100

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> RenderConfig:
        default = cls()
        stroke_width = _float(raw.get("stroke_width", default.stroke_width), "render.stroke_width")
        dpi = _int(raw.get("dpi", default.dpi), "render.dpi")
        if stroke_width <= 0:
            raise ValueError("render.stroke_width must be > 0")
        if dpi <= 0:
            raise ValueError("render.dpi must be > 0")
        return cls(
            stroke_width=stroke_width,
            antialiased=_bool(raw.get("antialiased", default.antialiased), "render.antialiased"),
            dpi=dpi,
        )


@dataclass(frozen=True, slots=True)
class TerritoryViewConfig:
    factor: float = 1.0
    aspect_ratio: float = 4.0 / 3.0
    highlight_colour: tuple[int, int, int] = (255, 0, 0)
    highlight_opacity: float = 0.5

    @property
    def highlight(self) -> RenderInstruction:
        return RenderInstruction(colour=self.highlight_colour, opacity=self.highlight_opacity)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> TerritoryViewConfig:
        default = cls()
        factor = _float(raw.get("factor", default.factor), "territory_view.factor")
        aspect_ratio = _float(
            raw.get("aspect_ratio", default.aspect_ratio), "territory_view.aspect_ratio"
        )
        opacity = _float(
            raw.get("highlight_opacity", default.highlight_opacity),
            "territory_view.highlight_opacity",
        )
        if factor <= 0:
            raise ValueError("territory_view.factor must be > 0")
        if aspect_ratio <= 0:
            raise ValueError("territory_view.aspect_ratio must be > 0")
        if not 0.0 <= opacity <= 1.0:
            raise ValueError("territory_view.highlight_opacity must be between 0.0 and 1.0")

        colour = default.highlight_colour
        colour_raw = raw.get("highlight_colour")
        if colour_raw is not None:
            try:
                colour = parse_hex_colour(_str(colour_raw, "territory_view.highlight_colour"))
            except InstructionError as exc:
                raise ValueError(f"territory_view.highlight_colour: {exc}") from exc

        return cls(
            factor=factor,
            aspect_ratio=aspect_ratio,
            highlight_colour=colour,
            highlight_opacity=opacity,
        )


@dataclass(frozen=True, slots=True)
class OutputConfig:
    format: str = "png"

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> OutputConfig:
        fmt = _str(raw.get("format", cls().format), "output.format").casefold()
        if fmt not in _OUTPUT_FORMATS:
            raise ValueError("output.format must be one of: " + ", ".join(_OUTPUT_FORMATS))
        return cls(format=fmt)


@dataclass(frozen=True, slots=True)
class AppConfig:
    source_path: Path | None = None
    paths: PathsConfig = PathsConfig()
    render: RenderConfig = RenderConfig()
    territory_view: TerritoryViewConfig = TerritoryViewConfig()
    output: OutputConfig = OutputConfig()

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> AppConfig:
        root_dir = source_path.parent.resolve()
        return cls(
            source_path=source_path.resolve(),
            paths=PathsConfig.from_mapping(_mapping(raw.get("paths"), "paths"), root_dir),
            render=RenderConfig.from_mapping(_mapping(raw.get("render"), "render")),
            territory_view=TerritoryViewConfig.from_mapping(
                _mapping(raw.get("territory_view"), "territory_view")
            ),
            output=OutputConfig.from_mapping(_mapping(raw.get("output"), "output")),
        )


def load_config(path: str | Path | None) -> AppConfig:
    """Load and validate the YAML config file; no path means built-in defaults."""
    if path is None:
        return AppConfig()
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
