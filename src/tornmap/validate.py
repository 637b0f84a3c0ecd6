"""Integrity checks for the embedded tile bundle and territory registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from .config import AppConfig
from .geometry import build_path, path_bounds
from .models import MAP_HEIGHT, MAP_WIDTH, TILE_COLUMNS, TILE_ROWS
from .territories import TerritoryInfo, territory_registry
from .tiles import TileStore, TileStoreError, load_map_x4


@dataclass(slots=True)
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


class Validator:
    """Checks that every asset the renderer may touch is present and sane."""

    def __init__(self, cfg: AppConfig, store: TileStore | None = None) -> None:
        self.cfg = cfg
        self.store = store or TileStore(cfg.paths.map_tiles)

    def run(self) -> ValidationReport:
        report = ValidationReport()
        self._validate_tiles(report)
        registry = self._load_registry(report)
        if registry:
            self._validate_shapes(report, registry)
            self._validate_neighbors(report, registry)
        return report

    def _validate_tiles(self, report: ValidationReport) -> None:
        loaded = 0
        for row in range(1, TILE_ROWS + 1):
            for col in range(1, TILE_COLUMNS + 1):
                try:
                    self.store.tile(col, row)
                except TileStoreError as exc:
                    report.add_error(str(exc))
                    continue
                loaded += 1
        report.add_info(f"Loaded {loaded}/{TILE_ROWS * TILE_COLUMNS} grid tiles from {self.store.root}")
        try:
            load_map_x4(self.store)
        except TileStoreError as exc:
            report.add_error(str(exc))

    def _load_registry(self, report: ValidationReport) -> Mapping[str, TerritoryInfo]:
        try:
            registry = territory_registry()
        except ValueError as exc:
            report.add_error(f"Failed parsing territory dataset: {exc}")
            return {}
        if not registry:
            report.add_error("Territory dataset is empty")
        else:
            report.add_info(f"Loaded {len(registry)} territories")
        return registry

    def _validate_shapes(self, report: ValidationReport, registry: Mapping[str, TerritoryInfo]) -> None:
        for code in sorted(registry):
            path = build_path(registry[code].shape)
            if path is None:
                report.add_error(f"{code}: shape does not produce a drawable path")
                continue
            bounds = path_bounds(path)
            if bounds.width <= 0 or bounds.height <= 0:
                report.add_error(f"{code}: shape bounds are degenerate ({bounds.width:g}x{bounds.height:g})")
            if (
                bounds.x < 0
                or bounds.y < 0
                or bounds.x + bounds.width > MAP_WIDTH
                or bounds.y + bounds.height > MAP_HEIGHT
            ):
                report.add_warning(f"{code}: shape extends past the map edge")

    def _validate_neighbors(
        self, report: ValidationReport, registry: Mapping[str, TerritoryInfo]
    ) -> None:
        for code in sorted(registry):
            for neighbor in registry[code].neighbor_codes:
                if neighbor not in registry:
                    report.add_error(f"{code}: unknown neighbor '{neighbor}'")
                elif code not in registry[neighbor].neighbor_codes:
                    report.add_warning(f"{code}: neighbor {neighbor} does not list {code} back")


def format_report_lines(report: ValidationReport) -> Iterable[str]:
    for info in report.infos:
        yield f"[INFO] {info}"
    for warning in report.warnings:
        yield f"[WARN] {warning}"
    for error in report.errors:
        yield f"[ERROR] {error}"
    if report.ok:
        yield "[OK] Validation completed with no errors."
