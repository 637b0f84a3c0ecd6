"""Territory identifiers and the embedded, read-only territory registry."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from importlib import resources
from types import MappingProxyType
from typing import Any, Mapping

from .models import PathSegment


_LOGGER = logging.getLogger("tornmap.territories")

TERRITORY_DATA_RESOURCE = "territories.json"
ID_LENGTH = 3


class TerritoryIdError(ValueError):
    """Raised when a string cannot be turned into a `TerritoryId`."""


class InvalidEncoding(TerritoryIdError):
    def __init__(self, value: str) -> None:
        super().__init__(f"ID has invalid encoding: {value!r}")
        self.value = value


class InvalidLength(TerritoryIdError):
    def __init__(self, length: int) -> None:
        super().__init__(f"InvalidLength: {length}")
        self.length = length


class DoesNotExist(TerritoryIdError):
    def __init__(self, value: str) -> None:
        super().__init__(f"ID does not exist: {value!r}")
        self.value = value


def _check_code_shape(value: str) -> None:
    if not value.isascii():
        raise InvalidEncoding(value)
    length = len(value.encode("ascii"))
    if length != ID_LENGTH:
        raise InvalidLength(length)


@dataclass(frozen=True, slots=True, order=True)
class TerritoryId:
    """Three-letter territory code that is known to exist in the registry."""

    code: str

    def __post_init__(self) -> None:
        if not isinstance(self.code, str):
            raise TypeError(f"TerritoryId expects a string, got {type(self.code).__name__}")
        _check_code_shape(self.code)
        if self.code not in territory_registry():
            raise DoesNotExist(self.code)

    def __str__(self) -> str:
        return self.code

    @property
    def info(self) -> TerritoryInfo:
        return lookup(self)


@dataclass(frozen=True, slots=True)
class TerritoryInfo:
    sector: int
    db_id: int
    slots: int
    shape: tuple[PathSegment, ...]
    neighbor_codes: tuple[str, ...] = field(default_factory=tuple)

    @property
    def neighbors(self) -> tuple[TerritoryId, ...]:
        return tuple(TerritoryId(code) for code in self.neighbor_codes)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], code: str) -> TerritoryInfo:
        sector = _int(raw.get("sector"), f"{code}.sector")
        db_id = _int(raw.get("db_id"), f"{code}.db_id")
        slots = _int(raw.get("slots"), f"{code}.slots")

        shape_raw = raw.get("shape")
        if not isinstance(shape_raw, list):
            raise ValueError(f"Expected list for '{code}.shape'")
        shape: list[PathSegment] = []
        for idx, item in enumerate(shape_raw):
            if not isinstance(item, list):
                raise ValueError(f"Expected list for '{code}.shape[{idx}]'")
            try:
                shape.append(PathSegment.from_sequence(item))
            except ValueError as exc:
                raise ValueError(f"Invalid '{code}.shape[{idx}]': {exc}") from exc

        neighbors_raw = raw.get("neighbors") or []
        if not isinstance(neighbors_raw, list):
            raise ValueError(f"Expected list for '{code}.neighbors'")
        neighbor_codes: list[str] = []
        for idx, item in enumerate(neighbors_raw):
            if not isinstance(item, str):
                raise ValueError(f"Expected string for '{code}.neighbors[{idx}]'")
            neighbor_codes.append(item)

        return cls(
            sector=sector,
            db_id=db_id,
            slots=slots,
            shape=tuple(shape),
            neighbor_codes=tuple(neighbor_codes),
        )


def _int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def build_registry(raw: Mapping[str, Any]) -> Mapping[str, TerritoryInfo]:
    """Validate a decoded territory document into a read-only mapping."""
    table: dict[str, TerritoryInfo] = {}
    for code, value in raw.items():
        if not isinstance(code, str):
            raise ValueError(f"Territory key must be a string, got {code!r}")
        try:
            _check_code_shape(code)
        except TerritoryIdError as exc:
            raise ValueError(f"Invalid territory key {code!r}: {exc}") from exc
        if not isinstance(value, Mapping):
            raise ValueError(f"Territory entry for {code} must be a mapping")
        table[code] = TerritoryInfo.from_mapping(value, code)
    return MappingProxyType(table)


@lru_cache(maxsize=1)
def territory_registry() -> Mapping[str, TerritoryInfo]:
    """Parse the embedded dataset once per process."""
    resource = resources.files("tornmap") / "data" / TERRITORY_DATA_RESOURCE
    raw = json.loads(resource.read_text(encoding="utf-8"))
    if not isinstance(raw, Mapping):
        raise ValueError("Territory dataset must be a JSON object keyed by territory id")
    registry = build_registry(raw)
    _LOGGER.debug("Loaded %d territories from embedded dataset", len(registry))
    return registry


def lookup(territory: TerritoryId) -> TerritoryInfo:
    try:
        return territory_registry()[territory.code]
    except KeyError as exc:
        raise LookupError(f"Registry has no entry for validated id {territory.code}") from exc


def all_territory_ids() -> tuple[TerritoryId, ...]:
    return tuple(TerritoryId(code) for code in sorted(territory_registry()))
