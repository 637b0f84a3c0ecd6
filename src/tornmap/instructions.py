"""Parsing of `colour:opacity:id[,id...]` render instructions."""

from __future__ import annotations

from typing import Iterable, Mapping

from .models import RenderInstruction
from .territories import TerritoryId, TerritoryIdError


_EXPECTED_FORMAT = "Expected <colour>:<opacity>:<territory ids>"


class InstructionError(ValueError):
    """Raised for malformed colour, opacity or territory list input."""


def parse_hex_colour(text: str) -> tuple[int, int, int]:
    if not text.startswith("#"):
        raise InstructionError(f"invalid colour format '{text}'")
    if len(text) != 7:
        raise InstructionError(f"invalid hex colour '{text}'")
    try:
        return (int(text[1:3], 16), int(text[3:5], 16), int(text[5:7], 16))
    except ValueError as exc:
        raise InstructionError(f"invalid hex colour '{text}': {exc}") from exc


def parse_opacity(text: str) -> float:
    try:
        opacity = float(text)
    except ValueError as exc:
        raise InstructionError(f"invalid opacity '{text}': {exc}") from exc
    if not 0.0 <= opacity <= 1.0:
        raise InstructionError(f"invalid opacity {opacity}. Needs to be a value between 0.0 and 1.0")
    return opacity


def parse_render_instructions(spec: str) -> dict[TerritoryId, RenderInstruction]:
    """Expand one instruction spec into a per-territory mapping."""
    colour_text, sep, rest = spec.partition(":")
    if not sep:
        raise InstructionError(f"invalid rendering instruction '{spec}'. {_EXPECTED_FORMAT}")
    colour = parse_hex_colour(colour_text)

    opacity_text, sep, ids_text = rest.partition(":")
    if not sep:
        raise InstructionError(f"invalid rendering instruction '{spec}'. {_EXPECTED_FORMAT}")
    instruction = RenderInstruction(colour=colour, opacity=parse_opacity(opacity_text))

    out: dict[TerritoryId, RenderInstruction] = {}
    for raw_id in ids_text.split(","):
        try:
            territory = TerritoryId(raw_id)
        except TerritoryIdError as exc:
            raise InstructionError(f"invalid territory '{raw_id}' in '{spec}': {exc}") from exc
        out[territory] = instruction
    return out


def merge_instructions(
    groups: Iterable[Mapping[TerritoryId, RenderInstruction]],
) -> dict[TerritoryId, RenderInstruction]:
    """Combine repeated specs; a later spec wins for the same territory."""
    merged: dict[TerritoryId, RenderInstruction] = {}
    for group in groups:
        merged.update(group)
    return merged
