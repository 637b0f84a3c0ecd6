"""
Tests for render instruction parsing.

Run with: pytest tests/test_instructions.py -v
"""

import pytest

from tornmap.instructions import (
    InstructionError,
    merge_instructions,
    parse_hex_colour,
    parse_opacity,
    parse_render_instructions,
)
from tornmap.models import RenderInstruction
from tornmap.territories import TerritoryId


class TestParseHexColour:
    def test_valid(self):
        assert parse_hex_colour("#FF8000") == (255, 128, 0)
        assert parse_hex_colour("#00ff7f") == (0, 255, 127)

    @pytest.mark.parametrize("text", ["FF8000", "red", "#FFF", "#FF80000", "#GG0000", "#", ""])
    def test_invalid(self, text):
        with pytest.raises(InstructionError):
            parse_hex_colour(text)


class TestParseOpacity:
    @pytest.mark.parametrize("text,expected", [("0", 0.0), ("0.5", 0.5), ("1", 1.0), ("1.0", 1.0)])
    def test_valid(self, text, expected):
        assert parse_opacity(text) == expected

    @pytest.mark.parametrize("text", ["-0.1", "1.01", "abc", "", "nan"])
    def test_invalid(self, text):
        with pytest.raises(InstructionError):
            parse_opacity(text)


class TestParseRenderInstructions:
    def test_single_id(self):
        parsed = parse_render_instructions("#FF0000:0.5:XOD")
        assert parsed == {TerritoryId("XOD"): RenderInstruction(colour=(255, 0, 0), opacity=0.5)}

    def test_multiple_ids_share_instruction(self):
        parsed = parse_render_instructions("#00FF00:1:XOD,GVE,AAB")
        assert sorted(str(t) for t in parsed) == ["AAB", "GVE", "XOD"]
        assert len(set(parsed.values())) == 1

    @pytest.mark.parametrize(
        "spec",
        [
            "#FF0000",
            "#FF0000:0.5",
            "red:0.5:XOD",
            "#FF0000:2:XOD",
            "#FF0000:0.5:ZZZ",
            "#FF0000:0.5:XOD,",
            "#FF0000:0.5:XO",
            "#FF0000:0.5:",
        ],
    )
    def test_invalid_specs(self, spec):
        with pytest.raises(InstructionError):
            parse_render_instructions(spec)

    def test_unknown_id_message_names_it(self):
        with pytest.raises(InstructionError, match="ZZZ"):
            parse_render_instructions("#FF0000:0.5:XOD,ZZZ")


class TestMergeInstructions:
    def test_later_spec_wins(self):
        merged = merge_instructions(
            [
                parse_render_instructions("#FF0000:0.5:XOD,GVE"),
                parse_render_instructions("#0000FF:1:GVE"),
            ]
        )
        assert merged[TerritoryId("XOD")].colour == (255, 0, 0)
        assert merged[TerritoryId("GVE")] == RenderInstruction(colour=(0, 0, 255), opacity=1.0)

    def test_empty(self):
        assert merge_instructions([]) == {}
