"""
Tests for territory ids and the embedded registry.

Run with: pytest tests/test_territories.py -v
"""

import dataclasses

import pytest

from tornmap.geometry import build_path
from tornmap.models import PathSegment, SegmentKind
from tornmap.territories import (
    DoesNotExist,
    InvalidEncoding,
    InvalidLength,
    TerritoryId,
    TerritoryIdError,
    all_territory_ids,
    build_registry,
    lookup,
    territory_registry,
)


KNOWN_CODES = ["AAB", "CRN", "EDG", "GVE", "LKE", "NRT", "WST", "XOD"]


class TestTerritoryId:
    """Tests for TerritoryId construction and value semantics."""

    @pytest.mark.parametrize("code", KNOWN_CODES)
    def test_known_codes_construct(self, code):
        """Every registry key is a valid id."""
        territory = TerritoryId(code)
        assert str(territory) == code

    @pytest.mark.parametrize("code", ["ABC", "ZZZ", "XOE", "xod", "Xod"])
    def test_unknown_codes_do_not_exist(self, code):
        """Well-formed codes missing from the registry fail, case-sensitively."""
        with pytest.raises(DoesNotExist, match="does not exist"):
            TerritoryId(code)

    @pytest.mark.parametrize("code,length", [("", 0), ("X", 1), ("XO", 2), ("XODX", 4), ("XOD ", 4)])
    def test_wrong_length(self, code, length):
        """Length is checked before registry membership."""
        with pytest.raises(InvalidLength) as excinfo:
            TerritoryId(code)
        assert excinfo.value.length == length

    @pytest.mark.parametrize("code", ["XÖD", "日本語", "é", "XODé"])
    def test_non_ascii_rejected(self, code):
        """Non-ASCII input fails on encoding regardless of its length."""
        with pytest.raises(InvalidEncoding):
            TerritoryId(code)

    def test_errors_are_value_errors(self):
        """All id validation failures share one catchable base."""
        for code in ("ZZZ", "XO", "XÖD"):
            with pytest.raises(TerritoryIdError):
                TerritoryId(code)
            with pytest.raises(ValueError):
                TerritoryId(code)

    def test_equality_and_hash(self):
        """Ids compare and hash by their code."""
        assert TerritoryId("XOD") == TerritoryId("XOD")
        assert TerritoryId("XOD") != TerritoryId("GVE")
        assert len({TerritoryId("XOD"), TerritoryId("XOD"), TerritoryId("GVE")}) == 2

    def test_immutable(self):
        """Ids cannot be changed after construction."""
        territory = TerritoryId("XOD")
        with pytest.raises(dataclasses.FrozenInstanceError):
            territory.code = "GVE"

    def test_sortable(self):
        """Ids order by code."""
        ids = [TerritoryId("XOD"), TerritoryId("AAB"), TerritoryId("GVE")]
        assert [str(t) for t in sorted(ids)] == ["AAB", "GVE", "XOD"]

    def test_non_string_rejected(self):
        with pytest.raises(TypeError):
            TerritoryId(123)


class TestRegistry:
    """Tests for the embedded territory registry."""

    def test_registry_keys(self):
        """Registry holds exactly the embedded dataset."""
        assert sorted(territory_registry()) == KNOWN_CODES

    def test_registry_loaded_once(self):
        """Repeated access returns the same cached mapping."""
        assert territory_registry() is territory_registry()

    def test_registry_is_read_only(self):
        """The registry cannot be mutated at runtime."""
        registry = territory_registry()
        with pytest.raises(TypeError):
            registry["NEW"] = registry["XOD"]

    @pytest.mark.parametrize("code", KNOWN_CODES)
    def test_lookup_returns_drawable_shape(self, code):
        """Lookup is total over valid ids and every shape builds a path."""
        info = lookup(TerritoryId(code))
        assert info.shape
        assert info.shape[0].kind is SegmentKind.MOVE_TO
        assert build_path(info.shape) is not None

    def test_xod_metadata(self):
        """Metadata fields are carried through unchanged."""
        info = TerritoryId("XOD").info
        assert info.sector == 1
        assert info.db_id == 1
        assert info.slots == 3
        assert info.neighbors == (TerritoryId("GVE"), TerritoryId("AAB"))

    def test_territory_without_neighbors(self):
        assert TerritoryId("EDG").info.neighbors == ()

    def test_all_territory_ids_sorted(self):
        assert [str(t) for t in all_territory_ids()] == KNOWN_CODES


class TestBuildRegistry:
    """Tests for dataset validation."""

    def _entry(self, **overrides):
        entry = {
            "sector": 2,
            "db_id": 7,
            "slots": 1,
            "neighbors": ["QQQ"],
            "shape": [["M", 0, 0], ["L", 10, 0], ["L", 10, 10], ["Z"]],
        }
        entry.update(overrides)
        return entry

    def test_parses_entry(self):
        """Shapes become typed segments; neighbor codes are kept verbatim."""
        registry = build_registry({"QRS": self._entry()})
        info = registry["QRS"]
        assert info.neighbor_codes == ("QQQ",)
        assert info.shape[1] == PathSegment(SegmentKind.LINE_TO, (10.0, 0.0))
        assert info.shape[-1] == PathSegment(SegmentKind.CLOSE)

    def test_missing_neighbors_defaults_empty(self):
        entry = self._entry()
        del entry["neighbors"]
        assert build_registry({"QRS": entry})["QRS"].neighbor_codes == ()

    @pytest.mark.parametrize("key", ["QR", "QRST", "QRÉ"])
    def test_rejects_bad_keys(self, key):
        with pytest.raises(ValueError, match="Invalid territory key"):
            build_registry({key: self._entry()})

    def test_rejects_wrong_arity(self):
        with pytest.raises(ValueError, match="shape\\[1\\]"):
            build_registry({"QRS": self._entry(shape=[["M", 0, 0], ["L", 1]])})

    def test_rejects_unknown_command(self):
        with pytest.raises(ValueError, match="Unknown path command"):
            build_registry({"QRS": self._entry(shape=[["M", 0, 0], ["A", 1, 1, 0, 0, 1, 2, 2]])})

    def test_rejects_missing_metadata(self):
        entry = self._entry()
        del entry["db_id"]
        with pytest.raises(ValueError, match="QRS.db_id"):
            build_registry({"QRS": entry})
