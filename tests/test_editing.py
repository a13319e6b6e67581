"""Tests for load assignment on outgoing terminals."""

import logging

from builders import make_load
from verteiler.editing import (
    add_verbraucher,
    assign_verbraucher,
    new_verbraucher,
    unassign_verbraucher,
)
from verteiler.model import Abgangsklemme, Position, get_component, get_verbraucher


def _with_second_terminal(panel):
    loads = list(panel.verbraucher) + [make_load("v2", name="Washer")]
    komponenten = list(panel.komponenten) + [
        Abgangsklemme(id="a2", name="Out 2", position=Position(rail=0, slot=10))
    ]
    return panel.model_copy(update={"verbraucher": loads, "komponenten": komponenten})


class TestAssign:
    def test_assign_to_free_terminal(self, basic_panel):
        panel = assign_verbraucher(_with_second_terminal(basic_panel), "v2", "a2")
        assert get_verbraucher(panel, "v2").zugewiesene_komponente == "a2"
        assert get_component(panel, "a2").zugewiesene_verbraucher == ["v2"]
        assert get_verbraucher(panel, "v1").zugewiesene_komponente == "a1"

    def test_evicts_previous_load(self, basic_panel):
        panel = assign_verbraucher(_with_second_terminal(basic_panel), "v2", "a1")
        assert get_verbraucher(panel, "v2").zugewiesene_komponente == "a1"
        assert get_verbraucher(panel, "v1").zugewiesene_komponente is None
        assert get_component(panel, "a1").zugewiesene_verbraucher == ["v2"]

    def test_move_between_terminals(self, basic_panel):
        panel = assign_verbraucher(_with_second_terminal(basic_panel), "v1", "a2")
        assert get_component(panel, "a1").zugewiesene_verbraucher == []
        assert get_component(panel, "a2").zugewiesene_verbraucher == ["v1"]

    def test_assign_to_breaker_clears_old_terminal(self, basic_panel):
        panel = assign_verbraucher(basic_panel, "v1", "ls1")
        assert get_verbraucher(panel, "v1").zugewiesene_komponente == "ls1"
        assert get_component(panel, "a1").zugewiesene_verbraucher == []

    def test_at_most_one_load_per_terminal(self, basic_panel):
        panel = _with_second_terminal(basic_panel)
        panel = assign_verbraucher(panel, "v2", "a1")
        panel = assign_verbraucher(panel, "v1", "a1")
        on_a1 = [v.id for v in panel.verbraucher if v.zugewiesene_komponente == "a1"]
        assert on_a1 == ["v1"]

    def test_unknown_ids(self, basic_panel, caplog):
        with caplog.at_level(logging.WARNING, logger="verteiler.editing"):
            assert assign_verbraucher(basic_panel, "nope", "a1") is basic_panel
            assert assign_verbraucher(basic_panel, "v1", "nope") is basic_panel
        assert "unknown id" in caplog.text

    def test_original_unchanged(self, basic_panel):
        assign_verbraucher(_with_second_terminal(basic_panel), "v2", "a1")
        assert get_verbraucher(basic_panel, "v1").zugewiesene_komponente == "a1"


class TestUnassign:
    def test_clears_assignment(self, basic_panel):
        panel = unassign_verbraucher(basic_panel, "v1")
        assert get_verbraucher(panel, "v1").zugewiesene_komponente is None
        assert get_component(panel, "a1").zugewiesene_verbraucher == []

    def test_unknown_load(self, basic_panel):
        assert unassign_verbraucher(basic_panel, "nope") is basic_panel


class TestNewVerbraucher:
    def test_catalog_defaults(self):
        v = new_verbraucher("v9", "waschmaschine", name="Washer")
        assert v.leistung == 2200
        assert v.spannung == 230
        assert v.phasen == ["L1"]
        assert v.zugewiesene_komponente is None

    def test_three_phase_type(self):
        v = new_verbraucher("v9", "herd")
        assert v.spannung == 400
        assert v.phasen == ["L1", "L2", "L3"]

    def test_fields_override_catalog(self):
        assert new_verbraucher("v9", "licht", leistung=60).leistung == 60

    def test_add_replaces_same_id(self, basic_panel):
        panel = add_verbraucher(basic_panel, new_verbraucher("v1", "licht", name="Hall"))
        assert [v.name for v in panel.verbraucher] == ["Hall"]
        panel = add_verbraucher(panel, new_verbraucher("v2", "licht"))
        assert [v.id for v in panel.verbraucher] == ["v1", "v2"]
