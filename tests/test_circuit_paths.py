"""Tests for component paths, series analysis and selectivity."""

from builders import make_breaker_chain, make_panel, make_supply, make_wire
from verteiler.build_topology import index_verteiler
from verteiler.circuit_paths import (
    are_in_parallel,
    are_in_series,
    find_all_circuit_paths,
    find_all_paths,
    find_path,
    find_series_components,
    find_series_protection,
    find_series_rcds,
    find_wire_path,
    get_circuit_path_info,
    get_circuit_structure_report,
)
from verteiler.model import Abgangsklemme, FISchalter, LSSchalter
from verteiler.selectivity import analyze_selectivity


# ── Helpers ─────────────────────────────────────────────────────────


def _make_jumpered():
    """Two breakers whose inputs are jumpered to the same supply output."""
    komponenten = [
        make_supply(),
        LSSchalter(id="ls_a", name="B16 a"),
        LSSchalter(id="ls_b", name="B16 b"),
        Abgangsklemme(id="a1", name="Out a"),
        Abgangsklemme(id="a2", name="Out b"),
    ]
    verbindungen = [
        make_wire("w1", ("S", "OUT_L1"), ("ls_a", "IN_L1"), "L1"),
        make_wire("jumper", ("ls_a", "IN_L1"), ("ls_b", "IN_L1"), "L1"),
        make_wire("w2", ("ls_a", "OUT_L1"), ("a1", "IN_L1"), "L1"),
        make_wire("w3", ("ls_b", "OUT_L1"), ("a2", "IN_L1"), "L1"),
    ]
    return make_panel(komponenten, verbindungen)


# ── Paths ───────────────────────────────────────────────────────────


class TestPaths:
    def test_find_path_shortest(self, basic_panel):
        topo = index_verteiler(basic_panel)
        result = find_path(topo, "ls1", "S")
        assert [c.id for c in result.components] == ["ls1", "fi1", "S"]
        assert [w.id for w in result.wires] == ["w5", "w1"]

    def test_find_path_unknown_start(self, basic_panel):
        topo = index_verteiler(basic_panel)
        assert find_path(topo, "nope", "S") is None

    def test_find_all_paths(self, basic_panel):
        topo = index_verteiler(basic_panel)
        paths = find_all_paths(topo, "a1", "S")
        # direct PE wire plus every route through the RCD
        assert any(len(p.components) == 2 for p in paths)
        assert all(p.components[0].id == "a1" and p.components[-1].id == "S" for p in paths)
        for p in paths:
            ids = [c.id for c in p.components]
            assert len(ids) == len(set(ids))

    def test_find_wire_path_ordered_from_start(self, basic_panel):
        topo = index_verteiler(basic_panel)
        wires = find_wire_path(topo, "S", "ls1")
        assert wires[0].von.component_id == "S"
        assert wires[-1].nach.component_id == "ls1"

    def test_circuit_paths_ordered_from_supply(self, basic_panel):
        topo = index_verteiler(basic_panel)
        paths = find_all_circuit_paths(topo)
        assert len(paths) == 1
        assert paths[0].components[0].id == "S"
        assert paths[0].end_component.id == "a1"

    def test_circuit_path_info(self):
        topo = index_verteiler(make_breaker_chain(20, 10))
        info = get_circuit_path_info(topo)[0]
        assert info["endpoint_id"] == "a1"
        assert info["protective_devices"] == ["B20", "B10"]
        assert info["is_connected"]

    def test_structure_report(self, basic_panel):
        text = get_circuit_structure_report(basic_panel)
        assert "=== WIRING STRUCTURE: Test panel ===" in text
        assert "Supply: Supply" in text
        assert "--- Path 1: Out 1 (abgangsklemme) ---" in text

    def test_structure_report_lists_devices(self):
        text = get_circuit_structure_report(make_breaker_chain(20, 10))
        assert "Protective devices: B20 -> B10" in text

    def test_structure_report_without_supply(self):
        panel = make_panel([LSSchalter(id="ls")])
        assert "WARNING: no supply terminal found" in get_circuit_structure_report(panel)


# ── Series analysis ─────────────────────────────────────────────────


class TestSeries:
    def test_chain_is_series(self):
        topo = index_verteiler(make_breaker_chain(20, 10))
        assert [c.id for c in find_series_components(topo, "a1")] == ["down", "up"]
        assert [c.id for c in find_series_protection(topo, "down")] == ["up"]

    def test_rcds_on_path(self, basic_panel):
        topo = index_verteiler(basic_panel)
        assert [c.id for c in find_series_rcds(topo, "a1")] == ["fi1"]

    def test_jumpered_breakers_not_in_series(self):
        topo = index_verteiler(_make_jumpered())
        assert [c.id for c in find_series_components(topo, "ls_b")] == []
        assert [c.id for c in find_series_components(topo, "a2")] == ["ls_b"]
        assert [c.id for c in find_series_components(topo, "a1")] == ["ls_a"]

    def test_jumpered_breakers_no_selectivity_pair(self):
        assert analyze_selectivity(index_verteiler(_make_jumpered())) == []

    def test_no_supply_no_series(self):
        panel = make_panel([LSSchalter(id="ls"), Abgangsklemme(id="a1")])
        topo = index_verteiler(panel)
        assert find_series_components(topo, "a1") == []
        assert not are_in_series(topo, "ls", "a1")

    def test_component_level_series_and_parallel(self):
        topo = index_verteiler(make_breaker_chain(20, 10))
        assert are_in_series(topo, "up", "down")
        assert not are_in_parallel(topo, "up", "down")

    def test_unconnected_is_neither(self):
        panel = make_panel([make_supply(), LSSchalter(id="x"), LSSchalter(id="y")])
        topo = index_verteiler(panel)
        assert not are_in_series(topo, "x", "y")
        assert not are_in_parallel(topo, "x", "y")


# ── Selectivity ─────────────────────────────────────────────────────


class TestSelectivity:
    def test_ratio_1_6_passes(self):
        assert analyze_selectivity(index_verteiler(make_breaker_chain(16, 10))) == []

    def test_ratio_below_1_6_warns(self):
        violations = analyze_selectivity(index_verteiler(make_breaker_chain(16, 11)))
        assert len(violations) == 1
        v = violations[0]
        assert v["kind"] == "ls"
        assert v["severity"] == "warning"
        assert v["upstream"].id == "up" and v["downstream"].id == "down"

    def test_ratio_below_1_is_error(self):
        violations = analyze_selectivity(index_verteiler(make_breaker_chain(10, 16)))
        assert violations[0]["severity"] == "error"

    def test_rcd_delay_order(self):
        komponenten = [
            make_supply(),
            FISchalter(id="fi_up", name="RCD up", polzahl=2, verzoegerung="Standard"),
            FISchalter(id="fi_down", name="RCD down", polzahl=2, verzoegerung="S"),
            Abgangsklemme(id="a1"),
        ]
        verbindungen = [
            make_wire("w1", ("S", "OUT_L1"), ("fi_up", "IN_L1"), "L1"),
            make_wire("w2", ("fi_up", "OUT_L1"), ("fi_down", "IN_L1"), "L1"),
            make_wire("w3", ("fi_down", "OUT_L1"), ("a1", "IN_L1"), "L1"),
        ]
        violations = analyze_selectivity(index_verteiler(make_panel(komponenten, verbindungen)))
        assert [(v["kind"], v["severity"]) for v in violations] == [("fi", "error")]

    def test_equal_delay_warns(self):
        komponenten = [
            make_supply(),
            FISchalter(id="fi_up", polzahl=2, verzoegerung="S"),
            FISchalter(id="fi_down", polzahl=2, verzoegerung="S"),
        ]
        verbindungen = [
            make_wire("w1", ("S", "OUT_L1"), ("fi_up", "IN_L1"), "L1"),
            make_wire("w2", ("fi_up", "OUT_L1"), ("fi_down", "IN_L1"), "L1"),
        ]
        violations = analyze_selectivity(index_verteiler(make_panel(komponenten, verbindungen)))
        assert [v["severity"] for v in violations] == ["warning"]
