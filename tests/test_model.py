"""Tests for the panel document model: JSON keys, variants and loading."""

import json

import pytest
from pydantic import ValidationError

from builders import make_basic_panel
from verteiler.model import (
    COMPONENT_TYPES,
    FISchalter,
    LSSchalter,
    Verbraucher,
    Verteiler,
    dump_verteiler,
    find_supply,
    get_component,
    get_verbraucher,
    load_verteiler,
    to_document,
)


# ── Loading ──────────────────────────────────────────────────────────────


class TestLoadVerteiler:
    def test_sample_document(self, sample_path):
        panel = load_verteiler(sample_path)
        assert panel.id == "efh-ug"
        assert len(panel.komponenten) == 10
        assert len(panel.verbindungen) == 24
        assert find_supply(panel).schleifenimpedanz == pytest.approx(0.35)

    def test_variants_resolved_by_type(self, sample_path):
        panel = load_verteiler(sample_path)
        fi = get_component(panel, "fi1")
        assert isinstance(fi, FISchalter)
        assert fi.bemessungs_fehlerstrom == 30
        assert isinstance(get_component(panel, "ls3"), LSSchalter)
        assert get_component(panel, "ls3").polzahl == 3

    def test_unwrapped_document(self, tmp_path, sample_path):
        with open(sample_path) as f:
            data = json.load(f)["verteiler"]
        path = tmp_path / "plain.json"
        path.write_text(json.dumps(data))
        assert load_verteiler(path).id == "efh-ug"

    def test_unknown_component_type(self):
        with pytest.raises(ValidationError):
            Verteiler.model_validate({"id": "x", "komponenten": [{"type": "toaster", "id": "t"}]})

    def test_lookup_misses(self, basic_panel):
        assert get_component(basic_panel, "nope") is None
        assert get_verbraucher(basic_panel, "nope") is None


# ── Serialization ────────────────────────────────────────────────────────


class TestDocument:
    def test_camel_case_keys(self, basic_panel):
        doc = to_document(basic_panel)
        supply = doc["komponenten"][0]
        assert supply["kurzschlussStrom"] == 6
        assert doc["verbindungen"][0]["von"] == {"componentId": "S", "terminal": "OUT_L1"}
        assert doc["verbraucher"][0]["zugewieseneKomponente"] == "a1"

    def test_none_fields_omitted(self):
        doc = to_document(make_basic_panel(zs=None))
        assert "schleifenimpedanz" not in doc["komponenten"][0]
        assert "strom" not in doc["verbindungen"][0]

    def test_dump_and_reload(self, tmp_path, sample_path):
        panel = load_verteiler(sample_path)
        path = tmp_path / "out.json"
        dump_verteiler(panel, path)
        assert load_verteiler(path) == panel

    def test_snake_and_camel_input(self):
        a = Verbraucher(id="v", zugewiesene_komponente="a1")
        b = Verbraucher.model_validate({"id": "v", "zugewieseneKomponente": "a1"})
        assert a == b

    def test_snapshots_are_frozen(self, basic_panel):
        with pytest.raises(ValidationError):
            basic_panel.name = "changed"


def test_component_types_listed_once():
    assert len(COMPONENT_TYPES) == len(set(COMPONENT_TYPES)) == 13
