"""Tests for the ampacity tables and engine settings."""

import json

import pytest

from verteiler import tables
from verteiler.config import Settings
from verteiler.tables import (
    TableStore,
    empfehle_querschnitt,
    get_max_strom,
    get_strombelastbarkeit,
)


# ── Ampacity lookups ─────────────────────────────────────────────────────


class TestStrombelastbarkeit:
    def test_builtin_values(self):
        store = TableStore("")
        assert store.source == "builtin"
        assert store.get_strombelastbarkeit(2.5, "kupfer", "C", 2) == 27
        assert store.get_strombelastbarkeit(2.5, "kupfer", "C", 3) == 24
        assert store.get_strombelastbarkeit(16, "aluminium", "B1", 2) == 60

    def test_missing_combinations(self):
        store = TableStore("")
        assert store.get_strombelastbarkeit(1.5, "aluminium", "C", 2) is None
        assert store.get_strombelastbarkeit(2.5, "aluminium", "D2", 2) is None
        assert store.get_strombelastbarkeit(2.5, "kupfer", "C", 4) is None

    def test_integer_cross_section(self):
        assert get_strombelastbarkeit(10, "kupfer", "A1", 2, store=TableStore("")) == 46

    def test_override_file(self, tmp_path):
        table = {"2": {"kupfer": {"2.5": {"C": 99}}}}
        (tmp_path / TableStore.FILE_NAME).write_text(json.dumps(table))
        store = TableStore(str(tmp_path))
        assert store.source.endswith(TableStore.FILE_NAME)
        assert store.get_strombelastbarkeit(2.5, "kupfer", "C", 2) == 99
        assert store.get_strombelastbarkeit(4, "kupfer", "C", 2) is None

    def test_directory_without_override(self, tmp_path):
        assert TableStore(str(tmp_path)).source == "builtin"

    def test_lookup_without_store_reads_current_settings(self, tmp_path, monkeypatch):
        (tmp_path / TableStore.FILE_NAME).write_text(json.dumps({"2": {"kupfer": {"2.5": {"C": 99}}}}))
        monkeypatch.setattr(tables.settings, "TABLE_DIR", str(tmp_path))
        assert get_strombelastbarkeit(2.5, "kupfer", "C", 2) == 99
        monkeypatch.setattr(tables.settings, "TABLE_DIR", "")
        assert get_strombelastbarkeit(2.5, "kupfer", "C", 2) == 27


class TestSimplifiedTable:
    def test_get_max_strom(self):
        assert get_max_strom(2.5) == 26
        assert get_max_strom(3) == 0

    @pytest.mark.parametrize(
        "strom, expected",
        [(10, 1.5), (16, 2.5), (40, 10), (500, 120)],
    )
    def test_empfehle_querschnitt(self, strom, expected):
        assert empfehle_querschnitt(strom) == expected


# ── Settings ─────────────────────────────────────────────────────────────


class TestSettings:
    def test_override(self):
        s = Settings(DEFAULT_LOOP_IMPEDANCE_OHM=1.2)
        assert s.DEFAULT_LOOP_IMPEDANCE_OHM == 1.2
        assert Settings.DEFAULT_LOOP_IMPEDANCE_OHM != 1.2

    def test_unknown_setting(self):
        with pytest.raises(AttributeError):
            Settings(NO_SUCH_SETTING=1)
