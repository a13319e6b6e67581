"""Shared fixtures for the panel engine tests."""

import sys
from pathlib import Path

import pytest

# Ensure project root and the builders module are importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from builders import make_basic_panel, make_three_phase_panel  # noqa: E402
from verteiler.build_topology import index_verteiler  # noqa: E402
from verteiler.config import Settings  # noqa: E402
from verteiler.rule_checker import CheckContext  # noqa: E402

SAMPLES_DIR = Path(__file__).resolve().parent.parent / "samples"


@pytest.fixture
def basic_panel():
    return make_basic_panel()


@pytest.fixture
def three_phase_panel():
    return make_three_phase_panel()


@pytest.fixture
def sample_path():
    return SAMPLES_DIR / "einfamilienhaus.json"


@pytest.fixture
def make_ctx():
    """Build a CheckContext for a panel, with optional settings overrides."""

    def _make(panel, **overrides):
        return CheckContext(panel, index_verteiler(panel), Settings(**overrides))

    return _make
