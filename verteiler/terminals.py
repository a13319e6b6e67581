"""Terminal names and internal IN/OUT bridges per component type."""

RCD_TYPES = frozenset({"fi-schalter", "fi-ls-kombi"})
OVERCURRENT_TYPES = frozenset(
    {"ls-schalter", "fi-ls-kombi", "nh-sicherung", "neozed-sicherung", "schraub-sicherung"}
)
CIRCUIT_BREAKER_TYPES = frozenset({"ls-schalter", "fi-ls-kombi"})
FUSE_TYPES = frozenset({"nh-sicherung", "neozed-sicherung", "schraub-sicherung"})
PROTECTIVE_TYPES = OVERCURRENT_TYPES | RCD_TYPES
HUB_TYPES = frozenset({"klemme", "sammelschiene"})

FUSE_LABELS = {
    "nh-sicherung": "NH fuse",
    "neozed-sicherung": "Neozed fuse",
    "schraub-sicherung": "screw-in fuse",
}


def _in_out(phases):
    terminals = []
    for phase in phases:
        terminals.extend([f"IN_{phase}", f"OUT_{phase}"])
    return terminals


def _bridges(phases):
    return [(f"IN_{phase}", f"OUT_{phase}") for phase in phases]


def _ls_phases(comp):
    if comp.polzahl == 1:
        return ["L1"]
    if comp.polzahl == 2:
        return ["L1", "N"]
    if comp.polzahl == 3:
        return ["L1", "L2", "L3"]
    return ["L1", "L2", "L3", "N"]


def _fi_phases(comp):
    return ["L1", "N"] if comp.polzahl == 2 else ["L1", "L2", "L3", "N"]


def _fi_ls_phases(comp):
    return ["L1", "N"] if comp.polzahl in (1, 2) else ["L1", "L2", "L3", "N"]


def _neozed_phases(comp):
    return ["L1", "L2", "L3"] if comp.polzahl >= 3 else ["L1"]


def _zaehler_phases(comp):
    return ["L1", "N"] if comp.phasen == 1 else ["L1", "L2", "L3", "N"]


def _schuetz_phases(comp):
    return ["L1", "L2", "L3", "N"][: comp.polzahl]


def _abgang_phases(comp):
    return ["L1", "N", "PE"] if comp.polzahl == 3 else ["L1", "L2", "L3", "N", "PE"]


def _spd_is_dc(comp):
    return comp.system_typ == "DC" and comp.polzahl != 3


def busbar_connection_count(comp):
    te = comp.teilungseinheiten or 2
    if te == 2:
        return 3
    return max(1, te // 2)


def _busbar_terminals(comp):
    terminals = []
    for i in range(busbar_connection_count(comp)):
        terminals.extend([f"TOP_{i}", f"BOT_{i}"])
    return terminals


def _spd_terminals(comp):
    if _spd_is_dc(comp):
        return ["IN_PLUS", "IN_MINUS", "OUT_PLUS", "OUT_MINUS"]
    return _in_out(["L1", "L2", "L3"])


_TERMINALS = {
    "ls-schalter": lambda c: _in_out(_ls_phases(c)),
    "fi-schalter": lambda c: _in_out(_fi_phases(c)),
    "fi-ls-kombi": lambda c: _in_out(_fi_ls_phases(c)),
    "nh-sicherung": lambda c: _in_out(["L1", "L2", "L3"]),
    "schraub-sicherung": lambda c: _in_out(["L1"]),
    "neozed-sicherung": lambda c: _in_out(_neozed_phases(c)),
    "sammelschiene": _busbar_terminals,
    "zaehler": lambda c: _in_out(_zaehler_phases(c)),
    "schuetz": lambda c: _in_out(_schuetz_phases(c)) + ["A1", "A2"],
    "klemme": lambda c: ["TOP_0", "BOT_0"],
    "versorgungsklemme": lambda c: ["OUT_L1", "OUT_L2", "OUT_L3", "OUT_N", "OUT_PE"],
    "abgangsklemme": lambda c: _in_out(_abgang_phases(c)),
    "ueberspannungsschutz": _spd_terminals,
}


def _busbar_bridges(comp):
    # Star from the first terminal is enough to make every terminal reachable
    terminals = _busbar_terminals(comp)
    return [(terminals[0], other) for other in terminals[1:]]


def _ls_bridges(comp):
    phases = ["L1"]
    if comp.polzahl == 2:
        phases.append("N")
    elif comp.polzahl >= 3:
        phases.extend(["L2", "L3"])
        if comp.polzahl >= 4:
            phases.append("N")
    return _bridges(phases)


def _fi_ls_bridges(comp):
    phases = ["L1", "N"]
    if comp.polzahl >= 3:
        phases.extend(["L2", "L3"])
    return _bridges(phases)


def _abgang_bridges(comp):
    phases = ["L1", "N", "PE"]
    if comp.polzahl == 5:
        phases.extend(["L2", "L3"])
    return _bridges(phases)


def _zaehler_bridges(comp):
    phases = ["L1", "N"]
    if comp.phasen == 3:
        phases.extend(["L2", "L3"])
    return _bridges(phases)


# Coil terminals A1/A2 of a contactor are never bridged to the main contacts.
# A surge arrester is a shunt to earth, not a series path.
# The supply has no internal bridges: each of its outputs is a separate root.
_INTERNAL = {
    "ls-schalter": _ls_bridges,
    "fi-schalter": lambda c: _bridges(_fi_phases(c)),
    "fi-ls-kombi": _fi_ls_bridges,
    "nh-sicherung": lambda c: _bridges(["L1", "L2", "L3"]),
    "schraub-sicherung": lambda c: _bridges(["L1"]),
    "neozed-sicherung": lambda c: _bridges(_neozed_phases(c)),
    "sammelschiene": _busbar_bridges,
    "zaehler": _zaehler_bridges,
    "schuetz": lambda c: _bridges(_schuetz_phases(c)),
    "klemme": lambda c: [("TOP_0", "BOT_0")],
    "versorgungsklemme": lambda c: [],
    "abgangsklemme": _abgang_bridges,
    # A surge arrester is a shunt to earth, not a series path.
    "ueberspannungsschutz": lambda c: [],
}


def component_terminals(comp):
    return _TERMINALS[comp.type](comp)


def internal_connections(comp):
    """Pairs of terminal names bridged inside the component."""
    return _INTERNAL[comp.type](comp)


def carries_phase(comp, phase):
    """Whether an RCD switches the given conductor."""
    if comp.type == "fi-schalter":
        return phase in _fi_phases(comp)
    if comp.type == "fi-ls-kombi":
        return phase in _fi_ls_phases(comp)
    return False


def is_rcd(comp):
    return comp is not None and comp.type in RCD_TYPES


def is_overcurrent_device(comp):
    return comp is not None and comp.type in OVERCURRENT_TYPES


def is_fuse(comp):
    return comp is not None and comp.type in FUSE_TYPES


def is_hub(comp):
    return comp is not None and comp.type in HUB_TYPES


def rated_current(comp):
    """Rated current of a protective device, 0 for anything else."""
    if comp is None or comp.type not in PROTECTIVE_TYPES:
        return 0
    return comp.bemessungs_strom or 0
