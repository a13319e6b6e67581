"""
Ordered battery of panel safety checks.

Every check takes a CheckContext (the panel snapshot plus its Topology,
built once per pass) and returns a list of Diagnostic objects. Checks do
not raise on incomplete data; items lacking the data a rule needs are
skipped.
"""

import logging

from .circuit_paths import (
    find_path_to_supply,
    find_series_components,
    find_series_protection,
    find_series_rcds,
    find_wire_path,
)
from .config import (
    AUSLOESEFAKTOR,
    AUSLOESEFAKTOR_DEFAULT,
    LEITER_RESERVE_ANTEIL,
    MAX_ABSCHALTZEIT_230V,
    MAX_SPANNUNGSFALL_PROZENT,
    PHASENASYMMETRIE_MAX_PROZENT,
    RHO_ALUMINIUM,
    RHO_KUPFER,
    SCHMELZSICHERUNG_FAKTOR,
    SELEKTIVITAETSFAKTOR,
    SPANNUNG_1PH,
    SPANNUNGSFALL_WARN_ANTEIL,
    STECKDOSEN_FI_MAX_MA,
    ZS_SICHERHEITSFAKTOR,
    settings as default_settings,
)
from .load_flow import load_current
from .model import Diagnostic, LIVE_PHASES
from .selectivity import analyze_selectivity
from .tables import TableStore, empfehle_querschnitt, get_max_strom
from .terminals import (
    CIRCUIT_BREAKER_TYPES,
    FUSE_LABELS,
    FUSE_TYPES,
    HUB_TYPES,
    OVERCURRENT_TYPES,
    is_rcd,
    rated_current,
)
from .topology_checks import (
    check_rotation,
    detect_short_circuits,
    effective_phases,
    find_nearest_rcd_per_phase,
    has_connection_to_pe,
    is_ground_fault,
)

logger = logging.getLogger(__name__)


class CheckContext:
    """Per-pass inputs shared by the checks; nothing here outlives one validation."""

    def __init__(self, verteiler, topo, settings=None, store=None):
        self.verteiler = verteiler
        self.topo = topo
        self.settings = settings or default_settings
        self.store = store or TableStore(self.settings.TABLE_DIR)
        self._selectivity = None
        self._phases = {}

    @property
    def selectivity(self):
        if self._selectivity is None:
            self._selectivity = analyze_selectivity(self.topo)
        return self._selectivity

    def phases(self, verbraucher):
        if verbraucher.id not in self._phases:
            self._phases[verbraucher.id] = effective_phases(self.topo, verbraucher)
        return self._phases[verbraucher.id]

    def assigned_component(self, verbraucher):
        if not verbraucher.zugewiesene_komponente:
            return None
        return self.topo.component(verbraucher.zugewiesene_komponente)

    def loads_on(self, component_id):
        return [v for v in self.verteiler.verbraucher if v.zugewiesene_komponente == component_id]


# ---------------------------------------------------------------------------
# Shared calculations
# ---------------------------------------------------------------------------


def _diag(typ, komponente_id, komponente_name, beschreibung, hinweis, schweregrad, default_used=False):
    return Diagnostic(
        typ=typ,
        komponente_id=komponente_id,
        komponente_name=komponente_name,
        beschreibung=beschreibung,
        hinweis=hinweis,
        schweregrad=schweregrad,
        default_used=default_used,
    )


def wire_resistance(wire):
    """Loop resistance 2*rho*L/A of a wire [Ohm]."""
    if not wire.querschnitt or wire.querschnitt <= 0:
        return 0.0
    rho = RHO_KUPFER if wire.material == "Cu" else RHO_ALUMINIUM
    return 2 * rho * wire.laenge / wire.querschnitt


def line_resistance(laenge, querschnitt, rho=RHO_KUPFER):
    return 2 * rho * laenge / querschnitt


def supply_loop_impedance(topo, settings):
    """Loop impedance at the supply [Ohm] and whether the configured default was used."""
    supply = topo.supply
    if supply is not None and supply.schleifenimpedanz and supply.schleifenimpedanz > 0:
        return supply.schleifenimpedanz, False
    return settings.DEFAULT_LOOP_IMPEDANCE_OHM, True


def _default_note(settings):
    return (
        f" Supply loop impedance not set; the default of "
        f"{settings.DEFAULT_LOOP_IMPEDANCE_OHM:g} Ohm was assumed."
    )


def _feed_resistance(ctx, component):
    if ctx.topo.supply is None or component is None:
        return 0.0
    return sum(wire_resistance(w) for w in find_wire_path(ctx.topo, ctx.topo.supply.id, component.id))


def load_loop_impedance(ctx, verbraucher):
    """Loop impedance seen by a load [mOhm] and whether the supply default was used."""
    zs, default_used = supply_loop_impedance(ctx.topo, ctx.settings)
    if not verbraucher.leitungslaenge or not verbraucher.leitungsquerschnitt:
        return zs * 1000, default_used

    line = line_resistance(verbraucher.leitungslaenge, verbraucher.leitungsquerschnitt)
    component = ctx.assigned_component(verbraucher)
    if component is None or ctx.topo.supply is None:
        return (zs + line) * 1000, default_used
    return (zs + _feed_resistance(ctx, component) + line) * 1000, default_used


def trip_current(device):
    factor = AUSLOESEFAKTOR.get(device.charakteristik, AUSLOESEFAKTOR_DEFAULT)
    return device.bemessungs_strom * factor


def max_loop_impedance(device):
    """Highest loop impedance [Ohm] that still trips the breaker within 0.4 s (2/3 rule)."""
    ia = trip_current(device)
    if ia <= 0:
        return None
    return ZS_SICHERHEITSFAKTOR * SPANNUNG_1PH / ia


def _operating_current(ctx, verbraucher):
    leistung = verbraucher.leistung * verbraucher.gleichzeitigkeitsfaktor
    return leistung, load_current(leistung, verbraucher.spannung, ctx.phases(verbraucher))


# ---------------------------------------------------------------------------
# Checks, in battery order
# ---------------------------------------------------------------------------


def check_slot_occupancy(ctx):
    errors = []
    for rail in ctx.verteiler.hutschienen:
        occupied = [None] * rail.slots
        for comp in ctx.verteiler.komponenten:
            if comp.position is None or comp.position.rail != rail.index:
                continue
            start = comp.position.slot
            for slot in range(start, start + comp.teilungseinheiten):
                if slot < 0 or slot >= rail.slots:
                    errors.append(_diag(
                        "doppelbelegung", comp.id, comp.name,
                        f'Component "{comp.name}" extends past the end of the DIN rail',
                        "Move the component or enlarge the rail",
                        "fehler",
                    ))
                    break
                if occupied[slot] is not None:
                    other = ctx.topo.component(occupied[slot])
                    errors.append(_diag(
                        "doppelbelegung", comp.id, comp.name,
                        f'Component "{comp.name}" overlaps "{other.name if other else occupied[slot]}"',
                        "Move one of the components",
                        "fehler",
                    ))
                    break
                occupied[slot] = comp.id
    return errors


def check_overload(ctx):
    errors = []
    for comp in ctx.verteiler.komponenten:
        if comp.type not in ("ls-schalter", "fi-ls-kombi", "fi-schalter"):
            continue
        total = sum(v.leistung * v.gleichzeitigkeitsfaktor for v in ctx.loads_on(comp.id))
        strom = total / SPANNUNG_1PH
        rated = rated_current(comp)
        if rated > 0 and strom > rated:
            errors.append(_diag(
                "ueberlast", comp.id, comp.name,
                f"Overload: {strom:.1f}A > {rated:g}A (rated current)",
                "Reduce the load or choose a higher-rated device",
                "fehler",
            ))
    return errors


def check_overcurrent_selectivity(ctx):
    diagnostics = []
    for violation in ctx.selectivity:
        if violation["kind"] != "ls":
            continue
        down = violation["downstream"]
        diagnostics.append(_diag(
            "selektivitaet", down.id, down.name,
            violation["reason"],
            f"The upstream device should be rated at least {SELEKTIVITAETSFAKTOR} times "
            "the downstream device.",
            "fehler" if violation["severity"] == "error" else "warnung",
        ))
    return diagnostics


def check_voltage_drop(ctx):
    diagnostics = []
    limit = MAX_SPANNUNGSFALL_PROZENT
    for v in ctx.verteiler.verbraucher:
        if not v.leitungslaenge or not v.leitungsquerschnitt or not v.spannung:
            continue
        _, strom = _operating_current(ctx, v)
        drop = line_resistance(v.leitungslaenge, v.leitungsquerschnitt) * strom
        total = drop / v.spannung * 100

        component = ctx.assigned_component(v)
        if component is not None and ctx.topo.supply is not None:
            total += _feed_resistance(ctx, component) * strom / v.spannung * 100

        detail = f"({drop:.2f}V at {v.leitungslaenge:g}m, {v.leitungsquerschnitt:g}mm²)"
        if total > limit:
            diagnostics.append(_diag(
                "spannungsfall", v.id, v.name,
                f"Voltage drop too high: {total:.2f}% > {limit}% {detail}",
                f"Use a larger cross-section (currently {v.leitungsquerschnitt:g}mm²) or "
                f"shorten the line (currently {v.leitungslaenge:g}m)",
                "fehler",
            ))
        elif total > limit * SPANNUNGSFALL_WARN_ANTEIL:
            diagnostics.append(_diag(
                "spannungsfall", v.id, v.name,
                f"Voltage drop close to the limit: {total:.2f}% {detail}",
                f"The voltage drop is approaching the {limit}% limit",
                "warnung",
            ))
    return diagnostics


def check_device_loop_impedance(ctx):
    errors = []
    zs_supply, default_used = supply_loop_impedance(ctx.topo, ctx.settings)
    for comp in ctx.verteiler.komponenten:
        if comp.type not in CIRCUIT_BREAKER_TYPES:
            continue
        zs_max = max_loop_impedance(comp)
        if zs_max is None:
            continue
        zs = zs_supply + sum(wire_resistance(w) for w in ctx.topo.component_wires(comp.id))
        if zs > zs_max:
            hint = "Disconnection condition not met. Use a larger cross-section."
            if default_used:
                hint += _default_note(ctx.settings)
            errors.append(_diag(
                "schleifenimpedanz", comp.id, comp.name,
                f"Loop impedance too high: {zs * 1000:.1f}mOhm > {zs_max * 1000:.1f}mOhm",
                hint,
                "kritisch",
                default_used=default_used,
            ))
    return errors


def check_unassigned_loads(ctx):
    return [
        _diag(
            "fehlende-verbindung", v.id, v.name,
            f'Load "{v.name}" is not assigned to any outgoing terminal',
            "Assign the load to a matching protective circuit",
            "warnung",
        )
        for v in ctx.verteiler.verbraucher
        if not v.zugewiesene_komponente
    ]


def phase_loads(ctx):
    """Load [W] per conductor, each load split evenly over its effective phases."""
    loads = {"L1": 0.0, "L2": 0.0, "L3": 0.0, "N": 0.0, "PE": 0.0}
    for v in ctx.verteiler.verbraucher:
        phases = ctx.phases(v)
        share = v.leistung * v.gleichzeitigkeitsfaktor / len(phases)
        for phase in phases:
            if phase in loads:
                loads[phase] += share
    return loads


def check_phase_symmetry(ctx):
    loads = phase_loads(ctx)
    values = [loads[p] for p in LIVE_PHASES]
    mean = sum(values) / 3
    if max(values) <= 0 or mean <= 0:
        return []
    asymmetry = (max(values) - min(values)) / mean * 100
    if asymmetry <= PHASENASYMMETRIE_MAX_PROZENT:
        return []
    return [_diag(
        "phasensymmetrie", "system", "Whole installation",
        f"Phase asymmetry: {asymmetry:.1f}% (L1: {loads['L1'] / 1000:.1f}kW, "
        f"L2: {loads['L2'] / 1000:.1f}kW, L3: {loads['L3'] / 1000:.1f}kW)",
        "Spread the loads more evenly across the phases",
        "warnung",
    )]


def check_neutral_hub_feeds(ctx):
    errors = []
    for hub in ctx.verteiler.komponenten:
        if hub.type not in HUB_TYPES or hub.phase != "N":
            continue
        feeding = []
        for wire in ctx.verteiler.verbindungen:
            if wire.nach.component_id != hub.id or wire.phase != "N":
                continue
            source = ctx.topo.component(wire.von.component_id)
            if is_rcd(source) and source.id not in feeding:
                feeding.append(source.id)
        if len(feeding) > 1:
            names = ", ".join(ctx.topo.component(i).name for i in feeding)
            errors.append(_diag(
                "falsche-dimensionierung", hub.id, hub.name,
                f"Neutral distribution is fed by several RCDs ({len(feeding)} RCDs: {names})",
                "Each RCD needs its own neutral distribution. Use a separate neutral "
                "busbar or terminal per RCD protection zone.",
                "kritisch",
            ))
    return errors


def check_mixed_rcd_feed(ctx):
    errors = []
    for v in ctx.verteiler.verbraucher:
        component = ctx.assigned_component(v)
        if component is None:
            continue
        nearest = find_nearest_rcd_per_phase(ctx.topo, component.id)
        # Traced by local conductor: a single-phase outlet uses L1 whichever supply phase feeds it
        phases = list(LIVE_PHASES) if len(ctx.phases(v)) == 3 else ["L1"]
        phases.append("N")

        per_phase = {p: nearest.get(p) for p in phases}
        rcds = []
        for rcd_id in per_phase.values():
            if rcd_id and rcd_id not in rcds:
                rcds.append(rcd_id)

        def _name(rcd_id):
            comp = ctx.topo.component(rcd_id)
            return comp.name if comp is not None else rcd_id

        if len(rcds) > 1:
            info = "; ".join(
                f"{p}: {_name(r)}" if r else f"{p}: no RCD" for p, r in per_phase.items()
            )
            errors.append(_diag(
                "falsche-dimensionierung", v.id, v.name,
                "Load draws its conductors through different RCDs",
                f"All live conductors and N must come from the same RCD. Currently: {info}. "
                "Correct the wiring.",
                "kritisch",
            ))

        with_rcd = [p for p in phases if per_phase[p]]
        without_rcd = [p for p in phases if not per_phase[p]]
        if with_rcd and without_rcd:
            covered = ", ".join(f"{p} via {_name(per_phase[p])}" for p in with_rcd)
            errors.append(_diag(
                "falsche-dimensionierung", v.id, v.name,
                "Load has incomplete RCD protection",
                f"Conductors {', '.join(without_rcd)} have no RCD while {covered}. "
                "All conductors should pass through the same RCD.",
                "kritisch",
            ))
    return errors


def check_fuses(ctx):
    diagnostics = []
    for fuse in ctx.verteiler.komponenten:
        if fuse.type not in FUSE_TYPES or not fuse.bemessungs_strom:
            continue
        rated = fuse.bemessungs_strom
        loads = ctx.loads_on(fuse.id)
        if not loads:
            continue

        operating = sum(
            load_current(v.leistung * v.gleichzeitigkeitsfaktor, v.spannung, v.phasen) for v in loads
        )
        if operating >= rated:
            diagnostics.append(_diag(
                "falsche-dimensionierung", fuse.id, fuse.name,
                f"Operating current ({operating:.1f}A) >= fuse rating ({rated:g}A)",
                "Choose a higher-rated fuse or reduce the connected load. Fuses require "
                "operating current < rated current < permissible line current.",
                "fehler",
            ))

        for v in loads:
            if not v.leitungsquerschnitt:
                continue
            permissible = get_max_strom(v.leitungsquerschnitt)
            if not permissible:
                continue
            if rated >= permissible:
                diagnostics.append(_diag(
                    "falsche-dimensionierung", v.id, v.name,
                    f"Fuse rating ({rated:g}A) >= permissible line current "
                    f"({permissible}A at {v.leitungsquerschnitt:g}mm²)",
                    f"Use a larger cross-section (currently {v.leitungsquerschnitt:g}mm², at least "
                    f"{empfehle_querschnitt(rated):g}mm² recommended) or a smaller fuse.",
                    "fehler",
                ))
            elif rated > permissible * LEITER_RESERVE_ANTEIL:
                diagnostics.append(_diag(
                    "falsche-dimensionierung", v.id, v.name,
                    f"Fuse rating ({rated:g}A) is close to the permissible line current "
                    f"({permissible}A at {v.leitungsquerschnitt:g}mm²)",
                    "Consider a larger cross-section for more reserve.",
                    "warnung",
                ))
    return diagnostics


def _breakers_for(ctx, component):
    devices = []
    if component.type in CIRCUIT_BREAKER_TYPES:
        devices.append(component)
    for comp in find_series_components(ctx.topo, component.id):
        if comp.type in CIRCUIT_BREAKER_TYPES:
            devices.append(comp)
    return devices


def check_load_loop_impedance(ctx):
    diagnostics = []
    for v in ctx.verteiler.verbraucher:
        if not v.zugewiesene_komponente:
            diagnostics.append(_diag(
                "schleifenimpedanz", v.id, v.name,
                "Load is not assigned to any protective device",
                "Assign the load to a circuit breaker or RCBO.",
                "warnung",
            ))
            continue
        component = ctx.assigned_component(v)
        if component is None:
            continue

        devices = _breakers_for(ctx, component)
        zs_mohm, default_used = load_loop_impedance(ctx, v)
        zs = zs_mohm / 1000

        can_trip = False
        weakest = None
        for device in devices:
            zs_max = max_loop_impedance(device)
            if zs_max is None:
                continue
            if zs <= zs_max:
                can_trip = True
            if weakest is None or zs_max < weakest[1]:
                weakest = (device, zs_max)

        if not can_trip and weakest is not None:
            device, zs_max = weakest
            hint = (
                f"Nearest device {device.name} ({device.charakteristik}{device.bemessungs_strom:g}) "
                f"needs Zs <= {zs_max * 1000:.1f}mOhm "
                f"(2/3 rule for {MAX_ABSCHALTZEIT_230V:g} s disconnection). "
                "Use a larger cross-section or adjust the protective device."
            )
            if default_used:
                hint += _default_note(ctx.settings)
            diagnostics.append(_diag(
                "schleifenimpedanz", v.id, v.name,
                f"Loop impedance too high: Zs={zs_mohm:.1f}mOhm",
                hint,
                "kritisch",
                default_used=default_used,
            ))

        for final, upstream in zip(devices, devices[1:]):
            if not final.bemessungs_strom:
                continue
            factor = upstream.bemessungs_strom / final.bemessungs_strom
            if factor < SELEKTIVITAETSFAKTOR:
                diagnostics.append(_diag(
                    "selektivitaet", v.id, v.name,
                    f"Selectivity not ensured: {final.name} ({final.bemessungs_strom:g}A) -> "
                    f"{upstream.name} ({upstream.bemessungs_strom:g}A)",
                    f"Factor {factor:.2f} < {SELEKTIVITAETSFAKTOR}. The upstream device should be "
                    f"rated at least {final.bemessungs_strom * SELEKTIVITAETSFAKTOR:.0f}A.",
                    "warnung",
                ))
    return diagnostics


def check_socket_rcd(ctx):
    errors = []
    for v in ctx.verteiler.verbraucher:
        if v.typ != "steckdose":
            continue
        component = ctx.assigned_component(v)
        if component is None:
            continue
        rcds = find_series_rcds(ctx.topo, component.id)
        if is_rcd(component):
            rcds.append(component)
        if any(r.bemessungs_fehlerstrom <= STECKDOSEN_FI_MAX_MA for r in rcds):
            continue
        errors.append(_diag(
            "falsche-dimensionierung", v.id, v.name,
            f"Socket outlet without RCD protection of at most {STECKDOSEN_FI_MAX_MA}mA",
            f"Socket outlets must be protected by an RCD with a rated residual current of "
            f"{STECKDOSEN_FI_MAX_MA}mA or less.",
            "fehler",
        ))
    return errors


def check_rcd_selectivity(ctx):
    diagnostics = []
    for violation in ctx.selectivity:
        if violation["kind"] != "fi":
            continue
        down = violation["downstream"]
        diagnostics.append(_diag(
            "selektivitaet", down.id, down.name,
            violation["reason"],
            "For selectivity the delay order S -> G -> Standard must hold from the supply "
            "towards the load.",
            "kritisch" if violation["severity"] == "error" else "warnung",
        ))

    nennstrom = ctx.verteiler.nennstrom or 0
    for fi in ctx.verteiler.komponenten:
        if fi.type != "fi-schalter":
            continue
        upstream = [p for p in find_series_protection(ctx.topo, fi.id) if rated_current(p) > 0]
        if upstream:
            for device in upstream:
                if device.bemessungs_strom > fi.bemessungs_strom:
                    diagnostics.append(_diag(
                        "falsche-dimensionierung", fi.id, fi.name,
                        f"Upstream fuse too large: {device.name} ({device.bemessungs_strom:g}A) > "
                        f"{fi.name} ({fi.bemessungs_strom:g}A)",
                        f"An overload could damage the RCD. Reduce the upstream protection to at "
                        f"most {fi.bemessungs_strom:g}A.",
                        "warnung",
                    ))
        elif ctx.topo.supply is not None and find_path_to_supply(ctx.topo, fi.id) is not None:
            if nennstrom > 0 and nennstrom > fi.bemessungs_strom:
                diagnostics.append(_diag(
                    "falsche-dimensionierung", fi.id, fi.name,
                    f"No upstream fuse: supply current ({nennstrom:g}A) > RCD rated current "
                    f"({fi.bemessungs_strom:g}A)",
                    f"The RCD has no upstream overcurrent protection. Install a fuse of at most "
                    f"{fi.bemessungs_strom:g}A.",
                    "warnung",
                ))
    return diagnostics


def check_first_fuse(ctx):
    infos = []
    supply = ctx.topo.supply
    nennstrom = ctx.verteiler.nennstrom or 0
    if supply is None or nennstrom <= 0:
        return infos

    direct = []
    for wire in ctx.verteiler.verbindungen:
        if wire.von.component_id == supply.id and wire.nach.component_id not in direct:
            direct.append(wire.nach.component_id)

    for comp_id in direct:
        comp = ctx.topo.component(comp_id)
        if comp is None or comp.type not in OVERCURRENT_TYPES:
            continue
        rated = rated_current(comp)
        if rated > nennstrom:
            infos.append(_diag(
                "falsche-dimensionierung", comp.id, comp.name,
                f"First fuse ({rated:g}A) is larger than the supply rating ({nennstrom:g}A)",
                "The first device after the supply terminal is rated above what the supply "
                "delivers. Check the sizing.",
                "info",
            ))
    return infos


def check_earth_continuity(ctx):
    errors = []
    for v in ctx.verteiler.verbraucher:
        component = ctx.assigned_component(v)
        if component is None:
            continue
        if has_connection_to_pe(ctx.topo, component.id):
            continue
        errors.append(_diag(
            "erdung", v.id, v.name,
            "Load has no protective earth connection (PE)",
            f"The PE of {component.name} is not connected to the supply earth. Provide a "
            "continuous PE path through PE terminals or PE busbars.",
            "kritisch",
        ))
    return errors


def check_short_circuits(ctx):
    errors = []
    for finding in detect_short_circuits(ctx.topo):
        p1, p2 = finding["phase1"], finding["phase2"]
        if is_ground_fault(finding):
            errors.append(_diag(
                "fehlerstrom", finding["component_id"], finding["component_name"],
                f"Fault current between {p1} and {p2}",
                "Neutral (N) and protective earth (PE) are joined through the wiring. "
                "Correct the faulty connection.",
                "kritisch",
            ))
        else:
            errors.append(_diag(
                "kurzschluss", finding["component_id"], finding["component_name"],
                f"Short circuit between {p1} and {p2}",
                f"Conductors {p1} and {p2} are joined through the wiring. Correct the faulty "
                "connection.",
                "kritisch",
            ))
    return errors


def check_phase_rotation(ctx):
    errors = []
    for v in ctx.verteiler.verbraucher:
        if not v.zugewiesene_komponente:
            continue
        if len([p for p in ctx.phases(v) if p in LIVE_PHASES]) != 3:
            continue
        component = ctx.assigned_component(v)
        if component is None:
            continue
        for m in check_rotation(ctx.topo, component.id):
            local, connected = m["local_phase"], m["connected_to_phase"]
            errors.append(_diag(
                "drehfeld", v.id, v.name,
                f"Wrong phase rotation: {local} is connected to {connected}",
                f"Conductor {local} at the load traces back to {connected} at the supply. "
                f"Three-phase motors may run backwards. {local} must connect to {local}.",
                "kritisch",
            ))
    return errors


def check_load_overcurrent(ctx):
    errors = []
    for v in ctx.verteiler.verbraucher:
        component = ctx.assigned_component(v)
        if component is None:
            continue
        leistung, strom = _operating_current(ctx, v)

        direct = component.type in CIRCUIT_BREAKER_TYPES
        if direct:
            rated = rated_current(component)
            if rated > 0 and strom > rated:
                errors.append(_diag(
                    "ueberstrom", v.id, v.name,
                    f'Load current ({strom:.1f}A) exceeds assigned device "{component.name}" '
                    f"({rated:g}A)",
                    f"The {leistung:.0f}W load needs {strom:.1f}A but the device is rated "
                    f"{rated:g}A. Raise the rating or reduce the load.",
                    "fehler",
                ))

        upstream_found = False
        for device in find_series_protection(ctx.topo, component.id):
            if device.id == component.id:
                continue
            upstream_found = True
            rated = rated_current(device)
            if rated > 0 and strom > rated:
                label = FUSE_LABELS.get(device.type, "fuse")
                errors.append(_diag(
                    "ueberstrom", v.id, v.name,
                    f'Load current ({strom:.1f}A) exceeds upstream device "{device.name}" '
                    f"({rated:g}A)",
                    f'The {leistung:.0f}W load needs {strom:.1f}A but the upstream {label} '
                    f'"{device.name}" is rated {rated:g}A. Raise its rating.',
                    "fehler",
                ))

        if not direct and not upstream_found:
            errors.append(_diag(
                "fehlende-schutzeinrichtung", v.id, v.name,
                "Load has no overcurrent protection",
                f"The {leistung:.0f}W load ({strom:.1f}A) has neither an assigned nor an "
                "upstream overcurrent device. Every load needs at least one.",
                "kritisch",
            ))
        elif not direct and component.type == "fi-schalter":
            errors.append(_diag(
                "fehlende-schutzeinrichtung", v.id, v.name,
                "Overcurrent protection missing between RCD and load",
                "The load hangs directly off an RCD. Each RCD outgoing circuit needs its own "
                "circuit breaker or RCBO even when upstream fuses exist.",
                "kritisch",
            ))
    return errors


def _protection_for_cable(ctx, component):
    """Rated current of the device protecting a load line and whether it is a fuse."""
    if component.type in OVERCURRENT_TYPES:
        return component.bemessungs_strom, component.type in FUSE_TYPES
    if component.type == "abgangsklemme":
        for device in find_series_protection(ctx.topo, component.id):
            return device.bemessungs_strom, device.type in FUSE_TYPES
    return 0, False


def check_cable_ampacity(ctx):
    diagnostics = []
    for v in ctx.verteiler.verbraucher:
        if not v.leitungsquerschnitt or not v.verlegeart or not v.leitermaterial:
            continue
        component = ctx.assigned_component(v)
        if component is None:
            continue

        cores = 3 if v.spannung == 400 else 2
        ampacity = ctx.store.get_strombelastbarkeit(
            v.leitungsquerschnitt, v.leitermaterial, v.verlegeart, cores
        )
        if ampacity is None:
            diagnostics.append(_diag(
                "kabelueberlastung", v.id, v.name,
                f"No ampacity data for {v.leitungsquerschnitt:g}mm² {v.leitermaterial} "
                f"{v.verlegeart}",
                "No current-carrying capacity is tabulated for this combination of "
                "cross-section, material and installation method. Check the inputs.",
                "warnung",
            ))
            continue

        rated, is_fuse = _protection_for_cable(ctx, component)
        if not rated:
            continue
        required = rated * SCHMELZSICHERUNG_FAKTOR if is_fuse else rated
        if ampacity < required:
            rule = "Iz * 1.45 >= In * 1.6 for fuses" if is_fuse else "Iz >= In for circuit breakers"
            diagnostics.append(_diag(
                "kabelueberlastung", v.id, v.name,
                f"Cable cross-section too small: {v.leitungsquerschnitt:g}mm² carries only "
                f"{ampacity:g}A ({v.verlegeart}) but {required:.1f}A is required for a "
                f"{rated:g}A device",
                f"The conductor ampacity must satisfy {rule}. Choose a larger cross-section or "
                "a better ventilated installation method.",
                "fehler",
            ))
    return diagnostics


CHECKS = (
    check_slot_occupancy,
    check_overload,
    check_overcurrent_selectivity,
    check_voltage_drop,
    check_device_loop_impedance,
    check_unassigned_loads,
    check_phase_symmetry,
    check_neutral_hub_feeds,
    check_mixed_rcd_feed,
    check_fuses,
    check_load_loop_impedance,
    check_socket_rcd,
    check_rcd_selectivity,
    check_first_fuse,
    check_earth_continuity,
    check_short_circuits,
    check_phase_rotation,
    check_load_overcurrent,
    check_cable_ampacity,
)


def run_checks(ctx):
    diagnostics = []
    for check in CHECKS:
        found = check(ctx)
        logger.debug("%s: %d diagnostics", check.__name__, len(found))
        diagnostics.extend(found)
    return diagnostics
