import logging
import math
from collections import deque

from .build_topology import index_verteiler, terminal_id
from .config import SPANNUNG_1PH, SPANNUNG_3PH
from .topology_checks import expand_hub, effective_phases

logger = logging.getLogger(__name__)


def load_current(leistung, spannung, phasen):
    """Operating current [A]: P/(sqrt(3)*U) for three live phases at 400 V, else P/U."""
    if not spannung:
        return 0.0
    live = [p for p in phasen if p not in ("N", "PE")]
    if len(live) == 3 and spannung == SPANNUNG_3PH:
        return leistung / (math.sqrt(3) * spannung)
    return leistung / spannung


def _wires_to_supply(topo, start):
    """Wire ids on the BFS path from a terminal to the nearest supply terminal."""
    visited = {start}
    q = deque([(start, [])])
    while q:
        node, wire_ids = q.popleft()
        if topo.is_supply_terminal(node):
            return wire_ids
        for nb in expand_hub(topo, node):
            if nb not in visited:
                visited.add(nb)
                q.append((nb, wire_ids))
        for nb in topo.adjacency.get(node, []):
            if nb in visited:
                continue
            visited.add(nb)
            wire = topo.wire_between(node, nb)
            q.append((nb, wire_ids + [wire.id] if wire is not None else wire_ids))
    return []


def calculate_wire_currents(topo, weighted=False):
    """Sum load currents onto the wires between each outgoing terminal and the supply.

    With weighted=True every load current is scaled by its simultaneity
    factor (1 when unset).
    """
    verteiler = topo.verteiler
    currents = {wire.id: 0.0 for wire in verteiler.verbindungen}
    if topo.supply is None:
        return currents

    for verbraucher in verteiler.verbraucher:
        if not verbraucher.zugewiesene_komponente:
            continue
        abgang = topo.component(verbraucher.zugewiesene_komponente)
        if abgang is None or abgang.type != "abgangsklemme":
            continue

        phases = effective_phases(topo, verbraucher)
        if len(phases) == 3:
            strom = verbraucher.leistung / (math.sqrt(3) * SPANNUNG_3PH)
        else:
            strom = verbraucher.leistung / SPANNUNG_1PH
        if weighted:
            strom *= verbraucher.gleichzeitigkeitsfaktor or 1

        for phase in phases:
            # A single-phase load sits on IN_L1 whatever supply phase feeds it
            start_name = "IN_L1" if len(phases) == 1 else f"IN_{phase}"
            start = terminal_id(abgang.id, start_name)
            for wire_id in _wires_to_supply(topo, start):
                currents[wire_id] += strom

    return currents


def update_wire_currents(verteiler, topo=None):
    """Return a new snapshot with strom and durchschnittsstrom set on every wire."""
    topo = topo or index_verteiler(verteiler)
    peak = calculate_wire_currents(topo)
    average = calculate_wire_currents(topo, weighted=True)

    wires = []
    for wire in verteiler.verbindungen:
        if wire.phase == "PE":
            wires.append(wire.model_copy(update={"strom": 0.0, "durchschnittsstrom": 0.0}))
            continue
        wires.append(
            wire.model_copy(update={
                "strom": round(peak.get(wire.id, 0.0), 2),
                "durchschnittsstrom": round(average.get(wire.id, 0.0), 2),
            })
        )
    logger.debug("Updated currents on %d wires", len(wires))
    return verteiler.model_copy(update={"verbindungen": wires})
