import logging
from collections import deque

from .build_topology import parse_terminal_id, terminal_id
from .model import LIVE_PHASES
from .terminals import carries_phase, component_terminals, is_hub, is_rcd

logger = logging.getLogger(__name__)

ROTATION_PHASES = ("L1", "L2", "L3", "N")

NEAREST_RCD_TERMINALS = {
    "L1": ("OUT_L1", "IN_L1", "BOT_0", "TOP_0"),
    "L2": ("OUT_L2", "IN_L2", "BOT_1", "TOP_1"),
    "L3": ("OUT_L3", "IN_L3", "BOT_2", "TOP_2"),
    "N": ("OUT_N", "IN_N"),
    "PE": ("OUT_PE", "IN_PE"),
}


def _reachable(adjacency, start):
    visited = {start}
    q = deque([start])
    while q:
        node = q.popleft()
        for nb in adjacency.get(node, []):
            if nb not in visited:
                visited.add(nb)
                q.append(nb)
    return visited


def expand_hub(topo, tid):
    comp_id, _ = parse_terminal_id(tid)
    comp = topo.component(comp_id)
    if not is_hub(comp):
        return []
    return [terminal_id(comp_id, t) for t in component_terminals(comp)]


def _bfs_with_hubs(topo, start, stop):
    """BFS from start treating hubs as fully meshed; returns the first node where stop(node) holds."""
    visited = {start}
    q = deque([start])
    while q:
        node = q.popleft()
        if stop(node):
            return node
        for nb in expand_hub(topo, node) + topo.adjacency.get(node, []):
            if nb not in visited:
                visited.add(nb)
                q.append(nb)
    return None


def _short_circuit_pairs(topo, comp, prefix, phases):
    findings = []
    for i, phase1 in enumerate(phases):
        reach = _reachable(topo.adjacency, terminal_id(comp.id, f"{prefix}{phase1}"))
        for phase2 in phases[i + 1:]:
            if terminal_id(comp.id, f"{prefix}{phase2}") in reach:
                findings.append({
                    "component_id": comp.id,
                    "component_name": comp.name,
                    "phase1": phase1,
                    "phase2": phase2,
                    "terminal1": f"{prefix}{phase1}",
                    "terminal2": f"{prefix}{phase2}",
                })
    return findings


def detect_short_circuits(topo):
    """Conductor pairs of one terminal block (or the supply) joined through the wiring."""
    findings = []
    for comp in topo.verteiler.komponenten:
        if comp.type != "abgangsklemme":
            continue
        phases = ["L1", "N", "PE"] if comp.polzahl == 3 else ["L1", "L2", "L3", "N", "PE"]
        findings.extend(_short_circuit_pairs(topo, comp, "IN_", phases))

    if topo.supply is not None:
        findings.extend(
            _short_circuit_pairs(topo, topo.supply, "OUT_", ["L1", "L2", "L3", "N", "PE"])
        )
    logger.debug("Short circuit scan: %d findings", len(findings))
    return findings


def is_ground_fault(finding):
    return {finding["phase1"], finding["phase2"]} == {"N", "PE"}


def _walk_to_supply(topo, tid):
    """Follow parent links from tid; returns the supply terminal name reached, or None."""
    while True:
        comp_id, term = parse_terminal_id(tid)
        if comp_id == topo.supply.id:
            return term
        if tid not in topo.parent_map:
            return None
        tid = topo.parent_map[tid]


def check_rotation(topo, component_id):
    """Local conductors traced back to a different supply output."""
    mismatches = []
    if topo.supply is None:
        return mismatches

    comp = topo.component(component_id)
    for local in ROTATION_PHASES:
        connected = None
        for name in (f"IN_{local}", f"OUT_{local}"):
            tid = terminal_id(component_id, name)
            if tid not in topo.parent_map:
                continue
            reached = _walk_to_supply(topo, tid)
            if reached in ("OUT_L1", "OUT_L2", "OUT_L3", "OUT_N"):
                connected = reached[len("OUT_"):]
                break
        if connected and connected != local:
            mismatches.append({
                "component_id": component_id,
                "component_name": comp.name if comp is not None else component_id,
                "local_phase": local,
                "connected_to_phase": connected,
            })
    return mismatches


def _pe_start_terminals(comp):
    if comp.type == "klemme":
        return ["TOP_0", "BOT_0"]
    if comp.type == "sammelschiene":
        return component_terminals(comp)
    if comp.type == "abgangsklemme":
        return ["IN_PE", "OUT_PE"]
    return ["IN_PE", "OUT_PE", "TOP_0", "BOT_0"]


def has_connection_to_pe(topo, component_id):
    """Whether a protective-earth path links the component to the supply's OUT_PE."""
    if topo.supply is None:
        return False
    comp = topo.component(component_id)
    if comp is None:
        return False

    target = terminal_id(topo.supply.id, "OUT_PE")
    for name in _pe_start_terminals(comp):
        start = terminal_id(component_id, name)
        if start not in topo.adjacency:
            continue
        if _bfs_with_hubs(topo, start, lambda node: node == target) is not None:
            return True
    return False


def find_nearest_rcd_per_phase(topo, component_id):
    """Closest upstream RCD switching each conductor, or None."""
    result = {}
    if topo.supply is None:
        return result

    for phase, names in NEAREST_RCD_TERMINALS.items():
        nearest = None
        for name in names:
            tid = terminal_id(component_id, name)
            if tid not in topo.parent_map:
                continue
            while True:
                comp = topo.component(parse_terminal_id(tid)[0])
                if is_rcd(comp) and carries_phase(comp, phase):
                    nearest = comp.id
                    break
                if tid not in topo.parent_map:
                    break
                tid = topo.parent_map[tid]
            if nearest:
                break
        result[phase] = nearest
    return result


def detect_phase(topo, component_id):
    """Supply phase feeding the IN_L1 terminal of a component."""
    if topo.supply is None or topo.component(component_id) is None:
        return None

    outputs = {terminal_id(topo.supply.id, f"OUT_{p}"): p for p in LIVE_PHASES}
    start = terminal_id(component_id, "IN_L1")
    found = _bfs_with_hubs(topo, start, lambda node: node in outputs)
    return outputs.get(found)


def effective_phases(topo, verbraucher):
    """Live conductors a load actually draws from."""
    live = [p for p in verbraucher.phasen if p not in ("N", "PE")]
    if len(live) == 3 or verbraucher.spannung == 400:
        return ["L1", "L2", "L3"]
    if verbraucher.zugewiesene_komponente:
        detected = detect_phase(topo, verbraucher.zugewiesene_komponente)
        if detected:
            return [detected]
    return [live[0]] if live else ["L1"]
