"""
Component-level paths and terminal-level series analysis.

Paths are searched over wires in both directions, so a device may be fed
from its top or its bottom. Series relationships come from the terminal
parent map: a component is in series with another only when the parent
chain passes through it (enters on one side and leaves on the other), not
when it merely touches a branch point such as a jumpered input.
"""

from collections import deque, namedtuple

from .build_topology import index_verteiler, parse_terminal_id, terminal_id
from .terminals import OVERCURRENT_TYPES, PROTECTIVE_TYPES, RCD_TYPES, HUB_TYPES

PathResult = namedtuple("PathResult", ["components", "wires"])
CircuitPath = namedtuple("CircuitPath", ["id", "components", "wires", "end_component", "phases"])

SERIES_START_TERMINALS = (
    "OUT_L1", "OUT_L2", "OUT_L3", "OUT_N", "OUT_PE",
    "IN_L1", "IN_L2", "IN_L3", "IN_N", "IN_PE",
    "TOP_0", "TOP_1", "TOP_2", "TOP_3", "TOP_4", "TOP_5",
    "BOT_0", "BOT_1", "BOT_2", "BOT_3", "BOT_4", "BOT_5",
    "IN", "OUT",
)


def _other_end(wire, component_id):
    if wire.von.component_id == component_id:
        return wire.nach.component_id
    return wire.von.component_id


def find_path(topo, start_id, target_id):
    """Shortest component path start -> target over wires, or None."""
    start = topo.component(start_id)
    if start is None or target_id is None:
        return None

    q = deque([(start_id, [start], [])])
    visited = set()
    while q:
        current, comps, wires = q.popleft()
        if current == target_id:
            return PathResult(comps, wires)
        if current in visited:
            continue
        visited.add(current)
        for wire in topo.component_wires(current):
            nb = _other_end(wire, current)
            if nb in visited:
                continue
            comp = topo.component(nb)
            if comp is None:
                continue
            q.append((nb, comps + [comp], wires + [wire]))
    return None


def find_path_to_supply(topo, start_id):
    return find_path(topo, start_id, topo.supply_id)


def find_all_paths(topo, start_id, target_id):
    """Every simple path start -> target (DFS with backtracking)."""
    start = topo.component(start_id)
    if start is None or target_id is None:
        return []

    paths = []
    comps = [start]
    wires = []
    seen_components = {start_id}
    seen_wires = set()

    def dfs(current):
        if current == target_id:
            paths.append(PathResult(list(comps), list(wires)))
            return
        for wire in topo.component_wires(current):
            if wire.id in seen_wires:
                continue
            nb = _other_end(wire, current)
            if nb in seen_components:
                continue
            comp = topo.component(nb)
            if comp is None:
                continue
            seen_components.add(nb)
            seen_wires.add(wire.id)
            comps.append(comp)
            wires.append(wire)
            dfs(nb)
            comps.pop()
            wires.pop()
            seen_components.discard(nb)
            seen_wires.discard(wire.id)

    dfs(start_id)
    return paths


def find_all_paths_to_supply(topo, start_id):
    return find_all_paths(topo, start_id, topo.supply_id)


def find_wire_path(topo, start_id, end_id):
    """Wires between two components, ordered start -> end."""
    result = find_path(topo, start_id, end_id)
    if result is not None:
        return list(result.wires)
    result = find_path(topo, end_id, start_id)
    if result is not None:
        return list(reversed(result.wires))
    return []


def _on_all_paths(paths, component_id):
    return bool(paths) and all(
        any(c.id == component_id for c in path.components) for path in paths
    )


def are_in_series(topo, a, b):
    if topo.supply is None:
        return False
    paths_a = find_all_paths_to_supply(topo, a)
    paths_b = find_all_paths_to_supply(topo, b)
    return _on_all_paths(paths_a, b) or _on_all_paths(paths_b, a)


def are_in_parallel(topo, a, b):
    if topo.supply is None or are_in_series(topo, a, b):
        return False
    return bool(find_all_paths_to_supply(topo, a)) and bool(find_all_paths_to_supply(topo, b))


def _is_traversed(comp, touched):
    if comp.type in HUB_TYPES:
        return len(touched) >= 2
    has_in = any(t.startswith("IN_") or t.startswith("TOP_") for t in touched)
    has_out = any(t.startswith("OUT_") or t.startswith("BOT_") for t in touched)
    return has_in and has_out


def find_series_components(topo, component_id):
    """Components the current passes through between the supply and component_id."""
    if topo.supply is None:
        return []

    touched = {}
    for name in SERIES_START_TERMINALS:
        tid = terminal_id(component_id, name)
        if tid not in topo.parent_map:
            continue
        while True:
            comp_id, term = parse_terminal_id(tid)
            touched.setdefault(comp_id, set()).add(term)
            if tid not in topo.parent_map:
                break
            tid = topo.parent_map[tid]

    series = []
    for comp_id, terms in touched.items():
        if comp_id == component_id or comp_id == topo.supply.id:
            continue
        comp = topo.component(comp_id)
        if comp is None:
            continue
        if _is_traversed(comp, terms):
            series.append(comp)
    return series


def find_series_rcds(topo, component_id):
    return [c for c in find_series_components(topo, component_id) if c.type in RCD_TYPES]


def find_series_protection(topo, component_id):
    return [c for c in find_series_components(topo, component_id) if c.type in OVERCURRENT_TYPES]


def find_all_circuit_paths(topo):
    """One path per reachable outgoing terminal, ordered supply -> endpoint."""
    if topo.supply is None:
        return []

    paths = []
    for comp in topo.verteiler.komponenten:
        if comp.type != "abgangsklemme":
            continue
        result = find_path_to_supply(topo, comp.id)
        if result is None:
            continue
        wires = list(reversed(result.wires))
        phases = []
        for wire in wires:
            if wire.phase not in phases:
                phases.append(wire.phase)
        paths.append(
            CircuitPath(
                id=comp.id,
                components=list(reversed(result.components)),
                wires=wires,
                end_component=comp,
                phases=phases,
            )
        )
    return paths


def get_circuit_path_info(topo):
    infos = []
    for path in find_all_circuit_paths(topo):
        infos.append({
            "endpoint_id": path.end_component.id,
            "endpoint_name": path.end_component.name,
            "endpoint_type": path.end_component.type,
            "components_on_path": [
                {"id": c.id, "name": c.name, "type": c.type, "position_in_path": i}
                for i, c in enumerate(path.components)
            ],
            "rcds": [c.name for c in path.components if c.type in RCD_TYPES],
            "protective_devices": [c.name for c in path.components if c.type in OVERCURRENT_TYPES],
            "is_connected": len(path.components) > 0,
        })
    return infos


def get_circuit_structure_report(verteiler, topo=None):
    """Readable dump of every circuit path, for logs and the CLI."""
    topo = topo or index_verteiler(verteiler)
    lines = [f"=== WIRING STRUCTURE: {verteiler.name or verteiler.id} ===", ""]

    if topo.supply is None:
        lines.append("WARNING: no supply terminal found")
        return "\n".join(lines) + "\n"

    infos = get_circuit_path_info(topo)
    lines.append(f"Supply: {topo.supply.name or topo.supply.id}")
    lines.append(f"Circuit paths: {len(infos)}")
    lines.append("")

    for i, info in enumerate(infos, 1):
        lines.append(f"--- Path {i}: {info['endpoint_name']} ({info['endpoint_type']}) ---")
        lines.append("Components on path:")
        for comp in info["components_on_path"]:
            indent = "  " * (comp["position_in_path"] + 1)
            lines.append(f"{indent}+- {comp['name']} ({comp['type']})")
        if info["rcds"]:
            lines.append("RCDs: " + " -> ".join(info["rcds"]))
        if info["protective_devices"]:
            lines.append("Protective devices: " + " -> ".join(info["protective_devices"]))
        lines.append("")

    return "\n".join(lines) + "\n"


def protective_components(topo):
    return [c for c in topo.verteiler.komponenten if c.type in PROTECTIVE_TYPES]
