import logging
from collections import deque, defaultdict

from .model import find_supply
from .terminals import internal_connections

logger = logging.getLogger(__name__)

SUPPLY_OUTPUTS = ("OUT_L1", "OUT_L2", "OUT_L3", "OUT_N", "OUT_PE")


def terminal_id(component_id, terminal):
    return f"{component_id}:{terminal}"


def parse_terminal_id(tid):
    # Component ids may contain colons, terminal names never do
    component_id, _, terminal = tid.rpartition(":")
    return component_id, terminal


def _link(adjacency, a, b):
    if a == b:
        return
    if b not in adjacency[a]:
        adjacency[a].append(b)
    if a not in adjacency[b]:
        adjacency[b].append(a)


def build_adjacency(verteiler):
    """Undirected terminal graph from wires and internal component bridges."""
    adjacency = defaultdict(list)
    known = {c.id for c in verteiler.komponenten}
    for wire in verteiler.verbindungen:
        # Dangling wires (deleted component on either end) connect nothing
        if wire.von.component_id not in known or wire.nach.component_id not in known:
            continue
        a = terminal_id(wire.von.component_id, wire.von.terminal)
        b = terminal_id(wire.nach.component_id, wire.nach.terminal)
        _link(adjacency, a, b)
    for comp in verteiler.komponenten:
        for a, b in internal_connections(comp):
            _link(adjacency, terminal_id(comp.id, a), terminal_id(comp.id, b))
    return dict(adjacency)


def build_parent_map(verteiler, adjacency=None):
    """BFS tree over terminals rooted at the supply outputs.

    Every reached terminal gets exactly one parent (first discovery wins);
    the supply outputs themselves have none.
    """
    supply = find_supply(verteiler)
    if supply is None:
        return {}
    if adjacency is None:
        adjacency = build_adjacency(verteiler)

    parent_map = {}
    roots = [terminal_id(supply.id, t) for t in SUPPLY_OUTPUTS]
    visited = set(roots)
    q = deque(roots)
    while q:
        node = q.popleft()
        for nb in adjacency.get(node, []):
            if nb in visited:
                continue
            visited.add(nb)
            parent_map[nb] = node
            q.append(nb)
    return parent_map


class Topology:
    """Graph indexes of one panel snapshot, built once per analysis pass."""

    def __init__(self, verteiler):
        self.verteiler = verteiler
        self.components = {c.id: c for c in verteiler.komponenten}
        self.supply = find_supply(verteiler)
        self.adjacency = build_adjacency(verteiler)
        self.parent_map = build_parent_map(verteiler, self.adjacency)
        self._index_wires(verteiler)

    def _index_wires(self, verteiler):
        self.wires_by_pair = {}
        self.wires_by_component = defaultdict(list)
        for wire in verteiler.verbindungen:
            a = terminal_id(wire.von.component_id, wire.von.terminal)
            b = terminal_id(wire.nach.component_id, wire.nach.terminal)
            self.wires_by_pair.setdefault(frozenset((a, b)), wire)
            self.wires_by_component[wire.von.component_id].append(wire)
            if wire.nach.component_id != wire.von.component_id:
                self.wires_by_component[wire.nach.component_id].append(wire)

    def rebind(self, verteiler):
        """Point the indexes at a snapshot that differs only in wire currents.

        Connectivity is unchanged, so the graph and parent map are kept.
        """
        self.verteiler = verteiler
        self._index_wires(verteiler)
        return self

    @property
    def supply_id(self):
        return self.supply.id if self.supply is not None else None

    def component(self, component_id):
        return self.components.get(component_id)

    def wire_between(self, a, b):
        return self.wires_by_pair.get(frozenset((a, b)))

    def component_wires(self, component_id):
        return self.wires_by_component.get(component_id, [])

    def is_supply_terminal(self, tid):
        return self.supply is not None and parse_terminal_id(tid)[0] == self.supply.id


def index_verteiler(verteiler):
    topo = Topology(verteiler)
    logger.debug(
        "Indexed %s: %d components, %d terminals, %d reached from supply",
        verteiler.id,
        len(topo.components),
        len(topo.adjacency),
        len(topo.parent_map),
    )
    return topo
