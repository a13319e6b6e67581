"""Distribution panel terminal graph and safety rule engine."""

from .model import Verteiler, Diagnostic, ValidationResult, load_verteiler, dump_verteiler, to_document
from .build_topology import Topology, index_verteiler, build_adjacency, build_parent_map
from .circuit_paths import (
    find_path,
    find_all_paths,
    are_in_series,
    are_in_parallel,
    find_series_components,
    find_series_rcds,
    find_series_protection,
    find_all_circuit_paths,
    get_circuit_structure_report,
)
from .topology_checks import (
    detect_short_circuits,
    check_rotation,
    has_connection_to_pe,
    find_nearest_rcd_per_phase,
    effective_phases,
)
from .load_flow import calculate_wire_currents, update_wire_currents
from .selectivity import analyze_selectivity
from .editing import assign_verbraucher, unassign_verbraucher, new_verbraucher, add_verbraucher
from .validator import validate_verteiler, run_validation
from .report import format_validation_report, format_errors
