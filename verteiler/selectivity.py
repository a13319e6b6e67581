import logging
import math

from .circuit_paths import find_series_components, protective_components
from .config import SELEKTIVITAETSFAKTOR, VERZOEGERUNG_RANG
from .terminals import OVERCURRENT_TYPES, PROTECTIVE_TYPES, RCD_TYPES, rated_current

logger = logging.getLogger(__name__)


def _overcurrent_violation(upstream, downstream):
    up = rated_current(upstream)
    down = rated_current(downstream)
    if up <= 0 or down <= 0:
        return None
    factor = up / down
    if factor >= SELEKTIVITAETSFAKTOR:
        return None
    return {
        "upstream": upstream,
        "downstream": downstream,
        "kind": "ls",
        "factor": factor,
        "reason": (
            f"Overcurrent selectivity not ensured: {upstream.name} ({up:g}A) / "
            f"{downstream.name} ({down:g}A) = {factor:.2f} < {SELEKTIVITAETSFAKTOR}. "
            f"Upstream device should be rated at least {math.ceil(down * SELEKTIVITAETSFAKTOR)}A."
        ),
        "severity": "error" if factor < 1.0 else "warning",
    }


def _rcd_violation(upstream, downstream):
    up = VERZOEGERUNG_RANG.get(upstream.verzoegerung, 0)
    down = VERZOEGERUNG_RANG.get(downstream.verzoegerung, 0)
    if up < down:
        return {
            "upstream": upstream,
            "downstream": downstream,
            "kind": "fi",
            "reason": (
                f"RCD selectivity not ensured: {upstream.name} ({upstream.verzoegerung}) is "
                f"less delayed than {downstream.name} ({downstream.verzoegerung}). "
                "The upstream RCD needs the longer delay."
            ),
            "severity": "error",
        }
    if up == down and up > 0:
        return {
            "upstream": upstream,
            "downstream": downstream,
            "kind": "fi",
            "reason": (
                f"RCD selectivity questionable: {upstream.name} and {downstream.name} "
                f"both have delay \"{upstream.verzoegerung}\"."
            ),
            "severity": "warning",
        }
    return None


def analyze_selectivity(topo):
    """Selectivity violations between protective devices that are truly in series."""
    violations = []
    seen = set()

    for downstream in protective_components(topo):
        upstream_devices = [
            c for c in find_series_components(topo, downstream.id) if c.type in PROTECTIVE_TYPES
        ]
        for upstream in upstream_devices:
            found = []
            if downstream.type in OVERCURRENT_TYPES and upstream.type in OVERCURRENT_TYPES:
                found.append(_overcurrent_violation(upstream, downstream))
            if downstream.type in RCD_TYPES and upstream.type in RCD_TYPES:
                found.append(_rcd_violation(upstream, downstream))
            for violation in found:
                if violation is None:
                    continue
                key = (upstream.id, downstream.id, violation["kind"])
                if key in seen:
                    continue
                seen.add(key)
                violations.append(violation)

    logger.debug("Selectivity analysis: %d violations", len(violations))
    return violations
