"""
Panel validation: one Topology per pass, the check battery in order, then
aggregates and per-load circuit results.
"""

import logging
import uuid
from collections import defaultdict

from .build_topology import index_verteiler
from .config import SPANNUNG_1PH, settings as default_settings
from .load_flow import load_current, update_wire_currents
from .model import (
    Berechnungen,
    StromkreisBerechnung,
    StromkreisResult,
    ValidationResult,
)
from .rule_checker import (
    CheckContext,
    line_resistance,
    load_loop_impedance,
    phase_loads,
    run_checks,
    supply_loop_impedance,
    wire_resistance,
)

logger = logging.getLogger(__name__)

ERROR_SEVERITIES = ("fehler", "kritisch")


def _assign_ids(diagnostics):
    """Stable ids: same panel content gives the same ids on every run."""
    ordinals = defaultdict(int)
    result = []
    for d in diagnostics:
        key = f"{d.typ}|{d.komponente_id}|{d.beschreibung}"
        ordinal = ordinals[key]
        ordinals[key] += 1
        result.append(d.model_copy(update={"id": str(uuid.uuid5(uuid.NAMESPACE_URL, f"{key}|{ordinal}"))}))
    return result


def _max_voltage_drop(verteiler):
    worst = 0.0
    for wire in verteiler.verbindungen:
        if not wire.querschnitt or wire.querschnitt <= 0:
            continue
        load = next(
            (v for v in verteiler.verbraucher if v.zugewiesene_komponente == wire.nach.component_id),
            None,
        )
        if load is None:
            continue
        strom = load.leistung / SPANNUNG_1PH
        worst = max(worst, wire_resistance(wire) * strom / SPANNUNG_1PH * 100)
    return worst


def _berechnungen(ctx):
    zs, default_used = supply_loop_impedance(ctx.topo, ctx.settings)
    return Berechnungen(
        gesamt_leistung=sum(v.leistung * v.gleichzeitigkeitsfaktor for v in ctx.verteiler.verbraucher),
        spannungsfall=_max_voltage_drop(ctx.verteiler),
        schleifenimpedanz=zs * 1000,
        schleifenimpedanz_default=default_used,
        phasen_lasten=phase_loads(ctx),
    )


def _stromkreise(ctx, errors, warnings):
    results = []
    for v in ctx.verteiler.verbraucher:
        leistung = v.leistung * v.gleichzeitigkeitsfaktor
        strom = load_current(leistung, v.spannung, ctx.phases(v))

        spannungsfall = None
        if v.leitungslaenge and v.leitungsquerschnitt and v.spannung:
            drop = line_resistance(v.leitungslaenge, v.leitungsquerschnitt) * strom
            spannungsfall = drop / v.spannung * 100

        zs, default_used = load_loop_impedance(ctx, v)
        fehler = [e for e in errors if e.komponente_id == v.id]
        warnungen = [w for w in warnings if w.komponente_id == v.id]
        if fehler:
            status = "fehler"
        elif warnungen:
            status = "warnung"
        else:
            status = "ok"

        results.append(StromkreisResult(
            verbraucher_id=v.id,
            verbraucher_name=v.name,
            status=status,
            berechnungen=StromkreisBerechnung(
                leistung=leistung,
                strom=strom,
                spannungsfall=spannungsfall,
                leitungslaenge=v.leitungslaenge,
                querschnitt=v.leitungsquerschnitt,
                schleifenimpedanz=zs,
                schleifenimpedanz_default=default_used,
            ),
            fehler=fehler,
            warnungen=warnungen,
        ))
    return results


def validate_verteiler(verteiler, topo=None, settings=None, store=None):
    """Run every check on a panel snapshot and collect the results."""
    topo = topo or index_verteiler(verteiler)
    ctx = CheckContext(verteiler, topo, settings or default_settings, store)

    diagnostics = _assign_ids(run_checks(ctx))
    errors = [d for d in diagnostics if d.schweregrad in ERROR_SEVERITIES]
    warnings = [d for d in diagnostics if d.schweregrad not in ERROR_SEVERITIES]

    logger.info(
        "Validated %s: %d errors, %d warnings",
        verteiler.name or verteiler.id, len(errors), len(warnings),
    )
    return ValidationResult(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        stromkreise=_stromkreise(ctx, errors, warnings),
        berechnungen=_berechnungen(ctx),
    )


def _flag_components(verteiler, errors):
    messages = defaultdict(list)
    for e in errors:
        messages[e.komponente_id].append(e.beschreibung)

    komponenten = []
    for comp in verteiler.komponenten:
        own = messages.get(comp.id, [])
        komponenten.append(comp.model_copy(update={"has_error": bool(own), "error_messages": own}))
    return verteiler.model_copy(update={"komponenten": komponenten})


def run_validation(verteiler, settings=None, store=None):
    """Wire currents, validation and component error flags in one pass.

    Returns the updated snapshot and the ValidationResult; running it again
    on the returned snapshot yields the same document and result.
    """
    topo = index_verteiler(verteiler)
    updated = update_wire_currents(verteiler, topo)
    topo.rebind(updated)
    result = validate_verteiler(updated, topo=topo, settings=settings, store=store)
    return _flag_components(updated, result.errors), result
