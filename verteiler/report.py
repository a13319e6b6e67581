import pandas as pd

from .model import to_document


SEVERITY_LABELS = {
    "info": "INFO",
    "warnung": "WARNING",
    "fehler": "ERROR",
    "kritisch": "CRITICAL",
}


def _format_diagnostic(d):
    line = f"[{SEVERITY_LABELS[d.schweregrad]}] {d.komponente_name or d.komponente_id}: {d.beschreibung}"
    if d.hinweis:
        line += f" ({d.hinweis})"
    return line


def format_errors(errors):
    if not errors:
        return ""
    lines = ["Panel validation failed:"]
    for err in errors:
        lines.append(f"- {err.beschreibung if hasattr(err, 'beschreibung') else err}")
    return "\n".join(lines)


def format_validation_report(result, name=None):
    """
    Format a ValidationResult into a human-readable report.

    Args:
        result: ValidationResult from validate_verteiler
        name: Optional panel name for the header

    Returns:
        str: Formatted report
    """
    lines = []
    if name:
        lines.append(f"=== Panel Validation: {name} ===")
    else:
        lines.append("=== Validation Report ===")

    lines.append("")

    if result.is_valid:
        lines.append("✓ PASSED - All checks passed")
    else:
        lines.append("✗ FAILED - Validation errors found")

    b = result.berechnungen
    lines.append("")
    lines.append(f"Total load: {b.gesamt_leistung / 1000:.2f} kW")
    lines.append(
        "Phase loads: "
        + ", ".join(f"{p} {b.phasen_lasten.get(p, 0) / 1000:.2f} kW" for p in ("L1", "L2", "L3"))
    )
    zs_note = " (default)" if b.schleifenimpedanz_default else ""
    lines.append(f"Supply loop impedance: {b.schleifenimpedanz:.0f} mOhm{zs_note}")

    if result.errors:
        lines.append("")
        lines.append(f"ERRORS ({len(result.errors)}):")
        for i, err in enumerate(result.errors, 1):
            lines.append(f"  {i}. {_format_diagnostic(err)}")

    if result.warnings:
        lines.append("")
        lines.append(f"WARNINGS ({len(result.warnings)}):")
        for i, warn in enumerate(result.warnings, 1):
            lines.append(f"  {i}. {_format_diagnostic(warn)}")

    lines.append("")
    return "\n".join(lines)


DIAGNOSTIC_COLUMNS = [
    "id", "schweregrad", "typ", "komponenteId", "komponenteName",
    "beschreibung", "hinweis", "defaultUsed",
]

CIRCUIT_COLUMNS = [
    "verbraucherId", "verbraucherName", "status", "leistung", "strom",
    "spannungsfall", "leitungslaenge", "querschnitt", "schleifenimpedanz",
    "anzahlFehler", "anzahlWarnungen",
]

WIRE_COLUMNS = [
    "id", "phase", "von", "nach", "querschnitt", "laenge", "material",
    "strom", "durchschnittsstrom",
]


def diagnostics_frame(result):
    rows = [to_document(d) for d in result.errors + result.warnings]
    return pd.DataFrame(rows, columns=DIAGNOSTIC_COLUMNS)


def circuits_frame(result):
    rows = []
    for kreis in result.stromkreise:
        row = {
            "verbraucherId": kreis.verbraucher_id,
            "verbraucherName": kreis.verbraucher_name,
            "status": kreis.status,
            "anzahlFehler": len(kreis.fehler),
            "anzahlWarnungen": len(kreis.warnungen),
        }
        row.update(to_document(kreis.berechnungen))
        rows.append(row)
    return pd.DataFrame(rows, columns=CIRCUIT_COLUMNS)


def wires_frame(verteiler):
    rows = []
    for wire in verteiler.verbindungen:
        rows.append({
            "id": wire.id,
            "phase": wire.phase,
            "von": f"{wire.von.component_id}:{wire.von.terminal}",
            "nach": f"{wire.nach.component_id}:{wire.nach.terminal}",
            "querschnitt": wire.querschnitt,
            "laenge": wire.laenge,
            "material": wire.material,
            "strom": wire.strom,
            "durchschnittsstrom": wire.durchschnittsstrom,
        })
    return pd.DataFrame(rows, columns=WIRE_COLUMNS)
