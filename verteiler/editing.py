import logging

from .model import LIVE_PHASES, Verbraucher, get_component, get_verbraucher
from .tables import VERBRAUCHER_DEFAULTS

logger = logging.getLogger(__name__)


def _without(ids, verbraucher_id):
    return [i for i in ids if i != verbraucher_id]


def assign_verbraucher(verteiler, verbraucher_id, component_id):
    """New snapshot with the load assigned to component_id.

    An outgoing terminal (abgangsklemme) holds at most one load: loads
    already on it are evicted.
    """
    verbraucher = get_verbraucher(verteiler, verbraucher_id)
    target = get_component(verteiler, component_id)
    if verbraucher is None or target is None:
        logger.warning("Cannot assign %s to %s: unknown id", verbraucher_id, component_id)
        return verteiler

    evicted = set()
    if target.type == "abgangsklemme":
        evicted = {
            v.id for v in verteiler.verbraucher
            if v.zugewiesene_komponente == component_id and v.id != verbraucher_id
        }
        evicted.update(i for i in target.zugewiesene_verbraucher if i != verbraucher_id)
        if evicted:
            logger.info("Evicted %s from %s", sorted(evicted), target.name or target.id)

    loads = []
    for v in verteiler.verbraucher:
        if v.id == verbraucher_id:
            v = v.model_copy(update={"zugewiesene_komponente": component_id})
        elif v.id in evicted:
            v = v.model_copy(update={"zugewiesene_komponente": None})
        loads.append(v)

    komponenten = []
    for comp in verteiler.komponenten:
        if comp.type == "abgangsklemme":
            if comp.id == component_id:
                comp = comp.model_copy(update={"zugewiesene_verbraucher": [verbraucher_id]})
            elif verbraucher_id in comp.zugewiesene_verbraucher:
                comp = comp.model_copy(
                    update={"zugewiesene_verbraucher": _without(comp.zugewiesene_verbraucher, verbraucher_id)}
                )
        komponenten.append(comp)

    return verteiler.model_copy(update={"verbraucher": loads, "komponenten": komponenten})


def unassign_verbraucher(verteiler, verbraucher_id):
    if get_verbraucher(verteiler, verbraucher_id) is None:
        logger.warning("Cannot unassign %s: unknown load", verbraucher_id)
        return verteiler

    loads = [
        v.model_copy(update={"zugewiesene_komponente": None}) if v.id == verbraucher_id else v
        for v in verteiler.verbraucher
    ]
    komponenten = [
        comp.model_copy(update={"zugewiesene_verbraucher": _without(comp.zugewiesene_verbraucher, verbraucher_id)})
        if comp.type == "abgangsklemme" and verbraucher_id in comp.zugewiesene_verbraucher
        else comp
        for comp in verteiler.komponenten
    ]
    return verteiler.model_copy(update={"verbraucher": loads, "komponenten": komponenten})


def new_verbraucher(verbraucher_id, typ="sonstige", **fields):
    """Load prefilled with the catalog power and voltage of its type."""
    values = dict(VERBRAUCHER_DEFAULTS.get(typ, VERBRAUCHER_DEFAULTS["sonstige"]))
    if values["spannung"] == 400:
        values["phasen"] = list(LIVE_PHASES)
    values.update(fields)
    return Verbraucher(id=verbraucher_id, typ=typ, **values)


def add_verbraucher(verteiler, verbraucher):
    loads = [v for v in verteiler.verbraucher if v.id != verbraucher.id]
    loads.append(verbraucher)
    return verteiler.model_copy(update={"verbraucher": loads})
