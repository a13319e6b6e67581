"""
Panel document model.

A panel (Verteiler) is an immutable snapshot: components on DIN rails, the
wires between their terminals and the loads assigned to outgoing terminals.
JSON documents use the editor's camelCase keys; attributes are snake_case.
"""

import json
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


Phase = Literal["L1", "L2", "L3", "N", "PE"]
Schweregrad = Literal["info", "warnung", "fehler", "kritisch"]

LIVE_PHASES = ("L1", "L2", "L3")


class _Snapshot(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class _Result(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Position(_Snapshot):
    rail: int = 0
    slot: int = 0


class Hutschiene(_Snapshot):
    id: str
    index: int
    slots: int = 24


class _BaseComponent(_Snapshot):
    id: str
    name: str = ""
    position: Optional[Position] = None
    teilungseinheiten: int = 1
    has_error: bool = False
    error_messages: List[str] = Field(default_factory=list)


class FISchalter(_BaseComponent):
    type: Literal["fi-schalter"] = "fi-schalter"
    teilungseinheiten: int = 2
    polzahl: Literal[2, 4] = 2
    bemessungs_strom: float = 40
    bemessungs_fehlerstrom: float = 30
    fi_typ: Literal["A", "AC", "B", "B+", "F"] = "A"
    verzoegerung: Literal["Standard", "G", "S"] = "Standard"


class LSSchalter(_BaseComponent):
    type: Literal["ls-schalter"] = "ls-schalter"
    polzahl: Literal[1, 2, 3, 4] = 1
    bemessungs_strom: float = 16
    charakteristik: Literal["A", "B", "C", "D", "K", "Z"] = "B"
    kurzschluss_schaltvermoegen: float = 6000


class FILSKombi(_BaseComponent):
    type: Literal["fi-ls-kombi"] = "fi-ls-kombi"
    teilungseinheiten: int = 2
    polzahl: Literal[1, 2, 3, 4] = 2
    bemessungs_strom: float = 16
    charakteristik: Literal["A", "B", "C", "D", "K", "Z"] = "B"
    kurzschluss_schaltvermoegen: float = 6000
    bemessungs_fehlerstrom: float = 30
    fi_typ: Literal["A", "AC", "B", "B+", "F"] = "A"
    verzoegerung: Literal["Standard", "G", "S"] = "Standard"


class NHSicherung(_BaseComponent):
    type: Literal["nh-sicherung"] = "nh-sicherung"
    teilungseinheiten: int = 3
    bemessungs_strom: float = 63
    groesse: str = "NH00"
    betriebsklasse: str = "gG"


class SchraubSicherung(_BaseComponent):
    type: Literal["schraub-sicherung"] = "schraub-sicherung"
    bemessungs_strom: float = 16
    groesse: str = "DII"


class NeozedSicherung(_BaseComponent):
    type: Literal["neozed-sicherung"] = "neozed-sicherung"
    polzahl: Literal[1, 3] = 1
    bemessungs_strom: float = 16
    kennlinie: str = "gG"


class SammelSchiene(_BaseComponent):
    type: Literal["sammelschiene"] = "sammelschiene"
    teilungseinheiten: int = 2
    phase: Phase = "L1"
    laenge: float = 0
    querschnitt: float = 10


class Zaehler(_BaseComponent):
    type: Literal["zaehler"] = "zaehler"
    teilungseinheiten: int = 4
    art: str = "elektronisch"
    phasen: Literal[1, 3] = 3


class Schuetz(_BaseComponent):
    type: Literal["schuetz"] = "schuetz"
    bemessungs_strom: float = 25
    spulen_spannung: float = 230
    polzahl: Literal[1, 2, 3, 4] = 3


class Klemme(_BaseComponent):
    type: Literal["klemme"] = "klemme"
    phase: Phase = "L1"
    querschnitt: float = 4


class Versorgungsklemme(_BaseComponent):
    type: Literal["versorgungsklemme"] = "versorgungsklemme"
    teilungseinheiten: int = 4
    spannung: float = 400
    kurzschluss_strom: float = 6
    schleifenimpedanz: Optional[float] = None
    netzsystem: Literal["TN-C", "TN-S", "TN-C-S", "TT", "IT"] = "TN-C-S"


class Abgangsklemme(_BaseComponent):
    type: Literal["abgangsklemme"] = "abgangsklemme"
    teilungseinheiten: int = 2
    polzahl: Literal[3, 5] = 3
    querschnitt: float = 2.5
    zugewiesene_verbraucher: List[str] = Field(default_factory=list)


class Ueberspannungsschutz(_BaseComponent):
    type: Literal["ueberspannungsschutz"] = "ueberspannungsschutz"
    teilungseinheiten: int = 3
    system_typ: Literal["AC", "DC"] = "AC"
    polzahl: Literal[2, 3] = 3
    schutzklasse: str = "T2"


COMPONENT_CLASSES = (
    FISchalter,
    LSSchalter,
    FILSKombi,
    NHSicherung,
    SchraubSicherung,
    NeozedSicherung,
    SammelSchiene,
    Zaehler,
    Schuetz,
    Klemme,
    Versorgungsklemme,
    Abgangsklemme,
    Ueberspannungsschutz,
)

COMPONENT_TYPES = tuple(cls.model_fields["type"].default for cls in COMPONENT_CLASSES)

Component = Annotated[
    Union[
        FISchalter,
        LSSchalter,
        FILSKombi,
        NHSicherung,
        SchraubSicherung,
        NeozedSicherung,
        SammelSchiene,
        Zaehler,
        Schuetz,
        Klemme,
        Versorgungsklemme,
        Abgangsklemme,
        Ueberspannungsschutz,
    ],
    Field(discriminator="type"),
]


class ConnectionPoint(_Snapshot):
    component_id: str
    terminal: str
    phase: Optional[Phase] = None


class WireWaypoint(_Snapshot):
    x: float
    y: float


class Wire(_Snapshot):
    id: str
    von: ConnectionPoint
    nach: ConnectionPoint
    waypoints: List[WireWaypoint] = Field(default_factory=list)
    querschnitt: float = 1.5
    laenge: float = 0
    phase: Phase
    material: Literal["Cu", "Al"] = "Cu"
    strom: Optional[float] = None
    durchschnittsstrom: Optional[float] = None


VerbraucherTyp = Literal[
    "licht",
    "steckdose",
    "herd",
    "backofen",
    "kuehlschrank",
    "waschmaschine",
    "trockner",
    "geschirrspueler",
    "warmwasser",
    "heizung",
    "klimaanlage",
    "wallbox",
    "sonstige",
]


class Verbraucher(_Snapshot):
    id: str
    name: str = ""
    typ: VerbraucherTyp = "sonstige"
    leistung: float = 1000
    spannung: float = 230
    phasen: List[Phase] = Field(default_factory=lambda: ["L1"])
    gleichzeitigkeitsfaktor: float = 1.0
    gruppe: Optional[str] = None
    zugewiesene_komponente: Optional[str] = None
    leitungslaenge: Optional[float] = None
    leitungsquerschnitt: Optional[float] = None
    verlegeart: Optional[Literal["A1", "A2", "B1", "B2", "C", "D1", "D2"]] = None
    leitermaterial: Optional[Literal["kupfer", "aluminium"]] = None


class Verteiler(_Snapshot):
    id: str
    name: str = ""
    beschreibung: Optional[str] = None
    hutschienen: List[Hutschiene] = Field(default_factory=list)
    komponenten: List[Component] = Field(default_factory=list)
    verbraucher: List[Verbraucher] = Field(default_factory=list)
    verbindungen: List[Wire] = Field(default_factory=list)
    nennspannung: float = 400
    nennstrom: float = 63
    kurzschluss_strom: float = 6


# ---------------------------------------------------------------------------
# Validation output
# ---------------------------------------------------------------------------


class Diagnostic(_Result):
    id: str = ""
    typ: str
    komponente_id: str
    komponente_name: str
    beschreibung: str
    hinweis: str
    schweregrad: Schweregrad
    default_used: bool = False


class StromkreisBerechnung(_Result):
    leistung: float
    strom: float
    spannungsfall: Optional[float] = None
    leitungslaenge: Optional[float] = None
    querschnitt: Optional[float] = None
    schleifenimpedanz: Optional[float] = None
    schleifenimpedanz_default: bool = False


class StromkreisResult(_Result):
    verbraucher_id: str
    verbraucher_name: str
    status: Literal["ok", "warnung", "fehler"]
    berechnungen: StromkreisBerechnung
    fehler: List[Diagnostic] = Field(default_factory=list)
    warnungen: List[Diagnostic] = Field(default_factory=list)


class Berechnungen(_Result):
    gesamt_leistung: float = 0
    spannungsfall: float = 0
    schleifenimpedanz: float = 0
    schleifenimpedanz_default: bool = False
    phasen_lasten: dict = Field(default_factory=dict)


class ValidationResult(_Result):
    is_valid: bool
    errors: List[Diagnostic] = Field(default_factory=list)
    warnings: List[Diagnostic] = Field(default_factory=list)
    stromkreise: List[StromkreisResult] = Field(default_factory=list)
    berechnungen: Berechnungen = Field(default_factory=Berechnungen)


# ---------------------------------------------------------------------------
# Loading and lookup
# ---------------------------------------------------------------------------


def load_verteiler(path):
    with open(path, "r") as f:
        data = json.load(f)
    # Project files wrap the panel as {"verteiler": {...}}
    if isinstance(data, dict) and "verteiler" in data:
        data = data["verteiler"]
    return Verteiler.model_validate(data)


def dump_verteiler(verteiler, path):
    with open(path, "w") as f:
        json.dump(to_document(verteiler), f, indent=2)


def to_document(model):
    return model.model_dump(by_alias=True, mode="json", exclude_none=True)


def get_component(verteiler, component_id):
    for comp in verteiler.komponenten:
        if comp.id == component_id:
            return comp
    return None


def get_verbraucher(verteiler, verbraucher_id):
    for verbraucher in verteiler.verbraucher:
        if verbraucher.id == verbraucher_id:
            return verbraucher
    return None


def find_supply(verteiler):
    for comp in verteiler.komponenten:
        if comp.type == "versorgungsklemme":
            return comp
    return None
