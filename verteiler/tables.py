import json
import os

from .config import QUERSCHNITT_RESERVE, settings


# Simplified conductor ampacity [A] per cross-section [mm^2]
LEITER_BELASTBARKEIT = {
    1.5: 18,
    2.5: 26,
    4: 34,
    6: 44,
    10: 61,
    16: 82,
    25: 108,
    35: 135,
    50: 168,
    70: 213,
    95: 261,
    120: 301,
}

VERFUEGBARE_QUERSCHNITTE = [1.5, 2.5, 4, 6, 10, 16, 25, 35, 50, 70, 95, 120]

VERBRAUCHER_DEFAULTS = {
    "licht": {"leistung": 100, "spannung": 230},
    "steckdose": {"leistung": 3680, "spannung": 230},
    "herd": {"leistung": 11000, "spannung": 400},
    "backofen": {"leistung": 3500, "spannung": 230},
    "kuehlschrank": {"leistung": 150, "spannung": 230},
    "waschmaschine": {"leistung": 2200, "spannung": 230},
    "trockner": {"leistung": 2500, "spannung": 230},
    "geschirrspueler": {"leistung": 2200, "spannung": 230},
    "warmwasser": {"leistung": 2000, "spannung": 230},
    "heizung": {"leistung": 2000, "spannung": 230},
    "klimaanlage": {"leistung": 3000, "spannung": 230},
    "wallbox": {"leistung": 11000, "spannung": 400},
    "sonstige": {"leistung": 1000, "spannung": 230},
}


def _row(a1, a2, b1, b2, c, d1, d2=None):
    row = {"A1": a1, "A2": a2, "B1": b1, "B2": b2, "C": c, "D1": d1}
    if d2 is not None:
        row["D2"] = d2
    return row


# Current-carrying capacity per OVE E 8101:
# [loaded cores][material][cross-section][installation method]
KABEL_BELASTBARKEIT = {
    2: {
        "kupfer": {
            1.5: _row(14.5, 14, 17.5, 16.5, 19.5, 22, 22),
            2.5: _row(19.5, 18.5, 24, 23, 27, 29, 28),
            4: _row(26, 25, 32, 30, 36, 37, 38),
            6: _row(34, 32, 41, 38, 46, 46, 48),
            10: _row(46, 43, 57, 52, 63, 60, 64),
            16: _row(61, 57, 76, 69, 85, 78, 83),
            25: _row(80, 75, 101, 90, 112, 99, 110),
            35: _row(99, 92, 125, 111, 138, 119, 132),
            50: _row(119, 110, 151, 133, 168, 140, 156),
            70: _row(151, 139, 192, 168, 213, 173, 192),
            95: _row(182, 167, 232, 201, 258, 204, 230),
            120: _row(210, 192, 269, 232, 299, 231, 261),
            150: _row(240, 219, 309, 258, 344, 261, 293),
            185: _row(273, 248, 341, 294, 392, 292, 331),
            240: _row(321, 291, 400, 344, 461, 336, 382),
            300: _row(367, 334, 458, 394, 530, 379, 427),
        },
        "aluminium": {
            2.5: _row(15, 14.5, 18.5, 17.5, 21, 22),
            4: _row(20, 19.5, 25, 24, 28, 29),
            6: _row(26, 25, 32, 30, 36, 36),
            10: _row(36, 33, 44, 41, 49, 47),
            16: _row(48, 44, 60, 54, 66, 61, 63),
            25: _row(63, 58, 79, 71, 83, 77, 82),
            35: _row(77, 71, 97, 86, 103, 93, 98),
            50: _row(93, 86, 118, 104, 125, 109, 117),
            70: _row(118, 108, 150, 131, 160, 135, 145),
            95: _row(142, 130, 181, 157, 195, 159, 173),
            120: _row(164, 150, 210, 181, 226, 180, 200),
            150: _row(189, 172, 234, 201, 261, 204, 224),
            185: _row(215, 195, 266, 230, 298, 228, 255),
            240: _row(252, 229, 312, 269, 352, 262, 298),
            300: _row(289, 263, 358, 308, 406, 296, 338),
        },
    },
    3: {
        "kupfer": {
            1.5: _row(13.5, 13, 15.5, 15, 17.5, 18, 19),
            2.5: _row(18, 17.5, 21, 20, 24, 24, 24),
            4: _row(24, 23, 28, 27, 32, 30, 33),
            6: _row(31, 29, 36, 34, 41, 38, 41),
            10: _row(42, 39, 50, 46, 57, 50, 54),
            16: _row(56, 52, 68, 62, 76, 64, 70),
            25: _row(73, 68, 89, 80, 96, 82, 92),
            35: _row(89, 83, 110, 99, 119, 98, 110),
            50: _row(108, 99, 134, 118, 144, 116, 130),
            70: _row(136, 125, 171, 149, 184, 143, 162),
            95: _row(164, 150, 207, 179, 223, 169, 193),
            120: _row(188, 172, 239, 206, 259, 192, 220),
            150: _row(216, 196, 262, 225, 299, 217, 246),
            185: _row(245, 223, 296, 255, 341, 243, 278),
            240: _row(286, 261, 346, 297, 403, 280, 320),
            300: _row(328, 298, 394, 339, 464, 316, 359),
        },
        "aluminium": {
            2.5: _row(14, 13.5, 16.5, 15.5, 18.5, 18.5),
            4: _row(18.5, 17.5, 22, 21, 25, 24),
            6: _row(24, 23, 28, 27, 32, 30),
            10: _row(32, 31, 39, 36, 44, 39),
            16: _row(43, 41, 53, 48, 59, 50, 53),
            25: _row(57, 53, 70, 62, 73, 64, 69),
            35: _row(70, 65, 86, 77, 90, 77, 83),
            50: _row(84, 78, 104, 92, 110, 91, 99),
            70: _row(107, 98, 133, 116, 140, 112, 122),
            95: _row(129, 118, 161, 139, 170, 132, 148),
            120: _row(149, 135, 186, 160, 197, 150, 169),
            150: _row(170, 155, 204, 176, 227, 169, 189),
            185: _row(194, 176, 230, 199, 259, 190, 214),
            240: _row(227, 207, 269, 232, 305, 218, 250),
            300: _row(261, 237, 306, 265, 351, 247, 282),
        },
    },
}


def _load_json(path):
    with open(path, "r") as f:
        return json.load(f)


def _normalize_table(data):
    table = {}
    for cores, materials in data.items():
        table[int(cores)] = {
            material: {float(q): dict(row) for q, row in sections.items()}
            for material, sections in materials.items()
        }
    return table


class TableStore:
    """Ampacity tables, optionally overridden by kabel_belastbarkeit.json."""

    FILE_NAME = "kabel_belastbarkeit.json"

    def __init__(self, base_dir=None):
        self.base_dir = settings.TABLE_DIR if base_dir is None else base_dir
        self.kabel_belastbarkeit = {}
        self.source = "builtin"
        self._load_all()

    def _load_all(self):
        path = os.path.join(self.base_dir, self.FILE_NAME) if self.base_dir else ""
        if path and os.path.exists(path):
            self.kabel_belastbarkeit = _normalize_table(_load_json(path))
            self.source = path
        else:
            self.kabel_belastbarkeit = _normalize_table(KABEL_BELASTBARKEIT)

    def get_strombelastbarkeit(self, querschnitt, material, verlegeart, anzahl_adern):
        row = (
            self.kabel_belastbarkeit
            .get(anzahl_adern, {})
            .get(material, {})
            .get(float(querschnitt))
        )
        if not row:
            return None
        return row.get(verlegeart)


def get_strombelastbarkeit(querschnitt, material, verlegeart, anzahl_adern, store=None):
    store = store or TableStore()
    return store.get_strombelastbarkeit(querschnitt, material, verlegeart, anzahl_adern)


def get_max_strom(querschnitt):
    """Simplified ampacity for a cross-section, 0 when unknown."""
    return LEITER_BELASTBARKEIT.get(querschnitt, 0)


def empfehle_querschnitt(strom):
    """Smallest cross-section carrying the current with 25 % reserve."""
    for querschnitt in VERFUEGBARE_QUERSCHNITTE:
        if LEITER_BELASTBARKEIT[querschnitt] >= strom * QUERSCHNITT_RESERVE:
            return querschnitt
    return VERFUEGBARE_QUERSCHNITTE[-1]
