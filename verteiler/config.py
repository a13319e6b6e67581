"""Engine configuration via environment variables."""

import os


def _env_float(name, default):
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return float(value)


class Settings:
    """Engine settings loaded from environment variables."""

    # Supply loop impedance [Ohm] assumed when the supply terminal has none
    DEFAULT_LOOP_IMPEDANCE_OHM: float = _env_float("VERTEILER_DEFAULT_LOOP_IMPEDANCE_OHM", 0.5)

    # Directory searched for kabel_belastbarkeit.json overrides
    TABLE_DIR: str = os.environ.get("VERTEILER_TABLE_DIR", "")

    LOG_LEVEL: str = os.environ.get("VERTEILER_LOG_LEVEL", "INFO")

    def __init__(self, **overrides):
        for key, value in overrides.items():
            if not hasattr(type(self), key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)


settings = Settings()


# Nominal voltages [V]
SPANNUNG_1PH = 230
SPANNUNG_3PH = 400

# Voltage drop limit for final circuits [%], warning above 80 % of it
MAX_SPANNUNGSFALL_PROZENT = 4
SPANNUNGSFALL_WARN_ANTEIL = 0.8

# Resistivity [Ohm * mm^2 / m]
RHO_KUPFER = 0.0178
RHO_ALUMINIUM = 0.0286

# Required disconnection time at 230 V in TN systems [s]
MAX_ABSCHALTZEIT_230V = 0.4
ZS_SICHERHEITSFAKTOR = 2 / 3

# Magnetic trip multiple of the rated current per characteristic
AUSLOESEFAKTOR = {"B": 5, "C": 10, "D": 20, "K": 20}
AUSLOESEFAKTOR_DEFAULT = 5

SELEKTIVITAETSFAKTOR = 1.6
VERZOEGERUNG_RANG = {"Standard": 0, "G": 1, "S": 2}

# Switching-current rule for fuses: Iz * 1.45 >= In * 1.6
SCHMELZSICHERUNG_FAKTOR = 1.6 / 1.45

STECKDOSEN_FI_MAX_MA = 30
PHASENASYMMETRIE_MAX_PROZENT = 30

# Fuse rating close to the conductor ampacity
LEITER_RESERVE_ANTEIL = 0.9

QUERSCHNITT_RESERVE = 1.25
