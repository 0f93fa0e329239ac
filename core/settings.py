"""
Cell Test Settings
Operator-tunable parameters for each test type, persisted in the local store.
"""

from dataclasses import dataclass, field, fields, asdict, replace
from typing import Dict, List, Optional

from core.app_logger import get_logger
from core.config import DEFAULT_SETTINGS, STORAGE_KEY_SETTINGS
from core.storage import LocalStore

log = get_logger(__name__)


# ── Data Classes ──────────────────────────────────────────────────────────────

@dataclass
class ChargingSettings:
    max_voltage:         float = DEFAULT_SETTINGS['charging']['max_voltage']
    min_voltage:         float = DEFAULT_SETTINGS['charging']['min_voltage']
    charge_current:      float = DEFAULT_SETTINGS['charging']['charge_current']
    termination_current: float = DEFAULT_SETTINGS['charging']['termination_current']
    max_temperature:     float = DEFAULT_SETTINGS['charging']['max_temperature']

@dataclass
class DischargingSettings:
    cutoff_voltage:    float = DEFAULT_SETTINGS['discharging']['cutoff_voltage']
    discharge_current: float = DEFAULT_SETTINGS['discharging']['discharge_current']
    max_temperature:   float = DEFAULT_SETTINGS['discharging']['max_temperature']

@dataclass
class ESRSettings:
    pulse_current: float = DEFAULT_SETTINGS['esr']['pulse_current']
    pulse_length:  float = DEFAULT_SETTINGS['esr']['pulse_length']
    measurements:  float = DEFAULT_SETTINGS['esr']['measurements']

@dataclass
class CapacitySettings:
    charge_current:    float = DEFAULT_SETTINGS['capacity']['charge_current']
    discharge_current: float = DEFAULT_SETTINGS['capacity']['discharge_current']
    rest_period:       float = DEFAULT_SETTINGS['capacity']['rest_period']
    cycles:            float = DEFAULT_SETTINGS['capacity']['cycles']

@dataclass
class GeneralSettings:
    storage_voltage:    float = DEFAULT_SETTINGS['general']['storage_voltage']
    max_cells_per_test: float = DEFAULT_SETTINGS['general']['max_cells_per_test']
    log_interval:       float = DEFAULT_SETTINGS['general']['log_interval']


CATEGORIES = {
    'charging':    ChargingSettings,
    'discharging': DischargingSettings,
    'esr':         ESRSettings,
    'capacity':    CapacitySettings,
    'general':     GeneralSettings,
}


def _build(cls, data):
    """Dataclass from a dict, ignoring unknown keys and non-numeric values."""
    if not isinstance(data, dict):
        return cls()
    kwargs = {}
    for f in fields(cls):
        value = data.get(f.name)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            kwargs[f.name] = value
    return cls(**kwargs)


@dataclass
class CellTestSettings:
    charging:    ChargingSettings    = field(default_factory=ChargingSettings)
    discharging: DischargingSettings = field(default_factory=DischargingSettings)
    esr:         ESRSettings         = field(default_factory=ESRSettings)
    capacity:    CapacitySettings    = field(default_factory=CapacitySettings)
    general:     GeneralSettings     = field(default_factory=GeneralSettings)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data) -> 'CellTestSettings':
        if not isinstance(data, dict):
            return cls()
        return cls(**{name: _build(klass, data.get(name))
                      for name, klass in CATEGORIES.items()})


# ── Persistence ───────────────────────────────────────────────────────────────

class SettingsStore:

    def __init__(self, store: Optional[LocalStore] = None):
        self.store = store or LocalStore()

    def load(self) -> CellTestSettings:
        data = self.store.get_item(STORAGE_KEY_SETTINGS)
        if data is None:
            return CellTestSettings()
        return CellTestSettings.from_dict(data)

    def save(self, settings: CellTestSettings) -> bool:
        ok = self.store.set_item(STORAGE_KEY_SETTINGS, settings.to_dict())
        if ok:
            log.info("Cell test settings saved")
        return ok

    def reset(self) -> CellTestSettings:
        settings = CellTestSettings()
        self.save(settings)
        return settings


def handle_setting_change(settings: CellTestSettings, category: str,
                          setting: str, value) -> bool:
    """
    Set one numeric value from form input. Non-numeric input, or an unknown
    category/setting, leaves ``settings`` untouched and returns False.
    """
    if category not in CATEGORIES:
        return False
    group = getattr(settings, category)
    if setting not in {f.name for f in fields(group)}:
        return False
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    if number != number:         # NaN
        return False
    if number.is_integer() and isinstance(getattr(group, setting), int):
        number = int(number)
    setattr(group, setting, number)
    return True


def apply_setting_changes(settings: CellTestSettings, category: str,
                          values: Dict[str, object]) -> List[str]:
    """
    Apply a whole form at once. Returns the names that were rejected; when
    any is, ``settings`` is left exactly as it was.
    """
    if category not in CATEGORIES:
        return list(values)
    staged = CellTestSettings(**{category: replace(getattr(settings, category))})
    rejected = [name for name, value in values.items()
                if not handle_setting_change(staged, category, name, value)]
    if not rejected:
        setattr(settings, category, getattr(staged, category))
    return rejected
