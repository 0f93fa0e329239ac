"""
Battery Cell Model
One reading per cell, status classification and (de)serialisation for the
local store.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from core.config import (
    SOH_DANGER_PCT, SOH_WARNING_PCT, SOC_DANGER_PCT, SOC_WARNING_PCT,
    VOLTAGE_DANGER_V, VOLTAGE_WARNING_V, TEMP_DANGER_C, TEMP_WARNING_C,
    ESR_DANGER_MOHM, ESR_WARNING_MOHM
)


# ── Enums ─────────────────────────────────────────────────────────────────────

class TestType(Enum):
    CHARGE    = 'charge'
    DISCHARGE = 'discharge'
    ESR       = 'esr'
    CAPACITY  = 'capacity'
    MACRO     = 'macro'
    STORE     = 'store'

class CellStatus(Enum):
    GOOD    = 'good'
    WARNING = 'warning'
    DANGER  = 'danger'


# ── Status Classification ─────────────────────────────────────────────────────

def determine_status(soh: float, soc: float) -> CellStatus:
    """SoH/SoC classification used for the overall cell status."""
    if soh < SOH_DANGER_PCT or soc < SOC_DANGER_PCT:
        return CellStatus.DANGER
    if soh < SOH_WARNING_PCT or soc < SOC_WARNING_PCT:
        return CellStatus.WARNING
    return CellStatus.GOOD


def voltage_status(voltage: float) -> CellStatus:
    if voltage < VOLTAGE_DANGER_V:
        return CellStatus.DANGER
    if voltage < VOLTAGE_WARNING_V:
        return CellStatus.WARNING
    return CellStatus.GOOD


def temperature_status(temperature: float) -> CellStatus:
    if temperature > TEMP_DANGER_C:
        return CellStatus.DANGER
    if temperature > TEMP_WARNING_C:
        return CellStatus.WARNING
    return CellStatus.GOOD


def esr_status(esr: float) -> CellStatus:
    if esr > ESR_DANGER_MOHM:
        return CellStatus.DANGER
    if esr > ESR_WARNING_MOHM:
        return CellStatus.WARNING
    return CellStatus.GOOD


# ── Data Classes ──────────────────────────────────────────────────────────────

def _parse_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            pass
    return datetime.now()


def _optional_float(value) -> Optional[float]:
    return None if value is None else float(value)


@dataclass
class BatteryCell:
    """Latest known reading for one cell. ``id`` is the join key everywhere."""
    id:            int
    name:          str   = ''
    soc:           float = 0.0       # %
    soh:           float = 0.0       # %
    voltage:       float = 0.0       # V
    esr:           float = 0.0       # mΩ
    temperature:   float = 0.0       # °C
    cycle_count:   int   = 0

    # Optional, None when the BMS does not report them
    capacity_ah:   Optional[float] = None
    max_voltage:   Optional[float] = None
    min_voltage:   Optional[float] = None
    store_voltage: Optional[float] = None

    is_under_test: bool              = False
    current_test:  Optional[TestType] = None
    disposed:      bool              = False
    error:         bool              = False
    project_id:    Optional[str]     = None
    last_updated:  datetime          = field(default_factory=datetime.now)

    def __post_init__(self):
        if not self.name:
            self.name = f"Cell {self.id}"

    # ── Computed Properties ───────────────────────────────────────────────────

    @property
    def status(self) -> CellStatus:
        if self.disposed or self.error:
            return CellStatus.DANGER
        return determine_status(self.soh, self.soc)

    @property
    def metric_statuses(self) -> Dict[str, CellStatus]:
        return {
            'voltage':     voltage_status(self.voltage),
            'temperature': temperature_status(self.temperature),
            'esr':         esr_status(self.esr),
        }

    @property
    def is_tested(self) -> bool:
        return self.cycle_count > 0 or self.is_under_test or self.current_test is not None

    @property
    def usable_capacity_ah(self) -> Optional[float]:
        if self.capacity_ah is None:
            return None
        return self.capacity_ah * (self.soh / 100.0)

    # ── Serialisation ─────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            'id':           self.id,
            'name':         self.name,
            'soc':          self.soc,
            'soh':          self.soh,
            'voltage':      self.voltage,
            'esr':          self.esr,
            'temperature':  self.temperature,
            'cycleCount':   self.cycle_count,
            'capacityAh':   self.capacity_ah,
            'maxVoltage':   self.max_voltage,
            'minVoltage':   self.min_voltage,
            'storeVoltage': self.store_voltage,
            'isUnderTest':  self.is_under_test,
            'currentTest':  self.current_test.value if self.current_test else None,
            'disposed':     self.disposed,
            'error':        self.error,
            'projectId':    self.project_id,
            'status':       self.status.value,
            'lastUpdated':  self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'BatteryCell':
        # 'status' is derived, anything stored under it is ignored
        current_test = data.get('currentTest')
        return cls(
            id=int(data['id']),
            name=data.get('name', ''),
            soc=float(data.get('soc', 0)),
            soh=float(data.get('soh', 0)),
            voltage=float(data.get('voltage', 0)),
            esr=float(data.get('esr', 0)),
            temperature=float(data.get('temperature', 0)),
            cycle_count=int(data.get('cycleCount', 0)),
            capacity_ah=_optional_float(data.get('capacityAh')),
            max_voltage=_optional_float(data.get('maxVoltage')),
            min_voltage=_optional_float(data.get('minVoltage')),
            store_voltage=_optional_float(data.get('storeVoltage')),
            is_under_test=bool(data.get('isUnderTest', False)),
            current_test=TestType(current_test) if current_test else None,
            disposed=bool(data.get('disposed', False)),
            error=bool(data.get('error', False)),
            project_id=data.get('projectId'),
            last_updated=_parse_datetime(data.get('lastUpdated')),
        )


# ── Helpers ───────────────────────────────────────────────────────────────────

STATUS_FILTERS = ('all', 'good', 'warning', 'danger')


def filter_tested_cells(cells: List[BatteryCell], status_filter: str = 'all') -> List[BatteryCell]:
    """Cells that have seen at least one test, optionally narrowed by status."""
    if status_filter not in STATUS_FILTERS:
        raise ValueError(f"Unknown status filter: {status_filter}")
    tested = [c for c in cells if c.is_tested]
    if status_filter == 'all':
        return tested
    return [c for c in tested if c.status.value == status_filter]


def count_by_status(cells: List[BatteryCell]) -> Dict[str, int]:
    counts = {s.value: 0 for s in CellStatus}
    for cell in cells:
        counts[cell.status.value] += 1
    return counts
