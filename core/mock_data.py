"""
Synthetic cell readings, used when the BMS is unreachable and nothing is cached.
"""

import random
from datetime import datetime
from typing import List, Optional

from core.battery import BatteryCell
from core.config import (
    NUMBER_OF_CELLS, MOCK_SOC_RANGE, MOCK_SOH_RANGE, MOCK_VOLTAGE_RANGE,
    MOCK_ESR_RANGE, MOCK_TEMPERATURE_RANGE, MOCK_CYCLE_RANGE
)


def _between(rng: random.Random, low: int, high: int) -> int:
    """Random integer in [low, high], both ends inclusive."""
    return rng.randint(low, high)


def generate_mock_batteries(count: int = NUMBER_OF_CELLS,
                            rng: Optional[random.Random] = None) -> List[BatteryCell]:
    rng = rng or random.Random()
    v_min, v_max = MOCK_VOLTAGE_RANGE
    steps = int(round((v_max - v_min) * 10))

    cells = []
    for i in range(count):
        cells.append(BatteryCell(
            id=i + 1,
            name=f"Cell {i + 1}",
            soc=_between(rng, *MOCK_SOC_RANGE),
            soh=_between(rng, *MOCK_SOH_RANGE),
            voltage=round(v_min + _between(rng, 0, steps) / 10, 2),
            esr=_between(rng, *MOCK_ESR_RANGE),
            temperature=_between(rng, *MOCK_TEMPERATURE_RANGE),
            cycle_count=_between(rng, *MOCK_CYCLE_RANGE),
            last_updated=datetime.now(),
        ))
    return cells


def update_battery_data(cell: BatteryCell, rng: Optional[random.Random] = None) -> BatteryCell:
    """One simulated tick, applied in place. Returns the same cell."""
    rng = rng or random.Random()

    soc_change = _between(rng, -2, 2)
    new_soc = max(0, min(100, cell.soc + soc_change))

    voltage_change = _between(rng, -5, 5) / 100
    new_voltage = max(3.0, min(4.2, cell.voltage + voltage_change))

    new_temp = max(20, min(45, cell.temperature + _between(rng, -1, 1)))

    # Slow wear when pushed further at high SoC
    if soc_change > 0 and cell.soc > 90:
        cell.soh = max(60, cell.soh - 0.01)

    cell.soc         = new_soc
    cell.voltage     = round(new_voltage, 2)
    cell.temperature = new_temp
    cell.last_updated = datetime.now()
    return cell
