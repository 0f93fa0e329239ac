from datetime import datetime

import pytest

from core import battery
from core.battery import (BatteryCell, CellStatus, determine_status,
                          filter_tested_cells, count_by_status)


@pytest.mark.parametrize("soh, soc, expected", [
    (95, 80, CellStatus.GOOD),
    (85, 20, CellStatus.GOOD),
    (84.9, 80, CellStatus.WARNING),
    (95, 19.9, CellStatus.WARNING),
    (70, 10, CellStatus.WARNING),
    (69.9, 80, CellStatus.DANGER),
    (95, 9.9, CellStatus.DANGER),
    (50, 5, CellStatus.DANGER),
])
def test_determine_status_boundaries(soh, soc, expected):
    assert determine_status(soh, soc) == expected


def test_disposed_or_error_cell_is_danger():
    assert BatteryCell(1, soh=99, soc=99, disposed=True).status == CellStatus.DANGER
    assert BatteryCell(2, soh=99, soc=99, error=True).status == CellStatus.DANGER
    assert BatteryCell(3, soh=99, soc=99).status == CellStatus.GOOD


def test_metric_statuses():
    cell = BatteryCell(1, voltage=3.1, temperature=36, esr=20)
    m = cell.metric_statuses
    assert m['voltage'] == CellStatus.DANGER
    assert m['temperature'] == CellStatus.WARNING
    assert m['esr'] == CellStatus.GOOD


def test_default_name():
    assert BatteryCell(7).name == "Cell 7"
    assert BatteryCell(7, name="Spare").name == "Spare"


def test_usable_capacity():
    assert BatteryCell(1, soh=80, capacity_ah=2.5).usable_capacity_ah == pytest.approx(2.0)
    assert BatteryCell(1, soh=80).usable_capacity_ah is None


def test_dict_roundtrip_ignores_stored_status():
    cell = BatteryCell(4, soc=50, soh=90, voltage=3.7, cycle_count=3,
                       current_test=battery.TestType.ESR, is_under_test=True,
                       project_id='123', last_updated=datetime(2024, 1, 2, 3, 4, 5))
    data = cell.to_dict()
    assert data['cycleCount'] == 3
    assert data['currentTest'] == 'esr'
    assert data['lastUpdated'] == '2024-01-02T03:04:05'

    data['status'] = 'danger'
    restored = BatteryCell.from_dict(data)
    assert restored.status == CellStatus.GOOD
    assert restored.current_test == battery.TestType.ESR
    assert restored.project_id == '123'
    assert restored.last_updated == datetime(2024, 1, 2, 3, 4, 5)


def test_filter_tested_cells():
    cells = [
        BatteryCell(1, soh=95, soc=80, cycle_count=2),
        BatteryCell(2, soh=75, soc=80, cycle_count=1),
        BatteryCell(3, soh=50, soc=80, cycle_count=5),
        BatteryCell(4, soh=95, soc=80),                      # never tested
        BatteryCell(5, soh=95, soc=80, is_under_test=True),
    ]
    assert [c.id for c in filter_tested_cells(cells)] == [1, 2, 3, 5]
    assert [c.id for c in filter_tested_cells(cells, 'good')] == [1, 5]
    assert [c.id for c in filter_tested_cells(cells, 'warning')] == [2]
    assert [c.id for c in filter_tested_cells(cells, 'danger')] == [3]

    with pytest.raises(ValueError):
        filter_tested_cells(cells, 'bogus')


def test_count_by_status():
    cells = [BatteryCell(1, soh=95, soc=80), BatteryCell(2, soh=50, soc=80)]
    assert count_by_status(cells) == {'good': 1, 'warning': 0, 'danger': 1}
