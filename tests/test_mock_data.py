import random

from core.config import MOCK_SOC_RANGE, MOCK_SOH_RANGE
from core.mock_data import generate_mock_batteries, update_battery_data


def test_generate_mock_batteries():
    cells = generate_mock_batteries(16, random.Random(3))
    assert [c.id for c in cells] == list(range(1, 17))
    for cell in cells:
        assert MOCK_SOC_RANGE[0] <= cell.soc <= MOCK_SOC_RANGE[1]
        assert MOCK_SOH_RANGE[0] <= cell.soh <= MOCK_SOH_RANGE[1]
        assert 3.0 <= cell.voltage <= 4.2
        assert cell.name == f"Cell {cell.id}"


def test_update_is_in_place_and_clamped():
    cell = generate_mock_batteries(1, random.Random(5))[0]
    cell.soc = 100
    cell.voltage = 4.2
    rng = random.Random(11)
    for _ in range(50):
        assert update_battery_data(cell, rng) is cell
        assert 0 <= cell.soc <= 100
        assert 3.0 <= cell.voltage <= 4.2
        assert 20 <= cell.temperature <= 45
        assert cell.soh >= 60
