import pytest

from core import battery_test
from core.battery import TestType as CellTest
from core.settings import CellTestSettings


@pytest.fixture
def engine(offline_service):
    offline_service.fetch()
    return battery_test.CellTestEngine(offline_service)


def test_charge_then_stop_on_two_cells(engine):
    assert len(engine.service.readings) == 16
    engine.select_cell(2, True)
    engine.select_cell(5, True)

    assert engine.start_test(CellTest.CHARGE)
    assert engine.session.test_in_progress
    assert engine.session.current_test == CellTest.CHARGE
    for cell_id in (2, 5):
        cell = engine.service.reading(cell_id)
        assert cell.is_under_test
        assert cell.current_test == CellTest.CHARGE
    assert not engine.service.reading(3).is_under_test

    assert engine.stop_test()
    assert not engine.session.test_in_progress
    assert engine.session.current_test is None
    for cell_id in (2, 5):
        cell = engine.service.reading(cell_id)
        assert not cell.is_under_test
        assert cell.current_test is None


def test_stop_uses_cells_the_test_started_on(engine):
    engine.select_cell(1, True)
    engine.start_test(CellTest.ESR)
    engine.select_cell(1, False)
    engine.select_cell(4, True)

    engine.stop_test()

    assert not engine.service.reading(1).is_under_test


def test_start_requires_selection(engine):
    assert not engine.start_test(CellTest.CHARGE)
    assert "Select at least one cell" in engine.session.message
    assert not engine.session.test_in_progress


def test_only_one_test_at_a_time(engine):
    engine.select_cell(1, True)
    assert engine.start_test(CellTest.CHARGE)
    assert not engine.start_test(CellTest.DISCHARGE)
    assert engine.session.current_test == CellTest.CHARGE


def test_max_cells_per_test(offline_service):
    offline_service.fetch()
    settings = CellTestSettings()
    settings.general.max_cells_per_test = 2
    engine = battery_test.CellTestEngine(offline_service, settings)
    for cell_id in (1, 2, 3):
        engine.select_cell(cell_id, True)

    assert not engine.start_test(CellTest.CHARGE)
    assert "At most 2 cells" in engine.session.message


def test_stop_without_running_test(engine):
    assert not engine.stop_test()


def test_select_all_toggles(engine):
    ids = [c.id for c in engine.service.readings]
    engine.select_all(ids)
    assert engine.session.selected_cells == ids
    engine.select_all(ids)
    assert engine.session.selected_cells == []


def test_toggle_cell_keeps_click_order(engine):
    engine.toggle_cell(7)
    engine.toggle_cell(3)
    engine.toggle_cell(9)
    engine.toggle_cell(3)
    assert engine.session.selected_cells == [7, 9]


def test_dispose_clears_selection(engine):
    engine.select_cell(6, True)
    assert engine.dispose_cells()
    assert engine.service.reading(6).disposed
    assert engine.session.selected_cells == []


def test_dispose_refused_while_testing(engine):
    engine.select_cell(6, True)
    engine.start_test(CellTest.CHARGE)
    assert not engine.dispose_cells()
    assert not engine.service.reading(6).disposed


def test_status_summary(engine):
    summary = engine.status_summary()
    assert summary['state'] == 'Idle'
    assert summary['test_type'] == 'None'
    assert summary['simulation']

    engine.select_cell(1, True)
    engine.start_test(CellTest.CAPACITY)
    summary = engine.status_summary()
    assert summary['state'] == 'Running'
    assert summary['test_type'] == 'Capacity'
    assert summary['cells_selected'] == 1


def test_runtime_str():
    session = battery_test.TestSession(started_at=0, stopped_at=3725)
    assert session.runtime_str == "1h 02m 05s"
    assert battery_test.TestSession().runtime_str == "0m 00s"
