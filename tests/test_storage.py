from datetime import datetime

from core.battery import BatteryCell
from core.config import STORAGE_KEY_BATTERIES
from core.mock_data import generate_mock_batteries


def test_local_store_roundtrip(store):
    assert store.get_item('missing') is None
    assert store.set_item('thing', {'a': [1, 2]})
    assert store.get_item('thing') == {'a': [1, 2]}
    store.remove_item('thing')
    assert store.get_item('thing') is None
    store.remove_item('thing')


def test_corrupt_file_reads_as_missing(store, storage):
    store.directory.mkdir(parents=True, exist_ok=True)
    (store.directory / f"{STORAGE_KEY_BATTERIES}.json").write_text("{not json")
    assert store.get_item(STORAGE_KEY_BATTERIES) is None
    assert storage.load_batteries() == []


def test_unreadable_entries_are_skipped(store, storage):
    store.set_item(STORAGE_KEY_BATTERIES, [{'id': 1, 'soc': 40}, {'soc': 10}])
    assert [c.id for c in storage.load_batteries()] == [1]


def test_save_battery_inserts_and_updates(storage):
    storage.save_battery(BatteryCell(1, soc=10))
    storage.save_battery(BatteryCell(2, soc=20))
    storage.save_battery(BatteryCell(1, soc=99))

    cells = storage.load_batteries()
    assert [c.id for c in cells] == [1, 2]
    assert cells[0].soc == 99


def test_save_battery_keeps_project(storage):
    storage.save_batteries([BatteryCell(1), BatteryCell(2)])
    project = storage.create_battery_project("Pack", "2S1P", [1, 2])

    storage.save_battery(BatteryCell(1, soc=77))

    assert storage.get_battery_by_id(1).project_id == project.id


def test_save_readings_returns_only_readings(storage):
    storage.save_batteries([BatteryCell(i) for i in range(1, 5)])
    storage.create_battery_project("Pack", "2S1P", [3, 4])

    cells = storage.save_readings([BatteryCell(3, soc=42)])

    assert [c.id for c in cells] == [3]
    assert cells[0].project_id is not None
    assert [c.id for c in storage.load_batteries()] == [1, 2, 3, 4]
    assert storage.get_battery_by_id(3).soc == 42


def test_save_readings_stamps_time(storage):
    old = datetime(2020, 1, 1)
    cells = storage.save_readings([BatteryCell(1, last_updated=old)])
    assert cells[0].last_updated > old
    assert storage.get_battery_by_id(1).last_updated > old


def test_update_batteries_leaves_timestamp(storage):
    stamp = datetime(2023, 5, 6, 7, 8, 9)
    storage.save_batteries([BatteryCell(1, last_updated=stamp), BatteryCell(2)])

    changed = storage.update_batteries([1, 42], lambda c: setattr(c, 'disposed', True))

    assert [c.id for c in changed] == [1]
    cell = storage.get_battery_by_id(1)
    assert cell.disposed
    assert cell.last_updated == stamp
    assert not storage.get_battery_by_id(2).disposed


def test_create_project_assigns_cells(storage):
    storage.save_batteries([BatteryCell(i) for i in range(1, 7)])

    first = storage.create_battery_project("A", "2S1P", [1, 2])
    second = storage.create_battery_project("B", "2S1P", [3, 4])

    assert first.id != second.id
    assert [p.name for p in storage.load_projects()] == ["A", "B"]
    assert [c.id for c in storage.get_project_batteries(first.id)] == [1, 2]
    assert [c.id for c in storage.get_available_batteries()] == [5, 6]
    assert storage.assigned_battery_ids() == {1, 2, 3, 4}


def test_project_dict_roundtrip(storage):
    storage.create_battery_project("Pack", "4S1P", [1, 2, 3, 4])
    project = storage.load_projects()[0]
    data = project.to_dict()
    assert data['batteryIds'] == [1, 2, 3, 4]
    assert project.cell_count == 4
    assert isinstance(project.created_at, datetime)


def test_seed_only_when_empty(storage):
    assert storage.seed_mock_data(generate_mock_batteries(4))
    assert not storage.seed_mock_data(generate_mock_batteries(8))
    assert len(storage.load_batteries()) == 4
