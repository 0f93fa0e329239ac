import math

import pytest

from core.config import DEFAULT_SETTINGS, STORAGE_KEY_SETTINGS
from core.settings import (CellTestSettings, SettingsStore, apply_setting_changes,
                           handle_setting_change)


def test_defaults_match_config():
    assert CellTestSettings().to_dict() == DEFAULT_SETTINGS


def test_load_without_saved_settings(store):
    assert SettingsStore(store).load() == CellTestSettings()


def test_save_and_load(store):
    settings_store = SettingsStore(store)
    settings = CellTestSettings()
    settings.charging.max_voltage = 4.1
    settings.general.max_cells_per_test = 8

    assert settings_store.save(settings)
    loaded = settings_store.load()
    assert loaded.charging.max_voltage == 4.1
    assert loaded.general.max_cells_per_test == 8


def test_partial_or_bad_stored_values_fall_back(store):
    store.set_item(STORAGE_KEY_SETTINGS, {
        'charging': {'max_voltage': 4.0, 'bogus': 1, 'min_voltage': 'low'},
        'esr': 'nonsense',
    })
    loaded = SettingsStore(store).load()
    assert loaded.charging.max_voltage == 4.0
    assert loaded.charging.min_voltage == DEFAULT_SETTINGS['charging']['min_voltage']
    assert loaded.esr.pulse_current == DEFAULT_SETTINGS['esr']['pulse_current']


def test_reset(store):
    settings_store = SettingsStore(store)
    settings = CellTestSettings()
    settings.discharging.cutoff_voltage = 3.0
    settings_store.save(settings)

    assert settings_store.reset() == CellTestSettings()
    assert settings_store.load() == CellTestSettings()


def test_setting_change_accepts_numbers():
    settings = CellTestSettings()
    assert handle_setting_change(settings, 'charging', 'max_voltage', '4.15')
    assert settings.charging.max_voltage == pytest.approx(4.15)

    assert handle_setting_change(settings, 'general', 'max_cells_per_test', 12.0)
    assert settings.general.max_cells_per_test == 12
    assert isinstance(settings.general.max_cells_per_test, int)


@pytest.mark.parametrize("category, setting, value", [
    ('charging', 'max_voltage', 'abc'),
    ('charging', 'max_voltage', None),
    ('charging', 'max_voltage', math.nan),
    ('charging', 'no_such_setting', 1),
    ('no_such_category', 'max_voltage', 1),
])
def test_setting_change_rejects_bad_input(category, setting, value):
    settings = CellTestSettings()
    assert not handle_setting_change(settings, category, setting, value)
    assert settings == CellTestSettings()


def test_form_changes_apply_together():
    settings = CellTestSettings()
    rejected = apply_setting_changes(settings, 'charging',
                                     {'max_voltage': 4.1, 'charge_current': '0.7'})
    assert rejected == []
    assert settings.charging.max_voltage == pytest.approx(4.1)
    assert settings.charging.charge_current == pytest.approx(0.7)


def test_one_bad_form_value_rejects_the_whole_form():
    settings = CellTestSettings()
    rejected = apply_setting_changes(settings, 'charging',
                                     {'max_voltage': 4.0, 'min_voltage': 'abc',
                                      'charge_current': 0.9})
    assert rejected == ['min_voltage']
    assert settings == CellTestSettings()


def test_form_for_unknown_category():
    settings = CellTestSettings()
    assert apply_setting_changes(settings, 'bogus', {'x': 1}) == ['x']
    assert settings == CellTestSettings()
