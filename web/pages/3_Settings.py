"""
Settings page: test parameters per test type, saved to the local store.
"""

import streamlit as st

import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from core.settings import apply_setting_changes
from web.ui_common import init_state, engine, poll, page_header, log_expander, footer

st.set_page_config(page_title="Cell Test Settings", page_icon="⚙", layout="wide")
init_state()

# (setting, label, unit, step)
SETTING_FIELDS = {
    'charging': [
        ('max_voltage',         "Max Voltage",         "V",  0.01),
        ('min_voltage',         "Min Voltage",         "V",  0.01),
        ('charge_current',      "Charge Current",      "A",  0.01),
        ('termination_current', "Termination Current", "A",  0.01),
        ('max_temperature',     "Max Temperature",     "°C", 1.0),
    ],
    'discharging': [
        ('cutoff_voltage',    "Cutoff Voltage",    "V",  0.01),
        ('discharge_current', "Discharge Current", "A",  0.01),
        ('max_temperature',   "Max Temperature",   "°C", 1.0),
    ],
    'esr': [
        ('pulse_current', "Pulse Current", "A",  0.01),
        ('pulse_length',  "Pulse Length",  "ms", 1.0),
        ('measurements',  "Measurements",  "",   1.0),
    ],
    'capacity': [
        ('charge_current',    "Charge Current",    "A",   0.01),
        ('discharge_current', "Discharge Current", "A",   0.01),
        ('rest_period',       "Rest Period",       "min", 1.0),
        ('cycles',            "Cycles",            "",    1.0),
    ],
    'general': [
        ('storage_voltage',    "Storage Voltage",    "V", 0.01),
        ('max_cells_per_test', "Max Cells per Test", "",  1.0),
        ('log_interval',       "Log Interval",       "s", 1.0),
    ],
}

TAB_TITLES = {
    'charging':    "⚡ Charging",
    'discharging': "⬇ Discharging",
    'esr':         "🧪 ESR",
    'capacity':    "⚗ Capacity",
    'general':     "⚙ General",
}

poll()
settings = engine().settings
settings_store = st.session_state['settings_store']

page_header("⚙ Cell Test Settings", "Configure parameters for battery cell testing")

tabs = st.tabs(list(TAB_TITLES.values()))
for tab, category in zip(tabs, TAB_TITLES):
    group = getattr(settings, category)
    with tab:
        with st.form(f"settings_{category}"):
            values = {}
            cols = st.columns(2)
            for i, (name, label, unit, step) in enumerate(SETTING_FIELDS[category]):
                title = f"{label} ({unit})" if unit else label
                values[name] = cols[i % 2].number_input(
                    title, value=float(getattr(group, name)), step=step,
                    min_value=0.0, format="%.2f" if step < 1 else "%.0f",
                )
            if st.form_submit_button("Save Settings", type="primary"):
                rejected = apply_setting_changes(settings, category, values)
                if rejected:
                    st.error(f"Invalid value for: {', '.join(rejected)}")
                elif settings_store.save(settings):
                    st.success("Your cell test settings have been saved successfully.")
                else:
                    st.error("Settings could not be written to storage.")

st.divider()
if st.button("↺ Reset to Defaults"):
    engine().settings = settings_store.reset()
    st.toast("Settings restored to defaults.")
    st.rerun()

log_expander()
footer()
