"""
Shared Streamlit helpers: session bootstrap, polling, cell cards and gauges.
Every page calls init_state() first.
"""

import time
from typing import List, Optional

import streamlit as st
import plotly.graph_objects as go

from core.acquisition import BatteryDataService, DataSource
from core.app_logger import recent_logs
from core.battery import BatteryCell, CellStatus
from core.battery_test import CellTestEngine
from core.bms_api import BMSClient
from core.config import (
    API_URL, API_TIMEOUT, APP_NAME, APP_VERSION, DATA_DIR, NUMBER_OF_CELLS,
    POLL_INTERVAL, STATUS_COLORS, STATUS_LABELS, SOC_COLOR_STEPS, SOH_COLOR_STEPS
)
from core.settings import SettingsStore
from core.storage import BatteryStorage, LocalStore


STATUS_ICONS = {
    CellStatus.GOOD:    '🟢',
    CellStatus.WARNING: '🟠',
    CellStatus.DANGER:  '🔴',
}


# ── Session State Init ────────────────────────────────────────────────────────

def init_state():
    if 'service' not in st.session_state:
        store = LocalStore(DATA_DIR)
        storage = BatteryStorage(store)
        settings_store = SettingsStore(store)
        service = BatteryDataService(
            client=BMSClient(API_URL, API_TIMEOUT),
            storage=storage,
            cell_count=NUMBER_OF_CELLS,
            poll_interval=POLL_INTERVAL,
        )
        st.session_state['store']          = store
        st.session_state['storage']        = storage
        st.session_state['settings_store'] = settings_store
        st.session_state['service']        = service
        st.session_state['engine']         = CellTestEngine(service, settings_store.load())

    for key in ('label_selection', 'repack_selection'):
        if key not in st.session_state:
            st.session_state[key] = []


def service() -> BatteryDataService:
    return st.session_state['service']


def engine() -> CellTestEngine:
    return st.session_state['engine']


def poll(force: bool = False) -> List[BatteryCell]:
    svc = service()
    cells = svc.fetch() if force else svc.poll_if_due()
    show_notices()
    return cells


def show_notices():
    for notice in service().drain_notices():
        icon = '⚠️' if notice.variant == 'destructive' else 'ℹ️'
        st.toast(f"**{notice.title}**: {notice.description}", icon=icon)


def auto_refresh(enabled: bool = True):
    """Rerun the page so the poll interval keeps ticking."""
    if enabled:
        time.sleep(1)
        st.rerun()


# ── Header / Footer ───────────────────────────────────────────────────────────

def page_header(title: str, caption: str):
    col_title, col_ver = st.columns([5, 1])
    with col_title:
        st.title(title)
        st.caption(caption)
    with col_ver:
        st.caption(f"v{APP_VERSION}")
    connection_banner()
    st.divider()


def connection_banner():
    svc = service()
    if not svc.connection_attempted:
        st.info("Connecting to the battery management system...")
    elif svc.is_connected:
        st.success(f"Connected to BMS at {svc.api_url}")
    else:
        where = {
            DataSource.CACHE: "showing cached readings",
            DataSource.MOCK:  "showing synthetic readings",
        }.get(svc.source, "no readings available")
        st.warning(f"Simulation Mode: BMS at {svc.api_url} unreachable, {where}")


def status_legend():
    st.caption("  ".join(f"{STATUS_ICONS[s]} {STATUS_LABELS[s.value]}" for s in CellStatus))


def log_expander():
    with st.expander("Log"):
        lines = recent_logs()
        st.code("\n".join(lines) if lines else "No log messages yet", language=None)


def footer():
    st.divider()
    st.caption(f"{APP_NAME} v{APP_VERSION}")


# ── Cell Grid ─────────────────────────────────────────────────────────────────

def _metric_line(cell: BatteryCell) -> str:
    m = cell.metric_statuses
    return (f"{STATUS_ICONS[m['voltage']]} {cell.voltage:.2f} V  "
            f"{STATUS_ICONS[m['temperature']]} {cell.temperature:.1f} °C  "
            f"{STATUS_ICONS[m['esr']]} {cell.esr:.1f} mΩ")


def _widget_key(selection_key: str, cell_id: int) -> str:
    return f"{selection_key}_{cell_id}"


def sync_selection(selection_key: str, cell_ids: List[int], selected: List[int]) -> List[int]:
    """
    Fold checkbox state from the last interaction into ``selected``, keeping
    click order. Call before rendering anything that reads the selection.
    """
    result = list(selected)
    for cell_id in cell_ids:
        checked = st.session_state.get(_widget_key(selection_key, cell_id))
        if checked is None:
            continue
        if checked and cell_id not in result:
            result.append(cell_id)
        elif not checked and cell_id in result:
            result.remove(cell_id)
    return result


def push_selection(selection_key: str, cell_ids: List[int], selected: List[int]):
    """Write a selection back to the checkboxes. Only valid before the grid renders."""
    for cell_id in cell_ids:
        st.session_state[_widget_key(selection_key, cell_id)] = cell_id in selected


def cell_card(cell: BatteryCell, selection_key: Optional[str] = None,
              selected: bool = False):
    """Render one cell, with a select checkbox when ``selection_key`` is given."""
    with st.container(border=True):
        title = f"{STATUS_ICONS[cell.status]} **{cell.name}**"
        if cell.disposed:
            title += "  ~disposed~"
        elif cell.is_under_test and cell.current_test:
            title += f"  ⏱ {cell.current_test.value}"
        st.markdown(title)

        c1, c2 = st.columns(2)
        c1.metric("SoC", f"{cell.soc:.0f}%")
        c2.metric("SoH", f"{cell.soh:.0f}%")
        st.progress(min(max(cell.soc / 100.0, 0.0), 1.0))
        st.caption(_metric_line(cell))
        st.caption(f"{cell.cycle_count} cycles · updated {cell.last_updated.strftime('%H:%M:%S')}")

        if selection_key is not None:
            key = _widget_key(selection_key, cell.id)
            if key not in st.session_state:
                st.session_state[key] = selected
            st.checkbox("Select", key=key)


def cell_grid(cells: List[BatteryCell], selected: List[int],
              selection_key: Optional[str], columns: int = 4):
    if not cells:
        st.info("No battery data available. Check your connection to the battery management system.")
        return

    for row_start in range(0, len(cells), columns):
        row = cells[row_start:row_start + columns]
        cols = st.columns(columns)
        for col, cell in zip(cols, row):
            with col:
                cell_card(cell, selection_key, cell.id in selected)


def select_all_label(cells: List[BatteryCell], selected: List[int]) -> str:
    ids = [c.id for c in cells]
    all_selected = bool(ids) and all(i in selected for i in ids)
    return "✖ Deselect All" if all_selected else "✔ Select All"


def toggle_all(cells: List[BatteryCell], selected: List[int]) -> List[int]:
    """Select every cell, or none if all are already selected."""
    ids = [c.id for c in cells]
    if ids and all(i in selected for i in ids):
        return [i for i in selected if i not in ids]
    return list(selected) + [i for i in ids if i not in selected]


# ── Charts ────────────────────────────────────────────────────────────────────

def _gauge_steps(steps, upper: float = 100):
    bands = []
    for i, (start, color) in enumerate(steps):
        end = steps[i + 1][0] if i + 1 < len(steps) else upper
        bands.append({'range': [start, end], 'color': color})
    return bands


def gauge_figure(value: float, title: str, steps) -> go.Figure:
    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=value,
        number={'suffix': '%'},
        title={'text': title},
        gauge={
            'axis': {'range': [0, 100]},
            'bar': {'color': '#1a1a2e'},
            'steps': _gauge_steps(steps),
        },
    ))
    fig.update_layout(height=220, margin=dict(l=20, r=20, t=50, b=10),
                      paper_bgcolor='white')
    return fig


def detailed_view(cell: BatteryCell):
    """Detail panel for one cell: gauges, metrics and a status note."""
    st.subheader(f"{cell.name} details")
    g1, g2 = st.columns(2)
    g1.plotly_chart(gauge_figure(cell.soc, "State of Charge", SOC_COLOR_STEPS),
                    use_container_width=True)
    g2.plotly_chart(gauge_figure(cell.soh, "State of Health", SOH_COLOR_STEPS),
                    use_container_width=True)

    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Voltage", f"{cell.voltage:.2f} V")
    m2.metric("ESR", f"{cell.esr:.1f} mΩ")
    m3.metric("Temperature", f"{cell.temperature:.1f} °C")
    m4.metric("Cycles", str(cell.cycle_count))

    s1, s2, s3, s4 = st.columns(4)
    s1.metric("Capacity", f"{cell.capacity_ah:.2f} Ah" if cell.capacity_ah is not None else "N/A")
    usable = cell.usable_capacity_ah
    s2.metric("Usable", f"{usable:.2f} Ah" if usable is not None else "N/A")
    s3.metric("Max / Min V",
              f"{cell.max_voltage:.2f} / {cell.min_voltage:.2f}"
              if cell.max_voltage is not None and cell.min_voltage is not None else "N/A")
    s4.metric("Store V", f"{cell.store_voltage:.2f} V" if cell.store_voltage is not None else "N/A")

    message = {
        CellStatus.GOOD:    "This cell is in good condition and operating within normal parameters.",
        CellStatus.WARNING: "This cell shows signs of wear. Monitor it closely.",
        CellStatus.DANGER:  "This cell is in critical condition. Consider replacing it.",
    }[cell.status]
    color = STATUS_COLORS[cell.status.value]
    st.markdown(f"<span style='color:{color}'><b>{STATUS_LABELS[cell.status.value]}</b></span> "
                f"{message}", unsafe_allow_html=True)
