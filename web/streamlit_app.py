"""
Cell Bank Dashboard - Streamlit Web App (Dashboard page)
Other pages live in web/pages/.
Run with: streamlit run web/streamlit_app.py
"""

import streamlit as st

# Add parent dir to path so core/ and web/ are importable
import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.battery import TestType, count_by_status
from core.config import APP_NAME, APP_TAGLINE, STATUS_LABELS
from web.ui_common import (
    init_state, service, engine, poll, show_notices, auto_refresh, page_header,
    status_legend, log_expander, footer, cell_grid, sync_selection,
    push_selection, select_all_label, detailed_view
)


# ── Page Config ───────────────────────────────────────────────────────────────

st.set_page_config(
    page_title=APP_NAME,
    page_icon="🔋",
    layout="wide",
    initial_sidebar_state="expanded"
)

init_state()

SELECTION_KEY = 'dash_select'


# ── Test Controls ─────────────────────────────────────────────────────────────

def _run(action, *args) -> bool:
    ok = action(*args)
    if not ok:
        st.error(engine().session.message)
    show_notices()
    return ok


def _test_controls(cell_ids):
    eng      = engine()
    sess     = eng.session
    settings = eng.settings
    running  = sess.test_in_progress
    nothing  = not sess.selected_cells

    col_controls, col_status = st.columns([3, 1])

    with col_controls:
        st.subheader("Test Controls")
        caption = "Start or stop tests for selected cells"
        if service().simulation_mode:
            caption += "  (Simulation Mode)"
        st.caption(caption)

        b1, b2, b3, b4 = st.columns(4)
        if b1.button(f"⚡ Start Charging\n\nCharge to {settings.charging.max_voltage:.1f}V",
                     use_container_width=True, disabled=running):
            _run(eng.start_test, TestType.CHARGE)
        if b2.button(f"⬇ Start Discharging\n\nDischarge to {settings.discharging.cutoff_voltage:.1f}V",
                     use_container_width=True, disabled=running):
            _run(eng.start_test, TestType.DISCHARGE)
        if b3.button("🧪 Measure ESR\n\nInternal resistance",
                     use_container_width=True, disabled=running):
            _run(eng.start_test, TestType.ESR)
        if b4.button("⚗ Measure Capacity\n\nFull cycle test",
                     use_container_width=True, disabled=running):
            _run(eng.start_test, TestType.CAPACITY)

        d1, _, d3, d4 = st.columns([1, 1, 1, 1])
        if d1.button("🗑 Dispose Cells", type="secondary",
                     use_container_width=True, disabled=running or nothing):
            if _run(eng.dispose_cells):
                push_selection(SELECTION_KEY, cell_ids, eng.session.selected_cells)
        if d3.button(f"🔋 Store ({settings.general.storage_voltage:.1f}V)",
                     use_container_width=True, disabled=running or nothing):
            _run(eng.start_test, TestType.STORE)
        if eng.session.test_in_progress:
            if d4.button("■ Stop Test", type="primary", use_container_width=True):
                _run(eng.stop_test)
        else:
            if d4.button("▶ Start Macro", type="primary",
                         use_container_width=True, disabled=nothing):
                _run(eng.start_test, TestType.MACRO)

    with col_status:
        summary = eng.status_summary()
        with st.container(border=True):
            st.write("**Status**")
            st.caption("Current test progress")
            st.metric("Test Type", summary['test_type'])
            st.metric("Cells Selected", summary['cells_selected'])
            if summary['state'] == 'Running':
                st.success(f"Running  {summary['runtime']}")
            else:
                st.info("Idle")


# ── Main App ──────────────────────────────────────────────────────────────────

def main():
    with st.sidebar:
        refresh_enabled = st.toggle("Auto refresh", value=True)
        st.caption(f"Polling every {service().poll_interval:.0f}s")

    with st.spinner("Loading battery data..."):
        cells = poll()

    eng = engine()
    ids = [c.id for c in cells]
    eng.session.selected_cells = sync_selection(SELECTION_KEY, ids, eng.session.selected_cells)

    page_header("🔋 Battery Dashboard", APP_TAGLINE)

    # ── Row 1: Test controls + status ─────────────────────────────────────────
    _test_controls(ids)
    st.divider()

    # ── Row 2: Cell grid ──────────────────────────────────────────────────────
    cells = service().readings
    head, legend = st.columns([3, 2])
    with head:
        st.subheader("Cell Status Overview")
    with legend:
        status_legend()
        counts = count_by_status(cells)
        st.caption(" · ".join(f"{counts[k]} {STATUS_LABELS[k].lower()}" for k in counts))

    info, refresh_col, select_col = st.columns([4, 1, 1])
    with info:
        if eng.session.selected_cells:
            st.caption(f"{len(eng.session.selected_cells)} of {len(cells)} cells selected")
        else:
            st.caption("Click on cells to select them for testing")
    with refresh_col:
        if st.button("↻ Refresh", use_container_width=True):
            poll(force=True)
            st.rerun()
    with select_col:
        if st.button(select_all_label(cells, eng.session.selected_cells),
                     use_container_width=True):
            eng.select_all(ids)
            push_selection(SELECTION_KEY, ids, eng.session.selected_cells)

    cell_grid(cells, eng.session.selected_cells, SELECTION_KEY)

    # ── Row 3: Detailed view ──────────────────────────────────────────────────
    if cells:
        st.divider()
        names = {c.name: c for c in cells}
        choice = st.selectbox("Inspect cell", list(names))
        detailed_view(names[choice])

    log_expander()
    footer()

    # ── Auto-refresh ──────────────────────────────────────────────────────────
    auto_refresh(refresh_enabled)


if __name__ == '__main__':
    main()
