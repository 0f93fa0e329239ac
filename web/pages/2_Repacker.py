"""
Repacker page: build new battery packs from available (unassigned) cells.
"""

import streamlit as st

import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from core.config import DEFAULT_PACK_NAME, DEFAULT_PACK_SERIES, DEFAULT_PACK_PARALLEL
from core.repacker import PackConfiguration, create_pack
from web.ui_common import (
    init_state, poll, page_header, cell_grid, sync_selection, push_selection,
    select_all_label, toggle_all, log_expander, footer
)

st.set_page_config(page_title="Battery Repacker", page_icon="📦", layout="wide")
init_state()

SELECTION_KEY = 'repack_select'
storage = st.session_state['storage']

cells = poll()
assigned = storage.assigned_battery_ids()
available = [c for c in cells if not c.project_id and c.id not in assigned]
ids = [c.id for c in available]

selected = sync_selection(SELECTION_KEY, ids, st.session_state['repack_selection'])
selected = [i for i in selected if i in ids]
st.session_state['repack_selection'] = selected

page_header("📦 Battery Repacker", "Create new battery packs from tested and selected cells")

col_cells, col_builder = st.columns([3, 1])

with col_builder:
    with st.container(border=True):
        st.write("**Pack Builder**")
        st.caption("Configure your new battery pack")
        pack_name = st.text_input("Pack Name", value=DEFAULT_PACK_NAME)
        series = st.number_input("Series", min_value=1, value=DEFAULT_PACK_SERIES, step=1)
        parallel = st.number_input("Parallel", min_value=1, value=DEFAULT_PACK_PARALLEL, step=1)
        config = PackConfiguration(series, parallel)

        st.caption(f"Configuration: **{config.label}**")
        st.caption(f"Total Cells Needed: **{config.total_cells}**")
        st.caption(f"Cells Selected: **{len(selected)}**")
        if not config.can_create(len(selected)):
            st.warning(f"Additional Cells Needed: {config.cells_needed(len(selected))}")

        if st.button(config.button_text(len(selected)), type="primary",
                     disabled=not config.can_create(len(selected)),
                     use_container_width=True):
            try:
                project = create_pack(storage, pack_name, config, selected)
            except ValueError as e:
                st.error(str(e))
            else:
                st.toast(f"Created {project.name} with {project.cell_count} cells "
                         f"in {project.configuration} configuration.")
                st.session_state['repack_selection'] = []
                push_selection(SELECTION_KEY, ids, [])
                st.rerun()

with col_cells:
    st.subheader("Cell Selection")
    st.caption("Select cells to include in your new battery pack")
    if st.button(select_all_label(available, selected)):
        selected = toggle_all(available, selected)
        st.session_state['repack_selection'] = selected
        push_selection(SELECTION_KEY, ids, selected)
    st.caption(f"{len(selected)} of {len(available)} cells selected")
    cell_grid(available, selected, SELECTION_KEY, columns=3)

st.divider()

# ── Recently Created Packs ────────────────────────────────────────────────────
st.subheader("Recently Created Packs")
projects = sorted(storage.load_projects(), key=lambda p: p.created_at, reverse=True)
if not projects:
    st.info("No battery packs created yet")
else:
    cols = st.columns(3)
    for i, project in enumerate(projects[:9]):
        with cols[i % 3]:
            with st.container(border=True):
                st.write(f"**{project.name}**")
                st.caption(f"Created {project.created_at.strftime('%Y-%m-%d %H:%M')}")
                st.caption(f"{project.cell_count} cells · {project.configuration}")
                st.caption("Cells: " + ", ".join(f"#{cid}" for cid in project.battery_ids))

log_expander()
footer()
