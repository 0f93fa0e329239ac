"""
Labels page: pick cells and print their data on 100 x 50 mm labels.
"""

import streamlit as st

import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from core.config import LABEL_WIDTH_MM, LABEL_HEIGHT_MM, LABEL_PRINTER
from core.report_generator import (generate_labels_pdf, get_labels_filename,
                                   print_labels)
from web.ui_common import (
    init_state, poll, page_header, status_legend, cell_grid,
    sync_selection, push_selection, select_all_label, toggle_all,
    log_expander, footer
)

st.set_page_config(page_title="Print Battery Labels", page_icon="🏷", layout="wide")
init_state()

SELECTION_KEY = 'label_select'

cells = poll()
ids = [c.id for c in cells]
selected = sync_selection(SELECTION_KEY, ids, st.session_state['label_selection'])
st.session_state['label_selection'] = selected

page_header("🏷 Print Battery Labels", "Select cells and print detailed information labels")

col_print, col_status = st.columns([3, 1])
chosen = [c for c in cells if c.id in selected]

with col_print:
    st.subheader("Label Printing")
    p1, p2, _ = st.columns([1, 1, 2])
    if p1.button("🖨 Print Labels", type="primary", disabled=not chosen,
                 use_container_width=True):
        try:
            sent = print_labels(chosen)
            st.toast(f"Sending {sent} battery labels to printer.")
        except ValueError as e:
            st.error(str(e))
    if chosen:
        p2.download_button(
            "📄 Preview Labels",
            data=generate_labels_pdf(chosen),
            file_name=get_labels_filename(),
            mime='application/pdf',
            use_container_width=True,
        )
    st.success("Printer ready")
    st.caption(f"Selected cells: {len(chosen)} | Label size: {LABEL_WIDTH_MM}mm × "
               f"{LABEL_HEIGHT_MM}mm | Printer: {LABEL_PRINTER}")

with col_status:
    with st.container(border=True):
        st.write("**Print Status**")
        st.metric("Selected Cells", len(chosen))
        st.caption("Label content")
        st.markdown("- Battery ID\n- Current Voltage\n- State of Health\n"
                    "- Internal Resistance\n- Cycle Count\n- QR Code for tracking")

st.divider()

head, legend = st.columns([3, 2])
head.subheader("Select Cells for Labels")
with legend:
    status_legend()

if st.button(select_all_label(cells, selected)):
    selected = toggle_all(cells, selected)
    st.session_state['label_selection'] = selected
    push_selection(SELECTION_KEY, ids, selected)

cell_grid(cells, selected, SELECTION_KEY)

log_expander()
footer()
