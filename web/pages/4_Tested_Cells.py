"""
Tested Cells page: every cell with a recorded test, filterable by status,
with CSV export.
"""

import streamlit as st
import pandas as pd

import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from core.battery import STATUS_FILTERS, filter_tested_cells, count_by_status
from core.config import STATUS_LABELS
from core.report_generator import CSV_HEADERS, csv_row, generate_csv, get_csv_filename
from web.ui_common import init_state, poll, page_header, log_expander, footer

st.set_page_config(page_title="Tested Cells", page_icon="📋", layout="wide")
init_state()

cells = poll()
stored = st.session_state['storage'].load_batteries()
source = stored or cells

page_header("📋 Tested Cells", "Review results and export test data")

counts = count_by_status(filter_tested_cells(source))
m1, m2, m3, m4 = st.columns(4)
m1.metric("Tested", sum(counts.values()))
m2.metric(STATUS_LABELS['good'], counts['good'])
m3.metric(STATUS_LABELS['warning'], counts['warning'])
m4.metric(STATUS_LABELS['danger'], counts['danger'])

status_filter = st.radio(
    "Status", STATUS_FILTERS, horizontal=True,
    format_func=lambda f: 'All' if f == 'all' else STATUS_LABELS[f],
)
shown = filter_tested_cells(source, status_filter)

head, export = st.columns([4, 1])
head.caption(f"{len(shown)} cells")
export.download_button(
    "⬇ Export CSV",
    data=generate_csv(shown),
    file_name=get_csv_filename(),
    mime='text/csv',
    disabled=not shown,
    use_container_width=True,
)

if shown:
    df = pd.DataFrame([csv_row(c) for c in shown], columns=CSV_HEADERS)
    df['Status'] = df['Status'].map(STATUS_LABELS)
    st.dataframe(df, use_container_width=True, hide_index=True)
else:
    st.info("No tested cells match the selected filter.")

log_expander()
footer()
