import csv
import io
import logging
from datetime import datetime

import pytest

from core.battery import BatteryCell
from core.report_generator import (CSV_HEADERS, generate_csv, generate_labels_pdf,
                                   get_csv_filename, print_labels)


@pytest.fixture
def cells():
    stamp = datetime(2024, 3, 4, 5, 6, 7)
    return [
        BatteryCell(1, soc=80, soh=95.456, voltage=3.7, esr=25.26, temperature=24.0,
                    cycle_count=10, capacity_ah=2.5, max_voltage=4.2, min_voltage=2.8,
                    store_voltage=3.6, last_updated=stamp),
        BatteryCell(2, soc=15, soh=60, voltage=3.1, esr=80, temperature=41,
                    cycle_count=3, last_updated=stamp),
    ]


def test_csv_header_and_rows(cells):
    rows = list(csv.reader(io.StringIO(generate_csv(cells))))
    assert rows[0] == CSV_HEADERS
    assert len(rows) == 3

    first = dict(zip(CSV_HEADERS, rows[1]))
    assert first['SoH (%)'] == '95.46'
    assert first['ESR (mΩ)'] == '25.3'
    assert first['Voltage (V)'] == '3.70'
    assert first['Cycle Count'] == '10'
    assert first['Capacity (Ah)'] == '2.50'
    assert first['Status'] == 'good'
    assert first['Last Test Date'] == '2024-03-04 05:06:07'

    second = dict(zip(CSV_HEADERS, rows[2]))
    assert second['Capacity (Ah)'] == 'N/A'
    assert second['Store Voltage (V)'] == 'N/A'
    assert second['Status'] == 'danger'


def test_csv_with_no_cells_is_header_only():
    assert generate_csv([]).splitlines() == [','.join(CSV_HEADERS)]


def test_csv_filename():
    name = get_csv_filename()
    assert name.startswith('tested_cells_')
    assert name.endswith('.csv')


def test_labels_pdf(cells):
    pdf = generate_labels_pdf(cells)
    assert pdf.startswith(b'%PDF')


def test_labels_pdf_needs_cells():
    with pytest.raises(ValueError):
        generate_labels_pdf([])


def test_print_labels_logs_job(cells, caplog):
    caplog.set_level(logging.INFO, logger='cell_dashboard')
    assert print_labels(cells, printer='Test Printer') == 2
    assert 'Test Printer' in caplog.text


def test_print_labels_needs_cells():
    with pytest.raises(ValueError):
        print_labels([])
