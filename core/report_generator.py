"""
Report Generator
CSV export of tested cells and printable cell labels (PDF).
"""

import io
import csv
from datetime import datetime
from typing import List, Optional

from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (SimpleDocTemplate, Paragraph, Table,
                                TableStyle, PageBreak)
from reportlab.graphics.shapes import Drawing
from reportlab.graphics.barcode.qr import QrCodeWidget

from core.app_logger import get_logger
from core.battery import BatteryCell
from core.config import (APP_NAME, LABEL_WIDTH_MM, LABEL_HEIGHT_MM,
                         LABEL_PRINTER, STATUS_COLORS)

log = get_logger(__name__)


# ── CSV Export ────────────────────────────────────────────────────────────────

CSV_HEADERS = [
    'ID', 'Name', 'SoC (%)', 'SoH (%)', 'Voltage (V)', 'ESR (mΩ)',
    'Temperature (°C)', 'Cycle Count', 'Capacity (Ah)', 'Max Voltage (V)',
    'Min Voltage (V)', 'Store Voltage (V)', 'Status', 'Last Test Date'
]

DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _fixed(value: Optional[float], digits: int = 2) -> str:
    if value is None:
        return 'N/A'
    return f"{value:.{digits}f}"


def csv_row(cell: BatteryCell) -> list:
    return [
        cell.id,
        cell.name,
        _fixed(cell.soc),
        _fixed(cell.soh),
        _fixed(cell.voltage),
        _fixed(cell.esr, 1),
        _fixed(cell.temperature, 1),
        int(cell.cycle_count),
        _fixed(cell.capacity_ah),
        _fixed(cell.max_voltage),
        _fixed(cell.min_voltage),
        _fixed(cell.store_voltage),
        cell.status.value,
        cell.last_updated.strftime(DATE_FORMAT),
    ]


def generate_csv(cells: List[BatteryCell]) -> str:
    """Header row, then one row per cell in the given order."""
    output = io.StringIO()
    writer = csv.writer(output, lineterminator='\n')
    writer.writerow(CSV_HEADERS)
    for cell in cells:
        writer.writerow(csv_row(cell))
    return output.getvalue()


def get_csv_filename() -> str:
    date_str = datetime.now().strftime('%Y%m%d_%H%M%S')
    return f"tested_cells_{date_str}.csv"


# ── Labels ────────────────────────────────────────────────────────────────────

def _qr_drawing(value: str, size: float) -> Drawing:
    widget = QrCodeWidget(value)
    x0, y0, x1, y1 = widget.getBounds()
    drawing = Drawing(size, size,
                      transform=[size / (x1 - x0), 0, 0, size / (y1 - y0), 0, 0])
    drawing.add(widget)
    return drawing


def generate_labels_pdf(cells: List[BatteryCell]) -> bytes:
    """
    One 100 x 50 mm label per page: id, voltage, SoH, ESR, cycle count and
    a QR code carrying the cell id. Returns PDF as bytes.
    """
    if not cells:
        raise ValueError("No cells selected for labels")

    buffer = io.BytesIO()
    margin = 3 * mm
    doc = SimpleDocTemplate(
        buffer,
        pagesize=(LABEL_WIDTH_MM * mm, LABEL_HEIGHT_MM * mm),
        leftMargin=margin, rightMargin=margin,
        topMargin=margin, bottomMargin=margin,
        title=f"{APP_NAME} labels",
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'LabelTitle', parent=styles['Heading2'],
        fontSize=12, leading=14, spaceAfter=2,
        textColor=colors.HexColor('#1a1a2e'),
    )
    line_style = ParagraphStyle(
        'LabelLine', parent=styles['Normal'], fontSize=8, leading=10,
    )

    inner_w = LABEL_WIDTH_MM * mm - 2 * margin
    qr_size = 30 * mm

    story = []
    for i, cell in enumerate(cells):
        status_color = STATUS_COLORS.get(cell.status.value, '#888888')
        lines = [
            Paragraph(f"<b>#{cell.id}</b> {cell.name}", title_style),
            Paragraph(f"Voltage: {cell.voltage:.2f} V", line_style),
            Paragraph(f"SoH: {cell.soh:.1f} %", line_style),
            Paragraph(f"ESR: {cell.esr:.1f} mΩ", line_style),
            Paragraph(f"Cycles: {cell.cycle_count}", line_style),
            Paragraph(f"<font color='{status_color}'><b>{cell.status.value.upper()}</b></font>"
                      f"  {cell.last_updated.strftime('%Y-%m-%d')}", line_style),
        ]
        table = Table([[lines, _qr_drawing(f"cell:{cell.id}", qr_size)]],
                      colWidths=[inner_w - qr_size - 2 * mm, qr_size + 2 * mm])
        table.setStyle(TableStyle([
            ('VALIGN',       (0, 0), (-1, -1), 'MIDDLE'),
            ('ALIGN',        (1, 0), (1, 0),   'RIGHT'),
            ('LEFTPADDING',  (0, 0), (-1, -1), 0),
            ('RIGHTPADDING', (0, 0), (-1, -1), 0),
            ('TOPPADDING',   (0, 0), (-1, -1), 0),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 0),
        ]))
        story.append(table)
        if i < len(cells) - 1:
            story.append(PageBreak())

    doc.build(story)
    return buffer.getvalue()


def get_labels_filename() -> str:
    date_str = datetime.now().strftime('%Y%m%d_%H%M%S')
    return f"cell_labels_{date_str}.pdf"


def print_labels(cells: List[BatteryCell], printer: str = LABEL_PRINTER) -> int:
    """No print pipeline: records the job in the log and returns the label count."""
    if not cells:
        raise ValueError("Please select at least one cell to print labels.")
    ids = [c.id for c in cells]
    log.info("Printing %d labels (%dmm x %dmm) on %s for cell IDs: %s",
             len(ids), LABEL_WIDTH_MM, LABEL_HEIGHT_MM, printer, ids)
    return len(ids)
