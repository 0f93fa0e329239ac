"""
BMS HTTP API
Client for the cell bank's JSON API plus the payload -> BatteryCell transform.

Wire format
    GET  /api/get_cells_info?start=1&end=16  ->  {"cells": [record, ...]}
    POST /api/set_cell        {"cells": [{"CiD": 3, "CmD": "ach"}, ...]}
    POST /api/set_cell_macro  {"cells": [{"CiD": 3, "CmD": "standart"}, ...]}

Record keys: CiD, SOC, SOH, V, ESR, T, CYC, CAP, VMAX, VMIN, VSTO, ST, ERR
"""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

import requests

from core.app_logger import get_logger
from core.battery import BatteryCell, TestType
from core.config import (
    API_URL, API_TIMEOUT, NUMBER_OF_CELLS, ENDPOINT_CELLS_INFO,
    ENDPOINT_SET_CELL, ENDPOINT_SET_MACRO, CELL_STATE_CODES, STATE_DISPOSED
)

log = get_logger(__name__)


class BMSApiError(Exception):
    """Network failure, timeout, non-2xx status or malformed body."""


# ── Transform ─────────────────────────────────────────────────────────────────

def _to_float(value, default: float = 0.0) -> float:
    if value is None or value == '':
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_optional_float(value) -> Optional[float]:
    if value is None or value == '':
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


# Longest code first so 'DCH' is never read as 'CH'
_STATE_CODES_BY_LENGTH = sorted(CELL_STATE_CODES, key=len, reverse=True)


def parse_cell_state(state) -> Tuple[bool, Optional[TestType], bool]:
    """ST code -> (is_under_test, current_test, disposed)"""
    if not isinstance(state, str) or not state:
        return False, None, False
    code = state.strip().upper()
    if code == STATE_DISPOSED:
        return False, None, True
    if code in CELL_STATE_CODES:
        return True, TestType(CELL_STATE_CODES[code]), False
    for known in _STATE_CODES_BY_LENGTH:
        if known in code:
            return True, TestType(CELL_STATE_CODES[known]), False
    return False, None, False


def transform_cell(record, position: int) -> BatteryCell:
    """One API record -> BatteryCell. ``position`` is 1-based."""
    if not isinstance(record, dict):
        record = {}

    cell_id = _to_int(record.get('CiD'), 0) or position
    under_test, current_test, disposed = parse_cell_state(record.get('ST'))

    return BatteryCell(
        id=cell_id,
        name=f"Cell {cell_id}",
        soc=_to_float(record.get('SOC')),
        soh=_to_float(record.get('SOH')),
        voltage=_to_float(record.get('V')),
        esr=_to_float(record.get('ESR')),
        temperature=_to_float(record.get('T')),
        cycle_count=_to_int(record.get('CYC')),
        capacity_ah=_to_optional_float(record.get('CAP')),
        max_voltage=_to_optional_float(record.get('VMAX')),
        min_voltage=_to_optional_float(record.get('VMIN')),
        store_voltage=_to_optional_float(record.get('VSTO')),
        is_under_test=under_test,
        current_test=current_test,
        disposed=disposed,
        error=bool(record.get('ERR')),
        last_updated=datetime.now(),
    )


def transform_cells(payload) -> List[BatteryCell]:
    """Exactly one BatteryCell per record in ``payload['cells']``; never raises."""
    if not isinstance(payload, dict) or not isinstance(payload.get('cells'), list):
        return []
    return [transform_cell(rec, i + 1) for i, rec in enumerate(payload['cells'])]


# ── Client ────────────────────────────────────────────────────────────────────

class BMSClient:
    """Thin wrapper around a requests.Session bound to one BMS base URL."""

    def __init__(self,
                 base_url: str = API_URL,
                 timeout: float = API_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout  = timeout
        self.session  = session or requests.Session()
        self.session.headers.update({'Content-Type': 'application/json'})

    def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise BMSApiError(f"{method} {path} failed: {e}") from e

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            raise BMSApiError(f"{method} {path} returned invalid JSON") from e

    # ── Reads ─────────────────────────────────────────────────────────────────

    def get_cells_info(self, start: int = 1, end: int = NUMBER_OF_CELLS) -> dict:
        data = self._request('GET', ENDPOINT_CELLS_INFO,
                             params={'start': start, 'end': end})
        if not isinstance(data, dict) or not isinstance(data.get('cells'), list):
            raise BMSApiError(f"{ENDPOINT_CELLS_INFO} response has no 'cells' list")
        return data

    def fetch_cells(self, start: int = 1, end: int = NUMBER_OF_CELLS) -> List[BatteryCell]:
        payload = self.get_cells_info(start, end)
        cells = transform_cells(payload)
        log.debug("Fetched %d cells from %s", len(cells), self.base_url)
        return cells

    # ── Writes ────────────────────────────────────────────────────────────────

    @staticmethod
    def _cells_body(cell_ids: Iterable[int], command: str) -> dict:
        return {'cells': [{'CiD': cid, 'CmD': command} for cid in cell_ids]}

    def set_cells(self, cell_ids: Iterable[int], command: str) -> dict:
        body = self._cells_body(cell_ids, command)
        log.info("Sending %s to cells %s", command, [c['CiD'] for c in body['cells']])
        return self._request('POST', ENDPOINT_SET_CELL, json=body)

    def set_cells_macro(self, cell_ids: Iterable[int], macro: str) -> dict:
        body = self._cells_body(cell_ids, macro)
        log.info("Sending macro %s to cells %s", macro, [c['CiD'] for c in body['cells']])
        return self._request('POST', ENDPOINT_SET_MACRO, json=body)
