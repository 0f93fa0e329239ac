"""
Battery Data Acquisition
Polls the BMS, falls back to the local cache and then to synthetic cells, and
routes test commands either to the BMS or to a local simulation.

Each BatteryDataService owns its own connection state, so several can run side
by side (one per browser session).
"""

import random
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional

from core.app_logger import get_logger
from core.battery import BatteryCell, TestType
from core.bms_api import BMSApiError, BMSClient
from core.config import (
    NUMBER_OF_CELLS, POLL_INTERVAL, TEST_COMMANDS, CMD_STOP_CHARGE,
    CMD_STOP_DISCHARGE, CMD_DISPOSE, DEFAULT_MACRO, SIMULATE_DRIFT
)
from core.mock_data import generate_mock_batteries, update_battery_data
from core.storage import BatteryStorage

log = get_logger(__name__)


class DataSource(Enum):
    NONE  = 'none'
    LIVE  = 'live'
    CACHE = 'cache'
    MOCK  = 'mock'


@dataclass
class Notice:
    """Transient message for the UI (rendered as a toast)."""
    title:       str
    description: str
    variant:     str = 'default'      # 'default' | 'destructive'


class BatteryDataService:

    def __init__(self,
                 client: Optional[BMSClient] = None,
                 storage: Optional[BatteryStorage] = None,
                 cell_count: int = NUMBER_OF_CELLS,
                 poll_interval: float = POLL_INTERVAL,
                 simulate_drift: bool = SIMULATE_DRIFT,
                 rng: Optional[random.Random] = None):
        self.client         = client or BMSClient()
        self.storage        = storage or BatteryStorage()
        self.cell_count     = cell_count
        self.poll_interval  = poll_interval
        self.simulate_drift = simulate_drift
        self.rng            = rng or random.Random()

        # ── Connection state ──────────────────────────────────────────────────
        self.is_connected:         bool = False
        self.connection_attempted: bool = False
        self.source:               DataSource = DataSource.NONE
        self.last_error:           Optional[str] = None
        self.last_poll:            Optional[float] = None

        self.readings: List[BatteryCell] = []
        self._mock_cells: Optional[List[BatteryCell]] = None
        self._notices: List[Notice] = []

        # Request sequencing: a poll that resolves after a newer one is dropped
        self._seq_lock     = threading.Lock()
        self._next_seq     = 0
        self._last_applied = 0

    # ── Properties ────────────────────────────────────────────────────────────

    @property
    def simulation_mode(self) -> bool:
        return not self.is_connected

    @property
    def api_url(self) -> str:
        return self.client.base_url

    def reading(self, cell_id: int) -> Optional[BatteryCell]:
        return next((c for c in self.readings if c.id == cell_id), None)

    # ── Notices ───────────────────────────────────────────────────────────────

    def _notify(self, title: str, description: str, variant: str = 'default'):
        self._notices.append(Notice(title, description, variant))

    def drain_notices(self) -> List[Notice]:
        notices, self._notices = self._notices, []
        return notices

    # ── Polling ───────────────────────────────────────────────────────────────

    def _begin_request(self) -> int:
        with self._seq_lock:
            self._next_seq += 1
            return self._next_seq

    def _apply(self, seq: int, cells: List[BatteryCell], source: DataSource,
               connected: bool) -> List[BatteryCell]:
        with self._seq_lock:
            if seq < self._last_applied:
                log.debug("Discarding stale poll #%d (last applied #%d)",
                          seq, self._last_applied)
                return self.readings
            self._last_applied = seq
            was_connected = self.is_connected
            self.is_connected = connected
            self.source = source
            self.readings = cells

        if was_connected and not connected:
            self._notify("Connection Error",
                         "Lost contact with the battery management system. "
                         "Showing the last known data.", 'destructive')
        return cells

    def fetch(self) -> List[BatteryCell]:
        """One poll: live data if reachable, else cache, else synthetic cells."""
        seq = self._begin_request()
        self.connection_attempted = True
        self.last_poll = time.time()

        try:
            cells = self.client.fetch_cells(1, self.cell_count)
        except BMSApiError as e:
            if self._is_stale(seq):
                return self.readings
            self.last_error = str(e)
            log.warning("Could not reach BMS API at %s, using fallback data: %s",
                        self.api_url, e)
            cells, source = self._fallback()
            return self._apply(seq, cells, source, connected=False)

        if self._is_stale(seq):
            return self.readings
        self.last_error = None
        cells = self.storage.save_readings(cells)
        return self._apply(seq, cells, DataSource.LIVE, connected=True)

    def _is_stale(self, seq: int) -> bool:
        with self._seq_lock:
            stale = seq < self._last_applied
        if stale:
            log.debug("Discarding stale poll #%d (last applied #%d)",
                      seq, self._last_applied)
        return stale

    def _fallback(self):
        cached = self.storage.load_batteries()
        if cached:
            log.info("Using stored data (%d cells)", len(cached))
            return cached, DataSource.CACHE

        if self._mock_cells is None:
            log.info("Using mock data, %d synthetic cells", self.cell_count)
            self._mock_cells = generate_mock_batteries(self.cell_count, self.rng)
        elif self.simulate_drift:
            for cell in self._mock_cells:
                update_battery_data(cell, self.rng)
        return self._mock_cells, DataSource.MOCK

    def poll_due(self, now: Optional[float] = None) -> bool:
        if self.last_poll is None:
            return True
        now = time.time() if now is None else now
        return now - self.last_poll >= self.poll_interval

    def poll_if_due(self, now: Optional[float] = None) -> List[BatteryCell]:
        if self.poll_due(now):
            return self.fetch()
        return self.readings

    # ── Local Updates ─────────────────────────────────────────────────────────

    def _apply_locally(self, cell_ids: Iterable[int],
                       mutate: Callable[[BatteryCell], None]):
        """Optimistic update of the view state and the cache, nothing else touched."""
        targets = set(cell_ids)
        for cell in self.readings:
            if cell.id in targets:
                mutate(cell)
        if self._mock_cells is not None and self._mock_cells is not self.readings:
            for cell in self._mock_cells:
                if cell.id in targets:
                    mutate(cell)
        self.storage.update_batteries(targets, mutate)

    @staticmethod
    def _mark_testing(test_type: TestType) -> Callable[[BatteryCell], None]:
        def mutate(cell: BatteryCell):
            cell.is_under_test = True
            cell.current_test  = test_type
        return mutate

    @staticmethod
    def _clear_testing(cell: BatteryCell):
        cell.is_under_test = False
        cell.current_test  = None

    @staticmethod
    def _mark_disposed(cell: BatteryCell):
        cell.disposed = True

    # ── Commands ──────────────────────────────────────────────────────────────

    def _send(self, action: str, failure_title: str, send: Callable[[], None]) -> bool:
        if not self.is_connected:
            log.info("Simulation mode: %s not sent to BMS", action)
            self._notify("Using Simulation Mode",
                         f"The battery management system is unreachable. "
                         f"{action.capitalize()} will be simulated.")
            return True
        try:
            send()
            return True
        except BMSApiError as e:
            log.error("Error during %s: %s", action, e)
            self._notify(failure_title,
                         f"Could not complete {action}. Check the BMS connection.",
                         'destructive')
            return False

    def start_test(self, cell_ids: List[int], test_type) -> bool:
        test_type = TestType(test_type)
        if test_type == TestType.MACRO:
            return self.start_macro_test(cell_ids)

        ok = self._send(f"{test_type.value} test", "Test Start Failed",
                        lambda: self.client.set_cells(cell_ids, TEST_COMMANDS[test_type.value]))
        if ok:
            self._apply_locally(cell_ids, self._mark_testing(test_type))
        return ok

    def stop_test(self, cell_ids: List[int]) -> bool:
        def send():
            # Stop both directions, the BMS ignores the one that is not running
            self.client.set_cells(cell_ids, CMD_STOP_CHARGE)
            self.client.set_cells(cell_ids, CMD_STOP_DISCHARGE)

        ok = self._send("test stop", "Test Stop Failed", send)
        if ok:
            self._apply_locally(cell_ids, self._clear_testing)
        return ok

    def dispose_cells(self, cell_ids: List[int]) -> bool:
        ok = self._send("disposal", "Disposal Failed",
                        lambda: self.client.set_cells(cell_ids, CMD_DISPOSE))
        if ok:
            self._apply_locally(cell_ids, self._mark_disposed)
        return ok

    def start_macro_test(self, cell_ids: List[int], macro: str = DEFAULT_MACRO) -> bool:
        ok = self._send("macro test", "Macro Test Start Failed",
                        lambda: self.client.set_cells_macro(cell_ids, macro))
        if ok:
            self._apply_locally(cell_ids, self._mark_testing(TestType.MACRO))
        return ok
