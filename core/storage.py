"""
Local Store
Key/value JSON files standing in for browser local storage: one file per key
under the data directory. Cached cell readings and battery packs live here.
"""

import json
import os
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Set

from core.app_logger import get_logger
from core.battery import BatteryCell
from core.config import DATA_DIR, STORAGE_KEY_BATTERIES, STORAGE_KEY_PROJECTS

log = get_logger(__name__)


class LocalStore:
    """Lenient key/value store: unreadable entries read as missing, failed writes are logged."""

    def __init__(self, directory=DATA_DIR):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get_item(self, key: str):
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with path.open('r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            log.error("Failed to load '%s' from storage: %s", key, e)
            return None

    def set_item(self, key: str, value) -> bool:
        path = self._path(key)
        tmp  = path.with_suffix('.json.tmp')
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with tmp.open('w', encoding='utf-8') as f:
                json.dump(value, f, indent=2)
            os.replace(tmp, path)
            return True
        except (OSError, TypeError, ValueError) as e:
            log.error("Failed to save '%s' to storage: %s", key, e)
            return False

    def remove_item(self, key: str):
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass


# ── Battery Packs ─────────────────────────────────────────────────────────────

@dataclass
class BatteryProject:
    id:            str
    name:          str
    configuration: str
    battery_ids:   List[int] = field(default_factory=list)
    created_at:    datetime  = field(default_factory=datetime.now)

    @property
    def cell_count(self) -> int:
        return len(self.battery_ids)

    def to_dict(self) -> dict:
        return {
            'id':            self.id,
            'name':          self.name,
            'configuration': self.configuration,
            'batteryIds':    list(self.battery_ids),
            'createdAt':     self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'BatteryProject':
        created = data.get('createdAt')
        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            configuration=data.get('configuration', ''),
            battery_ids=[int(i) for i in data.get('batteryIds', [])],
            created_at=datetime.fromisoformat(created) if created else datetime.now(),
        )


# ── Battery Storage ───────────────────────────────────────────────────────────

class BatteryStorage:
    """Cached cell readings and pack groupings on top of a LocalStore."""

    def __init__(self, store: Optional[LocalStore] = None):
        self.store = store or LocalStore()

    # ── Cells ─────────────────────────────────────────────────────────────────

    def load_batteries(self) -> List[BatteryCell]:
        data = self.store.get_item(STORAGE_KEY_BATTERIES)
        if not isinstance(data, list):
            return []
        cells = []
        for item in data:
            try:
                cells.append(BatteryCell.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                log.error("Skipping unreadable cached cell %r: %s", item, e)
        return cells

    def save_batteries(self, cells: Iterable[BatteryCell]) -> bool:
        return self.store.set_item(STORAGE_KEY_BATTERIES, [c.to_dict() for c in cells])

    def save_battery(self, cell: BatteryCell) -> BatteryCell:
        """Insert or update by id, keeping an existing pack assignment."""
        cells = self.load_batteries()
        cell.last_updated = datetime.now()

        for i, existing in enumerate(cells):
            if existing.id == cell.id:
                if cell.project_id is None:
                    cell.project_id = existing.project_id
                cells[i] = cell
                break
        else:
            cells.append(cell)

        self.save_batteries(cells)
        return cell

    def save_readings(self, readings: Iterable[BatteryCell]) -> List[BatteryCell]:
        """
        save_battery for a whole poll, in one read and one write. Cached cells
        missing from ``readings`` stay cached; only ``readings`` are returned.
        """
        by_id = {c.id: c for c in self.load_batteries()}
        now = datetime.now()
        fresh = list(readings)
        for cell in fresh:
            existing = by_id.get(cell.id)
            if existing is not None and cell.project_id is None:
                cell.project_id = existing.project_id
            cell.last_updated = now
            by_id[cell.id] = cell
        self.save_batteries(by_id.values())
        return fresh

    def update_batteries(self, cell_ids: Iterable[int],
                         mutate: Callable[[BatteryCell], None]) -> List[BatteryCell]:
        """Apply ``mutate`` to the cached cells with these ids. Leaves last_updated alone."""
        targets = set(cell_ids)
        cells = self.load_batteries()
        changed = []
        for cell in cells:
            if cell.id in targets:
                mutate(cell)
                changed.append(cell)
        if changed:
            self.save_batteries(cells)
        return changed

    def get_battery_by_id(self, cell_id: int) -> Optional[BatteryCell]:
        return next((c for c in self.load_batteries() if c.id == cell_id), None)

    def seed_mock_data(self, initial: Iterable[BatteryCell]) -> bool:
        """Seed the cache only if it is empty."""
        if self.load_batteries():
            return False
        now = datetime.now()
        cells = list(initial)
        for cell in cells:
            cell.last_updated = now
        return self.save_batteries(cells)

    # ── Projects ──────────────────────────────────────────────────────────────

    def load_projects(self) -> List[BatteryProject]:
        data = self.store.get_item(STORAGE_KEY_PROJECTS)
        if not isinstance(data, list):
            return []
        projects = []
        for item in data:
            try:
                projects.append(BatteryProject.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                log.error("Skipping unreadable project %r: %s", item, e)
        return projects

    def save_projects(self, projects: Iterable[BatteryProject]) -> bool:
        return self.store.set_item(STORAGE_KEY_PROJECTS, [p.to_dict() for p in projects])

    def create_battery_project(self, name: str, configuration: str,
                               battery_ids: Iterable[int]) -> BatteryProject:
        projects = self.load_projects()
        project = BatteryProject(
            id=str(int(time.time() * 1000)),
            name=name,
            configuration=configuration,
            battery_ids=list(battery_ids),
        )
        # Millisecond ids can collide when packs are created back to back
        taken = {p.id for p in projects}
        while project.id in taken:
            project.id = str(int(project.id) + 1)

        projects.append(project)
        self.save_projects(projects)

        members = set(project.battery_ids)
        cells = self.load_batteries()
        for cell in cells:
            if cell.id in members:
                cell.project_id = project.id
        self.save_batteries(cells)
        return project

    def get_available_batteries(self) -> List[BatteryCell]:
        return [c for c in self.load_batteries() if not c.project_id]

    def get_project_batteries(self, project_id: str) -> List[BatteryCell]:
        return [c for c in self.load_batteries() if c.project_id == project_id]

    def assigned_battery_ids(self) -> Set[int]:
        """Ids of every cell that already belongs to a pack."""
        return {i for p in self.load_projects() for i in p.battery_ids}
