"""
Battery Repacker
Series/parallel pack configuration and pack creation from selected cells.
"""

from dataclasses import dataclass
from typing import List

from core.app_logger import get_logger
from core.config import DEFAULT_PACK_SERIES, DEFAULT_PACK_PARALLEL
from core.storage import BatteryProject, BatteryStorage

log = get_logger(__name__)


@dataclass
class PackConfiguration:
    series:   int = DEFAULT_PACK_SERIES
    parallel: int = DEFAULT_PACK_PARALLEL

    def __post_init__(self):
        self.series   = max(1, int(self.series))
        self.parallel = max(1, int(self.parallel))

    @property
    def total_cells(self) -> int:
        return self.series * self.parallel

    @property
    def label(self) -> str:
        return f"{self.series}S{self.parallel}P"

    def cells_needed(self, selected_count: int) -> int:
        return max(0, self.total_cells - selected_count)

    def can_create(self, selected_count: int) -> bool:
        return selected_count >= self.total_cells

    def button_text(self, selected_count: int) -> str:
        if self.can_create(selected_count):
            return f"Create Battery Pack ({self.total_cells} cells)"
        needed = self.cells_needed(selected_count)
        return f"Need {needed} more cell{'s' if needed != 1 else ''}"


def create_pack(storage: BatteryStorage, name: str,
                configuration: PackConfiguration,
                selected_ids: List[int]) -> BatteryProject:
    if not selected_ids:
        raise ValueError("Please select at least one cell to create a battery pack.")
    if not configuration.can_create(len(selected_ids)):
        raise ValueError(
            f"{configuration.label} needs {configuration.total_cells} cells, "
            f"only {len(selected_ids)} selected."
        )
    name = name.strip() or 'Unnamed Pack'

    project = storage.create_battery_project(name, configuration.label, selected_ids)
    log.info("Created battery pack %r (%s) with cells %s",
             project.name, project.configuration, project.battery_ids)
    return project
