"""
Map Change Detector
Diffs two occupancy snapshots, inflates the flipped cells by the largest
foot radius and enumerates the planning poses whose cost may have changed.
"""

import math
import logging
from dataclasses import dataclass
from typing import Dict, Any, List

import numpy as np
from scipy.ndimage import distance_transform_edt

from footstep_planning.environment.occupancy_map import OccupancyMap
from footstep_planning.environment.planning_state import Leg, Pose, cell_to_angle

@dataclass
class MapChange:
    raw_changed: np.ndarray
    inflated: np.ndarray
    num_angle_bins: int

    @property
    def changed_cells(self) -> int:
        return int(np.count_nonzero(self.raw_changed))

    @property
    def inflated_cells(self) -> int:
        return int(np.count_nonzero(self.inflated))

    @property
    def changed_states(self) -> int:
        """Planning states affected: one per orientation bin of every inflated cell."""
        return self.inflated_cells * self.num_angle_bins

    @property
    def is_empty(self) -> bool:
        return self.inflated_cells == 0

class MapChangeDetector:

    def __init__(self, config: Dict[str, Any]):
        self.logger = logging.getLogger(__name__)

        foot = config.get('foot', {})
        self.foot_size_x = foot.get('size', {}).get('x', 0.16)
        self.foot_size_y = foot.get('size', {}).get('y', 0.06)
        self.origin_shift_x = foot.get('origin_shift', {}).get('x', 0.02)
        self.origin_shift_y = foot.get('origin_shift', {}).get('y', 0.0)
        self.num_angle_bins = config.get('accuracy', {}).get('num_angle_bins', 64)

    def max_foot_radius(self, resolution: float) -> float:
        """Largest distance from the foot origin to its footprint, in cells."""
        return math.hypot(abs(self.origin_shift_x) + self.foot_size_x / 2.0,
                          abs(self.origin_shift_y) + self.foot_size_y / 2.0) / resolution

    def detect(self, old_map: OccupancyMap, new_map: OccupancyMap) -> MapChange:
        """Raw and inflated changed cells; maps must share resolution and size."""
        raw_changed = old_map.changed_cells(new_map)

        if not raw_changed.any():
            self.logger.debug("Maps are identical")
            return MapChange(raw_changed, np.zeros_like(raw_changed), self.num_angle_bins)

        radius = self.max_foot_radius(new_map.resolution)
        distances = distance_transform_edt(~raw_changed)
        inflated = distances <= radius

        change = MapChange(raw_changed, inflated, self.num_angle_bins)
        self.logger.info(f"Map change: {change.changed_cells} cells flipped, "
                         f"{change.inflated_cells} after inflation by {radius:.2f} cells")
        return change

    def changed_poses(self, change: MapChange, grid_map: OccupancyMap) -> List[Pose]:
        """One pose per orientation bin at the center of every inflated cell."""
        angles = [cell_to_angle(angle_bin, self.num_angle_bins)
                  for angle_bin in range(self.num_angle_bins)]

        poses = []
        for row, col in np.argwhere(change.inflated):
            x, y = grid_map.cell_to_world(int(col), int(row))
            poses.extend(Pose(x, y, theta, Leg.NONE) for theta in angles)
        return poses
