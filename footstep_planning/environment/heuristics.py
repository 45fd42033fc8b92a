"""
Footstep planning heuristics.
Estimates (in meters) of the remaining cost from a planning state to the
current search target.
"""

import math
import logging
import numpy as np
from typing import Optional
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import dijkstra

from footstep_planning.environment.planning_state import (
    PlanningState, Pose, cell_to_value, cell_to_angle, angle_diff
)
from footstep_planning.environment.occupancy_map import OccupancyMap

class Heuristic:
    """Base heuristic: straight-line distance between foot positions."""

    def __init__(self, cell_size: float, num_angle_bins: int):
        self.cell_size = cell_size
        self.num_angle_bins = num_angle_bins
        self.logger = logging.getLogger(__name__)

    def update_map(self, grid_map: OccupancyMap):
        pass

    def update_target(self, target: Pose):
        pass

    def _distance(self, from_state: PlanningState, to_state: PlanningState) -> float:
        return math.hypot(cell_to_value(from_state.x - to_state.x, self.cell_size),
                          cell_to_value(from_state.y - to_state.y, self.cell_size))

    def _angle_distance(self, from_state: PlanningState, to_state: PlanningState) -> float:
        return abs(angle_diff(cell_to_angle(from_state.theta, self.num_angle_bins),
                              cell_to_angle(to_state.theta, self.num_angle_bins)))

    def get_h_value(self, from_state: PlanningState, to_state: PlanningState) -> float:
        raise NotImplementedError

class EuclideanHeuristic(Heuristic):

    def get_h_value(self, from_state: PlanningState, to_state: PlanningState) -> float:
        if from_state == to_state:
            return 0.0
        return self._distance(from_state, to_state)

class EuclStepCostHeuristic(Heuristic):
    """Euclidean distance plus the step cost of the minimum number of steps."""

    def __init__(self, cell_size: float, num_angle_bins: int, step_cost: float,
                 diff_angle_cost: float, max_step_width: float):
        super().__init__(cell_size, num_angle_bins)
        self.step_cost = step_cost
        self.diff_angle_cost = diff_angle_cost
        self.max_step_width = max_step_width

    def get_h_value(self, from_state: PlanningState, to_state: PlanningState) -> float:
        if from_state == to_state:
            return 0.0

        distance = self._distance(from_state, to_state)
        expected_steps = distance / self.max_step_width if self.max_step_width > 0 else 0.0

        return (distance + expected_steps * self.step_cost +
                self.diff_angle_cost * self._angle_distance(from_state, to_state))

class PathCostHeuristic(Heuristic):
    """
    2D shortest path distance over free map cells (8-connected) to the target,
    plus the step cost of the minimum number of steps along it.
    Cells that cannot reach the target get an infinite estimate.
    """

    def __init__(self, cell_size: float, num_angle_bins: int, step_cost: float,
                 diff_angle_cost: float, max_step_width: float):
        super().__init__(cell_size, num_angle_bins)
        self.step_cost = step_cost
        self.diff_angle_cost = diff_angle_cost
        self.max_step_width = max_step_width

        self._map: Optional[OccupancyMap] = None
        self._target: Optional[Pose] = None
        self._distances: Optional[np.ndarray] = None

    def update_map(self, grid_map: OccupancyMap):
        self._map = grid_map
        self._distances = None

    def update_target(self, target: Pose):
        if self._target is None or not self._target.is_close(target):
            self._target = target
            self._distances = None

    def _compute_distances(self) -> np.ndarray:
        grid = self._map.binary_map
        rows, cols = grid.shape
        distances = np.full(grid.shape, np.inf)

        target_cell = self._map.world_to_cell(self._target.x, self._target.y)
        if target_cell is None:
            self.logger.warning(f"Heuristic target ({self._target.x:.3f}, "
                                f"{self._target.y:.3f}) outside the map")
            return distances

        node_ids = np.arange(rows * cols).reshape(rows, cols)
        free = ~grid
        sources = []
        targets = []
        weights = []

        for d_row, d_col in [(0, 1), (1, 0), (1, 1), (1, -1)]:
            weight = math.hypot(d_row, d_col) * self._map.resolution

            src_rows = slice(0, rows - d_row)
            dst_rows = slice(d_row, rows)
            if d_col >= 0:
                src_cols = slice(0, cols - d_col)
                dst_cols = slice(d_col, cols)
            else:
                src_cols = slice(-d_col, cols)
                dst_cols = slice(0, cols + d_col)

            both_free = free[src_rows, src_cols] & free[dst_rows, dst_cols]
            src = node_ids[src_rows, src_cols][both_free]
            dst = node_ids[dst_rows, dst_cols][both_free]

            sources.append(src)
            targets.append(dst)
            weights.append(np.full(len(src), weight))

        graph = csr_matrix((np.concatenate(weights),
                            (np.concatenate(sources), np.concatenate(targets))),
                           shape=(rows * cols, rows * cols))
        target_node = node_ids[target_cell[1], target_cell[0]]
        result = dijkstra(graph, directed=False, indices=target_node)

        distances = result.reshape(rows, cols)
        reachable = int(np.isfinite(distances).sum())
        self.logger.debug(f"Path cost heuristic: {reachable} cells reach the target")

        return distances

    def get_h_value(self, from_state: PlanningState, to_state: PlanningState) -> float:
        if from_state == to_state:
            return 0.0
        if self._map is None or self._target is None:
            return self._distance(from_state, to_state)

        if self._distances is None:
            self._distances = self._compute_distances()

        x = cell_to_value(from_state.x, self.cell_size)
        y = cell_to_value(from_state.y, self.cell_size)
        cell = self._map.world_to_cell(x, y)
        if cell is None:
            return math.inf

        distance = float(self._distances[cell[1], cell[0]])
        if not math.isfinite(distance):
            return math.inf

        # cell-center distances overestimate by up to one cell
        distance = max(distance - self._map.resolution, 0.0)
        expected_steps = distance / self.max_step_width if self.max_step_width > 0 else 0.0

        return (distance + expected_steps * self.step_cost +
                self.diff_angle_cost * self._angle_distance(from_state, to_state))

HEURISTIC_TYPES = ('EuclideanHeuristic', 'EuclStepCostHeuristic', 'PathCostHeuristic')

def create_heuristic(heuristic_type: str, cell_size: float, num_angle_bins: int,
                     step_cost: float, diff_angle_cost: float,
                     max_step_width: float) -> Heuristic:
    """Factory; raises ValueError for unknown heuristic identifiers."""
    if heuristic_type == 'EuclideanHeuristic':
        return EuclideanHeuristic(cell_size, num_angle_bins)
    if heuristic_type == 'EuclStepCostHeuristic':
        return EuclStepCostHeuristic(cell_size, num_angle_bins, step_cost,
                                     diff_angle_cost, max_step_width)
    if heuristic_type == 'PathCostHeuristic':
        return PathCostHeuristic(cell_size, num_angle_bins, step_cost,
                                 diff_angle_cost, max_step_width)
    raise ValueError(f"Heuristic {heuristic_type} not available")
