"""
Planning Environment Module
Discretized states, footsteps, occupancy maps, heuristics and the
footstep environment searched by the engines.
"""

from footstep_planning.environment.planning_state import (
    Leg, Pose, PlanningState, normalize_angle, angle_diff,
    to_cell, cell_to_value, angle_to_cell, cell_to_angle, int_hash
)
from footstep_planning.environment.footstep import Footstep, foot_pose, foot_marker_center
from footstep_planning.environment.occupancy_map import OccupancyMap
from footstep_planning.environment.heuristics import (
    Heuristic, EuclideanHeuristic, EuclStepCostHeuristic, PathCostHeuristic, create_heuristic
)
from footstep_planning.environment.footstep_environment import FootstepEnvironment, COST_SCALE

__all__ = [
    'Leg', 'Pose', 'PlanningState', 'normalize_angle', 'angle_diff',
    'to_cell', 'cell_to_value', 'angle_to_cell', 'cell_to_angle', 'int_hash',
    'Footstep', 'foot_pose', 'foot_marker_center',
    'OccupancyMap',
    'Heuristic', 'EuclideanHeuristic', 'EuclStepCostHeuristic', 'PathCostHeuristic',
    'create_heuristic',
    'FootstepEnvironment', 'COST_SCALE'
]
