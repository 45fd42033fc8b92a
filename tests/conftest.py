"""Shared fixtures for footstep planning tests"""

import copy

import numpy as np
import pytest

from footstep_planning.environment import OccupancyMap

SMALL_FOOT_CONFIG = {
    'planner_type': 'ARAPlanner',
    'heuristic_type': 'EuclideanHeuristic',
    'max_hash_size': 65536,
    'accuracy': {'cell_size': 0.01, 'num_angle_bins': 64, 'collision_check': 2},
    'step_cost': 0.05,
    'diff_angle_cost': 0.0,
    'search_until_first_solution': False,
    'allocated_time': 2.0,
    'forward_search': False,
    'initial_epsilon': 3.0,
    'changed_states_limit': 320000,
    'foot': {
        'size': {'x': 0.02, 'y': 0.02},
        'separation': 0.1,
        'origin_shift': {'x': 0.0, 'y': 0.0},
        'max': {
            'step': {'x': 0.04, 'y': 0.04, 'theta': 0.349},
            'inverse': {'step': {'x': 0.0, 'y': 0.01, 'theta': 0.05}},
        },
    },
    # a single straight step of 0.04m
    'footsteps': {'x': [0.04], 'y': [0.1], 'theta': [0.0]},
}

@pytest.fixture
def planner_config():
    """Planner configuration with a small square foot and one forward step."""
    return copy.deepcopy(SMALL_FOOT_CONFIG)

@pytest.fixture
def free_map():
    """Free 10 x 10 grid at 0.05m covering x in [-0.05, 0.45], y in [-0.25, 0.25]."""
    return OccupancyMap(np.zeros((10, 10), dtype=bool), 0.05, origin=(-0.05, -0.25))

@pytest.fixture
def walled_map():
    """Same geometry with two fully occupied columns at x in [0.15, 0.25)."""
    grid = np.zeros((10, 10), dtype=bool)
    grid[:, 4:6] = True
    return OccupancyMap(grid, 0.05, origin=(-0.05, -0.25))
