"""Unit tests for FootstepEnvironment"""

import numpy as np
import pytest

from footstep_planning.environment import (
    FootstepEnvironment, Footstep, EuclideanHeuristic, OccupancyMap, Leg, Pose, COST_SCALE
)


def make_environment(config, grid_map=None):
    accuracy = config['accuracy']
    footsteps = [Footstep(x, y, theta, accuracy['cell_size'], accuracy['num_angle_bins'],
                          config['max_hash_size'])
                 for x, y, theta in zip(config['footsteps']['x'], config['footsteps']['y'],
                                        config['footsteps']['theta'])]
    heuristic = EuclideanHeuristic(accuracy['cell_size'], accuracy['num_angle_bins'])
    environment = FootstepEnvironment(config, footsteps, heuristic)
    if grid_map is not None:
        environment.set_map(grid_map)
    return environment


def set_up_straight_walk(environment):
    environment.set_up(Pose(0.0, 0.05, 0.0, Leg.LEFT), Pose(0.0, -0.05, 0.0, Leg.RIGHT),
                       Pose(0.4, 0.05, 0.0, Leg.LEFT), Pose(0.4, -0.05, 0.0, Leg.RIGHT))


class TestFootstepEnvironment:
    """Tests for the state table and transition model"""

    def test_initialize_requires_set_up(self, planner_config, free_map):
        environment = make_environment(planner_config, free_map)
        with pytest.raises(RuntimeError):
            environment.initialize()

    def test_set_up_registers_feet(self, planner_config, free_map):
        environment = make_environment(planner_config, free_map)
        set_up_straight_walk(environment)

        start_id, goal_id = environment.initialize()

        assert (start_id, goal_id) == (0, 2)
        assert environment.num_states == 4
        assert environment.get_state(goal_id).is_close(Pose(0.4, 0.05, 0.0, Leg.LEFT))

    def test_set_up_twice_reuses_ids(self, planner_config, free_map):
        environment = make_environment(planner_config, free_map)
        set_up_straight_walk(environment)
        set_up_straight_walk(environment)

        assert environment.num_states == 4
        assert environment.initialize() == (0, 2)

    def test_unknown_state_id(self, planner_config, free_map):
        environment = make_environment(planner_config, free_map)
        with pytest.raises(KeyError):
            environment.get_state(0)
        assert not environment.has_state(-1)

    def test_successors(self, planner_config, free_map):
        environment = make_environment(planner_config, free_map)
        set_up_straight_walk(environment)

        successors = environment.get_succs(1)  # right start foot

        assert len(successors) == 1
        state_id, cost = successors[0]
        assert environment.get_state(state_id).is_close(Pose(0.04, 0.05, 0.0, Leg.LEFT))
        assert cost == int(COST_SCALE * (np.hypot(0.04, 0.1) + 0.05))
        assert environment.num_expanded_states == 1

    def test_goal_foot_is_successor_when_reachable(self, planner_config, free_map):
        environment = make_environment(planner_config, free_map)
        environment.set_up(Pose(0.0, 0.05, 0.0, Leg.LEFT), Pose(0.0, -0.05, 0.0, Leg.RIGHT),
                           Pose(0.03, 0.05, 0.0, Leg.LEFT), Pose(0.03, -0.05, 0.0, Leg.RIGHT))

        successor_ids = [state_id for state_id, _ in environment.get_succs(1)]

        # goal left foot at 0.03 is within the 0.04 step limit
        assert 2 in successor_ids

    def test_start_foot_is_predecessor_when_reachable(self, planner_config, free_map):
        environment = make_environment(planner_config, free_map)
        environment.set_up(Pose(0.0, 0.05, 0.0, Leg.LEFT), Pose(0.0, -0.05, 0.0, Leg.RIGHT),
                           Pose(0.03, 0.05, 0.0, Leg.LEFT), Pose(0.03, -0.05, 0.0, Leg.RIGHT))

        predecessor_ids = [state_id for state_id, _ in environment.get_preds(2)]

        assert 1 in predecessor_ids

    def test_predecessors_invert_successors(self, planner_config, free_map):
        environment = make_environment(planner_config, free_map)
        set_up_straight_walk(environment)

        successor_id, cost = environment.get_succs(1)[0]
        predecessors = dict(environment.get_preds(successor_id))

        assert predecessors[1] == cost

    def test_occupied_states_are_not_successors(self, planner_config, walled_map):
        environment = make_environment(planner_config, walled_map)
        environment.set_up(Pose(0.08, 0.05, 0.0, Leg.LEFT), Pose(0.08, -0.05, 0.0, Leg.RIGHT),
                           Pose(0.4, 0.05, 0.0, Leg.LEFT), Pose(0.4, -0.05, 0.0, Leg.RIGHT))

        # the step would land right next to the wall
        assert environment.get_succs(1) == []

    def test_occupied(self, planner_config, walled_map):
        environment = make_environment(planner_config, walled_map)

        assert not environment.occupied(Pose(0.0, 0.05, 0.0, Leg.LEFT))
        assert environment.occupied(Pose(0.2, 0.05, 0.0, Leg.LEFT))
        # footprint leaves the map
        assert environment.occupied(Pose(0.445, 0.05, 0.0, Leg.LEFT))

    def test_occupied_without_map(self, planner_config):
        environment = make_environment(planner_config)
        assert environment.occupied(Pose(0.0, 0.0, 0.0, Leg.LEFT))

    @pytest.mark.parametrize('accuracy', [0, 1, 2])
    def test_collision_accuracy_levels(self, planner_config, accuracy):
        planner_config['accuracy']['collision_check'] = accuracy
        planner_config['foot']['size'] = {'x': 0.16, 'y': 0.06}
        grid = np.zeros((40, 40), dtype=bool)
        grid[20, 20] = True
        environment = make_environment(planner_config, OccupancyMap(grid, 0.01))

        # far away from the obstacle
        assert not environment.occupied(Pose(0.1, 0.1, 0.0, Leg.LEFT))
        # obstacle under the foot center
        assert environment.occupied(Pose(0.205, 0.205, 0.0, Leg.LEFT))

    def test_subdivision_is_less_conservative(self, planner_config):
        planner_config['foot']['size'] = {'x': 0.16, 'y': 0.06}
        grid = np.zeros((40, 40), dtype=bool)
        grid[20, 20] = True
        foot = Pose(0.205, 0.155, 0.0, Leg.LEFT)

        planner_config['accuracy']['collision_check'] = 1
        coarse = make_environment(planner_config, OccupancyMap(grid, 0.01))
        planner_config['accuracy']['collision_check'] = 2
        fine = make_environment(planner_config, OccupancyMap(grid, 0.01))

        # obstacle 5 cm beside a 6 cm wide foot: inside the outer circle only
        assert coarse.occupied(foot)
        assert not fine.occupied(foot)

    def test_accuracy_levels_differ_between_circles(self, planner_config):
        planner_config['foot']['size'] = {'x': 0.16, 'y': 0.06}
        grid = np.zeros((40, 40), dtype=bool)
        grid[20, 20] = True
        # 4 cm clearance: outside the 3 cm inner circle, inside the 8.5 cm outer one
        foot = Pose(0.205, 0.155, 0.0, Leg.LEFT)

        occupied = {}
        for accuracy in (0, 1, 2):
            planner_config['accuracy']['collision_check'] = accuracy
            environment = make_environment(planner_config, OccupancyMap(grid, 0.01))
            occupied[accuracy] = environment.occupied(foot)

        assert occupied == {0: False, 1: True, 2: False}

    def test_inner_circle_only_ignores_corner_obstacles(self, planner_config):
        planner_config['accuracy']['collision_check'] = 0
        planner_config['foot']['size'] = {'x': 0.16, 'y': 0.06}
        grid = np.zeros((40, 40), dtype=bool)
        grid[20, 26] = True
        environment = make_environment(planner_config, OccupancyMap(grid, 0.01))

        # obstacle under the toe, 6 cm ahead of the foot center
        assert not environment.occupied(Pose(0.205, 0.205, 0.0, Leg.LEFT))

    def test_resolve_predecessors(self, planner_config, free_map):
        environment = make_environment(planner_config, free_map)
        set_up_straight_walk(environment)
        successor_id, _ = environment.get_succs(1)[0]
        environment.get_preds(successor_id)

        changed = environment.get_state(successor_id)
        state_ids = environment.resolve_predecessors([Pose(changed.x, changed.y, 0.0)])

        assert successor_id in state_ids
        assert state_ids == sorted(state_ids)

    def test_resolve_successors_includes_generators(self, planner_config, free_map):
        environment = make_environment(planner_config, free_map)
        set_up_straight_walk(environment)
        successor_id, _ = environment.get_succs(1)[0]

        changed = environment.get_state(successor_id)
        state_ids = environment.resolve_successors([Pose(changed.x, changed.y, 0.0)])

        assert successor_id in state_ids
        assert 1 in state_ids

    def test_heuristic_targets_start_in_backward_search(self, planner_config, free_map):
        environment = make_environment(planner_config, free_map)
        set_up_straight_walk(environment)

        assert environment.get_heuristic(0) == 0
        assert environment.get_heuristic(2) == int(COST_SCALE * 0.4)

    def test_reset_discards_states(self, planner_config, free_map):
        environment = make_environment(planner_config, free_map)
        set_up_straight_walk(environment)
        environment.get_succs(1)

        environment.reset()

        assert environment.num_states == 0
        assert environment.num_expanded_states == 0
        assert environment.map is free_map

    def test_hash_statistics(self, planner_config, free_map):
        environment = make_environment(planner_config, free_map)
        set_up_straight_walk(environment)

        stats = environment.hash_statistics()

        assert stats['states'] == 4
        assert stats['max_bucket_size'] >= 1
