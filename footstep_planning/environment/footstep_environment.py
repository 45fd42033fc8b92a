"""
Footstep Planner Environment
State space and transition model searched by the planning engines.
Keeps every generated planning state in a bounded hash table and assigns
sequential ids; generates successors / predecessors through the footstep
set and checks foot placements against the occupancy map.
"""

import math
import logging
from collections import defaultdict
from typing import Dict, List, Tuple, Optional, Any, Iterable, Set

from footstep_planning.environment.planning_state import (
    Leg, Pose, PlanningState, cell_to_value, cell_to_angle, angle_diff
)
from footstep_planning.environment.footstep import Footstep, foot_marker_center
from footstep_planning.environment.heuristics import Heuristic
from footstep_planning.environment.occupancy_map import OccupancyMap

# integer costs are meters scaled to millimeters
COST_SCALE = 1000

class FootstepEnvironment:
    """
    Footstep planning environment.

    Start and goal are each represented by both feet. The search starts at
    the left start foot and ends at the left goal foot; the goal foot of the
    opposite leg is a successor of every state it is reachable from, and the
    start foot of the opposite leg a predecessor of every state reachable
    from it.
    """

    def __init__(self, config: Dict[str, Any], footstep_set: List[Footstep],
                 heuristic: Heuristic):
        self.config = config
        self.logger = logging.getLogger(__name__)

        accuracy = config.get('accuracy', {})
        self.cell_size = accuracy.get('cell_size', 0.01)
        self.num_angle_bins = accuracy.get('num_angle_bins', 64)
        self.collision_check_accuracy = accuracy.get('collision_check', 2)
        self.max_hash_size = config.get('max_hash_size', 65536)

        self.forward_search = config.get('forward_search', False)
        self.step_cost = config.get('step_cost', 0.05)
        self.diff_angle_cost = config.get('diff_angle_cost', 0.0)

        foot = config.get('foot', {})
        self.foot_size_x = foot.get('size', {}).get('x', 0.16)
        self.foot_size_y = foot.get('size', {}).get('y', 0.06)
        self.foot_separation = foot.get('separation', 0.095)
        self.origin_shift_x = foot.get('origin_shift', {}).get('x', 0.02)
        self.origin_shift_y = foot.get('origin_shift', {}).get('y', 0.0)

        max_step = foot.get('max', {}).get('step', {})
        max_inverse_step = foot.get('max', {}).get('inverse', {}).get('step', {})
        self.max_step_x = max_step.get('x', 0.04)
        self.max_step_y = max_step.get('y', 0.04)
        self.max_step_theta = max_step.get('theta', 0.349)
        self.max_inverse_step_x = max_inverse_step.get('x', 0.04)
        self.max_inverse_step_y = max_inverse_step.get('y', 0.01)
        self.max_inverse_step_theta = max_inverse_step.get('theta', 0.05)

        self.footstep_set = list(footstep_set)
        self.heuristic = heuristic

        self._map: Optional[OccupancyMap] = None
        self._occupancy_cache: Dict[int, bool] = {}

        self.reset()

        self.logger.info(f"Footstep environment initialized: {len(self.footstep_set)} footsteps, "
                         f"cell size {self.cell_size}m, {self.num_angle_bins} angle bins")
        self.logger.info(f"Search direction: {'forward' if self.forward_search else 'backward'}")

    def reset(self):
        """Discard every planning state and id."""
        self._state_hash: List[List[PlanningState]] = [[] for _ in range(self.max_hash_size)]
        self._states: List[PlanningState] = []
        self._succ_generators: Dict[int, Set[int]] = defaultdict(set)
        self._pred_generators: Dict[int, Set[int]] = defaultdict(set)
        self._expanded_ids: List[int] = []
        self._expanded_set: Set[int] = set()
        self._occupancy_cache = {}

        self._start_states: Dict[Leg, PlanningState] = {}
        self._goal_states: Dict[Leg, PlanningState] = {}

        self.logger.debug("Footstep environment reset")

    def set_map(self, grid_map: OccupancyMap):
        self._map = grid_map
        self._occupancy_cache = {}
        self.heuristic.update_map(grid_map)

    @property
    def map(self) -> Optional[OccupancyMap]:
        return self._map

    @property
    def num_states(self) -> int:
        return len(self._states)

    @property
    def num_expanded_states(self) -> int:
        return len(self._expanded_ids)

    def set_up(self, start_foot_left: Pose, start_foot_right: Pose,
               goal_foot_left: Pose, goal_foot_right: Pose):
        """Register start and goal feet as planning states."""
        self._start_states = {
            Leg.LEFT: self._register(self._discretize(start_foot_left, Leg.LEFT)),
            Leg.RIGHT: self._register(self._discretize(start_foot_right, Leg.RIGHT)),
        }
        self._goal_states = {
            Leg.LEFT: self._register(self._discretize(goal_foot_left, Leg.LEFT)),
            Leg.RIGHT: self._register(self._discretize(goal_foot_right, Leg.RIGHT)),
        }

        target = goal_foot_left if self.forward_search else start_foot_left
        self.heuristic.update_target(target)

        self.logger.debug(f"Environment set up: start ids "
                          f"{self._start_states[Leg.LEFT].id}/{self._start_states[Leg.RIGHT].id}, "
                          f"goal ids {self._goal_states[Leg.LEFT].id}/{self._goal_states[Leg.RIGHT].id}")

    def initialize(self) -> Tuple[int, int]:
        """(start_id, goal_id) of the search problem."""
        if not self._start_states or not self._goal_states:
            raise RuntimeError("Environment has not been set up with start and goal")
        return self._start_states[Leg.LEFT].id, self._goal_states[Leg.LEFT].id

    def _discretize(self, pose: Pose, leg: Leg) -> PlanningState:
        return PlanningState.from_pose(Pose(pose.x, pose.y, pose.theta, leg),
                                       self.cell_size, self.num_angle_bins,
                                       self.max_hash_size)

    def _register(self, state: PlanningState) -> PlanningState:
        """Look the state up in the hash table, adding it with a fresh id if unknown."""
        bucket = self._state_hash[state.hash_tag]
        for known in bucket:
            if known == state:
                return known

        state.bind_id(len(self._states))
        self._states.append(state)
        bucket.append(state)
        return state

    def has_state(self, state_id: int) -> bool:
        return 0 <= state_id < len(self._states)

    def _lookup(self, state_id: int) -> PlanningState:
        if not self.has_state(state_id):
            raise KeyError(f"Unknown planning state id {state_id}")
        return self._states[state_id]

    def get_state(self, state_id: int) -> Pose:
        """Continuous pose of a registered state; KeyError for unknown ids."""
        return self._lookup(state_id).to_pose(self.cell_size, self.num_angle_bins)

    def get_succs(self, state_id: int) -> List[Tuple[int, int]]:
        """(successor id, integer cost) for every free successor."""
        current = self._lookup(state_id)
        self._mark_expanded(state_id)

        successors: Dict[int, int] = {}

        goal = self._goal_states.get(current.leg.opposite())
        if goal is not None and self._reachable(current, goal):
            self._add_transition(current, goal, current, goal,
                                 successors, self._succ_generators)

        for footstep in self.footstep_set:
            successor = self._register(footstep.perform(current))
            self._add_transition(current, successor, current, successor,
                                 successors, self._succ_generators)

        return list(successors.items())

    def get_preds(self, state_id: int) -> List[Tuple[int, int]]:
        """(predecessor id, integer cost) for every free predecessor."""
        current = self._lookup(state_id)
        self._mark_expanded(state_id)

        predecessors: Dict[int, int] = {}

        start = self._start_states.get(current.leg.opposite())
        if start is not None and self._reachable(start, current):
            self._add_transition(current, start, start, current,
                                 predecessors, self._pred_generators)

        for footstep in self.footstep_set:
            predecessor = self._register(footstep.revert(current))
            self._add_transition(current, predecessor, predecessor, current,
                                 predecessors, self._pred_generators)

        return list(predecessors.items())

    def _add_transition(self, origin: PlanningState, neighbor: PlanningState,
                        from_state: PlanningState, to_state: PlanningState,
                        result: Dict[int, int], generators: Dict[int, Set[int]]):
        generators[neighbor.id].add(origin.id)

        if neighbor.id == origin.id or self._state_occupied(neighbor):
            return

        cost = self._transition_cost(from_state, to_state)
        if neighbor.id not in result or cost < result[neighbor.id]:
            result[neighbor.id] = cost

    def _mark_expanded(self, state_id: int):
        if state_id not in self._expanded_set:
            self._expanded_set.add(state_id)
            self._expanded_ids.append(state_id)

    def _transition_cost(self, from_state: PlanningState, to_state: PlanningState) -> int:
        distance = math.hypot(cell_to_value(to_state.x - from_state.x, self.cell_size),
                              cell_to_value(to_state.y - from_state.y, self.cell_size))
        rotation = abs(angle_diff(cell_to_angle(to_state.theta, self.num_angle_bins),
                                  cell_to_angle(from_state.theta, self.num_angle_bins)))

        return int(COST_SCALE * (distance + self.step_cost + self.diff_angle_cost * rotation))

    def _reachable(self, from_state: PlanningState, to_state: PlanningState) -> bool:
        """Whether to_state can be stepped onto from from_state within the step limits."""
        if from_state.leg == Leg.NONE or to_state.leg != from_state.leg.opposite():
            return False

        dx = cell_to_value(to_state.x - from_state.x, self.cell_size)
        dy = cell_to_value(to_state.y - from_state.y, self.cell_size)
        theta = cell_to_angle(from_state.theta, self.num_angle_bins)
        cos_theta = math.cos(theta)
        sin_theta = math.sin(theta)

        sign = 1.0 if to_state.leg == Leg.LEFT else -1.0
        step_x = cos_theta * dx + sin_theta * dy
        step_y = sign * (-sin_theta * dx + cos_theta * dy) - self.foot_separation
        step_theta = sign * angle_diff(cell_to_angle(to_state.theta, self.num_angle_bins), theta)

        tolerance = self.cell_size / 2.0
        angle_tolerance = math.pi / self.num_angle_bins

        return (-self.max_inverse_step_x - tolerance <= step_x <= self.max_step_x + tolerance and
                -self.max_inverse_step_y - tolerance <= step_y <= self.max_step_y + tolerance and
                -self.max_inverse_step_theta - angle_tolerance <= step_theta
                <= self.max_step_theta + angle_tolerance)

    def get_heuristic(self, state_id: int) -> float:
        """Integer cost estimate towards the search target, inf if unreachable."""
        current = self._lookup(state_id)
        if self.forward_search:
            target = self._goal_states.get(Leg.LEFT)
        else:
            target = self._start_states.get(Leg.LEFT)
        if target is None:
            return 0

        value = self.heuristic.get_h_value(current, target)
        if not math.isfinite(value):
            return math.inf
        return int(COST_SCALE * value)

    def _state_occupied(self, state: PlanningState) -> bool:
        occupied = self._occupancy_cache.get(state.id)
        if occupied is None:
            occupied = self.occupied(state.to_pose(self.cell_size, self.num_angle_bins))
            self._occupancy_cache[state.id] = occupied
        return occupied

    def occupied(self, pose: Pose) -> bool:
        """Whether the footprint of a foot placed at pose collides or leaves the map."""
        if self._map is None:
            return True

        x, y = foot_marker_center(pose, self.origin_shift_x, self.origin_shift_y)
        cos_theta = math.cos(pose.theta)
        sin_theta = math.sin(pose.theta)

        half_x = self.foot_size_x / 2.0
        half_y = self.foot_size_y / 2.0
        for corner_x, corner_y in ((half_x, half_y), (half_x, -half_y),
                                   (-half_x, half_y), (-half_x, -half_y)):
            if not self._map.contains(x + cos_theta * corner_x - sin_theta * corner_y,
                                      y + sin_theta * corner_x + cos_theta * corner_y):
                return True

        return self._collision_check(x, y, cos_theta, sin_theta,
                                     self.foot_size_x, self.foot_size_y,
                                     self.collision_check_accuracy)

    def _collision_check(self, x: float, y: float, cos_theta: float, sin_theta: float,
                         length: float, width: float, accuracy: int) -> bool:
        """
        Footprint test against the distance map.

        accuracy 0: collision only inside the inner circle
        accuracy 1: free outside the outer circle, collision anywhere inside it
        accuracy 2: as 1, then recursive subdivision between the circles
        """
        distance = self._map.distance_at(x, y)
        if distance < 0.0:
            return True
        distance -= self._map.resolution

        inner_radius = min(length, width) / 2.0
        if distance <= inner_radius:
            return True
        if accuracy == 0:
            return False

        outer_radius = math.hypot(length, width) / 2.0
        if distance >= outer_radius:
            return False
        if accuracy == 1:
            return True
        if length <= self._map.resolution and width <= self._map.resolution:
            return True

        quarter_length = length / 4.0
        quarter_width = width / 4.0
        for shift_x, shift_y in ((quarter_length, quarter_width),
                                 (quarter_length, -quarter_width),
                                 (-quarter_length, quarter_width),
                                 (-quarter_length, -quarter_width)):
            if self._collision_check(x + cos_theta * shift_x - sin_theta * shift_y,
                                     y + sin_theta * shift_x + cos_theta * shift_y,
                                     cos_theta, sin_theta,
                                     length / 2.0, width / 2.0, accuracy):
                return True
        return False

    def resolve_successors(self, poses: Iterable[Pose]) -> List[int]:
        """
        Ids of registered states located in the map cells of poses, plus the
        states whose successor generation reached them.
        """
        return self._resolve_changed(poses, self._succ_generators)

    def resolve_predecessors(self, poses: Iterable[Pose]) -> List[int]:
        """
        Ids of registered states located in the map cells of poses, plus the
        states whose predecessor generation reached them.
        """
        return self._resolve_changed(poses, self._pred_generators)

    def _resolve_changed(self, poses: Iterable[Pose],
                         generators: Dict[int, Set[int]]) -> List[int]:
        if self._map is None:
            return []

        cells = set()
        for pose in poses:
            cell = self._map.world_to_cell(pose.x, pose.y)
            if cell is not None:
                cells.add(cell)
        if not cells:
            return []

        state_ids: Set[int] = set()
        for state in self._states:
            x = cell_to_value(state.x, self.cell_size)
            y = cell_to_value(state.y, self.cell_size)
            if self._map.world_to_cell(x, y) in cells:
                state_ids.add(state.id)
                state_ids.update(generators.get(state.id, ()))

        return sorted(state_ids)

    def expanded_states(self) -> List[Pose]:
        """Poses of every state expanded since the last reset."""
        return [self.get_state(state_id) for state_id in self._expanded_ids]

    def hash_statistics(self) -> Dict[str, Any]:
        loads = [len(bucket) for bucket in self._state_hash if bucket]

        stats = {
            'states': len(self._states),
            'max_hash_size': self.max_hash_size,
            'buckets_used': len(loads),
            'max_bucket_size': max(loads) if loads else 0,
            'mean_bucket_size': (sum(loads) / len(loads)) if loads else 0.0,
        }
        self.logger.debug(f"Hash table: {stats['states']} states in {stats['buckets_used']} "
                          f"buckets, max bucket {stats['max_bucket_size']}")
        return stats
