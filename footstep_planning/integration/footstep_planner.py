"""
Footstep Planner
Owns the planning session and drives the plan / replan / map update
lifecycle between the footstep environment and a search engine.
"""

import math
import time
import logging
import threading
from typing import Dict, List, Tuple, Optional, Any

from footstep_planning.errors import ConfigurationError
from footstep_planning.environment.footstep import Footstep, foot_pose
from footstep_planning.environment.footstep_environment import FootstepEnvironment, COST_SCALE
from footstep_planning.environment.heuristics import create_heuristic
from footstep_planning.environment.occupancy_map import OccupancyMap
from footstep_planning.environment.planning_state import Leg, Pose
from footstep_planning.integration.map_change_detector import MapChangeDetector
from footstep_planning.integration.planning_types import (
    PlanningStatus, SessionState, MapUpdateAction,
    PlanningResult, MapUpdateResult, PlanResponse, PlanningSession
)
from footstep_planning.search import SEARCH_ENGINES, SearchEngine, IncrementalSearch
from footstep_planning.utils.config_loader import validate_planner_config

class FootstepPlanner:
    """
    Footstep planning orchestrator.

    Every mutating operation runs under one re-entrant lock, so the implicit
    replan of set_map() never interleaves with an explicit plan()/replan().
    Recoverable failures are reported through PlanningResult statuses and
    leave the last valid map, start, goal and path in place.
    """

    def __init__(self, config: Dict[str, Any],
                 environment: Optional[FootstepEnvironment] = None,
                 engine: Optional[SearchEngine] = None):
        self.config = config
        self.logger = logging.getLogger(__name__)

        errors = validate_planner_config(config)
        if errors:
            for error in errors:
                self.logger.error(f"Configuration error: {error}")
            raise ConfigurationError(f"Invalid planner configuration: {'; '.join(errors)}",
                                     {'planner': errors})

        # Planning parameters
        self.planner_type = config.get('planner_type', 'ARAPlanner')
        self.heuristic_type = config.get('heuristic_type', 'EuclideanHeuristic')
        self.max_search_time = config.get('allocated_time', 7.0)              # seconds
        self.initial_epsilon = config.get('initial_epsilon', 3.0)
        self.search_until_first_solution = config.get('search_until_first_solution', False)
        self.forward_search = config.get('forward_search', False)
        self.changed_states_limit = config.get('changed_states_limit', 320000)

        accuracy = config.get('accuracy', {})
        self.cell_size = accuracy.get('cell_size', 0.01)                      # meters
        self.num_angle_bins = accuracy.get('num_angle_bins', 64)
        self.max_hash_size = config.get('max_hash_size', 65536)
        self.foot_separation = config.get('foot', {}).get('separation', 0.095)

        self.footstep_set, self.max_step_width = self._build_footstep_set()

        if environment is None:
            environment = FootstepEnvironment(config, self.footstep_set,
                                              self._build_heuristic())
        self.environment = environment
        self.engine = engine if engine is not None else self._build_engine()

        self.map_change_detector = MapChangeDetector(config)

        # State management
        self.session = PlanningSession()
        self.planning_lock = threading.RLock()
        # set once a search ran against the current environment states
        self.search_graph_built = False

        # Performance monitoring
        self.planning_statistics = {
            'plans': 0,
            'successful_plans': 0,
            'failed_plans': 0,
            'map_updates': 0,
            'incremental_updates': 0,
            'full_resets': 0,
            'noop_map_updates': 0,
            'total_planning_time': 0.0,
            'average_planning_time': 0.0
        }

        self.logger.info("Footstep Planner initialized")
        self.logger.info(f"Engine: {type(self.engine).__name__}, heuristic: {self.heuristic_type}")
        self.logger.info(f"Search direction: {'forward' if self.forward_search else 'backward'}, "
                         f"time budget: {self.max_search_time}s, "
                         f"initial epsilon: {self.initial_epsilon}")

    def _build_footstep_set(self) -> Tuple[List[Footstep], float]:
        footsteps = self.config['footsteps']

        footstep_set = []
        max_step_width = 0.0
        for x, y, theta in zip(footsteps['x'], footsteps['y'], footsteps['theta']):
            footstep = Footstep(float(x), float(y), float(theta), self.cell_size,
                                self.num_angle_bins, self.max_hash_size)
            footstep_set.append(footstep)
            max_step_width = max(max_step_width, footstep.step_width)

        self.logger.info(f"Footstep set: {len(footstep_set)} steps, "
                         f"max step width {max_step_width:.3f}m")
        return footstep_set, max_step_width

    def _build_heuristic(self):
        try:
            return create_heuristic(self.heuristic_type, self.cell_size, self.num_angle_bins,
                                    self.config.get('step_cost', 0.05),
                                    self.config.get('diff_angle_cost', 0.0),
                                    self.max_step_width)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    def _build_engine(self) -> SearchEngine:
        engine_class = SEARCH_ENGINES.get(self.planner_type)
        if engine_class is None:
            raise ConfigurationError(f"Planner {self.planner_type} not available")

        if self.planner_type == 'RSTARPlanner':
            return engine_class(self.environment, self.forward_search,
                                seed=self.config.get('random_seed'))
        return engine_class(self.environment, self.forward_search)

    # Session queries

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def path(self) -> List[Pose]:
        return list(self.session.path)

    @property
    def path_cost(self) -> float:
        return self.session.path_cost

    @property
    def path_stale(self) -> bool:
        return self.session.path_stale

    @property
    def map(self) -> Optional[OccupancyMap]:
        return self.session.map

    def get_start_feet(self) -> Optional[Tuple[Pose, Pose]]:
        if not self.session.start_set:
            return None
        return self.session.start_foot_left, self.session.start_foot_right

    def get_goal_feet(self) -> Optional[Tuple[Pose, Pose]]:
        if not self.session.goal_set:
            return None
        return self.session.goal_foot_left, self.session.goal_foot_right

    def get_expanded_states(self) -> List[Pose]:
        return self.environment.expanded_states()

    def _refresh_state(self):
        """Derive the idle session state from what has been set."""
        if self.session.map is None:
            self.session.state = SessionState.UNCONFIGURED
        elif self.session.start_set and self.session.goal_set:
            self.session.state = SessionState.READY
        elif self.session.start_set:
            self.session.state = SessionState.START_SET
        elif self.session.goal_set:
            self.session.state = SessionState.GOAL_SET
        else:
            self.session.state = SessionState.CONFIGURED

    # Session updates

    def set_map(self, grid_map: OccupancyMap) -> MapUpdateResult:
        """
        Replace the map. If the session holds a plan, update the search graph
        (incrementally or by reset) and replan.
        """
        with self.planning_lock:
            old_map = self.session.map
            has_plan = bool(self.session.path) and self.session.start_set and self.session.goal_set

            self.session.map = grid_map
            self.planning_statistics['map_updates'] += 1

            if old_map is None or not has_plan:
                if self.search_graph_built:
                    self.logger.info("Map replaced without a plan, discarding search graph")
                    self._reset_search()
                self.environment.set_map(grid_map)
                if self.session.state not in (SessionState.PLAN_FOUND, SessionState.PLAN_FAILED):
                    self._refresh_state()
                self.logger.info(f"Map set: {grid_map.size()} cells at {grid_map.resolution}m")
                return MapUpdateResult(MapUpdateAction.STORED)

            update = self.update_environment(old_map, grid_map)
            self.environment.set_map(grid_map)

            if update.action == MapUpdateAction.NO_CHANGE:
                return update

            self.session.path_stale = True
            update.replan_result = self._run()
            return update

    def update_environment(self, old_map: OccupancyMap, new_map: OccupancyMap) -> MapUpdateResult:
        """Decide between incremental repair and a full reset of the search graph."""
        with self.planning_lock:
            if not isinstance(self.engine, IncrementalSearch):
                self.logger.info(f"{type(self.engine).__name__} does not support cost updates, "
                                 f"resetting search")
                self._reset_search()
                self.planning_statistics['full_resets'] += 1
                return MapUpdateResult(MapUpdateAction.RESET)

            if not old_map.same_geometry(new_map):
                self.logger.info("Map resolution or size changed, resetting search")
                self._reset_search()
                self.planning_statistics['full_resets'] += 1
                return MapUpdateResult(MapUpdateAction.RESET)

            change = self.map_change_detector.detect(old_map, new_map)

            if change.is_empty:
                self.logger.info("Map unchanged, keeping search graph")
                self.planning_statistics['noop_map_updates'] += 1
                return MapUpdateResult(MapUpdateAction.NO_CHANGE)

            result = MapUpdateResult(MapUpdateAction.INCREMENTAL,
                                     changed_cells=change.changed_cells,
                                     inflated_cells=change.inflated_cells,
                                     changed_states=change.changed_states)

            if change.changed_states > self.changed_states_limit:
                self.logger.info(f"{change.changed_states} changed states exceed limit "
                                 f"{self.changed_states_limit}, resetting search")
                self._reset_search()
                self.planning_statistics['full_resets'] += 1
                result.action = MapUpdateAction.RESET
                return result

            poses = self.map_change_detector.changed_poses(change, new_map)
            if self.forward_search:
                state_ids = self.environment.resolve_successors(poses)
            else:
                state_ids = self.environment.resolve_predecessors(poses)

            self.engine.costs_changed(state_ids)
            self.planning_statistics['incremental_updates'] += 1
            self.logger.info(f"Incremental update: {len(state_ids)} states notified "
                             f"({change.changed_states} candidate states)")
            return result

    def _reset_search(self):
        self.environment.reset()
        self.engine.reset()
        self.search_graph_built = False

    def set_start(self, pose: Pose) -> PlanningResult:
        """Set the start from the robot center pose."""
        with self.planning_lock:
            left = foot_pose(pose, Leg.LEFT, self.foot_separation)
            right = foot_pose(pose, Leg.RIGHT, self.foot_separation)
            return self._set_feet(left, right, is_start=True)

    def set_start_feet(self, left: Pose, right: Pose) -> PlanningResult:
        """Set the start from explicit foot poses."""
        with self.planning_lock:
            left = Pose(left.x, left.y, left.theta, Leg.LEFT)
            right = Pose(right.x, right.y, right.theta, Leg.RIGHT)
            return self._set_feet(left, right, is_start=True)

    def set_goal(self, pose: Pose) -> PlanningResult:
        """Set the goal from the robot center pose."""
        with self.planning_lock:
            left = foot_pose(pose, Leg.LEFT, self.foot_separation)
            right = foot_pose(pose, Leg.RIGHT, self.foot_separation)
            return self._set_feet(left, right, is_start=False)

    def _set_feet(self, left: Pose, right: Pose, is_start: bool) -> PlanningResult:
        label = 'start' if is_start else 'goal'

        if self.session.map is None:
            message = f"Cannot set {label} without a map"
            self.logger.warning(message)
            return PlanningResult(PlanningStatus.NOT_READY, message)

        if self.environment.occupied(left) or self.environment.occupied(right):
            message = (f"Infeasible {label} pose: feet at ({left.x:.3f}, {left.y:.3f}) / "
                       f"({right.x:.3f}, {right.y:.3f}) collide or leave the map")
            self.logger.warning(message)
            return PlanningResult(PlanningStatus.INFEASIBLE_POSE, message)

        if is_start:
            self.session.start_foot_left = left
            self.session.start_foot_right = right
        else:
            self.session.goal_foot_left = left
            self.session.goal_foot_right = right

        if self.session.path:
            self.session.path_stale = True
        self._refresh_state()

        message = f"{label.capitalize()} set: left {left}, right {right}"
        self.logger.info(message)
        return PlanningResult(PlanningStatus.SUCCESS, message)

    # Planning

    def _not_ready(self) -> Optional[PlanningResult]:
        missing = []
        if self.session.map is None:
            missing.append('map')
        if not self.session.start_set:
            missing.append('start')
        if not self.session.goal_set:
            missing.append('goal')
        if not missing:
            return None

        message = f"Planner not ready, missing: {', '.join(missing)}"
        self.logger.warning(message)
        return PlanningResult(PlanningStatus.NOT_READY, message)

    def plan(self) -> PlanningResult:
        """Plan from scratch, discarding any existing search graph."""
        with self.planning_lock:
            not_ready = self._not_ready()
            if not_ready is not None:
                return not_ready

            self._reset_search()
            return self._run()

    def replan(self) -> PlanningResult:
        """Plan reusing the existing search graph and pending cost updates."""
        with self.planning_lock:
            not_ready = self._not_ready()
            if not_ready is not None:
                return not_ready

            return self._run()

    def plan_between(self, start: Pose, goal: Pose) -> PlanningResult:
        with self.planning_lock:
            result = self.set_start(start)
            if not result:
                return result
            result = self.set_goal(goal)
            if not result:
                return result
            return self.plan()

    def run(self) -> PlanningResult:
        with self.planning_lock:
            not_ready = self._not_ready()
            if not_ready is not None:
                return not_ready
            return self._run()

    def _run(self) -> PlanningResult:
        planning_start = time.time()
        self.session.state = SessionState.PLANNING
        self.planning_statistics['plans'] += 1

        self.environment.set_up(self.session.start_foot_left, self.session.start_foot_right,
                                self.session.goal_foot_left, self.session.goal_foot_right)
        start_id, goal_id = self.environment.initialize()
        self.search_graph_built = True

        if not self.engine.set_start(start_id):
            return self._fail(PlanningStatus.ENGINE_FAILURE,
                              f"Search engine rejected start state {start_id}", planning_start)
        if not self.engine.set_goal(goal_id):
            return self._fail(PlanningStatus.ENGINE_FAILURE,
                              f"Search engine rejected goal state {goal_id}", planning_start)

        self.engine.set_initial_epsilon(self.initial_epsilon)
        self.engine.set_first_solution_only(self.search_until_first_solution)

        self.logger.info(f"Planning from state {start_id} to {goal_id} "
                         f"with {self.max_search_time}s budget")
        search_result = self.engine.replan(self.max_search_time)

        if not search_result.success or not search_result.state_ids:
            return self._fail(PlanningStatus.NO_SOLUTION,
                              "No solution found within the search budget", planning_start)

        try:
            path = [self.environment.get_state(state_id) for state_id in search_result.state_ids]
        except KeyError as e:
            self.logger.error(f"Solution contains unresolvable state: {e}")
            self.session.path = []
            self.session.path_cost = math.inf
            self.session.path_stale = False
            return self._fail(PlanningStatus.INCONSISTENT_SOLUTION,
                              f"Engine reported success but a state failed to resolve: {e}",
                              planning_start)

        planning_time = time.time() - planning_start
        self.session.path = path
        self.session.path_cost = search_result.cost / COST_SCALE
        self.session.path_stale = False
        self.session.state = SessionState.PLAN_FOUND
        self._record_planning_time(planning_time, success=True)

        expanded = self.engine.expanded_count()
        final_epsilon = self.engine.final_epsilon()
        self.logger.info(f"Plan found in {planning_time:.3f}s: {len(path)} footsteps, "
                         f"cost {self.session.path_cost:.3f}, expanded {expanded}, "
                         f"eps {final_epsilon:.2f}")

        return PlanningResult(PlanningStatus.SUCCESS,
                              f"Plan with {len(path)} footsteps",
                              footsteps=list(path),
                              cost=self.session.path_cost,
                              expanded_states=expanded,
                              final_epsilon=final_epsilon,
                              planning_time=planning_time)

    def _fail(self, status: PlanningStatus, message: str, planning_start: float) -> PlanningResult:
        planning_time = time.time() - planning_start
        if self.session.path:
            self.session.path_stale = True
        self.session.state = SessionState.PLAN_FAILED
        self._record_planning_time(planning_time, success=False)

        if status == PlanningStatus.NO_SOLUTION:
            self.logger.info(message)
        else:
            self.logger.error(message)

        return PlanningResult(status, message,
                              expanded_states=self.engine.expanded_count(),
                              planning_time=planning_time)

    def _record_planning_time(self, planning_time: float, success: bool):
        key = 'successful_plans' if success else 'failed_plans'
        self.planning_statistics[key] += 1
        self.planning_statistics['total_planning_time'] += planning_time
        self.planning_statistics['average_planning_time'] = (
            self.planning_statistics['total_planning_time'] /
            self.planning_statistics['plans']
        )

    # Inbound triggers

    def on_new_goal(self, x: float, y: float, theta: float) -> Optional[PlanningResult]:
        """Set the goal; replan right away when the start is known."""
        with self.planning_lock:
            result = self.set_goal(Pose(x, y, theta))
            if not result:
                return result
            if self.session.start_set:
                return self.replan()
            return result

    def on_new_start(self, x: float, y: float, theta: float) -> Optional[PlanningResult]:
        """Set the start; replan right away when the goal is known."""
        with self.planning_lock:
            result = self.set_start(Pose(x, y, theta))
            if not result:
                return result
            if self.session.goal_set:
                return self.replan()
            return result

    def on_new_map(self, grid_map: OccupancyMap) -> MapUpdateResult:
        return self.set_map(grid_map)

    def plan_service(self, start: Pose, goal: Pose) -> PlanResponse:
        result = self.plan_between(start, goal)
        if not result:
            return PlanResponse(success=False)

        footsteps = []
        for footstep in result.footsteps:
            if footstep.leg == Leg.NONE:
                self.logger.error(f"Footstep without leg in solution: {footstep}")
                continue
            footsteps.append(footstep)

        return PlanResponse(success=True, cost=result.cost, footsteps=footsteps)

    def get_planning_statistics(self) -> Dict[str, Any]:
        with self.planning_lock:
            stats = self.planning_statistics.copy()
            stats['session_state'] = self.session.state.value
            stats['path_length'] = len(self.session.path)
            stats['path_stale'] = self.session.path_stale
            return stats
