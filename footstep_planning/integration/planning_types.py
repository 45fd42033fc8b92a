"""
Planning session types.
Statuses, session lifecycle and the result records handed to callers.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from footstep_planning.environment.occupancy_map import OccupancyMap
from footstep_planning.environment.planning_state import Pose

class PlanningStatus(Enum):
    """Outcome of a planner operation."""
    SUCCESS = "success"
    INFEASIBLE_POSE = "infeasible_pose"
    NOT_READY = "not_ready"
    ENGINE_FAILURE = "engine_failure"
    INCONSISTENT_SOLUTION = "inconsistent_solution"
    NO_SOLUTION = "no_solution"

class SessionState(Enum):
    """Planner session lifecycle."""
    UNCONFIGURED = "unconfigured"  # no map yet
    CONFIGURED = "configured"
    START_SET = "start_set"
    GOAL_SET = "goal_set"
    READY = "ready"
    PLANNING = "planning"
    PLAN_FOUND = "plan_found"
    PLAN_FAILED = "plan_failed"

class MapUpdateAction(Enum):
    """What set_map() did with the existing search graph."""
    STORED = "stored"  # no plan to update
    NO_CHANGE = "no_change"
    INCREMENTAL = "incremental"
    RESET = "reset"

@dataclass
class PlanningResult:
    status: PlanningStatus
    message: str = ""
    footsteps: List[Pose] = field(default_factory=list)
    cost: float = math.inf
    expanded_states: int = 0
    final_epsilon: float = math.inf
    planning_time: float = 0.0

    @property
    def success(self) -> bool:
        return self.status == PlanningStatus.SUCCESS

    def __bool__(self) -> bool:
        return self.success

@dataclass
class MapUpdateResult:
    action: MapUpdateAction
    changed_cells: int = 0
    inflated_cells: int = 0
    changed_states: int = 0
    replan_result: Optional[PlanningResult] = None

@dataclass
class PlanResponse:
    """Service-style answer to a plan request."""
    success: bool
    cost: float = math.inf
    footsteps: List[Pose] = field(default_factory=list)

@dataclass
class PlanningSession:
    """Mutable state of one planner; only the planner writes to it."""
    map: Optional[OccupancyMap] = None
    start_foot_left: Optional[Pose] = None
    start_foot_right: Optional[Pose] = None
    goal_foot_left: Optional[Pose] = None
    goal_foot_right: Optional[Pose] = None
    state: SessionState = SessionState.UNCONFIGURED
    path: List[Pose] = field(default_factory=list)
    path_cost: float = math.inf
    path_stale: bool = False

    @property
    def start_set(self) -> bool:
        return self.start_foot_left is not None and self.start_foot_right is not None

    @property
    def goal_set(self) -> bool:
        return self.goal_foot_left is not None and self.goal_foot_right is not None

    @property
    def ready(self) -> bool:
        return self.map is not None and self.start_set and self.goal_set
