"""
Planning Integration Module
Session orchestration and map change handling.
"""

from footstep_planning.integration.footstep_planner import FootstepPlanner
from footstep_planning.integration.map_change_detector import MapChangeDetector, MapChange
from footstep_planning.integration.planning_types import (
    PlanningStatus, SessionState, MapUpdateAction,
    PlanningResult, MapUpdateResult, PlanResponse, PlanningSession
)

__all__ = [
    'FootstepPlanner', 'MapChangeDetector', 'MapChange',
    'PlanningStatus', 'SessionState', 'MapUpdateAction',
    'PlanningResult', 'MapUpdateResult', 'PlanResponse', 'PlanningSession'
]
