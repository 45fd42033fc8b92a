"""
Search Engines
Anytime heuristic search over the footstep environment.
"""

from footstep_planning.search.search_engine import (
    SearchEngine, IncrementalSearch, SearchResult, OpenList, INFINITE_COST
)
from footstep_planning.search.ara_planner import ARAPlanner
from footstep_planning.search.ad_planner import ADPlanner
from footstep_planning.search.rstar_planner import RSTARPlanner

SEARCH_ENGINES = {
    'ARAPlanner': ARAPlanner,
    'ADPlanner': ADPlanner,
    'RSTARPlanner': RSTARPlanner,
}

__all__ = [
    'SearchEngine', 'IncrementalSearch', 'SearchResult', 'OpenList', 'INFINITE_COST',
    'ARAPlanner', 'ADPlanner', 'RSTARPlanner', 'SEARCH_ENGINES'
]
