"""
Search engine interfaces.
Engines search the graph exposed by a footstep environment; incremental
cost updates are a separate, optional capability.
"""

import math
import heapq
import logging
import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Optional, Set

INFINITE_COST = math.inf

@dataclass
class SearchResult:
    """Result of one time-bounded search call."""
    success: bool
    state_ids: List[int] = field(default_factory=list)
    cost: float = INFINITE_COST

class SearchEngine(ABC):
    """
    Anytime heuristic search over environment state ids.

    The environment must provide get_succs(id), get_preds(id),
    get_heuristic(id) and has_state(id). Forward engines search from the
    start id using successors; backward engines search from the goal id
    using predecessors. Solutions are always returned ordered start -> goal.
    """

    def __init__(self, environment, forward_search: bool = False):
        self.environment = environment
        self.forward_search = forward_search
        self.logger = logging.getLogger(__name__)

        self.initial_epsilon = 3.0
        self.epsilon_decrement = 0.2
        self.first_solution_only = False

        self._start_id: Optional[int] = None
        self._goal_id: Optional[int] = None
        self._final_epsilon = INFINITE_COST
        self._expands = 0

    def set_start(self, state_id: int) -> bool:
        if not self.environment.has_state(state_id):
            self.logger.error(f"Start state id {state_id} unknown to the environment")
            return False
        self._start_id = state_id
        return True

    def set_goal(self, state_id: int) -> bool:
        if not self.environment.has_state(state_id):
            self.logger.error(f"Goal state id {state_id} unknown to the environment")
            return False
        self._goal_id = state_id
        return True

    def set_initial_epsilon(self, epsilon: float):
        self.initial_epsilon = max(1.0, float(epsilon))

    def set_first_solution_only(self, first_solution_only: bool):
        self.first_solution_only = bool(first_solution_only)

    def expanded_count(self) -> int:
        """States expanded by the last replan call."""
        return self._expands

    def final_epsilon(self) -> float:
        """Suboptimality bound of the last returned solution."""
        return self._final_epsilon

    @property
    def search_start(self) -> Optional[int]:
        return self._start_id if self.forward_search else self._goal_id

    @property
    def search_goal(self) -> Optional[int]:
        return self._goal_id if self.forward_search else self._start_id

    def _neighbors(self, state_id: int) -> List[Tuple[int, int]]:
        if self.forward_search:
            return self.environment.get_succs(state_id)
        return self.environment.get_preds(state_id)

    def _extract_path(self, parents: Dict[int, int]) -> List[int]:
        """Follow parent pointers from the search goal; ordered start -> goal."""
        path = [self.search_goal]
        current = self.search_goal
        visited = {current}
        while current != self.search_start:
            current = parents.get(current)
            if current is None or current in visited:
                return []
            visited.add(current)
            path.append(current)

        if self.forward_search:
            path.reverse()
        return path

    @abstractmethod
    def replan(self, allocated_time: float) -> SearchResult:
        """Search for at most allocated_time seconds."""

    @abstractmethod
    def reset(self):
        """Discard all search information."""

class IncrementalSearch(ABC):
    """Capability of engines that can repair their search after cost changes."""

    @abstractmethod
    def costs_changed(self, state_ids: List[int]):
        """Record states whose transition costs may have changed."""

class OpenList:
    """Priority queue with lazy deletion keyed by state id."""

    def __init__(self):
        self._heap: List[Tuple[float, int, int]] = []
        self._keys: Dict[int, float] = {}
        self._counter = itertools.count()

    def push(self, state_id: int, key: float):
        self._keys[state_id] = key
        heapq.heappush(self._heap, (key, next(self._counter), state_id))

    def _discard_stale(self):
        while self._heap:
            key, _, state_id = self._heap[0]
            if self._keys.get(state_id) == key:
                return
            heapq.heappop(self._heap)

    def min_key(self) -> float:
        self._discard_stale()
        return self._heap[0][0] if self._heap else INFINITE_COST

    def pop(self) -> int:
        self._discard_stale()
        _, _, state_id = heapq.heappop(self._heap)
        del self._keys[state_id]
        return state_id

    def states(self) -> Set[int]:
        return set(self._keys)

    def clear(self):
        self._heap = []
        self._keys = {}

    def __contains__(self, state_id: int) -> bool:
        return state_id in self._keys

    def __len__(self) -> int:
        return len(self._keys)
