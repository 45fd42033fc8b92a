"""
ARA* Planner
Anytime repairing A*: a weighted A* search whose suboptimality bound epsilon
is tightened step by step while time remains, reusing OPEN and the
inconsistent states of the previous iteration.
"""

import time
from typing import Dict, Optional, Set

from footstep_planning.search.search_engine import (
    SearchEngine, SearchResult, OpenList, INFINITE_COST
)

class ARAPlanner(SearchEngine):
    """Plain anytime engine; every replan() call searches from scratch."""

    def __init__(self, environment, forward_search: bool = False):
        super().__init__(environment, forward_search)

        self._g: Dict[int, float] = {}
        self._parents: Dict[int, int] = {}
        self._open = OpenList()
        self._closed: Set[int] = set()
        self._incons: Set[int] = set()
        self._epsilon = self.initial_epsilon

        self._searched_start: Optional[int] = None
        self._searched_goal: Optional[int] = None

        self.logger.info(f"{type(self).__name__} initialized "
                         f"({'forward' if forward_search else 'backward'} search)")

    def reset(self):
        self._start_id = None
        self._goal_id = None
        self._clear_search()
        self._final_epsilon = INFINITE_COST
        self._expands = 0

    def _clear_search(self):
        self._g = {}
        self._parents = {}
        self._open.clear()
        self._closed = set()
        self._incons = set()
        self._searched_start = None
        self._searched_goal = None

    def _initialize_search(self):
        self._clear_search()
        self._g[self.search_start] = 0
        self._incons.add(self.search_start)
        self._searched_start = self.search_start
        self._searched_goal = self.search_goal

    def _prepare_search(self):
        self._initialize_search()

    def _key(self, state_id: int) -> float:
        heuristic = self.environment.get_heuristic(state_id)
        if heuristic == INFINITE_COST:
            return INFINITE_COST
        return self._g[state_id] + self._epsilon * heuristic

    def _insert_open(self, state_id: int):
        key = self._key(state_id)
        if key < INFINITE_COST:
            self._open.push(state_id, key)

    def _rebuild_open(self):
        """OPEN := OPEN + INCONS under the current epsilon; CLOSED := empty."""
        candidates = self._open.states() | self._incons
        self._open.clear()
        self._incons = set()
        self._closed = set()

        for state_id in candidates:
            if self._g.get(state_id, INFINITE_COST) < INFINITE_COST:
                self._insert_open(state_id)

    def _record_edge(self, parent: int, child: int):
        pass

    def _improve_path(self, deadline: Optional[float]) -> bool:
        """Expand until the goal is settled; False if the deadline passed first."""
        goal = self.search_goal

        while len(self._open) > 0:
            if self._g.get(goal, INFINITE_COST) <= self._open.min_key():
                return True
            if deadline is not None and time.time() > deadline:
                return False

            state_id = self._open.pop()
            self._closed.add(state_id)
            self._expands += 1

            g_state = self._g[state_id]
            for neighbor, cost in self._neighbors(state_id):
                self._record_edge(state_id, neighbor)

                new_g = g_state + cost
                if new_g < self._g.get(neighbor, INFINITE_COST):
                    self._g[neighbor] = new_g
                    self._parents[neighbor] = state_id
                    if neighbor in self._closed:
                        self._incons.add(neighbor)
                    else:
                        self._insert_open(neighbor)

        return True

    def replan(self, allocated_time: float) -> SearchResult:
        started = time.time()
        self._expands = 0
        self._final_epsilon = INFINITE_COST

        if self._start_id is None or self._goal_id is None:
            self.logger.error("Start or goal state not set")
            return SearchResult(success=False)

        self._prepare_search()

        # searching until the first solution ignores the time budget
        deadline = None if self.first_solution_only else started + allocated_time
        epsilon = self.initial_epsilon
        best: Optional[SearchResult] = None

        while True:
            self._epsilon = epsilon
            self._rebuild_open()
            completed = self._improve_path(deadline)

            goal_g = self._g.get(self.search_goal, INFINITE_COST)
            if goal_g < INFINITE_COST:
                path = self._extract_path(self._parents)
                if path:
                    best = SearchResult(success=True, state_ids=path, cost=goal_g)
                    self._final_epsilon = epsilon
                    self.logger.debug(f"Solution with eps {epsilon:.2f}: cost {goal_g}, "
                                      f"{self._expands} expansions")

            if not completed or goal_g == INFINITE_COST:
                break
            if self.first_solution_only or epsilon <= 1.0:
                break
            if time.time() - started > allocated_time:
                break
            epsilon = max(1.0, epsilon - self.epsilon_decrement)

        elapsed = time.time() - started
        if best is None:
            self.logger.info(f"No solution after {elapsed:.3f}s, {self._expands} expansions")
            return SearchResult(success=False)

        self.logger.info(f"Search finished in {elapsed:.3f}s: cost {best.cost}, "
                         f"eps {self._final_epsilon:.2f}, {self._expands} expansions")
        return best
