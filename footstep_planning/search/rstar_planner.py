"""
R* Planner
Randomized anytime engine: every iteration runs a weighted search whose
per-state heuristic weights are drawn from [1, epsilon]; the best solution
over all iterations is kept while epsilon shrinks.
"""

import random
import time
from typing import Dict, Optional, Set, Tuple

from footstep_planning.search.search_engine import (
    SearchEngine, SearchResult, OpenList, INFINITE_COST
)

class RSTARPlanner(SearchEngine):

    def __init__(self, environment, forward_search: bool = False,
                 seed: Optional[int] = None):
        super().__init__(environment, forward_search)
        self._rng = random.Random(seed)

        self.logger.info(f"RSTARPlanner initialized "
                         f"({'forward' if forward_search else 'backward'} search)")

    def reset(self):
        self._start_id = None
        self._goal_id = None
        self._final_epsilon = INFINITE_COST
        self._expands = 0

    def _randomized_search(self, epsilon: float,
                           deadline: Optional[float]) -> Tuple[Optional[SearchResult], bool]:
        start = self.search_start
        goal = self.search_goal

        g: Dict[int, float] = {start: 0}
        parents: Dict[int, int] = {}
        weights: Dict[int, float] = {}
        closed: Set[int] = set()
        open_list = OpenList()

        def key(state_id: int) -> float:
            heuristic = self.environment.get_heuristic(state_id)
            if heuristic == INFINITE_COST:
                return INFINITE_COST
            if state_id not in weights:
                weights[state_id] = self._rng.uniform(1.0, epsilon)
            return g[state_id] + weights[state_id] * heuristic

        start_key = key(start)
        if start_key < INFINITE_COST:
            open_list.push(start, start_key)

        completed = True
        while len(open_list) > 0:
            if g.get(goal, INFINITE_COST) <= open_list.min_key():
                break
            if deadline is not None and time.time() > deadline:
                completed = False
                break

            state_id = open_list.pop()
            closed.add(state_id)
            self._expands += 1

            for neighbor, cost in self._neighbors(state_id):
                new_g = g[state_id] + cost
                if new_g < g.get(neighbor, INFINITE_COST):
                    g[neighbor] = new_g
                    parents[neighbor] = state_id
                    if neighbor not in closed:
                        neighbor_key = key(neighbor)
                        if neighbor_key < INFINITE_COST:
                            open_list.push(neighbor, neighbor_key)

        if g.get(goal, INFINITE_COST) == INFINITE_COST:
            return None, completed

        path = self._extract_path(parents)
        if not path:
            return None, completed
        return SearchResult(success=True, state_ids=path, cost=g[goal]), completed

    def replan(self, allocated_time: float) -> SearchResult:
        started = time.time()
        self._expands = 0
        self._final_epsilon = INFINITE_COST

        if self._start_id is None or self._goal_id is None:
            self.logger.error("Start or goal state not set")
            return SearchResult(success=False)

        deadline = None if self.first_solution_only else started + allocated_time
        epsilon = self.initial_epsilon
        best: Optional[SearchResult] = None
        iterations = 0

        while True:
            result, completed = self._randomized_search(epsilon, deadline)
            iterations += 1

            if result is not None and (best is None or result.cost <= best.cost):
                best = result
                self._final_epsilon = epsilon

            if not completed or result is None:
                break
            if self.first_solution_only or epsilon <= 1.0:
                break
            if time.time() - started > allocated_time:
                break
            epsilon = max(1.0, epsilon - self.epsilon_decrement)

        if best is None:
            self.logger.info(f"No solution after {iterations} randomized iterations")
            return SearchResult(success=False)

        self.logger.info(f"Best of {iterations} randomized iterations: cost {best.cost}, "
                         f"eps {self._final_epsilon:.2f}, {self._expands} expansions")
        return best
