"""
AD* Planner
Anytime incremental engine. The search tree survives replan() calls as long
as start and goal are unchanged; cost change notifications invalidate the
affected part of the tree, which is repaired from its surviving border on
the next replan() call.
"""

from collections import defaultdict
from typing import Dict, List, Set

from footstep_planning.search.ara_planner import ARAPlanner
from footstep_planning.search.search_engine import IncrementalSearch

class ADPlanner(ARAPlanner, IncrementalSearch):

    def __init__(self, environment, forward_search: bool = False):
        super().__init__(environment, forward_search)

        # child -> states whose expansion generated it
        self._seen_parents: Dict[int, Set[int]] = defaultdict(set)
        self._pending_changes: Set[int] = set()
        self._search_valid = False

    def reset(self):
        super().reset()
        self._seen_parents = defaultdict(set)
        self._pending_changes = set()
        self._search_valid = False

    def costs_changed(self, state_ids: List[int]):
        self._pending_changes.update(state_ids)
        self.logger.info(f"Cost change notification for {len(state_ids)} states "
                         f"({len(self._pending_changes)} pending)")

    def _record_edge(self, parent: int, child: int):
        self._seen_parents[child].add(parent)

    def _prepare_search(self):
        if (not self._search_valid or
                self._searched_start != self.search_start or
                self._searched_goal != self.search_goal):
            self._initialize_search()
            self._seen_parents = defaultdict(set)
            self._pending_changes = set()
            self._search_valid = True
            return

        if self._pending_changes:
            self._repair(self._pending_changes)
            self._pending_changes = set()

    def _repair(self, changed: Set[int]):
        """Invalidate the subtrees below changed states and re-open their border."""
        children: Dict[int, List[int]] = defaultdict(list)
        for child, parent in self._parents.items():
            children[parent].append(child)

        invalid: Set[int] = set()
        stack = [state_id for state_id in changed if state_id in self._g]
        while stack:
            state_id = stack.pop()
            if state_id in invalid:
                continue
            invalid.add(state_id)
            stack.extend(children.get(state_id, ()))

        if self.search_start in invalid:
            self.logger.info("Search start affected by cost change, restarting search")
            self._initialize_search()
            self._seen_parents = defaultdict(set)
            return

        for state_id in invalid:
            self._g.pop(state_id, None)
            self._parents.pop(state_id, None)

        border: Set[int] = set()
        for state_id in invalid | changed:
            for parent in self._seen_parents.get(state_id, ()):
                if parent not in invalid and parent in self._g:
                    border.add(parent)

        self._incons.update(border)
        self.logger.info(f"Search tree repaired: {len(invalid)} states invalidated, "
                         f"{len(border)} states re-opened")
