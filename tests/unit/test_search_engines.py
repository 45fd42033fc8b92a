"""Unit tests for the search engines on small explicit graphs"""

import pytest

from footstep_planning.search import (
    ARAPlanner, ADPlanner, RSTARPlanner, IncrementalSearch, OpenList, SEARCH_ENGINES
)


class GraphEnvironment:
    """Explicit directed graph exposing the environment search interface."""

    def __init__(self, edges, heuristic=None):
        self.edges = dict(edges)
        self.heuristic = heuristic or {}
        self.nodes = {node for edge in self.edges for node in edge}
        self.expansions = 0

    def has_state(self, state_id):
        return state_id in self.nodes

    def get_succs(self, state_id):
        self.expansions += 1
        return [(v, cost) for (u, v), cost in self.edges.items() if u == state_id]

    def get_preds(self, state_id):
        self.expansions += 1
        return [(u, cost) for (u, v), cost in self.edges.items() if v == state_id]

    def get_heuristic(self, state_id):
        return self.heuristic.get(state_id, 0)


def diamond():
    # 0 -> 1 -> 3 costs 20, 0 -> 2 -> 3 costs 30
    return GraphEnvironment({(0, 1): 10, (1, 3): 10, (0, 2): 15, (2, 3): 15})


ENGINE_CLASSES = [ARAPlanner, ADPlanner, RSTARPlanner]


class TestSearchEngines:
    """Behavior shared by every engine"""

    @pytest.mark.parametrize('engine_class', ENGINE_CLASSES)
    @pytest.mark.parametrize('forward_search', [True, False])
    def test_finds_optimal_path(self, engine_class, forward_search):
        engine = engine_class(diamond(), forward_search)
        assert engine.set_start(0)
        assert engine.set_goal(3)

        result = engine.replan(1.0)

        assert result.success
        assert result.state_ids == [0, 1, 3]
        assert result.cost == 20
        assert engine.final_epsilon() == pytest.approx(1.0)
        assert engine.expanded_count() > 0

    @pytest.mark.parametrize('engine_class', ENGINE_CLASSES)
    def test_unknown_states_rejected(self, engine_class):
        engine = engine_class(diamond())
        assert not engine.set_start(42)
        assert not engine.set_goal(-1)

    @pytest.mark.parametrize('engine_class', ENGINE_CLASSES)
    def test_unreachable_goal(self, engine_class):
        environment = GraphEnvironment({(0, 1): 10, (2, 3): 10})
        engine = engine_class(environment, forward_search=True)
        engine.set_start(0)
        engine.set_goal(3)

        result = engine.replan(1.0)

        assert not result.success
        assert result.state_ids == []

    @pytest.mark.parametrize('engine_class', ENGINE_CLASSES)
    def test_replan_without_start_fails(self, engine_class):
        engine = engine_class(diamond())
        assert not engine.replan(1.0).success

    @pytest.mark.parametrize('engine_class', ENGINE_CLASSES)
    def test_first_solution_only_stops_at_initial_epsilon(self, engine_class):
        # an inflated heuristic on the cheap branch makes the first solution suboptimal
        environment = GraphEnvironment({(0, 1): 10, (1, 3): 10, (0, 2): 15, (2, 3): 15},
                                       heuristic={1: 10, 2: 0})
        engine = engine_class(environment, forward_search=True)
        engine.set_start(0)
        engine.set_goal(3)
        engine.set_initial_epsilon(3.0)
        engine.set_first_solution_only(True)

        result = engine.replan(1.0)

        assert result.success
        assert engine.final_epsilon() == pytest.approx(3.0)
        if engine_class is not RSTARPlanner:
            assert result.state_ids == [0, 2, 3]

    @pytest.mark.parametrize('engine_class', ENGINE_CLASSES)
    def test_reset_clears_start_and_goal(self, engine_class):
        engine = engine_class(diamond())
        engine.set_start(0)
        engine.set_goal(3)

        engine.reset()

        assert not engine.replan(1.0).success

    def test_initial_epsilon_lower_bound(self):
        engine = ARAPlanner(diamond())
        engine.set_initial_epsilon(0.5)
        assert engine.initial_epsilon == 1.0

    def test_engine_registry(self):
        assert set(SEARCH_ENGINES) == {'ARAPlanner', 'ADPlanner', 'RSTARPlanner'}


class TestIncrementalSearch:
    """Tests for cost change repair in ADPlanner"""

    def test_capabilities(self):
        assert isinstance(ADPlanner(diamond()), IncrementalSearch)
        assert not isinstance(ARAPlanner(diamond()), IncrementalSearch)
        assert not isinstance(RSTARPlanner(diamond()), IncrementalSearch)

    def test_repair_after_edge_removed(self):
        environment = diamond()
        engine = ADPlanner(environment, forward_search=True)
        engine.set_start(0)
        engine.set_goal(3)
        assert engine.replan(1.0).state_ids == [0, 1, 3]

        del environment.edges[(1, 3)]
        engine.costs_changed([1, 3])
        result = engine.replan(1.0)

        assert result.success
        assert result.state_ids == [0, 2, 3]
        assert result.cost == 30

    def test_repair_after_edge_added(self):
        environment = GraphEnvironment({(0, 1): 10, (1, 3): 30, (0, 2): 15, (2, 4): 5})
        engine = ADPlanner(environment, forward_search=True)
        engine.set_start(0)
        engine.set_goal(3)
        assert engine.replan(1.0).cost == 40

        environment.edges[(4, 3)] = 5
        environment.nodes.add(4)
        engine.costs_changed([4, 3])
        result = engine.replan(1.0)

        assert result.state_ids == [0, 2, 4, 3]
        assert result.cost == 25

    def test_repair_backward_search(self):
        environment = diamond()
        engine = ADPlanner(environment, forward_search=False)
        engine.set_start(0)
        engine.set_goal(3)
        assert engine.replan(1.0).state_ids == [0, 1, 3]

        del environment.edges[(0, 1)]
        engine.costs_changed([0, 1])
        result = engine.replan(1.0)

        assert result.state_ids == [0, 2, 3]

    def test_search_tree_reused_without_changes(self):
        environment = diamond()
        engine = ADPlanner(environment, forward_search=True)
        engine.set_start(0)
        engine.set_goal(3)
        engine.replan(1.0)
        expansions = environment.expansions

        result = engine.replan(1.0)

        assert result.state_ids == [0, 1, 3]
        assert environment.expansions == expansions

    def test_new_goal_restarts_search(self):
        environment = GraphEnvironment({(0, 1): 10, (1, 3): 10, (0, 2): 15, (2, 3): 15,
                                        (3, 4): 5})
        engine = ADPlanner(environment, forward_search=True)
        engine.set_start(0)
        engine.set_goal(3)
        engine.replan(1.0)

        engine.set_goal(4)
        result = engine.replan(1.0)

        assert result.state_ids == [0, 1, 3, 4]
        assert result.cost == 25


class TestRStarPlanner:
    """Tests specific to the randomized engine"""

    def test_equal_cost_iteration_lowers_final_epsilon(self):
        # a single path: every iteration finds the same solution
        environment = GraphEnvironment({(0, 1): 10, (1, 2): 10}, heuristic={0: 20, 1: 10})
        engine = RSTARPlanner(environment, forward_search=True, seed=3)
        engine.set_start(0)
        engine.set_goal(2)
        engine.set_initial_epsilon(3.0)

        result = engine.replan(5.0)

        assert result.success
        assert result.state_ids == [0, 1, 2]
        assert result.cost == 20
        assert engine.final_epsilon() == pytest.approx(1.0)

    def test_seeded_runs_are_repeatable(self):
        results = []
        for _ in range(2):
            engine = RSTARPlanner(diamond(), forward_search=True, seed=11)
            engine.set_start(0)
            engine.set_goal(3)
            engine.set_first_solution_only(True)
            results.append(engine.replan(1.0).state_ids)

        assert results[0] == results[1]


class TestOpenList:
    """Tests for the lazy-deletion priority queue"""

    def test_pop_order_and_key_update(self):
        open_list = OpenList()
        open_list.push(1, 5.0)
        open_list.push(2, 3.0)
        open_list.push(1, 1.0)

        assert len(open_list) == 2
        assert open_list.min_key() == 1.0
        assert open_list.pop() == 1
        assert open_list.pop() == 2
        assert len(open_list) == 0
        assert open_list.min_key() == float('inf')

    def test_contains_and_clear(self):
        open_list = OpenList()
        open_list.push(7, 2.0)
        assert 7 in open_list
        assert open_list.states() == {7}

        open_list.clear()
        assert 7 not in open_list
