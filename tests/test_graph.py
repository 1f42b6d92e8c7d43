"""Tests for the Pipeline class: edits, links and output computation."""

import pytest

from funcflow.events.types import OutputStatus
from funcflow.exceptions import UnknownNodeError
from funcflow.graph import ExecutionOrder, LinkOption, Pipeline, RejectionReason
from funcflow.nodes import ENTRY, TERMINAL, FunctionNode, function_node


@pytest.fixture
def pipeline():
    return Pipeline.seed()


class TestSeedPipeline:
    """Test the default five-node pipeline."""

    def test_initial_output(self, pipeline):
        assert pipeline.initial_value == 2
        assert pipeline.final_output == 45
        assert pipeline.last_result.status is OutputStatus.COMPUTED

    def test_steps_follow_links(self, pipeline):
        steps = pipeline.last_result.steps
        assert [s.node_id for s in steps] == [1, 2, 4, 5, 3]
        assert [s.output_value for s in steps] == [4, 12, 10, 5, 45]
        assert steps[0].input_value == 2

    def test_node_ids_in_seed_order(self, pipeline):
        assert pipeline.node_ids == (1, 2, 3, 4, 5)

    def test_entry_and_terminal(self, pipeline):
        assert pipeline.entry_node.id == 1
        assert pipeline.terminal_node.id == 3

    def test_edges(self, pipeline):
        assert pipeline.edges() == [
            (ENTRY, 1),
            (1, 2),
            (2, 4),
            (3, TERMINAL),
            (4, 5),
            (5, 3),
        ]

    def test_nx_graph(self, pipeline):
        g = pipeline.nx_graph
        assert sorted(g.edges()) == [(1, 2), (2, 4), (4, 5), (5, 3)]
        assert g.nodes[1]["is_entry"]

    def test_snapshot_is_detached(self, pipeline):
        nodes = pipeline.snapshot()
        nodes[0].set_equation("x+100")
        assert pipeline.node(1).equation == "x^2"
        assert pipeline.final_output == 45

    def test_seed_nodes_are_copied(self):
        nodes = [function_node(1, "x+1", prev_link=ENTRY, next_link=TERMINAL)]
        p = Pipeline(nodes, ExecutionOrder({1: TERMINAL}), initial_value=1)
        nodes[0].set_equation("x+5")
        assert p.compute_output() == 2

    def test_seed_equation_errors_are_recomputed(self):
        nodes = [FunctionNode(1, "x++1", prev_link=ENTRY, next_link=TERMINAL)]
        p = Pipeline(nodes, ExecutionOrder({1: TERMINAL}), initial_value=1)
        assert p.node(1).equation_error == "Invalid equation format: operators cannot follow each other"
        assert p.last_result.status is OutputStatus.INVALID_EQUATION
        assert p.final_output == 0

    def test_stale_seed_equation_error_is_cleared(self):
        nodes = [FunctionNode(1, "x+1", equation_error="stale", prev_link=ENTRY, next_link=TERMINAL)]
        p = Pipeline(nodes, ExecutionOrder({1: TERMINAL}), initial_value=1)
        assert p.node(1).equation_error is None
        assert p.final_output == 2
        assert nodes[0].equation_error == "stale"

    def test_unknown_node(self, pipeline):
        with pytest.raises(UnknownNodeError) as exc_info:
            pipeline.node(9)
        assert exc_info.value.node_id == 9
        assert "Available ids: 1, 2, 3, 4, 5" in str(exc_info.value)

    def test_unknown_node_is_a_key_error(self, pipeline):
        with pytest.raises(KeyError):
            pipeline.node(9)


class TestInitialValue:
    @pytest.mark.parametrize("value, expected", [(2, 45), (3, 120), (0, 21)])
    def test_set_initial_value(self, pipeline, value, expected):
        assert pipeline.set_initial_value(value) == expected
        assert pipeline.final_output == expected
        assert pipeline.initial_value == value

    def test_run_does_not_store(self, pipeline):
        result = pipeline.run(3)
        assert result.value == 120
        assert result.ok
        assert pipeline.final_output == 45
        assert pipeline.initial_value == 2

    def test_compute_output_is_idempotent(self, pipeline):
        first = pipeline.compute_output()
        assert pipeline.compute_output() == first == 45


class TestSetEquation:
    """Test equation edits and their effect on the output."""

    def test_valid_edit_recomputes(self, pipeline):
        result = pipeline.set_equation(3, "x+1")
        assert result.is_valid
        assert pipeline.final_output == 6

    def test_invalid_edit_zeroes_output(self, pipeline):
        result = pipeline.set_equation(2, "2x+")
        assert not result
        assert result.error == "Invalid equation format: cannot end with an operator"
        assert pipeline.final_output == 0
        last = pipeline.last_result
        assert last.status is OutputStatus.INVALID_EQUATION
        assert last.error == "Function 2: Invalid equation format: cannot end with an operator"

    def test_invalid_text_is_stored(self, pipeline):
        pipeline.set_equation(2, "2x+")
        node = pipeline.node(2)
        assert node.equation == "2x+"
        assert node.has_error

    def test_fixing_equation_restores_output(self, pipeline):
        pipeline.set_equation(2, "2x+")
        pipeline.set_equation(2, "2x+4")
        assert pipeline.final_output == 45

    def test_invalid_node_off_the_chain_still_zeroes(self, pipeline):
        """Any invalid equation forces 0, linked or not."""
        pipeline.set_next_link(5, "")
        pipeline.set_equation(3, "")
        assert pipeline.final_output == 0
        assert pipeline.last_result.status is OutputStatus.INVALID_EQUATION

    def test_unknown_node(self, pipeline):
        with pytest.raises(UnknownNodeError):
            pipeline.set_equation(9, "x")

    def test_evaluation_failure(self, pipeline):
        pipeline.set_equation(4, "x-12")
        assert pipeline.final_output == 20
        pipeline.set_equation(5, "1/x")
        result = pipeline.last_result
        assert pipeline.final_output == 0
        assert result.status is OutputStatus.EVALUATION_FAILED
        assert result.error == "Function 5: Division by zero"
        assert [s.node_id for s in result.steps] == [1, 2, 4]


class TestSetNextLink:
    """Test link edits, refusals and their effect on the output."""

    def test_refused_link_leaves_state(self, pipeline):
        before = pipeline.snapshot()
        result = pipeline.set_next_link(5, "4")
        assert not result
        assert result.reason is RejectionReason.ORDER_VIOLATION
        assert pipeline.node(4).prev_link == 2
        assert pipeline.node(5).next_link == 3
        assert pipeline.snapshot() == before
        assert pipeline.final_output == 45

    def test_self_loop_refused(self, pipeline):
        assert pipeline.set_next_link(1, "1").reason is RejectionReason.SELF_LOOP

    def test_unknown_target_refused(self, pipeline):
        assert pipeline.set_next_link(1, "9").reason is RejectionReason.UNKNOWN_NODE

    def test_unreadable_selector_refused(self, pipeline):
        result = pipeline.set_next_link(1, "abc")
        assert result.reason is RejectionReason.UNKNOWN_NODE
        assert result.target is None

    def test_clearing_unknown_source_refused(self, pipeline):
        assert pipeline.set_next_link(9, "").reason is RejectionReason.UNKNOWN_NODE

    def test_clear_link_leaves_output(self, pipeline):
        result = pipeline.set_next_link(5, "")
        assert result
        assert result.target is None
        assert pipeline.node(5).next_link is None
        assert pipeline.node(3).prev_link is None
        assert pipeline.final_output == 45
        assert pipeline.last_result.status is OutputStatus.DANGLING
        assert pipeline.last_result.value is None
        assert len(pipeline.last_result.steps) == 4

    def test_dangling_keeps_previous_output(self, pipeline):
        pipeline.set_next_link(5, "")
        assert pipeline.set_initial_value(3) == 45

    def test_relink_restores_output(self, pipeline):
        pipeline.set_next_link(5, "")
        result = pipeline.set_next_link(5, "3")
        assert result
        assert pipeline.node(3).prev_link == 5
        assert pipeline.final_output == 45
        assert pipeline.last_result.ok

    def test_relinking_same_target(self, pipeline):
        assert pipeline.set_next_link(1, "2")
        assert pipeline.node(2).prev_link == 1
        assert pipeline.final_output == 45

    def test_terminal_link(self, pipeline):
        pipeline.set_next_link(3, "")
        assert pipeline.terminal_node is None
        assert pipeline.set_next_link(3, "-1")
        assert pipeline.terminal_node.id == 3
        assert pipeline.final_output == 45

    def test_one_input_per_node(self):
        order = ExecutionOrder({1: 2, 2: TERMINAL, 3: 2})
        nodes = [
            function_node(1, "x+1", prev_link=ENTRY, next_link=2),
            function_node(2, "x*10", prev_link=1, next_link=TERMINAL),
            function_node(3, "x"),
        ]
        p = Pipeline(nodes, order, initial_value=1)
        assert p.final_output == 20
        result = p.set_next_link(3, "2")
        assert result.reason is RejectionReason.TARGET_OCCUPIED
        assert p.node(2).prev_link == 1
        assert p.node(3).next_link is None

    def test_moving_a_link_clears_old_target(self):
        order = ExecutionOrder({1: 2, 2: TERMINAL})
        nodes = [
            function_node(1, "x", prev_link=ENTRY, next_link=2),
            function_node(2, "x", prev_link=1, next_link=TERMINAL),
        ]
        p = Pipeline(nodes, order)
        p.set_next_link(1, "")
        assert p.node(2).prev_link is None
        assert p.set_next_link(1, 2)
        assert p.node(2).prev_link == 1


class TestNoEntry:
    def test_no_entry_node(self):
        p = Pipeline([function_node(1, "x+1", next_link=TERMINAL)], ExecutionOrder({1: TERMINAL}))
        assert p.entry_node is None
        assert p.final_output == 0
        assert p.last_result.status is OutputStatus.NO_ENTRY
        assert p.last_result.value is None
        assert p.edges() == [(1, TERMINAL)]


class TestLinkOptions:
    """Test the next-function picker entries."""

    def test_seed_options_for_first_node(self, pipeline):
        options = pipeline.link_options(1)
        assert [o.label for o in options] == [
            "None",
            "Function: 2",
            "Function: 3",
            "Function: 4",
            "Function: 5",
        ]
        enabled = [o.value for o in options if not o.disabled]
        assert enabled == ["2"]

    def test_none_enabled_for_non_entry_node(self, pipeline):
        options = {o.label: o for o in pipeline.link_options(2)}
        assert options["None"] == LinkOption("", "None", disabled=False)

    def test_terminal_node_may_keep_final_output(self, pipeline):
        options = {o.label: o for o in pipeline.link_options(3)}
        assert options["Final Output"] == LinkOption("-1", "Final Output", disabled=False)

    def test_final_output_listed_once_terminal_cleared(self, pipeline):
        pipeline.set_next_link(3, "")
        first = {o.label: o for o in pipeline.link_options(1)}
        last = {o.label: o for o in pipeline.link_options(3)}
        assert first["Final Output"].disabled
        assert not last["Final Output"].disabled

    def test_own_id_omitted(self, pipeline):
        labels = [o.label for o in pipeline.link_options(4)]
        assert "Function: 4" not in labels

    def test_unknown_source(self, pipeline):
        with pytest.raises(UnknownNodeError):
            pipeline.link_options(9)

    def test_option_values_are_accepted_selectors(self, pipeline):
        pipeline.set_next_link(5, "")
        for option in pipeline.link_options(5):
            if not option.disabled:
                assert pipeline.set_next_link(5, option.value)
