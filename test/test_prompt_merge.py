import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from fakes import make_executor, result_nodes
from node_lab.execution import ExecutionState
from node_lab.node_system import pad_shots


def merge_graph(grid_type="3x3", shots=None, sequence_content="", character_anchor="", anchor_source=None):
    nodes = [{
        "id": "merge",
        "type": "promptMerge",
        "position": {"x": 100, "y": 200},
        "data": {"gridType": grid_type, "sequenceContent": sequence_content, "characterAnchor": character_anchor},
    }]
    edges = []
    for i, (shot, order) in enumerate(shots or []):
        nodes.append({"id": f"s{i}", "type": "outputResult", "data": {"type": "text", "content": shot}})
        edges.append({"id": f"es{i}", "source": f"s{i}", "target": "merge", "sourceHandle": "text",
                      "targetHandle": "sequence", "data": {"order": order}})
    if anchor_source is not None:
        nodes.append({"id": "hero", "type": "inputText", "data": anchor_source})
        edges.append({"id": "ea", "source": "hero", "target": "merge", "targetHandle": "anchor"})
    return {"nodes": nodes, "edges": edges}


class TestPadShots:

    def test_pads_with_last_shot(self):
        assert pad_shots(["a", "b"], 4) == ["a", "b", "b", "b"]

    def test_truncates(self):
        assert pad_shots([str(i) for i in range(12)], 9) == [str(i) for i in range(9)]

    def test_exact_length(self):
        assert pad_shots(["a", "b", "c", "d"], 4) == ["a", "b", "c", "d"]

    def test_empty(self):
        assert pad_shots([], 9) == []


class TestNodePromptMerge:

    @pytest.mark.asyncio
    async def test_sequence_edges_are_ranked_and_padded(self):
        graph = merge_graph(shots=[("walks in", 2), ("opens door", 1), ("sits", 3)])
        state, executor, _ = make_executor(graph)

        record = await executor.execute_node("merge")

        assert record.state == ExecutionState.COMPLETED
        results = result_nodes(state, "merge")
        assert len(results) == 1
        text = results[0].data.content
        assert "[Shot 1]: opens door" in text
        assert "[Shot 2]: walks in" in text
        assert "[Shot 3]: sits" in text
        assert "[Shot 9]: sits" in text
        assert "[Shot 10]" not in text
        assert "3x3 grid format" in text
        assert "No character anchor specified" in text
        assert results[0].data.kind == "text"
        merge = state.get_node("merge")
        assert merge.data.status == "success"
        assert merge.data.status_msg == "Merged"

    @pytest.mark.asyncio
    async def test_local_sequence_content_and_2x2_truncation(self):
        content = "one\n\n  \ntwo\nthree\nfour\nfive\nsix"
        state, executor, _ = make_executor(merge_graph(grid_type="2x2", sequence_content=content))
        await executor.execute_node("merge")

        text = result_nodes(state, "merge")[0].data.content
        assert "[Shot 4]: four" in text
        assert "five" not in text
        assert "2x2 grid format" in text

    @pytest.mark.asyncio
    async def test_sequence_edges_win_over_local_content(self):
        graph = merge_graph(shots=[("from edge", 1)], sequence_content="local line")
        state, executor, _ = make_executor(graph)
        await executor.execute_node("merge")
        text = result_nodes(state, "merge")[0].data.content
        assert "from edge" in text
        assert "local line" not in text

    @pytest.mark.asyncio
    async def test_anchor_edge_then_local_anchor(self):
        graph = merge_graph(sequence_content="a", character_anchor="local hero",
                            anchor_source={"content": "edge hero"})
        state, executor, _ = make_executor(graph)
        await executor.execute_node("merge")
        assert "CHARACTER ANCHORS:\nedge hero" in result_nodes(state, "merge")[0].data.content

        graph = merge_graph(sequence_content="a", character_anchor="local hero")
        state, executor, _ = make_executor(graph)
        await executor.execute_node("merge")
        assert "CHARACTER ANCHORS:\nlocal hero" in result_nodes(state, "merge")[0].data.content

    @pytest.mark.asyncio
    async def test_missing_sequence_is_an_error(self):
        state, executor, _ = make_executor(merge_graph(sequence_content="\n  \n"))
        nodes_before, edges_before = len(state.nodes), len(state.edges)

        record = await executor.execute_node("merge")

        assert record.state == ExecutionState.ERROR
        assert record.error_type == "InputError"
        merge = state.get_node("merge")
        assert merge.data.status == "error"
        assert merge.data.status_msg == "Missing sequence content"
        assert (len(state.nodes), len(state.edges)) == (nodes_before, edges_before)

    @pytest.mark.asyncio
    async def test_result_is_placed_to_the_right(self):
        state, executor, _ = make_executor(merge_graph(sequence_content="a"))
        await executor.execute_node("merge")
        result = result_nodes(state, "merge")[0]
        assert (result.x, result.y) == (500, 200)
        edge = next(e for e in state.edges if e.target == result.id)
        assert (edge.sourceHandle, edge.targetHandle) == ("text", "text")
