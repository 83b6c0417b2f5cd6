import pytest

from cookgraph.core.Node import Node
from cookgraph.core.NodePort import Input, MultiInput, Output
from cookgraph.core.GraphPrimitives import Graph, Link
from cookgraph.core.Types import ValueType, PortDirection
from cookgraph.core.Errors import InvalidStateError


class PortTestNode(Node):
    def __init__(self, name, type="PortTestNode", **kwargs):
        super().__init__(name, type, **kwargs)
        self.add_input("in", ValueType.INT)
        self.add_multi_input("many", ValueType.ANY)
        self.add_output("out", ValueType.INT)

    def _cook(self, inputs):
        return [0]


class TestNodePort:

    def setup_method(self):
        self.graph = Graph()
        self.a = PortTestNode("A")
        self.b = PortTestNode("B")
        self.c = PortTestNode("C")
        for n in (self.a, self.b, self.c):
            self.graph.add_node(n)
            n.markClean()

    def test_directions(self):
        assert self.a.inputs["in"].direction == PortDirection.INPUT
        assert self.a.outputs["out"].direction == PortDirection.OUTPUT
        assert self.a.outputs["out"].isOutputPort()
        assert self.a.inputs["many"].isMulti()
        assert not self.a.inputs["in"].isMulti()

    def test_output_value_type_is_validated(self):
        out = self.a.outputs["out"]
        out.value = 3
        assert out.value == 3
        with pytest.raises(ValueError):
            out.value = "three"

    def test_connecting_marks_target_dirty(self):
        self.graph.add_link(Link(self.a.outputs["out"], self.b.inputs["in"]))
        assert self.b.dirty_input
        assert not self.a.dirty, "the upstream node is not affected"

    def test_dirty_propagation_is_direct_only(self):
        self.graph.add_link(Link(self.a.outputs["out"], self.b.inputs["in"]))
        self.graph.add_link(Link(self.b.outputs["out"], self.c.inputs["in"]))
        for n in (self.a, self.b, self.c):
            n.markClean()

        self.a.outputs["out"].value = 10
        assert self.b.dirty_input
        assert not self.c.dirty_input, "only directly linked inputs are notified"
        assert not self.a.dirty_input

    def test_unrelated_nodes_untouched(self):
        d = PortTestNode("D")
        self.graph.add_node(d)
        d.markClean()

        self.graph.add_link(Link(self.a.outputs["out"], self.b.inputs["in"]))
        self.b.markClean()
        self.a.outputs["out"].value = 1

        assert self.b.dirty
        assert not d.dirty
        assert not self.c.dirty

    def test_input_value_follows_output(self):
        self.graph.add_link(Link(self.a.outputs["out"], self.b.inputs["in"]))
        assert self.b.inputs["in"].value is None
        self.a.outputs["out"].value = 4
        assert self.b.inputs["in"].value == 4

    def test_removed_link_stops_notifications(self):
        link = Link(self.a.outputs["out"], self.b.inputs["in"])
        self.graph.add_link(link)
        self.graph.remove_link(link)
        self.b.markClean()

        self.a.outputs["out"].value = 5
        assert not self.b.dirty
        assert self.b.inputs["in"].value is None
        assert self.a.outputs["out"].links == []

    def test_single_input_holds_one_link(self):
        self.graph.add_link(Link(self.a.outputs["out"], self.c.inputs["in"]))
        with pytest.raises(ValueError):
            self.graph.add_link(Link(self.b.outputs["out"], self.c.inputs["in"]))

    def test_multi_input_order(self):
        l1 = Link(self.a.outputs["out"], self.c.inputs["many"])
        l2 = Link(self.b.outputs["out"], self.c.inputs["many"])
        self.graph.add_link(l1)
        self.graph.add_link(l2)
        self.a.outputs["out"].value = 1
        self.b.outputs["out"].value = 2

        assert self.c.inputs["many"].links == [l1, l2]
        assert self.c.inputs["many"].value == [1, 2]

        index = self.graph.remove_link(l1)
        assert index == 0
        assert self.c.inputs["many"].value == [2]

        self.graph.add_link(l1, index)
        assert self.c.inputs["many"].value == [1, 2]

    def test_multi_input_notifies_from_every_link(self):
        self.graph.add_link(Link(self.a.outputs["out"], self.c.inputs["many"]))
        self.graph.add_link(Link(self.b.outputs["out"], self.c.inputs["many"]))
        self.c.markClean()
        self.b.outputs["out"].value = 7
        assert self.c.dirty_input

    def test_remove_unknown_link(self):
        link = Link(self.a.outputs["out"], self.b.inputs["in"])
        with pytest.raises(InvalidStateError):
            self.graph.remove_link(link)
        with pytest.raises(InvalidStateError):
            self.b.inputs["in"].remove_link(link)
        with pytest.raises(InvalidStateError):
            self.a.outputs["out"].remove_link(link)


class TestLink:

    def setup_method(self):
        self.graph = Graph()
        self.a = PortTestNode("A")
        self.b = PortTestNode("B")
        self.graph.add_node(self.a)
        self.graph.add_node(self.b)

    def test_pending(self):
        link = Link(output=self.a.outputs["out"])
        assert link.pending
        with pytest.raises(InvalidStateError):
            self.graph.add_link(link)

        link.connect(self.b.inputs["in"])
        assert not link.pending
        self.graph.add_link(link)
        assert self.b.inputs["in"].link is link

    def test_connect_complete_link(self):
        link = Link(self.a.outputs["out"], self.b.inputs["in"])
        with pytest.raises(InvalidStateError):
            link.connect(self.b.inputs["many"])

    def test_connect_same_direction(self):
        link = Link(output=self.a.outputs["out"])
        with pytest.raises(ValueError):
            link.connect(self.b.outputs["out"])

    def test_self_link_rejected(self):
        with pytest.raises(ValueError):
            self.graph.add_link(Link(self.a.outputs["out"], self.a.inputs["in"]))

    def test_type_mismatch_rejected(self):
        class StringSource(Node):
            def __init__(self, name):
                super().__init__(name, "StringSource")
                self.add_output("text", ValueType.STRING)

            def _cook(self, inputs):
                return ["x"]

        s = StringSource("S")
        self.graph.add_node(s)
        with pytest.raises(ValueError):
            self.graph.add_link(Link(s.outputs["text"], self.b.inputs["in"]))
        # ANY accepts everything
        self.graph.add_link(Link(s.outputs["text"], self.b.inputs["many"]))

    def test_link_requires_nodes_in_graph(self):
        outsider = PortTestNode("X")
        with pytest.raises(InvalidStateError):
            self.graph.add_link(Link(outsider.outputs["out"], self.b.inputs["in"]))

    def test_remove_node_detaches_links(self):
        l1 = Link(self.a.outputs["out"], self.b.inputs["in"])
        self.graph.add_link(l1)

        removed = self.graph.remove_node(self.a)
        assert removed == [(l1, 0)]
        assert self.graph.links == []
        assert self.b.inputs["in"].link is None
        assert self.graph.get_node_by_id(self.a.id) is None

        with pytest.raises(InvalidStateError):
            self.graph.remove_node(self.a)

    def test_duplicate_node_name(self):
        with pytest.raises(ValueError):
            self.graph.add_node(PortTestNode("A"))
