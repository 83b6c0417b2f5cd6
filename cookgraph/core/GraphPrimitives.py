from typing import Dict, List, Optional, Tuple, Union, TYPE_CHECKING
import logging
import uuid

from .NodePort import NodePort, Input, MultiInput, Output
from .Types import ValueType
from .Event import Event
from .Errors import InvalidStateError

if TYPE_CHECKING:
    from .Node import Node

logger = logging.getLogger(__name__)

InputPort = Union[Input, MultiInput]


class Link:
    """
    Directed edge Output -> Input.

    A Link is "pending" while only one endpoint is set, which is the case
    during an interactive connection gesture.
    """
    def __init__(self, output: Optional[Output] = None, input: Optional[InputPort] = None):
        self.id = uuid.uuid4().hex
        self.output = output
        self.input = input
        self.selected = False

    @property
    def pending(self) -> bool:
        return self.output is None or self.input is None

    @property
    def nodes(self) -> List['Node']:
        return [p.node for p in (self.output, self.input) if p is not None]

    def connect(self, point: NodePort) -> None:
        """Fill in the missing endpoint of a pending link."""
        if not self.pending:
            raise InvalidStateError(f"{self!r} is already complete")

        if point.isOutputPort():
            if self.output is not None:
                raise ValueError(f"{self!r} already starts at an output")
            self.output = point
        else:
            if self.input is not None:
                raise ValueError(f"{self!r} already ends at an input")
            self.input = point

    def validate(self) -> None:
        if self.pending:
            raise InvalidStateError(f"{self!r} is pending")
        if self.output.node is self.input.node:
            raise ValueError("Cannot connect a node's output to its own input")
        if not ValueType.compatible(self.output.data_type, self.input.data_type):
            raise ValueError(f"Cannot connect {self.output!r} ({self.output.data_type.value}) "
                             f"to {self.input!r} ({self.input.data_type.value})")

    def __repr__(self):
        return f"Link({self.output!r} -> {self.input!r})"


class Graph:
    """
    Arena holding the nodes (by id) and links of one network.
    Attaching/detaching a Link to its ports happens here, nowhere else.
    """
    def __init__(self):
        self.nodes: Dict[str, 'Node'] = {}
        self.links: List[Link] = []

        self.on_node_add = Event("node_add")
        self.on_node_remove = Event("node_remove")
        self.on_link_add = Event("link_add")
        self.on_link_remove = Event("link_remove")

    def get_node_by_id(self, node_id: str) -> Optional['Node']:
        return self.nodes.get(node_id)

    def get_node_by_name(self, name: str) -> Optional['Node']:
        for node in self.nodes.values():
            if node.name == name:
                return node
        return None

    def get_link_by_id(self, link_id: str) -> Optional[Link]:
        for link in self.links:
            if link.id == link_id:
                return link
        return None

    def has_node(self, node: 'Node') -> bool:
        return self.nodes.get(node.id) is node

    def add_node(self, node: 'Node'):
        if node.id in self.nodes:
            raise ValueError(f"Node '{node.name}' is already in the graph")
        if self.get_node_by_name(node.name):
            raise ValueError(f"Node with name '{node.name}' already exists in the graph")

        self.nodes[node.id] = node
        logger.debug("added node %s", node.name)
        self.on_node_add.trigger(node)

    def remove_node(self, node: 'Node') -> List[Tuple[Link, int]]:
        """
        Detach every link touching `node`, then drop the node.
        Returns the removed links with their input positions, in removal order.
        """
        if not self.has_node(node):
            raise InvalidStateError(f"Node '{node.name}' is not in the graph")

        removed = [(link, self.remove_link(link)) for link in node.links]

        del self.nodes[node.id]
        logger.debug("removed node %s (%d links)", node.name, len(removed))
        self.on_node_remove.trigger(node)
        return removed

    def add_link(self, link: Link, index: Optional[int] = None):
        link.validate()
        if link in self.links:
            raise ValueError(f"{link!r} is already in the graph")
        for node in link.nodes:
            if not self.has_node(node):
                raise InvalidStateError(f"Node '{node.name}' is not in the graph")

        input = link.input
        if not input.isMulti() and input.link is not None:
            raise ValueError(f"Input '{input.port_name}' on node '{input.node.name}' is already connected")

        self.links.append(link)
        link.output.add_link(link)
        input.add_link(link, index)
        logger.debug("added %r", link)
        self.on_link_add.trigger(link)

    def remove_link(self, link: Link) -> int:
        """Detach `link`; returns the position it held on its input."""
        if link not in self.links:
            raise InvalidStateError(f"{link!r} is not in the graph")

        self.links.remove(link)
        if link.selected:
            link.selected = False
        index = link.input.remove_link(link)
        link.output.remove_link(link)
        logger.debug("removed %r", link)
        self.on_link_remove.trigger(link)
        return index

    def reset(self):
        for node in list(self.nodes.values()):
            self.remove_node(node)
