"""
Concrete commands for editing a node network.

Every structural edit of the graph (nodes, links, settings, lock state) is
one of these, pushed to a CommandStack and then executed, so it can be
undone and redone.
"""
from typing import Any, List, Optional, Sequence, Tuple
import logging

from .Command import Command, MultiCommand
from .GraphPrimitives import Graph, Link
from .Node import Node
from .Types import CommandType

logger = logging.getLogger(__name__)

_UNSET = object()


class SetAttributeCommand(Command):
    """Set `target.<attribute>` to `value`; undo restores the previous value."""

    def __init__(self, target: Any, attribute: str, value: Any):
        super().__init__(CommandType.IMMEDIATE)
        self._target = target
        self._attribute = attribute
        self._value = value
        self._previous = _UNSET

    def _execute(self):
        self._previous = getattr(self._target, self._attribute)
        setattr(self._target, self._attribute, self._value)

    def _undo(self):
        setattr(self._target, self._attribute, self._previous)

    def _redo(self):
        setattr(self._target, self._attribute, self._value)


class SetSettingCommand(Command):
    """
    Change one entry of a node's settings.

    As a CONTINUOUS command (e.g. a slider drag) execute(value) may be called
    any number of times; close() commits the last value. Undo always goes back
    to the value from before the first execute().
    """
    def __init__(self, node: Node, name: str, continuous: bool = False):
        super().__init__(CommandType.CONTINUOUS if continuous else CommandType.IMMEDIATE)
        self._node = node
        self._name = name
        self._initial = _UNSET
        self._final = _UNSET

    @property
    def node(self) -> Node:
        return self._node

    def _apply(self, value: Any):
        if value is _UNSET:
            if self._name in self._node.settings:
                del self._node.settings[self._name]
        else:
            self._node.settings[self._name] = value

    def _execute(self, value: Any):
        if self._initial is _UNSET:
            self._initial = self._node.settings.get(self._name, _UNSET)
        self._final = value
        self._apply(value)

    def _close(self):
        if self._initial is _UNSET:
            # closed without ever being executed; nothing changed
            self._initial = self._final = self._node.settings.get(self._name, _UNSET)

    def _undo(self):
        self._apply(self._initial)

    def _redo(self):
        self._apply(self._final)


class AddNodeCommand(Command):
    def __init__(self, graph: Graph, node: Node):
        super().__init__(CommandType.IMMEDIATE)
        self._graph = graph
        self._node = node

    @property
    def node(self) -> Node:
        return self._node

    def _execute(self):
        self._graph.add_node(self._node)

    def _undo(self):
        self._graph.remove_node(self._node)

    def _redo(self):
        self._graph.add_node(self._node)


class RemoveNodeCommand(Command):
    """Removes a node together with its links; undo puts both back, links in their original input order."""

    def __init__(self, graph: Graph, node: Node):
        super().__init__(CommandType.IMMEDIATE)
        self._graph = graph
        self._node = node
        self._links: List[Tuple[Link, int]] = []

    @property
    def node(self) -> Node:
        return self._node

    def _remove(self):
        self._links = self._graph.remove_node(self._node)

    def _restore(self):
        self._graph.add_node(self._node)
        for link, index in reversed(self._links):
            self._graph.add_link(link, index)

    def _execute(self):
        self._remove()

    def _undo(self):
        self._restore()

    def _redo(self):
        self._remove()


class AddLinkCommand(Command):
    def __init__(self, graph: Graph, link: Link, index: Optional[int] = None):
        super().__init__(CommandType.IMMEDIATE)
        self._graph = graph
        self._link = link
        self._index = index

    @property
    def link(self) -> Link:
        return self._link

    def _execute(self):
        self._graph.add_link(self._link, self._index)

    def _undo(self):
        self._index = self._graph.remove_link(self._link)

    def _redo(self):
        self._graph.add_link(self._link, self._index)


class RemoveLinkCommand(Command):
    def __init__(self, graph: Graph, link: Link):
        super().__init__(CommandType.IMMEDIATE)
        self._graph = graph
        self._link = link
        self._index: Optional[int] = None

    @property
    def link(self) -> Link:
        return self._link

    def _execute(self):
        self._index = self._graph.remove_link(self._link)

    def _undo(self):
        self._graph.add_link(self._link, self._index)

    def _redo(self):
        self._index = self._graph.remove_link(self._link)


def connect_command(graph: Graph, link: Link) -> Command:
    """
    Command adding `link`. A single Input that is already connected has its
    old link removed first, as part of the same undo step.
    """
    link.validate()
    input = link.input
    if not input.isMulti() and input.link is not None:
        return MultiCommand([RemoveLinkCommand(graph, input.link), AddLinkCommand(graph, link)])
    return AddLinkCommand(graph, link)


def delete_command(graph: Graph, nodes: Sequence[Node] = (), links: Sequence[Link] = ()) -> Optional[Command]:
    """
    One undo step deleting `links` and `nodes`. Links are removed first so a
    link that also belongs to a deleted node is only removed once.
    """
    commands: List[Command] = []
    node_set = set(n.id for n in nodes)
    for link in links:
        if any(n.id in node_set for n in link.nodes):
            continue
        commands.append(RemoveLinkCommand(graph, link))
    for node in nodes:
        commands.append(RemoveNodeCommand(graph, node))

    if not commands:
        return None
    if len(commands) == 1:
        return commands[0]
    return MultiCommand(commands)
