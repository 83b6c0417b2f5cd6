from typing import Optional, List, Any, Sequence
from logging import getLogger

from .Node import Node
from .NodePort import NodePort
from .GraphPrimitives import Graph, Link
from .Command import Command, CommandStack
from .Commands import (
    AddNodeCommand,
    SetAttributeCommand,
    SetSettingCommand,
    connect_command,
    delete_command,
)
from .NodeCooker import NodeCooker, CookInfo
from .Lock import Lock
from .Event import Event, CoalescedCall
from .Errors import InvalidStateError

logger = getLogger(__name__)


class NodeNetwork:
    """
    Owns one node graph and ties it to the undo history and the cooker.

    The network's Lock is piped into the stack's Lock and shared with the
    NodeCooker: while a cook chain (or an interactive connection) is in
    flight no command can run, and while the network lock is held no cook
    can start.
    """

    def __init__(self, name: str = "root", stack: Optional[CommandStack] = None):
        self.name = name
        self.graph = Graph()
        self.stack = stack if stack is not None else CommandStack()

        self.lock = Lock(f"{name}.network")
        self.lock.pipe(self.stack.lock)
        self.cooker = NodeCooker(self.lock)

        self._visible: Optional[Node] = None
        self._selected: List[Node] = []
        self._prev_rendered: Optional[Node] = None

        # pending interactive connection
        self._pending_link: Optional[Link] = None
        self._pending_key: Optional[int] = None

        self.on_render = Event("render")
        self.on_visible_change = Event("visible_change")
        self.last_cook: Optional[CookInfo] = None
        # an update was refused because the lock was engaged
        self._update_refused = False

        self._network_updater = CoalescedCall(self._update_network)

        self.graph.on_node_add.add_listener(self._on_node_add)
        self.graph.on_node_remove.add_listener(self._on_node_remove)
        self.graph.on_link_add.add_listener(self._on_link_change)
        self.graph.on_link_remove.add_listener(self._on_link_change)

    # --- lookups ---

    @property
    def nodes(self) -> List[Node]:
        return list(self.graph.nodes.values())

    @property
    def links(self) -> List[Link]:
        return list(self.graph.links)

    def get_node(self, node_id: str) -> Optional[Node]:
        return self.graph.get_node_by_id(node_id)

    def get_node_by_name(self, name: str) -> Optional[Node]:
        return self.graph.get_node_by_name(name)

    def _resolve(self, node: Any) -> Node:
        if isinstance(node, Node):
            if not self.graph.has_node(node):
                raise InvalidStateError(f"Node '{node.name}' is not in network '{self.name}'")
            return node
        found = self.graph.get_node_by_name(node) or self.graph.get_node_by_id(node)
        if found is None:
            raise KeyError(f"Node '{node}' does not exist in network '{self.name}'")
        return found

    # --- graph event handlers ---

    def _on_node_add(self, node: Node):
        node.settings.on_change.add_listener(self._on_settings_change)

    def _on_node_remove(self, node: Node):
        node.settings.on_change.remove_listener(self._on_settings_change)
        if self._visible is node:
            self.set_visible(None)
        if node in self._selected:
            self.deselect(node)

    def _on_link_change(self, link: Link):
        self.update_network()

    def _on_settings_change(self, *args):
        self.update_network()

    # --- commands ---

    def _push(self, command: Command, *args) -> Command:
        self.stack.add(command)
        try:
            command.execute(*args)
        except Exception:
            self.stack.discard(command)
            raise
        return command

    def createNode(self, name: str, type: str, **kwargs) -> Node:
        node = Node.create_node(name, type, **kwargs)
        self._push(AddNodeCommand(self.graph, node))
        return node

    def deleteNodes(self, nodes: Sequence[Any], links: Sequence[Link] = ()) -> Optional[Command]:
        command = delete_command(self.graph, [self._resolve(n) for n in nodes], links)
        if command is None:
            return None
        return self._push(command)

    def deleteSelection(self) -> Optional[Command]:
        selected_links = [link for link in self.graph.links if link.selected]
        return self.deleteNodes(list(self._selected), selected_links)

    def connectNodes(self, from_node: Any, from_port_name: str, to_node: Any, to_port_name: str) -> Link:
        source = self._resolve(from_node)
        target = self._resolve(to_node)

        link = Link(source.get_output(from_port_name), target.get_input(to_port_name))
        self._push(connect_command(self.graph, link))
        return link

    def disconnect(self, link: Link) -> Command:
        if link not in self.graph.links:
            raise InvalidStateError(f"{link!r} is not in network '{self.name}'")
        return self._push(delete_command(self.graph, links=[link]))

    def setSetting(self, node: Any, name: str, value: Any) -> Command:
        return self._push(SetSettingCommand(self._resolve(node), name), value)

    def beginSettingEdit(self, node: Any, name: str) -> SetSettingCommand:
        """Open a CONTINUOUS setting edit; the caller executes it repeatedly, then closes it."""
        command = SetSettingCommand(self._resolve(node), name, continuous=True)
        self.stack.add(command)
        return command

    def setLocked(self, node: Any, locked: bool) -> Command:
        command = self._push(SetAttributeCommand(self._resolve(node), "locked", bool(locked)))
        self.update_network()
        return command

    def undo(self) -> bool:
        done = self.stack.undo()
        if done:
            self.update_network()
        return done

    def redo(self) -> bool:
        done = self.stack.redo()
        if done:
            self.update_network()
        return done

    # --- interactive connection ---

    @property
    def pending_link(self) -> Optional[Link]:
        return self._pending_link

    def begin_connection(self, port: NodePort) -> Optional[Link]:
        """
        Start dragging a link from `port`. Holds a lock key until the
        connection is completed or cancelled. Returns None when busy.
        """
        if self.lock.locked:
            return None
        if self._pending_link is not None:
            raise InvalidStateError("A connection is already in progress")

        self._pending_key = self.lock.lock()
        if port.isOutputPort():
            self._pending_link = Link(output=port)
        else:
            self._pending_link = Link(input=port)
        return self._pending_link

    def complete_connection(self, port: NodePort) -> Optional[Link]:
        """
        Drop the pending link on `port`. Connecting an input to an input, an
        output to an output, a node to itself or mismatched types cancels the
        gesture and returns None.
        """
        link = self._pending_link
        if link is None:
            raise InvalidStateError("No connection in progress")

        start = link.output if link.output is not None else link.input
        if port.isOutputPort() == start.isOutputPort() or port.node is start.node:
            self.cancel_connection()
            return None

        link.connect(port)
        try:
            link.validate()
        except ValueError as e:
            logger.info("connection rejected: %s", e)
            self.cancel_connection()
            return None

        self._release_pending()
        self._push(connect_command(self.graph, link))
        return link

    def cancel_connection(self) -> None:
        if self._pending_link is None:
            return
        self._release_pending()

    def _release_pending(self):
        key = self._pending_key
        self._pending_link = None
        self._pending_key = None
        self.lock.free(key)
        if self._update_refused:
            self.update_network()

    # --- visibility & selection ---

    @property
    def visible(self) -> Optional[Node]:
        return self._visible

    def set_visible(self, node: Optional[Any]) -> None:
        node = self._resolve(node) if node is not None else None
        old = self._visible
        if old is node:
            return

        if old is not None:
            old.visible = False
        if node is not None:
            node.visible = True
        self._visible = node

        self.on_visible_change.trigger(old, node)
        self.update_network()

    @property
    def selected(self) -> List[Node]:
        return list(self._selected)

    @property
    def active(self) -> Optional[Node]:
        """The most recently selected node."""
        return self._selected[-1] if self._selected else None

    def select(self, node: Any) -> None:
        node = self._resolve(node)
        if node not in self._selected:
            node.selected = True
            self._selected.append(node)

    def select_only(self, node: Any) -> None:
        node = self._resolve(node)
        for other in list(self._selected):
            if other is not node:
                self.deselect(other)
        for link in self.graph.links:
            link.selected = False
        self.select(node)

    def deselect(self, node: Node) -> None:
        if node in self._selected:
            node.selected = False
            self._selected.remove(node)

    def deselect_all(self) -> None:
        for node in list(self._selected):
            self.deselect(node)

    # --- evaluation ---

    def update_network(self) -> None:
        """Request a recook of the visible node; requests in one loop turn are coalesced."""
        self._network_updater.update()

    @property
    def update_pending(self) -> bool:
        return self._network_updater.pending

    async def flush(self) -> Optional[CookInfo]:
        """Run a pending update_network() request now and wait for it."""
        return await self._network_updater.flush()

    async def cook_visible(self) -> Optional[CookInfo]:
        node = self._visible
        if node is None:
            return None
        return await self.cooker.cook(node)

    def _retry_update(self):
        if not self.lock.locked:
            return
        self._update_refused = True
        settled = self.cooker.in_flight
        if settled is not None:
            settled.add_done_callback(lambda _: self.update_network())

    async def _update_network(self) -> Optional[CookInfo]:
        node = self._visible
        if node is None:
            self._prev_rendered = None
            self.on_render.trigger(None)
            return None

        info = await self.cooker.cook(node)
        if info is None:
            self._retry_update()
            return None
        self._update_refused = False

        self.last_cook = info
        logger.info("cooked %s: %d node(s), %.3f ms total, clean=%s",
                    node.name, len(info.time), sum(info.time), info.clean)

        if node is not self._prev_rendered or not info.clean:
            self._prev_rendered = node
            self.on_render.trigger(node)
        return info
