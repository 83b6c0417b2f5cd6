from typing import List, Optional, Any, Callable, TYPE_CHECKING
import logging

from .Types import ValueType, PortDirection
from .Event import Event
from .Errors import InvalidStateError

# To avoid circular imports only for typing
if TYPE_CHECKING:
    from .Node import Node
    from .GraphPrimitives import Link


# Get a logger for this module
logger = logging.getLogger(__name__)


class NodePort:
    """Typed connection point on a Node."""
    direction: PortDirection = PortDirection.INPUT

    def __init__(self, node: 'Node', port_name: str, data_type: ValueType = ValueType.ANY):
        self.node = node
        self.port_name = port_name
        self.data_type = data_type
        self.on_change = Event(f"{port_name}.change")

    def isInputPort(self) -> bool:
        return self.direction == PortDirection.INPUT

    def isOutputPort(self) -> bool:
        return self.direction == PortDirection.OUTPUT

    def isMulti(self) -> bool:
        return False

    @property
    def links(self) -> List['Link']:
        raise NotImplementedError

    def __repr__(self):
        node_name = self.node.name if self.node is not None else "?"
        return f"{type(self).__name__}({node_name}.{self.port_name})"


class Output(NodePort):
    """Holds the cached value computed by the node's last cook, plus its outgoing Links."""
    direction = PortDirection.OUTPUT

    def __init__(self, node: 'Node', port_name: str, data_type: ValueType = ValueType.ANY):
        super().__init__(node, port_name, data_type)
        self._value: Any = None
        self._links: List['Link'] = []

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, val: Any):
        if not ValueType.validate(val, self.data_type):
            raise ValueError(f"Value {val!r} is not valid for output '{self.port_name}' of type {self.data_type.value}")
        self._value = val
        self.on_change.trigger()

    @property
    def links(self) -> List['Link']:
        return list(self._links)

    def add_link(self, link: 'Link'):
        self._links.append(link)

    def remove_link(self, link: 'Link'):
        if link not in self._links:
            raise InvalidStateError(f"{link!r} is not attached to {self!r}")
        self._links.remove(link)


class Input(NodePort):
    """
    Accepts at most one Link. Change notifications of the upstream Output are
    re-fired on this port's on_change, which is what marks the owning node dirty.
    """
    def __init__(self, node: 'Node', port_name: str, data_type: ValueType = ValueType.ANY):
        super().__init__(node, port_name, data_type)
        self._link: Optional['Link'] = None
        self._unlink: Optional[Callable[[], None]] = None

    @property
    def link(self) -> Optional['Link']:
        return self._link

    @link.setter
    def link(self, val: Optional['Link']):
        old = self._link
        if old is val:
            return

        self._link = val
        if self._unlink is not None:
            self._unlink()
            self._unlink = None
        if val is not None:
            self._unlink = self.on_change.link_to(val.output.on_change)
        self.on_change.trigger()

    @property
    def links(self) -> List['Link']:
        return [self._link] if self._link is not None else []

    def add_link(self, link: 'Link', index: Optional[int] = None):
        self.link = link

    def remove_link(self, link: 'Link') -> int:
        if self._link is not link:
            raise InvalidStateError(f"{link!r} is not attached to {self!r}")
        self.link = None
        return 0

    @property
    def output(self) -> Optional[Output]:
        return self._link.output if self._link is not None else None

    @property
    def value(self) -> Any:
        return self._link.output.value if self._link is not None else None


class MultiInput(NodePort):
    """Accepts any number of Links. Their order is significant (e.g. merge layering order)."""
    def __init__(self, node: 'Node', port_name: str, data_type: ValueType = ValueType.ANY):
        super().__init__(node, port_name, data_type)
        self._links: List['Link'] = []
        self._unlinks: List[Callable[[], None]] = []

    def isMulti(self) -> bool:
        return True

    @property
    def links(self) -> List['Link']:
        return list(self._links)

    def add_link(self, link: 'Link', index: Optional[int] = None):
        if link in self._links:
            raise InvalidStateError(f"{link!r} is already attached to {self!r}")
        if index is None or index > len(self._links):
            index = len(self._links)

        self._links.insert(index, link)
        self._unlinks.insert(index, self.on_change.link_to(link.output.on_change))
        self.on_change.trigger()

    def remove_link(self, link: 'Link') -> int:
        if link not in self._links:
            raise InvalidStateError(f"{link!r} is not attached to {self!r}")

        index = self._links.index(link)
        del self._links[index]
        self._unlinks.pop(index)()
        self.on_change.trigger()
        return index

    @property
    def outputs(self) -> List[Output]:
        return [link.output for link in self._links]

    @property
    def value(self) -> List[Any]:
        return [link.output.value for link in self._links]
