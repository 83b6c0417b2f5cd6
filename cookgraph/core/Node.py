from typing import Optional, List, Dict, Any, Type, Callable, Iterator, Union
import inspect
import logging
import uuid
from abc import abstractmethod
from collections.abc import MutableMapping

from .NodePort import NodePort, Input, MultiInput, Output
from .GraphPrimitives import Link
from .Types import ValueType
from .Event import Event
from .Interface import INode

# Get a logger for this module
logger = logging.getLogger(__name__)

InputPort = Union[Input, MultiInput]


class NodeSettings(MutableMapping):
    """Opaque settings bag. Every write fires on_change(name, old, new)."""

    def __init__(self, defaults: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(defaults or {})
        self.on_change = Event("settings.change")

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __setitem__(self, name: str, value: Any):
        old = self._values.get(name)
        self._values[name] = value
        self.on_change.trigger(name, old, value)

    def __delitem__(self, name: str):
        old = self._values.pop(name)
        self.on_change.trigger(name, old, None)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self):
        return f"NodeSettings({self._values})"


class Node(INode):
    """
    Graph vertex. A node is dirty when one of its inputs changed
    (`dirty_input`) or one of its settings changed (`dirty_settings`);
    a successful cook clears both.

    Locked nodes keep their cached outputs: the cooker still walks past them
    but never recooks them or anything behind them.
    """
    _node_registry: Dict[str, Type['Node']] = {}

    @classmethod
    def register(cls, type_name: str) -> Callable[[Type['Node']], Type['Node']]:
        """Decorator to register a node class with a specific type name."""
        def decorator(subclass: Type['Node']) -> Type['Node']:
            if cls._node_registry.get(type_name):
                raise ValueError(f"Node type '{type_name}' is already registered.")
            cls._node_registry[type_name] = subclass
            return subclass
        return decorator

    @classmethod
    def create_node(cls, name: str, type_name: str, *args, **kwargs) -> 'Node':
        """Factory method to create a node instance by type name."""
        if type_name not in cls._node_registry:
            raise ValueError(f"Unknown node type '{type_name}'")

        node_class = cls._node_registry[type_name]
        return node_class(name, type_name, *args, **kwargs)

    @classmethod
    def registered_types(cls) -> List[str]:
        return list(cls._node_registry.keys())

    def __init__(self, name: str, type: str, settings: Optional[Dict[str, Any]] = None):
        self.name = name
        self.type = type
        self.id = uuid.uuid4().hex

        # insertion order is the port order handed to _cook()
        self.inputs: Dict[str, InputPort] = {}
        self.outputs: Dict[str, Output] = {}

        self.settings = NodeSettings(settings)
        self.settings.on_change.add_listener(self._on_settings_change)

        self.dirty_input = True
        self.dirty_settings = False
        self.locked = False
        self.visible = False
        self.selected = False

    def __repr__(self):
        return f"{type(self).__name__}({self.name})"

    # --- ports ---

    def _add_input_port(self, port: InputPort) -> InputPort:
        if port.port_name in self.inputs:
            raise ValueError(f"Input port '{port.port_name}' already exists in node '{self.name}'")
        self.inputs[port.port_name] = port
        port.on_change.add_listener(self._on_input_change)
        return port

    def add_input(self, port_name: str, data_type: ValueType = ValueType.ANY) -> Input:
        return self._add_input_port(Input(self, port_name, data_type))

    def add_multi_input(self, port_name: str, data_type: ValueType = ValueType.ANY) -> MultiInput:
        return self._add_input_port(MultiInput(self, port_name, data_type))

    def add_output(self, port_name: str, data_type: ValueType = ValueType.ANY) -> Output:
        if port_name in self.outputs:
            raise ValueError(f"Output port '{port_name}' already exists in node '{self.name}'")
        port = Output(self, port_name, data_type)
        self.outputs[port_name] = port
        return port

    def get_input(self, port_name: str) -> InputPort:
        port = self.inputs.get(port_name)
        if port is None:
            raise KeyError(f"Input port '{port_name}' not found in node '{self.name}'")
        return port

    def get_output(self, port_name: str) -> Output:
        port = self.outputs.get(port_name)
        if port is None:
            raise KeyError(f"Output port '{port_name}' not found in node '{self.name}'")
        return port

    def get_port(self, port_name: str, is_input: bool = True) -> NodePort:
        return self.get_input(port_name) if is_input else self.get_output(port_name)

    # --- dependency edges ---

    @property
    def dependencies(self) -> List['Node']:
        """Distinct upstream nodes, in input order."""
        nodes: List['Node'] = []
        for port in self.inputs.values():
            for link in port.links:
                upstream = link.output.node
                if upstream not in nodes:
                    nodes.append(upstream)
        return nodes

    @property
    def links(self) -> List[Link]:
        links: List[Link] = []
        for port in list(self.inputs.values()) + list(self.outputs.values()):
            for link in port.links:
                if link not in links:
                    links.append(link)
        return links

    # --- dirty state ---

    def _on_input_change(self, *args):
        self.dirty_input = True

    def _on_settings_change(self, *args):
        self.dirty_settings = True

    @property
    def dirty(self) -> bool:
        return self.dirty_input or self.dirty_settings

    def isDirty(self) -> bool:
        return self.dirty

    def markDirty(self):
        self.dirty_input = True

    def markClean(self):
        self.dirty_input = False
        self.dirty_settings = False

    # --- cooking ---

    async def cook(self) -> bool:
        """Recompute the outputs from the current inputs. Returns False if nothing needed doing."""
        if self.locked or not self.dirty:
            return False

        values = [port.value for port in self.inputs.values()]
        result = self._cook(values)
        if inspect.isawaitable(result):
            result = await result

        self._publish(result)
        self.markClean()
        return True

    def _publish(self, result: Any):
        outputs = list(self.outputs.values())
        if isinstance(result, dict):
            for port_name, value in result.items():
                self.get_output(port_name).value = value
            return

        if result is None:
            result = []
        if not isinstance(result, (list, tuple)):
            raise ValueError(f"Node '{self.name}' _cook() must return a list, tuple or dict, got {type(result).__name__}")
        if len(result) != len(outputs):
            raise ValueError(f"Node '{self.name}' _cook() returned {len(result)} values for {len(outputs)} outputs")

        for port, value in zip(outputs, result):
            port.value = value

    @abstractmethod
    def _cook(self, inputs: List[Any]):
        pass
