from enum import Enum, auto
from typing import Any, Callable, Dict


class CommandType(Enum):
    IMMEDIATE = auto()   # applied once inside execute(), closed straight away
    CONTINUOUS = auto()  # stays open across repeated execute() calls until close()


class PortDirection(Enum):
    INPUT = auto()
    OUTPUT = auto()


class ValueType(Enum):
    """Kind of value a port carries. `None` (an uncooked output) fits every kind."""
    ANY = "any"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    BOOL = "bool"
    DICT = "dict"
    ARRAY = "array"
    OBJECT = "object"
    COLOR = "color"
    IMAGE = "image"

    @staticmethod
    def validate(value: Any, data_type: 'ValueType') -> bool:
        if value is None:
            return True
        check = _CHECKS.get(data_type)
        return check(value) if check is not None else True

    @staticmethod
    def compatible(source: 'ValueType', target: 'ValueType') -> bool:
        """Can an output of type `source` feed an input of type `target`?"""
        if ValueType.ANY in (source, target):
            return True
        if (source, target) == (ValueType.INT, ValueType.FLOAT):
            return True
        return source == target


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# kinds missing here (ANY, OBJECT, IMAGE) accept any value; pixel containers
# belong to the node catalog
_CHECKS: Dict[ValueType, Callable[[Any], bool]] = {
    ValueType.INT: lambda v: isinstance(v, int) and not isinstance(v, bool),
    ValueType.FLOAT: _is_number,
    ValueType.STRING: lambda v: isinstance(v, str),
    ValueType.BOOL: lambda v: isinstance(v, bool),
    ValueType.DICT: lambda v: isinstance(v, dict),
    ValueType.ARRAY: lambda v: isinstance(v, (list, tuple)),
    ValueType.COLOR: lambda v: isinstance(v, (str, tuple, list)),  # hex string or RGBA
}
