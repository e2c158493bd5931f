"""
Typed value model for parsed KV3 documents.

A document is a single tree: a root KVObject whose entries are KVValues,
some of which own further KVObjects. Arrays are KVObjects whose keys are
"0".."n-1". Nothing in the tree is mutated after construction.
"""

from collections.abc import Iterable
from collections.abc import Iterator
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from types import MappingProxyType
from typing import Any
from typing import Protocol
from typing import runtime_checkable

from kv3._errors import KeyNotFoundError
from kv3._errors import TypeMismatchError

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
UINT64_MAX = 2**64 - 1


class KVType(Enum):
    """Discriminant of a KVValue payload."""

    NULL = "null"
    BOOLEAN = "boolean"
    INT64 = "int64"
    UINT64 = "uint64"
    DOUBLE = "double"
    STRING = "string"
    BINARY_BLOB = "binary_blob"
    ARRAY = "array"
    OBJECT = "object"


_NUMERIC_TYPES = frozenset({KVType.INT64, KVType.UINT64, KVType.DOUBLE})
_INTEGER_TYPES = frozenset({KVType.INT64, KVType.UINT64})


class KVFlag(Enum):
    """
    Known flag keywords of the text encoding.

    The vocabulary is open: parsers may be configured with extra flag names,
    which are then stored on KVFlaggedValue as plain strings.
    """

    RESOURCE = "resource"
    RESOURCE_NAME = "resource_name"
    PANORAMA = "panorama"
    SOUNDEVENT = "soundevent"
    SUBCLASS = "subclass"


type KVPayload = None | bool | int | float | str | bytes | KVObject


def _check_payload(kv_type: KVType, value: Any) -> None:  # noqa: PLR0911
    """Validates that a payload matches its discriminant."""
    match kv_type:
        case KVType.NULL:
            if value is not None:
                raise TypeError("NULL value must have no payload")
        case KVType.BOOLEAN:
            if not isinstance(value, bool):
                raise TypeError("BOOLEAN payload must be a bool")
        case KVType.INT64 | KVType.UINT64:
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{kv_type.name} payload must be an int")
            low, high = (
                (INT64_MIN, INT64_MAX)
                if kv_type is KVType.INT64
                else (0, UINT64_MAX)
            )
            if not low <= value <= high:
                raise ValueError(f"{value} is out of {kv_type.name} range")
        case KVType.DOUBLE:
            if not isinstance(value, float):
                raise TypeError("DOUBLE payload must be a float")
        case KVType.STRING:
            if not isinstance(value, str):
                raise TypeError("STRING payload must be a str")
        case KVType.BINARY_BLOB:
            if not isinstance(value, bytes):
                raise TypeError("BINARY_BLOB payload must be bytes")
        case KVType.ARRAY | KVType.OBJECT:
            if not isinstance(value, KVObject):
                raise TypeError(f"{kv_type.name} payload must be a KVObject")
            if value.is_array != (kv_type is KVType.ARRAY):
                raise ValueError(
                    f"{kv_type.name} payload has is_array={value.is_array}"
                )


@dataclass(frozen=True)
class KVValue:
    """A tagged value: a KVType discriminant plus the matching payload."""

    type: KVType
    value: KVPayload = None

    def __post_init__(self) -> None:
        if not isinstance(self.type, KVType):
            raise TypeError("type must be a KVType")
        _check_payload(self.type, self.value)

    @classmethod
    def from_python(cls, obj: Any) -> "KVValue":  # noqa: PLR0911
        """Builds a value from plain Python data."""
        if isinstance(obj, KVValue):
            return obj
        elif obj is None:
            return cls(KVType.NULL)
        elif isinstance(obj, bool):
            return cls(KVType.BOOLEAN, obj)
        elif isinstance(obj, int):
            kv_type = KVType.UINT64 if obj > INT64_MAX else KVType.INT64
            return cls(kv_type, obj)
        elif isinstance(obj, float):
            return cls(KVType.DOUBLE, obj)
        elif isinstance(obj, str):
            return cls(KVType.STRING, obj)
        elif isinstance(obj, bytes | bytearray):
            return cls(KVType.BINARY_BLOB, bytes(obj))
        elif isinstance(obj, KVObject):
            return cls(KVType.ARRAY if obj.is_array else KVType.OBJECT, obj)
        elif isinstance(obj, Mapping):
            return cls(KVType.OBJECT, KVObject.from_python(obj))
        elif isinstance(obj, list | tuple):
            return cls(
                KVType.ARRAY,
                KVObject.from_values(cls.from_python(item) for item in obj),
            )
        msg = f"Object of type {type(obj).__name__} is not KV3 serializable"
        raise TypeError(msg)

    def to_python(self) -> Any:
        """Converts the value, and any tree below it, to plain Python data."""
        if isinstance(self.value, KVObject):
            return self.value.to_python()
        return self.value


@dataclass(frozen=True)
class KVFlaggedValue(KVValue):
    """A KVValue annotated with a flag such as `resource`."""

    flag: KVFlag | str = field(kw_only=True)

    def __post_init__(self) -> None:
        super().__post_init__()
        if not isinstance(self.flag, KVFlag | str) or self.flag == "":
            raise TypeError("flag must be a KVFlag or a non-empty str")

    @property
    def flag_name(self) -> str:
        """The keyword used for the flag in KV3 text."""
        return self.flag.value if isinstance(self.flag, KVFlag) else self.flag


class KVObject(Mapping[str, KVValue]):
    """
    Ordered, read-only mapping from key to KVValue.

    Also represents arrays: an array is a KVObject with is_array set and
    keys "0", "1", ... in ascending order. Iteration follows insertion order.
    """

    __slots__ = ("_is_array", "_properties")

    def __init__(
        self,
        properties: Mapping[str, KVValue] | Iterable[tuple[str, KVValue]] = (),
        *,
        is_array: bool = False,
    ) -> None:
        props = dict(properties)
        for key, value in props.items():
            if not isinstance(key, str):
                msg = f"keys must be strings, not {type(key).__name__}"
                raise TypeError(msg)
            if not isinstance(value, KVValue):
                msg = f"values must be KVValue, not {type(value).__name__}"
                raise TypeError(msg)

        if is_array and any(
            key != str(index) for index, key in enumerate(props)
        ):
            raise ValueError("array keys must be '0'..'n-1' in order")

        self._properties = props
        self._is_array = is_array

    @classmethod
    def from_values(cls, values: Iterable[KVValue]) -> "KVObject":
        """Builds an array from values in order."""
        return cls(
            ((str(index), value) for index, value in enumerate(values)),
            is_array=True,
        )

    @classmethod
    def from_python(cls, mapping: Mapping[str, Any]) -> "KVObject":
        """Builds an object from a plain mapping of Python data."""
        return cls(
            (key, KVValue.from_python(value)) for key, value in mapping.items()
        )

    def __getitem__(self, key: str) -> KVValue:
        try:
            return self._properties[key]
        except KeyError:
            raise KeyNotFoundError(key) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._properties)

    def __len__(self) -> int:
        return len(self._properties)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KVObject):
            return NotImplemented
        return self._is_array == other._is_array and list(
            self._properties.items()
        ) == list(other._properties.items())

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self._is_array:
            return f"KVObject({self._properties!r}, is_array=True)"
        return f"KVObject({self._properties!r})"

    @property
    def count(self) -> int:
        return len(self._properties)

    @property
    def is_array(self) -> bool:
        return self._is_array

    @property
    def properties(self) -> Mapping[str, KVValue]:
        """Read-only view of the underlying entries."""
        return MappingProxyType(self._properties)

    def as_sequence(self) -> tuple[KVValue, ...]:
        """Returns the entries of an array in index order."""
        if not self._is_array:
            raise TypeMismatchError(None, "ARRAY", "OBJECT")
        return tuple(self._properties.values())

    def to_python(self) -> dict[str, Any] | list[Any]:
        if self._is_array:
            return [value.to_python() for value in self._properties.values()]
        return {key: value.to_python() for key, value in self._properties.items()}

    def get_value(self, key: str) -> KVValue:
        return self[key]

    def _get_typed(
        self, key: str, expected: str, accepted: Iterable[KVType]
    ) -> KVValue:
        value = self[key]
        if value.type not in accepted:
            raise TypeMismatchError(key, expected, value.type.name)
        return value

    def get_int(self, key: str) -> int:
        """Reads a signed 64-bit integer."""
        value = self._get_typed(key, "INT64", _INTEGER_TYPES)
        if value.value > INT64_MAX:  # type: ignore[operator]
            raise TypeMismatchError(key, "INT64", "UINT64 beyond INT64 range")
        return value.value  # type: ignore[return-value]

    def get_uint(self, key: str) -> int:
        """Reads an unsigned 64-bit integer."""
        value = self._get_typed(key, "UINT64", _INTEGER_TYPES)
        if value.value < 0:  # type: ignore[operator]
            raise TypeMismatchError(key, "UINT64", "negative INT64")
        return value.value  # type: ignore[return-value]

    def get_float(self, key: str) -> float:
        """Reads a number as a float; integers are converted."""
        value = self._get_typed(key, "DOUBLE", _NUMERIC_TYPES)
        return float(value.value)  # type: ignore[arg-type]

    def get_bool(self, key: str) -> bool:
        return self._get_typed(key, "BOOLEAN", {KVType.BOOLEAN}).value  # type: ignore[return-value]

    def get_string(self, key: str) -> str:
        return self._get_typed(key, "STRING", {KVType.STRING}).value  # type: ignore[return-value]

    def get_object(self, key: str) -> "KVObject":
        return self._get_typed(key, "OBJECT", {KVType.OBJECT}).value  # type: ignore[return-value]

    def get_array(self, key: str) -> "KVObject":
        return self._get_typed(key, "ARRAY", {KVType.ARRAY}).value  # type: ignore[return-value]

    def get_float_array(self, key: str) -> tuple[float, ...]:
        """Reads an array of numbers as floats."""
        items = self.get_array(key).as_sequence()
        for index, item in enumerate(items):
            if item.type not in _NUMERIC_TYPES:
                raise TypeMismatchError(
                    f"{key}[{index}]", "DOUBLE", item.type.name
                )
        return tuple(float(item.value) for item in items)  # type: ignore[arg-type]

    def get_int_array(self, key: str) -> tuple[int, ...]:
        """Reads an array of integers."""
        items = self.get_array(key).as_sequence()
        for index, item in enumerate(items):
            if item.type not in _INTEGER_TYPES:
                raise TypeMismatchError(
                    f"{key}[{index}]", "INT64", item.type.name
                )
        return tuple(item.value for item in items)  # type: ignore[misc]


@runtime_checkable
class KeyValueCollection(Protocol):
    """
    Read access to a keyed collection of KV3 values.

    Model and animation loaders depend on this rather than on KVObject.
    """

    def get_value(self, key: str) -> KVValue: ...

    def get_int(self, key: str) -> int: ...

    def get_uint(self, key: str) -> int: ...

    def get_float(self, key: str) -> float: ...

    def get_bool(self, key: str) -> bool: ...

    def get_string(self, key: str) -> str: ...

    def get_object(self, key: str) -> KVObject: ...

    def get_array(self, key: str) -> KVObject: ...

    def get_float_array(self, key: str) -> tuple[float, ...]: ...

    def get_int_array(self, key: str) -> tuple[int, ...]: ...


@dataclass(frozen=True)
class KV3Document:
    """A parsed document: header identifiers and the root object."""

    encoding: str
    format: str
    root: KVObject

    @property
    def encoding_family(self) -> str:
        """`text` for `text:version{...}`."""
        return self.encoding.partition(":")[0]

    @property
    def format_family(self) -> str:
        return self.format.partition(":")[0]
