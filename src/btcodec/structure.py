"""
Data structures for representing Bencoded types.
"""
from typing import Annotated, NamedTuple, Protocol, runtime_checkable

from .constants import INT64_MAX, INT64_MIN, UINT64_MAX
from .errors import InvalidValueError

__all__ = [
    "BencodeType",
    "BencodeInt",
    "BencodeString",
    "BencodeList",
    "BencodeDict",
    "IntRange",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Uint8",
    "Uint16",
    "Uint32",
    "Uint64",
    "Marshaler",
    "Unmarshaler",
    "RawValue",
]


class BencodeType:
    """Base class for all Bencode data types."""
    __slots__ = ("value",)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.value == other.value

    def __repr__(self):
        return f"{type(self).__name__}({self.value!r})"

    def to_python(self):
        """Unwraps the value into plain ints, bytes, lists and dicts."""
        return self.value


class BencodeInt(BencodeType):
    """Represents a Bencoded integer."""
    __slots__ = ()

    def __init__(self, value: int):
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError("BencodeInt requires an integer.")
        self.value = value

    def __hash__(self):
        return hash((BencodeInt, self.value))


class BencodeString(BencodeType):
    """Represents a Bencoded byte string."""
    __slots__ = ()

    def __init__(self, value: bytes):
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError("BencodeString requires bytes.")
        self.value = bytes(value)

    def __hash__(self):
        return hash((BencodeString, self.value))


class BencodeList(BencodeType):
    """Represents a Bencoded list."""
    __slots__ = ()
    __hash__ = None

    def __init__(self, value: list):
        if not isinstance(value, list):
            raise TypeError("BencodeList requires a list.")
        self.value = value

    def to_python(self):
        return [item.to_python() for item in self.value]


class BencodeDict(BencodeType):
    """Represents a Bencoded dictionary."""
    __slots__ = ()
    __hash__ = None

    def __init__(self, value: dict):
        if not isinstance(value, dict):
            raise TypeError("BencodeDict requires a dict.")
        # keys must be bytes (bencode requirement)
        for k in value.keys():
            if not isinstance(k, (bytes, bytearray)):
                raise TypeError("BencodeDict keys must be bytes.")
        self.value = value

    def to_python(self):
        return {key: item.to_python() for key, item in self.value.items()}


# --------------------------
# Integer widths
# --------------------------

class IntRange(NamedTuple):
    """Inclusive bounds of an integer field, attached with typing.Annotated."""
    lo: int
    hi: int

    def __contains__(self, n):
        return self.lo <= n <= self.hi


Int8 = Annotated[int, IntRange(-(2 ** 7), 2 ** 7 - 1)]
Int16 = Annotated[int, IntRange(-(2 ** 15), 2 ** 15 - 1)]
Int32 = Annotated[int, IntRange(-(2 ** 31), 2 ** 31 - 1)]
Int64 = Annotated[int, IntRange(INT64_MIN, INT64_MAX)]
Uint8 = Annotated[int, IntRange(0, 2 ** 8 - 1)]
Uint16 = Annotated[int, IntRange(0, 2 ** 16 - 1)]
Uint32 = Annotated[int, IntRange(0, 2 ** 32 - 1)]
Uint64 = Annotated[int, IntRange(0, UINT64_MAX)]

INT64_RANGE = IntRange(INT64_MIN, INT64_MAX)
# anything the wire can carry: both signed and unsigned 64-bit
ANY_INT_RANGE = IntRange(INT64_MIN, UINT64_MAX)


# --------------------------
# Custom capabilities
# --------------------------

@runtime_checkable
class Marshaler(Protocol):
    """A value that produces its own bencode representation."""

    def marshal_bencode(self) -> bytes:
        ...


@runtime_checkable
class Unmarshaler(Protocol):
    """A target that populates itself from the raw bytes of one bencode value."""

    def unmarshal_bencode(self, data: bytes) -> None:
        ...


class RawValue:
    """
    Holds the undecoded bytes of a single bencoded value.

    Decoding into a RawValue captures the exact input slice, encoding one
    writes the bytes back verbatim.
    """
    __slots__ = ("data",)

    def __init__(self, data: bytes = b""):
        self.data = bytes(data)

    def marshal_bencode(self) -> bytes:
        if not self.data:
            raise InvalidValueError("RawValue holds no data")
        return self.data

    def unmarshal_bencode(self, data: bytes) -> None:
        self.data = bytes(data)

    def __eq__(self, other):
        if not isinstance(other, RawValue):
            return NotImplemented
        return self.data == other.data

    __hash__ = None

    def __repr__(self):
        return f"RawValue({self.data!r})"
