"""
Bencode decoder for BitTorrent metainfo and tracker responses.

Decoding is directed by a target. The target is either a shape (a class, a
typing construct such as List[int] or Dict[str, Any], or typing.Any) for which
a new value is built, or a mutable instance (dataclass, list, dict, or an
Unmarshaler) that is populated in place:

    unmarshal(b"d3:cow3:mooe")                    # {b'cow': b'moo'}
    unmarshal(b"d3:cow3:mooe", Dict[str, str])    # {'cow': 'moo'}
    unmarshal(data, Metainfo)                     # Metainfo(...)
"""
import dataclasses
import logging
import typing
from typing import Any

from .constants import (
    MAX_DEPTH,
    TOKEN_DICT,
    TOKEN_END,
    TOKEN_INTEGER,
    TOKEN_LIST,
    TOKEN_MINUS,
    TOKEN_STRING_SEPARATOR,
)
from .errors import (
    CanNotSetError,
    EmptyDataError,
    IntegerOverflowError,
    InvalidBoolError,
    InvalidDictError,
    InvalidIntegerError,
    InvalidListError,
    InvalidStringError,
    InvalidStructError,
    InvalidTokenError,
    InvalidTypeError,
    InvalidValueError,
    LeadingZeroError,
    LengthTooBigError,
    NonPointerError,
    NonStringKeyError,
    RemainingDataError,
)
from .structure import (
    ANY_INT_RANGE,
    INT64_RANGE,
    BencodeDict,
    BencodeInt,
    BencodeList,
    BencodeString,
    BencodeType,
    Unmarshaler,
)
from .tags import (
    is_class,
    is_dict_shape,
    is_list_shape,
    is_record,
    is_tuple_shape,
    new_record,
    strip_optional,
    type_hints,
    unwrap_annotated,
    wire_table,
    zero_value,
)

logger = logging.getLogger(__name__)

# digits of the widest magnitude the wire can carry
_MAX_INT_DIGITS = len(str(2 ** 64))


def _is_shape(target) -> bool:
    """True for classes and typing constructs, False for instances."""
    return (
        isinstance(target, type)
        or target is Any
        or typing.get_origin(target) is not None
    )


class BencodeDecoder:
    """
    Decodes Bencoded byte strings into Python objects.
    """
    def __init__(self, data: bytes):
        self.data = data
        self.i = 0  # cursor index
        self.depth = 0

    def decode(self, target=Any):
        """Decodes the value at the cursor into target and returns it."""
        if self._at_end():
            raise EmptyDataError(offset=self.i)
        if _is_shape(target):
            return self._decode_value(target)
        return self._decode_in_place(target)

    # --------------------------
    # Low-level utilities
    # --------------------------

    def _at_end(self) -> bool:
        return self.i >= len(self.data)

    def _peek(self) -> bytes:
        """Returns the byte at the cursor, or b'' at the end of input."""
        return self.data[self.i:self.i+1]

    def _consume(self, n=1):
        """Moves cursor forward by n bytes and returns the consumed chunk."""
        chunk = self.data[self.i:self.i+n]
        self.i += n
        return chunk

    def _descend(self, start, error_cls):
        self.depth += 1
        if self.depth > MAX_DEPTH:
            raise error_cls("nesting is too deep", offset=start)

    def _ascend(self):
        self.depth -= 1

    # --------------------------
    # Grammar productions
    # --------------------------

    def _parse_int(self, bounds=ANY_INT_RANGE) -> int:
        """Parses i<digits>e, rejecting leading zeros and negative zero."""
        start = self.i
        if self._peek() != TOKEN_INTEGER:
            raise InvalidIntegerError(offset=start)

        end = self.data.find(TOKEN_END, start + 1)
        if end == -1:
            raise InvalidIntegerError("missing integer end token", offset=start)

        number_bytes = self.data[start+1:end]
        if not number_bytes:
            raise EmptyDataError("integer has no digits", offset=start)

        magnitude = number_bytes[1:] if number_bytes[:1] == TOKEN_MINUS else number_bytes
        if not magnitude.isdigit():
            raise InvalidIntegerError(offset=start)
        if len(magnitude) > 1 and magnitude[:1] == b"0":
            raise LeadingZeroError(offset=start)
        if magnitude != number_bytes and magnitude == b"0":
            raise InvalidIntegerError("negative zero", offset=start)
        if len(magnitude) > _MAX_INT_DIGITS:
            raise IntegerOverflowError(offset=start)

        num = int(number_bytes)
        if num not in bounds:
            raise IntegerOverflowError(
                f"{num} is outside [{bounds.lo}, {bounds.hi}]", offset=start)

        self.i = end + 1  # skip 'e'
        return num

    def _parse_string(self) -> bytes:
        """Parses <length>:<bytes> and returns the raw bytes."""
        start = self.i
        colon = self.data.find(TOKEN_STRING_SEPARATOR, start)
        if colon == -1:
            raise InvalidStringError("missing string separator", offset=start)

        length_bytes = self.data[start:colon]
        if not length_bytes:
            raise EmptyDataError("string length is empty", offset=start)
        if not length_bytes.isdigit():
            raise InvalidStringError(offset=start)
        if len(length_bytes) > 1 and length_bytes[:1] == b"0":
            raise LeadingZeroError(offset=start)
        if len(length_bytes) > len(str(len(self.data))):
            raise LengthTooBigError(offset=start)

        length = int(length_bytes)
        self.i = colon + 1
        if self.i + length > len(self.data):
            raise LengthTooBigError(offset=start)
        return self._consume(length)

    def skip_value(self):
        """
        Advances past one well-formed value without building it.
        Integers and string lengths are still validated.
        """
        start = self.i
        ch = self._peek()
        if not ch:
            raise EmptyDataError(offset=start)

        if ch == TOKEN_INTEGER:
            self._parse_int()
        elif ch == TOKEN_LIST:
            self._descend(start, InvalidListError)
            self._consume(1)
            while self._peek() != TOKEN_END:
                if self._at_end():
                    raise InvalidListError("unterminated list", offset=start)
                self.skip_value()
            self._consume(1)
            self._ascend()
        elif ch == TOKEN_DICT:
            self._descend(start, InvalidDictError)
            self._consume(1)
            while self._peek() != TOKEN_END:
                if self._at_end():
                    raise InvalidDictError("unterminated dict", offset=start)
                self._parse_string()
                self.skip_value()
            self._consume(1)
            self._ascend()
        elif ch.isdigit():
            self._parse_string()
        else:
            raise InvalidTokenError(f"invalid token {ch!r}", offset=start)

    # --------------------------
    # Type-directed decoding
    # --------------------------

    def _decode_value(self, tp):
        if self._at_end():
            raise EmptyDataError(offset=self.i)

        tp, int_range = unwrap_annotated(tp)
        tp, inner_range = unwrap_annotated(strip_optional(tp))
        int_range = inner_range or int_range

        if is_class(tp) and issubclass(tp, Unmarshaler):
            return self._decode_custom(self._new_target(tp))
        if tp is Any or tp is object:
            return self._parse_native()
        if is_class(tp) and issubclass(tp, BencodeType):
            return self._decode_wrapper(tp)
        if tp is bool:
            return self._decode_bool()
        if is_class(tp) and issubclass(tp, int):
            start = self.i
            num = self._parse_int(int_range or INT64_RANGE)
            if tp is int:
                return num
            try:
                return tp(num)
            except ValueError as exc:
                raise InvalidValueError(f"{num} is not a valid {tp.__name__}", offset=start) from exc
        if tp is str:
            return self._decode_str()
        if tp is bytes:
            return self._parse_string()
        if tp is bytearray:
            return bytearray(self._parse_string())
        if is_record(tp):
            return self._decode_record(tp)
        if is_tuple_shape(tp):
            return self._decode_tuple(tp)
        if is_list_shape(tp):
            args = typing.get_args(tp)
            return self._decode_list(args[0] if args else Any)
        if is_dict_shape(tp):
            args = typing.get_args(tp)
            key_tp, value_tp = args if args else (Any, Any)
            return self._decode_dict(key_tp, value_tp)

        raise InvalidTypeError(f"can not decode into {tp!r}", offset=self.i)

    def _parse_native(self):
        """Decodes into plain ints, bytes, lists and dicts with bytes keys."""
        ch = self._peek()
        if ch == TOKEN_INTEGER:
            return self._parse_int()
        if ch == TOKEN_LIST:
            return self._decode_list(Any)
        if ch == TOKEN_DICT:
            return self._decode_dict(bytes, Any)
        if ch.isdigit():  # Bencode strings start with length, which is a digit
            return self._parse_string()
        raise InvalidTokenError(f"invalid token {ch!r}", offset=self.i)

    def _decode_wrapper(self, tp):
        ch = self._peek()
        if tp is BencodeType:
            if ch == TOKEN_INTEGER:
                tp = BencodeInt
            elif ch == TOKEN_LIST:
                tp = BencodeList
            elif ch == TOKEN_DICT:
                tp = BencodeDict
            elif ch.isdigit():
                tp = BencodeString
            else:
                raise InvalidTokenError(f"invalid token {ch!r}", offset=self.i)

        if tp is BencodeInt:
            return BencodeInt(self._parse_int())
        if tp is BencodeString:
            return BencodeString(self._parse_string())
        if tp is BencodeList:
            return BencodeList(self._decode_list(BencodeType))
        if tp is BencodeDict:
            return BencodeDict(self._decode_dict(bytes, BencodeType))
        raise InvalidTypeError(f"can not decode into {tp!r}", offset=self.i)

    def _decode_bool(self) -> bool:
        start = self.i
        num = self._parse_int()
        if num not in (0, 1):
            raise InvalidBoolError(f"{num} is not 0 or 1", offset=start)
        return num == 1

    def _decode_str(self) -> str:
        start = self.i
        raw = self._parse_string()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidStringError("byte string is not valid UTF-8", offset=start) from exc

    def _decode_list(self, item_tp) -> list:
        start = self.i
        if self._peek() != TOKEN_LIST:
            raise InvalidListError(offset=start)
        self._descend(start, InvalidListError)
        self._consume(1)  # skip 'l'
        items = []

        while self._peek() != TOKEN_END:
            if self._at_end():
                raise InvalidListError("unterminated list", offset=start)
            items.append(self._decode_value(item_tp))

        self._consume(1)  # skip 'e'
        self._ascend()
        return items

    def _decode_tuple(self, tp) -> tuple:
        args = typing.get_args(tp)
        if not args or (len(args) == 2 and args[1] is Ellipsis):
            return tuple(self._decode_list(args[0] if args else Any))

        start = self.i
        if self._peek() != TOKEN_LIST:
            raise InvalidListError(offset=start)
        self._descend(start, InvalidListError)
        self._consume(1)  # skip 'l'
        items = []
        for item_tp in args:
            if self._peek() == TOKEN_END or self._at_end():
                raise InvalidListError(f"expected {len(args)} items", offset=start)
            items.append(self._decode_value(item_tp))
        if self._peek() != TOKEN_END:
            raise InvalidListError(f"expected {len(args)} items", offset=start)
        self._consume(1)  # skip 'e'
        self._ascend()
        return tuple(items)

    def _decode_dict(self, key_tp, value_tp) -> dict:
        start = self.i
        if self._peek() != TOKEN_DICT:
            raise InvalidDictError(offset=start)

        key_tp, _ = unwrap_annotated(key_tp)
        if key_tp is Any or key_tp is object:
            key_tp = bytes
        if key_tp not in (str, bytes):
            raise NonStringKeyError(f"dict key type {key_tp!r} is not str or bytes", offset=start)

        self._descend(start, InvalidDictError)
        self._consume(1)  # skip 'd'
        obj = {}

        while self._peek() != TOKEN_END:
            if self._at_end():
                raise InvalidDictError("unterminated dict", offset=start)
            # keys MUST be strings
            key = self._decode_str() if key_tp is str else self._parse_string()
            obj[key] = self._decode_value(value_tp)

        self._consume(1)  # skip 'e'
        self._ascend()
        return obj

    # --------------------------
    # Records
    # --------------------------

    def _read_record(self, cls) -> dict:
        """
        Reads a dictionary against the wire names of a record.
        Returns decoded values keyed by attribute path.
        """
        start = self.i
        if self._peek() != TOKEN_DICT:
            raise InvalidStructError(offset=start)

        table = wire_table(cls)
        self._descend(start, InvalidStructError)
        self._consume(1)  # skip 'd'
        values = {}

        while self._peek() != TOKEN_END:
            if self._at_end():
                raise InvalidStructError("unterminated dict", offset=start)
            key = self._parse_string()
            try:
                path = table.get(key.decode("utf-8"))
            except UnicodeDecodeError:
                path = None

            if path is None:
                logger.debug("Skipping unknown key %r while decoding %s", key, cls.__name__)
                self.skip_value()
                continue

            values[tuple(info.name for info in path)] = self._decode_value(path[-1].type)

        self._consume(1)  # skip 'e'
        self._ascend()
        return values

    def _decode_record(self, cls):
        return _assemble_record(cls, self._read_record(cls))

    def _decode_custom(self, obj):
        start = self.i
        self.skip_value()
        raw = self.data[start:self.i]
        logger.debug("Passing %d raw bytes to %s.unmarshal_bencode", len(raw), type(obj).__name__)
        obj.unmarshal_bencode(raw)
        return obj

    @staticmethod
    def _new_target(tp):
        obj = zero_value(tp)
        if obj is None:
            raise InvalidTypeError(f"can not create an instance of {tp.__name__}")
        return obj

    def _decode_in_place(self, target):
        if target is None:
            raise InvalidValueError("target is None")

        if isinstance(target, Unmarshaler):
            return self._decode_custom(target)

        if dataclasses.is_dataclass(target):
            _ensure_settable(target)
            for path, value in self._read_record(type(target)).items():
                _set_path(target, path, value)
            return target

        if isinstance(target, list):
            target[:] = self._decode_list(Any)
            return target

        if isinstance(target, dict):
            decoded = self._decode_dict(bytes, Any)
            target.clear()
            target.update(decoded)
            return target

        if isinstance(target, bytearray):
            target[:] = self._parse_string()
            return target

        raise NonPointerError(f"can not decode into a {type(target).__name__} instance")


def _assemble_record(cls, values: dict):
    """Builds a record, and its flattened embedded records, from path-keyed values."""
    own = {}
    nested = {}
    for path, value in values.items():
        if len(path) == 1:
            own[path[0]] = value
        else:
            nested.setdefault(path[0], {})[path[1:]] = value

    hints = type_hints(cls)
    for name, sub_values in nested.items():
        inner = strip_optional(unwrap_annotated(hints[name])[0])
        own[name] = _assemble_record(inner, sub_values)
    return new_record(cls, own)


def _ensure_settable(obj):
    params = getattr(type(obj), "__dataclass_params__", None)
    if params is not None and params.frozen:
        raise CanNotSetError(f"{type(obj).__name__} is frozen")


def _set_path(obj, path, value):
    *parents, leaf = path
    for name in parents:
        child = getattr(obj, name, None)
        if child is None:
            hint = type_hints(type(obj))[name]
            child = zero_value(strip_optional(unwrap_annotated(hint)[0]))
            setattr(obj, name, child)
        _ensure_settable(child)
        obj = child
    setattr(obj, leaf, value)


def _as_bytes(data) -> bytes:
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    raise InvalidTypeError(f"data must be bytes, not {type(data).__name__}")


def decode_prefix(data: bytes, target=Any):
    """
    Decodes the first value of data into target.
    Returns (value, consumed) and leaves trailing bytes alone.
    """
    data = _as_bytes(data)
    if not data:
        raise EmptyDataError()
    decoder = BencodeDecoder(data)
    value = decoder.decode(target)
    return value, decoder.i


def unmarshal(data: bytes, target=Any):
    """
    Decodes data fully into target.

    Raises RemainingDataError if bytes are left over after one value.
    """
    value, consumed = decode_prefix(data, target)
    if consumed != len(data):
        raise RemainingDataError(offset=consumed)
    return value


def decode(data: bytes) -> BencodeType:
    """
    Convenience function to decode Bencoded data into BencodeType wrappers.
    """
    return unmarshal(data, BencodeType)
