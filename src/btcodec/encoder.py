"""
Bencode encoder for BitTorrent metainfo and tracker responses.

Dictionary keys are emitted shortest first, and keys of equal length in
byte order. The same logical dictionary always encodes to the same bytes.
"""
import dataclasses
import logging
from collections.abc import Mapping
from typing import Iterable, List, Tuple

from .constants import (
    INT64_MIN,
    TOKEN_DICT,
    TOKEN_END,
    TOKEN_INTEGER,
    TOKEN_LIST,
    TOKEN_STRING_SEPARATOR,
    UINT64_MAX,
)
from .errors import InvalidTypeError, InvalidValueError, NonStringKeyError
from .structure import BencodeDict, BencodeInt, BencodeList, BencodeString, Marshaler
from .tags import resolve_fields, zero_value

logger = logging.getLogger(__name__)


def encode(obj) -> bytes:
    """Encodes a Python object or BencodeType into bencoded bytes."""

    if isinstance(obj, Marshaler) and not isinstance(obj, type):
        return encode_custom(obj)

    obj = normalize(obj)

    if isinstance(obj, int):
        return encode_int(obj)

    if isinstance(obj, bytes):
        return encode_bytes(obj)

    if isinstance(obj, str):
        return encode_str(obj)

    if isinstance(obj, (list, tuple)):
        return encode_list(obj)

    if isinstance(obj, Mapping):
        return encode_dict(obj)

    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return encode_pairs(record_pairs(obj))

    raise InvalidTypeError(f"Cannot bencode object of type {type(obj).__name__}")


marshal = encode


def normalize(obj):
    """Collapses primitive-like values onto int, bytes, list and dict."""
    if isinstance(obj, bool):
        return 1 if obj else 0
    if isinstance(obj, int) and type(obj) is not int:
        return int(obj)
    if isinstance(obj, (bytearray, memoryview)):
        return bytes(obj)
    if isinstance(obj, (BencodeInt, BencodeString, BencodeList, BencodeDict)):
        return obj.value
    return obj


# ------------------------------------------------------------
#   Encoding primitives
# ------------------------------------------------------------

def encode_int(n: int) -> bytes:
    """Encodes an integer to bencoded bytes (e.g., i123e)."""
    if not INT64_MIN <= n <= UINT64_MAX:
        raise InvalidValueError(f"integer {n} does not fit in 64 bits")
    return TOKEN_INTEGER + str(n).encode() + TOKEN_END


def encode_bytes(b: bytes) -> bytes:
    """Encodes bytes to bencoded bytes (e.g., 4:spam)."""
    return str(len(b)).encode() + TOKEN_STRING_SEPARATOR + b


def encode_str(s: str) -> bytes:
    """Encodes a string to bencoded bytes (e.g., 4:spam)."""
    return encode_bytes(s.encode())


def encode_list(lst: Iterable) -> bytes:
    """Encodes a list to bencoded bytes (e.g., l4:spame)."""
    encoded_items = b"".join(encode(x) for x in lst)
    return TOKEN_LIST + encoded_items + TOKEN_END


def encode_dict(d: Mapping) -> bytes:
    """Encodes a dictionary to bencoded bytes (e.g., d3:cow3:moo4:spam4:eggse)."""
    pairs = [(key_to_bytes(k), v) for k, v in d.items()]
    if len({key for key, _ in pairs}) != len(pairs):
        raise InvalidValueError("dict has keys that encode to the same bytes")
    return encode_pairs(pairs)


def encode_custom(obj) -> bytes:
    data = obj.marshal_bencode()
    if not isinstance(data, (bytes, bytearray)):
        raise InvalidValueError(
            f"{type(obj).__name__}.marshal_bencode returned {type(data).__name__}, not bytes")
    logger.debug("Using %s.marshal_bencode (%d bytes)", type(obj).__name__, len(data))
    return bytes(data)


# ------------------------------------------------------------
#   Dictionaries and records
# ------------------------------------------------------------

def key_to_bytes(k) -> bytes:
    if isinstance(k, BencodeString):
        return k.value
    if isinstance(k, (bytes, bytearray)):
        return bytes(k)
    if isinstance(k, str):
        return k.encode()
    raise NonStringKeyError(f"dict key {k!r} is not str or bytes")


def sort_key(key: bytes) -> Tuple[int, bytes]:
    """Shorter keys first, equal lengths in byte order."""
    return len(key), key


def encode_pairs(pairs: Iterable[Tuple[bytes, object]]) -> bytes:
    """Sorts (key, value) pairs and encodes them as a dictionary."""
    # later pairs with the same key win (flattened record fields)
    merged = dict(pairs)
    result = [TOKEN_DICT]

    for key in sorted(merged, key=sort_key):
        result.append(encode_bytes(key))
        result.append(encode(merged[key]))

    result.append(TOKEN_END)
    return b"".join(result)


def record_pairs(obj) -> List[Tuple[bytes, object]]:
    """
    Collects the (wire name, value) pairs of a dataclass record.

    Skipped fields are left out, omitempty fields are left out when they hold
    the zero value of their type, and embedded records without a name of
    their own are flattened into the parent.
    """
    pairs = []
    for info in resolve_fields(type(obj)):
        if info.skip:
            continue
        value = getattr(obj, info.name)
        if info.omit_empty and value == zero_value(info.type):
            continue
        if info.flatten:
            if value is None:
                continue
            if isinstance(value, Marshaler):
                raise InvalidTypeError(
                    f"embedded field {info.name} defines marshal_bencode and can not be flattened")
            pairs.extend(record_pairs(value))
        else:
            pairs.append((info.wire_name.encode(), value))
    return pairs
