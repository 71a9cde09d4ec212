"""
Bencode package for encoding and decoding BitTorrent data.
"""
from .decoder import BencodeDecoder, decode, decode_prefix, unmarshal
from .encoder import encode, marshal
from .errors import *
from .errors import __all__ as _error_names
from .structure import (
    BencodeDict,
    BencodeInt,
    BencodeList,
    BencodeString,
    BencodeType,
    Int8,
    Int16,
    Int32,
    Int64,
    IntRange,
    Marshaler,
    RawValue,
    Uint8,
    Uint16,
    Uint32,
    Uint64,
    Unmarshaler,
)
from .tags import FieldInfo, bfield, resolve_fields

__all__ = [
    'decode', 'decode_prefix', 'unmarshal', 'encode', 'marshal', 'BencodeDecoder',
    'BencodeType', 'BencodeInt', 'BencodeString', 'BencodeList', 'BencodeDict',
    'IntRange', 'Int8', 'Int16', 'Int32', 'Int64', 'Uint8', 'Uint16', 'Uint32', 'Uint64',
    'Marshaler', 'Unmarshaler', 'RawValue',
    'FieldInfo', 'bfield', 'resolve_fields',
] + list(_error_names)
