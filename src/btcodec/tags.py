"""
Field metadata for dataclass records.

A record field is described by a tag string stored in the dataclass field
metadata under the "bencode" key:

    @dataclass
    class Info:
        name: str = ""                                   # key "name"
        piece_length: int = bfield("piece length")       # key "piece length"
        private: bool = bfield(",omitempty")             # omitted when False
        cache: dict = bfield("-", default_factory=dict)  # never on the wire

Fields created with bfield(embed=True) and no explicit name are flattened:
their own fields are merged into the parent dictionary.
"""
import collections.abc
import dataclasses
import functools
import types
import typing
from typing import Any, NamedTuple, Optional, Tuple, Union

from .constants import EMBED_KEY, OPTION_OMIT_EMPTY, TAG_KEY, TAG_SKIP
from .errors import InvalidTypeError
from .structure import IntRange

_NoneType = type(None)

_LIST_ORIGINS = (list, collections.abc.Sequence, collections.abc.MutableSequence,
                 collections.abc.Iterable, collections.abc.Collection)
_DICT_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


class FieldInfo(NamedTuple):
    """Resolved metadata of one record field."""
    name: str
    wire_name: str
    type: Any
    omit_empty: bool = False
    skip: bool = False
    embedded: bool = False

    @property
    def flatten(self) -> bool:
        return self.embedded and not self.wire_name


def bfield(tag: str = "", *, embed: bool = False, **kwargs):
    """dataclasses.field() with a bencode tag attached."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[TAG_KEY] = tag
    if embed:
        metadata[EMBED_KEY] = True
    return dataclasses.field(metadata=metadata, **kwargs)


def parse_tag(tag: str, attr_name: str, embedded: bool = False) -> Tuple[str, bool, bool]:
    """Returns (wire_name, omit_empty, skip) for a tag string."""
    if attr_name.startswith("_"):
        return "", False, True
    if not tag:
        return ("" if embedded else attr_name), False, False

    name, *options = tag.split(",")
    if name == TAG_SKIP:
        return "", False, True
    if not name and not embedded:
        name = attr_name
    return name, OPTION_OMIT_EMPTY in options, False


# --------------------------
# Type helpers
# --------------------------

def unwrap_annotated(tp) -> Tuple[Any, Optional[IntRange]]:
    """Strips typing.Annotated, returning the bare type and any IntRange marker."""
    int_range = None
    if typing.get_origin(tp) is typing.Annotated:
        for extra in tp.__metadata__:
            if isinstance(extra, IntRange):
                int_range = extra
        tp = tp.__origin__
    return tp, int_range


def _is_union(tp) -> bool:
    origin = typing.get_origin(tp)
    if origin is Union:
        return True
    union_type = getattr(types, "UnionType", None)
    return union_type is not None and isinstance(tp, union_type)


def strip_optional(tp):
    """Optional[X] -> X. Other unions raise InvalidTypeError."""
    if not _is_union(tp):
        return tp
    args = [arg for arg in typing.get_args(tp) if arg is not _NoneType]
    if len(args) != 1:
        raise InvalidTypeError(f"union {tp!r} is not supported")
    return args[0]


def is_optional(tp) -> bool:
    return _is_union(tp) and _NoneType in typing.get_args(tp)


def is_list_shape(tp) -> bool:
    return tp is list or typing.get_origin(tp) in _LIST_ORIGINS


def is_tuple_shape(tp) -> bool:
    return tp is tuple or typing.get_origin(tp) is tuple


def is_dict_shape(tp) -> bool:
    return tp is dict or typing.get_origin(tp) in _DICT_ORIGINS


def is_class(tp) -> bool:
    """A real class, not a parameterized alias such as list[int]."""
    return isinstance(tp, type) and typing.get_origin(tp) is None


def is_record(tp) -> bool:
    return is_class(tp) and dataclasses.is_dataclass(tp)


@functools.lru_cache(maxsize=None)
def type_hints(cls) -> typing.Mapping[str, Any]:
    try:
        hints = typing.get_type_hints(cls, include_extras=True)
    except NameError as exc:
        raise InvalidTypeError(f"can not resolve annotations of {cls.__name__}") from exc
    return types.MappingProxyType(hints)


def zero_value(tp):
    """The zero value of a type, used for absent and omitempty fields."""
    tp, _ = unwrap_annotated(tp)
    if tp is Any or tp is object or is_optional(tp):
        return None
    if _is_union(tp):
        raise InvalidTypeError(f"union {tp!r} is not supported")
    if is_record(tp):
        return new_record(tp)
    if is_tuple_shape(tp):
        return ()
    if is_list_shape(tp):
        return []
    if is_dict_shape(tp):
        return {}
    if is_class(tp):
        if issubclass(tp, bool):
            return False
        if issubclass(tp, int):
            return 0
        try:
            return tp()
        except TypeError:
            return None
    return None


# --------------------------
# Resolution
# --------------------------

@functools.lru_cache(maxsize=None)
def resolve_fields(cls) -> Tuple[FieldInfo, ...]:
    """Resolves the ordered field metadata of a dataclass record."""
    if not is_record(cls):
        raise InvalidTypeError(f"{cls!r} is not a dataclass")
    hints = type_hints(cls)
    resolved = []
    for f in dataclasses.fields(cls):
        embedded = bool(f.metadata.get(EMBED_KEY, False))
        wire_name, omit_empty, skip = parse_tag(f.metadata.get(TAG_KEY, ""), f.name, embedded)
        tp = hints.get(f.name, Any)
        info = FieldInfo(f.name, wire_name, tp, omit_empty, skip, embedded)
        if info.flatten and not skip and not is_record(strip_optional(unwrap_annotated(tp)[0])):
            raise InvalidTypeError(f"embedded field {cls.__name__}.{f.name} is not a dataclass")
        resolved.append(info)
    return tuple(resolved)


@functools.lru_cache(maxsize=None)
def wire_table(cls) -> typing.Mapping[str, Tuple[FieldInfo, ...]]:
    """
    Maps every wire name of a record to the path of fields that holds it.
    Flattened embedded records contribute their own names, recursively.
    """
    table = {}
    for info in resolve_fields(cls):
        if info.skip:
            continue
        if info.flatten:
            inner = strip_optional(unwrap_annotated(info.type)[0])
            for wire_name, path in wire_table(inner).items():
                table[wire_name] = (info,) + path
        else:
            table[info.wire_name] = (info,)
    return types.MappingProxyType(table)


def new_record(cls, values: dict = None):
    """
    Builds a record from attribute values. Missing fields fall back to the
    dataclass default, then to the zero value of their type.
    """
    values = values or {}
    hints = type_hints(cls)
    kwargs = {}
    late = {}
    for f in dataclasses.fields(cls):
        if f.name in values:
            value = values[f.name]
        elif f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING:
            continue
        else:
            value = zero_value(hints.get(f.name, Any))
        if f.init:
            kwargs[f.name] = value
        else:
            late[f.name] = value
    obj = cls(**kwargs)
    for name, value in late.items():
        object.__setattr__(obj, name, value)
    return obj
