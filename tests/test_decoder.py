from typing import Any, Dict, List, Optional, Tuple, Union

import pytest

from btcodec import (
    BencodeDict,
    BencodeInt,
    CanNotSetError,
    EmptyDataError,
    IntegerOverflowError,
    InvalidDictError,
    InvalidIntegerError,
    InvalidListError,
    InvalidStringError,
    InvalidTokenError,
    InvalidTypeError,
    InvalidValueError,
    LeadingZeroError,
    LengthTooBigError,
    NonPointerError,
    NonStringKeyError,
    RemainingDataError,
    Uint8,
    Uint32,
    Uint64,
    decode,
    decode_prefix,
    marshal,
    unmarshal,
)


def test_decode_native_values():
    assert unmarshal(b"i42e") == 42
    assert unmarshal(b"i-42e") == -42
    assert unmarshal(b"i0e") == 0
    assert unmarshal(b"4:spam") == b"spam"
    assert unmarshal(b"l4:spam4:eggse") == [b"spam", b"eggs"]
    assert unmarshal(b"d3:cow3:moo4:spam4:eggse") == {b"cow": b"moo", b"spam": b"eggs"}
    assert unmarshal(b"d4:dictd3:key5:valueee", object) == {b"dict": {b"key": b"value"}}


def test_decode_heterogeneous_list():
    assert unmarshal(b"li1e1:ald1:ai2eeleee") == [1, b"a", {b"a": 2}, []]


def test_decode_deep_list():
    assert unmarshal(b"llll1:xeeee") == [[[[b"x"]]]]


@pytest.mark.parametrize("data, error", [
    (b"", EmptyDataError),
    (b"i01e", LeadingZeroError),
    (b"i-01e", LeadingZeroError),
    (b"i00e", LeadingZeroError),
    (b"i-0e", InvalidIntegerError),
    (b"ie", EmptyDataError),
    (b"i-e", InvalidIntegerError),
    (b"i12", InvalidIntegerError),
    (b"i1x2e", InvalidIntegerError),
    (b"i+1e", InvalidIntegerError),
    (b"i 1e", InvalidIntegerError),
    (b"5:ab", LengthTooBigError),
    (b"1:", LengthTooBigError),
    (b"03:abc", LeadingZeroError),
    (b"3abc", InvalidStringError),
    (b"99999999999999999999:a", LengthTooBigError),
    (b"i3e ", RemainingDataError),
    (b"4:spamx", RemainingDataError),
    (b"l", InvalidListError),
    (b"li1e", InvalidListError),
    (b"d", InvalidDictError),
    (b"d3:foo", EmptyDataError),
    (b"d3:fooi1e", InvalidDictError),
    (b"di1ei2ee", InvalidStringError),
    (b"x", InvalidTokenError),
    (b"e", InvalidTokenError),
    (b"lxe", InvalidTokenError),
])
def test_rejects_malformed_input(data, error):
    with pytest.raises(error):
        unmarshal(data)


def test_rejects_malformed_input_into_wrappers():
    with pytest.raises(LeadingZeroError):
        decode(b"li01ee")
    with pytest.raises(RemainingDataError):
        decode(b"dei0e")


def test_error_reports_offset():
    with pytest.raises(LeadingZeroError) as excinfo:
        unmarshal(b"li1ei01ee")
    assert excinfo.value.offset == 4

    with pytest.raises(RemainingDataError) as excinfo:
        unmarshal(b"i3e ")
    assert excinfo.value.offset == 3


def test_huge_integer_is_overflow():
    with pytest.raises(IntegerOverflowError):
        unmarshal(b"i" + b"1" * 5000 + b"e")


def test_overflow_is_an_integer_error():
    with pytest.raises(InvalidIntegerError):
        unmarshal(b"i18446744073709551616e")


def test_unsorted_dict_is_accepted_and_resorted():
    data = b"d3:foo3:bar1:xi1ee"
    value = unmarshal(data)
    assert value == {b"foo": b"bar", b"x": 1}
    assert marshal(value) == b"d1:xi1e3:foo3:bare"


def test_duplicate_key_last_wins():
    assert unmarshal(b"d1:ai1e1:ai2ee") == {b"a": 2}


def test_decode_prefix_leaves_trailing_data():
    value, consumed = decode_prefix(b"i3e4:spam")
    assert value == 3
    assert consumed == 3


def test_signed_64_bit_bounds():
    assert unmarshal(b"i9223372036854775807e", int) == 2 ** 63 - 1
    assert unmarshal(b"i-9223372036854775808e", int) == -(2 ** 63)
    with pytest.raises(IntegerOverflowError):
        unmarshal(b"i9223372036854775808e", int)
    with pytest.raises(IntegerOverflowError):
        unmarshal(b"i-9223372036854775809e", int)


def test_unsigned_widths():
    assert unmarshal(b"i18446744073709551615e", Uint64) == 2 ** 64 - 1
    assert unmarshal(b"i255e", Uint8) == 255
    with pytest.raises(IntegerOverflowError):
        unmarshal(b"i256e", Uint8)
    with pytest.raises(IntegerOverflowError):
        unmarshal(b"i-1e", Uint32)


def test_dynamic_target_accepts_both_64_bit_ranges():
    assert unmarshal(b"i18446744073709551615e") == 2 ** 64 - 1
    assert unmarshal(b"i-9223372036854775808e") == -(2 ** 63)


def test_bool_target():
    assert unmarshal(b"i1e", bool) is True
    assert unmarshal(b"i0e", bool) is False


def test_typed_containers():
    assert unmarshal(b"l1:a1:be", List[str]) == ["a", "b"]
    assert unmarshal(b"d1:ai1e1:bi2ee", Dict[str, int]) == {"a": 1, "b": 2}
    assert unmarshal(b"d1:ali1eee", Dict[bytes, List[int]]) == {b"a": [1]}
    assert unmarshal(b"li1e1:xe", Tuple[int, str]) == (1, "x")
    assert unmarshal(b"li1ei2ee", Tuple[int, ...]) == (1, 2)
    assert unmarshal(b"i5e", Optional[int]) == 5
    assert unmarshal(b"3:abc", bytearray) == bytearray(b"abc")


def test_fixed_tuple_length_mismatch():
    with pytest.raises(InvalidListError):
        unmarshal(b"li1ee", Tuple[int, str])
    with pytest.raises(InvalidListError):
        unmarshal(b"li1e1:x1:ye", Tuple[int, str])


def test_typed_container_grammar_mismatch():
    with pytest.raises(InvalidListError):
        unmarshal(b"i1e", List[int])
    with pytest.raises(InvalidDictError):
        unmarshal(b"le", Dict[str, int])
    with pytest.raises(InvalidIntegerError):
        unmarshal(b"1:a", int)
    with pytest.raises(InvalidStringError):
        unmarshal(b"i1e", str)


def test_str_target_requires_utf8():
    assert unmarshal(b"2:\xc3\xa9", str) == "é"
    with pytest.raises(InvalidStringError):
        unmarshal(b"1:\xff", str)


def test_non_string_key_target():
    with pytest.raises(NonStringKeyError):
        unmarshal(b"de", Dict[int, int])


@pytest.mark.parametrize("target", [float, complex, Union[int, str], set])
def test_unsupported_targets(target):
    with pytest.raises(InvalidTypeError):
        unmarshal(b"i1e", target)


def test_in_place_containers():
    items = [b"old"]
    assert unmarshal(b"li1ei2ee", items) is items
    assert items == [1, 2]

    mapping = {b"stale": 1}
    assert unmarshal(b"d1:ai1ee", mapping) is mapping
    assert mapping == {b"a": 1}


def test_immutable_targets():
    with pytest.raises(NonPointerError):
        unmarshal(b"i1e", 5)
    with pytest.raises(NonPointerError):
        unmarshal(b"1:a", "x")
    with pytest.raises(InvalidValueError):
        unmarshal(b"i1e", None)


def test_data_must_be_bytes():
    with pytest.raises(InvalidTypeError):
        unmarshal("i1e")
    assert unmarshal(bytearray(b"i1e")) == 1
    assert unmarshal(memoryview(b"i1e")) == 1


def test_nesting_limit():
    with pytest.raises(InvalidListError):
        unmarshal(b"l" * 300 + b"e" * 300)


def test_wrapper_targets():
    assert decode(b"d1:ai1ee") == BencodeDict({b"a": BencodeInt(1)})
    assert unmarshal(b"i7e", BencodeInt) == BencodeInt(7)
    assert unmarshal(b"li1ee", Any) == [1]


def test_frozen_error_is_a_bencode_error():
    assert issubclass(CanNotSetError, ValueError)
