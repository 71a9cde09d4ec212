"""
Error taxonomy for bencode encoding and decoding.

Every failure maps to exactly one class. All of them derive from
BencodeError, so callers that do not care about the reason can catch that.
"""


class BencodeError(ValueError):
    """Base class for all bencode errors."""

    default_message = "bencode error"

    def __init__(self, message: str = None, offset: int = None):
        self.offset = offset
        message = message or self.default_message
        if offset is not None:
            message = f"{message} (at index {offset})"
        super().__init__(message)


class EmptyDataError(BencodeError):
    default_message = "data is empty"


class NonStringKeyError(BencodeError, TypeError):
    default_message = "map key is not of type str or bytes"


class NonPointerError(BencodeError):
    default_message = "target is not a mutable location"


class CanNotSetError(BencodeError):
    default_message = "target can not be set"


class InvalidTypeError(BencodeError, TypeError):
    default_message = "type is not valid"


class InvalidValueError(BencodeError):
    default_message = "value is not valid"


class LeadingZeroError(BencodeError):
    default_message = "integer must not have leading zeros"


class LengthTooBigError(BencodeError):
    default_message = "string length would exceed length of data"


class RemainingDataError(BencodeError):
    default_message = "data was not fully consumed"


class InvalidBoolError(BencodeError):
    default_message = "unexpected value when decoding bool"


class InvalidIntegerError(BencodeError):
    default_message = "unexpected value when decoding integer"


class IntegerOverflowError(InvalidIntegerError):
    default_message = "integer does not fit the target width"


class InvalidStringError(BencodeError):
    default_message = "unexpected value when decoding string"


class InvalidListError(BencodeError):
    default_message = "unexpected value when decoding list"


class InvalidDictError(BencodeError):
    default_message = "unexpected value when decoding dict"


class InvalidStructError(BencodeError):
    default_message = "unexpected value when decoding struct"


class InvalidTokenError(BencodeError):
    default_message = "unexpected value when decoding"


__all__ = [
    "BencodeError",
    "EmptyDataError",
    "NonStringKeyError",
    "NonPointerError",
    "CanNotSetError",
    "InvalidTypeError",
    "InvalidValueError",
    "LeadingZeroError",
    "LengthTooBigError",
    "RemainingDataError",
    "InvalidBoolError",
    "InvalidIntegerError",
    "IntegerOverflowError",
    "InvalidStringError",
    "InvalidListError",
    "InvalidDictError",
    "InvalidStructError",
    "InvalidTokenError",
]
