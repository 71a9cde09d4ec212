"""
Wire tokens and tag vocabulary shared by the encoder and decoder.
"""

# Bencode tokens
TOKEN_INTEGER = b"i"
TOKEN_LIST = b"l"
TOKEN_DICT = b"d"
TOKEN_END = b"e"
TOKEN_STRING_SEPARATOR = b":"
TOKEN_MINUS = b"-"

DIGITS = b"0123456789"

# dataclass field metadata keys
TAG_KEY = "bencode"
EMBED_KEY = "bencode_embed"

TAG_SKIP = "-"
OPTION_OMIT_EMPTY = "omitempty"

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1
UINT64_MAX = 2 ** 64 - 1

# deepest list/dict nesting the decoder accepts
MAX_DEPTH = 256
