"""PVCS descriptor protocol constants.

Single source of truth for the descriptor wire layout.
Keep this file stable. Writers and readers in every language must agree on it.
"""

# Layout: [len hex | NUL | object name | NUL | type | NUL | len hex | NUL | name | NUL]
TERMINATOR = 0x00

# Type bytes (encode always emits lowercase)
TYPE_BYTE_FILE = ord("b")
TYPE_BYTE_FOLDER = ord("t")

HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")

# Logical field names, in wire order
FIELD_OBJECT_NAME_LENGTH = "object_name_length"
FIELD_OBJECT_NAME = "object_name"
FIELD_TYPE = "type"
FIELD_NAME_LENGTH = "name_length"
FIELD_NAME = "name"

# Default safety bound on a single text field
DEFAULT_MAX_TEXT_LENGTH = 16 * 1024 * 1024  # 16 MiB

# Compiler output layout
STREAM_FILENAME = "descriptors.bin"
INDEX_FILENAME = "index.parquet"
