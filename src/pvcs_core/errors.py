"""Descriptor error codes and exception types."""
from __future__ import annotations

ERRORS = {
    "E_NON_HEX_DIGIT": "Length field contains a non-hexadecimal digit",
    "E_ZERO_LENGTH": "Zero length is not permitted",
    "E_UNEXPECTED_EOF": "Unexpected end of input while reading descriptor",
    "E_BAD_TERMINATOR": "Expected null terminator, found other value",
    "E_UNKNOWN_TYPE": "Unrecognized descriptor type",
    "E_BAD_UTF8": "Text field is not valid UTF-8",
    "E_LENGTH_LIMIT": "Length field exceeds the configured limit",
    "E_TRAILING_DATA": "Unexpected bytes after descriptor",
}


class DescriptorError(ValueError):
    """Base class for every error raised by the descriptor codec."""


class InvalidArgument(DescriptorError):
    """A caller passed an argument the codec cannot accept."""


class MalformedInput(DescriptorError):
    """The input bytes are not a valid descriptor.

    ``code`` is a key of ``ERRORS``; ``field`` names the logical field being
    read and ``offset`` is the byte offset (from the start of the decode) of
    the offending byte, or of end of input.
    """

    def __init__(self, code: str, field: str | None = None, offset: int | None = None, detail: str | None = None):
        self.code = code
        self.field = field
        self.offset = offset
        self.detail = detail

        msg = ERRORS[code]
        if field is not None:
            msg += f" ({field}"
            if offset is not None:
                msg += f" at offset {offset}"
            msg += ")"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)

    def to_dict(self) -> dict:
        out = {"code": self.code, "message": ERRORS[self.code]}
        if self.field is not None:
            out["field"] = self.field
        if self.offset is not None:
            out["offset"] = self.offset
        if self.detail:
            out["detail"] = self.detail
        return out
