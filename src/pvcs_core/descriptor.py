"""PVCS Descriptor - record type and strict stream codec.

A descriptor names a file or folder and points it at a content-addressed
object. The wire form is five NUL-terminated fields:

    <hex len> NUL <object name> NUL <type> NUL <hex len> NUL <name> NUL

Decoding is a single forward pass with no backtracking. Any rule violation
raises ``MalformedInput``; a partial descriptor is never returned.
"""
from __future__ import annotations

import errno
import io
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Iterator, NamedTuple

from pvcs_core.errors import InvalidArgument, MalformedInput
from pvcs_core.protocol import (
    TERMINATOR,
    TYPE_BYTE_FILE,
    TYPE_BYTE_FOLDER,
    HEX_DIGITS,
    FIELD_OBJECT_NAME_LENGTH,
    FIELD_OBJECT_NAME,
    FIELD_TYPE,
    FIELD_NAME_LENGTH,
    FIELD_NAME,
    DEFAULT_MAX_TEXT_LENGTH,
)


class DescriptorType(Enum):
    FILE = "file"
    FOLDER = "folder"

    @property
    def type_byte(self) -> int:
        return TYPE_BYTE_FILE if self is DescriptorType.FILE else TYPE_BYTE_FOLDER

    @classmethod
    def from_label(cls, label: str) -> "DescriptorType":
        """Accept "file"/"folder" or the wire letters b/t, in either case."""
        key = str(label).strip().lower()
        if key in ("file", "b"):
            return cls.FILE
        if key in ("folder", "t"):
            return cls.FOLDER
        raise InvalidArgument(f"Unknown descriptor type label {label!r}")


_TYPES_BY_BYTE = {
    ord("b"): DescriptorType.FILE,
    ord("B"): DescriptorType.FILE,
    ord("t"): DescriptorType.FOLDER,
    ord("T"): DescriptorType.FOLDER,
}


def _check_text(field: str, value) -> None:
    if value is None:
        raise InvalidArgument(f"{field} must not be None")
    if not isinstance(value, str):
        raise InvalidArgument(f"{field} must be str, got {type(value).__name__}")
    if not value:
        raise InvalidArgument(f"{field} must not be empty")
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidArgument(f"{field} is not encodable as UTF-8: {e}") from e


@dataclass(frozen=True)
class Descriptor:
    """Immutable (object name, type, name) triple.

    Equality and hashing cover all three fields.
    """

    object_name: str
    descriptor_type: DescriptorType
    name: str

    def __post_init__(self) -> None:
        _check_text("object_name", self.object_name)
        if not isinstance(self.descriptor_type, DescriptorType):
            raise InvalidArgument(
                f"descriptor_type must be a DescriptorType, got {self.descriptor_type!r}"
            )
        _check_text("name", self.name)

    @classmethod
    def read_from(cls, stream: BinaryIO, max_length: int | None = DEFAULT_MAX_TEXT_LENGTH) -> "Descriptor":
        return read_from(stream, max_length=max_length)

    def write_to(self, stream: BinaryIO) -> int:
        return write_to(self, stream)

    @classmethod
    def from_bytes(cls, data: bytes, max_length: int | None = DEFAULT_MAX_TEXT_LENGTH) -> "Descriptor":
        return decode(data, max_length=max_length)

    def to_bytes(self) -> bytes:
        return encode(self)

    def to_dict(self) -> dict:
        return {
            "object_name": self.object_name,
            "type": self.descriptor_type.value,
            "name": self.name,
        }


class Record(NamedTuple):
    """A descriptor together with where it sits in a descriptor stream."""

    offset: int
    length: int
    descriptor: Descriptor


class _Reader:
    """Byte reader that tracks its offset and allows one byte of lookahead."""

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self._pending: int | None = None
        self.offset = 0

    def _read(self, n: int) -> bytes:
        chunk = self._stream.read(n)
        if chunk is None:
            return b""
        if not isinstance(chunk, (bytes, bytearray, memoryview)):
            raise InvalidArgument(f"stream must be binary, read returned {type(chunk).__name__}")
        return chunk

    def at_end(self) -> bool:
        if self._pending is not None:
            return False
        chunk = self._read(1)
        if not chunk:
            return True
        self._pending = chunk[0]
        return False

    def read_byte(self, field: str) -> int:
        if self._pending is not None:
            b, self._pending = self._pending, None
        else:
            chunk = self._read(1)
            if not chunk:
                raise MalformedInput("E_UNEXPECTED_EOF", field, self.offset)
            b = chunk[0]
        self.offset += 1
        return b

    def read_exact(self, n: int, field: str) -> bytes:
        buf = bytearray()
        if n and self._pending is not None:
            buf.append(self._pending)
            self._pending = None
        # Raw and socket-backed streams may return short reads.
        while len(buf) < n:
            chunk = self._read(n - len(buf))
            if not chunk:
                raise MalformedInput(
                    "E_UNEXPECTED_EOF",
                    field,
                    self.offset + len(buf),
                    detail=f"wanted {n} bytes, got {len(buf)}",
                )
            buf += chunk
        self.offset += n
        return bytes(buf)


def _read_length(reader: _Reader, field: str, max_length: int | None) -> int:
    start = reader.offset
    value = 0
    while True:
        pos = reader.offset
        c = reader.read_byte(field)
        if c == TERMINATOR:
            break
        if c not in HEX_DIGITS:
            raise MalformedInput("E_NON_HEX_DIGIT", field, pos, detail=f"byte 0x{c:02x}")
        value = value * 16 + int(chr(c), 16)
        if max_length is not None and value > max_length:
            raise MalformedInput("E_LENGTH_LIMIT", field, start, detail=f"limit {max_length}")

    # An empty digit run also lands here as zero.
    if value == 0:
        raise MalformedInput("E_ZERO_LENGTH", field, start)
    return value


def _expect_terminator(reader: _Reader, field: str) -> None:
    pos = reader.offset
    c = reader.read_byte(field)
    if c != TERMINATOR:
        raise MalformedInput("E_BAD_TERMINATOR", field, pos, detail=f"byte 0x{c:02x}")


def _read_text(reader: _Reader, length: int, field: str) -> str:
    start = reader.offset
    data = reader.read_exact(length, field)
    _expect_terminator(reader, field)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedInput("E_BAD_UTF8", field, start + e.start) from e


def _read_type(reader: _Reader) -> DescriptorType:
    pos = reader.offset
    c = reader.read_byte(FIELD_TYPE)
    _expect_terminator(reader, FIELD_TYPE)
    try:
        return _TYPES_BY_BYTE[c]
    except KeyError:
        raise MalformedInput("E_UNKNOWN_TYPE", FIELD_TYPE, pos, detail=f"byte 0x{c:02x}") from None


def _decode(reader: _Reader, max_length: int | None) -> Descriptor:
    obj_len = _read_length(reader, FIELD_OBJECT_NAME_LENGTH, max_length)
    object_name = _read_text(reader, obj_len, FIELD_OBJECT_NAME)
    descriptor_type = _read_type(reader)
    name_len = _read_length(reader, FIELD_NAME_LENGTH, max_length)
    name = _read_text(reader, name_len, FIELD_NAME)
    return Descriptor(object_name, descriptor_type, name)


def read_from(stream: BinaryIO, max_length: int | None = DEFAULT_MAX_TEXT_LENGTH) -> Descriptor:
    """Read exactly one descriptor from a binary stream.

    Raises ``InvalidArgument`` for a missing stream and ``MalformedInput`` for
    bad bytes. Offsets in errors are relative to the stream position at call
    time. The stream position after a failure is unspecified.
    """
    if stream is None:
        raise InvalidArgument("stream must not be None")
    return _decode(_Reader(stream), max_length)


def iter_records(stream: BinaryIO, max_length: int | None = DEFAULT_MAX_TEXT_LENGTH) -> Iterator[Record]:
    """Yield back-to-back descriptors with their offsets and encoded lengths.

    End of input on a record boundary ends iteration; end of input inside a
    record raises ``MalformedInput``.
    """
    if stream is None:
        raise InvalidArgument("stream must not be None")
    reader = _Reader(stream)
    while not reader.at_end():
        start = reader.offset
        d = _decode(reader, max_length)
        yield Record(start, reader.offset - start, d)


def iter_descriptors(stream: BinaryIO, max_length: int | None = DEFAULT_MAX_TEXT_LENGTH) -> Iterator[Descriptor]:
    for rec in iter_records(stream, max_length=max_length):
        yield rec.descriptor


def decode(data: bytes, max_length: int | None = DEFAULT_MAX_TEXT_LENGTH) -> Descriptor:
    """Decode a buffer holding exactly one descriptor."""
    if data is None:
        raise InvalidArgument("data must not be None")
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise InvalidArgument(f"data must be bytes, got {type(data).__name__}")
    reader = _Reader(io.BytesIO(data))
    d = _decode(reader, max_length)
    if not reader.at_end():
        raise MalformedInput("E_TRAILING_DATA", None, reader.offset, detail=f"{len(data) - reader.offset} extra bytes")
    return d


def _encode_text(text: str) -> bytes:
    data = text.encode("utf-8")
    # Length is in bytes, lowercase hex, no leading zeros.
    return format(len(data), "x").encode("ascii") + bytes([TERMINATOR]) + data + bytes([TERMINATOR])


def encode(descriptor: Descriptor) -> bytes:
    """Return the canonical wire form of a descriptor."""
    if not isinstance(descriptor, Descriptor):
        raise InvalidArgument(f"expected Descriptor, got {type(descriptor).__name__}")
    return b"".join(
        [
            _encode_text(descriptor.object_name),
            bytes([descriptor.descriptor_type.type_byte, TERMINATOR]),
            _encode_text(descriptor.name),
        ]
    )


def write_to(descriptor: Descriptor, stream: BinaryIO) -> int:
    """Write the canonical form to a binary stream; return bytes written."""
    if stream is None:
        raise InvalidArgument("stream must not be None")
    blob = encode(descriptor)
    view = memoryview(blob)
    # Raw and socket-backed streams may accept fewer bytes than offered.
    while view:
        n = stream.write(view)
        if not n:
            # None from a non-blocking channel, or 0: nothing was accepted.
            raise BlockingIOError(
                errno.EAGAIN,
                f"stream accepted no bytes, {len(view)} of {len(blob)} unwritten",
                len(blob) - len(view),
            )
        view = view[n:]
    return len(blob)
