"""PVCS Core - Descriptor record and wire codec."""
from .descriptor import (
    Descriptor,
    DescriptorType,
    Record,
    read_from,
    write_to,
    encode,
    decode,
    iter_records,
    iter_descriptors,
)
from .errors import ERRORS, DescriptorError, InvalidArgument, MalformedInput

__all__ = [
    "Descriptor",
    "DescriptorType",
    "Record",
    "read_from",
    "write_to",
    "encode",
    "decode",
    "iter_records",
    "iter_descriptors",
    "ERRORS",
    "DescriptorError",
    "InvalidArgument",
    "MalformedInput",
]
