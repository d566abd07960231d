"""
Content Kernel — Fixed-Layout Record Schema

Byte-exact layout, capacity sizing and field validation for every
record kind. Little-endian, fields in declaration order:

  content : disc(8) u32 title_len title u32 body_len body
            u8 visibility owner(32) u64 interaction_count i64 created_at
  like    : disc(8) actor(32) target(32) u8 active
  save    : disc(8) actor(32) target(32) u8 active i64 saved_at

Rules:
  - Capacity is sized from the text lengths actually supplied,
    never from the maxima.
  - Validation runs before any allocation; a rejected field never
    reaches storage.
  - Decoders are strict: wrong discriminator, truncation or trailing
    bytes all raise LayoutError.
"""

from __future__ import annotations

import hashlib
import struct
from typing import Dict, Tuple, Union

from .constants import (
    BODY_MAX_BYTES,
    BODY_MIN_BYTES,
    COUNTER_SIZE,
    DISCRIMINATOR_SIZE,
    FLAG_SIZE,
    IDENTITY_SIZE,
    LENGTH_PREFIX_SIZE,
    TIMESTAMP_SIZE,
    TITLE_MAX_BYTES,
    TITLE_MIN_BYTES,
)
from .domain_types import (
    KIND_CONTENT,
    KIND_LIKE,
    KIND_SAVE,
    VISIBILITIES,
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
    ContentRecord,
    LikeFlag,
    SaveFlag,
)
from .errors import ValidationError

Record = Union[ContentRecord, LikeFlag, SaveFlag]


class LayoutError(Exception):
    """Raised when a buffer does not decode as the expected record kind."""


# ══════════════════════════════════════════════════════════════
# Discriminators + capacities
# ══════════════════════════════════════════════════════════════

def discriminator(kind: str) -> bytes:
    """First 8 bytes of sha256("record:<kind>")."""
    return hashlib.sha256(f"record:{kind}".encode("ascii")).digest()[:DISCRIMINATOR_SIZE]


_DISCRIMINATORS: Dict[str, bytes] = {
    kind: discriminator(kind) for kind in (KIND_CONTENT, KIND_LIKE, KIND_SAVE)
}

_VISIBILITY_CODES: Dict[str, int] = {VISIBILITY_PUBLIC: 0, VISIBILITY_PRIVATE: 1}
_VISIBILITY_NAMES: Dict[int, str] = {v: k for k, v in _VISIBILITY_CODES.items()}

CONTENT_FIXED_CAPACITY: int = (
    DISCRIMINATOR_SIZE
    + LENGTH_PREFIX_SIZE          # title length
    + LENGTH_PREFIX_SIZE          # body length
    + FLAG_SIZE                   # visibility
    + IDENTITY_SIZE               # owner
    + COUNTER_SIZE                # interaction_count
    + TIMESTAMP_SIZE              # created_at
)

LIKE_CAPACITY: int = DISCRIMINATOR_SIZE + IDENTITY_SIZE + IDENTITY_SIZE + FLAG_SIZE

SAVE_CAPACITY: int = LIKE_CAPACITY + TIMESTAMP_SIZE


def content_capacity(title_len: int, body_len: int) -> int:
    """Bytes needed for a content record with these text byte lengths."""
    return CONTENT_FIXED_CAPACITY + title_len + body_len


def required_capacity(record: Record) -> int:
    if isinstance(record, ContentRecord):
        return content_capacity(
            len(record.title.encode("utf-8")), len(record.body.encode("utf-8")),
        )
    if isinstance(record, LikeFlag):
        return LIKE_CAPACITY
    if isinstance(record, SaveFlag):
        return SAVE_CAPACITY
    raise TypeError(f"Unknown record type: {type(record).__name__}")


# ══════════════════════════════════════════════════════════════
# Validation
# ══════════════════════════════════════════════════════════════

def validate_content_fields(
    title: object, body: object, visibility: object,
) -> Tuple[bytes, bytes]:
    """
    Check title/body/visibility against their bounds.
    Returns the UTF-8 encoded (title, body). Raises ValidationError.
    """
    title_bytes = _validate_text("title", title, TITLE_MIN_BYTES, TITLE_MAX_BYTES)
    body_bytes = _validate_text("body", body, BODY_MIN_BYTES, BODY_MAX_BYTES)
    if visibility not in VISIBILITIES:
        raise ValidationError("visibility", f"one of {list(VISIBILITIES)}", visibility)
    return title_bytes, body_bytes


def _validate_text(field: str, value: object, lo: int, hi: int) -> bytes:
    if not isinstance(value, str):
        raise ValidationError(field, "text", value)
    encoded = value.encode("utf-8")
    if not lo <= len(encoded) <= hi:
        raise ValidationError(
            field, f"{lo}..{hi} bytes", f"{len(encoded)} bytes",
        )
    return encoded


# ══════════════════════════════════════════════════════════════
# Encoders
# ══════════════════════════════════════════════════════════════

def encode_record(record: Record) -> bytes:
    """Encode any record kind into its fixed layout."""
    if isinstance(record, ContentRecord):
        data = _encode_content(record)
    elif isinstance(record, LikeFlag):
        data = _encode_like(record)
    elif isinstance(record, SaveFlag):
        data = _encode_save(record)
    else:
        raise TypeError(f"Unknown record type: {type(record).__name__}")
    return data


def _encode_content(record: ContentRecord) -> bytes:
    title = record.title.encode("utf-8")
    body = record.body.encode("utf-8")
    return b"".join((
        _DISCRIMINATORS[KIND_CONTENT],
        struct.pack("<I", len(title)), title,
        struct.pack("<I", len(body)), body,
        struct.pack("<B", _VISIBILITY_CODES[record.visibility]),
        bytes.fromhex(record.owner),
        struct.pack("<Qq", record.interaction_count, record.created_at),
    ))


def _encode_like(flag: LikeFlag) -> bytes:
    return b"".join((
        _DISCRIMINATORS[KIND_LIKE],
        bytes.fromhex(flag.actor),
        bytes.fromhex(flag.target),
        struct.pack("<?", flag.active),
    ))


def _encode_save(flag: SaveFlag) -> bytes:
    return b"".join((
        _DISCRIMINATORS[KIND_SAVE],
        bytes.fromhex(flag.actor),
        bytes.fromhex(flag.target),
        struct.pack("<?q", flag.active, flag.saved_at),
    ))


# ══════════════════════════════════════════════════════════════
# Decoders
# ══════════════════════════════════════════════════════════════

def decode_record(kind: str, data: bytes) -> Record:
    """Decode ``data`` as ``kind``. Raises LayoutError."""
    decoder = _DECODERS.get(kind)
    if decoder is None:
        raise LayoutError(f"Unknown record kind {kind!r}")
    _check_discriminator(kind, data)
    try:
        return decoder(data)
    except (struct.error, UnicodeDecodeError, KeyError) as exc:
        raise LayoutError(f"Malformed {kind} record: {exc}") from exc


def _check_discriminator(kind: str, data: bytes) -> None:
    if data[:DISCRIMINATOR_SIZE] != _DISCRIMINATORS[kind]:
        raise LayoutError(f"Buffer is not a {kind} record (discriminator mismatch)")


def _decode_content(data: bytes) -> ContentRecord:
    offset = DISCRIMINATOR_SIZE
    title, offset = _read_text(data, offset)
    body, offset = _read_text(data, offset)
    (vis_code,) = struct.unpack_from("<B", data, offset)
    offset += FLAG_SIZE
    owner, offset = _read_key(data, offset)
    count, created_at = struct.unpack_from("<Qq", data, offset)
    offset += COUNTER_SIZE + TIMESTAMP_SIZE
    _check_exhausted(data, offset)
    return ContentRecord(
        title=title,
        body=body,
        visibility=_VISIBILITY_NAMES[vis_code],
        owner=owner,
        interaction_count=count,
        created_at=created_at,
    )


def _decode_like(data: bytes) -> LikeFlag:
    offset = DISCRIMINATOR_SIZE
    actor, offset = _read_key(data, offset)
    target, offset = _read_key(data, offset)
    (active,) = struct.unpack_from("<?", data, offset)
    _check_exhausted(data, offset + FLAG_SIZE)
    return LikeFlag(actor=actor, target=target, active=active)


def _decode_save(data: bytes) -> SaveFlag:
    offset = DISCRIMINATOR_SIZE
    actor, offset = _read_key(data, offset)
    target, offset = _read_key(data, offset)
    active, saved_at = struct.unpack_from("<?q", data, offset)
    _check_exhausted(data, offset + FLAG_SIZE + TIMESTAMP_SIZE)
    return SaveFlag(actor=actor, target=target, active=active, saved_at=saved_at)


_DECODERS = {
    KIND_CONTENT: _decode_content,
    KIND_LIKE: _decode_like,
    KIND_SAVE: _decode_save,
}


def _read_text(data: bytes, offset: int) -> Tuple[str, int]:
    (length,) = struct.unpack_from("<I", data, offset)
    start = offset + LENGTH_PREFIX_SIZE
    end = start + length
    if end > len(data):
        raise LayoutError(f"Text field of {length} bytes overruns buffer")
    return data[start:end].decode("utf-8"), end


def _read_key(data: bytes, offset: int) -> Tuple[str, int]:
    end = offset + IDENTITY_SIZE
    if end > len(data):
        raise LayoutError("32-byte key overruns buffer")
    return data[offset:end].hex(), end


def _check_exhausted(data: bytes, offset: int) -> None:
    if offset != len(data):
        raise LayoutError(
            f"Layout consumed {offset} of {len(data)} bytes"
        )
