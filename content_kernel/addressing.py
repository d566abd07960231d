"""
Content Kernel — Address Derivation

Deterministic, collision-resistant storage keys. Pure functions, no state.

Rules:
  - SHA-256 over ADDRESS_DOMAIN, then the namespace tag, then each part
  - Tag and every part are framed by a 4-byte big-endian length prefix
  - Identities and content ids enter as their fixed 32 raw bytes
  - The variable-width title is the last part of a content derivation

Framing every part removes any boundary ambiguity between a part and
its neighbour, so (owner, "ab") and (owner + "a", "b") can never meet.
"""

from __future__ import annotations

import hashlib
import logging
import struct
from typing import Sequence

from .constants import CONTENT_NAMESPACE, LIKE_NAMESPACE, SAVE_NAMESPACE
from .domain_types import Address, Identity

logger = logging.getLogger(__name__)

ADDRESS_DOMAIN: bytes = b"content-kernel/address/v1"


def derive_address(namespace: bytes, parts: Sequence[bytes]) -> Address:
    """
    Derive the address for ``namespace`` + ordered ``parts``.
    Lowercase hex SHA-256 digest (32 bytes).
    """
    h = hashlib.sha256(ADDRESS_DOMAIN)
    h.update(_frame(namespace))
    for part in parts:
        h.update(_frame(part))
    return h.hexdigest()


def _frame(part: bytes) -> bytes:
    return struct.pack(">I", len(part)) + part


def content_address(owner: Identity, title: str) -> Address:
    """Slot of the content record ``owner`` created under ``title``."""
    address = derive_address(
        CONTENT_NAMESPACE, [bytes.fromhex(owner), title.encode("utf-8")],
    )
    logger.debug("Derived content address %s for owner %s", address, owner)
    return address


def like_address(actor: Identity, content_id: Address) -> Address:
    """Slot of ``actor``'s like flag on ``content_id``."""
    return derive_address(
        LIKE_NAMESPACE, [bytes.fromhex(actor), bytes.fromhex(content_id)],
    )


def save_address(actor: Identity, content_id: Address) -> Address:
    """Slot of ``actor``'s save flag on ``content_id``."""
    return derive_address(
        SAVE_NAMESPACE, [bytes.fromhex(actor), bytes.fromhex(content_id)],
    )
