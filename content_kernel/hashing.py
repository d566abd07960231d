"""
Content Kernel — Canonical Hashing

Deterministic canonical serialization + SHA-256 hashing of the slot
store. Produces byte-identical output across platforms.

Rules:
  - Slots sorted by address (lowercase hex)
  - Fixed field order per slot: address, kind, payer, deposit, data
  - data rendered as lowercase hex
  - UTF-8 JSON, no whitespace, no float

Used for replay verification only. It is not a listing API.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, List

from .store import SlotStore


def canonical_serialize(store: SlotStore) -> bytes:
    """
    Canonical serialization of a SlotStore to UTF-8 JSON bytes.
    No whitespace. No float. Deterministic field order.
    """
    obj = _build_canonical_dict(store)
    return json.dumps(obj, ensure_ascii=True, separators=(",", ":"), sort_keys=False).encode("utf-8")


def canonical_hash(store: SlotStore) -> str:
    """SHA-256 of canonical serialization. Lowercase hex string."""
    return hashlib.sha256(canonical_serialize(store)).hexdigest()


def _build_canonical_dict(store: SlotStore) -> Dict[str, Any]:
    slots: List[Dict[str, Any]] = []
    for slot in store.slots_in_address_order():
        slots.append({
            "address": slot.address,
            "kind": slot.kind,
            "payer": slot.payer,
            "deposit": slot.deposit,
            "data": slot.data.hex(),
        })
    return {
        "kernel_version": 1,
        "slots": slots,
    }
