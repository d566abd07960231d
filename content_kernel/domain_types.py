"""
Content Kernel — Core Domain Types

Pure data. No behaviour, no transition logic.
Counters are u64 with saturating arithmetic. Timestamps are unix seconds.

────────────────────────────────────────────────
DOMAIN GLOSSARY
────────────────────────────────────────────────

Derived address:
    Storage location computed deterministically from fixed inputs.
    Replaces an index or auto-increment key.

Authority:
    The identity permitted to perform an owner-restricted operation
    (content deletion).

Toggle flag:
    Boolean relationship between an actor and a target that flips on
    every repeated interaction instead of being deleted and recreated.

Saturating arithmetic:
    Increment/decrement that clamps at the numeric bounds.

────────────────────────────────────────────────
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from .constants import (
    EXEMPTION_YEARS,
    UNITS_PER_BYTE_YEAR,
    STORAGE_OVERHEAD_BYTES,
    U64_MAX,
)
from .errors import ValidationError


# ── Identity / Address ────────────────────────────────────────
# Both are 32-byte values carried as 64-char lowercase hex.
Identity = str
Address = str

HEX32_PATTERN = re.compile(r'^[0-9a-f]{64}$')


def validate_hex32(value: object, field: str) -> None:
    """Validate a 32-byte lowercase hex token. Hard fail."""
    if not isinstance(value, str) or not HEX32_PATTERN.match(value):
        raise ValidationError(field, "64 lowercase hex characters", value)


# ── Record kinds ──────────────────────────────────────────────
KIND_CONTENT: str = "content"
KIND_LIKE: str = "like"
KIND_SAVE: str = "save"

# ── Visibility ────────────────────────────────────────────────
VISIBILITY_PUBLIC: str = "public"
VISIBILITY_PRIVATE: str = "private"
VISIBILITIES: Tuple[str, ...] = (VISIBILITY_PUBLIC, VISIBILITY_PRIVATE)


# ── Saturating Arithmetic ─────────────────────────────────────

def saturating_add(a: int, b: int) -> int:
    """u64 addition clamped to U64_MAX."""
    return min(a + b, U64_MAX)


def saturating_sub(a: int, b: int) -> int:
    """u64 subtraction clamped to zero."""
    return max(a - b, 0)


# ── Records ───────────────────────────────────────────────────

@dataclass(frozen=True)
class ContentRecord:
    """One published item. Immutable except interaction_count."""

    title: str
    body: str
    visibility: str  # public | private
    owner: Identity
    interaction_count: int = 0
    created_at: int = 0

    @property
    def is_public(self) -> bool:
        return self.visibility == VISIBILITY_PUBLIC


@dataclass(frozen=True)
class LikeFlag:
    """One actor's like relationship to one content record."""

    actor: Identity
    target: Address
    active: bool = False


@dataclass(frozen=True)
class SaveFlag:
    """One actor's saved-for-later relationship to one content record."""

    actor: Identity
    target: Address
    active: bool = False
    saved_at: int = 0  # last Inactive -> Active time, never cleared


class FlagStatus(enum.Enum):
    """Resolved state of a toggle slot before the transition."""

    NOT_PRESENT = "not_present"
    INACTIVE = "inactive"
    ACTIVE = "active"


# ── Storage ───────────────────────────────────────────────────

@dataclass(frozen=True)
class Slot:
    """
    One allocated storage slot.

    ``data`` is the fixed-layout encoding of the record; its length is
    the capacity the slot was sized for. ``deposit`` is what ``payer``
    locked at allocation and gets back when the slot is closed.
    """

    address: Address
    kind: str
    payer: Identity
    data: bytes
    deposit: int

    @property
    def capacity(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class RentSchedule:
    """
    Storage deposit parameters, injected into the engine.
    deposit = (storage_overhead + capacity) * units_per_byte_year * exemption_years
    """

    storage_overhead: int = STORAGE_OVERHEAD_BYTES
    units_per_byte_year: int = UNITS_PER_BYTE_YEAR
    exemption_years: int = EXEMPTION_YEARS

    def deposit_for(self, capacity: int) -> int:
        return (
            (self.storage_overhead + capacity)
            * self.units_per_byte_year
            * self.exemption_years
        )


@dataclass(frozen=True)
class Refund:
    """Deposit the host must return to ``recipient`` after a close."""

    recipient: Identity
    amount: int


@dataclass(frozen=True)
class TransitionResult:
    """
    Structured, immutable outcome of an accepted command.

    ``events`` are the notifications the transition produced, in order.
    """

    command_type: str = ""
    address: Address = ""
    events: Tuple[object, ...] = ()
    allocated: bool = False
    active: Optional[bool] = None
    interaction_count: Optional[int] = None
    refund: Optional[Refund] = None
    duplicate: bool = False
