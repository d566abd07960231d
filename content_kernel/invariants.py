"""
Content Kernel — Slot Invariant Checks

Hard-fail validation of every slot a transaction stages, run before the
transaction commits. Each check raises InvariantViolationError.
"""

from __future__ import annotations

from .domain_types import ContentRecord, RentSchedule, Slot
from .errors import InvariantViolationError
from .layout import LayoutError, decode_record, required_capacity


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def validate_slot(slot: Slot, rent: RentSchedule) -> None:
    """
    Run all slot checks. Raises InvariantViolationError on the first
    failure.
    """
    record = _check_decodes(slot)
    _check_capacity(slot, record)
    _check_deposit(slot, rent)
    _check_payer(slot, record)


# ---------------------------------------------------------------------------
# Individual checks (private)
# ---------------------------------------------------------------------------

def _check_decodes(slot: Slot):
    """Slot data must decode as the slot's own kind."""
    try:
        return decode_record(slot.kind, slot.data)
    except LayoutError as exc:
        raise InvariantViolationError(
            "layout", f"Slot {slot.address} does not decode: {exc}"
        ) from exc


def _check_capacity(slot: Slot, record) -> None:
    """Allocated capacity must equal the record's required capacity."""
    needed = required_capacity(record)
    if slot.capacity != needed:
        raise InvariantViolationError(
            "capacity",
            f"Slot {slot.address} holds {slot.capacity} bytes, "
            f"record requires {needed}"
        )


def _check_deposit(slot: Slot, rent: RentSchedule) -> None:
    """Deposit must cover exactly the slot's capacity."""
    expected = rent.deposit_for(slot.capacity)
    if slot.deposit != expected:
        raise InvariantViolationError(
            "deposit",
            f"Slot {slot.address} deposit={slot.deposit}, expected {expected}"
        )


def _check_payer(slot: Slot, record) -> None:
    """The payer is the content owner or the interacting actor."""
    holder = record.owner if isinstance(record, ContentRecord) else record.actor
    if holder != slot.payer:
        raise InvariantViolationError(
            "payer",
            f"Slot {slot.address} paid by {slot.payer} but held by {holder}"
        )
