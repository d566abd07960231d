"""
Content Kernel — Addressable Slot Store

An arena of slots keyed by derived address. Access is by exact address
only; there is no listing or range API.

All mutation goes through a StoreTransaction, which buffers writes and
applies them in one step on commit. A transaction that raises before
commit leaves the store untouched.
"""

from __future__ import annotations

import contextlib
import dataclasses
from typing import Dict, Iterator, List, Optional

from .domain_types import Address, Identity, RentSchedule, Slot
from .errors import AlreadyExistsError, NotFoundError
from .invariants import validate_slot


class SlotStore:
    """Mapping of derived address -> Slot."""

    def __init__(self) -> None:
        self._slots: Dict[Address, Slot] = {}

    def get(self, address: Address) -> Optional[Slot]:
        return self._slots.get(address)

    def __contains__(self, address: object) -> bool:
        return address in self._slots

    def __len__(self) -> int:
        return len(self._slots)

    def slots_in_address_order(self) -> List[Slot]:
        """All slots sorted by address. For canonical hashing only."""
        return [self._slots[a] for a in sorted(self._slots)]

    @contextlib.contextmanager
    def transaction(self, rent: RentSchedule) -> Iterator["StoreTransaction"]:
        """
        Yield a transaction; commit it if the block exits normally.
        Any exception discards every staged write.
        """
        txn = StoreTransaction(self, rent)
        yield txn
        txn.commit()

    def _apply(self, writes: Dict[Address, Optional[Slot]]) -> None:
        for address, slot in writes.items():
            if slot is None:
                self._slots.pop(address, None)
            else:
                self._slots[address] = slot


class StoreTransaction:
    """
    Write buffer over a SlotStore.

    Reads see the transaction's own staged writes first. A staged None
    marks a closed slot.
    """

    def __init__(self, store: SlotStore, rent: RentSchedule) -> None:
        self._store = store
        self._rent = rent
        self._writes: Dict[Address, Optional[Slot]] = {}
        self._committed = False

    # -- Reads --------------------------------------------------------------

    def get(self, address: Address) -> Optional[Slot]:
        if address in self._writes:
            return self._writes[address]
        return self._store.get(address)

    def require(self, address: Address, kind: str) -> Slot:
        """Return the slot at ``address`` if it holds ``kind``."""
        slot = self.get(address)
        if slot is None or slot.kind != kind:
            raise NotFoundError(address, kind)
        return slot

    # -- Writes -------------------------------------------------------------

    def allocate(
        self, address: Address, kind: str, payer: Identity, data: bytes,
    ) -> Slot:
        """
        Create a slot sized to ``data``, paid for by ``payer``.
        Raises AlreadyExistsError if the address is occupied.
        """
        if self.get(address) is not None:
            raise AlreadyExistsError(address)
        slot = Slot(
            address=address,
            kind=kind,
            payer=payer,
            data=bytes(data),
            deposit=self._rent.deposit_for(len(data)),
        )
        self._writes[address] = slot
        return slot

    def write(self, address: Address, kind: str, data: bytes) -> Slot:
        """Overwrite a slot's data. Capacity is fixed at allocation."""
        slot = self.require(address, kind)
        if len(data) != slot.capacity:
            raise ValueError(
                f"Write of {len(data)} bytes into {slot.capacity}-byte "
                f"slot {address}"
            )
        updated = dataclasses.replace(slot, data=bytes(data))
        self._writes[address] = updated
        return updated

    def close(self, address: Address, kind: str) -> Slot:
        """Release a slot. Returns the closed slot (for its deposit)."""
        slot = self.require(address, kind)
        self._writes[address] = None
        return slot

    # -- Commit -------------------------------------------------------------

    def commit(self) -> None:
        """Validate every staged slot, then apply all writes at once."""
        if self._committed:
            raise RuntimeError("Transaction already committed")
        for slot in self._writes.values():
            if slot is not None:
                validate_slot(slot, self._rent)
        self._store._apply(self._writes)
        self._committed = True
