"""
Content Kernel — Engine

Top-level orchestrator. Delegates mutation to transitions.py inside a
store transaction, emits notifications via emitter.py once the
transaction has committed.

Constraints:
  - Sequence numbers strictly increasing, no gaps, no duplicates
  - A command either commits (slots + notifications) or raises with
    no observable effect
  - Identity is passed with every command, never held as engine state
"""

from __future__ import annotations

import dataclasses
from typing import Callable, List, Optional

from .addressing import like_address, save_address
from .clock import SystemClock
from .commands import (
    BaseCommand,
    CreateContentCommand,
    DeleteContentCommand,
    ToggleLikeCommand,
    ToggleSaveCommand,
)
from .domain_types import (
    KIND_CONTENT,
    KIND_LIKE,
    KIND_SAVE,
    Address,
    ContentRecord,
    Identity,
    LikeFlag,
    RentSchedule,
    SaveFlag,
    TransitionResult,
    validate_hex32,
)
from .emitter import EventEmitter
from .layout import decode_record
from .store import SlotStore
from .transitions import apply_command as _transition_apply


class RecordEngine:
    """
    Stateful engine that wraps the transactional transition layer.

    ``clock`` returns unix seconds and is consulted only for commands
    that arrive without a timestamp.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], int]] = None,
        rent: Optional[RentSchedule] = None,
        emitter: Optional[EventEmitter] = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._rent = rent or RentSchedule()
        self._emitter = emitter or EventEmitter()
        self._store = SlotStore()
        self._last_sequence: int = 0

    # -- State access -------------------------------------------------------

    @property
    def store(self) -> SlotStore:
        return self._store

    @property
    def emitter(self) -> EventEmitter:
        return self._emitter

    @property
    def rent(self) -> RentSchedule:
        return self._rent

    @property
    def last_sequence(self) -> int:
        return self._last_sequence

    def reset(self) -> None:
        """Drop every slot and notification; restart the sequence at zero."""
        self._store = SlotStore()
        self._emitter.clear()
        self._last_sequence = 0

    # -- Command API --------------------------------------------------------

    def stamp(self, command: BaseCommand) -> BaseCommand:
        """
        Return a copy of ``command`` carrying the next sequence and a
        timestamp. The caller's instance is never modified.
        """
        expected = self._last_sequence + 1
        if command.sequence not in (0, expected):
            raise ValueError(
                f"Sequence violation: expected {expected}, "
                f"got {command.sequence}"
            )
        return dataclasses.replace(
            command,
            sequence=expected,
            timestamp=command.timestamp or self._clock(),
            payload=dict(command.payload),
        )

    def apply_command(self, command: BaseCommand) -> TransitionResult:
        """
        Apply a single command:
          1. Stamp a copy with its sequence and (if missing) timestamp
          2. Stage the transition and commit the transaction
          3. Emit the resulting notifications
        """
        command = self.stamp(command)

        with self._store.transaction(self._rent) as txn:
            result = _transition_apply(txn, command)

        self._last_sequence = command.sequence
        for event in result.events:
            self._emitter.append(event)
        return result

    def replay(self, commands: List[BaseCommand]) -> SlotStore:
        """
        Reset to an empty store and notification log, then replay
        every command from scratch. Returns the rebuilt store.
        """
        self.reset()
        for command in commands:
            self.apply_command(command)
        return self._store

    # -- Operations ---------------------------------------------------------

    def create_content(
        self, identity: Identity, title: str, body: str, visibility: str,
    ) -> TransitionResult:
        return self.apply_command(CreateContentCommand(
            identity=identity,
            payload={"title": title, "body": body, "visibility": visibility},
        ))

    def delete_content(
        self, identity: Identity, content_id: Address,
    ) -> TransitionResult:
        return self.apply_command(DeleteContentCommand(
            identity=identity, payload={"content_id": content_id},
        ))

    def toggle_like(
        self, identity: Identity, content_id: Address,
    ) -> TransitionResult:
        return self.apply_command(ToggleLikeCommand(
            identity=identity, payload={"content_id": content_id},
        ))

    def toggle_save(
        self, identity: Identity, content_id: Address,
    ) -> TransitionResult:
        return self.apply_command(ToggleSaveCommand(
            identity=identity, payload={"content_id": content_id},
        ))

    # -- Exact-key reads ----------------------------------------------------

    def get_content(self, content_id: Address) -> Optional[ContentRecord]:
        validate_hex32(content_id, "content_id")
        return self._read(content_id, KIND_CONTENT)

    def get_like(self, actor: Identity, content_id: Address) -> Optional[LikeFlag]:
        validate_hex32(actor, "actor")
        validate_hex32(content_id, "content_id")
        return self._read(like_address(actor, content_id), KIND_LIKE)

    def get_save(self, actor: Identity, content_id: Address) -> Optional[SaveFlag]:
        validate_hex32(actor, "actor")
        validate_hex32(content_id, "content_id")
        return self._read(save_address(actor, content_id), KIND_SAVE)

    def _read(self, address: Address, kind: str):
        slot = self._store.get(address)
        if slot is None or slot.kind != kind:
            return None
        return decode_record(kind, slot.data)
