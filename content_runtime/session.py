"""
Store Session — orchestrates engine + journal.

Apply-before-persist order:
  1. engine.stamp + apply_command     — may raise a RecordStoreError
  2. journal.append_command(...)     — only if step 1 succeeded
  3. update metadata hash            — only if step 2 succeeded
  4. publish notifications           — only if step 2 succeeded

This guarantees that journaled commands are always valid and
replayable, and that session subscribers only ever see notifications
whose transition is durable.
"""

from __future__ import annotations

import dataclasses
import logging
import sqlite3
from typing import Callable, List, Optional, Tuple

from content_kernel.commands import (
    BaseCommand,
    CreateContentCommand,
    DeleteContentCommand,
    ToggleLikeCommand,
    ToggleSaveCommand,
)
from content_kernel.domain_types import ContentRecord, LikeFlag, SaveFlag, TransitionResult
from content_kernel.emitter import EventEmitter
from content_kernel.engine import RecordEngine
from content_kernel.events import Notification
from content_kernel.hashing import canonical_hash

from .journal_repository import JournalRepository

logger = logging.getLogger(__name__)


class DeterminismError(Exception):
    """Raised when replay produces a different hash than the stored one."""

    def __init__(self, store_id: str, expected: str, actual: str):
        self.store_id = store_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Determinism failure for store {store_id!r}: "
            f"stored hash={expected!r}, replayed hash={actual!r}"
        )


class StoreSession:
    """
    Binds one RecordEngine to one journaled store.

    ``engine_factory`` builds fresh engines for verification replays;
    it must produce engines with the same RentSchedule as ``engine``.
    """

    def __init__(
        self,
        store_id: str,
        engine: RecordEngine,
        journal: JournalRepository,
        engine_factory: Optional[Callable[[], RecordEngine]] = None,
    ) -> None:
        self._store_id = store_id
        self._engine = engine
        self._journal = journal
        self._engine_factory = engine_factory or (lambda: RecordEngine(rent=engine.rent))
        self._notifications = EventEmitter()

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Rebuild the store by replaying every journaled command."""
        commands = self._journal.load_commands(self._store_id)
        self._engine.replay(commands)
        logger.debug(
            "Store %r initialized from %d commands", self._store_id, len(commands),
        )

    # ------------------------------------------------------------------
    # Command application (apply-before-persist)
    # ------------------------------------------------------------------

    def apply_command(self, command: BaseCommand) -> TransitionResult:
        """
        Apply a command to the engine, then journal it.

        If the engine rejects the command nothing is journaled. If
        journaling fails the engine is rebuilt from the journal so the
        in-memory store never runs ahead of what is durable.

        Idempotency: a command whose command_uuid is already journaled
        is not applied again; the journaled outcome is returned with
        ``duplicate=True``.
        """
        if command.command_uuid:
            existing = self._journal.find_by_uuid(self._store_id, command.command_uuid)
            if existing is not None:
                logger.info(
                    "Command %s already journaled at sequence %d",
                    command.command_uuid, existing,
                )
                stored = self._journal.load_result(self._store_id, existing)
                return dataclasses.replace(stored, duplicate=True)

        # The journal keeps the stamped copy so replay never reads the clock.
        stamped = self._engine.stamp(dataclasses.replace(command, sequence=0))
        result = self._engine.apply_command(stamped)

        try:
            self._journal.append_command(self._store_id, stamped, result)
        except sqlite3.Error:
            logger.error(
                "Journal append failed at sequence %d; rebuilding store %r",
                stamped.sequence, self._store_id,
            )
            self.initialize()
            raise

        self._journal.update_metadata(
            self._store_id, stamped.sequence, canonical_hash(self._engine.store),
        )
        for event in result.events:
            self._notifications.append(event)
        return result

    # -- Operations ---------------------------------------------------------

    def create_content(
        self, identity: str, title: str, body: str, visibility: str,
        command_uuid: str = "",
    ) -> TransitionResult:
        return self.apply_command(CreateContentCommand(
            identity=identity,
            command_uuid=command_uuid,
            payload={"title": title, "body": body, "visibility": visibility},
        ))

    def delete_content(
        self, identity: str, content_id: str, command_uuid: str = "",
    ) -> TransitionResult:
        return self.apply_command(DeleteContentCommand(
            identity=identity, command_uuid=command_uuid,
            payload={"content_id": content_id},
        ))

    def toggle_like(
        self, identity: str, content_id: str, command_uuid: str = "",
    ) -> TransitionResult:
        return self.apply_command(ToggleLikeCommand(
            identity=identity, command_uuid=command_uuid,
            payload={"content_id": content_id},
        ))

    def toggle_save(
        self, identity: str, content_id: str, command_uuid: str = "",
    ) -> TransitionResult:
        return self.apply_command(ToggleSaveCommand(
            identity=identity, command_uuid=command_uuid,
            payload={"content_id": content_id},
        ))

    # ------------------------------------------------------------------
    # Determinism verification
    # ------------------------------------------------------------------

    def verify_determinism(self) -> bool:
        """
        Replay from scratch and compare hash against stored metadata.

        Raises DeterminismError if mismatch.
        Returns True if consistent (or no metadata exists yet).
        """
        metadata = self._journal.load_metadata(self._store_id)
        if metadata is None:
            return True

        _, stored_hash = metadata
        temp_engine = self._engine_factory()
        temp_engine.replay(self._journal.load_commands(self._store_id))
        replayed_hash = canonical_hash(temp_engine.store)

        if replayed_hash != stored_hash:
            raise DeterminismError(self._store_id, stored_hash, replayed_hash)
        return True

    # ------------------------------------------------------------------
    # Delegates
    # ------------------------------------------------------------------

    def subscribe(self, subscriber: Callable[[Notification], None]) -> None:
        """Receive notifications once their transition is journaled."""
        self._notifications.subscribe(subscriber)

    def load_notifications(self, after_sequence: int = 0) -> List[Tuple[int, Notification]]:
        return self._journal.load_notifications(self._store_id, after_sequence)

    def get_content(self, content_id: str) -> Optional[ContentRecord]:
        return self._engine.get_content(content_id)

    def get_like(self, actor: str, content_id: str) -> Optional[LikeFlag]:
        return self._engine.get_like(actor, content_id)

    def get_save(self, actor: str, content_id: str) -> Optional[SaveFlag]:
        return self._engine.get_save(actor, content_id)

    def state_hash(self) -> str:
        return canonical_hash(self._engine.store)

    @property
    def current_sequence(self) -> int:
        return self._engine.last_sequence

    def close(self) -> None:
        self._journal.close()
