"""
Journal Repository — sqlite3-backed command and notification log.

Stores every accepted command (with the timestamp it was applied at),
a summary of its outcome, and the notifications it produced.
Reconstructs typed command and event instances on load (strict type
dispatch, never a generic base).

A command and its notifications are written in one transaction:
either both are durable or neither is.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from content_kernel.commands import BaseCommand, reconstruct_command
from content_kernel.domain_types import Refund, TransitionResult
from content_kernel.events import Notification, reconstruct_event

_SCHEMA_PATH = Path(__file__).parent / "schema.sql"


class JournalRepository:
    """
    Append-only journal backed by sqlite3.

      - Idempotency via command_uuid (unique per store)
      - Stream metadata (last_state_hash tracking)

    Single writer per store assumed. A sequence conflict from a
    concurrent writer raises sqlite3.IntegrityError; the caller replays
    and resubmits.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        self._conn = sqlite3.connect(self._db_path)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        schema_sql = _SCHEMA_PATH.read_text(encoding="utf-8")
        self._conn.executescript(schema_sql)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def append_command(
        self,
        store_id: str,
        command: BaseCommand,
        result: TransitionResult,
    ) -> int:
        """
        Append an applied command, the outcome it produced and its
        notifications atomically. Returns the command's sequence.
        """
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO commands
                    (store_id, sequence, command_type, identity, timestamp,
                     command_uuid, payload_json, result_json)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    store_id,
                    command.sequence,
                    command.command_type,
                    command.identity,
                    command.timestamp,
                    command.command_uuid or None,
                    json.dumps(command.payload, ensure_ascii=False, sort_keys=True),
                    json.dumps(_result_to_dict(result), sort_keys=True),
                ),
            )
            for position, event in enumerate(result.events):
                self._conn.execute(
                    """
                    INSERT INTO notifications
                        (store_id, sequence, position, event_type, payload_json)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        store_id,
                        command.sequence,
                        position,
                        event.event_type,
                        json.dumps(event.to_dict(), ensure_ascii=False, sort_keys=True),
                    ),
                )
        return command.sequence

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def load_commands(
        self, store_id: str, after_sequence: int = 0,
    ) -> List[BaseCommand]:
        """
        Load commands ordered by sequence.
        Returns fully-typed command instances, never raw dicts.
        """
        cursor = self._conn.execute(
            """
            SELECT command_type, identity, timestamp, sequence,
                   command_uuid, payload_json
            FROM commands
            WHERE store_id = ? AND sequence > ?
            ORDER BY sequence
            """,
            (store_id, after_sequence),
        )
        result: List[BaseCommand] = []
        for row in cursor:
            result.append(reconstruct_command({
                "command_type": row[0],
                "identity": row[1],
                "timestamp": row[2],
                "sequence": row[3],
                "command_uuid": row[4] or "",
                "payload": json.loads(row[5]),
            }))
        return result

    def load_notifications(
        self, store_id: str, after_sequence: int = 0,
    ) -> List[Tuple[int, Notification]]:
        """Load (sequence, notification) pairs in emission order."""
        cursor = self._conn.execute(
            """
            SELECT sequence, payload_json
            FROM notifications
            WHERE store_id = ? AND sequence > ?
            ORDER BY sequence, position
            """,
            (store_id, after_sequence),
        )
        return [(row[0], reconstruct_event(json.loads(row[1]))) for row in cursor]

    def load_result(
        self, store_id: str, sequence: int,
    ) -> Optional[TransitionResult]:
        """Rebuild the outcome of the command journaled at ``sequence``."""
        row = self._conn.execute(
            "SELECT command_type, result_json FROM commands "
            "WHERE store_id = ? AND sequence = ?",
            (store_id, sequence),
        ).fetchone()
        if row is None:
            return None
        cursor = self._conn.execute(
            """
            SELECT payload_json
            FROM notifications
            WHERE store_id = ? AND sequence = ?
            ORDER BY position
            """,
            (store_id, sequence),
        )
        events = tuple(reconstruct_event(json.loads(r[0])) for r in cursor)
        return _result_from_dict(row[0], json.loads(row[1]), events)

    def get_last_sequence(self, store_id: str) -> int:
        """Return the highest sequence number for a store, or 0 if none."""
        cursor = self._conn.execute(
            "SELECT COALESCE(MAX(sequence), 0) FROM commands WHERE store_id = ?",
            (store_id,),
        )
        return cursor.fetchone()[0]

    # ------------------------------------------------------------------
    # Idempotency lookup
    # ------------------------------------------------------------------

    def find_by_uuid(self, store_id: str, command_uuid: str) -> Optional[int]:
        """Return the sequence of a command with this uuid, or None."""
        cursor = self._conn.execute(
            "SELECT sequence FROM commands WHERE store_id = ? AND command_uuid = ?",
            (store_id, command_uuid),
        )
        row = cursor.fetchone()
        return row[0] if row else None

    # ------------------------------------------------------------------
    # Stream metadata
    # ------------------------------------------------------------------

    def update_metadata(
        self, store_id: str, sequence: int, state_hash: str,
    ) -> None:
        """Upsert stream metadata with the latest known hash."""
        now = datetime.now(timezone.utc).isoformat()
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO stream_metadata
                    (store_id, last_sequence, last_state_hash, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(store_id) DO UPDATE SET
                    last_sequence = excluded.last_sequence,
                    last_state_hash = excluded.last_state_hash,
                    updated_at = excluded.updated_at
                """,
                (store_id, sequence, state_hash, now),
            )

    def load_metadata(
        self, store_id: str,
    ) -> Optional[Tuple[int, str]]:
        """
        Load stream metadata.
        Returns (last_sequence, last_state_hash) or None.
        """
        cursor = self._conn.execute(
            "SELECT last_sequence, last_state_hash FROM stream_metadata WHERE store_id = ?",
            (store_id,),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return (row[0], row[1])

    def close(self) -> None:
        self._conn.close()


def _result_to_dict(result: TransitionResult) -> dict:
    return {
        "address": result.address,
        "allocated": result.allocated,
        "active": result.active,
        "interaction_count": result.interaction_count,
        "refund": (
            {"recipient": result.refund.recipient, "amount": result.refund.amount}
            if result.refund else None
        ),
    }


def _result_from_dict(
    command_type: str, d: dict, events: Tuple[Notification, ...],
) -> TransitionResult:
    refund = d.get("refund")
    return TransitionResult(
        command_type=command_type,
        address=d.get("address", ""),
        events=events,
        allocated=d.get("allocated", False),
        active=d.get("active"),
        interaction_count=d.get("interaction_count"),
        refund=Refund(**refund) if refund else None,
    )
