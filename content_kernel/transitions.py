"""
Content Kernel — Centralized Transition Logic

ALL state-mutation logic lives here. Handlers stage writes on a
StoreTransaction and return a TransitionResult carrying the
notifications to emit; the engine commits, then emits.

Every precondition is checked before the first staged write, and a
rejected command never reaches commit, so no rejection leaves a trace.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Tuple, Union

from .addressing import content_address, like_address, save_address
from .commands import BaseCommand
from .domain_types import (
    KIND_CONTENT,
    KIND_LIKE,
    KIND_SAVE,
    Address,
    ContentRecord,
    FlagStatus,
    LikeFlag,
    Refund,
    SaveFlag,
    TransitionResult,
    saturating_add,
    saturating_sub,
    validate_hex32,
)
from .errors import AuthorityError, PrivateInteractionError, SelfInteractionError
from .events import (
    ACTION_LIKE,
    ACTION_SAVE,
    ACTION_UNLIKE,
    ACTION_UNSAVE,
    LABEL_CREATE,
    LABEL_DELETE,
    ContentEvent,
    LikeEvent,
    SaveEvent,
)
from .layout import decode_record, encode_record, validate_content_fields
from .store import StoreTransaction

logger = logging.getLogger(__name__)

Flag = Union[LikeFlag, SaveFlag]


# ---------------------------------------------------------------------------
# Public dispatcher
# ---------------------------------------------------------------------------

def apply_command(
    txn: StoreTransaction, command: BaseCommand,
) -> TransitionResult:
    """Stage *command* on *txn* and return its result."""
    validate_hex32(command.identity, "identity")

    ctype = command.command_type

    if ctype == "create_content":
        return _apply_create_content(txn, command)
    if ctype == "delete_content":
        return _apply_delete_content(txn, command)
    if ctype == "toggle_like":
        return _apply_toggle_like(txn, command)
    if ctype == "toggle_save":
        return _apply_toggle_save(txn, command)
    raise ValueError(f"Unknown command type: {ctype}")


# ---------------------------------------------------------------------------
# Shared lookups
# ---------------------------------------------------------------------------

def _load_content(
    txn: StoreTransaction, command: BaseCommand,
) -> Tuple[Address, ContentRecord]:
    content_id = command.payload.get("content_id")
    validate_hex32(content_id, "content_id")
    slot = txn.require(content_id, KIND_CONTENT)
    return content_id, decode_record(KIND_CONTENT, slot.data)


def _resolve_flag(
    txn: StoreTransaction, address: Address, kind: str, blank: Flag,
) -> Tuple[FlagStatus, Flag]:
    """
    Lookup-or-allocate. A missing flag is allocated as ``blank``
    (inactive) and reported as NOT_PRESENT, which toggles exactly like
    INACTIVE.
    """
    slot = txn.get(address)
    if slot is None:
        txn.allocate(address, kind, blank.actor, encode_record(blank))
        return FlagStatus.NOT_PRESENT, blank
    flag = decode_record(kind, slot.data)
    return (FlagStatus.ACTIVE if flag.active else FlagStatus.INACTIVE), flag


# ---------------------------------------------------------------------------
# Individual transition handlers (private)
# ---------------------------------------------------------------------------

def _apply_create_content(
    txn: StoreTransaction, command: BaseCommand,
) -> TransitionResult:
    p = command.payload
    validate_content_fields(p.get("title"), p.get("body"), p.get("visibility"))

    record = ContentRecord(
        title=p["title"],
        body=p["body"],
        visibility=p["visibility"],
        owner=command.identity,
        interaction_count=0,
        created_at=command.timestamp,
    )
    address = content_address(command.identity, record.title)
    txn.allocate(address, KIND_CONTENT, command.identity, encode_record(record))

    logger.info(
        "Content created: %r (visibility=%s) at %s",
        record.title, record.visibility, address,
    )
    event = ContentEvent(
        label=LABEL_CREATE,
        content_id=address,
        owner=record.owner,
        visibility=record.visibility,
        title=record.title,
    )
    return TransitionResult(
        command_type="create_content",
        address=address,
        events=(event,),
        allocated=True,
        interaction_count=0,
    )


def _apply_delete_content(
    txn: StoreTransaction, command: BaseCommand,
) -> TransitionResult:
    content_id, record = _load_content(txn, command)
    if record.owner != command.identity:
        raise AuthorityError(command.identity, record.owner)

    closed = txn.close(content_id, KIND_CONTENT)

    logger.info("Content deleted: %r at %s", record.title, content_id)
    event = ContentEvent(
        label=LABEL_DELETE,
        content_id=content_id,
        owner=record.owner,
        visibility=record.visibility,
        title=record.title,
    )
    return TransitionResult(
        command_type="delete_content",
        address=content_id,
        events=(event,),
        refund=Refund(recipient=command.identity, amount=closed.deposit),
    )


def _apply_toggle_like(
    txn: StoreTransaction, command: BaseCommand,
) -> TransitionResult:
    """
    Toggle rule:
      - private content -> PrivateInteractionError
      - owner           -> SelfInteractionError
      - ACTIVE          -> inactive, count - 1 (floor 0), UNLIKE
      - otherwise       -> active,   count + 1 (ceiling u64), LIKE
    """
    content_id, record = _load_content(txn, command)
    if not record.is_public:
        raise PrivateInteractionError(content_id)
    if record.owner == command.identity:
        raise SelfInteractionError(content_id)

    address = like_address(command.identity, content_id)
    status, flag = _resolve_flag(
        txn, address, KIND_LIKE,
        LikeFlag(actor=command.identity, target=content_id),
    )

    if status is FlagStatus.ACTIVE:
        count = saturating_sub(record.interaction_count, 1)
        action = ACTION_UNLIKE
    else:
        count = saturating_add(record.interaction_count, 1)
        action = ACTION_LIKE
    flag = dataclasses.replace(flag, active=status is not FlagStatus.ACTIVE)
    record = dataclasses.replace(record, interaction_count=count)

    txn.write(address, KIND_LIKE, encode_record(flag))
    txn.write(content_id, KIND_CONTENT, encode_record(record))

    logger.info("Content %s: %s! Total likes: %d", content_id, action, count)
    event = LikeEvent(
        content_id=content_id,
        actor=command.identity,
        action=action,
        interaction_count=count,
    )
    return TransitionResult(
        command_type="toggle_like",
        address=address,
        events=(event,),
        allocated=status is FlagStatus.NOT_PRESENT,
        active=flag.active,
        interaction_count=count,
    )


def _apply_toggle_save(
    txn: StoreTransaction, command: BaseCommand,
) -> TransitionResult:
    """
    Same state machine as likes, with no visibility or self check.
    saved_at is stamped on activation and left stale on deactivation.
    """
    content_id, _ = _load_content(txn, command)

    address = save_address(command.identity, content_id)
    status, flag = _resolve_flag(
        txn, address, KIND_SAVE,
        SaveFlag(actor=command.identity, target=content_id),
    )

    if status is FlagStatus.ACTIVE:
        flag = dataclasses.replace(flag, active=False)
        action = ACTION_UNSAVE
    else:
        flag = dataclasses.replace(flag, active=True, saved_at=command.timestamp)
        action = ACTION_SAVE

    txn.write(address, KIND_SAVE, encode_record(flag))

    logger.info("Content %s: %s by %s", content_id, action, command.identity)
    event = SaveEvent(
        content_id=content_id,
        actor=command.identity,
        action=action,
    )
    return TransitionResult(
        command_type="toggle_save",
        address=address,
        events=(event,),
        allocated=status is FlagStatus.NOT_PRESENT,
        active=flag.active,
    )
