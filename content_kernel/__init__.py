"""
Content Kernel
Deterministic, in-memory, address-derived record store for content
items and per-user like/save toggles.
"""

from .domain_types import (
    ContentRecord, LikeFlag, SaveFlag, Slot, RentSchedule, Refund,
    TransitionResult, FlagStatus, VISIBILITY_PUBLIC, VISIBILITY_PRIVATE,
    saturating_add, saturating_sub, validate_hex32,
)
from .errors import (
    RecordStoreError,
    ValidationError,
    AlreadyExistsError,
    NotFoundError,
    AuthorityError,
    PrivateInteractionError,
    SelfInteractionError,
    InvariantViolationError,
)
from .addressing import derive_address, content_address, like_address, save_address
from .layout import (
    LayoutError,
    required_capacity,
    content_capacity,
    validate_content_fields,
    encode_record,
    decode_record,
    LIKE_CAPACITY,
    SAVE_CAPACITY,
)
from .commands import (
    BaseCommand,
    CreateContentCommand,
    DeleteContentCommand,
    ToggleLikeCommand,
    ToggleSaveCommand,
    reconstruct_command,
)
from .events import ContentEvent, LikeEvent, SaveEvent, reconstruct_event
from .emitter import EventEmitter
from .clock import SystemClock, FixedClock
from .engine import RecordEngine
from .hashing import canonical_serialize, canonical_hash

__all__ = [
    "ContentRecord",
    "LikeFlag",
    "SaveFlag",
    "Slot",
    "RentSchedule",
    "Refund",
    "TransitionResult",
    "FlagStatus",
    "VISIBILITY_PUBLIC",
    "VISIBILITY_PRIVATE",
    "saturating_add",
    "saturating_sub",
    "validate_hex32",
    "RecordStoreError",
    "ValidationError",
    "AlreadyExistsError",
    "NotFoundError",
    "AuthorityError",
    "PrivateInteractionError",
    "SelfInteractionError",
    "InvariantViolationError",
    "derive_address",
    "content_address",
    "like_address",
    "save_address",
    "LayoutError",
    "required_capacity",
    "content_capacity",
    "validate_content_fields",
    "encode_record",
    "decode_record",
    "LIKE_CAPACITY",
    "SAVE_CAPACITY",
    "BaseCommand",
    "CreateContentCommand",
    "DeleteContentCommand",
    "ToggleLikeCommand",
    "ToggleSaveCommand",
    "reconstruct_command",
    "ContentEvent",
    "LikeEvent",
    "SaveEvent",
    "reconstruct_event",
    "EventEmitter",
    "SystemClock",
    "FixedClock",
    "RecordEngine",
    "canonical_serialize",
    "canonical_hash",
]
