"""
Content Kernel — Command Definitions

Commands are **pure data**. They carry the caller's identity, intent
and payload only. They contain ZERO transition logic.

``timestamp`` is stamped by the engine from its clock when left at 0,
so a persisted command replays with the exact time it was applied at.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class BaseCommand:
    """Base for all store commands. Pure data container."""

    command_type: str = ""
    identity: str = ""
    timestamp: int = 0
    sequence: int = 0
    command_uuid: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        d = {
            "command_type": self.command_type,
            "identity": self.identity,
            "timestamp": self.timestamp,
            "sequence": self.sequence,
            "payload": dict(self.payload),
        }
        if self.command_uuid:
            d["command_uuid"] = self.command_uuid
        return d


@dataclass
class CreateContentCommand(BaseCommand):
    """Publish a new content record owned by ``identity``."""

    command_type: str = "create_content"
    # payload keys: title, body, visibility


@dataclass
class DeleteContentCommand(BaseCommand):
    """Close a content record. Owner only."""

    command_type: str = "delete_content"
    # payload keys: content_id


@dataclass
class ToggleLikeCommand(BaseCommand):
    """Flip ``identity``'s like on a public content record."""

    command_type: str = "toggle_like"
    # payload keys: content_id


@dataclass
class ToggleSaveCommand(BaseCommand):
    """Flip ``identity``'s saved-for-later flag on a content record."""

    command_type: str = "toggle_save"
    # payload keys: content_id


# Strict command_type -> class mapping.
# Never fall back to generic BaseCommand.
COMMAND_CLASS_MAP = {
    "create_content": CreateContentCommand,
    "delete_content": DeleteContentCommand,
    "toggle_like": ToggleLikeCommand,
    "toggle_save": ToggleSaveCommand,
}


def reconstruct_command(command_dict: dict) -> BaseCommand:
    """
    Reconstruct a typed command from a stored dict.

    Dispatches on command_type to the correct subclass.
    Raises ValueError for unknown types.
    """
    ctype = command_dict["command_type"]
    cls = COMMAND_CLASS_MAP.get(ctype)
    if cls is None:
        raise ValueError(
            f"Unknown command_type {ctype!r}. "
            f"Known types: {sorted(COMMAND_CLASS_MAP)}"
        )
    return cls(
        identity=command_dict.get("identity", ""),
        timestamp=command_dict.get("timestamp", 0),
        sequence=command_dict.get("sequence", 0),
        command_uuid=command_dict.get("command_uuid", ""),
        payload=dict(command_dict.get("payload", {})),
    )
