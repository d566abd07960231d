"""
Content Kernel — Notification Event Definitions

Notifications are **pure data** describing an accepted transition.
They are immutable once built and never feed back into kernel logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

# ContentEvent labels
LABEL_CREATE = "CREATE"
LABEL_DELETE = "DELETE"

# LikeEvent / SaveEvent actions
ACTION_LIKE = "LIKE"
ACTION_UNLIKE = "UNLIKE"
ACTION_SAVE = "SAVE"
ACTION_UNSAVE = "UNSAVE"


@dataclass(frozen=True)
class ContentEvent:
    """A content record was created or deleted."""

    label: str
    content_id: str
    owner: str
    visibility: str
    title: str
    event_type: str = "content"

    def to_dict(self) -> dict:
        return {
            "event_type": self.event_type,
            "label": self.label,
            "content_id": self.content_id,
            "owner": self.owner,
            "visibility": self.visibility,
            "title": self.title,
        }


@dataclass(frozen=True)
class LikeEvent:
    """A like flag flipped. interaction_count is the post-transition value."""

    content_id: str
    actor: str
    action: str
    interaction_count: int
    event_type: str = "like"

    def to_dict(self) -> dict:
        return {
            "event_type": self.event_type,
            "content_id": self.content_id,
            "actor": self.actor,
            "action": self.action,
            "interaction_count": self.interaction_count,
        }


@dataclass(frozen=True)
class SaveEvent:
    """A save flag flipped."""

    content_id: str
    actor: str
    action: str
    event_type: str = "save"

    def to_dict(self) -> dict:
        return {
            "event_type": self.event_type,
            "content_id": self.content_id,
            "actor": self.actor,
            "action": self.action,
        }


Notification = Union[ContentEvent, LikeEvent, SaveEvent]

# Strict event_type -> class mapping.
_EVENT_CLASS_MAP = {
    "content": ContentEvent,
    "like": LikeEvent,
    "save": SaveEvent,
}


def reconstruct_event(event_dict: dict) -> Notification:
    """
    Rebuild a typed notification from its dict form.
    Raises ValueError for unknown types.
    """
    etype = event_dict.get("event_type")
    cls = _EVENT_CLASS_MAP.get(etype)
    if cls is None:
        raise ValueError(
            f"Unknown event_type {etype!r}. "
            f"Known types: {sorted(_EVENT_CLASS_MAP)}"
        )
    fields = {k: v for k, v in event_dict.items() if k != "event_type"}
    return cls(**fields)
