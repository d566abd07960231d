"""
Content Kernel — Error Taxonomy

Every rejection is synchronous, typed, and raised before any mutation is
committed. None of these errors is fatal to the store: each is scoped to
the single rejected call and is not retryable without changing the input.
"""

from __future__ import annotations


class RecordStoreError(Exception):
    """Base exception for all caller-facing rejections."""


class ValidationError(RecordStoreError):
    """A field is empty, too long, or malformed."""

    def __init__(self, field: str, expected: str, actual: object) -> None:
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Invalid {field}: expected {expected}, got {actual!r}"
        )


class AlreadyExistsError(RecordStoreError):
    """The derived address already holds a record."""

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"Address {address} already holds a record")


class NotFoundError(RecordStoreError):
    """No record of the expected kind lives at the address."""

    def __init__(self, address: str, kind: str) -> None:
        self.address = address
        self.kind = kind
        super().__init__(f"No {kind} record at address {address}")


class AuthorityError(RecordStoreError):
    """A non-owner attempted an owner-only operation."""

    def __init__(self, identity: str, owner: str) -> None:
        self.identity = identity
        self.owner = owner
        super().__init__(
            f"Identity {identity} is not the owner ({owner}) of this record"
        )


class PrivateInteractionError(RecordStoreError):
    """Likes are only accepted on public content."""

    def __init__(self, content_id: str) -> None:
        self.content_id = content_id
        super().__init__(
            f"Cannot like or unlike private content {content_id}"
        )


class SelfInteractionError(RecordStoreError):
    """The owner of a content record cannot like it."""

    def __init__(self, content_id: str) -> None:
        self.content_id = content_id
        super().__init__(f"Cannot like your own content {content_id}")


class InvariantViolationError(Exception):
    """
    Raised when a staged slot breaks a storage invariant.

    Not part of the caller taxonomy: it signals a kernel bug, and the
    transaction that staged the slot is discarded.
    """

    def __init__(self, rule: str, detail: str) -> None:
        self.rule = rule
        self.detail = detail
        super().__init__(f"[INVARIANT:{rule}] {detail}")
