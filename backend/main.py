# file: backend/main.py
"""
FastAPI Backend — Content Store API v1.

Stateless: every request opens the journal and replays from DB.
No in-memory state between requests.

Identity is read from the ``X-Identity`` header (64 hex chars). The
header is trusted as-is; authentication happens upstream.

Endpoints:
  POST   /api/content                       — create content
  GET    /api/content/{content_id}          — read content
  DELETE /api/content/{content_id}          — delete content (owner only)
  POST   /api/content/{content_id}/like     — toggle like
  POST   /api/content/{content_id}/save     — toggle save
  GET    /api/content/{content_id}/likes/{actor}
  GET    /api/content/{content_id}/saves/{actor}
  GET    /api/notifications?after=N         — notification log
  GET    /api/verify-determinism            — replay hash check
"""
from __future__ import annotations

import dataclasses
import logging
import os
import sqlite3
from typing import Any, Dict, Optional

from dotenv import load_dotenv

env_path = os.path.join(os.path.dirname(__file__), ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)

from fastapi import FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from content_kernel.domain_types import TransitionResult
from content_kernel.engine import RecordEngine
from content_kernel.errors import (
    AlreadyExistsError,
    AuthorityError,
    NotFoundError,
    PrivateInteractionError,
    RecordStoreError,
    SelfInteractionError,
    ValidationError,
)
from content_runtime.journal_repository import JournalRepository
from content_runtime.session import DeterminismError, StoreSession

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DATABASE_PATH = os.environ.get("STORE_DB_PATH", "content_store.db")
STORE_ID = os.environ.get("STORE_ID", "default")
FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:3000")

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(
    title="ContentStore API",
    version="1.0.0",
    description="Deterministic address-derived content records",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        FRONTEND_URL,
        "http://localhost:3000",
        "http://localhost:3001",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Most specific class first; RecordStoreError catches anything new.
_ERROR_STATUS = (
    (ValidationError, 422),
    (AlreadyExistsError, 409),
    (SelfInteractionError, 409),
    (AuthorityError, 403),
    (PrivateInteractionError, 403),
    (NotFoundError, 404),
    (RecordStoreError, 400),
)

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CreateContentRequest(BaseModel):
    title: str
    body: str
    visibility: str = "public"
    command_uuid: str = ""


class ToggleRequest(BaseModel):
    command_uuid: str = ""


# ---------------------------------------------------------------------------
# Core helpers
# ---------------------------------------------------------------------------


def _get_session() -> StoreSession:
    """Open the journal and replay the store. Caller closes the journal."""
    journal = JournalRepository(DATABASE_PATH)
    session = StoreSession(STORE_ID, RecordEngine(), journal)
    try:
        session.initialize()
    except Exception:
        journal.close()
        raise
    return session


def _require_identity(identity: Optional[str]) -> str:
    if not identity:
        raise HTTPException(status_code=401, detail="X-Identity header required")
    return identity


def _http_error(exc: RecordStoreError) -> HTTPException:
    for cls, status in _ERROR_STATUS:
        if isinstance(exc, cls):
            return HTTPException(status_code=status, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _apply(operation, *args, **kwargs) -> Dict[str, Any]:
    """
    Run one session operation and shape its result.

    Caller-facing rejections map onto HTTP statuses; a sequence clash
    with a concurrent writer becomes 409 and the client may retry.
    """
    session = _get_session()
    try:
        result = getattr(session, operation)(*args, **kwargs)
        return _result_body(result, session.current_sequence)
    except RecordStoreError as exc:
        logger.info("Rejected %s: %s", operation, exc)
        raise _http_error(exc)
    except sqlite3.IntegrityError as exc:
        logger.warning("Journal conflict during %s: %s", operation, exc)
        raise HTTPException(status_code=409, detail="Concurrent write, retry")
    finally:
        session.close()


def _result_body(result: TransitionResult, sequence: int) -> Dict[str, Any]:
    return {
        "command_type": result.command_type,
        "address": result.address,
        "sequence": sequence,
        "allocated": result.allocated,
        "active": result.active,
        "interaction_count": result.interaction_count,
        "refund": dataclasses.asdict(result.refund) if result.refund else None,
        "duplicate": result.duplicate,
        "events": [event.to_dict() for event in result.events],
    }


def _read(reader: str, *args) -> Dict[str, Any]:
    session = _get_session()
    try:
        record = getattr(session, reader)(*args)
    except ValidationError as exc:
        raise _http_error(exc)
    finally:
        session.close()
    if record is None:
        raise HTTPException(status_code=404, detail="Record not found")
    return dataclasses.asdict(record)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/api/health")
def health():
    return {"status": "ok", "version": "1.0.0"}


@app.post("/api/content", status_code=201)
def create_content(
    req: CreateContentRequest,
    x_identity: Optional[str] = Header(None),
):
    identity = _require_identity(x_identity)
    return _apply(
        "create_content", identity, req.title, req.body, req.visibility,
        command_uuid=req.command_uuid,
    )


@app.get("/api/content/{content_id}")
def get_content(content_id: str):
    body = _read("get_content", content_id)
    body["content_id"] = content_id
    return body


@app.delete("/api/content/{content_id}")
def delete_content(
    content_id: str,
    command_uuid: str = Query(""),
    x_identity: Optional[str] = Header(None),
):
    """Close the record and report the deposit refunded to its owner."""
    identity = _require_identity(x_identity)
    return _apply("delete_content", identity, content_id, command_uuid=command_uuid)


@app.post("/api/content/{content_id}/like")
def toggle_like(
    content_id: str,
    req: Optional[ToggleRequest] = None,
    x_identity: Optional[str] = Header(None),
):
    identity = _require_identity(x_identity)
    uuid = req.command_uuid if req else ""
    return _apply("toggle_like", identity, content_id, command_uuid=uuid)


@app.post("/api/content/{content_id}/save")
def toggle_save(
    content_id: str,
    req: Optional[ToggleRequest] = None,
    x_identity: Optional[str] = Header(None),
):
    identity = _require_identity(x_identity)
    uuid = req.command_uuid if req else ""
    return _apply("toggle_save", identity, content_id, command_uuid=uuid)


@app.get("/api/content/{content_id}/likes/{actor}")
def get_like(content_id: str, actor: str):
    return _read("get_like", actor, content_id)


@app.get("/api/content/{content_id}/saves/{actor}")
def get_save(content_id: str, actor: str):
    return _read("get_save", actor, content_id)


@app.get("/api/notifications")
def list_notifications(after: int = Query(0, ge=0)):
    """Notification log entries with a sequence greater than ``after``."""
    session = _get_session()
    try:
        entries = session.load_notifications(after)
    finally:
        session.close()
    return {
        "notifications": [
            {"sequence": seq, **event.to_dict()} for seq, event in entries
        ],
    }


@app.get("/api/verify-determinism")
def verify_determinism():
    session = _get_session()
    try:
        session.verify_determinism()
        return {
            "consistent": True,
            "sequence": session.current_sequence,
            "state_hash": session.state_hash(),
        }
    except DeterminismError as exc:
        logger.error("%s", exc)
        raise HTTPException(status_code=500, detail=str(exc))
    finally:
        session.close()
