"""
Content Store API — Endpoint Tests

Drives the FastAPI app in-process against a throwaway sqlite journal.

  Phase 1: Health + identity header
  Phase 2: Create / read / duplicate / validation
  Phase 3: Like + save toggles and flag reads
  Phase 4: Delete, refund, authority, missing records
  Phase 5: Idempotent retries, notification log, determinism check

Run:  python -m backend.test_api
"""

from __future__ import annotations

import os
import sys
import tempfile
from contextlib import contextmanager

from fastapi.testclient import TestClient

import backend.main as api
from content_kernel.domain_types import RentSchedule

U1 = "11" * 32
U2 = "22" * 32
U3 = "33" * 32


def _header(title: str) -> None:
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}")


@contextmanager
def _client():
    """TestClient bound to a fresh journal file."""
    previous = api.DATABASE_PATH
    with tempfile.TemporaryDirectory() as tmp:
        api.DATABASE_PATH = os.path.join(tmp, "api.db")
        try:
            yield TestClient(api.app)
        finally:
            api.DATABASE_PATH = previous


def _create(client, identity=U1, title="Hi", body="Hello world", visibility="public"):
    return client.post(
        "/api/content",
        json={"title": title, "body": body, "visibility": visibility},
        headers={"X-Identity": identity},
    )


# ══════════════════════════════════════════════════════════════
# Phases
# ══════════════════════════════════════════════════════════════

def test_01_health_and_identity() -> None:
    _header("Phase 1 -- Health and identity header")
    with _client() as client:
        assert client.get("/api/health").json()["status"] == "ok"

        r = client.post("/api/content", json={"title": "Hi", "body": "Hello"})
        assert r.status_code == 401, r.text

        r = _create(client, identity="not-hex")
        assert r.status_code == 422, r.text
    print("  [PASS]")


def test_02_create_and_read() -> None:
    _header("Phase 2 -- Create, read, duplicate, validation")
    with _client() as client:
        r = _create(client)
        assert r.status_code == 201, r.text
        created = r.json()
        cid = created["address"]
        assert created["allocated"] is True
        assert created["sequence"] == 1
        assert created["events"][0]["label"] == "CREATE"

        content = client.get(f"/api/content/{cid}").json()
        assert content["title"] == "Hi"
        assert content["owner"] == U1
        assert content["interaction_count"] == 0
        assert content["content_id"] == cid

        assert _create(client).status_code == 409
        assert _create(client, identity=U2).status_code == 201
        assert _create(client, title="").status_code == 422
        assert _create(client, title="x", body="b" * 1001).status_code == 422
        assert _create(client, title="x", visibility="friends").status_code == 422

        assert client.get(f"/api/content/{'ab' * 32}").status_code == 404
        assert client.get("/api/content/xyz").status_code == 422
    print("  [PASS]")


def test_03_toggles() -> None:
    _header("Phase 3 -- Like and save toggles")
    with _client() as client:
        cid = _create(client).json()["address"]
        secret = _create(client, title="Secret", visibility="private").json()["address"]

        r = client.post(f"/api/content/{cid}/like", headers={"X-Identity": U2})
        assert r.status_code == 200, r.text
        assert r.json()["active"] is True
        assert r.json()["interaction_count"] == 1

        flag = client.get(f"/api/content/{cid}/likes/{U2}").json()
        assert flag == {"actor": U2, "target": cid, "active": True}
        assert client.get(f"/api/content/{cid}/likes/{U3}").status_code == 404

        own = client.post(f"/api/content/{cid}/like", headers={"X-Identity": U1})
        assert own.status_code == 409
        hidden = client.post(f"/api/content/{secret}/like", headers={"X-Identity": U2})
        assert hidden.status_code == 403

        # saves are allowed on private content and by the owner
        r = client.post(f"/api/content/{secret}/save", headers={"X-Identity": U1})
        assert r.status_code == 200 and r.json()["active"] is True
        save = client.get(f"/api/content/{secret}/saves/{U1}").json()
        assert save["active"] is True and save["saved_at"] > 0

        r = client.post(f"/api/content/{cid}/like", headers={"X-Identity": U2})
        assert r.json()["active"] is False
        assert client.get(f"/api/content/{cid}").json()["interaction_count"] == 0
    print("  [PASS]")


def test_04_delete() -> None:
    _header("Phase 4 -- Delete and refund")
    with _client() as client:
        cid = _create(client).json()["address"]

        r = client.delete(f"/api/content/{cid}", headers={"X-Identity": U2})
        assert r.status_code == 403

        r = client.delete(f"/api/content/{cid}", headers={"X-Identity": U1})
        assert r.status_code == 200, r.text
        refund = r.json()["refund"]
        assert refund == {"recipient": U1, "amount": RentSchedule().deposit_for(78)}

        assert client.get(f"/api/content/{cid}").status_code == 404
        again = client.delete(f"/api/content/{cid}", headers={"X-Identity": U1})
        assert again.status_code == 404
        like = client.post(f"/api/content/{cid}/like", headers={"X-Identity": U2})
        assert like.status_code == 404

        # address is free again
        assert _create(client).json()["address"] == cid
    print("  [PASS]")


def test_05_retries_log_and_determinism() -> None:
    _header("Phase 5 -- Retries, notification log, determinism")
    with _client() as client:
        cid = _create(client).json()["address"]
        bodies = []
        for _ in range(2):
            r = client.post(
                f"/api/content/{cid}/like",
                json={"command_uuid": "like-1"},
                headers={"X-Identity": U2},
            )
            assert r.status_code == 200, r.text
            bodies.append(r.json())
        first, retry = bodies
        assert first["duplicate"] is False and retry["duplicate"] is True
        first.pop("duplicate")
        retry.pop("duplicate")
        assert retry == first, f"{retry} != {first}"
        assert client.get(f"/api/content/{cid}").json()["interaction_count"] == 1

        log = client.get("/api/notifications").json()["notifications"]
        assert [n["sequence"] for n in log] == [1, 2]
        assert [n["event_type"] for n in log] == ["content", "like"]
        tail = client.get("/api/notifications", params={"after": 1}).json()
        assert [n["action"] for n in tail["notifications"]] == ["LIKE"]

        check = client.get("/api/verify-determinism").json()
        assert check["consistent"] is True
        assert check["sequence"] == 2
        assert len(check["state_hash"]) == 64
    print("  [PASS]")


# ══════════════════════════════════════════════════════════════
# Runner
# ══════════════════════════════════════════════════════════════

def main() -> None:
    phases = [
        test_01_health_and_identity,
        test_02_create_and_read,
        test_03_toggles,
        test_04_delete,
        test_05_retries_log_and_determinism,
    ]
    results = []
    for fn in phases:
        try:
            fn()
            results.append(True)
        except Exception as e:
            print(f"\n[ERROR] {fn.__name__}: {e}")
            import traceback
            traceback.print_exc()
            results.append(False)

    passed = sum(results)
    total = len(results)
    print(f"\n{'='*60}")
    print(f"  RESULTS: {passed}/{total} phases passed")
    print(f"{'='*60}")
    sys.exit(0 if all(results) else 1)


if __name__ == "__main__":
    main()
