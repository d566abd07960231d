"""
Content Kernel — Address Derivation + Fixed Layout Tests

  1-4:   Address derivation (determinism, separation, framing)
  5-10:  Layout sizing, encoding, strict decoding, validation
  11:    Slot invariants reject a mis-sized deposit

Run:  python -m content_kernel.test_addressing_layout
"""

from __future__ import annotations

import sys

from content_kernel.addressing import (
    content_address,
    derive_address,
    like_address,
    save_address,
)
from content_kernel.domain_types import (
    KIND_CONTENT,
    KIND_LIKE,
    ContentRecord,
    LikeFlag,
    RentSchedule,
    SaveFlag,
    Slot,
)
from content_kernel.errors import InvariantViolationError, ValidationError
from content_kernel.layout import (
    LIKE_CAPACITY,
    SAVE_CAPACITY,
    LayoutError,
    content_capacity,
    decode_record,
    encode_record,
    required_capacity,
    validate_content_fields,
)
from content_kernel.store import SlotStore

U1 = "11" * 32
U2 = "22" * 32


def _header(title: str) -> None:
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}")


def _content(**overrides) -> ContentRecord:
    fields = dict(
        title="Hi",
        body="Hello world",
        visibility="public",
        owner=U1,
        interaction_count=0,
        created_at=1_700_000_000,
    )
    fields.update(overrides)
    return ContentRecord(**fields)


# ══════════════════════════════════════════════════════════════
# Address derivation (1 – 4)
# ══════════════════════════════════════════════════════════════

def test_01_derivation_is_deterministic() -> None:
    _header("Test 01 -- Same inputs, same address")
    a1 = content_address(U1, "Hi")
    a2 = content_address(U1, "Hi")
    assert a1 == a2
    assert len(a1) == 64 and int(a1, 16) >= 0
    print(f"  address = {a1}")
    print("  [PASS]")


def test_02_inputs_separate_addresses() -> None:
    _header("Test 02 -- Owner, title and namespace all separate addresses")
    base = content_address(U1, "Hi")
    assert content_address(U2, "Hi") != base
    assert content_address(U1, "Hi!") != base
    assert derive_address(b"other", [bytes.fromhex(U1), b"Hi"]) != base
    print("  [PASS]")


def test_03_part_boundaries_are_unambiguous() -> None:
    _header("Test 03 -- Length framing removes boundary ambiguity")
    assert derive_address(b"ns", [b"ab", b"c"]) != derive_address(b"ns", [b"a", b"bc"])
    assert derive_address(b"ns", [b"abc"]) != derive_address(b"nsa", [b"bc"])
    assert derive_address(b"ns", []) != derive_address(b"ns", [b""])
    print("  [PASS]")


def test_04_like_and_save_namespaces_differ() -> None:
    _header("Test 04 -- Like and save flags never share a slot")
    content_id = content_address(U1, "Hi")
    assert like_address(U2, content_id) != save_address(U2, content_id)
    assert like_address(U2, content_id) != like_address(U1, content_id)
    print("  [PASS]")


# ══════════════════════════════════════════════════════════════
# Layout (5 – 10)
# ══════════════════════════════════════════════════════════════

def test_05_content_capacity_from_actual_lengths() -> None:
    _header("Test 05 -- Content capacity sized from supplied lengths")
    record = _content()
    assert content_capacity(2, 11) == 65 + 2 + 11
    assert required_capacity(record) == 78
    assert len(encode_record(record)) == 78
    # multi-byte text is measured in UTF-8 bytes
    assert required_capacity(_content(title="é")) == 65 + 2 + 11
    print("  [PASS]")


def test_06_flag_capacities() -> None:
    _header("Test 06 -- Fixed flag capacities")
    assert LIKE_CAPACITY == 8 + 32 + 32 + 1
    assert SAVE_CAPACITY == 8 + 32 + 32 + 1 + 8
    like = LikeFlag(actor=U2, target=content_address(U1, "Hi"), active=True)
    save = SaveFlag(actor=U2, target=content_address(U1, "Hi"), active=True, saved_at=5)
    assert len(encode_record(like)) == LIKE_CAPACITY
    assert len(encode_record(save)) == SAVE_CAPACITY
    print("  [PASS]")


def test_07_content_fields_survive_the_layout() -> None:
    _header("Test 07 -- Encoded content decodes to the same fields")
    record = _content(
        title="Café ☕", body="Line one\nLine two", visibility="private",
        interaction_count=42,
    )
    decoded = decode_record(KIND_CONTENT, encode_record(record))
    assert decoded == record, f"{decoded!r} != {record!r}"
    print("  [PASS]")


def test_08_strict_decoding() -> None:
    _header("Test 08 -- Wrong kind, truncation and trailing bytes fail")
    data = encode_record(_content())
    for bad_kind, bad_data in (
        (KIND_LIKE, data),
        (KIND_CONTENT, data[:-1]),
        (KIND_CONTENT, data + b"\x00"),
        (KIND_CONTENT, data[:12]),
    ):
        try:
            decode_record(bad_kind, bad_data)
        except LayoutError:
            continue
        raise AssertionError(f"Expected LayoutError for {bad_kind} / {len(bad_data)} bytes")
    print("  [PASS]")


def test_09_field_bounds() -> None:
    _header("Test 09 -- Title 1..100 bytes, body 1..1000 bytes")
    title, body = validate_content_fields("t" * 100, "b" * 1000, "public")
    assert len(title) == 100 and len(body) == 1000

    cases = [
        ("t" * 101, "body", "title"),
        ("", "body", "title"),
        ("é" * 51, "body", "title"),   # 102 bytes
        ("title", "", "body"),
        ("title", "b" * 1001, "body"),
    ]
    for title, body, field in cases:
        try:
            validate_content_fields(title, body, "public")
        except ValidationError as exc:
            assert exc.field == field, f"field={exc.field!r}, expected {field!r}"
            assert "bytes" in exc.expected
            continue
        raise AssertionError(f"Expected ValidationError on {field}")
    print("  [PASS]")


def test_10_visibility_and_type_checks() -> None:
    _header("Test 10 -- Unknown visibility and non-text fields fail")
    for title, body, visibility, field in (
        ("title", "body", "friends", "visibility"),
        (None, "body", "public", "title"),
        ("title", b"body", "public", "body"),
    ):
        try:
            validate_content_fields(title, body, visibility)
        except ValidationError as exc:
            assert exc.field == field
            continue
        raise AssertionError(f"Expected ValidationError on {field}")
    print("  [PASS]")


# ══════════════════════════════════════════════════════════════
# Invariants (11)
# ══════════════════════════════════════════════════════════════

def test_11_commit_rejects_bad_deposit() -> None:
    _header("Test 11 -- Mis-sized deposit never commits")
    store = SlotStore()
    rent = RentSchedule()
    address = content_address(U1, "Hi")
    data = encode_record(_content())
    try:
        with store.transaction(rent) as txn:
            txn._writes[address] = Slot(
                address=address, kind=KIND_CONTENT, payer=U1,
                data=data, deposit=rent.deposit_for(len(data)) - 1,
            )
    except InvariantViolationError as exc:
        assert exc.rule == "deposit"
    else:
        raise AssertionError("Expected InvariantViolationError")
    assert store.get(address) is None
    assert len(store) == 0
    print("  [PASS]")


# ══════════════════════════════════════════════════════════════
# Runner
# ══════════════════════════════════════════════════════════════

def main() -> None:
    tests = [
        test_01_derivation_is_deterministic,
        test_02_inputs_separate_addresses,
        test_03_part_boundaries_are_unambiguous,
        test_04_like_and_save_namespaces_differ,
        test_05_content_capacity_from_actual_lengths,
        test_06_flag_capacities,
        test_07_content_fields_survive_the_layout,
        test_08_strict_decoding,
        test_09_field_bounds,
        test_10_visibility_and_type_checks,
        test_11_commit_rejects_bad_deposit,
    ]
    results = []
    for fn in tests:
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
    print(f"  RESULTS: {passed}/{total} tests passed")
    print(f"{'='*60}")
    sys.exit(0 if all(results) else 1)


if __name__ == "__main__":
    main()
