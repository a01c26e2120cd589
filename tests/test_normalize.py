from __future__ import annotations

from localdb.normalize import is_legacy_envelope, normalize_document


def test_flat_document_is_unchanged():
    doc = {"id": "a", "userId": "U1", "tags": ["x"]}
    assert normalize_document(doc) == doc


def test_legacy_envelope_is_flattened():
    doc = {"id": "x", "createdAt": "t", "data": {"userId": "U2", "name": "A"}}
    assert normalize_document(doc) == {"id": "x", "createdAt": "t", "userId": "U2", "name": "A"}


def test_nested_fields_win_on_collision():
    doc = {"id": "x", "name": "old", "data": {"name": "new"}}
    assert normalize_document(doc)["name"] == "new"


def test_non_dict_data_field_is_kept():
    doc = {"id": "x", "data": "plain text"}
    assert not is_legacy_envelope(doc)
    assert normalize_document(doc) == doc


def test_normalize_is_idempotent():
    docs = [
        {"id": "a"},
        {"id": "b", "data": {"userId": "U"}},
        {"id": "c", "data": {"data": {"userId": "deep"}, "name": "n"}},
    ]
    for doc in docs:
        once = normalize_document(doc)
        assert normalize_document(once) == once
    assert normalize_document(docs[2]) == {"id": "c", "name": "n", "userId": "deep"}


def test_input_is_not_mutated():
    doc = {"id": "x", "data": {"userId": "U2"}}
    normalize_document(doc)
    assert doc == {"id": "x", "data": {"userId": "U2"}}
