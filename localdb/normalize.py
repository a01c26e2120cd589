from __future__ import annotations

from typing import Any, Mapping

LEGACY_ENVELOPE_KEY = "data"


def is_legacy_envelope(doc: Mapping[str, Any]) -> bool:
    return isinstance(doc.get(LEGACY_ENVELOPE_KEY), dict)


def normalize_document(doc: Mapping[str, Any]) -> dict[str, Any]:
    """
    Flatten documents persisted in the old nested shape:

      {"id": "x", "createdAt": "t", "data": {"userId": "U2", "name": "A"}}
        -> {"id": "x", "createdAt": "t", "userId": "U2", "name": "A"}

    Nested fields win over top-level ones on key collision. Envelopes nested
    inside envelopes are unwrapped too, so the result never has a dict-valued
    "data" key and normalizing twice is the same as normalizing once.

    Applied on load only; a document becomes permanently flat the next time its
    collection is stored.
    """
    flat = dict(doc)
    while is_legacy_envelope(flat):
        nested = flat.pop(LEGACY_ENVELOPE_KEY)
        flat = {**flat, **nested}
    return flat
