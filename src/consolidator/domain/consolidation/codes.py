"""Decoding and encoding of product/plan code fields.

Source rows store codes either as the wildcard marker ``"*"`` or as a JSON
list of strings. Malformed values never fail a run: they decode to a
one-element set holding the raw text.
"""

from __future__ import annotations

import json
import logging
from typing import Any, cast

from consolidator.domain.model import WILDCARD_TOKEN, CodeSet

log = logging.getLogger(__name__)


def decode_codes(raw: str | None) -> CodeSet:
    """Canonicalize an encoded code field into a ``CodeSet``."""

    if raw is None or not raw.strip():
        return CodeSet()
    if raw.strip() == WILDCARD_TOKEN:
        return CodeSet.match_all()
    try:
        loaded = json.loads(raw)
    except ValueError:
        log.debug("Code field is not valid JSON, keeping raw value: %r", raw)
        return CodeSet.of((raw,))
    if not isinstance(loaded, list):
        log.debug("Code field is not a JSON list, keeping raw value: %r", raw)
        return CodeSet.of((raw,))
    items = cast(list[Any], loaded)
    return CodeSet.of(str(item) for item in items)


def encode_codes(codes: CodeSet) -> str:
    """Render a ``CodeSet`` in the encoded form used by source rows."""

    if codes.wildcard:
        return WILDCARD_TOKEN
    return json.dumps(sorted(codes.codes))
