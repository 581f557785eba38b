"""
HashDoc Codec — Flatten documents into Redis hashes and inflate them back.

Each document field becomes one hash field holding a self-contained JSON
encoding of its value. The reserved ``_attachments`` field is split out into
a separate mapping of attachment name -> JSON record so attachments can live
in their own hash.

Binary attachment bodies are written in the ``{"type": "Buffer", "data": [...]}``
shape and turned back into ``bytes`` on read.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, Mapping, Optional

from hashdoc.documents.models import ATTACHMENTS_FIELD

logger = logging.getLogger("hashdoc.engine.codec")


@dataclass
class FlatPayload:
    """Result of flattening a document: primary hash + attachment hash."""
    body: Dict[str, str] = field(default_factory=dict)
    attachments: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class FieldDecode:
    """
    Outcome of decoding one stored field.

    ``raw`` is True when the stored text was not valid JSON and ``value``
    is the text verbatim.
    """
    value: Any
    raw: bool = False


def _encode_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {"type": "Buffer", "data": list(bytes(value))}
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


def encode_value(value: Any) -> str:
    """Encode a single field value as JSON text."""
    return json.dumps(value, default=_encode_default)


def decode_field(text: Any) -> FieldDecode:
    """Decode one stored field; invalid JSON degrades to the raw string."""
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    try:
        return FieldDecode(json.loads(text))
    except (json.JSONDecodeError, TypeError):
        return FieldDecode(text, raw=True)


def _attachment_part(attachment: Any, part: str) -> Any:
    if isinstance(attachment, Mapping):
        return attachment.get(part)
    return getattr(attachment, part, None)


def encode_attachment(name: str, attachment: Any) -> str:
    """Encode an attachment (mapping or object) as a self-contained record."""
    record = {
        "body": _attachment_part(attachment, "body"),
        "content_type": _attachment_part(attachment, "content_type"),
        "length": _attachment_part(attachment, "length"),
        "name": name,
    }
    return encode_value(record)


def _is_byte_list(value: Any) -> bool:
    return isinstance(value, list) and all(
        isinstance(b, int) and not isinstance(b, bool) and 0 <= b < 256 for b in value
    )


def restore_body(body: Any) -> Any:
    """
    Reinterpret an object- or list-shaped decoded body as raw bytes.
    Anything that is not a list of byte values is returned unchanged.
    """
    if isinstance(body, Mapping) and _is_byte_list(body.get("data")):
        return bytes(body["data"])
    if _is_byte_list(body):
        return bytes(body)
    return body


def decode_attachment(text: Any) -> Optional[Dict[str, Any]]:
    """
    Decode a stored attachment record. Returns None for an absent or empty
    value. A record that is not valid JSON comes back with the raw text as
    its body.
    """
    if not text:
        return None
    decoded = decode_field(text)
    if decoded.raw or not isinstance(decoded.value, dict):
        logger.debug("Attachment record is not a JSON object; using raw value")
        return {"name": None, "body": decoded.value, "content_type": None, "length": None}
    record = dict(decoded.value)
    record["body"] = restore_body(record.get("body"))
    return record


def flatten(document: Mapping[str, Any]) -> FlatPayload:
    """
    Flatten a document's field mapping. The input mapping is not modified.
    """
    fields = dict(document)
    payload = FlatPayload()

    attachments = fields.pop(ATTACHMENTS_FIELD, None)
    if attachments:
        for name in attachments:
            payload.attachments[name] = encode_attachment(name, attachments[name])

    for name in sorted(fields):
        payload.body[name] = encode_value(fields[name])

    return payload


def decode_fields(payload: Optional[Mapping[Any, Any]]) -> Optional[Dict[str, Any]]:
    """
    Decode a stored hash into a field mapping.
    An absent or empty hash means "no document" and returns None.
    """
    if not payload:
        return None

    fields: Dict[str, Any] = {}
    for name in sorted(payload):
        decoded = decode_field(payload[name])
        if decoded.raw:
            logger.debug(f"Field '{name}' is not JSON; keeping raw string")
        key = name.decode("utf-8") if isinstance(name, bytes) else name
        fields[key] = decoded.value
    return fields


def inflate(
    payload: Optional[Mapping[Any, Any]],
    factory: Callable[[Dict[str, Any]], Any],
) -> Any:
    """Decode a stored hash and hand the fields to ``factory``; None if absent."""
    fields = decode_fields(payload)
    if fields is None:
        return None
    return factory(fields)
