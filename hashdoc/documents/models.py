"""
HashDoc default document model.

The engine never depends on a concrete document class. It builds documents
through a DocumentFactory supplied at configuration time and reads them
through the small surface below (``key``, ``to_json()``, ``ttl``,
``expire_at``). ``Document`` is the stock implementation; object-model
layers can supply their own class with the same surface.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

ATTACHMENTS_FIELD = "_attachments"

# Builds a document from decoded storage fields.
DocumentFactory = Callable[[Dict[str, Any]], Any]


@dataclass
class Attachment:
    """A named binary sub-resource of a document."""
    name: str
    body: Any = None
    content_type: str = "application/octet-stream"
    length: Optional[int] = None

    def __post_init__(self):
        if self.length is None and isinstance(self.body, (bytes, bytearray, str)):
            self.length = len(self.body)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "body": self.body,
            "content_type": self.content_type,
            "length": self.length,
        }


class Document:
    """
    A keyed bag of JSON-serializable fields with optional attachments.

    ``ttl`` and ``expire_at`` are lifetime hints for ephemeral collections
    and are not stored as fields.
    """

    plural = "documents"

    def __init__(
        self,
        key: str = "",
        fields: Optional[Dict[str, Any]] = None,
        attachments: Optional[Dict[str, Attachment]] = None,
        ttl: Optional[int] = None,
        expire_at: Optional[float] = None,
    ):
        self.key = key
        self.fields: Dict[str, Any] = dict(fields or {})
        self.attachments: Dict[str, Attachment] = dict(attachments or {})
        self.ttl = ttl
        self.expire_at = expire_at
        self.destroyed = False

    def __getitem__(self, name: str) -> Any:
        return self.fields[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self.fields[name] = value

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def add_attachment(self, attachment: Attachment) -> None:
        self.attachments[attachment.name] = attachment

    def to_json(self) -> Dict[str, Any]:
        """Field mapping handed to the codec; includes ``key``."""
        data: Dict[str, Any] = {"key": self.key}
        data.update(self.fields)
        if self.attachments:
            data[ATTACHMENTS_FIELD] = {
                name: att.to_dict() for name, att in self.attachments.items()
            }
        return data

    @classmethod
    def from_storage(cls, data: Dict[str, Any]) -> "Document":
        """DocumentFactory for this class."""
        fields = dict(data)
        key = fields.pop("key", "")
        fields.pop(ATTACHMENTS_FIELD, None)
        return cls(key=str(key) if key is not None else "", fields=fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return self.key == other.key and self.fields == other.fields

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} key={self.key!r} fields={sorted(self.fields)}>"
