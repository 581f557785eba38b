"""
HashDoc Error Hierarchy — Structured exceptions for adapter failures.

Every error carries a message plus keyword context (dbname, key, operation)
so failures can be logged and serialized without losing detail.

Hierarchy:
    HashDocError
    ├── HashDocUsageError         — Caller misuse, never retried
    │   ├── MissingKeyError       — Operation needs a document key
    │   └── DocumentDestroyedError — Handle was already removed
    ├── HashDocTransportError     — Store command or batch failed
    └── HashDocConfigError        — Invalid adapter configuration

Decode anomalies are not errors; the codec degrades to raw strings.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class HashDocError(Exception):
    """
    Base error for all HashDoc adapter failures.
    All context is serializable to JSON.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.dbname: Optional[str] = context.get("dbname")
        self.key: Optional[str] = context.get("key")
        self.operation: Optional[str] = context.get("operation")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict for logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "dbname": self.dbname,
            "key": self.key,
            "operation": self.operation,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("dbname", "key", "operation")
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.dbname:
            parts.append(f"dbname={self.dbname}")
        if self.key:
            parts.append(f"key={self.key}")
        if self.operation:
            parts.append(f"operation={self.operation}")
        return " | ".join(parts)


class HashDocUsageError(HashDocError):
    """The call itself is invalid. Raised before any store I/O."""
    pass


class MissingKeyError(HashDocUsageError):
    """A document key is required and was empty or absent."""
    pass


class DocumentDestroyedError(HashDocUsageError):
    """The document handle was already removed from the store."""
    pass


class HashDocTransportError(HashDocError):
    """
    A store command or atomic batch failed.
    Wraps the underlying redis error; the original is kept as __cause__.
    """

    def __init__(self, message: str, **context: Any):
        self.command_count: Optional[int] = context.get("command_count")
        self.retryable: bool = bool(context.get("retryable", False))
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["command_count"] = self.command_count
        d["retryable"] = self.retryable
        return d


class HashDocConfigError(HashDocError):
    """Configuration error — invalid options or hashdoc.yaml."""
    pass
