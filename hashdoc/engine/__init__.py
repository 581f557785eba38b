"""HashDoc Engine — Connection management, codec, key scheme, document and attachment stores."""

from hashdoc.engine.attachments import AttachmentStore  # noqa: F401
from hashdoc.engine.connection import ConnectionManager, ConnectionState  # noqa: F401
from hashdoc.engine.store import DocumentStore  # noqa: F401

__all__ = [
    "AttachmentStore",
    "ConnectionManager",
    "ConnectionState",
    "DocumentStore",
]
