"""
HashDoc — Document persistence on Redis hashes.
Version: 1.0

Documents are stored as one hash per key with JSON-encoded fields,
attachments in a sibling hash, and (for persistent collections) an id-set
listing every key.

    from hashdoc import RedisAdapter, Document
"""

from hashdoc.adapter import RedisAdapter
from hashdoc.documents.models import Attachment, Document

__version__ = "1.0.0"
__all__ = ["RedisAdapter", "Document", "Attachment", "engine", "documents"]
