"""
HashDoc Documents — Default object model used by the adapter.
"""

from hashdoc.documents.models import Attachment, Document, DocumentFactory

__all__ = [
    "Attachment",
    "Document",
    "DocumentFactory",
]
