"""
HashDoc Attachment Store — Named binary sub-resources kept per document.

Attachments live in ``{dbname}:{key}:attaches``, one hash field per name,
so they can change without rewriting the document and vice versa.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from hashdoc.engine.codec import decode_attachment, encode_attachment
from hashdoc.engine.commands import CommandRunner
from hashdoc.engine.errors import HashDocUsageError

logger = logging.getLogger("hashdoc.engine.attachments")


def _attachment_name(attachment: Any) -> Optional[str]:
    if isinstance(attachment, Mapping):
        return attachment.get("name")
    return getattr(attachment, "name", None)


class AttachmentStore(CommandRunner):
    """Get, set and delete single attachments of a document."""

    async def get(self, key: str, name: str) -> Any:
        """Body of attachment ``name`` on document ``key``, or None."""
        key = self._require_key(key, "read attachments of")
        akey = self.attachment_key(key)
        payload = await self._call("attachment", lambda client: client.hget(akey, name), key=key)
        record = decode_attachment(payload)
        if record is None:
            return None
        return record["body"]

    async def set(self, document: Any, attachment: Any) -> Any:
        """Write ``attachment`` under its name, replacing any previous value."""
        key = self._require_key(getattr(document, "key", None), "attach to")
        name = _attachment_name(attachment)
        if not name:
            raise HashDocUsageError(
                "cannot save an attachment without a name",
                dbname=self._dbname,
                key=key,
                operation="save_attachment",
            )
        akey = self.attachment_key(key)
        record = encode_attachment(name, attachment)
        reply = await self._call(
            "save_attachment", lambda client: client.hset(akey, name, record), key=key
        )
        logger.debug(f"Stored attachment '{name}' on {akey}")
        return reply

    async def delete(self, document: Any, name: str) -> bool:
        """Remove attachment ``name``. True if a field was actually removed."""
        key = self._require_key(getattr(document, "key", None), "detach from")
        akey = self.attachment_key(key)
        removed = await self._call(
            "remove_attachment", lambda client: client.hdel(akey, name), key=key
        )
        return bool(removed)
