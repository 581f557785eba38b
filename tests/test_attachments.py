"""Unit tests for hashdoc.engine.attachments — AttachmentStore."""

import json

import pytest

from hashdoc.documents.models import Attachment, Document
from hashdoc.engine.codec import encode_attachment
from hashdoc.engine.errors import HashDocUsageError, MissingKeyError


class TestAttachmentGet:
    @pytest.mark.asyncio
    async def test_absent_is_none(self, attachment_store, mock_redis):
        mock_redis.hget.return_value = None
        assert await attachment_store.get("1", "avatar") is None
        mock_redis.hget.assert_awaited_once_with("models:1:attaches", "avatar")

    @pytest.mark.asyncio
    async def test_binary_body_byte_for_byte(self, attachment_store, mock_redis, png_bytes):
        mock_redis.hget.return_value = encode_attachment(
            "avatar", {"body": png_bytes, "content_type": "image/png", "length": len(png_bytes)}
        )
        body = await attachment_store.get("1", "avatar")
        assert body == png_bytes
        assert isinstance(body, bytes)

    @pytest.mark.asyncio
    async def test_buffer_record_from_older_writers(self, attachment_store, mock_redis):
        mock_redis.hget.return_value = json.dumps({
            "body": {"type": "Buffer", "data": [0, 159, 146, 150]},
            "content_type": "application/octet-stream",
            "length": 4,
            "name": "blob",
        })
        assert await attachment_store.get("1", "blob") == b"\x00\x9f\x92\x96"

    @pytest.mark.asyncio
    async def test_text_body(self, attachment_store, mock_redis):
        mock_redis.hget.return_value = encode_attachment("note", Attachment("note", "hello", "text/plain"))
        assert await attachment_store.get("1", "note") == "hello"

    @pytest.mark.asyncio
    async def test_empty_record_is_absent(self, attachment_store, mock_redis):
        mock_redis.hget.return_value = ""
        assert await attachment_store.get("1", "avatar") is None

    @pytest.mark.asyncio
    async def test_list_body_outside_byte_range_unchanged(self, attachment_store, mock_redis):
        mock_redis.hget.return_value = encode_attachment("nums", {"body": [100, 300]})
        assert await attachment_store.get("1", "nums") == [100, 300]

    @pytest.mark.asyncio
    async def test_missing_key(self, attachment_store):
        with pytest.raises(MissingKeyError):
            await attachment_store.get("", "avatar")


class TestAttachmentSet:
    @pytest.mark.asyncio
    async def test_writes_record_under_name(self, attachment_store, mock_redis, png_bytes):
        doc = Document("1")
        reply = await attachment_store.set(doc, Attachment("avatar", png_bytes, "image/png"))

        assert reply == 1
        args = mock_redis.hset.await_args.args
        assert args[:2] == ("models:1:attaches", "avatar")
        record = json.loads(args[2])
        assert record["name"] == "avatar"
        assert record["content_type"] == "image/png"
        assert record["length"] == len(png_bytes)
        assert bytes(record["body"]["data"]) == png_bytes

    @pytest.mark.asyncio
    async def test_accepts_mapping(self, attachment_store, mock_redis):
        await attachment_store.set(
            Document("1"), {"name": "note", "body": "updated", "content_type": "text/plain", "length": 7}
        )
        assert mock_redis.hset.await_args.args[1] == "note"

    @pytest.mark.asyncio
    async def test_overwrite_then_read(self, attachment_store, mock_redis):
        stored = {}

        async def hset(key, name, value):
            created = name not in stored
            stored[name] = value
            return int(created)

        async def hget(key, name):
            return stored.get(name)

        mock_redis.hset.side_effect = hset
        mock_redis.hget.side_effect = hget
        doc = Document("1")
        await attachment_store.set(doc, Attachment("note", "first", "text/plain"))
        await attachment_store.set(doc, Attachment("note", "second", "text/plain"))
        assert await attachment_store.get("1", "note") == "second"

    @pytest.mark.asyncio
    async def test_requires_name(self, attachment_store, mock_redis):
        with pytest.raises(HashDocUsageError, match="without a name"):
            await attachment_store.set(Document("1"), {"body": "x"})
        mock_redis.hset.assert_not_called()

    @pytest.mark.asyncio
    async def test_requires_document_key(self, attachment_store):
        with pytest.raises(MissingKeyError):
            await attachment_store.set(Document(""), Attachment("a", "x"))


class TestAttachmentDelete:
    @pytest.mark.asyncio
    async def test_removed(self, attachment_store, mock_redis):
        mock_redis.hdel.return_value = 1
        assert await attachment_store.delete(Document("1"), "avatar") is True
        mock_redis.hdel.assert_awaited_once_with("models:1:attaches", "avatar")

    @pytest.mark.asyncio
    async def test_nothing_to_remove(self, attachment_store, mock_redis):
        mock_redis.hdel.return_value = 0
        assert await attachment_store.delete(Document("1"), "ghost") is False
