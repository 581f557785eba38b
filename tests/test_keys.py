"""Unit tests for hashdoc.engine.keys — Key scheme."""

import pytest

from hashdoc.engine.errors import MissingKeyError
from hashdoc.engine.keys import attachment_key, hash_key, ids_key


class TestKeyScheme:
    def test_hash_key(self):
        assert hash_key("models", "1") == "models:1"

    def test_attachment_key(self):
        assert attachment_key("models", "1") == "models:1:attaches"

    def test_ids_key(self):
        assert ids_key("models") == "models:ids"

    def test_keys_are_distinct_per_document(self):
        assert hash_key("models", "a") != hash_key("models", "b")
        assert attachment_key("models", "a") != hash_key("models", "a")

    def test_collections_do_not_collide(self):
        assert hash_key("models", "1") != hash_key("ephemera", "1")

    def test_empty_key_rejected(self):
        with pytest.raises(MissingKeyError):
            hash_key("models", "")
        with pytest.raises(MissingKeyError):
            attachment_key("models", "")
