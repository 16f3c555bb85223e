"""Tests for token storage."""

import os
import stat
import sys

import pytest

from atat.core import get_token_path
from atat.storage import FileTokenStore, MemoryTokenStore, TokenStore


class TestTokenStore:
    """Tests for the TokenStore interface."""

    def test_interface_cannot_be_instantiated(self):
        """Test a store must implement get, set and clear."""
        with pytest.raises(TypeError):
            TokenStore()

    def test_partial_store_cannot_be_instantiated(self):
        """Test a subclass missing clear is rejected."""

        class ReadOnlyStore(TokenStore):
            def get(self):
                return None

            def set(self, token):
                pass

        with pytest.raises(TypeError):
            ReadOnlyStore()


class TestMemoryTokenStore:
    """Tests for MemoryTokenStore."""

    def test_set_get_clear(self):
        """Test the in-memory lifecycle."""
        store = MemoryTokenStore()
        assert store.get() is None

        store.set("abc")
        assert store.get() == "abc"

        store.clear()
        assert store.get() is None


class TestFileTokenStore:
    """Tests for FileTokenStore."""

    def test_default_path_uses_atat_home(self, isolated_home):
        """Test the token lives under ATAT_HOME."""
        assert FileTokenStore().path == isolated_home / "token"
        assert get_token_path() == isolated_home / "token"

    def test_missing_file(self, tmp_path):
        """Test a missing file means no token."""
        assert FileTokenStore(tmp_path / "token").get() is None

    def test_round_trip(self, tmp_path):
        """Test a saved token can be read back."""
        store = FileTokenStore(tmp_path / "nested" / "token")
        store.set("gho_123")

        assert store.get() == "gho_123"
        assert FileTokenStore(tmp_path / "nested" / "token").get() == "gho_123"

    def test_blank_file_is_no_token(self, tmp_path):
        """Test whitespace-only contents mean no token."""
        path = tmp_path / "token"
        path.write_text("  \n")
        assert FileTokenStore(path).get() is None

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_file_is_owner_only(self, tmp_path):
        """Test the token file has 0600 permissions."""
        path = tmp_path / "token"
        FileTokenStore(path).set("secret")

        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_existing_file_permissions_tightened(self, tmp_path):
        """Test overwriting a world-readable file restricts it."""
        path = tmp_path / "token"
        path.write_text("old")
        path.chmod(0o644)

        FileTokenStore(path).set("new")

        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
        assert path.read_text() == "new"

    def test_clear(self, tmp_path):
        """Test clear removes the file and tolerates a missing one."""
        path = tmp_path / "token"
        store = FileTokenStore(path)
        store.set("secret")

        store.clear()
        assert not path.exists()
        store.clear()
