# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for blob storage."""

from pathlib import Path

import pytest

from src.infrastructure.storage import (
    BlobNotFoundError,
    InvalidBlobPathError,
    LocalBlobStorage,
    StorageError,
    get_storage,
    normalize_path,
    reset_storage,
)
from src.infrastructure.storage.base import normalize_prefix


@pytest.fixture
def local(tmp_path: Path) -> LocalBlobStorage:
    return LocalBlobStorage(tmp_path / "blobs", public_base_url="/api/v1/files/")


class TestPaths:
    """Tests for path normalization."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("uploads/general/a.pdf", "uploads/general/a.pdf"),
            ("/uploads//general/./a.pdf/", "uploads/general/a.pdf"),
        ],
    )
    def test_normalize_path(self, path: str, expected: str) -> None:
        """Test that redundant separators are collapsed."""
        assert normalize_path(path) == expected

    @pytest.mark.parametrize(
        "path", ["", "/", "uploads\\a.pdf", "uploads/../secret", "a\x00b", "./."]
    )
    def test_invalid_paths(self, path: str) -> None:
        """Test that unsafe paths are rejected."""
        with pytest.raises(InvalidBlobPathError):
            normalize_path(path)

    def test_normalize_prefix(self) -> None:
        """Test listing prefixes."""
        assert normalize_prefix("") == ""
        assert normalize_prefix("/") == ""
        assert normalize_prefix("students/s1/") == "students/s1/"
        assert normalize_prefix("students/s1") == "students/s1"


class TestLocalBlobStorage:
    """Tests for LocalBlobStorage."""

    async def test_put_and_get(self, local: LocalBlobStorage) -> None:
        """Test storing and reading a blob."""
        blob = await local.put("students/s1/report card.pdf", b"%PDF-1.4", "application/pdf")

        assert blob.path == "students/s1/report card.pdf"
        assert blob.size == 8
        assert blob.content_type == "application/pdf"
        assert blob.url == "/api/v1/files/students/s1/report%20card.pdf"
        assert await local.get("students/s1/report card.pdf") == b"%PDF-1.4"

    async def test_put_guesses_content_type(self, local: LocalBlobStorage) -> None:
        """Test the content type fallback from the file name."""
        blob = await local.put("uploads/general/photo.png", b"\x89PNG")

        assert blob.content_type == "image/png"

    async def test_get_missing(self, local: LocalBlobStorage) -> None:
        """Test reading a blob that does not exist."""
        with pytest.raises(BlobNotFoundError):
            await local.get("uploads/none.pdf")

    async def test_get_directory(self, local: LocalBlobStorage) -> None:
        """Test that directories are not blobs."""
        await local.put("uploads/general/a.pdf", b"a")

        with pytest.raises(BlobNotFoundError):
            await local.get("uploads/general")

    async def test_delete(self, local: LocalBlobStorage) -> None:
        """Test deleting existing and missing blobs."""
        await local.put("uploads/a.txt", b"a")

        assert await local.delete("uploads/a.txt") is True
        assert await local.delete("uploads/a.txt") is False
        assert await local.exists("uploads/a.txt") is False

    async def test_list_by_prefix(self, local: LocalBlobStorage) -> None:
        """Test that listings are filtered and sorted."""
        await local.put("students/s2/b.pdf", b"b")
        await local.put("students/s1/a.pdf", b"a")
        await local.put("uploads/c.pdf", b"c")

        everything = await local.list()
        students = await local.list("students/")

        assert [b.path for b in everything] == [
            "students/s1/a.pdf",
            "students/s2/b.pdf",
            "uploads/c.pdf",
        ]
        assert [b.path for b in students] == ["students/s1/a.pdf", "students/s2/b.pdf"]

    async def test_list_partial_name_prefix(self, local: LocalBlobStorage) -> None:
        """Test that a prefix may end inside a file name."""
        await local.put("students/s1/report.pdf", b"r")
        await local.put("students/s1/photo.png", b"p")
        await local.put("students/s10/report.pdf", b"x")

        blobs = await local.list("students/s1/rep")

        assert [b.path for b in blobs] == ["students/s1/report.pdf"]
        assert await local.list("students/s9/") == []

    async def test_list_walks_only_prefix_directory(
        self, local: LocalBlobStorage, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that listing does not scan unrelated directories."""
        await local.put("students/s1/a.pdf", b"a")
        await local.put("uploads/general/b.pdf", b"b")
        walked: list[Path] = []
        original_rglob = Path.rglob

        def recording_rglob(self: Path, pattern: str):
            walked.append(self)
            return original_rglob(self, pattern)

        monkeypatch.setattr(Path, "rglob", recording_rglob)

        blobs = await local.list("students/s1/")

        assert [b.path for b in blobs] == ["students/s1/a.pdf"]
        assert walked == [(tmp_path / "blobs" / "students" / "s1").resolve()]

    async def test_list_before_first_write(self, local: LocalBlobStorage) -> None:
        """Test listing an empty store."""
        assert await local.list() == []

    async def test_ping_creates_root(self, local: LocalBlobStorage, tmp_path: Path) -> None:
        """Test the health check."""
        assert await local.ping() is True
        assert (tmp_path / "blobs").is_dir()

    async def test_escape_is_rejected(self, local: LocalBlobStorage) -> None:
        """Test that traversal never reaches the filesystem."""
        with pytest.raises(InvalidBlobPathError):
            await local.put("../outside.txt", b"x")


class TestStorageSingleton:
    """Tests for the process-wide store."""

    def test_uninitialized(self) -> None:
        """Test that get_storage fails before init_storage."""
        reset_storage()

        with pytest.raises(StorageError, match="not initialized"):
            get_storage()
