# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for stored filename helpers."""

import re

import pytest

from src.domains.document.filenames import safe_filename, split_filename, unique_filename


class TestSafeFilename:
    """Tests for safe_filename."""

    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("My Report (v2).PDF", "My_Report__v2_.pdf"),
            ("report card.pdf", "report_card.pdf"),
            ("../../etc/passwd", "passwd"),
            ("C:\\Users\\jane\\form 137.pdf", "form_137.pdf"),
            ("archive.tar.gz", "archive_tar.gz"),
            (".bashrc", "_bashrc"),
            ("résumé.docx", "r_sum_.docx"),
            ("", "file"),
        ],
    )
    def test_sanitizes(self, filename: str, expected: str) -> None:
        """Test that only ASCII letters, digits and the extension remain."""
        assert safe_filename(filename) == expected

    def test_odd_extension_is_dropped(self) -> None:
        """Test that extensions with symbols are folded into the base."""
        assert split_filename("notes.t$t") == ("notes_t_t", "")


class TestUniqueFilename:
    """Tests for unique_filename."""

    def test_shape(self) -> None:
        """Test the timestamp and random suffix."""
        name = unique_filename("Lesson Plan.PDF")

        assert re.fullmatch(r"Lesson_Plan-\d{13}-\d+\.pdf", name)

    def test_names_differ(self) -> None:
        """Test that repeated uploads get distinct names."""
        assert unique_filename("a.pdf") != unique_filename("a.pdf")
