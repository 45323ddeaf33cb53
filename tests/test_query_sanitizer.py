# tests/test_query_sanitizer.py

"""Tests for QuerySanitizer input cleanup."""

import unittest

from src.filters.query_sanitizer import QuerySanitizer


class TestSanitize(unittest.TestCase):
    """QuerySanitizer.sanitize behaviour."""

    def test_plain_query_unchanged(self) -> None:
        """An already clean query is returned as-is."""
        self.assertEqual(
            QuerySanitizer.sanitize("wool socks"), "wool socks"
        )

    def test_control_chars_replaced(self) -> None:
        """Newlines, tabs, and NULs become single spaces."""
        self.assertEqual(
            QuerySanitizer.sanitize("wool\n\tsocks\x00now"),
            "wool socks now",
        )

    def test_whitespace_collapsed_and_trimmed(self) -> None:
        """Runs of spaces collapse; ends are trimmed."""
        self.assertEqual(
            QuerySanitizer.sanitize("   maple    syrup  "),
            "maple syrup",
        )

    def test_empty_inputs(self) -> None:
        """None, empty, and whitespace-only inputs become ''."""
        self.assertEqual(QuerySanitizer.sanitize(None), "")
        self.assertEqual(QuerySanitizer.sanitize(""), "")
        self.assertEqual(QuerySanitizer.sanitize(" \n\t "), "")

    def test_truncated_to_max_length(self) -> None:
        """Long input is cut to the requested length."""
        result = QuerySanitizer.sanitize("a" * 50, max_length=10)
        self.assertEqual(result, "a" * 10)


if __name__ == "__main__":
    unittest.main()
