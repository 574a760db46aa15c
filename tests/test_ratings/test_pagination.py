"""Tests for rating page arithmetic."""

import pytest

from src.errors import ValidationError
from src.ratings.pagination import PageWindow, page_flags, resolve_window


class TestResolveWindow:
    def test_first_page(self):
        window = resolve_window(1, 10, 100)
        assert window == PageWindow(page=1, page_size=10)
        assert window.limit == 10
        assert window.offset == 0

    def test_offset_for_later_page(self):
        assert resolve_window(3, 10, 100).offset == 20

    def test_size_clamped_to_max(self):
        assert resolve_window(1, 1000, 100).page_size == 100

    def test_size_clamped_to_one(self):
        assert resolve_window(1, 0, 100).page_size == 1
        assert resolve_window(1, -5, 100).page_size == 1

    @pytest.mark.parametrize("page", [0, -1])
    def test_page_below_one_rejected(self, page):
        with pytest.raises(ValidationError, match="Pages are 1-based"):
            resolve_window(page, 10, 100)


class TestPageFlags:
    """25 ratings with a page size of 10 span three pages."""

    def test_first_page(self):
        flags = page_flags(PageWindow(page=1, page_size=10), 25)
        assert flags == {"total_pages": 3, "has_next": True, "has_previous": False}

    def test_middle_page(self):
        flags = page_flags(PageWindow(page=2, page_size=10), 25)
        assert flags["has_next"] is True
        assert flags["has_previous"] is True

    def test_last_page(self):
        flags = page_flags(PageWindow(page=3, page_size=10), 25)
        assert flags["has_next"] is False
        assert flags["has_previous"] is True

    def test_past_the_end(self):
        flags = page_flags(PageWindow(page=4, page_size=10), 25)
        assert flags["total_pages"] == 3
        assert flags["has_next"] is False
        assert flags["has_previous"] is True

    def test_exact_multiple(self):
        assert page_flags(PageWindow(page=2, page_size=10), 20)["total_pages"] == 2

    def test_empty(self):
        flags = page_flags(PageWindow(page=1, page_size=10), 0)
        assert flags == {"total_pages": 0, "has_next": False, "has_previous": False}
