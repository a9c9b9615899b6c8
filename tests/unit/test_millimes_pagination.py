"""Tests for rb_common.millimes and rb_common.pagination."""

import pytest

from src.rb_common.millimes import line_total, millimes_to_display
from src.rb_common.pagination import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    clamp_limit,
    clamp_page,
    page_offset,
)


class TestDisplay:
    @pytest.mark.parametrize(
        ("millimes", "expected"),
        [
            (0, "0.000 TND"),
            (5, "0.005 TND"),
            (12_500, "12.500 TND"),
            (-1_500, "-1.500 TND"),
            (1_234_567, "1,234.567 TND"),
        ],
    )
    def test_format(self, millimes: int, expected: str) -> None:
        assert millimes_to_display(millimes) == expected

    def test_line_total(self) -> None:
        assert line_total(3, 7_500) == 22_500


class TestPagination:
    def test_defaults(self) -> None:
        assert clamp_page(None) == 1
        assert clamp_limit(None) == DEFAULT_LIMIT

    def test_clamps(self) -> None:
        assert clamp_page(-2) == 1
        assert clamp_limit(0) == 1
        assert clamp_limit(10_000) == MAX_LIMIT

    def test_offset(self) -> None:
        assert page_offset(1, 20) == 0
        assert page_offset(3, 20) == 40
