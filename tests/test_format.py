from __future__ import annotations

import pytest

from volsurge._format import format_price, format_volume


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, "0.00"),
        (0.0, "0.00"),
        (0.00001234, "1.234e-05"),
        (0.005, "0.005"),
        (1.5, "1.50"),
        (12.3456, "12.3456"),
        (65000.0, "65,000"),
        (1234.5, "1,234.5"),
    ],
)
def test_format_price(value: float | None, expected: str) -> None:
    assert format_price(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, "0"),
        (999.4, "999"),
        (1234.0, "1.2K"),
        (2_500_000.0, "2.50M"),
    ],
)
def test_format_volume(value: float | None, expected: str) -> None:
    assert format_volume(value) == expected
