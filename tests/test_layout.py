"""
Tests for the split-screen layout calculator.
"""

from __future__ import annotations

import itertools

from hypothesis import given, strategies as st

from overseer.ui.core.layout import (
    MIN_SPLIT_WIDTH,
    ScreenRect,
    calculate_layout,
    centered_rect,
    clamp_split,
)


def test_standard_terminal_regions() -> None:
    """Verify a 100x40 viewport at 60% split."""
    regions = calculate_layout(100, 40, 60)
    assert regions.header == ScreenRect(0, 0, 100, 4)
    assert regions.activity == ScreenRect(0, 4, 60, 33)
    assert regions.divider == ScreenRect(60, 4, 1, 33)
    assert regions.context == ScreenRect(61, 4, 39, 33)
    assert regions.prompt == ScreenRect(0, 37, 100, 3)
    assert not regions.context_collapsed


def test_narrow_terminal_collapses_context() -> None:
    """Verify the context panel collapses below the minimum split width."""
    regions = calculate_layout(MIN_SPLIT_WIDTH - 1, 30)
    assert regions.context_collapsed
    assert regions.divider.width == 0
    assert regions.activity.width == MIN_SPLIT_WIDTH - 1


def test_short_terminal_collapses_context() -> None:
    """Verify a body shorter than three rows collapses the context panel."""
    regions = calculate_layout(120, 8)
    assert regions.activity.height == 1
    assert regions.context_collapsed


def test_split_is_clamped() -> None:
    """Verify the split percentage stays within 50-80."""
    assert clamp_split(10) == 50
    assert clamp_split(95) == 80
    assert clamp_split(65) == 65
    assert calculate_layout(100, 40, 95).activity.width == 80


@given(st.integers(0, 300), st.integers(0, 120), st.integers(-20, 150))
def test_regions_partition_viewport(width, height, split) -> None:
    """Verify regions never overlap and exactly cover the viewport."""
    regions = calculate_layout(width, height, split)
    rects = regions.as_tuple()

    for first, second in itertools.combinations(rects, 2):
        assert not first.intersects(second)
    assert sum(rect.area for rect in rects) == width * height
    for rect in rects:
        assert rect.x >= 0 and rect.y >= 0
        assert rect.right <= width and rect.bottom <= height


def test_centered_rect_respects_margin() -> None:
    """Verify a modal rect is centered and capped to the viewport minus margin."""
    viewport = ScreenRect(0, 0, 80, 24)
    assert centered_rect(viewport, 40, 10) == ScreenRect(20, 7, 40, 10)
    assert centered_rect(viewport, 200, 200, margin=2) == ScreenRect(2, 2, 76, 20)
