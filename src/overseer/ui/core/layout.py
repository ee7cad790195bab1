"""
Layout calculation for the split-screen display.

The viewport is partitioned into a header strip, a body split between the
activity feed (left) and the context panel (right) with a one-column divider,
and a prompt strip at the bottom. calculate_layout is pure.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

DEFAULT_HEADER_HEIGHT = 4
DEFAULT_PROMPT_HEIGHT = 3

MIN_SPLIT_PERCENT = 50
MAX_SPLIT_PERCENT = 80

# Below either floor the context panel collapses to zero width.
MIN_SPLIT_WIDTH = 60
MIN_BODY_HEIGHT = 3

DIVIDER_WIDTH = 1


@dataclass(frozen=True)
class ScreenRect:
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return max(0, self.width) * max(0, self.height)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def intersects(self, other: "ScreenRect") -> bool:
        if self.is_empty or other.is_empty:
            return False
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )

    def inset(self, dx: int, dy: int) -> "ScreenRect":
        return ScreenRect(
            self.x + dx,
            self.y + dy,
            max(0, self.width - 2 * dx),
            max(0, self.height - 2 * dy),
        )


@dataclass(frozen=True)
class LayoutRegions:
    header: ScreenRect
    activity: ScreenRect
    divider: ScreenRect
    context: ScreenRect
    prompt: ScreenRect

    def as_tuple(self) -> Tuple[ScreenRect, ...]:
        return (self.header, self.activity, self.divider, self.context, self.prompt)

    @property
    def context_collapsed(self) -> bool:
        return self.context.width == 0


def clamp_split(split_percent: int) -> int:
    return max(MIN_SPLIT_PERCENT, min(MAX_SPLIT_PERCENT, split_percent))


def calculate_layout(
    width: int,
    height: int,
    split_percent: int = 60,
    header_height: int = DEFAULT_HEADER_HEIGHT,
    prompt_height: int = DEFAULT_PROMPT_HEIGHT,
) -> LayoutRegions:
    """
    Calculate screen regions.

    Args:
        width: Viewport columns
        height: Viewport rows
        split_percent: Activity share of the body width (clamped to 50-80)
        header_height: Rows for the header strip
        prompt_height: Rows for the prompt strip

    Returns:
        Non-overlapping regions that exactly cover the viewport
    """
    width = max(0, width)
    height = max(0, height)
    split = clamp_split(split_percent)

    header_h = min(max(0, header_height), height)
    prompt_h = min(max(0, prompt_height), height - header_h)
    body_h = height - header_h - prompt_h
    body_y = header_h

    if width < MIN_SPLIT_WIDTH or body_h < MIN_BODY_HEIGHT:
        activity_w = width
        divider_w = 0
    else:
        activity_w = width * split // 100
        divider_w = DIVIDER_WIDTH
    context_w = width - activity_w - divider_w

    return LayoutRegions(
        header=ScreenRect(0, 0, width, header_h),
        activity=ScreenRect(0, body_y, activity_w, body_h),
        divider=ScreenRect(activity_w, body_y, divider_w, body_h),
        context=ScreenRect(activity_w + divider_w, body_y, context_w, body_h),
        prompt=ScreenRect(0, body_y + body_h, width, prompt_h),
    )


def centered_rect(
    viewport: ScreenRect, width: int, height: int, margin: int = 2
) -> ScreenRect:
    """A rect of the requested size centered in viewport, capped to viewport minus margin."""
    max_w = max(0, viewport.width - 2 * margin)
    max_h = max(0, viewport.height - 2 * margin)
    w = max(0, min(width, max_w))
    h = max(0, min(height, max_h))
    x = viewport.x + (viewport.width - w) // 2
    y = viewport.y + (viewport.height - h) // 2
    return ScreenRect(x, y, w, h)
