"""Page, scene and shot metrics over token lists."""

from __future__ import annotations

from .fractions import FractionalLength, fractional_page_count
from .line_counts import (
    PROLOGUE_KEY,
    LineCounts,
    calculate_line_counts,
    line_weight,
    scene_keys,
)
from .shots import DEFAULT_SHOTS_PER_PAGE, ShotAllocator, scene_shot_counts

__all__ = [
    "DEFAULT_SHOTS_PER_PAGE",
    "PROLOGUE_KEY",
    "FractionalLength",
    "LineCounts",
    "ShotAllocator",
    "calculate_line_counts",
    "fractional_page_count",
    "line_weight",
    "scene_keys",
    "scene_shot_counts",
]
