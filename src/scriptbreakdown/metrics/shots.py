"""Shot-count estimation under several shots-per-page assumptions."""

from __future__ import annotations

from collections.abc import Iterable

from scriptbreakdown.parser.patterns import round_half_up

DEFAULT_SHOTS_PER_PAGE: tuple[int, ...] = (14, 20, 24)


class ShotAllocator:
    """Spread each page's shots over its blocks without drift.

    For every assumption the allocator remembers how many of the page's
    lines are already paid for. Each block gets
    ``round(spp * (cumulative - accounted) / page_total)`` shots and the
    accounted lines move forward by the lines those shots stand for, so
    the shots of a page always add up to the assumption.
    """

    def __init__(self, shots_per_page: Iterable[int] = DEFAULT_SHOTS_PER_PAGE) -> None:
        self.shots_per_page: tuple[int, ...] = tuple(shots_per_page)
        if not self.shots_per_page or any(spp < 1 for spp in self.shots_per_page):
            raise ValueError("shots_per_page needs at least one value >= 1")
        self.accounted: dict[int, float] = dict.fromkeys(self.shots_per_page, 0.0)

    def reset(self) -> None:
        """Start a new page."""
        self.accounted = dict.fromkeys(self.shots_per_page, 0.0)

    def allocate(self, cumulative_page_lines: float, page_total: float) -> dict[int, int]:
        """Shots attributed to the block ending at ``cumulative_page_lines``.

        Args:
            cumulative_page_lines: Lines on this page up to and including
                the block
            page_total: All lines on the page

        Returns:
            Mapping of shots-per-page assumption to the block's shot count
        """
        if not page_total:
            return dict.fromkeys(self.shots_per_page, 0)
        shots: dict[int, int] = {}
        for spp in self.shots_per_page:
            count = round_half_up(
                spp * (cumulative_page_lines - self.accounted[spp]) / page_total
            )
            self.accounted[spp] += count / spp * page_total
            shots[spp] = count
        return shots


def scene_shot_counts(
    length_decimal: float, shots_per_page: Iterable[int] = DEFAULT_SHOTS_PER_PAGE
) -> dict[int, int]:
    """Shot estimates for a whole scene from its length in pages."""
    return {spp: round_half_up(length_decimal * spp) for spp in shots_per_page}
