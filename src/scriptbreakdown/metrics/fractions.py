"""Fractional page-count approximation."""

from __future__ import annotations

import math
from dataclasses import dataclass

from scriptbreakdown.exceptions import MetricsDegenerateError
from scriptbreakdown.parser.patterns import round_half_up

DENOMINATORS = (2, 4, 8, 16, 32)
MIN_RATIO = 1 / 32


@dataclass(frozen=True)
class FractionalLength:
    """A span length in pages.

    Attributes:
        display: Human form such as ``"1 3/8"``, ``"1/4"`` or ``"2"``
        decimal: The approximated value in pages
        lines: ``decimal`` scaled back to lines, used to track how many
            lines earlier calls already accounted for
    """

    display: str
    decimal: float
    lines: float


ZERO_LENGTH = FractionalLength(display="0", decimal=0, lines=0)


def _is_usable(value: float | int | None) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(number) and number != 0


def fractional_page_count(
    line_count: float | int | None,
    lines_per_page: float | int | None,
    strict: bool = False,
) -> FractionalLength:
    """Approximate ``line_count / lines_per_page`` by a low-denominator fraction.

    The remainder below one page is rounded to the nearest k/2, k/4, k/8,
    k/16 and k/32 in turn, and a denominator only replaces the current
    best when it is strictly closer. Ratios below 1/32 are raised to 1/32
    so any non-empty span has a visible length.

    Args:
        line_count: Lines in the span
        lines_per_page: Lines on the page the span belongs to
        strict: Raise instead of returning the zero result for degenerate
            input

    Returns:
        FractionalLength for the span, ``("0", 0, 0)`` for zero,
        negative or non-finite input

    Raises:
        MetricsDegenerateError: If strict and the input is degenerate
    """
    if not (_is_usable(line_count) and _is_usable(lines_per_page)):
        if strict:
            raise MetricsDegenerateError(
                message="Cannot compute a page length from degenerate input",
                hint="Line count and lines per page must be finite and non-zero",
                details={"line_count": line_count, "lines_per_page": lines_per_page},
            )
        return ZERO_LENGTH

    lines = max(0.0, float(line_count))  # type: ignore[arg-type]
    per_page = max(1.0, float(lines_per_page))  # type: ignore[arg-type]
    if lines == 0:
        if strict:
            raise MetricsDegenerateError(
                message="Cannot compute a page length for a negative line count",
                details={"line_count": line_count},
            )
        return ZERO_LENGTH

    ratio = max(lines / per_page, MIN_RATIO)
    whole = math.floor(ratio)
    remainder = ratio - whole

    numerator, denominator = 0, DENOMINATORS[0]
    best_error = math.inf
    for candidate in DENOMINATORS:
        k = round_half_up(remainder * candidate)
        error = abs(remainder - k / candidate)
        if error < best_error:
            numerator, denominator, best_error = k, candidate, error

    if numerator == denominator:
        whole += 1
        numerator = 0

    decimal = whole + numerator / denominator
    if numerator == 0:
        display = str(whole)
    elif whole == 0:
        display = f"{numerator}/{denominator}"
    else:
        display = f"{whole} {numerator}/{denominator}"

    return FractionalLength(display=display, decimal=decimal, lines=decimal * per_page)
