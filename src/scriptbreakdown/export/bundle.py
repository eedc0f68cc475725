"""Export-all bundle: full and VFX-only breakdowns, raw text and HTML."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from scriptbreakdown.config import get_logger
from scriptbreakdown.document.converter import tokens_to_document
from scriptbreakdown.document.html import document_to_html
from scriptbreakdown.exceptions import ExportError
from scriptbreakdown.export.serializer import write_tokens
from scriptbreakdown.export.writers import write_breakdown
from scriptbreakdown.parser.entities import EntityRegistry
from scriptbreakdown.parser.patterns import DEFAULT_VFX_LEVELS
from scriptbreakdown.parser.tokens import Token

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExportBundle:
    """Paths written by ``export_all``."""

    breakdown: Path
    vfx_breakdown: Path
    raw: Path
    html: Path

    def paths(self) -> list[Path]:
        return [self.breakdown, self.vfx_breakdown, self.raw, self.html]


def timestamp(now: datetime | None = None) -> str:
    """File-name timestamp, e.g. ``20240131-154501``."""
    return (now or datetime.now()).strftime("%Y%m%d-%H%M%S")


def export_all(
    tokens: Sequence[Token],
    entities: EntityRegistry,
    base_name: str,
    export_dir: Path | str,
    levels: Iterable[str] = DEFAULT_VFX_LEVELS,
    shots_per_page: Iterable[int] | None = None,
    group_size: int = 5,
    now: datetime | None = None,
) -> ExportBundle:
    """Write every export of a script into ``export_dir``.

    Files are named ``<base>_<timestamp>_script.csv``,
    ``<base>_<timestamp>_script-vfx.csv``, ``<base>_<timestamp>_tokens.txt``
    (annotated, re-importable) and ``<base>_<timestamp>.html``.

    Raises:
        ExportError: If any file cannot be written
    """
    levels = tuple(levels)
    shots = tuple(shots_per_page) if shots_per_page is not None else None
    directory = Path(export_dir)
    stem = f"{base_name}_{timestamp(now)}"

    bundle = ExportBundle(
        breakdown=directory / f"{stem}_script.csv",
        vfx_breakdown=directory / f"{stem}_script-vfx.csv",
        raw=directory / f"{stem}_tokens.txt",
        html=directory / f"{stem}.html",
    )

    write_breakdown(tokens, entities, bundle.breakdown, True, levels, shots)
    write_breakdown(tokens, entities, bundle.vfx_breakdown, False, levels, shots)
    write_tokens(tokens, entities, bundle.raw, clean=False, group_size=group_size)

    html = document_to_html(tokens_to_document(tokens, entities, levels))
    try:
        bundle.html.write_text(html, encoding="utf-8")
    except OSError as e:
        raise ExportError(
            message=f"Failed to write HTML export: {bundle.html}",
            details={"path": str(bundle.html), "error": str(e)},
        ) from e

    logger.info("Exported bundle", directory=str(directory), base=stem)
    return bundle
