"""Tabular writers for breakdown rows: CSV and Excel."""

from __future__ import annotations

import csv
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Font

from scriptbreakdown.config import get_logger
from scriptbreakdown.exceptions import ExportError
from scriptbreakdown.export.rows import ExportRowGenerator, HeaderDescriptor
from scriptbreakdown.parser.entities import EntityRegistry
from scriptbreakdown.parser.patterns import DEFAULT_VFX_LEVELS
from scriptbreakdown.parser.tokens import Token

logger = get_logger(__name__)

SUPPORTED_SUFFIXES = (".csv", ".xlsx")
SHEET_TITLE = "Breakdown"


def _write_csv(
    path: Path, headers: Sequence[HeaderDescriptor], rows: Iterable[dict[str, Any]]
) -> None:
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow([header.title for header in headers])
        for row in rows:
            writer.writerow([row.get(header.id, "") for header in headers])


def _write_xlsx(
    path: Path, headers: Sequence[HeaderDescriptor], rows: Iterable[dict[str, Any]]
) -> None:
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE
    ws.append([header.title for header in headers])
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for row in rows:
        ws.append([row.get(header.id, "") for header in headers])
    wb.save(str(path))


def write_rows(
    path: Path | str,
    headers: Sequence[HeaderDescriptor],
    rows: Sequence[dict[str, Any]],
) -> Path:
    """Persist rows as CSV or XLSX, chosen by the file suffix.

    Args:
        path: Output file, ``.csv`` or ``.xlsx``
        headers: Column descriptors in output order
        rows: Row dicts keyed by header id

    Returns:
        The written path

    Raises:
        ExportError: If the suffix is unsupported or the write fails
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ExportError(
            message=f"Unsupported export format: {suffix or '(none)'}",
            hint="Use a .csv or .xlsx file name",
            details={"path": str(path), "supported_formats": list(SUPPORTED_SUFFIXES)},
        )
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if suffix == ".csv":
            _write_csv(path, headers, rows)
        else:
            _write_xlsx(path, headers, rows)
    except OSError as e:
        raise ExportError(
            message=f"Failed to write breakdown: {path}",
            hint="Check that the file is not open in another program",
            details={"path": str(path), "error": str(e)},
        ) from e
    logger.info("Wrote breakdown", path=str(path), rows=len(rows))
    return path


def write_breakdown(
    tokens: Sequence[Token],
    entities: EntityRegistry,
    path: Path | str,
    full: bool = True,
    levels: Iterable[str] = DEFAULT_VFX_LEVELS,
    shots_per_page: Iterable[int] | None = None,
) -> Path:
    """Generate breakdown rows for tokens and write them to ``path``."""
    if shots_per_page is None:
        generator = ExportRowGenerator(levels)
    else:
        generator = ExportRowGenerator(levels, shots_per_page)
    rows = generator.generate(tokens, entities, full=full)
    return write_rows(path, generator.headers(entities), rows)
