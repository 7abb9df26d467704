from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import xlsxwriter

from .sheets import SheetGrid, build_cell_formats

LOGGER = logging.getLogger(__name__)

WorkbookTarget = Union[str, Path, BytesIO]


def _write_grid(workbook: Any, grid: SheetGrid, formats: Dict[str, Any]) -> None:
    worksheet = workbook.add_worksheet(grid.name)

    for row_idx, row in enumerate(grid.rows):
        fmt = formats["header"] if row_idx < grid.header_rows else formats["body"]
        for col_idx, value in enumerate(row):
            if value is None or value == "":
                worksheet.write_blank(row_idx, col_idx, None, fmt)
            else:
                # Literal strings only; a leading "=" must never become a formula.
                worksheet.write_string(row_idx, col_idx, str(value), fmt)

    for region in grid.merges:
        label = grid.rows[region.first_row][region.first_col]
        worksheet.merge_range(
            region.first_row,
            region.first_col,
            region.last_row,
            region.last_col,
            label or "",
            formats["header"],
        )

    for col_idx, width in enumerate(grid.column_widths):
        worksheet.set_column(col_idx, col_idx, width)


def write_workbook(
    grids: Sequence[SheetGrid],
    target: WorkbookTarget,
    cell_formats: Optional[Dict[str, Dict[str, Any]]] = None,
) -> List[str]:
    """
    Write the projected sheets to an .xlsx file or binary buffer.

    Returns the worksheet names in the order they were written.
    """

    if isinstance(target, Path):
        target.parent.mkdir(parents=True, exist_ok=True)
        target = str(target)

    options = {"in_memory": True} if isinstance(target, BytesIO) else {}
    workbook = xlsxwriter.Workbook(target, options)
    try:
        formats = {key: workbook.add_format(props) for key, props in (cell_formats or build_cell_formats()).items()}
        for grid in grids:
            _write_grid(workbook, grid, formats)
            LOGGER.debug("Wrote sheet %r (%d data rows)", grid.name, grid.data_row_count)
    finally:
        workbook.close()

    if isinstance(target, BytesIO):
        target.seek(0)
    LOGGER.info("Wrote %d sheet(s) to %s", len(grids), target if isinstance(target, str) else "in-memory buffer")
    return [grid.name for grid in grids]
