#!/usr/bin/env python3
"""Structured-note XML extractor (lxml + Polars + xlsxwriter).

Reads term sheet / pricing supplement / fact sheet XML documents, merges
them by CUSIP (or ISIN), and either logs a preview table or writes a
formatted workbook with one sheet per product type.

Examples
--------
```
python structnote_export.py preview ./feeds/2024-01
python structnote_export.py export ./feeds/2024-01 --output notes.xlsx
python structnote_export.py export a.xml b.xml --type BREN --single-sheet
```

Settings come from ``structnote.yaml`` (or ``$STRUCTNOTE_CONFIG``):

```yaml
output_filename: ExtractedXML_Data.xlsx
identifier_policy: cusip_or_isin   # or cusip_only
grouped_export: true
capped_column_scope: filtered_set  # or group
```
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

import polars as pl

from structnote_browser.structnote_data import expand_paths, run_extraction
from structnote_common.config import load_settings
from structnote_common.errors import StructNoteError

LOGGER = logging.getLogger("structnote_export")


def configure_logging(verbosity: int) -> None:
    level = logging.DEBUG if verbosity > 0 else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s")


def _load_session(args: argparse.Namespace):
    settings = load_settings(args.config)
    if getattr(args, "single_sheet", False):
        settings = replace(settings, grouped_export=False)
    return run_extraction(expand_paths(args.inputs), settings)


def cmd_preview(args: argparse.Namespace) -> None:
    session = _load_session(args)
    if session.is_empty:
        LOGGER.warning(session.status_message)
        return

    frame = session.preview_frame(args.type)
    with pl.Config(tbl_rows=-1, tbl_cols=-1, fmt_str_lengths=80):
        LOGGER.info("Preview (%d of %d rows):\n%s", frame.height, len(session.records), frame)


def cmd_export(args: argparse.Namespace) -> None:
    session = _load_session(args)
    if session.is_empty:
        LOGGER.warning(session.status_message)
        return

    output = args.output or Path(session.settings.output_filename)
    sheets = session.export(output, args.type)
    LOGGER.info("Exported sheets: %s", ", ".join(sheets))


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract structured-note XML metadata and export it to Excel.",
    )
    subparsers = parser.add_subparsers(dest="command")

    def add_common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("-v", "--verbose", action="count", default=0, help="Increase logging verbosity.")
        sub.add_argument("--config", type=Path, help="Path to YAML settings (default: structnote.yaml)")
        sub.add_argument("inputs", nargs="+", help="XML files or directories containing them")
        sub.add_argument("--type", help="Only include this product type (default: all types)")

    preview = subparsers.add_parser("preview", help="Log the consolidated preview table.")
    add_common(preview)
    preview.set_defaults(func=cmd_preview)

    export = subparsers.add_parser("export", help="Write the consolidated workbook.")
    add_common(export)
    export.add_argument("--output", type=Path, help="Workbook path (default: from settings)")
    export.add_argument("--single-sheet", action="store_true", help="Write every product type to one sheet.")
    export.set_defaults(func=cmd_export)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return 0

    configure_logging(args.verbose)
    try:
        args.func(args)
    except StructNoteError as exc:
        LOGGER.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
