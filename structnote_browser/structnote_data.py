"""
Extraction session for the structured-note browser and export CLI.

`run_extraction` reads a batch of XML documents one at a time, in input order,
builds and consolidates their records and returns an `ExtractionSession`.
The session is the only thing the preview and export steps share: a new run
replaces it wholesale and nothing mutates it afterwards. A document that
fails to parse aborts the whole batch, so no partial session ever exists.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

import polars as pl

from structnote_common.builder import extract_record
from structnote_common.config import Settings, load_settings
from structnote_common.consolidate import Consolidator, max_asset_count
from structnote_common.errors import EmptyExportError, InputReadError, NoInputError
from structnote_common.records import ProductRecord
from structnote_common.sheets import (
    SheetGrid,
    build_cell_formats,
    build_headers,
    contains_note_family,
    filter_records,
    flat_column_labels,
    product_type_options,
    project_sheets,
    record_row,
)
from structnote_common.workbook import WorkbookTarget, write_workbook

LOGGER = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No data found in the selected XML files."
ALL_TYPES = "all"
ALL_TYPES_LABEL = "All Types"

Source = Union[str, Path, Tuple[str, bytes], Any]


def source_name(source: Source) -> str:
    """Display name for a path, ``(name, bytes)`` pair or upload object."""

    if isinstance(source, tuple):
        return str(source[0])
    if isinstance(source, (str, Path)):
        return Path(source).name
    return str(getattr(source, "name", "") or "")


def read_source(source: Source) -> bytes:
    """Return the raw bytes behind a path, ``(name, bytes)`` pair or upload object."""

    if isinstance(source, tuple):
        return bytes(source[1])
    if isinstance(source, (str, Path)):
        try:
            return Path(source).read_bytes()
        except OSError as exc:
            LOGGER.error("Failed to read %s: %s", source, exc)
            raise InputReadError(Path(source).name, exc.strerror or str(exc)) from exc
    # Streamlit's UploadedFile and similar wrappers expose getvalue().
    if hasattr(source, "getvalue"):
        return source.getvalue()
    return source.read()


def select_xml_sources(sources: Iterable[Source]) -> List[Source]:
    """Keep inputs whose name ends in ``.xml``; others are dropped before processing."""

    selected: List[Source] = []
    for source in sources:
        name = source_name(source)
        if name.endswith(".xml"):
            selected.append(source)
        else:
            LOGGER.info("Ignoring non-XML input: %s", name or "<unnamed>")
    return selected


def expand_paths(paths: Iterable[Union[str, Path]]) -> List[Path]:
    """Expand directories to the sorted ``*.xml`` files they contain."""

    expanded: List[Path] = []
    for raw in paths:
        path = Path(raw).expanduser()
        if path.is_dir():
            expanded.extend(sorted(p for p in path.iterdir() if p.is_file() and p.name.endswith(".xml")))
        else:
            expanded.append(path)
    return expanded


@dataclass(frozen=True)
class ExtractionSession:
    """Result of one extraction run, shared by preview and export."""

    records: Tuple[ProductRecord, ...]
    max_assets: int
    product_types: Tuple[str, ...]
    source_count: int
    settings: Settings = field(default_factory=Settings)

    @property
    def is_empty(self) -> bool:
        return not self.records

    @property
    def status_message(self) -> str:
        return NO_DATA_MESSAGE if self.is_empty else ""

    def filter_options(self) -> List[Tuple[str, str]]:
        """(value, label) pairs for the type filter, "All Types" first."""

        return [(ALL_TYPES, ALL_TYPES_LABEL)] + [(kind, kind) for kind in self.product_types]

    def filter(self, product_type: Optional[str] = None) -> List[ProductRecord]:
        return filter_records(self.records, product_type)

    def preview_frame(self, product_type: Optional[str] = None) -> pl.DataFrame:
        """
        One row per visible record with ``"<CATEGORY> / <leaf>"`` column names.

        The Capped/Uncapped column follows the same rule as the export: it is
        present only when the visible rows include a note-family product.
        """

        visible = self.filter(product_type)
        include_capped = contains_note_family(visible)
        labels = flat_column_labels(build_headers(self.max_assets, include_capped))
        rows = [record_row(record, self.max_assets, include_capped) for record in visible]
        return pl.DataFrame(rows, schema={label: pl.Utf8 for label in labels}, orient="row")

    def project(self, product_type: Optional[str] = None) -> List[SheetGrid]:
        return project_sheets(
            self.filter(product_type),
            self.max_assets,
            grouped=self.settings.grouped_export,
            capped_scope=self.settings.capped_column_scope,
            single_sheet_name=self.settings.single_sheet_name,
            width_margin=self.settings.column_width_margin,
            empty_width=self.settings.empty_column_width,
        )

    def export(self, target: Optional[WorkbookTarget] = None, product_type: Optional[str] = None) -> List[str]:
        """Write the visible records to ``target`` (default: the configured file name)."""

        grids = self.project(product_type)
        if not grids:
            raise EmptyExportError()
        formats = build_cell_formats(
            font_name=self.settings.font_name,
            font_size=self.settings.font_size,
            header_fill=self.settings.header_fill,
        )
        return write_workbook(grids, target if target is not None else Path(self.settings.output_filename), formats)

    def export_bytes(self, product_type: Optional[str] = None) -> bytes:
        buffer = BytesIO()
        self.export(buffer, product_type)
        return buffer.getvalue()


def run_extraction(sources: Sequence[Source], settings: Optional[Settings] = None) -> ExtractionSession:
    """
    Extract, consolidate and package a batch of documents.

    Raises NoInputError when no ``.xml`` input remains after filtering and
    MalformedDocumentError (naming the file) when any document fails to parse.
    """

    settings = settings or load_settings()
    xml_sources = select_xml_sources(sources)
    if not xml_sources:
        raise NoInputError()

    LOGGER.info("Processing %d file(s)...", len(xml_sources))
    consolidator = Consolidator(settings.identifier_policy)
    for source in xml_sources:
        name = source_name(source)
        consolidator.add(extract_record(read_source(source), name, policy=settings.identifier_policy))

    records = consolidator.records()
    LOGGER.info("Consolidated %d record(s) from %d file(s)", len(records), len(xml_sources))
    return ExtractionSession(
        records=tuple(records),
        max_assets=max_asset_count(records),
        product_types=tuple(product_type_options(records)),
        source_count=len(xml_sources),
        settings=settings,
    )


__all__ = [
    "ALL_TYPES",
    "ExtractionSession",
    "NO_DATA_MESSAGE",
    "expand_paths",
    "read_source",
    "run_extraction",
    "select_xml_sources",
    "source_name",
]
