"""
Sheet projection: turn consolidated records into header trees, grids and
merge regions ready for a workbook writer.

The header is two-tier. A category with children spans its leaf columns on
the top row (horizontal merge); a single column spans both header rows
(vertical merge). Columns depend on the data: the asset columns grow to the
largest basket seen, and "Capped/Uncapped" only appears when note-family
products are present.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .records import ProductRecord

MAX_SHEET_NAME_LENGTH = 31
INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")
HEADER_ROW_COUNT = 2
CAPPED_COLUMN = "Capped/Uncapped"
DEFAULT_SHEET_NAME = "Sheet"
CAPPED_SCOPES = ("filtered_set", "group")


@dataclass(frozen=True)
class HeaderGroup:
    title: str
    children: Tuple[str, ...] = ()

    @property
    def span(self) -> int:
        return len(self.children) or 1


@dataclass(frozen=True)
class MergeRegion:
    first_row: int
    first_col: int
    last_row: int
    last_col: int


@dataclass
class SheetGrid:
    """Everything a writer needs for one worksheet."""

    name: str
    rows: List[List[Optional[str]]]
    merges: List[MergeRegion] = field(default_factory=list)
    column_widths: List[int] = field(default_factory=list)
    header_rows: int = HEADER_ROW_COUNT

    @property
    def data_row_count(self) -> int:
        return len(self.rows) - self.header_rows


def asset_headers(max_assets: int) -> List[str]:
    if max_assets <= 0:
        return []
    if max_assets == 1:
        return ["Asset"]
    return [f"Asset {i}" for i in range(1, max_assets + 1)]


def build_headers(max_assets: int, include_capped: bool) -> List[HeaderGroup]:
    details = ["Upside Cap", "Upside Leverage", "Buffer Threshold / KI Barrier", "Barrier/Buffer Level",
               "Frequency", "Non-call period", "Interest Barrier vs KI"]
    if include_capped:
        details.insert(0, CAPPED_COLUMN)
    return [
        HeaderGroup("Prod CUSIP"),
        HeaderGroup("ISIN"),
        HeaderGroup("Underlying", ("Asset Type", *asset_headers(max_assets))),
        HeaderGroup("Product Details", ("Product Type", "Client", "Tenor")),
        HeaderGroup("Coupons", ("Frequency", "Barrier Level", "Memory")),
        HeaderGroup("Details", tuple(details)),
        HeaderGroup("DATES IN BOOKINGS", ("Strike", "Pricing", "Maturity", "Valuation", "Early Strike")),
        HeaderGroup("Doc Type", ("Term Sheet", "Final PS", "Fact Sheet")),
    ]


def header_rows(headers: Sequence[HeaderGroup]) -> Tuple[List[Optional[str]], List[Optional[str]]]:
    """Category row (None under spanned cells) and leaf-label row (None under single columns)."""

    top: List[Optional[str]] = []
    leaf: List[Optional[str]] = []
    for group in headers:
        top.append(group.title.upper())
        if group.children:
            top.extend([None] * (len(group.children) - 1))
            leaf.extend(group.children)
        else:
            leaf.append(None)
    return top, leaf


def flat_column_labels(headers: Sequence[HeaderGroup]) -> List[str]:
    """Unique one-line labels (``"COUPONS / Frequency"``) for tabular previews."""

    labels: List[str] = []
    for group in headers:
        if group.children:
            labels.extend(f"{group.title.upper()} / {child}" for child in group.children)
        else:
            labels.append(group.title.upper())
    return labels


def merge_regions(headers: Sequence[HeaderGroup]) -> List[MergeRegion]:
    regions: List[MergeRegion] = []
    col = 0
    for group in headers:
        if not group.children:
            regions.append(MergeRegion(0, col, 1, col))
        elif len(group.children) > 1:
            regions.append(MergeRegion(0, col, 0, col + len(group.children) - 1))
        col += group.span
    return regions


def record_row(record: ProductRecord, max_assets: int, include_capped: bool) -> List[str]:
    """Cell values for one record, in the column order of :func:`build_headers`."""

    tickers = list(record.underlying.asset_tickers[:max_assets])
    tickers.extend([""] * (max_assets - len(tickers)))

    detail = record.barrier_detail
    details = [record.upside.cap, record.upside.leverage, detail.kind, detail.level, detail.frequency,
               detail.non_call_period, detail.interest_barrier_comparison]
    if include_capped:
        details.insert(0, record.upside.capped_flag)

    row = [
        record.identity.cusip,
        record.identity.isin,
        record.underlying.asset_type_summary,
        *tickers,
        record.classification.product_type,
        record.classification.client,
        record.classification.tenor,
        record.coupon.frequency,
        record.coupon.barrier_level,
        record.coupon.has_memory.value,
        *details,
        record.dates.strike,
        record.dates.pricing,
        record.dates.maturity,
        record.dates.valuation,
        record.dates.early_strike.value,
        record.doc_flags.term_sheet.value,
        record.doc_flags.final_ps.value,
        record.doc_flags.fact_sheet.value,
    ]
    return [value or "" for value in row]


def contains_note_family(records: Iterable[ProductRecord]) -> bool:
    return any(record.is_note_family for record in records)


def filter_records(records: Iterable[ProductRecord], product_type: Optional[str] = None) -> List[ProductRecord]:
    """``None`` or ``"all"`` keeps everything; otherwise exact product-type match."""

    if product_type in (None, "all"):
        return list(records)
    return [record for record in records if record.product_type == product_type]


def product_type_options(records: Iterable[ProductRecord]) -> List[str]:
    """Distinct non-empty product types in first-seen order."""

    seen: List[str] = []
    for record in records:
        if record.product_type and record.product_type not in seen:
            seen.append(record.product_type)
    return seen


def group_by_product_type(records: Iterable[ProductRecord]) -> Dict[str, List[ProductRecord]]:
    groups: Dict[str, List[ProductRecord]] = {}
    for record in records:
        groups.setdefault(record.product_type, []).append(record)
    return groups


def sanitize_sheet_name(name: str, taken: Iterable[str] = ()) -> str:
    """
    Make ``name`` usable as a worksheet title.

    Strips characters Excel forbids, trims surrounding apostrophes and
    whitespace, truncates to 31 characters and de-duplicates against ``taken``
    (case-insensitively, as Excel does) with a ``" (n)"`` suffix.
    """

    cleaned = INVALID_SHEET_CHARS.sub("", name or "").strip().strip("'").strip()
    cleaned = cleaned[:MAX_SHEET_NAME_LENGTH].rstrip("'") or DEFAULT_SHEET_NAME

    used = {t.lower() for t in taken}
    candidate = cleaned
    counter = 2
    while candidate.lower() in used:
        suffix = f" ({counter})"
        candidate = cleaned[: MAX_SHEET_NAME_LENGTH - len(suffix)] + suffix
        counter += 1
    return candidate


def column_widths(rows: Sequence[Sequence[Any]], margin: int = 2, empty_width: int = 12) -> List[int]:
    """Longest stringified value per column plus ``margin``; ``empty_width`` for all-empty columns."""

    if not rows:
        return []
    widths: List[int] = []
    for col in range(max(len(row) for row in rows)):
        lengths = [len(str(row[col])) for row in rows if col < len(row) and row[col] not in (None, "")]
        widths.append(max(lengths) + margin if lengths else empty_width)
    return widths


def build_cell_formats(font_name: str = "Arial", font_size: int = 10, header_fill: str = "#DDEBF7") -> Dict[str, Dict[str, Any]]:
    """Body and header cell styles, expressed as xlsxwriter format properties."""

    body = {
        "font_name": font_name,
        "font_size": font_size,
        "valign": "top",
        "align": "left",
        "border": 1,
        "border_color": "#000000",
    }
    header = {**body, "bold": True, "align": "center", "bg_color": header_fill}
    return {"body": body, "header": header}


def project_sheet(
    name: str,
    records: Sequence[ProductRecord],
    max_assets: int,
    include_capped: bool,
    *,
    width_margin: int = 2,
    empty_width: int = 12,
) -> SheetGrid:
    headers = build_headers(max_assets, include_capped)
    top, leaf = header_rows(headers)
    rows: List[List[Optional[str]]] = [top, leaf]
    rows.extend(record_row(record, max_assets, include_capped) for record in records)
    return SheetGrid(
        name=name,
        rows=rows,
        merges=merge_regions(headers),
        column_widths=column_widths(rows, margin=width_margin, empty_width=empty_width),
    )


def project_sheets(
    records: Sequence[ProductRecord],
    max_assets: int,
    *,
    grouped: bool = True,
    capped_scope: str = "filtered_set",
    single_sheet_name: str = "Scenario List",
    width_margin: int = 2,
    empty_width: int = 12,
) -> List[SheetGrid]:
    """
    Project the (already filtered) records into one grid per output sheet.

    Grouped mode writes one sheet per product type, in first-seen order. The
    Capped/Uncapped column is decided over the whole filtered set by default,
    or per group when ``capped_scope`` is ``"group"``.
    """

    if capped_scope not in CAPPED_SCOPES:
        raise ValueError(f"Unknown capped column scope: {capped_scope!r}")
    if not records:
        return []

    overall_capped = contains_note_family(records)
    if not grouped:
        return [
            project_sheet(
                sanitize_sheet_name(single_sheet_name),
                records,
                max_assets,
                overall_capped,
                width_margin=width_margin,
                empty_width=empty_width,
            )
        ]

    grids: List[SheetGrid] = []
    for product_type, members in group_by_product_type(records).items():
        include_capped = contains_note_family(members) if capped_scope == "group" else overall_capped
        name = sanitize_sheet_name(product_type, taken=[grid.name for grid in grids])
        grids.append(
            project_sheet(
                name,
                members,
                max_assets,
                include_capped,
                width_margin=width_margin,
                empty_width=empty_width,
            )
        )
    return grids
