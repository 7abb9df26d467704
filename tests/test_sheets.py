from __future__ import annotations

import pytest

from structnote_common.records import Classification, Identity, ProductRecord, Underlying, Upside
from structnote_common.sheets import (
    CAPPED_COLUMN,
    MergeRegion,
    asset_headers,
    build_headers,
    column_widths,
    filter_records,
    flat_column_labels,
    header_rows,
    merge_regions,
    product_type_options,
    project_sheets,
    record_row,
    sanitize_sheet_name,
)


def _record(cusip, product_type, tickers=("SPX",), capped=""):
    return ProductRecord(
        identity=Identity(cusip=cusip),
        underlying=Underlying(asset_type_summary="Single Index", asset_tickers=tuple(tickers)),
        classification=Classification(product_type=product_type),
        upside=Upside(capped_flag=capped),
    )


def test_asset_headers():
    assert asset_headers(0) == []
    assert asset_headers(1) == ["Asset"]
    assert asset_headers(3) == ["Asset 1", "Asset 2", "Asset 3"]


def test_capped_column_only_when_requested():
    with_capped = build_headers(2, include_capped=True)
    without = build_headers(2, include_capped=False)

    details = {group.title: group for group in with_capped}["Details"]
    assert details.children[0] == CAPPED_COLUMN
    assert CAPPED_COLUMN not in {group.title: group for group in without}["Details"].children
    assert sum(g.span for g in with_capped) == sum(g.span for g in without) + 1


def test_header_rows_and_merges():
    headers = build_headers(1, include_capped=False)
    top, leaf = header_rows(headers)

    assert top[:4] == ["PROD CUSIP", "ISIN", "UNDERLYING", None]
    assert leaf[:4] == [None, None, "Asset Type", "Asset"]
    assert len(top) == len(leaf) == sum(g.span for g in headers)

    regions = merge_regions(headers)
    assert regions[0] == MergeRegion(0, 0, 1, 0)
    assert regions[1] == MergeRegion(0, 1, 1, 1)
    assert regions[2] == MergeRegion(0, 2, 0, 3)
    assert regions[-1] == MergeRegion(0, len(top) - 3, 0, len(top) - 1)


def test_single_child_category_is_not_merged():
    headers = build_headers(0, include_capped=False)

    # Underlying keeps only "Asset Type" when no document lists assets.
    assert all(not (r.first_col == 2 and r.first_row == 0 and r.last_row == 0) for r in merge_regions(headers))


def test_flat_labels_are_unique():
    labels = flat_column_labels(build_headers(2, include_capped=True))

    assert len(labels) == len(set(labels))
    assert "COUPONS / Frequency" in labels
    assert "DETAILS / Frequency" in labels


def test_record_row_pads_assets_to_max():
    row = record_row(_record("A", "BREN", tickers=("SPX",), capped="Capped"), 3, include_capped=True)

    assert row[:6] == ["A", "", "Single Index", "SPX", "", ""]
    assert len(row) == len(flat_column_labels(build_headers(3, include_capped=True)))
    assert "Capped" in row


def test_filter_and_type_options():
    records = [_record("A", "BREN"), _record("B", "Phoenix"), _record("C", "BREN"), _record("D", "")]

    assert product_type_options(records) == ["BREN", "Phoenix"]
    assert [r.identity.cusip for r in filter_records(records, "BREN")] == ["A", "C"]
    assert len(filter_records(records, "all")) == 4
    assert len(filter_records(records, None)) == 4
    assert filter_records(records, "Unknown") == []


@pytest.mark.parametrize(
    "name, taken, expected",
    [
        ("BREN", (), "BREN"),
        ("Phoenix/Autocall [Q]", (), "PhoenixAutocall Q"),
        ("'quoted'", (), "quoted"),
        ("???", (), "Sheet"),
        ("bren", ("BREN",), "bren (2)"),
        ("BREN", ("BREN", "BREN (2)"), "BREN (3)"),
    ],
)
def test_sanitize_sheet_name(name, taken, expected):
    assert sanitize_sheet_name(name, taken) == expected


def test_sanitize_sheet_name_truncates():
    long_name = "Contingent/Income Autocallable Notes on Worst-of Basket"
    cleaned = sanitize_sheet_name(long_name)

    assert len(cleaned) == 31
    assert "/" not in cleaned
    assert len(sanitize_sheet_name(long_name, taken=[cleaned])) == 31


def test_column_widths():
    rows = [["PROD CUSIP", None], [None, None], ["A", ""]]

    assert column_widths(rows) == [12, 12]
    assert column_widths([["abc", "x"]], margin=1, empty_width=5) == [4, 2]
    assert column_widths([]) == []


def test_grouped_projection_one_sheet_per_type():
    records = [_record("A", "BREN", capped="Capped"), _record("B", "Phoenix", tickers=("X", "Y")), _record("C", "BREN")]

    grids = project_sheets(records, 2)

    assert [g.name for g in grids] == ["BREN", "Phoenix"]
    assert [g.data_row_count for g in grids] == [2, 1]
    # Decided over the whole filtered set, so the Phoenix sheet keeps the column too.
    assert CAPPED_COLUMN in grids[1].rows[1]


def test_group_scope_drops_capped_column_for_non_notes():
    records = [_record("A", "BREN"), _record("B", "Phoenix")]

    grids = project_sheets(records, 1, capped_scope="group")

    assert CAPPED_COLUMN in grids[0].rows[1]
    assert CAPPED_COLUMN not in grids[1].rows[1]


def test_single_sheet_projection():
    records = [_record("A", "Phoenix"), _record("B", "Snowball")]

    grids = project_sheets(records, 1, grouped=False)

    assert len(grids) == 1
    assert grids[0].name == "Scenario List"
    assert grids[0].data_row_count == 2
    assert CAPPED_COLUMN not in grids[0].rows[1]


def test_projection_edge_cases():
    assert project_sheets([], 0) == []
    with pytest.raises(ValueError):
        project_sheets([_record("A", "BREN")], 1, capped_scope="sheet")
