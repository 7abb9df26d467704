from __future__ import annotations

from io import BytesIO

import pandas as pd
import pytest

from structnote_browser.structnote_data import (
    ALL_TYPES,
    NO_DATA_MESSAGE,
    expand_paths,
    read_source,
    run_extraction,
    select_xml_sources,
    source_name,
)
from structnote_common.config import Settings
from structnote_common.errors import EmptyExportError, InputReadError, MalformedDocumentError, NoInputError
from structnote_common.flags import TriState


class _Upload:
    """Minimal stand-in for a browser upload object."""

    def __init__(self, name, data):
        self.name = name
        self._data = data

    def getvalue(self):
        return self._data


def _batch(bren_xml, rc_xml):
    return [
        ("term.xml", bren_xml(document_type="TERMSHEET")),
        ("final.xml", bren_xml(document_type="PRICING_SUPPLEMENT")),
        ("phoenix.xml", rc_xml()),
        ("other.xml", rc_xml(cusip="99999ZZZ9", description="Snowball", tickers=("SPX",))),
    ]


def test_source_helpers(tmp_path):
    path = tmp_path / "a.xml"
    path.write_bytes(b"<a/>")

    assert source_name(path) == "a.xml"
    assert read_source(path) == b"<a/>"
    assert source_name(("b.xml", b"<b/>")) == "b.xml"
    assert read_source(("b.xml", b"<b/>")) == b"<b/>"
    assert read_source(_Upload("c.xml", b"<c/>")) == b"<c/>"


def test_non_xml_inputs_are_dropped():
    kept = select_xml_sources([("a.xml", b""), ("notes.txt", b""), ("b.XML.bak", b"")])

    assert [source_name(s) for s in kept] == ["a.xml"]


def test_expand_paths_lists_sorted_xml(tmp_path):
    (tmp_path / "b.xml").write_bytes(b"<b/>")
    (tmp_path / "a.xml").write_bytes(b"<a/>")
    (tmp_path / "readme.md").write_text("skip", encoding="utf-8")
    extra = tmp_path / "single.xml"
    extra.write_bytes(b"<s/>")

    assert [p.name for p in expand_paths([tmp_path])] == ["a.xml", "b.xml", "single.xml"]
    assert expand_paths([extra]) == [extra]


def test_run_extraction_requires_xml():
    with pytest.raises(NoInputError) as excinfo:
        run_extraction([("notes.txt", b"hello")], Settings())

    assert str(excinfo.value) == "Please select at least one XML file."


def test_malformed_document_aborts_batch(bren_xml):
    with pytest.raises(MalformedDocumentError, match="bad.xml"):
        run_extraction([("good.xml", bren_xml()), ("bad.xml", b"<document>")], Settings())


def test_session_consolidates_and_filters(bren_xml, rc_xml):
    session = run_extraction(_batch(bren_xml, rc_xml), Settings())

    assert session.source_count == 4
    assert len(session.records) == 3
    assert session.max_assets == 2
    assert session.product_types == ("BREN", "Phoenix Autocall", "Snowball")
    assert session.filter_options()[0] == (ALL_TYPES, "All Types")

    note = session.records[0]
    assert note.doc_flags.term_sheet is TriState.YES
    assert note.doc_flags.final_ps is TriState.YES

    assert [r.identity.cusip for r in session.filter("Snowball")] == ["99999ZZZ9"]
    assert len(session.filter(ALL_TYPES)) == 3


def test_preview_frame_matches_filter(bren_xml, rc_xml):
    session = run_extraction(_batch(bren_xml, rc_xml), Settings())

    frame = session.preview_frame()
    assert frame.height == 3
    assert "DETAILS / Capped/Uncapped" in frame.columns
    assert frame["PROD CUSIP"].to_list()[0] == "48134KAB1"

    phoenix = session.preview_frame("Phoenix Autocall")
    assert phoenix.height == 1
    assert "DETAILS / Capped/Uncapped" not in phoenix.columns
    assert phoenix["DETAILS / Buffer Threshold / KI Barrier"].to_list() == ["KI Barrier"]


def test_empty_session(rc_xml):
    session = run_extraction([("blank.xml", rc_xml(cusip="", isin=""))], Settings())

    assert session.is_empty
    assert session.status_message == NO_DATA_MESSAGE
    with pytest.raises(EmptyExportError, match="There is no data to export."):
        session.export_bytes()


def test_export_grouped_workbook(tmp_path, bren_xml, rc_xml):
    session = run_extraction(_batch(bren_xml, rc_xml), Settings())
    target = tmp_path / "notes.xlsx"

    names = session.export(target)

    assert names == ["BREN", "Phoenix Autocall", "Snowball"]
    with pd.ExcelFile(target) as xls:
        assert xls.sheet_names == names
        bren = pd.read_excel(xls, sheet_name="BREN", header=None, dtype=str)
    assert bren.iloc[2, 0] == "48134KAB1"


def test_export_respects_filter_and_single_sheet(bren_xml, rc_xml):
    session = run_extraction(_batch(bren_xml, rc_xml), Settings(grouped_export=False))

    payload = session.export_bytes("Snowball")

    with pd.ExcelFile(BytesIO(payload)) as xls:
        assert xls.sheet_names == ["Scenario List"]
        frame = pd.read_excel(xls, header=None, dtype=str)
    assert len(frame) == 3
    assert frame.iloc[2, 0] == "99999ZZZ9"


def test_export_of_unknown_type_is_empty(bren_xml, rc_xml):
    session = run_extraction(_batch(bren_xml, rc_xml), Settings())

    with pytest.raises(EmptyExportError):
        session.export_bytes("Missing")


def test_unreadable_path_names_the_file(tmp_path):
    with pytest.raises(InputReadError) as excinfo:
        read_source(tmp_path / "absent.xml")

    assert excinfo.value.file_name == "absent.xml"
    assert isinstance(excinfo.value.__cause__, OSError)
