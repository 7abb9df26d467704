"""
Shared structured-note extraction helpers used by both the export CLI and the
Streamlit browser.
"""

from .builder import (  # noqa: F401
    build_record,
    extract_record,
    find_identifier,
    parse_document,
)
from .config import Settings, load_settings  # noqa: F401
from .consolidate import Consolidator, consolidate_records, max_asset_count  # noqa: F401
from .errors import (  # noqa: F401
    ConfigError,
    EmptyExportError,
    InputReadError,
    MalformedDocumentError,
    NoInputError,
    StructNoteError,
)
from .flags import TriState  # noqa: F401
from .formatting import format_date, format_percentage, format_tenor  # noqa: F401
from .query import first_matching_text, list_matching  # noqa: F401
from .records import DocFlags, Identity, ProductRecord  # noqa: F401
from .sheets import (  # noqa: F401
    SheetGrid,
    build_headers,
    filter_records,
    product_type_options,
    project_sheets,
    sanitize_sheet_name,
)
from .workbook import write_workbook  # noqa: F401

__all__ = [
    "build_record",
    "extract_record",
    "find_identifier",
    "parse_document",
    "Settings",
    "load_settings",
    "Consolidator",
    "consolidate_records",
    "max_asset_count",
    "ConfigError",
    "EmptyExportError",
    "InputReadError",
    "MalformedDocumentError",
    "NoInputError",
    "StructNoteError",
    "TriState",
    "format_date",
    "format_percentage",
    "format_tenor",
    "first_matching_text",
    "list_matching",
    "DocFlags",
    "Identity",
    "ProductRecord",
    "SheetGrid",
    "build_headers",
    "filter_records",
    "product_type_options",
    "project_sheets",
    "sanitize_sheet_name",
    "write_workbook",
]
