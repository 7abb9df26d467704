"""
Field extractors for structured-note XML documents.

Each extractor is a pure function of one or more subtree roots (the
``product``, ``tradableForm`` or ``asset`` anchors, or the whole document) and
returns a display-ready string or flag. Missing nodes never raise; they yield
"", "N/A" or N as documented per field.

Candidate path tuples are ordered by schema precedence: the newer layout is
listed first, and older layouts (including the ``contigentLevelLegal`` typo
found in live feeds) follow as fallbacks.
"""

from __future__ import annotations

from typing import Any, List

from .flags import TriState
from .formatting import (
    NOT_AVAILABLE,
    format_date,
    format_month_period,
    format_percentage,
    format_tenor,
    parse_number,
)
from .query import first_matching, first_matching_text, list_matching
from .records import DocFlags, is_note_family

PRODUCT_TYPE_PATHS = (
    "bufferedReturnEnhancedNote > productType",
    "reverseConvertible > description",
    "productName",
)
TENOR_MONTHS_PATHS = ("tenor > months",)
UPSIDE_CAP_PATHS = ("bufferedReturnEnhancedNote > upsideCap",)
UPSIDE_LEVERAGE_PATHS = ("bufferedReturnEnhancedNote > upsideLeverage",)
NOTE_BUFFER_PATHS = ("bufferedReturnEnhancedNote > buffer",)

COUPON_SCHEDULE_PATH = "reverseConvertible > couponSchedule"
COUPON_FREQUENCY_PATHS = ("frequency",)
COUPON_MEMORY_PATHS = ("hasMemory",)
COUPON_LEVEL_PATHS = (
    "coupons > contingentLevelLegal > level",
    "contingentLevelLegal > level",
    "contigentLevelLegal > level",
)

STRIKE_LEVEL_PATHS = ("reverseConvertible > strike > level",)
BUFFER_LEVEL_PATHS = (
    "reverseConvertible > buffer > level",
    "reverseConvertible > strike > level",
)
KNOCK_IN_LEVEL_PATHS = ("knockInBarrier > barrierSchedule > barrierLevel > level",)
ISSUER_CALLABLE_PATH = "reverseConvertible > issuerCallable"
ISSUE_DATE_PATHS = ("securitized > issuance > issueDate",)

STRIKE_DATE_PATHS = (
    "securitized > issuance > prospectusStartDate",
    "strikeDate > date",
)
PRICING_DATE_PATHS = ("securitized > issuance > clientOrderTradeDate",)
MATURITY_DATE_PATHS = ("redemptionDate", "settlementDate")
VALUATION_DATE_PATHS = ("finalObservation > date", "finalObservation")

COUNTERPARTY_PATHS = ("counterparty > name",)
DEALER_PATHS = ("dealer > name",)
DOCUMENT_TYPE_PATHS = ("documentType",)

# Checked in order; the first substring hit decides the client.
CLIENT_RULES = (
    (("jpm",), "JPM PB"),
    (("goldman",), "GS"),
    (("bauble", "ubs"), "UBS"),
)
DEFAULT_CLIENT = "3P"

DOC_TYPE_KEYWORDS = {
    "term_sheet": "TERMSHEET",
    "final_ps": "PRICING_SUPPLEMENT",
    "fact_sheet": "FACT_SHEET",
}

BUFFER_KIND = "Buffer"
KNOCK_IN_KIND = "KI Barrier"
AT_MATURITY = "At Maturity"


# --- underlying -------------------------------------------------------------


def asset_tickers(asset_node: Any) -> List[str]:
    """Bloomberg ticker of every ``assets`` entry, in document order."""

    return [first_matching_text(node, ("bloombergTickerSuffix",)) for node in list_matching(asset_node, "assets")]


def underlying_summary(asset_node: Any) -> str:
    assets = list_matching(asset_node, "assets")
    if not assets:
        return NOT_AVAILABLE
    asset_type = first_matching_text(assets[0], ("assetType",)).replace("Exchange_Traded_Fund", "ETF")
    if len(assets) == 1:
        return f"Single {asset_type}"
    basket_type = first_matching_text(asset_node, ("basketType",)) or "Multiple"
    return f"{basket_type} {asset_type}"


# --- product ----------------------------------------------------------------


def product_type(product_node: Any) -> str:
    """Note product type, else reverse-convertible description, else product name."""

    return first_matching_text(product_node, PRODUCT_TYPE_PATHS)


def tenor(product_node: Any) -> str:
    return format_tenor(first_matching_text(product_node, TENOR_MONTHS_PATHS))


def upside_cap(product_node: Any, product_kind: str) -> str:
    if not is_note_family(product_kind):
        return NOT_AVAILABLE
    cap = first_matching_text(product_node, UPSIDE_CAP_PATHS)
    return format_percentage(cap) if cap else NOT_AVAILABLE


def upside_leverage(product_node: Any, product_kind: str) -> str:
    if not is_note_family(product_kind):
        return NOT_AVAILABLE
    leverage = first_matching_text(product_node, UPSIDE_LEVERAGE_PATHS)
    return f"{leverage}X" if leverage else NOT_AVAILABLE


def capped_flag(product_node: Any, product_kind: str) -> str:
    """Capped/Uncapped for note-family products; "" for everything else."""

    if not is_note_family(product_kind):
        return ""
    return "Capped" if first_matching_text(product_node, UPSIDE_CAP_PATHS) else "Uncapped"


# --- coupons ----------------------------------------------------------------


def _coupon_schedule(product_node: Any) -> Any:
    return first_matching(product_node, COUPON_SCHEDULE_PATH)


def coupon_frequency(product_node: Any) -> str:
    schedule = _coupon_schedule(product_node)
    return first_matching_text(schedule, COUPON_FREQUENCY_PATHS) or NOT_AVAILABLE


def coupon_barrier_level(product_node: Any) -> str:
    schedule = _coupon_schedule(product_node)
    level = first_matching_text(schedule, COUPON_LEVEL_PATHS)
    return format_percentage(level) if level else NOT_AVAILABLE


def coupon_memory(product_node: Any) -> TriState:
    schedule = _coupon_schedule(product_node)
    if schedule is None:
        return TriState.NOT_APPLICABLE
    return TriState.from_text(first_matching_text(schedule, COUPON_MEMORY_PATHS))


# --- buffer / barrier details -----------------------------------------------


def barrier_kind(product_node: Any, product_kind: str) -> str:
    """
    Classify the downside protection as "Buffer" or "KI Barrier".

    Note-family products are always buffered. Reverse convertibles are
    buffered when their strike sits below 100; a strike at or above 100
    means a knock-in barrier. A missing or non-numeric strike gives "N/A".
    """

    if is_note_family(product_kind):
        return BUFFER_KIND
    strike = parse_number(first_matching_text(product_node, STRIKE_LEVEL_PATHS))
    if strike is None:
        return NOT_AVAILABLE
    return BUFFER_KIND if strike < 100 else KNOCK_IN_KIND


def barrier_level(product_node: Any, product_kind: str) -> str:
    """Level paired with :func:`barrier_kind`, as a percentage or ""."""

    if is_note_family(product_kind):
        buffer = parse_number(first_matching_text(product_node, NOTE_BUFFER_PATHS))
        return format_percentage(100 - buffer) if buffer is not None else ""

    classification = barrier_kind(product_node, product_kind)
    if classification == BUFFER_KIND:
        level = first_matching_text(product_node, BUFFER_LEVEL_PATHS)
    elif classification == KNOCK_IN_KIND:
        level = first_matching_text(product_node, KNOCK_IN_LEVEL_PATHS)
    else:
        return NOT_AVAILABLE
    return format_percentage(level) if level else ""


def _schedule_branch(product_node: Any) -> str:
    """Issuer-callable products keep their call dates elsewhere than autocalls."""

    if first_matching(product_node, ISSUER_CALLABLE_PATH) is not None:
        return "issuerCallable"
    return "autocallSchedule"


def barrier_frequency(product_node: Any, product_kind: str) -> str:
    if is_note_family(product_kind):
        return AT_MATURITY
    if product_node is None:
        return ""
    branch = _schedule_branch(product_node)
    return first_matching_text(product_node, (f"reverseConvertible > {branch} > barrierSchedule > frequency",))


def non_call_period(product_node: Any, tradable_form_node: Any, product_kind: str) -> str:
    """Whole months from issue date to the first call/observation date."""

    if is_note_family(product_kind):
        return NOT_AVAILABLE
    if product_node is None:
        return ""
    branch = _schedule_branch(product_node)
    issue_date = first_matching_text(tradable_form_node, ISSUE_DATE_PATHS)
    first_date = first_matching_text(
        product_node, (f"reverseConvertible > {branch} > barrierSchedule > firstDate",)
    )
    return format_month_period(issue_date, first_date)


def interest_barrier_comparison(product_node: Any) -> str:
    coupon_level = parse_number(
        first_matching_text(product_node, tuple(f"reverseConvertible > couponSchedule > {p}" for p in COUPON_LEVEL_PATHS))
    )
    knock_in = parse_number(first_matching_text(product_node, KNOCK_IN_LEVEL_PATHS))
    if coupon_level is None or knock_in is None:
        return NOT_AVAILABLE
    if coupon_level > knock_in:
        comparison = ">"
    elif coupon_level < knock_in:
        comparison = "<"
    else:
        comparison = "="
    return f"Interest Barrier {comparison} KI Barrier"


# --- document-level ---------------------------------------------------------


def detect_client(document: Any) -> str:
    blob = " ".join(
        [first_matching_text(document, COUNTERPARTY_PATHS), first_matching_text(document, DEALER_PATHS)]
    ).lower()
    for needles, client in CLIENT_RULES:
        if any(needle in blob for needle in needles):
            return client
    return DEFAULT_CLIENT


def detect_document_types(document: Any) -> DocFlags:
    """Independent Y/N flags per keyword class found in ``documentType``."""

    doc_type = first_matching_text(document, DOCUMENT_TYPE_PATHS).upper()
    return DocFlags(**{name: TriState.from_bool(keyword in doc_type) for name, keyword in DOC_TYPE_KEYWORDS.items()})


def raw_strike_date(document: Any) -> str:
    return first_matching_text(document, STRIKE_DATE_PATHS)


def raw_pricing_date(node: Any) -> str:
    return first_matching_text(node, PRICING_DATE_PATHS)


def early_strike(document: Any) -> TriState:
    """Y when the strike and pricing dates are both present and differ."""

    strike = raw_strike_date(document)
    pricing = raw_pricing_date(document)
    return TriState.from_bool(bool(strike and pricing and strike != pricing))


def strike_date(document: Any) -> str:
    return format_date(raw_strike_date(document))


def pricing_date(tradable_form_node: Any) -> str:
    return format_date(raw_pricing_date(tradable_form_node))


def maturity_date(product_node: Any) -> str:
    return format_date(first_matching_text(product_node, MATURITY_DATE_PATHS))


def valuation_date(product_node: Any) -> str:
    return format_date(first_matching_text(product_node, VALUATION_DATE_PATHS))
