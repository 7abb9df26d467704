"""
Per-document orchestration: parse, locate anchors, run every extractor and
assemble one :class:`ProductRecord`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from lxml import etree

from . import extractors as fx
from .errors import MalformedDocumentError
from .query import first_matching, list_matching, node_text
from .records import (
    BarrierDetail,
    BookingDates,
    Classification,
    Coupon,
    Identity,
    ProductRecord,
    Underlying,
    Upside,
)

LOGGER = logging.getLogger(__name__)

ANCHOR_TAGS = ("product", "tradableForm", "asset")


def parse_document(content: bytes, file_name: str) -> etree._ElementTree:
    """Parse raw XML bytes; any syntax error becomes a batch-fatal error naming the file."""

    if isinstance(content, str):
        content = content.encode("utf-8")
    parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=True)
    try:
        root = etree.fromstring(content, parser)
    except etree.XMLSyntaxError as exc:
        LOGGER.error("Failed to parse %s: %s", file_name, exc)
        raise MalformedDocumentError(file_name) from exc
    return root.getroottree()


def find_anchor(document: Any, tag: str) -> Optional[Any]:
    """First ``tag`` element anywhere in the document, or None."""

    return first_matching(document, tag)


def find_identifier(tradable_form_node: Any, id_type: str) -> str:
    """
    Return the code paired with ``id_type`` in the tradable form's identifiers.

    Each ``identifiers`` entry carries a ``type``/``code`` pair; the type token
    is compared case-insensitively and the first match wins.
    """

    wanted = id_type.strip().upper()
    for entry in list_matching(tradable_form_node, "identifiers"):
        type_node = first_matching(entry, "type")
        if type_node is not None and node_text(type_node).upper() == wanted:
            return node_text(first_matching(entry, "code"))
    return ""


def build_record(document: Any, source_name: str = "", policy: str = "cusip_or_isin") -> Optional[ProductRecord]:
    """
    Extract one candidate record from a parsed document.

    Returns None when the document has no identifier usable under ``policy``;
    such documents cannot be merged or displayed and are skipped silently.
    """

    product = find_anchor(document, "product")
    tradable_form = find_anchor(document, "tradableForm")
    asset = find_anchor(document, "asset")

    identity = Identity(
        cusip=find_identifier(tradable_form, "CUSIP"),
        isin=find_identifier(tradable_form, "ISIN"),
    )
    if not identity.merge_key(policy):
        LOGGER.debug("Skipping %s: no usable identifier (policy=%s)", source_name or "document", policy)
        return None

    kind = fx.product_type(product)

    return ProductRecord(
        identity=identity,
        underlying=Underlying(
            asset_type_summary=fx.underlying_summary(asset),
            asset_tickers=tuple(fx.asset_tickers(asset)),
        ),
        classification=Classification(
            product_type=kind,
            client=fx.detect_client(document),
            tenor=fx.tenor(product),
        ),
        coupon=Coupon(
            frequency=fx.coupon_frequency(product),
            barrier_level=fx.coupon_barrier_level(product),
            has_memory=fx.coupon_memory(product),
        ),
        upside=Upside(
            cap=fx.upside_cap(product, kind),
            leverage=fx.upside_leverage(product, kind),
            capped_flag=fx.capped_flag(product, kind),
        ),
        barrier_detail=BarrierDetail(
            kind=fx.barrier_kind(product, kind),
            level=fx.barrier_level(product, kind),
            frequency=fx.barrier_frequency(product, kind),
            non_call_period=fx.non_call_period(product, tradable_form, kind),
            interest_barrier_comparison=fx.interest_barrier_comparison(product),
        ),
        dates=BookingDates(
            strike=fx.strike_date(document),
            pricing=fx.pricing_date(tradable_form),
            maturity=fx.maturity_date(product),
            valuation=fx.valuation_date(product),
            early_strike=fx.early_strike(document),
        ),
        doc_flags=fx.detect_document_types(document),
        source_name=source_name,
    )


def extract_record(content: bytes, file_name: str, policy: str = "cusip_or_isin") -> Optional[ProductRecord]:
    """Parse ``content`` and build its record in one step."""

    return build_record(parse_document(content, file_name), source_name=file_name, policy=policy)
