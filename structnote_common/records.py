from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from .flags import TriState

NOTE_FAMILY_TYPES: Tuple[str, ...] = ("BREN", "REN")
IDENTIFIER_POLICIES: Tuple[str, ...] = ("cusip_or_isin", "cusip_only")


def is_note_family(product_type: str) -> bool:
    return product_type in NOTE_FAMILY_TYPES


@dataclass(frozen=True)
class Identity:
    cusip: str = ""
    isin: str = ""

    def merge_key(self, policy: str = "cusip_or_isin") -> str:
        """Identifier used to consolidate documents; "" when the document is unusable."""

        if policy == "cusip_only":
            return self.cusip
        return self.cusip or self.isin


@dataclass(frozen=True)
class Underlying:
    asset_type_summary: str = "N/A"
    asset_tickers: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Classification:
    product_type: str = ""
    client: str = "3P"
    tenor: str = ""


@dataclass(frozen=True)
class Coupon:
    frequency: str = "N/A"
    barrier_level: str = "N/A"
    has_memory: TriState = TriState.NOT_APPLICABLE


@dataclass(frozen=True)
class Upside:
    cap: str = "N/A"
    leverage: str = "N/A"
    capped_flag: str = ""


@dataclass(frozen=True)
class BarrierDetail:
    kind: str = "N/A"
    level: str = ""
    frequency: str = ""
    non_call_period: str = ""
    interest_barrier_comparison: str = "N/A"


@dataclass(frozen=True)
class BookingDates:
    strike: str = ""
    pricing: str = ""
    maturity: str = ""
    valuation: str = ""
    early_strike: TriState = TriState.NO


@dataclass(frozen=True)
class DocFlags:
    term_sheet: TriState = TriState.NO
    final_ps: TriState = TriState.NO
    fact_sheet: TriState = TriState.NO

    def merge(self, other: "DocFlags") -> "DocFlags":
        """OR each flag; a flag already at Y never drops back."""

        return DocFlags(
            term_sheet=self.term_sheet | other.term_sheet,
            final_ps=self.final_ps | other.final_ps,
            fact_sheet=self.fact_sheet | other.fact_sheet,
        )


@dataclass
class ProductRecord:
    """One consolidated row; only ``doc_flags`` changes after creation."""

    identity: Identity
    underlying: Underlying = field(default_factory=Underlying)
    classification: Classification = field(default_factory=Classification)
    coupon: Coupon = field(default_factory=Coupon)
    upside: Upside = field(default_factory=Upside)
    barrier_detail: BarrierDetail = field(default_factory=BarrierDetail)
    dates: BookingDates = field(default_factory=BookingDates)
    doc_flags: DocFlags = field(default_factory=DocFlags)
    source_name: str = ""

    @property
    def product_type(self) -> str:
        return self.classification.product_type

    @property
    def is_note_family(self) -> bool:
        return is_note_family(self.classification.product_type)

    @property
    def asset_count(self) -> int:
        return len(self.underlying.asset_tickers)
