"""Shared XML document factories."""

from __future__ import annotations

import pytest

from structnote_common.builder import parse_document


def _identifiers(cusip: str, isin: str) -> str:
    parts = []
    if cusip:
        parts.append(f"<identifiers><type>cusip</type><code>{cusip}</code></identifiers>")
    if isin:
        parts.append(f"<identifiers><type>ISIN</type><code>{isin}</code></identifiers>")
    return "".join(parts)


def build_bren_xml(
    cusip: str = "48134KAB1",
    isin: str = "US48134KAB10",
    document_type: str = "FINAL_TERMSHEET",
    product_type: str = "BREN",
    cap: str = "22.50",
    leverage: str = "1.5",
    buffer: str = "10",
    counterparty: str = "JPMorgan Private Bank",
) -> bytes:
    cap_node = f"<upsideCap>{cap}</upsideCap>" if cap else ""
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<document>
  <documentType>{document_type}</documentType>
  <counterparty><name>{counterparty}</name></counterparty>
  <product>
    <productName>Buffered Return Enhanced Note</productName>
    <tenor><months>24</months></tenor>
    <bufferedReturnEnhancedNote>
      <productType>{product_type}</productType>
      <upsideLeverage>{leverage}</upsideLeverage>
      {cap_node}
      <buffer>{buffer}</buffer>
    </bufferedReturnEnhancedNote>
    <redemptionDate>2026-01-12</redemptionDate>
    <finalObservation>2026-01-05</finalObservation>
  </product>
  <tradableForm>
    {_identifiers(cusip, isin)}
    <securitized>
      <issuance>
        <issueDate>2024-01-10</issueDate>
        <prospectusStartDate>2024-01-05</prospectusStartDate>
        <clientOrderTradeDate>2024-01-05</clientOrderTradeDate>
      </issuance>
    </securitized>
  </tradableForm>
  <asset>
    <assets>
      <assetType>Exchange_Traded_Fund</assetType>
      <bloombergTickerSuffix>SPY UP</bloombergTickerSuffix>
    </assets>
  </asset>
</document>
""".encode("utf-8")


def build_rc_xml(
    cusip: str = "38150ABC1",
    isin: str = "",
    document_type: str = "PRICING_SUPPLEMENT",
    description: str = "Phoenix Autocall",
    strike: str = "100",
    coupon_level: str = "70",
    knock_in: str = "60",
    has_memory: str = "true",
    issuer_callable: bool = False,
    counterparty: str = "Goldman Sachs International",
    tickers: tuple = ("AAPL UW", "MSFT UW"),
) -> bytes:
    schedule = "issuerCallable" if issuer_callable else "autocallSchedule"
    memory = f"<hasMemory>{has_memory}</hasMemory>" if has_memory else ""
    assets = "".join(
        f"<assets><assetType>Equity</assetType><bloombergTickerSuffix>{t}</bloombergTickerSuffix></assets>"
        for t in tickers
    )
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<document>
  <documentType>{document_type}</documentType>
  <counterparty><name>{counterparty}</name></counterparty>
  <dealer><name>Third Party Securities LLC</name></dealer>
  <product>
    <productName>Contingent Income Autocallable</productName>
    <tenor><months>18</months></tenor>
    <reverseConvertible>
      <description>{description}</description>
      <strike><level>{strike}</level></strike>
      <buffer><level>85</level></buffer>
      <couponSchedule>
        <frequency>Quarterly</frequency>
        {memory}
        <contigentLevelLegal><level>{coupon_level}</level></contigentLevelLegal>
      </couponSchedule>
      <{schedule}>
        <barrierSchedule>
          <frequency>Monthly</frequency>
          <firstDate>2024-07-15</firstDate>
        </barrierSchedule>
      </{schedule}>
    </reverseConvertible>
    <knockInBarrier>
      <barrierSchedule><barrierLevel><level>{knock_in}</level></barrierLevel></barrierSchedule>
    </knockInBarrier>
    <settlementDate>2025-07-20</settlementDate>
  </product>
  <tradableForm>
    {_identifiers(cusip, isin)}
    <securitized>
      <issuance>
        <issueDate>2024-01-20</issueDate>
        <clientOrderTradeDate>2024-01-15</clientOrderTradeDate>
      </issuance>
    </securitized>
  </tradableForm>
  <strikeDate><date>2024-01-12</date></strikeDate>
  <asset>
    <basketType>Worst-of</basketType>
    {assets}
  </asset>
</document>
""".encode("utf-8")


@pytest.fixture
def bren_xml():
    return build_bren_xml


@pytest.fixture
def rc_xml():
    return build_rc_xml


@pytest.fixture
def parse():
    def _parse(content: bytes, name: str = "doc.xml"):
        return parse_document(content, name)

    return _parse
