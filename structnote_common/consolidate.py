from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from .records import ProductRecord

LOGGER = logging.getLogger(__name__)


class Consolidator:
    """
    Merge records that share an identifier across documents.

    The first record seen for an identifier is kept as-is; every later record
    for the same identifier only contributes its document-type flags, OR-ed
    into the kept record. Insertion order is preserved.
    """

    def __init__(self, policy: str = "cusip_or_isin") -> None:
        self.policy = policy
        self._by_key: Dict[str, ProductRecord] = {}

    def __len__(self) -> int:
        return len(self._by_key)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def add(self, record: Optional[ProductRecord]) -> bool:
        """Add or merge ``record``; returns True when it merged into an existing one."""

        if record is None:
            return False
        key = record.identity.merge_key(self.policy)
        if not key:
            return False

        existing = self._by_key.get(key)
        if existing is None:
            self._by_key[key] = record
            return False

        existing.doc_flags = existing.doc_flags.merge(record.doc_flags)
        LOGGER.debug("Merged %s into existing record %s", record.source_name or "document", key)
        return True

    def records(self) -> List[ProductRecord]:
        return list(self._by_key.values())


def consolidate_records(records: Iterable[Optional[ProductRecord]], policy: str = "cusip_or_isin") -> List[ProductRecord]:
    consolidator = Consolidator(policy)
    for record in records:
        consolidator.add(record)
    return consolidator.records()


def max_asset_count(records: Iterable[ProductRecord]) -> int:
    return max((record.asset_count for record in records), default=0)
