from __future__ import annotations

import logging
from typing import Any

from domain.coin import InvalidCoinTypeFormat, NotACoinObject, extract_balance, get_coin_type_arg, parse_coin_type
from domain.ledger import LedgerEntry, ObjectSnapshot

from .ledger_node import ObjectFetcher

logger = logging.getLogger(__name__)


class ObjectCrossReferencer:
    """Attaches current object metadata (name, url, balance, coin symbol) to ledger entries.

    Entries without a referenced object, or whose object is gone, are returned
    unchanged. Nothing is ever removed.
    """

    def __init__(self, fetcher: ObjectFetcher) -> None:
        self.fetcher = fetcher

    def enrich(self, entries: list[LedgerEntry]) -> list[LedgerEntry]:
        object_ids = list(dict.fromkeys(entry.object_id for entry in entries if entry.object_id))
        if not object_ids:
            return list(entries)

        snapshots = self.fetcher.fetch_objects_batch(object_ids)
        by_id = {snapshot.object_id: snapshot for snapshot in snapshots}
        logger.info("Fetched %d of %d referenced objects", len(by_id), len(object_ids))

        enriched: list[LedgerEntry] = []
        for entry in entries:
            snapshot = by_id.get(entry.object_id) if entry.object_id else None
            if entry.object_id and snapshot is None:
                logger.debug("No object %s for transaction %s; leaving entry unenriched", entry.object_id, entry.digest)
            enriched.append(merge_object(entry, snapshot) if snapshot else entry)
        return enriched


def enrich(entries: list[LedgerEntry], fetcher: ObjectFetcher) -> list[LedgerEntry]:
    return ObjectCrossReferencer(fetcher).enrich(entries)


def merge_object(entry: LedgerEntry, snapshot: ObjectSnapshot) -> LedgerEntry:
    fields = snapshot.fields
    return entry.model_copy(
        update={
            "description": _optional_str(fields.get("description")),
            "name": _optional_str(fields.get("name")),
            "url": _optional_str(fields.get("url")),
            "balance": _coin_balance(snapshot),
            "coin_symbol": _coin_symbol(snapshot),
            "coin_type": get_coin_type_arg(snapshot.type),
        }
    )


def _coin_balance(snapshot: ObjectSnapshot) -> int | None:
    try:
        return extract_balance(snapshot)
    except NotACoinObject:
        return None
    except ValueError as exc:
        logger.warning("Ignoring balance of %s: %s", snapshot.object_id, exc)
        return None


def _coin_symbol(snapshot: ObjectSnapshot) -> str | None:
    coin_type_arg = get_coin_type_arg(snapshot.type)
    if coin_type_arg is None:
        return None
    try:
        return parse_coin_type(coin_type_arg).symbol
    except InvalidCoinTypeFormat:
        logger.debug("Unrecognized coin type %r on object %s", coin_type_arg, snapshot.object_id)
        return None


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


__all__ = ["ObjectCrossReferencer", "enrich", "merge_object"]
