from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any, Protocol

from domain.digests import dedupe_digests, first_sequence_by_digest
from domain.ledger import Digest, LedgerEntry, SequenceRef, SuiAddress
from importers.sui_effects import MultiOperationUnsupported, UnclassifiableEffect, classify_effect, effect_digest

from .ledger_node import EffectsSource, LedgerNodeError, ReferenceSource

logger = logging.getLogger(__name__)


class ReconciliationError(Exception):
    """Inconsistency in node data that invalidates the whole cycle."""


class OrphanedEffect(ReconciliationError):
    def __init__(self, digest: str) -> None:
        self.digest = digest
        super().__init__(f"Effect for transaction {digest} does not match any listed reference")


class ReconcilerPhase(StrEnum):
    IDLE = "IDLE"
    FETCHING_DIGESTS = "FETCHING_DIGESTS"
    FETCHING_EFFECTS = "FETCHING_EFFECTS"
    CLASSIFYING = "CLASSIFYING"
    DONE = "DONE"
    FAILED = "FAILED"


class ReconcilerNode(ReferenceSource, EffectsSource, Protocol):
    pass


class BatchReconciler:
    """Fetches an account's references and effects and turns them into sorted ledger entries.

    Transport failures while fetching fail the cycle; effects that cannot be
    classified are dropped one by one. A single reconciler can serve overlapping
    cycles, in which case `phase` reflects whichever cycle advanced last.
    """

    def __init__(self, node: ReconcilerNode) -> None:
        self.node = node
        self.phase = ReconcilerPhase.IDLE

    def reconcile(self, address: SuiAddress) -> list[LedgerEntry]:
        refs = self.fetch_references(address)
        if not refs:
            return []
        effects = self.fetch_effects(refs)
        return self.classify(address, refs, effects)

    def fetch_references(self, address: SuiAddress) -> list[SequenceRef]:
        """References for the address; an empty result already completes the cycle."""
        if not address:
            logger.info("No address selected; nothing to reconcile")
            self.phase = ReconcilerPhase.DONE
            return []

        self.phase = ReconcilerPhase.FETCHING_DIGESTS
        try:
            refs = self.node.list_references(address)
        except LedgerNodeError:
            self.phase = ReconcilerPhase.FAILED
            raise
        logger.info("Fetched %d references address=%s", len(refs), address)
        if not refs:
            self.phase = ReconcilerPhase.DONE
        return refs

    def fetch_effects(self, refs: list[SequenceRef]) -> list[dict[str, Any]]:
        digests = dedupe_digests(refs)
        self.phase = ReconcilerPhase.FETCHING_EFFECTS
        try:
            effects = self.node.fetch_effects_batch(digests)
        except LedgerNodeError:
            self.phase = ReconcilerPhase.FAILED
            raise
        logger.info("Fetched %d effects for %d digests (%d references)", len(effects), len(digests), len(refs))
        return effects

    def classify(
        self,
        address: SuiAddress,
        refs: list[SequenceRef],
        effects: list[dict[str, Any]],
    ) -> list[LedgerEntry]:
        self.phase = ReconcilerPhase.CLASSIFYING
        try:
            entries = reconcile_effects(address, refs, effects)
        except ReconciliationError:
            self.phase = ReconcilerPhase.FAILED
            raise
        self.phase = ReconcilerPhase.DONE
        return entries


def reconcile_effects(
    address: SuiAddress,
    refs: list[SequenceRef],
    effects: list[dict[str, Any]],
) -> list[LedgerEntry]:
    sequences = first_sequence_by_digest(refs)
    entries: dict[Digest, LedgerEntry] = {}
    dropped = 0

    for effect in effects:
        try:
            digest = effect_digest(effect)
        except UnclassifiableEffect as exc:
            logger.warning("Dropping effect: %s", exc)
            dropped += 1
            continue

        if digest not in sequences:
            raise OrphanedEffect(digest)
        if digest in entries:
            logger.warning("Dropping repeated effect for transaction %s", digest)
            dropped += 1
            continue

        try:
            entry = classify_effect(effect, sequence_number=sequences[digest], address=address)
        except MultiOperationUnsupported as exc:
            logger.info("Dropping transaction: %s", exc)
            dropped += 1
            continue
        except UnclassifiableEffect as exc:
            logger.warning("Dropping effect: %s", exc)
            dropped += 1
            continue
        entries[digest] = entry

    result = sorted(entries.values(), key=lambda entry: entry.sequence_number, reverse=True)
    logger.info("Reconciled %d entries (%d dropped) address=%s", len(result), dropped, address)
    return result


__all__ = [
    "BatchReconciler",
    "OrphanedEffect",
    "ReconciliationError",
    "ReconcilerPhase",
    "reconcile_effects",
]
