from __future__ import annotations

import logging
from time import perf_counter

from domain.ledger import Digest, LedgerEntry, LedgerState, SuiAddress

from .cross_reference import ObjectCrossReferencer
from .ledger_node import LedgerNode, LedgerNodeError
from .ledger_state import LedgerCache, LedgerStateMachine
from .reconciler import BatchReconciler, ReconciliationError

logger = logging.getLogger(__name__)


class LedgerService:
    """Runs reconciliation cycles for the selected account and commits them to the cache.

    Stages run one after another (references, effects, objects). After each stage
    the cycle checks whether a newer one was started meanwhile and stops early if so.
    """

    def __init__(self, node: LedgerNode, cache: LedgerCache | None = None) -> None:
        self.node = node
        self.machine = LedgerStateMachine(cache)
        self.reconciler = BatchReconciler(node)
        self.cross_referencer = ObjectCrossReferencer(node)

    @property
    def cache(self) -> LedgerCache:
        return self.machine.cache

    @property
    def state(self) -> LedgerState:
        return self.machine.state

    def refresh(self, address: SuiAddress) -> LedgerState:
        generation = self.machine.begin(address)
        started = perf_counter()
        try:
            entries = self._run_cycle(generation, address)
        except (LedgerNodeError, ReconciliationError) as exc:
            self.machine.reject(generation, exc)
            return self.state
        except Exception as exc:
            # Unexpected failures still end the cycle before propagating.
            self.machine.reject(generation, exc)
            raise

        if entries is not None and self.machine.resolve(generation, entries):
            logger.info(
                "Loaded %d entries address=%s generation=%d in %.2fs",
                len(entries),
                address,
                generation,
                perf_counter() - started,
            )
        return self.state

    def find_entry(self, digest: Digest) -> LedgerEntry | None:
        for entry in self.state.entries:
            if entry.digest == digest:
                return entry
        return None

    def _run_cycle(self, generation: int, address: SuiAddress) -> list[LedgerEntry] | None:
        refs = self.reconciler.fetch_references(address)
        if not self.machine.is_current(generation):
            return None
        if not refs:
            return []

        effects = self.reconciler.fetch_effects(refs)
        if not self.machine.is_current(generation):
            return None
        entries = self.reconciler.classify(address, refs, effects)

        enriched = self.cross_referencer.enrich(entries)
        if not self.machine.is_current(generation):
            return None
        return enriched


__all__ = ["LedgerService"]
