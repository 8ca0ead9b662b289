from __future__ import annotations

import logging
from threading import RLock
from typing import Callable

from domain.ledger import ErrorInfo, LedgerEntry, LedgerPhase, LedgerState, SuiAddress

logger = logging.getLogger(__name__)

StateListener = Callable[[LedgerState], None]


class LedgerCache:
    """Session-scoped holder of the current ledger snapshot.

    The snapshot is only ever replaced as a whole; every replacement is pushed to
    subscribers.
    """

    def __init__(self, initial: LedgerState | None = None) -> None:
        self._state = initial or LedgerState.idle()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> LedgerState:
        return self._state

    def replace(self, state: LedgerState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


class LedgerStateMachine:
    """Idle -> Loading -> Loaded | Failed, with a new Loading allowed from any state.

    Every cycle gets a generation number from begin(). Terminal transitions carry
    that number and are ignored unless it belongs to the most recently started
    cycle, so a slow superseded cycle can never overwrite newer state.
    """

    def __init__(self, cache: LedgerCache | None = None) -> None:
        self.cache = cache or LedgerCache()
        self._generation = 0
        # FastAPI runs sync endpoints in a thread pool.
        self._lock = RLock()

    @property
    def state(self) -> LedgerState:
        return self.cache.state

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def begin(self, address: SuiAddress) -> int:
        with self._lock:
            self._generation += 1
            if self.state.phase == LedgerPhase.LOADING:
                logger.info("Superseding pending cycle for %s", self.state.address)
            self.cache.replace(LedgerState.pending(address))
            logger.debug("Started cycle generation=%d address=%s", self._generation, address)
            return self._generation

    def resolve(self, generation: int, entries: list[LedgerEntry]) -> bool:
        with self._lock:
            if not self._accepts(generation, "result"):
                return False
            self.cache.replace(LedgerState.loaded(self._pending_address(), entries))
            return True

    def reject(self, generation: int, error: BaseException | ErrorInfo) -> bool:
        with self._lock:
            if not self._accepts(generation, "failure"):
                return False
            info = error if isinstance(error, ErrorInfo) else ErrorInfo.from_exception(error)
            logger.warning("Ledger cycle failed generation=%d: %s: %s", generation, info.name, info.message)
            self.cache.replace(LedgerState.failed(self._pending_address(), info))
            return True

    def _accepts(self, generation: int, what: str) -> bool:
        if not self.is_current(generation):
            logger.info("Discarding %s of superseded cycle generation=%d (latest=%d)", what, generation, self._generation)
            return False
        if self.state.phase != LedgerPhase.LOADING:
            raise RuntimeError(f"Cycle generation={generation} already finished with {self.state.phase}")
        return True

    def _pending_address(self) -> SuiAddress:
        return self.state.address or SuiAddress("")


__all__ = ["LedgerCache", "LedgerStateMachine", "StateListener"]
