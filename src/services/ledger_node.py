from __future__ import annotations

from typing import Any, Protocol, Sequence

from domain.ledger import Digest, ObjectId, ObjectSnapshot, SequenceRef, SuiAddress


class LedgerNodeError(RuntimeError):
    """Any failure of a batched call to the ledger node. Fatal for a reconciliation cycle."""

    def __init__(self, message: str, *, code: int | str | None = None, payload: Any | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.payload = payload


class ReferenceSource(Protocol):
    def list_references(self, address: SuiAddress) -> list[SequenceRef]: ...


class EffectsSource(Protocol):
    def fetch_effects_batch(self, digests: Sequence[Digest]) -> list[dict[str, Any]]: ...


class ObjectFetcher(Protocol):
    def fetch_objects_batch(self, object_ids: Sequence[ObjectId]) -> list[ObjectSnapshot]: ...


class LedgerNode(ReferenceSource, EffectsSource, ObjectFetcher, Protocol):
    pass


__all__ = [
    "EffectsSource",
    "LedgerNode",
    "LedgerNodeError",
    "ObjectFetcher",
    "ReferenceSource",
]
