from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal, NewType, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

Digest = NewType("Digest", str)
SuiAddress = NewType("SuiAddress", str)
ObjectId = NewType("ObjectId", str)


class ExecutionStatus(StrEnum):
    SUCCESS = "success"
    FAILURE = "failure"


class SequenceRef(BaseModel):
    """A (sequence number, digest) pair as listed by the ledger node for an account.

    Sequence numbers are monotonically assigned per account but not necessarily
    contiguous. The same digest can be listed more than once.
    """

    model_config = ConfigDict(frozen=True)

    sequence_number: int
    digest: Digest

    @model_validator(mode="after")
    def _validate_fields(self) -> SequenceRef:
        if self.sequence_number < 0:
            raise ValueError("sequence_number must be >= 0")
        if not self.digest:
            raise ValueError("digest must be non-empty")
        return self


class CallKind(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["Call"] = "Call"
    package: str
    module: str
    function: str
    # First object created by the call, used as a proxy for "this call minted an asset".
    # Wrong when the call creates several objects or none.
    created_object_id: ObjectId | None = None

    @property
    def function_label(self) -> str:
        return f"Call ({self.function.replace('_', ' ')})"


class TransferObjectKind(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["TransferObject"] = "TransferObject"
    recipient: SuiAddress
    object_id: ObjectId


class TransferSuiKind(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["TransferSui"] = "TransferSui"
    recipient: SuiAddress
    # None when the whole gas coin is transferred.
    amount: int | None = None


class OtherKind(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["Other"] = "Other"
    name: str


LedgerEntryKind = Annotated[
    Union[CallKind, TransferObjectKind, TransferSuiKind, OtherKind],
    Field(discriminator="type"),
]


class LedgerEntry(BaseModel):
    """Reconciled record of one transaction affecting the queried account.

    Enrichment fields (name, description, url, balance, coin_symbol, coin_type) stay empty
    until the referenced object has been cross-referenced. Entries are frozen;
    enrichment produces a copy.
    """

    model_config = ConfigDict(frozen=True)

    sequence_number: int
    digest: Digest
    status: ExecutionStatus
    error_message: str | None = None
    kind: LedgerEntryKind
    sender: SuiAddress
    is_sender_self: bool
    gas_used: int
    timestamp_ms: int | None = None

    name: str | None = None
    description: str | None = None
    url: str | None = None
    balance: int | None = None
    coin_symbol: str | None = None
    coin_type: str | None = None

    @property
    def kind_name(self) -> str:
        if isinstance(self.kind, OtherKind):
            return self.kind.name
        return self.kind.type

    @property
    def counterparty_address(self) -> SuiAddress | None:
        if isinstance(self.kind, (TransferObjectKind, TransferSuiKind)):
            return self.kind.recipient
        return None

    @property
    def amount(self) -> int | None:
        if isinstance(self.kind, TransferSuiKind):
            return self.kind.amount
        return None

    @property
    def object_id(self) -> ObjectId | None:
        if isinstance(self.kind, TransferObjectKind):
            return self.kind.object_id
        if isinstance(self.kind, CallKind):
            return self.kind.created_object_id
        return None


class ErrorInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str | None = None
    name: str
    message: str

    @classmethod
    def from_exception(cls, exc: BaseException) -> ErrorInfo:
        code = getattr(exc, "code", None)
        return cls(
            code=str(code) if code is not None else None,
            name=type(exc).__name__,
            message=str(exc),
        )


class LedgerPhase(StrEnum):
    IDLE = "IDLE"
    LOADING = "LOADING"
    LOADED = "LOADED"
    FAILED = "FAILED"


class LedgerState(BaseModel):
    """Snapshot observed by the presentation layer.

    Phases never mix: a loading state carries no entries and no error, a loaded
    state carries no error, a failed state carries no entries.
    """

    model_config = ConfigDict(frozen=True)

    phase: LedgerPhase = LedgerPhase.IDLE
    address: SuiAddress | None = None
    loading: bool = False
    error: ErrorInfo | None = None
    entries: tuple[LedgerEntry, ...] = ()
    recent_addresses: tuple[SuiAddress, ...] = ()

    @model_validator(mode="after")
    def _validate_phase(self) -> LedgerState:
        if self.loading != (self.phase == LedgerPhase.LOADING):
            raise ValueError("loading must be set exactly in the LOADING phase")
        if (self.error is not None) != (self.phase == LedgerPhase.FAILED):
            raise ValueError("error must be set exactly in the FAILED phase")
        if self.phase != LedgerPhase.LOADED and (self.entries or self.recent_addresses):
            raise ValueError(f"{self.phase} state must not carry entries")
        return self

    @classmethod
    def idle(cls) -> LedgerState:
        return cls()

    @classmethod
    def pending(cls, address: SuiAddress) -> LedgerState:
        return cls(phase=LedgerPhase.LOADING, address=address, loading=True)

    @classmethod
    def loaded(cls, address: SuiAddress, entries: list[LedgerEntry]) -> LedgerState:
        return cls(
            phase=LedgerPhase.LOADED,
            address=address,
            entries=tuple(entries),
            recent_addresses=tuple(collect_recent_addresses(entries)),
        )

    @classmethod
    def failed(cls, address: SuiAddress, error: ErrorInfo) -> LedgerState:
        return cls(phase=LedgerPhase.FAILED, address=address, error=error)


def collect_recent_addresses(entries: list[LedgerEntry]) -> list[SuiAddress]:
    """Counterparty and sender addresses across entries, first-seen order, empties excluded."""
    seen: dict[SuiAddress, None] = {}
    for entry in entries:
        for address in (entry.counterparty_address, entry.sender):
            if address:
                seen.setdefault(address, None)
    return list(seen)


class ObjectSnapshot(BaseModel):
    """Current state of an on-chain object as returned by the ledger node."""

    model_config = ConfigDict(frozen=True)

    object_id: ObjectId
    type: str
    fields: dict[str, Any] = Field(default_factory=dict)
