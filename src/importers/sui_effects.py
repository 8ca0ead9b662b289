from __future__ import annotations

from typing import Any

from domain.ledger import (
    CallKind,
    Digest,
    ExecutionStatus,
    LedgerEntry,
    LedgerEntryKind,
    ObjectId,
    OtherKind,
    SuiAddress,
    TransferObjectKind,
    TransferSuiKind,
)

# Single-operation kinds that are kept but carry no transfer semantics.
OTHER_KINDS = frozenset({"Publish", "ChangeEpoch", "Pay", "PaySui", "PayAllSui", "Genesis"})


class MultiOperationUnsupported(Exception):
    def __init__(self, digest: str, operations: int) -> None:
        self.digest = digest
        self.operations = operations
        super().__init__(f"Transaction {digest} has {operations} operations; batched transactions are not supported")


class UnclassifiableEffect(Exception):
    def __init__(self, digest: str | None, reason: str) -> None:
        self.digest = digest
        self.reason = reason
        super().__init__(f"Cannot classify transaction {digest or '<unknown>'}: {reason}")


def effect_digest(effect: dict[str, Any]) -> Digest:
    certificate = effect.get("certificate") if isinstance(effect, dict) else None
    if not isinstance(certificate, dict):
        raise UnclassifiableEffect(None, "missing certificate")
    digest = certificate.get("transactionDigest")
    if not digest or not isinstance(digest, str):
        raise UnclassifiableEffect(None, "missing certificate.transactionDigest")
    return Digest(digest)


def total_gas_used(effect: dict[str, Any]) -> int:
    gas = effect["effects"]["gasUsed"]
    return _to_int(gas["computationCost"]) + _to_int(gas["storageCost"]) - _to_int(gas["storageRebate"])


def first_created_object_id(effect: dict[str, Any]) -> ObjectId | None:
    # TODO: replace with real mint detection once call results expose the minted objects.
    created = effect["effects"].get("created") or []
    if not created:
        return None
    return ObjectId(str(created[0]["reference"]["objectId"]))


def classify_effect(effect: dict[str, Any], *, sequence_number: int, address: SuiAddress) -> LedgerEntry:
    """Turn a raw transaction-with-effects payload into a ledger entry.

    Raises MultiOperationUnsupported for batched transactions and
    UnclassifiableEffect for anything else that cannot be read.
    """
    digest = effect_digest(effect)
    try:
        data = effect["certificate"].get("data") or {}
        transactions = data.get("transactions") or []
        if not isinstance(transactions, list):
            raise UnclassifiableEffect(digest, f"unexpected transactions payload: {transactions!r}")
        if len(transactions) > 1:
            raise MultiOperationUnsupported(digest, len(transactions))
        if not transactions:
            raise UnclassifiableEffect(digest, "no operations")

        kind = _build_kind(digest, transactions[0], effect)
        sender = SuiAddress(str(data["sender"]))
        status_payload = effect["effects"]["status"]
        return LedgerEntry(
            sequence_number=sequence_number,
            digest=digest,
            status=ExecutionStatus(status_payload["status"]),
            error_message=status_payload.get("error"),
            kind=kind,
            sender=sender,
            is_sender_self=sender == address,
            gas_used=total_gas_used(effect),
            timestamp_ms=effect.get("timestamp_ms"),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise UnclassifiableEffect(digest, f"malformed payload ({exc!r})") from exc


def _build_kind(digest: Digest, operation: dict[str, Any], effect: dict[str, Any]) -> LedgerEntryKind:
    if len(operation) != 1:
        raise UnclassifiableEffect(digest, f"unexpected operation shape: {sorted(operation)}")
    ((kind_name, payload),) = operation.items()

    if kind_name == "TransferSui":
        amount = payload.get("amount")
        return TransferSuiKind(
            recipient=SuiAddress(str(payload["recipient"])),
            amount=_to_int(amount) if amount is not None else None,
        )
    if kind_name == "TransferObject":
        return TransferObjectKind(
            recipient=SuiAddress(str(payload["recipient"])),
            object_id=ObjectId(str(payload["objectRef"]["objectId"])),
        )
    if kind_name == "Call":
        package = payload["package"]
        return CallKind(
            package=str(package["objectId"] if isinstance(package, dict) else package),
            module=str(payload["module"]),
            function=str(payload["function"]),
            created_object_id=first_created_object_id(effect),
        )
    if kind_name in OTHER_KINDS:
        return OtherKind(name=kind_name)

    raise UnclassifiableEffect(digest, f"unsupported transaction kind {kind_name!r}")


def _to_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise TypeError(f"Expected an integer amount, got {value!r}")
    return int(value)


__all__ = [
    "MultiOperationUnsupported",
    "OTHER_KINDS",
    "UnclassifiableEffect",
    "classify_effect",
    "effect_digest",
    "first_created_object_id",
    "total_gas_used",
]
