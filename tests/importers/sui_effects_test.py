import pytest

from domain.ledger import CallKind, ExecutionStatus, OtherKind, TransferObjectKind, TransferSuiKind
from importers.sui_effects import (
    MultiOperationUnsupported,
    UnclassifiableEffect,
    classify_effect,
    first_created_object_id,
    total_gas_used,
)
from tests.helpers.sui_payloads import ALICE, BOB, ME, build_effect, call_op, transfer_object_op, transfer_sui_op
from utils.ledger_summary import display_amount


def test_classify_transfer_sui() -> None:
    effect = build_effect("D1", operations=[transfer_sui_op(ALICE, 1_000)], gas=(100, 50, 30))

    entry = classify_effect(effect, sequence_number=4, address=ME)

    assert entry.sequence_number == 4
    assert entry.digest == "D1"
    assert entry.status == ExecutionStatus.SUCCESS
    assert entry.kind == TransferSuiKind(recipient=ALICE, amount=1_000)
    assert entry.kind_name == "TransferSui"
    assert entry.sender == ME
    assert entry.is_sender_self
    assert entry.gas_used == 120
    assert entry.timestamp_ms == 1_660_000_000_000


def test_classify_transfer_sui_without_amount() -> None:
    entry = classify_effect(build_effect("D1", operations=[transfer_sui_op(ALICE)]), sequence_number=1, address=ME)

    assert entry.amount is None


def test_classify_transfer_object_received() -> None:
    effect = build_effect("D2", operations=[transfer_object_op(ME, "0xnft")], sender=BOB)

    entry = classify_effect(effect, sequence_number=2, address=ME)

    assert entry.kind == TransferObjectKind(recipient=ME, object_id="0xnft")
    assert entry.object_id == "0xnft"
    assert entry.counterparty_address == ME
    assert not entry.is_sender_self


def test_classify_call_uses_first_created_object() -> None:
    effect = build_effect("D3", operations=[call_op("mint")], created=["0xfirst", "0xsecond"])

    entry = classify_effect(effect, sequence_number=3, address=ME)

    assert isinstance(entry.kind, CallKind)
    assert entry.kind.function == "mint"
    assert entry.kind.module == "devnet_nft"
    assert entry.kind.package == "0x2"
    # Only the first created object is tracked even when the call creates several.
    assert entry.object_id == "0xfirst"
    assert entry.counterparty_address is None


def test_classify_call_without_created_objects_has_no_object() -> None:
    entry = classify_effect(build_effect("D3", operations=[call_op("burn")]), sequence_number=3, address=ME)

    assert entry.object_id is None


def test_classify_failed_transaction_keeps_error_message() -> None:
    effect = build_effect("D4", operations=[transfer_sui_op(ALICE, 5)], status="failure", error="InsufficientGas")

    entry = classify_effect(effect, sequence_number=4, address=ME)

    assert entry.status == ExecutionStatus.FAILURE
    assert entry.error_message == "InsufficientGas"


def test_classify_publish_as_other_kind() -> None:
    effect = build_effect("D5", operations=[{"Publish": {"modules": []}}])

    entry = classify_effect(effect, sequence_number=5, address=ME)

    assert entry.kind == OtherKind(name="Publish")
    assert entry.kind_name == "Publish"
    assert entry.object_id is None


def test_classify_rejects_multi_operation_transactions() -> None:
    effect = build_effect("D6", operations=[transfer_sui_op(ALICE, 1), transfer_sui_op(BOB, 2)])

    with pytest.raises(MultiOperationUnsupported) as exc_info:
        classify_effect(effect, sequence_number=6, address=ME)

    assert exc_info.value.digest == "D6"
    assert exc_info.value.operations == 2


def test_classify_rejects_unknown_kind() -> None:
    effect = build_effect("D7", operations=[{"Mystery": {}}])

    with pytest.raises(UnclassifiableEffect):
        classify_effect(effect, sequence_number=7, address=ME)


def test_classify_rejects_malformed_payload() -> None:
    effect = build_effect("D8", operations=[transfer_sui_op(ALICE, 1)])
    del effect["effects"]["gasUsed"]

    with pytest.raises(UnclassifiableEffect) as exc_info:
        classify_effect(effect, sequence_number=8, address=ME)

    assert exc_info.value.digest == "D8"


def test_classify_rejects_missing_digest() -> None:
    effect = build_effect("D9", operations=[transfer_sui_op(ALICE, 1)])
    del effect["certificate"]["transactionDigest"]

    with pytest.raises(UnclassifiableEffect):
        classify_effect(effect, sequence_number=9, address=ME)


def test_total_gas_used_accepts_string_costs() -> None:
    effect = build_effect("D1", operations=[transfer_sui_op(ALICE)])
    effect["effects"]["gasUsed"] = {"computationCost": "1000", "storageCost": "200", "storageRebate": "1500"}

    # Rebates can exceed the cost.
    assert total_gas_used(effect) == -300


def test_first_created_object_id_none_without_created() -> None:
    assert first_created_object_id(build_effect("D1", operations=[call_op("noop")])) is None


def test_call_without_created_object_displays_gas_used() -> None:
    effect = build_effect("D10", operations=[call_op("ping")], gas=(70, 20, 10))

    entry = classify_effect(effect, sequence_number=10, address=ME)

    assert entry.object_id is None
    assert entry.amount is None
    assert entry.counterparty_address is None
    assert display_amount(entry) == 80
