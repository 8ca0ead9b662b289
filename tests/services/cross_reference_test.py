import pytest

from domain.ledger import ExecutionStatus, LedgerEntry, ObjectSnapshot, TransferObjectKind, TransferSuiKind
from services.cross_reference import ObjectCrossReferencer, merge_object
from tests.helpers.sui_payloads import ALICE, ME, StubLedgerNode, coin_object, nft_object


def _object_entry(seq: int, object_id: str) -> LedgerEntry:
    return LedgerEntry(
        sequence_number=seq,
        digest=f"D{seq}",
        status=ExecutionStatus.SUCCESS,
        kind=TransferObjectKind(recipient=ALICE, object_id=object_id),
        sender=ME,
        is_sender_self=True,
        gas_used=1,
    )


def test_enrich_fetches_distinct_objects_in_one_batch() -> None:
    node = StubLedgerNode(objects=[nft_object("0xa", name="Sword", url="ipfs://sword")])
    entries = [_object_entry(3, "0xa"), _object_entry(2, "0xb"), _object_entry(1, "0xa")]

    enriched = ObjectCrossReferencer(node).enrich(entries)

    assert node.objects_calls == [["0xa", "0xb"]]
    assert [entry.digest for entry in enriched] == ["D3", "D2", "D1"]
    assert enriched[0].name == "Sword"
    assert enriched[0].url == "ipfs://sword"
    assert enriched[0].description == "An NFT"
    assert enriched[2].name == "Sword"


def test_enrich_leaves_entries_for_missing_objects_unchanged() -> None:
    node = StubLedgerNode()
    entry = _object_entry(1, "0xgone")

    assert ObjectCrossReferencer(node).enrich([entry]) == [entry]


def test_enrich_skips_request_when_nothing_is_referenced() -> None:
    node = StubLedgerNode()
    entry = LedgerEntry(
        sequence_number=1,
        digest="D1",
        status=ExecutionStatus.SUCCESS,
        kind=TransferSuiKind(recipient=ALICE, amount=3),
        sender=ME,
        is_sender_self=True,
        gas_used=1,
    )

    assert ObjectCrossReferencer(node).enrich([entry]) == [entry]
    assert node.objects_calls == []


def test_merge_object_sets_coin_balance_and_symbol() -> None:
    merged = merge_object(_object_entry(1, "0xc"), coin_object("0xc", "123456789012345678901"))

    assert merged.balance == 123456789012345678901
    assert merged.coin_symbol == "SUI"
    assert merged.coin_type == "0x2::sui::SUI"
    assert merged.name is None


def test_merge_object_non_coin_has_no_balance() -> None:
    merged = merge_object(_object_entry(1, "0xa"), nft_object("0xa", name="Sword", url="https://x/sword.png"))

    assert merged.balance is None
    assert merged.coin_symbol is None
    assert merged.coin_type is None


def test_merge_object_with_malformed_balance_keeps_entry(caplog: pytest.LogCaptureFixture) -> None:
    snapshot = ObjectSnapshot(object_id="0xc", type="0x2::coin::Coin<0x2::sui::SUI>", fields={"balance": None})

    merged = merge_object(_object_entry(1, "0xc"), snapshot)

    assert merged.balance is None
    assert merged.coin_symbol == "SUI"
    assert "0xc" in caplog.text


def test_merge_object_does_not_mutate_original() -> None:
    entry = _object_entry(1, "0xa")

    merge_object(entry, nft_object("0xa", name="Sword", url="ipfs://sword"))

    assert entry.name is None
