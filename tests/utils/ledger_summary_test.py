import pytest

from domain.coin import FormatMode
from domain.ledger import (
    CallKind,
    ErrorInfo,
    ExecutionStatus,
    LedgerEntry,
    LedgerState,
    TransferObjectKind,
    TransferSuiKind,
)
from tests.helpers.sui_payloads import ALICE, BOB, ME
from utils.formatting import coin_type_or_default, format_amount, middle_ellipsis
from utils.ledger_summary import (
    compute_ledger_rows,
    display_amount,
    display_amount_text,
    display_symbol,
    display_title,
    receipt_headline,
    render_ledger,
    resolve_image_url,
)


def _entry(kind, *, sender=ME, seq: int = 1, **extra) -> LedgerEntry:
    return LedgerEntry(
        sequence_number=seq,
        digest=f"D{seq}",
        status=extra.pop("status", ExecutionStatus.SUCCESS),
        kind=kind,
        sender=sender,
        is_sender_self=sender == ME,
        gas_used=extra.pop("gas_used", 120),
        timestamp_ms=1_660_000_000_000,
        **extra,
    )


MINT = CallKind(package="0x2", module="devnet_nft", function="mint_nft", created_object_id="0xnft")


def test_display_amount_call_prefers_balance() -> None:
    assert display_amount(_entry(MINT, balance=5_000)) == 5_000
    assert display_amount(_entry(MINT)) == 120
    assert display_amount(_entry(MINT, gas_used=0)) == 0


def test_display_amount_transfer_falls_back_to_gas() -> None:
    assert display_amount(_entry(TransferSuiKind(recipient=ALICE, amount=42))) == 42
    assert display_amount(_entry(TransferSuiKind(recipient=ALICE))) == 120


def test_display_amount_text_uses_coin_type_of_balance() -> None:
    entry = _entry(MINT, balance=1500, coin_type="0xabc::token::TOK", coin_symbol="TOK")

    assert display_amount_text(entry) == "1.5K TOK"
    assert display_amount_text(_entry(TransferSuiKind(recipient=ALICE, amount=500_000_000))) == "0.5 SUI"


def test_display_title() -> None:
    assert display_title(_entry(MINT, name="Sword", url="ipfs://sword")) == "Minted"
    assert display_title(_entry(MINT)) == "Call (mint nft)"
    assert display_title(_entry(TransferSuiKind(recipient=ALICE, amount=1))) == "Sent"
    assert display_title(_entry(TransferObjectKind(recipient=ME, object_id="0xa"), sender=BOB)) == "Received"
    failed = _entry(
        TransferSuiKind(recipient=ALICE),
        status=ExecutionStatus.FAILURE,
        error_message="InsufficientGas",
    )
    assert display_title(failed) == "Transaction failed"
    assert receipt_headline(failed) == "Transaction Failed"


def test_receipt_headline() -> None:
    assert receipt_headline(_entry(MINT, name="Sword", url="ipfs://sword")) == "Minted Successfully!"
    assert receipt_headline(_entry(MINT)) == "Move Call"
    assert receipt_headline(_entry(TransferSuiKind(recipient=ALICE))) == "Successfully Sent!"
    assert receipt_headline(_entry(TransferSuiKind(recipient=ME), sender=BOB)) == "Successfully Received!"


def test_resolve_image_url() -> None:
    assert resolve_image_url("ipfs://bafy/sword.png") == "https://ipfs.io/ipfs/bafy/sword.png"
    assert resolve_image_url("https://x/sword.png") == "https://x/sword.png"
    assert resolve_image_url(None) is None


@pytest.mark.parametrize(
    ("text", "max_length", "prefix", "expected"),
    [
        ("short", 10, None, "short"),
        ("0x3c9219f44ead8154", 10, None, "0x3c...154"),
        ("0x3c9219f44ead8154", 8, 4, "0x3c...4"),
    ],
)
def test_middle_ellipsis(text: str, max_length: int, prefix: int | None, expected: str) -> None:
    assert middle_ellipsis(text, max_length, prefix) == expected


def test_coin_type_or_default() -> None:
    assert str(coin_type_or_default(None)) == "0x2::sui::SUI"
    unparsable = coin_type_or_default("GAS")
    assert unparsable.symbol == "GAS"
    assert format_amount(1500, unparsable) == "1.5K GAS"


def test_format_amount_accurate() -> None:
    assert format_amount(1, coin_type_or_default(None), FormatMode.ACCURATE) == "0.000000001 SUI"


def test_compute_ledger_rows() -> None:
    state = LedgerState.loaded(
        ME,
        [
            _entry(TransferSuiKind(recipient=ALICE, amount=2_000_000_000), seq=2),
            _entry(TransferSuiKind(recipient=ME, amount=10), sender=BOB, seq=1),
        ],
    )

    rows = compute_ledger_rows(state)

    assert [row.sequence_number for row in rows] == [2, 1]
    assert rows[0].title == "Sent"
    assert rows[0].counterparty == "To 0xb4...d"
    assert rows[0].amount == "2 SUI"
    assert rows[0].date == "Aug 08 23:06"
    assert rows[1].counterparty == "From 0x7e...b"
    assert rows[1].amount == "0.00000001 SUI"


def test_render_ledger_failed(capsys: pytest.CaptureFixture[str]) -> None:
    render_ledger(LedgerState.failed(ME, ErrorInfo(code="503", name="SuiRpcError", message="down")))

    assert "SuiRpcError: down" in capsys.readouterr().out


def test_render_ledger_prints_recent_addresses(capsys: pytest.CaptureFixture[str]) -> None:
    render_ledger(LedgerState.loaded(ME, [_entry(TransferSuiKind(recipient=ALICE, amount=1))]))

    out = capsys.readouterr().out
    assert "Sent" in out
    assert f"Recent addresses: {ALICE}, {ME}" in out


def test_display_symbol_defaults_to_gas_symbol() -> None:
    assert display_symbol(_entry(MINT, balance=10, coin_symbol="TOK")) == "TOK"
    assert display_symbol(_entry(MINT)) == "SUI"
    assert display_symbol(_entry(TransferObjectKind(recipient=ALICE, object_id="0xc"), coin_symbol="TOK")) == "SUI"


def test_net_gas_rebate_is_shown_negative() -> None:
    entry = _entry(TransferObjectKind(recipient=ALICE, object_id="0xa"), gas_used=-2_500_000_000)

    assert display_amount_text(entry) == "-2.5 SUI"
    assert format_amount(-1, coin_type_or_default(None)) == "– – SUI"
