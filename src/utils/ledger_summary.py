from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from domain.coin import GAS_SYMBOL, FormatMode
from domain.ledger import CallKind, ExecutionStatus, LedgerEntry, LedgerPhase, LedgerState

from .formatting import SUI_COIN, coin_type_or_default, format_amount, middle_ellipsis

ADDRESS_MAX_LENGTH = 8
ADDRESS_PREFIX_LENGTH = 4
IPFS_PREFIX = "ipfs://"
IPFS_GATEWAY = "https://ipfs.io/ipfs/"


@dataclass
class LedgerRow:
    sequence_number: int
    date: str
    title: str
    counterparty: str
    amount: str
    digest: str


def display_amount(entry: LedgerEntry) -> int:
    """Amount shown for an entry: object balance for calls, then transferred amount, then gas."""
    if isinstance(entry.kind, CallKind):
        return entry.balance or entry.amount or entry.gas_used or 0
    return entry.amount or entry.gas_used or 0


def _shows_balance(entry: LedgerEntry) -> bool:
    return isinstance(entry.kind, CallKind) and bool(entry.balance)


def display_symbol(entry: LedgerEntry) -> str:
    return (entry.coin_symbol if _shows_balance(entry) else None) or GAS_SYMBOL


def display_amount_text(entry: LedgerEntry, mode: FormatMode = FormatMode.LOOSE) -> str:
    coin_type = coin_type_or_default(entry.coin_type) if _shows_balance(entry) else SUI_COIN
    return format_amount(display_amount(entry), coin_type, mode)


def transfer_direction(entry: LedgerEntry) -> str:
    if isinstance(entry.kind, CallKind):
        return "Call"
    return "Sent" if entry.is_sender_self else "Received"


def display_title(entry: LedgerEntry) -> str:
    if entry.error_message:
        return "Transaction failed"
    if isinstance(entry.kind, CallKind):
        return "Minted" if entry.name and entry.url else entry.kind.function_label
    return transfer_direction(entry)


def receipt_headline(entry: LedgerEntry) -> str:
    if entry.status != ExecutionStatus.SUCCESS:
        return "Transaction Failed"
    if isinstance(entry.kind, CallKind):
        return "Minted Successfully!" if entry.name and entry.url else "Move Call"
    return "Successfully Sent!" if entry.is_sender_self else "Successfully Received!"


def resolve_image_url(url: str | None) -> str | None:
    if url and url.startswith(IPFS_PREFIX):
        return IPFS_GATEWAY + url[len(IPFS_PREFIX) :]
    return url


def _counterparty(entry: LedgerEntry) -> str:
    direction = transfer_direction(entry)
    if direction == "Sent":
        return f"To {middle_ellipsis(entry.counterparty_address or '', ADDRESS_MAX_LENGTH, ADDRESS_PREFIX_LENGTH)}"
    if direction == "Received":
        return f"From {middle_ellipsis(entry.sender, ADDRESS_MAX_LENGTH, ADDRESS_PREFIX_LENGTH)}"
    return ""


def _format_timestamp(timestamp_ms: int | None) -> str:
    if timestamp_ms is None:
        return ""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime("%b %d %H:%M")


def compute_ledger_rows(state: LedgerState, mode: FormatMode = FormatMode.LOOSE) -> list[LedgerRow]:
    return [
        LedgerRow(
            sequence_number=entry.sequence_number,
            date=_format_timestamp(entry.timestamp_ms),
            title=display_title(entry),
            counterparty=_counterparty(entry),
            amount=display_amount_text(entry, mode),
            digest=entry.digest,
        )
        for entry in state.entries
    ]


def render_ledger(state: LedgerState, mode: FormatMode = FormatMode.LOOSE) -> None:
    if state.phase == LedgerPhase.FAILED and state.error is not None:
        print(f"Failed to load transactions: {state.error.name}: {state.error.message}")
        return

    print(f"Transactions for {state.address or '(no address)'}:")
    rows = compute_ledger_rows(state, mode)
    if not rows:
        print("  (empty)")
        return

    headers = ("Seq", "Date", "Transaction", "Counterparty", "Amount", "Digest")
    table = [
        (str(row.sequence_number), row.date, row.title, row.counterparty, row.amount, row.digest) for row in rows
    ]
    widths = [max(len(header), max(len(line[i]) for line in table)) for i, header in enumerate(headers)]

    header = " ".join(f"{title:<{width}}" for title, width in zip(headers, widths))
    lines = [header, "-" * len(header)]
    for line in table:
        lines.append(" ".join(f"{cell:<{width}}" for cell, width in zip(line, widths)))
    lines.append("-" * len(header))
    if state.recent_addresses:
        lines.append(f"Recent addresses: {', '.join(state.recent_addresses)}")
    print("\n".join(lines))
