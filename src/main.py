from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from clients.sui_rpc import SuiRpcClient
from config import EFFECTS_CACHE_DB, config
from db.effects_cache import CachedLedgerNode, EffectsCacheRepository, init_effects_cache_db
from domain.coin import FormatMode
from domain.ledger import LedgerPhase, LedgerState, SuiAddress
from services.ledger_node import LedgerNode
from services.ledger_service import LedgerService
from utils.ledger_summary import render_ledger

logger = logging.getLogger(__name__)


def build_node(rpc_url: str, *, timeout: float, effects_cache: Path | None) -> LedgerNode:
    node: LedgerNode = SuiRpcClient(rpc_url=rpc_url, timeout=timeout)
    if effects_cache is not None:
        logger.info("Using effects cache at %s", effects_cache)
        node = CachedLedgerNode(node, EffectsCacheRepository(init_effects_cache_db(db_file=effects_cache)))
    return node


def run(address: SuiAddress, node: LedgerNode, *, mode: FormatMode) -> LedgerState:
    service = LedgerService(node)
    state = service.refresh(address)
    render_ledger(state, mode)
    return state


def main(argv: Sequence[str] | None = None) -> int:
    settings = config()
    parser = argparse.ArgumentParser(description="Reconcile and print the transaction history of a Sui address.")
    parser.add_argument("address", help="Account address to reconcile, e.g. 0x1b2c...")
    parser.add_argument("--rpc-url", default=settings.sui_rpc_url)
    parser.add_argument("--timeout", type=float, default=settings.sui_rpc_timeout)
    parser.add_argument("--mode", choices=[mode.value for mode in FormatMode], default=FormatMode.LOOSE.value)
    parser.add_argument(
        "--effects-cache",
        type=Path,
        nargs="?",
        const=EFFECTS_CACHE_DB,
        default=EFFECTS_CACHE_DB if settings.effects_cache_enabled else None,
        help="Cache transaction effects in this SQLite file (default: artifacts/effects_cache.db).",
    )
    args = parser.parse_args(argv)

    node = build_node(args.rpc_url, timeout=args.timeout, effects_cache=args.effects_cache)
    state = run(SuiAddress(args.address), node, mode=FormatMode(args.mode))
    return 1 if state.phase == LedgerPhase.FAILED else 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    raise SystemExit(main())
