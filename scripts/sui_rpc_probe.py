# flake8: noqa E402
# Run via uv so project deps are loaded, e.g.:
# uv run scripts/sui_rpc_probe.py 0x1b2c... --limit 5
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

# Ensure the src directory is importable when the script is invoked via uv/python directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from clients.sui_rpc import SuiRpcClient
from config import config
from domain.digests import dedupe_digests


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dump raw Sui RPC responses used by the ledger reconciler.")
    parser.add_argument("address", help="Account address whose transactions should be listed.")
    parser.add_argument("--rpc-url", default=None, help="Full node URL (default: SUI_RPC_URL setting).")
    parser.add_argument(
        "--limit",
        type=int,
        default=3,
        help="How many of the listed digests to fetch effects for (default: 3).",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    settings = config()
    client = SuiRpcClient(rpc_url=args.rpc_url or settings.sui_rpc_url, timeout=settings.sui_rpc_timeout)
    refs = client.list_references(args.address)
    digests = dedupe_digests(refs)[: args.limit]
    effects = client.fetch_effects_batch(digests)
    payload: dict[str, Any] = {
        "references": [[ref.sequence_number, ref.digest] for ref in refs],
        "unique_digests": len(dedupe_digests(refs)),
        "effects": effects,
    }
    print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
